"""
Script to create all database tables.

Creates kakao_users and login_sessions from the models.
Run this after the database server is up.

    python create_tables.py          # create missing tables
    python create_tables.py --drop   # drop everything first
"""
import asyncio
import sys

from kakao_login.database import create_all, engine
from kakao_login.models import kakao_user, login_session  # noqa: F401
from kakao_login.models.base import Base


async def drop_all_tables():
    """Drop all tables in the database (for testing)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    print("All tables dropped!")


async def main(drop: bool = False):
    """Main entry point."""
    if drop:
        await drop_all_tables()
    print("Creating database tables...")
    await create_all()
    print("All tables created successfully!")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main(drop="--drop" in sys.argv[1:]))
