"""
Database connectivity check.

Connects with the configured DATABASE_URL (5 second timeout), prints the
server version and the tables present, and exits non-zero on failure.

    python check_db.py
"""
import asyncio
import sys

from sqlalchemy import inspect, text

from kakao_login.config import settings
from kakao_login.database import describe_database, engine

VERSION_QUERIES = {
    "postgresql": "SELECT version()",
    "mysql": "SELECT VERSION()",
    "mariadb": "SELECT VERSION()",
    "sqlite": "SELECT sqlite_version()",
}


async def check() -> bool:
    target = describe_database()
    print("Connection info:")
    for key, value in target.items():
        print(f"  {key}: {value}")
    print("=" * 50)

    try:
        async with asyncio.timeout(settings.DATABASE_CONNECT_TIMEOUT_SECONDS):
            async with engine.connect() as conn:
                query = VERSION_QUERIES.get(engine.dialect.name, "SELECT 1")
                version = (await conn.execute(text(query))).scalar()
                tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    except TimeoutError:
        print(f"FAILED: no answer within {settings.DATABASE_CONNECT_TIMEOUT_SECONDS}s")
        print("Check the host, port and firewall settings.")
        return False
    except Exception as e:
        print(f"FAILED: {type(e).__name__}: {e}")
        print("Check the credentials, database name and that the server is running.")
        return False
    finally:
        await engine.dispose()

    print(f"Connected. Server version: {version}")
    print(f"Tables ({len(tables)}):")
    for name in tables:
        marker = " *" if name in ("kakao_users", "login_sessions") else ""
        print(f"  - {name}{marker}")
    return True


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(check()) else 1)
