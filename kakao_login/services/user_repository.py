"""
Persistence for Kakao user rows.

Every method checks out its own AsyncSession from the factory, runs a single
statement and releases the connection when the `async with` block exits,
whether it returns or raises. Database errors surface as PersistenceError.
"""
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kakao_login.exceptions import PersistenceError
from kakao_login.models.kakao_user import KakaoUser
from kakao_login.models.profile import UserProfile, UserRecord

_UPSERT_COLUMNS = ("display_name", "email", "avatar_url", "updated_at", "last_login")


def build_upsert(dialect_name: str, values: dict):
    """
    Single-statement insert-or-update keyed by identity.

    PostgreSQL and SQLite use ON CONFLICT, MySQL/MariaDB use
    ON DUPLICATE KEY UPDATE. created_at is never part of the update.
    """
    table = KakaoUser.__table__
    if dialect_name == "postgresql":
        stmt = postgresql.insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.identity],
            set_={name: stmt.excluded[name] for name in _UPSERT_COLUMNS},
        )
    if dialect_name == "sqlite":
        stmt = sqlite.insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.identity],
            set_={name: stmt.excluded[name] for name in _UPSERT_COLUMNS},
        )
    if dialect_name in ("mysql", "mariadb"):
        stmt = mysql.insert(table).values(**values)
        return stmt.on_duplicate_key_update(
            {name: stmt.inserted[name] for name in _UPSERT_COLUMNS}
        )
    raise PersistenceError(f"Upsert is not supported for dialect {dialect_name!r}")


def _to_record(row: KakaoUser) -> UserRecord:
    return UserRecord(
        identity=row.identity,
        display_name=row.display_name,
        email=row.email,
        avatar_url=row.avatar_url,
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_login=row.last_login,
    )


class UserRepository:
    """Upsert/read/list/delete of kakao_users rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def upsert(self, profile: UserProfile, login_at: Optional[datetime] = None) -> int:
        """
        Insert the profile or overwrite the stored fields with it.

        Args:
            profile: Freshly fetched Kakao profile
            login_at: Login timestamp (default: now, UTC)

        Returns:
            Rows affected as reported by the driver (MySQL reports 2 for an update)
        """
        login_at = login_at or datetime.now(timezone.utc)
        values = {
            "identity": profile.identity,
            "display_name": profile.display_name,
            "email": profile.email,
            "avatar_url": profile.avatar_url,
            "updated_at": login_at,
            "last_login": login_at,
        }
        try:
            async with self.session_factory() as db:
                stmt = build_upsert(db.bind.dialect.name, values)
                result = await db.execute(stmt)
                await db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Upsert of user {profile.identity} failed: {exc}") from exc
        return result.rowcount

    async def get(self, identity: int) -> UserRecord | None:
        """
        Get a user by Kakao identity.

        Returns:
            UserRecord or None if not found
        """
        stmt = select(KakaoUser).where(KakaoUser.identity == identity)
        try:
            async with self.session_factory() as db:
                result = await db.execute(stmt)
                row = result.scalar_one_or_none()
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Lookup of user {identity} failed: {exc}") from exc

    async def list(self) -> list[UserRecord]:
        """All users, most recent login first."""
        stmt = select(KakaoUser).order_by(KakaoUser.last_login.desc(), KakaoUser.identity)
        try:
            async with self.session_factory() as db:
                result = await db.execute(stmt)
                return [_to_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Listing users failed: {exc}") from exc

    async def delete(self, identity: int) -> bool:
        """Delete a user. Returns False when no row matched."""
        stmt = delete(KakaoUser).where(KakaoUser.identity == identity)
        try:
            async with self.session_factory() as db:
                result = await db.execute(stmt)
                await db.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Delete of user {identity} failed: {exc}") from exc
        return result.rowcount > 0


__all__ = ["UserRepository", "build_upsert"]
