"""
Server-side session storage.

The browser cookie (Starlette SessionMiddleware) only carries an opaque
session id; the SessionRecord, including the Kakao access token, lives in one
of these stores. Records expire after max_age_seconds, matching the cookie.
"""
from __future__ import annotations

import asyncio
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol, runtime_checkable

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kakao_login.models.login_session import LoginSession
from kakao_login.models.profile import SessionRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


@runtime_checkable
class SessionStore(Protocol):
    """Storage contract used by the login orchestrator."""

    async def create(self, record: SessionRecord) -> str:
        """Store a record under a fresh session id and return the id."""
        ...

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        """Return the live record for session_id, or None if absent or expired."""
        ...

    async def destroy(self, session_id: str) -> bool:
        """Remove session_id. Returns whether a record existed."""
        ...


class InMemorySessionStore:
    """
    Process-local store. Suitable for a single worker and for tests.

    Expired records are dropped when read and swept on every create.
    """

    def __init__(self, max_age_seconds: int, clock: Callable[[], datetime] = _utcnow) -> None:
        self._max_age = timedelta(seconds=max_age_seconds)
        self._clock = clock
        self._records: dict[str, tuple[SessionRecord, datetime]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._records)

    async def create(self, record: SessionRecord) -> str:
        session_id = new_session_id()
        async with self._lock:
            now = self._clock()
            self._drop_expired(now)
            self._records[session_id] = (record, now + self._max_age)
        return session_id

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        async with self._lock:
            entry = self._records.get(session_id)
            if entry is None:
                return None
            record, expires_at = entry
            if expires_at <= self._clock():
                del self._records[session_id]
                return None
            return record

    async def destroy(self, session_id: str) -> bool:
        async with self._lock:
            return self._records.pop(session_id, None) is not None

    async def purge_expired(self) -> int:
        """Drop expired records; returns how many were removed."""
        async with self._lock:
            return self._drop_expired(self._clock())

    def _drop_expired(self, now: datetime) -> int:
        # Caller holds the lock.
        expired = [sid for sid, (_, expires_at) in self._records.items() if expires_at <= now]
        for sid in expired:
            del self._records[sid]
        return len(expired)


class DatabaseSessionStore:
    """
    Store backed by the login_sessions table.

    Every call checks out its own AsyncSession and runs one statement.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_age_seconds: int,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._max_age = timedelta(seconds=max_age_seconds)
        self._clock = clock

    async def create(self, record: SessionRecord) -> str:
        session_id = new_session_id()
        async with self._session_factory() as db:
            db.add(LoginSession(
                session_id=session_id,
                data=record.to_storage(),
                expires_at=self._clock() + self._max_age,
            ))
            await db.commit()
        return session_id

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        stmt = select(LoginSession.data).where(
            LoginSession.session_id == session_id,
            LoginSession.expires_at > self._clock(),
        )
        async with self._session_factory() as db:
            result = await db.execute(stmt)
            raw = result.scalar_one_or_none()
        return SessionRecord.from_storage(raw) if raw is not None else None

    async def destroy(self, session_id: str) -> bool:
        stmt = delete(LoginSession).where(LoginSession.session_id == session_id)
        async with self._session_factory() as db:
            result = await db.execute(stmt)
            await db.commit()
        return result.rowcount > 0

    async def purge_expired(self) -> int:
        """Delete expired rows; returns how many were removed."""
        stmt = delete(LoginSession).where(LoginSession.expires_at <= self._clock())
        async with self._session_factory() as db:
            result = await db.execute(stmt)
            await db.commit()
        return result.rowcount


__all__ = ["DatabaseSessionStore", "InMemorySessionStore", "SessionStore", "new_session_id"]
