"""
Server-side login session model.

Used by the database session backend. The browser only ever sees the
session_id (inside the signed session cookie); the serialized record,
access token included, stays here.
"""
from datetime import datetime
from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from kakao_login.models.base import Base


class LoginSession(Base):
    """One authenticated browser session."""
    __tablename__ = "login_sessions"

    session_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<LoginSession(session_id={self.session_id[:8]}..., expires_at={self.expires_at})>"
