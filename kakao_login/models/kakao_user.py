"""
Kakao user model.

One row per Kakao account that has ever logged in, keyed by the numeric id
Kakao assigns. Rows are refreshed by every login and removed only by an
explicit administrative delete.
"""
from datetime import datetime
from sqlalchemy import BigInteger, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from kakao_login.models.base import Base, TimestampMixin


class KakaoUser(Base, TimestampMixin):
    """Denormalized copy of the profile returned by Kakao at the last login."""
    __tablename__ = "kakao_users"

    identity: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_login: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True
    )

    def __repr__(self):
        return f"<KakaoUser(identity={self.identity}, display_name={self.display_name})>"
