"""
Domain models for authenticated identities.

These are plain pydantic models; nothing here touches the database.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserProfile(BaseModel):
    """Profile fields returned by Kakao. Serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    identity: int
    display_name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None

    def public_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UserRecord(UserProfile):
    """A persisted profile together with its bookkeeping timestamps."""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class SessionRecord(BaseModel):
    """
    Authenticated state held server-side for one browser session.

    access_token is excluded from every serialization except the one the
    session store performs for itself (see to_storage / from_storage).
    """

    profile: UserProfile
    access_token: str = Field(repr=False)
    login_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_storage(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_storage(cls, raw: str) -> "SessionRecord":
        return cls.model_validate_json(raw)

    def public_dict(self) -> dict:
        data = self.profile.public_dict()
        data["loginAt"] = self.login_at.isoformat()
        return data


__all__ = ["SessionRecord", "UserProfile", "UserRecord"]
