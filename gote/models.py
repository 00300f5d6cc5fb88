from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

CATEGORIES_TABLE = "categories"
MEMOS_TABLE = "memos"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # naive timestamps from the backend are UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Category(BaseModel):
    category_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    name: str = ""
    description: str = ""
    # derived from memos on every fetch, never sent to the backend
    is_referenced: bool = Field(default=False, exclude=True)

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class Memo(BaseModel):
    memo_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    category_id: UUID
    title: str = ""
    content: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class Session(BaseModel):
    """Authenticated principal returned by a password sign-in."""

    user_id: UUID
    access_token: str = ""
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_in: int = 3600
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def _normalize_created(cls, v: datetime) -> datetime:
        return as_utc(v)

    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.expires_in)

    def expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at()

    @classmethod
    def from_auth_response(cls, data: Dict[str, Any], now: Optional[datetime] = None) -> "Session":
        """Build from a GoTrue ``/token`` response body."""
        user = data.get("user") or {}
        return cls(
            user_id=user.get("id"),
            access_token=data.get("access_token", ""),
            refresh_token=data.get("refresh_token", ""),
            token_type=data.get("token_type", "bearer"),
            expires_in=int(data.get("expires_in", 3600)),
            created_at=now or utcnow(),
        )
