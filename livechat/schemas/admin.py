"""Admin Schemas — moderation acknowledgements and account listings."""

from datetime import datetime, timezone

from pydantic import BaseModel, field_validator


class ActionResult(BaseModel):
    ok: bool = True
    nickname: str | None = None


class UserSummary(BaseModel):
    nickname: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive timestamps
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class UserList(BaseModel):
    users: list[UserSummary]
