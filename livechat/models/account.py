"""Account ORM — one registered chat user.

Invariants:
    - nickname is unique and case-sensitive
    - banned is only mutated by moderation
    - No FK from messages: the "system" author has no account row, and
      account deletion removes messages explicitly

Design Decisions:
    - Table name `users`: an account row is a chat user
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from livechat.db.base import Base


class Account(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    nickname: Mapped[str] = mapped_column(
        String(24), nullable=False, unique=True, index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    banned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
