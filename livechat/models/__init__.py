"""ORM Models — SQLAlchemy declarative models for accounts and messages.

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
"""

from livechat.models.account import Account  # noqa: F401
from livechat.models.message import Message  # noqa: F401
