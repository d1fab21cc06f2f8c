"""Auth Schemas — register/login request and token response.

Design Decisions:
    - Fields are plain strings: format rules live in core/validation.py so the
      API reports INVALID_USERNAME / INVALID_PASSWORD instead of generic 422s
"""

from pydantic import BaseModel, Field


class Credentials(BaseModel):
    nickname: str = Field("", max_length=256)
    password: str = Field("", max_length=1024)


class AuthResponse(BaseModel):
    nickname: str
    token: str
