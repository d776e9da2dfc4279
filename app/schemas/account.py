# app/schemas/account.py
from datetime import datetime

from pydantic import BaseModel, Field


class AccountBase(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=128, examples=["user-123"])
    email: str = Field(..., min_length=3, max_length=320, examples=["jane@example.com"])
    provider: str = Field(default="google", max_length=32, examples=["google"])
    calendar_id: str = Field(
        default="primary",
        max_length=320,
        description="Calendar queried during sync.",
    )
    is_active: bool = Field(
        default=True,
        description="Whether the account is included in scheduled processing.",
    )
    settings: dict = Field(default_factory=dict)


class AccountCreate(AccountBase):
    """
    Schema for registering an account that already holds a valid access token.
    """

    access_token: str | None = Field(
        default=None,
        description="Calendar API access token. Refresh is handled elsewhere.",
    )


class AccountToggle(BaseModel):
    is_active: bool


class AccountRead(AccountBase):
    """
    Response schema for an account. Tokens are never returned.
    """

    id: int = Field(..., examples=[1])
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
