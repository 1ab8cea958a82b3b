"""
handlers/schemas.py
-------------------
Pydantic request schemas. Field names follow the public JSON contract
(camelCase), and unknown fields are rejected.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import MAX_PRICE
from security.passwords import MAX_PASSWORD_BYTES

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class RegisterRequest(_Strict):
    """Body of POST /auth/register."""
    username: str = Field(..., min_length=1, max_length=25)
    password: str = Field(..., min_length=5, max_length=MAX_PASSWORD_BYTES)
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=30)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=30)
    email: str = Field(..., min_length=6, max_length=60, pattern=_EMAIL_PATTERN)

    @field_validator("username", mode="before")
    @classmethod
    def trim_username(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class TokenRequest(_Strict):
    """Body of POST /auth/token."""
    username: str = Field(..., min_length=1, max_length=25)
    password: str = Field(..., min_length=1)


class UserUpdateRequest(_Strict):
    """Body of PATCH /users/{username}. ``password`` is the current password."""
    password: str = Field(..., min_length=1)
    first_name: Optional[str] = Field(None, alias="firstName", min_length=1, max_length=30)
    last_name: Optional[str] = Field(None, alias="lastName", min_length=1, max_length=30)
    email: Optional[str] = Field(None, min_length=6, max_length=60, pattern=_EMAIL_PATTERN)

    def changes(self) -> dict:
        """Supplied profile fields keyed by their JSON names."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"password"})


class PasswordConfirmation(_Strict):
    """Body of DELETE /users/{username}."""
    password: str = Field(..., min_length=1)


class ListingUpdateRequest(_Strict):
    """Body of PATCH /listings/{id}."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, min_length=1, max_length=100)
    price: Optional[float] = Field(None, ge=0, lt=MAX_PRICE, allow_inf_nan=False)
    image: Optional[str] = Field(None, min_length=1, max_length=500)

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class MessageRequest(_Strict):
    """Body of POST /users/{username}/messages/{otherUser}."""
    text: str = Field(..., min_length=1, max_length=2000)
