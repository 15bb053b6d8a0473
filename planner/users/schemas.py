"""
User value objects.
"""

from __future__ import annotations

import re
from typing import Annotated

from pydantic import AfterValidator, Field, model_validator

from planner.core.schemas import Patch, ValueObject

from .repository import normalize_email

USERNAME_PATTERN = r"^[A-Za-z0-9]{3,30}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$"


def _check_password_strength(password: str) -> str:
    if not (re.search(r"[0-9]", password) and re.search(r"[a-z]", password) and re.search(r"[A-Z]", password)):
        raise ValueError(
            "Password Must Be More than 8 Characters, And Contain 1 Uppercase, 1 Lowercase, And 1 Number"
        )
    return password


Username = Annotated[str, Field(pattern=USERNAME_PATTERN)]
Email = Annotated[str, Field(min_length=3, max_length=320, pattern=EMAIL_PATTERN), AfterValidator(normalize_email)]
# bcrypt rejects inputs longer than 72 bytes.
Password = Annotated[str, Field(min_length=8, max_length=72), AfterValidator(_check_password_strength)]
Name = Annotated[str, Field(min_length=1, max_length=100)]


class UserCreate(ValueObject):
    id: str | None = None
    username: Username
    email: Email
    password: Password
    confirm_password: str | None = None
    first_name: Name
    last_name: Name

    @model_validator(mode="after")
    def _passwords_match(self) -> "UserCreate":
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords Do Not Match")
        return self


class UserUpdate(Patch):
    username: Username | None = None
    email: Email | None = None
    first_name: Name | None = None
    last_name: Name | None = None


class PasswordChange(ValueObject):
    password: Password


class LoginRequest(ValueObject):
    email_or_username: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=128)
