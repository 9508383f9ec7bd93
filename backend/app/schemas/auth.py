"""Auth Schemas — credentials, tokens and user records.

Invariants:
    - usernames >= 4 chars, passwords >= 8 chars on creation/change
    - password hashes never appear in any response
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from app.core.domain_types import MIN_PASSWORD_LENGTH, MIN_USERNAME_LENGTH, UserRole
from app.schemas.base import CamelModel


class LoginRequest(CamelModel):
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=200)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1, max_length=200)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=200)


class UserCreate(CamelModel):
    username: str = Field(
        min_length=MIN_USERNAME_LENGTH, max_length=50, pattern=r"^\S+$",
    )
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=200)
    role: UserRole = UserRole.USER


class UserResponse(CamelModel):
    id: UUID
    username: str
    role: UserRole
    active: bool
    last_login: datetime | None = None
    created_at: datetime


class LoginResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class SetupAdminResponse(CamelModel):
    username: str
    initial_password: str
    note: str = "Change this password immediately after the first login"
