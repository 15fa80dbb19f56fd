"""Pydantic models for users."""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..pagination import OffsetPaginationMeta


Role = Literal["user", "admin"]

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class ApiModel(BaseModel):
    """Base model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserBase(ApiModel):
    """Base user model with common fields."""

    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN, description="Unique username")
    email: str = Field(max_length=254, pattern=EMAIL_PATTERN, description="Unique email address")
    display_username: Optional[str] = Field(default=None, max_length=100, description="Username as displayed")
    first_name: Optional[str] = Field(default=None, max_length=100, description="First name")
    last_name: Optional[str] = Field(default=None, max_length=100, description="Last name")
    image: Optional[str] = Field(default=None, description="Avatar URL")
    bio: Optional[str] = Field(default=None, max_length=1000, description="Short biography")


class UserCreate(UserBase):
    """Model for creating a new user."""

    role: Role = Field(default="user", description="User role")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "ada",
                "email": "ada@example.com",
                "firstName": "Ada",
                "lastName": "Lovelace"
            }
        }
    )


class UserUpdate(ApiModel):
    """Model for updating a user profile (partial updates)."""

    username: Optional[str] = Field(default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    email: Optional[str] = Field(default=None, max_length=254, pattern=EMAIL_PATTERN)
    display_username: Optional[str] = Field(default=None, max_length=100)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    image: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("username", "email")
    @classmethod
    def reject_null(cls, v):
        """Username and email can be changed but not cleared."""
        if v is None:
            raise ValueError("must not be null")
        return v


class User(UserBase):
    """Complete user model with all fields."""

    id: UUID = Field(description="User UUID")
    role: Role = Field(description="User role")
    is_email_verified: bool = Field(default=False, description="Whether the email is verified")
    two_factor_enabled: bool = Field(default=False, description="Whether 2FA is enabled")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
    deleted_at: Optional[datetime] = Field(default=None, description="Soft deletion timestamp")

    model_config = ConfigDict(from_attributes=True)


class CursorPaginationMeta(ApiModel):
    """Pagination metadata for cursor listings."""

    total_records: int = Field(description="Number of users matching the filter")
    after_cursor: Optional[str] = Field(default=None, description="Cursor for the next page")
    before_cursor: Optional[str] = Field(default=None, description="Cursor for the previous page")
    limit: int = Field(description="Requested page size")


class CursorPaginatedUsers(ApiModel):
    """Response model for cursor-paginated user listings."""

    data: List[User]
    pagination: CursorPaginationMeta


class OffsetPaginatedUsers(ApiModel):
    """Response model for page-number user listings."""

    data: List[User]
    pagination: OffsetPaginationMeta
