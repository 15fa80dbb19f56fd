"""Data models for the User Directory API."""

from .users import (
    ApiModel,
    Role,
    UserBase,
    UserCreate,
    UserUpdate,
    User,
    CursorPaginationMeta,
    CursorPaginatedUsers,
    OffsetPaginatedUsers
)

__all__ = [
    "ApiModel",
    "Role",
    "UserBase",
    "UserCreate",
    "UserUpdate",
    "User",
    "CursorPaginationMeta",
    "CursorPaginatedUsers",
    "OffsetPaginatedUsers"
]
