"""Database operations for users."""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple
from uuid import UUID

import asyncpg
from asyncpg import Pool
from pydantic import TypeAdapter

from ..models.users import User, UserCreate, UserUpdate
from ..pagination import (
    FindManyArgs, PageCursor, PageOptions, OffsetPaginationMeta,
    PagingQuery, PaginationOptions, build_paginator, paginate_offset
)
from ..errors.problem_details import (
    ProblemDetailException, NotFoundError, ConflictError, BadRequestError, InternalServerError
)
from .connection import get_db_pool


logger = logging.getLogger(__name__)

USER_COLUMNS = (
    "id", "username", "email", "display_username", "first_name", "last_name",
    "image", "bio", "role", "is_email_verified", "two_factor_enabled",
    "created_at", "updated_at", "deleted_at"
)

SELECT_COLUMNS = ", ".join(USER_COLUMNS)

# Listings only ever show users that have not been soft deleted
ACTIVE_USERS = {"deleted_at": None}

_DATETIME_COLUMNS = {"created_at", "updated_at", "deleted_at"}

_datetime_adapter = TypeAdapter(datetime)


def _check_column(column: str) -> None:
    if column not in USER_COLUMNS:
        raise BadRequestError(f"Unknown user field '{column}'")


def _coerce(column: str, value: Any) -> Any:
    """Convert JSON-decoded values back to the column's Python type."""
    try:
        if column == "id" and not isinstance(value, UUID):
            return UUID(str(value))
        if column in _DATETIME_COLUMNS and isinstance(value, str):
            return _datetime_adapter.validate_python(value)
    except ValueError as e:
        raise BadRequestError(f"Invalid value for '{column}': {e}") from e
    return value


class UserDataSource:
    """Seek-paginated access to the users table.

    Follows the ``DataSource`` contract: ``cursor`` positions the scan at the
    cursor row in the requested order and ``skip`` counts that row, so
    ``skip=1`` yields the rows strictly after it.
    """

    def __init__(self, pool: Optional[Pool] = None):
        self._pool = pool

    async def _get_pool(self) -> Pool:
        if self._pool is None:
            self._pool = await get_db_pool()
        return self._pool

    @staticmethod
    def _build_conditions(where: Optional[Dict[str, Any]], params: List[Any]) -> List[str]:
        conditions = []
        for column, value in (where or {}).items():
            _check_column(column)
            if value is None:
                conditions.append(f"{column} IS NULL")
            else:
                params.append(_coerce(column, value))
                conditions.append(f"{column} = ${len(params)}")
        return conditions

    @staticmethod
    def _select_columns(select: Optional[Dict[str, Any]]) -> str:
        if not select:
            return SELECT_COLUMNS
        columns = [column for column, wanted in select.items() if wanted]
        for column in columns:
            _check_column(column)
        if not columns:
            raise BadRequestError("Select must name at least one field")
        return ", ".join(columns)

    def build_find_many_query(self, args: FindManyArgs) -> Tuple[str, List[Any]]:
        """Translate ``args`` into SQL and its positional parameters."""
        if args.include:
            raise BadRequestError("Users have no relations to include")

        params: List[Any] = []
        conditions = self._build_conditions(args.where, params)

        order_by = args.order_by or {"id": "asc"}
        for column in order_by:
            _check_column(column)

        offset = args.skip or 0
        if args.cursor:
            if len(args.cursor) != 1:
                raise BadRequestError("Cursor must reference exactly one field")
            column, value = next(iter(args.cursor.items()))
            _check_column(column)
            ascending = order_by.get(column, "asc") == "asc"
            if offset:
                # Skipping the cursor row itself is a strict comparison
                operator = ">" if ascending else "<"
                offset -= 1
            else:
                operator = ">=" if ascending else "<="
            params.append(_coerce(column, value))
            conditions.append(f"{column} {operator} ${len(params)}")

        query = f"SELECT {self._select_columns(args.select)} FROM users"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY " + ", ".join(f"{column} {direction.upper()}" for column, direction in order_by.items())

        if args.take is not None:
            params.append(args.take)
            query += f" LIMIT ${len(params)}"
        if offset:
            params.append(offset)
            query += f" OFFSET ${len(params)}"

        return query, params

    async def find_many(self, args: FindManyArgs) -> List[Dict[str, Any]]:
        query, params = self.build_find_many_query(args)
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(query, *params)
        return [dict(row) for row in rows]

    async def count(self, where: Optional[Dict[str, Any]] = None) -> int:
        params: List[Any] = []
        conditions = self._build_conditions(where, params)
        query = "SELECT COUNT(*) FROM users"
        if conditions:
            query += " WHERE " + " AND ".join(conditions)

        pool = await self._get_pool()
        async with pool.acquire() as conn:
            count = await conn.fetchval(query, *params)
        return count or 0


async def create_user(user_data: UserCreate) -> User:
    """Create a new user.

    Raises:
        ConflictError: If the username or email is already taken
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            query = f"""
                INSERT INTO users (username, email, display_username, first_name, last_name, image, bio, role)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                RETURNING {SELECT_COLUMNS}
            """
            row = await conn.fetchrow(
                query,
                user_data.username,
                user_data.email,
                user_data.display_username,
                user_data.first_name,
                user_data.last_name,
                user_data.image,
                user_data.bio,
                user_data.role
            )

            if not row:
                raise InternalServerError("Failed to create user")

            user = User.model_validate(dict(row))
            logger.info(f"Created user {user.id}")
            return user

    except ProblemDetailException:
        raise
    except asyncpg.UniqueViolationError as e:
        logger.warning(f"Duplicate user on create: {e}")
        raise ConflictError("A user with this username or email already exists")
    except asyncpg.PostgresError as e:
        logger.error(f"Database error creating user: {e}")
        raise InternalServerError(f"Database error: {e}")


async def get_user(user_id: UUID) -> User:
    """Get a user by ID.

    Raises:
        NotFoundError: If user doesn't exist
        InternalServerError: If database operation fails
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT {SELECT_COLUMNS} FROM users WHERE id = $1", user_id)

            if not row:
                raise NotFoundError(f"User '{user_id}' not found")

            logger.debug(f"Retrieved user {user_id}")
            return User.model_validate(dict(row))

    except ProblemDetailException:
        raise
    except asyncpg.PostgresError as e:
        logger.error(f"Database error retrieving user: {e}")
        raise InternalServerError(f"Database error: {e}")


async def get_user_by_email(email: str) -> Optional[User]:
    """Get a user by email, or None when no user has it."""
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT {SELECT_COLUMNS} FROM users WHERE email = $1", email)
            return User.model_validate(dict(row)) if row else None

    except asyncpg.PostgresError as e:
        logger.error(f"Database error looking up user by email: {e}")
        raise InternalServerError(f"Database error: {e}")


async def update_user(user_id: UUID, update_data: UserUpdate) -> User:
    """Update a user profile (partial update support).

    Only fields present in ``update_data`` are written; ``updated_at`` is set
    to the current time.

    Raises:
        NotFoundError: If user doesn't exist
        ConflictError: If the new email or username belongs to another user
        InternalServerError: If database operation fails
    """
    fields = update_data.model_dump(exclude_unset=True)
    if not fields:
        return await get_user(user_id)

    if fields.get("email"):
        existing = await get_user_by_email(fields["email"])
        if existing and existing.id != user_id:
            raise ConflictError(f"Email '{fields['email']}' is already in use")

    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            assignments = [f"{column} = ${index}" for index, column in enumerate(fields, start=2)]
            query = f"""
                UPDATE users
                SET {', '.join(assignments)}, updated_at = now()
                WHERE id = $1
                RETURNING {SELECT_COLUMNS}
            """
            row = await conn.fetchrow(query, user_id, *fields.values())

            if not row:
                raise NotFoundError(f"User '{user_id}' not found")

            user = User.model_validate(dict(row))
            logger.info(f"Updated user {user_id} fields {sorted(fields)}")
            return user

    except ProblemDetailException:
        raise
    except asyncpg.UniqueViolationError as e:
        logger.warning(f"Duplicate user on update: {e}")
        raise ConflictError("A user with this username or email already exists")
    except asyncpg.PostgresError as e:
        logger.error(f"Database error updating user: {e}")
        raise InternalServerError(f"Database error: {e}")


async def delete_user(user_id: UUID) -> bool:
    """Delete a user.

    Returns:
        True if user was deleted, False if not found
    """
    pool = await get_db_pool()

    try:
        async with pool.acquire() as conn:
            result = await conn.execute("DELETE FROM users WHERE id = $1", user_id)

            # "DELETE 1" means one row deleted
            deleted = result.split()[-1] == "1"

            if deleted:
                logger.info(f"Deleted user {user_id}")
            else:
                logger.debug(f"User {user_id} not found for deletion")

            return deleted

    except asyncpg.PostgresError as e:
        logger.error(f"Database error deleting user: {e}")
        raise InternalServerError(f"Database error: {e}")


async def count_users(where: Optional[Dict[str, Any]] = None) -> int:
    """Count users matching ``where``."""
    try:
        return await UserDataSource().count(where)
    except asyncpg.PostgresError as e:
        logger.error(f"Database error counting users: {e}")
        raise InternalServerError(f"Database error: {e}")


async def list_users_offset(page_options: PageOptions) -> Tuple[List[User], OffsetPaginationMeta]:
    """List active users page by page, newest first."""
    try:
        rows, meta = await paginate_offset(
            UserDataSource(),
            page_options,
            where=ACTIVE_USERS,
            order_by={"created_at": "desc", "id": "desc"}
        )
    except asyncpg.PostgresError as e:
        logger.error(f"Database error listing users: {e}")
        raise InternalServerError(f"Database error: {e}")

    users = [User.model_validate(row) for row in rows]
    logger.debug(f"Listed {len(users)} users on page {page_options.page}")
    return users, meta


async def list_users_cursor(
    query: PagingQuery,
    pagination_key: str = "id"
) -> Tuple[List[User], PageCursor, int]:
    """List active users with cursor pagination.

    Args:
        query: Cursor, limit and order requested by the caller
        pagination_key: User field to order and seek by

    Returns:
        Tuple of (users, cursors, total_records)

    Raises:
        BadRequestError: If a cursor is malformed or both cursors are set
        InternalServerError: If database operation fails
    """
    _check_column(pagination_key)
    source = UserDataSource()
    paginator = build_paginator(PaginationOptions(query=query, pagination_key=pagination_key))

    try:
        result = await paginator.paginate(source, ACTIVE_USERS, query.order)
    except asyncpg.PostgresError as e:
        logger.error(f"Database error listing users: {e}")
        raise InternalServerError(f"Database error: {e}")

    total_records = await count_users(ACTIVE_USERS)

    users = [User.model_validate(row) for row in result.data]
    logger.debug(f"Listed {len(users)} of {total_records} users by cursor")
    return users, result.cursor, total_records
