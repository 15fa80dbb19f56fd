"""Users API endpoints."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Query, Request, Response

from ..config import get_settings
from ..models.users import (
    User, UserCreate, UserUpdate,
    CursorPaginationMeta, CursorPaginatedUsers, OffsetPaginatedUsers
)
from ..pagination import PageOptions, PagingQuery, create_link_header
from ..db.users import (
    create_user, get_user, update_user, delete_user,
    list_users_offset, list_users_cursor
)
from ..errors.problem_details import BadRequestError, NotFoundError


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    responses={
        400: {"description": "Bad Request"},
        404: {"description": "Not Found"}
    }
)


def resolve_limit(limit: Optional[int]) -> int:
    """Apply the configured default and maximum page size."""
    settings = get_settings()
    if limit is None:
        return settings.default_page_size
    if limit > settings.max_page_size:
        raise BadRequestError(f"limit must not exceed {settings.max_page_size}")
    return limit


@router.get(
    "",
    response_model=OffsetPaginatedUsers,
    summary="List users by page",
    description="List active users, newest first, using page-number pagination."
)
async def list_users(
    page: Annotated[int, Query(ge=1, description="1-based page number")] = 1,
    limit: Annotated[Optional[int], Query(ge=1, description="Number of users per page")] = None
) -> OffsetPaginatedUsers:
    """List users with page-number pagination.

    Offsets shift when users are created or deleted between requests; use
    the cursor listing for stable traversal of large collections.
    """
    page_options = PageOptions(page=page, limit=resolve_limit(limit))
    users, meta = await list_users_offset(page_options)

    logger.info(f"Listed {len(users)} users on page {page}")
    return OffsetPaginatedUsers(data=users, pagination=meta)


@router.get(
    "/cursor",
    response_model=CursorPaginatedUsers,
    summary="List users by cursor",
    description="List active users with cursor-based pagination in either direction."
)
async def list_users_by_cursor(
    request: Request,
    response: Response,
    after_cursor: Annotated[Optional[str], Query(alias="afterCursor", description="Return users after this cursor")] = None,
    before_cursor: Annotated[Optional[str], Query(alias="beforeCursor", description="Return users before this cursor")] = None,
    limit: Annotated[Optional[int], Query(ge=1, description="Number of users per page")] = None,
    order: Annotated[str, Query(pattern="^(asc|desc)$", description="Sort order")] = "desc"
) -> CursorPaginatedUsers:
    """List users with seek-based pagination.

    Follow ``afterCursor`` to move forward and ``beforeCursor`` to move back.
    Each request accepts at most one of the two. The ``Link`` header carries
    ready-made URLs for the neighbouring pages.
    """
    limit = resolve_limit(limit)
    query = PagingQuery(
        after_cursor=after_cursor,
        before_cursor=before_cursor,
        limit=limit,
        order=order
    )

    users, cursor, total_records = await list_users_cursor(query)

    link_header = create_link_header(
        base_url=str(request.url).split("?")[0],
        params={"limit": limit, "order": order},
        next_cursor=cursor.after_cursor,
        prev_cursor=cursor.before_cursor
    )
    if link_header:
        response.headers["Link"] = link_header

    logger.info(f"Listed {len(users)} users by cursor")
    return CursorPaginatedUsers(
        data=users,
        pagination=CursorPaginationMeta(
            total_records=total_records,
            after_cursor=cursor.after_cursor,
            before_cursor=cursor.before_cursor,
            limit=limit
        )
    )


@router.post(
    "",
    response_model=User,
    status_code=201,
    summary="Create a user",
    responses={409: {"description": "Username or email already taken"}}
)
async def create_user_endpoint(user_data: UserCreate) -> User:
    """Create a new user."""
    user = await create_user(user_data)
    logger.info(f"Successfully created user {user.id}")
    return user


@router.get(
    "/{user_id}",
    response_model=User,
    summary="Get a user"
)
async def get_user_by_id(user_id: UUID) -> User:
    """Get a specific user by ID."""
    return await get_user(user_id)


@router.patch(
    "/{user_id}",
    response_model=User,
    summary="Update a user profile",
    responses={409: {"description": "Email or username already taken"}}
)
async def update_user_by_id(user_id: UUID, update_data: UserUpdate) -> User:
    """Partially update a user profile.

    Fields left out of the body keep their current values.
    """
    user = await update_user(user_id, update_data)
    logger.info(f"Successfully updated user {user_id}")
    return user


@router.delete(
    "/{user_id}",
    status_code=204,
    summary="Delete a user",
    responses={204: {"description": "User deleted successfully"}}
)
async def delete_user_by_id(user_id: UUID) -> Response:
    """Delete a user."""
    deleted = await delete_user(user_id)

    if not deleted:
        raise NotFoundError(f"User '{user_id}' not found")

    logger.info(f"Successfully deleted user {user_id}")
    return Response(status_code=204)
