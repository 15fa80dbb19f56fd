"""Cursor-based pagination utilities for the User Directory API."""

import base64
import logging
from collections.abc import Mapping
from typing import Optional, Dict, Any, Generic, List, TypeVar
from urllib.parse import urlencode

from pydantic import BaseModel, Field, field_validator, model_validator

from ..errors.problem_details import BadRequestError
from .source import DataSource, FindManyArgs, SortOrder, flip_order


logger = logging.getLogger(__name__)

T = TypeVar("T")

CURSOR_VERSION = 1
DEFAULT_LIMIT = 100
DEFAULT_ORDER: SortOrder = "desc"
DEFAULT_PAGINATION_KEY = "id"


class CursorData(BaseModel):
    """Versioned envelope around a cursor position."""

    v: int = Field(default=CURSOR_VERSION, description="Cursor schema version")
    key: Dict[str, Any] = Field(description="Pagination key value of the boundary item")

    @field_validator("key")
    @classmethod
    def validate_key(cls, v):
        """Cursor positions are non-empty mappings of scalars."""
        if not v:
            raise ValueError("cursor position must not be empty")
        for name, value in v.items():
            if isinstance(value, (dict, list, tuple, set)):
                raise ValueError(f"cursor value for '{name}' must be a scalar")
        return v


class PagingQuery(BaseModel):
    """Request-side pagination parameters."""

    after_cursor: Optional[str] = Field(default=None, description="Resume after this item")
    before_cursor: Optional[str] = Field(default=None, description="Resume before this item")
    limit: Optional[int] = Field(default=None, ge=1, description="Number of items per page")
    order: Optional[SortOrder] = Field(default=None, description="Logical sort order")

    @model_validator(mode="after")
    def validate_single_cursor(self):
        """Only one direction can be requested at a time."""
        if self.after_cursor and self.before_cursor:
            raise ValueError("afterCursor and beforeCursor are mutually exclusive")
        return self


class PaginationOptions(BaseModel):
    """Everything needed to build a paginator."""

    query: PagingQuery = Field(default_factory=PagingQuery)
    pagination_key: str = Field(default=DEFAULT_PAGINATION_KEY, min_length=1)


class PageCursor(BaseModel):
    """Cursors pointing past either edge of a page."""

    after_cursor: Optional[str] = None
    before_cursor: Optional[str] = None


class PagingResult(BaseModel, Generic[T]):
    """A page of items plus the cursors around it."""

    data: List[T]
    cursor: PageCursor


def encode_cursor(position: Dict[str, Any]) -> str:
    """Encode pagination cursor.

    Args:
        position: Mapping of the pagination key to the boundary value

    Returns:
        URL-safe base64 encoded cursor string

    Raises:
        ValueError: If the position cannot be encoded
    """
    try:
        cursor_data = CursorData(key=position)
    except ValueError as e:
        raise ValueError(f"Failed to encode cursor: {e}") from e

    cursor_json = cursor_data.model_dump_json()
    return base64.urlsafe_b64encode(cursor_json.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> Dict[str, Any]:
    """Decode pagination cursor.

    Args:
        cursor: Cursor string produced by ``encode_cursor``

    Returns:
        The position mapping that was encoded

    Raises:
        BadRequestError: If cursor is invalid, malformed or from an unknown version
    """
    if not cursor:
        raise BadRequestError("Empty cursor provided")

    try:
        cursor_bytes = base64.urlsafe_b64decode(cursor.encode("ascii"))
        cursor_data = CursorData.model_validate_json(cursor_bytes)
    except ValueError as e:
        # binascii, unicode and pydantic validation errors are all ValueErrors
        raise BadRequestError(f"Invalid cursor format: {e}") from e

    if cursor_data.v != CURSOR_VERSION:
        raise BadRequestError(f"Unsupported cursor version: {cursor_data.v}")

    return cursor_data.key


def create_link_header(
    base_url: str,
    params: Dict[str, Any],
    next_cursor: Optional[str] = None,
    prev_cursor: Optional[str] = None
) -> Optional[str]:
    """Create Link header for pagination as per RFC 8288.

    Args:
        base_url: Base URL for the resource
        params: Current query parameters, without cursors
        next_cursor: Cursor for the next page
        prev_cursor: Cursor for the previous page

    Returns:
        Link header value or None if no links
    """
    links = []

    if next_cursor:
        next_params = {**params, "afterCursor": next_cursor}
        links.append(f'<{base_url}?{urlencode(next_params)}>; rel="next"')

    if prev_cursor:
        prev_params = {**params, "beforeCursor": prev_cursor}
        links.append(f'<{base_url}?{urlencode(prev_params)}>; rel="prev"')

    return ", ".join(links) if links else None


class Paginator(Generic[T]):
    """Seek paginator over a single ordering key.

    A paginator serves exactly one request: configure it, call ``paginate``
    once and drop it. Rows are fetched one past ``limit`` so the extra row
    tells whether another page exists without a separate count. Requests
    made with a before-cursor run against the inverted order and the rows
    are flipped back before they are returned.
    """

    def __init__(self, pagination_key: str = DEFAULT_PAGINATION_KEY):
        if not pagination_key:
            raise ValueError("pagination_key must not be empty")
        self.pagination_key = pagination_key
        self.after_cursor: Optional[str] = None
        self.before_cursor: Optional[str] = None
        self.next_after_cursor: Optional[str] = None
        self.next_before_cursor: Optional[str] = None
        self.limit = DEFAULT_LIMIT
        self.order: SortOrder = DEFAULT_ORDER

    def set_after_cursor(self, cursor: str) -> None:
        self.after_cursor = cursor

    def set_before_cursor(self, cursor: str) -> None:
        self.before_cursor = cursor

    def set_limit(self, limit: int) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        self.limit = limit

    def set_order(self, order: SortOrder) -> None:
        if order not in ("asc", "desc"):
            raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")
        self.order = order

    async def paginate(
        self,
        source: DataSource[T],
        where: Optional[Dict[str, Any]] = None,
        order: Optional[SortOrder] = None,
        include: Optional[Dict[str, Any]] = None,
        select: Optional[Dict[str, Any]] = None
    ) -> PagingResult[T]:
        """Fetch one page from ``source``.

        Args:
            source: Data source to fetch from
            where: Filters passed through to the data source
            order: Logical sort order, defaults to the configured order
            include: Relations to load; takes precedence over ``select``
            select: Fields to return; the pagination key is always added

        Returns:
            The page in logical order with its after/before cursors

        Raises:
            BadRequestError: If both cursors are set or a cursor is malformed
        """
        if self.after_cursor is not None and self.before_cursor is not None:
            raise BadRequestError("afterCursor and beforeCursor are mutually exclusive")

        if order is not None:
            self.set_order(order)

        args = self._build_find_many_args(where, include, select)
        logger.debug(
            f"Paginating by {self.pagination_key} {args.order_by[self.pagination_key]} "
            f"with limit {self.limit}"
        )

        items = list(await source.find_many(args))
        has_more = len(items) > self.limit
        records = items[:self.limit] if has_more else items

        if self.before_cursor is not None:
            records.reverse()

        if records:
            self.next_after_cursor = self._cursor_for(records[-1])
            self.next_before_cursor = self._cursor_for(records[0])

        has_previous = self.after_cursor is not None or (self.before_cursor is not None and has_more)
        has_next = self.before_cursor is not None or has_more

        logger.debug(f"Fetched {len(records)} rows, has_more={has_more}")

        return PagingResult(
            data=records,
            cursor=PageCursor(
                after_cursor=self.next_after_cursor if has_next else None,
                before_cursor=self.next_before_cursor if has_previous else None
            )
        )

    def _build_find_many_args(
        self,
        where: Optional[Dict[str, Any]],
        include: Optional[Dict[str, Any]],
        select: Optional[Dict[str, Any]]
    ) -> FindManyArgs:
        key = self.pagination_key
        physical_order = self.order
        seek = None

        if self.after_cursor is not None:
            seek = {key: self._seek_value(self.after_cursor)}
        elif self.before_cursor is not None:
            seek = {key: self._seek_value(self.before_cursor)}
            physical_order = flip_order(self.order)

        args = FindManyArgs(
            where=where or {},
            take=self.limit + 1,
            order_by={key: physical_order}
        )

        if seek is not None:
            args.cursor = seek
            args.skip = 1

        if include:
            args.include = include
        elif select:
            args.select = {**select, key: True}

        return args

    def _seek_value(self, cursor: str) -> Any:
        position = decode_cursor(cursor)
        if self.pagination_key not in position:
            raise BadRequestError(f"Cursor is not positioned on '{self.pagination_key}'")
        return position[self.pagination_key]

    def _cursor_for(self, record: Any) -> str:
        if isinstance(record, Mapping):
            value = record[self.pagination_key]
        else:
            value = getattr(record, self.pagination_key)
        return encode_cursor({self.pagination_key: value})


def build_paginator(options: PaginationOptions) -> Paginator:
    """Build a paginator configured from ``options``."""
    query = options.query
    paginator = Paginator(options.pagination_key)

    if query.after_cursor:
        paginator.set_after_cursor(query.after_cursor)

    if query.before_cursor:
        paginator.set_before_cursor(query.before_cursor)

    if query.limit:
        paginator.set_limit(query.limit)

    if query.order:
        paginator.set_order(query.order)

    return paginator
