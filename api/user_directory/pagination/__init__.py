"""Pagination module for cursor and offset pagination."""

from .source import (
    DataSource,
    FindManyArgs,
    SortOrder,
    flip_order
)
from .cursor import (
    CURSOR_VERSION,
    CursorData,
    PagingQuery,
    PaginationOptions,
    PageCursor,
    PagingResult,
    Paginator,
    build_paginator,
    encode_cursor,
    decode_cursor,
    create_link_header
)
from .offset import (
    PageOptions,
    OffsetPaginationMeta,
    paginate_offset
)

__all__ = [
    "DataSource",
    "FindManyArgs",
    "SortOrder",
    "flip_order",
    "CURSOR_VERSION",
    "CursorData",
    "PagingQuery",
    "PaginationOptions",
    "PageCursor",
    "PagingResult",
    "Paginator",
    "build_paginator",
    "encode_cursor",
    "decode_cursor",
    "create_link_header",
    "PageOptions",
    "OffsetPaginationMeta",
    "paginate_offset"
]
