"""Page-number pagination over the same data source contract."""

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .source import DataSource, FindManyArgs, SortOrder


logger = logging.getLogger(__name__)


class PageOptions(BaseModel):
    """Page number and size requested by the caller."""

    page: int = Field(default=1, ge=1, description="1-based page number")
    limit: int = Field(default=10, ge=1, description="Number of items per page")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class OffsetPaginationMeta(BaseModel):
    """Pagination metadata for page-number listings."""

    limit: int
    current_page: int
    next_page: Optional[int] = None
    previous_page: Optional[int] = None
    total_records: int
    total_pages: int

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_total(cls, total_records: int, page_options: PageOptions) -> "OffsetPaginationMeta":
        """Build metadata; a negative total means the count was skipped."""
        page = page_options.page
        if total_records < 0:
            return cls(
                limit=page_options.limit,
                current_page=page,
                previous_page=page - 1 if page > 1 else None,
                total_records=total_records,
                total_pages=-1
            )

        total_pages = math.ceil(total_records / page_options.limit)
        return cls(
            limit=page_options.limit,
            current_page=page,
            next_page=page + 1 if page < total_pages else None,
            previous_page=page - 1 if page > 1 else None,
            total_records=total_records,
            total_pages=total_pages
        )


async def paginate_offset(
    source: DataSource,
    page_options: PageOptions,
    where: Optional[Dict[str, Any]] = None,
    order_by: Optional[Dict[str, SortOrder]] = None,
    include: Optional[Dict[str, Any]] = None,
    select: Optional[Dict[str, Any]] = None,
    skip_count: bool = False,
    take_all: bool = False
) -> Tuple[List[Any], OffsetPaginationMeta]:
    """Fetch one page by offset and count the filtered collection.

    Args:
        source: Data source to fetch from
        page_options: Requested page and page size
        where: Filters shared by the fetch and the count
        order_by: Sort specification
        include: Relations to load; takes precedence over ``select``
        select: Fields to return
        skip_count: Skip the count query and report ``total_records`` as -1
        take_all: Ignore the page window and return every matching row

    Returns:
        Tuple of (rows, pagination metadata)
    """
    where = where or {}
    args = FindManyArgs(
        where=where,
        order_by=order_by,
        skip=None if take_all else page_options.offset,
        take=None if take_all else page_options.limit
    )
    if include:
        args.include = include
    elif select:
        args.select = select

    if skip_count:
        items = await source.find_many(args)
        total = -1
    else:
        items, total = await asyncio.gather(
            source.find_many(args),
            source.count(where)
        )

    logger.debug(f"Offset page {page_options.page} returned {len(items)} rows of {total}")
    return list(items), OffsetPaginationMeta.from_total(total, page_options)
