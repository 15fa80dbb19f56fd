"""Data source contract consumed by the paginators."""

from typing import Any, Dict, Literal, Optional, Protocol, Sequence, TypeVar

from pydantic import BaseModel, Field


T_co = TypeVar("T_co", covariant=True)

SortOrder = Literal["asc", "desc"]


def flip_order(order: SortOrder) -> SortOrder:
    """Return the opposite sort direction."""
    return "desc" if order == "asc" else "asc"


class FindManyArgs(BaseModel):
    """Arguments for a filtered, ordered and bounded fetch.

    ``cursor`` positions the fetch at the row whose key equals the given value;
    ``skip`` then drops that many rows from the start, so ``skip=1`` makes the
    seek exclusive of the cursor row.
    """

    where: Dict[str, Any] = Field(default_factory=dict, description="Equality filters")
    take: Optional[int] = Field(default=None, ge=0, description="Maximum number of rows")
    skip: Optional[int] = Field(default=None, ge=0, description="Rows to skip")
    cursor: Optional[Dict[str, Any]] = Field(default=None, description="Seek position")
    order_by: Optional[Dict[str, SortOrder]] = Field(default=None, description="Sort specification")
    include: Optional[Dict[str, Any]] = Field(default=None, description="Relations to load")
    select: Optional[Dict[str, Any]] = Field(default=None, description="Fields to return")


class DataSource(Protocol[T_co]):
    """Anything that can serve seek-paginated fetches and counts."""

    async def find_many(self, args: FindManyArgs) -> Sequence[T_co]:
        ...

    async def count(self, where: Optional[Dict[str, Any]] = None) -> int:
        ...
