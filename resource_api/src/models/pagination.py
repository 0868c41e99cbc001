"""
Pagination models for list endpoints.

A ``Pageable`` describes which slice of a collection is requested (0-based
page number, page size, sort orders); a ``Page`` is the store's answer: the
slice itself plus the total number of elements in the collection.
"""

import builtins
import math
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

EntityT = TypeVar("EntityT")


class SortDirection(str, Enum):
    """Sort direction for a single property."""

    ASC = "asc"
    DESC = "desc"


class SortOrder(BaseModel):
    """Sort order on one entity property."""

    property: str = Field(..., min_length=1)
    direction: SortDirection = SortDirection.ASC

    model_config = {"frozen": True}

    # The field named "property" shadows the builtin in this class body.
    @builtins.property
    def descending(self) -> bool:
        return self.direction == SortDirection.DESC


class Pageable(BaseModel):
    """Requested page: number, size and sort orders."""

    page: int = Field(0, ge=0, description="0-based page number")
    size: int = Field(20, ge=1, description="Page size")
    sort: List[SortOrder] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def offset(self) -> int:
        """Number of elements to skip."""
        return self.page * self.size


class Page(BaseModel, Generic[EntityT]):
    """A bounded, ordered slice of entities with total-count metadata."""

    content: List[EntityT] = Field(default_factory=list)
    pageable: Pageable
    total_elements: int = Field(0, ge=0)

    @property
    def number(self) -> int:
        return self.pageable.page

    @property
    def size(self) -> int:
        return self.pageable.size

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.pageable.size)

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages - 1

    @property
    def has_previous(self) -> bool:
        return self.number > 0


def parse_sort(values: Optional[List[str]]) -> List[SortOrder]:
    """
    Parse ``sort`` query values into sort orders.

    Accepted forms per value: ``prop``, ``prop,asc``, ``prop,desc`` and
    ``a,b,desc`` (all listed properties share the trailing direction).
    Blank segments are ignored.

    Args:
        values: Raw ``sort`` query parameter values

    Returns:
        Sort orders in request order
    """
    orders: List[SortOrder] = []

    for value in values or []:
        parts = [part.strip() for part in value.split(",") if part.strip()]
        if not parts:
            continue

        direction = SortDirection.ASC
        if parts[-1].lower() in (SortDirection.ASC.value, SortDirection.DESC.value):
            direction = SortDirection(parts[-1].lower())
            parts = parts[:-1]

        orders.extend(SortOrder(property=part, direction=direction) for part in parts)

    return orders
