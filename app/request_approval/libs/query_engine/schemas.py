from typing import Any, Generic, Self, TypeVar

from pydantic import BaseModel, Field, model_validator

from .enums import SortDirection

T = TypeVar("T")


def parse_sort_fields(order_by: list[str]) -> list[tuple[str, SortDirection]]:
    """Turn `-submitted_at` into `("submitted_at", DESC)` and `id` into `("id", ASC)`"""
    return [
        (field.removeprefix("-"), SortDirection.DESC if field.startswith("-") else SortDirection.ASC)
        for field in order_by
        if field.removeprefix("-")
    ]


class OffsetPaginationRequest(BaseModel):
    """
    Which slice of the table to return, and how to order and filter it.

    Either `page` or `offset` may be given; after validation both are set
    and agree with each other.
    """

    limit: int = Field(default=10, ge=1, le=100, description="Rows per page")
    offset: int = Field(default=0, ge=0, description="Rows to skip")
    page: int | None = Field(default=None, ge=1, description="1-based page number, takes precedence over offset")
    order_by: list[str] = Field(default_factory=list, description="Columns to sort by, `-` prefix for descending")
    filters: dict[str, Any] = Field(default_factory=dict, description="`field__operator` expressions")

    @model_validator(mode="after")
    def _resolve_page_and_offset(self) -> Self:
        if self.page is None:
            self.page = self.offset // self.limit + 1
        else:
            self.offset = (self.page - 1) * self.limit
        return self

    @property
    def sort_fields(self) -> list[tuple[str, SortDirection]]:
        return parse_sort_fields(self.order_by)


class OffsetPaginationResponse(BaseModel, Generic[T]):
    """One page of rows plus the numbers needed to render a pager"""

    items: list[T]
    total_count: int
    page: int
    per_page: int
    total_pages: int
    has_next: bool
    has_previous: bool
