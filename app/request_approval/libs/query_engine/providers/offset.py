import math
from typing import Sequence, TypeVar

from ..schemas import OffsetPaginationRequest, OffsetPaginationResponse

T = TypeVar("T")


class OffsetProvider:
    """Offset/limit pagination over an already filtered and ordered sequence"""

    def paginate(self, items: Sequence[T], pagination: OffsetPaginationRequest) -> OffsetPaginationResponse[T]:
        """
        Slice one page out of `items`.

        Args:
            items: The full ordered sequence
            pagination: Pagination request parameters

        Returns:
            OffsetPaginationResponse with the page slice and metadata
        """
        offset = pagination.offset
        total_count = len(items)
        total_pages = max(1, math.ceil(total_count / pagination.limit))

        return OffsetPaginationResponse[T](
            items=list(items[offset : offset + pagination.limit]),
            total_count=total_count,
            page=pagination.page or 1,
            per_page=pagination.limit,
            total_pages=total_pages,
            has_next=offset + pagination.limit < total_count,
            has_previous=offset > 0,
        )
