from typing import Any, Iterable, Sequence, TypeVar

from ..enums import SortDirection
from ..exceptions import InvalidFieldError

T = TypeVar("T")


class OrderingProvider:
    """Deterministic multi-key ordering of in-memory items"""

    def __init__(self, fields: Iterable[str]):
        self.fields = tuple(fields)

    def validate(self, sort_fields: Sequence[tuple[str, SortDirection]]) -> None:
        invalid = [name for name, _ in sort_fields if name not in self.fields]
        if invalid:
            raise InvalidFieldError(invalid_fields=invalid, valid_fields=list(self.fields))

    def sort(
        self,
        items: Iterable[T],
        sort_fields: Sequence[tuple[str, SortDirection]],
        tie_breakers: Sequence[tuple[str, SortDirection]] = (),
    ) -> list[T]:
        """
        Sort items by `sort_fields`, then by `tie_breakers`.

        Keys are applied least significant first on a stable sort, so each
        key keeps its own direction. Missing (None or empty) values always
        sort after present ones, whatever the direction.

        Args:
            items: Items to order
            sort_fields: Primary (field, direction) pairs
            tie_breakers: Secondary (field, direction) pairs applied when primary keys are equal

        Returns:
            A new sorted list
        """
        self.validate(sort_fields)

        ordered = list(items)
        for name, direction in reversed([*sort_fields, *tie_breakers]):
            present = [item for item in ordered if not self._is_missing(getattr(item, name, None))]
            missing = [item for item in ordered if self._is_missing(getattr(item, name, None))]
            present.sort(key=lambda item: self._sort_value(getattr(item, name)), reverse=direction == SortDirection.DESC)
            ordered = present + missing

        return ordered

    @staticmethod
    def _is_missing(value: Any) -> bool:
        return value is None or value == ""

    @staticmethod
    def _sort_value(value: Any) -> Any:
        if isinstance(value, str):
            return value.casefold()
        return value
