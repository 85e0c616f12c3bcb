from datetime import datetime, timezone
from enum import Enum
from functools import cache
from typing import Any, Callable, Mapping

from pydantic import TypeAdapter, ValidationError

from ..exceptions import InvalidFieldError, InvalidFilterError

Predicate = Callable[[Any], bool]

LOGICAL_OPERATORS = ("or", "and", "not")
OPERATORS = (
    "eq",
    "ne",
    "lt",
    "le",
    "lte",
    "gt",
    "ge",
    "gte",
    "like",
    "ilike",
    "startswith",
    "endswith",
    "in",
    "notin",
    "is_null",
    "is_not_null",
)


TEXT_OPERATORS = ("like", "ilike", "startswith", "endswith")
NULL_OPERATORS = ("is_null", "is_not_null")


@cache
def _adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


class FiltersProvider:
    """
    Builds in-memory predicates from `field__operator` filter expressions.

    Values are converted to the field's type when the predicate is built, so a
    value that does not fit the field is refused up front instead of failing
    later while rows are being checked.
    """

    def __init__(self, field_types: Mapping[str, Any]):
        self.field_types = dict(field_types)

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self.field_types)

    def build_predicate(self, filters: dict[str, Any]) -> Predicate | None:
        """
        Build a single predicate combining every filter with AND.

        Supports patterns like:
        - "status": "pending" (equality)
        - "brand__ilike": "acme"
        - "brand__or__primary_supplier__ilike": "acme"
        - "status__not__eq": "rejected"

        Args:
            filters: Dictionary of filter conditions

        Returns:
            A predicate over items, or None when there is nothing to filter on

        Raises:
            InvalidFieldError: When a filter references an unknown field
            InvalidFilterError: When an operator is unknown or a value does not fit the field
        """
        if not filters:
            return None

        conditions = [self._parse_filter_condition(key, value) for key, value in filters.items()]

        def predicate(item: Any) -> bool:
            return all(condition(item) for condition in conditions)

        return predicate

    def _parse_filter_condition(self, filter_key: str, value: Any) -> Predicate:
        """Parse a single filter condition"""
        parts = filter_key.split("__")

        if len(parts) == 1:
            return self._build_simple_condition(parts[0], "eq", value)

        operator = parts[-1]
        if operator not in OPERATORS:
            raise InvalidFilterError(detail=f"Unsupported filter operator '{operator}' in '{filter_key}'.")

        field_parts = [part for part in parts[:-1] if part not in LOGICAL_OPERATORS]
        logical_ops = [part for part in parts[:-1] if part in LOGICAL_OPERATORS]

        if not field_parts:
            raise InvalidFilterError(detail=f"Filter '{filter_key}' does not name a field.")

        conditions = [self._build_simple_condition(field, operator, value) for field in field_parts]

        if "or" in logical_ops:

            def combined(item: Any) -> bool:
                return any(condition(item) for condition in conditions)

        else:

            def combined(item: Any) -> bool:
                return all(condition(item) for condition in conditions)

        if "not" in logical_ops:
            return lambda item: not combined(item)

        return combined

    def _build_simple_condition(self, field: str, operator: str, value: Any) -> Predicate:
        """Build a condition on a single field"""
        if field not in self.field_types:
            raise InvalidFieldError(invalid_fields=[field], valid_fields=list(self.field_types))

        if operator in NULL_OPERATORS:
            expected: Any = None
        elif operator in TEXT_OPERATORS:
            expected = str(value)
        elif operator in ("in", "notin"):
            values = value.split(",") if isinstance(value, str) else list(value)
            expected = [self._coerce(field, v) for v in values]
        else:
            expected = self._coerce(field, value)

        def condition(item: Any) -> bool:
            return self._apply_operator(getattr(item, field, None), operator, expected)

        return condition

    def _coerce(self, field: str, value: Any) -> Any:
        """Convert a raw (usually query string) value to the declared type of `field`"""
        if value is None:
            return None
        try:
            coerced = _adapter(self.field_types[field]).validate_python(value)
        except ValidationError as e:
            raise InvalidFilterError(
                detail=f"Invalid value '{value}' for filter on '{field}': {e.errors()[0]['msg']}"
            ) from e
        # Timestamps without an offset are read as UTC
        if isinstance(coerced, datetime) and coerced.tzinfo is None:
            coerced = coerced.replace(tzinfo=timezone.utc)
        return coerced

    def _apply_operator(self, actual: Any, operator: str, expected: Any) -> bool:
        """Apply the specified operator to an attribute value"""
        if operator == "is_null":
            return actual is None or actual == ""
        if operator == "is_not_null":
            return actual is not None and actual != ""

        if operator in ("in", "notin"):
            found = actual in expected
            return found if operator == "in" else not found

        if operator in TEXT_OPERATORS:
            text = self._as_text(actual)
            if operator == "ilike":
                return expected.casefold() in text.casefold()
            if operator == "startswith":
                return text.startswith(expected)
            if operator == "endswith":
                return text.endswith(expected)
            return expected in text

        if operator == "eq":
            return actual == expected
        if operator == "ne":
            return actual != expected

        if actual is None or expected is None:
            return False
        if operator == "lt":
            return actual < expected
        if operator in ("le", "lte"):
            return actual <= expected
        if operator == "gt":
            return actual > expected
        return actual >= expected

    @staticmethod
    def _as_text(actual: Any) -> str:
        if actual is None:
            return ""
        if isinstance(actual, Enum):
            return str(actual.value)
        return str(actual)
