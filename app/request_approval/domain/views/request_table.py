from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping, Sequence

from request_approval.core.config import settings
from request_approval.core.exceptions import errors
from request_approval.core.helpers.formatting import format_price, format_timestamp
from request_approval.core.helpers.pricing import derive_markup
from request_approval.core.logging import get_logger
from request_approval.domain.enums import IntentKind
from request_approval.domain.schemas import EMPTY_TABLE_MESSAGE, DecisionIntent, ProductRequest, TablePage, TableRow
from request_approval.libs.query_engine import (
    FiltersProvider,
    OffsetPaginationRequest,
    OffsetProvider,
    OrderingProvider,
    SortDirection,
)

logger = get_logger(__name__)

Predicate = Callable[[ProductRequest], bool]

FILTER_FIELD_TYPES: dict[str, Any] = {
    **{name: field.annotation for name, field in ProductRequest.model_fields.items()},
    "requester_name": str,
}
FILTERABLE_FIELDS: tuple[str, ...] = tuple(FILTER_FIELD_TYPES)

# Applied after the selected sort key so equal keys always come out in the same order
TIE_BREAKERS: tuple[tuple[str, SortDirection], ...] = (
    ("submitted_at", SortDirection.ASC),
    ("id", SortDirection.ASC),
)


class TableView:
    """
    Renders request snapshots into display rows and turns user actions into intents.

    The view only holds its own state (sort, filter, selection, row messages).
    It never reads from or writes to the store: callers hand it a snapshot,
    and user actions leave it as `DecisionIntent` values through `emit`.
    """

    def __init__(self, page_size: int | None = None):
        self.page_size = page_size or settings.TABLE_PAGE_SIZE
        self.sort_field: str | None = None
        self.sort_direction: SortDirection = SortDirection.ASC
        self._predicate: Predicate | None = None
        self._selected: set[str] = set()
        self._messages: dict[str, str] = {}
        self._filters = FiltersProvider(FILTER_FIELD_TYPES)
        self._ordering = OrderingProvider(ProductRequest.SORTABLE_FIELDS)
        self._pagination = OffsetProvider()

    def set_sort(self, field: str | None, direction: SortDirection | str = SortDirection.ASC) -> None:
        """
        Sort rows by `field`; None restores the load order.

        Raises:
            InvalidFieldError: If the field is not sortable
        """
        direction = SortDirection(direction)
        if field is not None:
            self._ordering.validate([(field, direction)])
        self.sort_field = field
        self.sort_direction = direction

    def set_filter(self, predicate: Predicate | None) -> None:
        self._predicate = predicate

    def set_filters(self, filters: Mapping[str, Any] | None) -> None:
        """
        Filter rows with `field__operator` expressions, e.g. `{"brand__ilike": "acme"}`.

        Raises:
            InvalidFieldError: If a filter names an unknown field
            InvalidFilterError: If an operator or value is invalid
        """
        self._predicate = self._filters.build_predicate(dict(filters or {}))

    def apply_query(
        self,
        sort: tuple[str, SortDirection | str] | None = None,
        filters: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Change sort and filter together. When either is invalid neither is applied.

        A None `sort` or `filters` keeps the current one.
        """
        predicate = self._filters.build_predicate(dict(filters)) if filters is not None else self._predicate
        if sort is not None:
            self.set_sort(*sort)
        self._predicate = predicate

    def toggle_select(self, request_id: str) -> bool:
        """Flip the selection of a row and return whether it is now selected."""
        if request_id in self._selected:
            self._selected.discard(request_id)
            return False
        self._selected.add(request_id)
        return True

    def select_all(self, checked: bool, request_ids: Iterable[str]) -> None:
        if checked:
            self._selected.update(request_ids)
        else:
            self._selected.difference_update(request_ids)

    def clear_selection(self) -> None:
        self._selected.clear()

    @property
    def selected_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    def retain(self, request_ids: Iterable[str]) -> None:
        """Forget selection and messages for rows that are gone."""
        keep = set(request_ids)
        self._selected &= keep
        self._messages = {request_id: message for request_id, message in self._messages.items() if request_id in keep}

    def report_error(self, request_id: str, message: str) -> None:
        self._messages[request_id] = message

    def clear_error(self, request_id: str) -> None:
        self._messages.pop(request_id, None)

    def visible(self, snapshot: Sequence[ProductRequest]) -> list[ProductRequest]:
        """The filtered and ordered records a render of `snapshot` would show."""
        records = list(snapshot)
        if self._predicate is not None:
            records = [record for record in records if self._predicate(record)]
        if self.sort_field is not None:
            records = self._ordering.sort(records, [(self.sort_field, self.sort_direction)], TIE_BREAKERS)
        return records

    def render(self, snapshot: Sequence[ProductRequest], in_flight: Iterable[str] = ()) -> list[TableRow]:
        """
        Render a snapshot into display rows.

        Args:
            snapshot: Records in store order
            in_flight: Ids with a decision awaiting the sink

        Returns:
            list[TableRow]: Filtered, sorted and formatted rows
        """
        in_flight = set(in_flight)
        return [self._to_row(record, record.id in in_flight) for record in self.visible(snapshot)]

    def paginate(self, rows: Sequence[TableRow], page: int = 1) -> TablePage:
        result = self._pagination.paginate(rows, OffsetPaginationRequest(limit=self.page_size, page=max(page, 1)))
        return TablePage(
            rows=result.items,
            page=result.page,
            per_page=result.per_page,
            total_count=result.total_count,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_previous=result.has_previous,
            empty_message=EMPTY_TABLE_MESSAGE if result.total_count == 0 else None,
        )

    def emit(
        self,
        kind: IntentKind | str,
        request_id: str,
        note: str | None = None,
        changes: Mapping[str, Any] | None = None,
    ) -> DecisionIntent:
        """
        Build the intent for a user action on one row.

        Raises:
            errors.ValidationError: If `kind` is not a known action
        """
        try:
            kind = IntentKind(kind)
        except ValueError:
            raise errors.ValidationError(
                detail=f"'{kind}' is not a known action. Use approve, reject or edit.",
                request_id=request_id,
            ) from None

        logger.debug(
            f"Emitting {kind.value} intent for product request {request_id}",
            extra={"event_type": "table_intent_emitted", "product_request_id": request_id, "kind": kind.value},
        )
        return DecisionIntent(kind=kind, request_id=request_id, note=note, changes=dict(changes or {}))

    def _to_row(self, record: ProductRequest, in_flight: bool) -> TableRow:
        retail_mup = record.retail_mup
        if retail_mup is None and record.rrp is not None and record.purchase_price is not None:
            retail_mup = derive_markup(record.rrp, record.purchase_price)

        return TableRow(
            id=record.id,
            requester_name=record.requester_name,
            requester_email=record.requester_email,
            sku=record.sku,
            product_name=record.product_name,
            brand=record.brand,
            primary_supplier=record.primary_supplier,
            category=record.category,
            purchase_price=format_price(record.purchase_price),
            client_mup=format_price(record.client_mup),
            retail_mup=format_price(retail_mup),
            client_price=format_price(record.client_price),
            rrp=format_price(record.rrp),
            status=record.status,
            submitted_at=format_timestamp(record.submitted_at),
            decided_at=format_timestamp(record.decided_at),
            decision_note=record.decision_note or "",
            selected=record.id in self._selected,
            in_flight=in_flight,
            actions_enabled=record.is_pending and not in_flight,
            error=self._messages.get(record.id),
        )
