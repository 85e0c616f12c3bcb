from __future__ import annotations

import asyncio
from typing import Any, Iterable, Mapping

from request_approval.core.exceptions import errors
from request_approval.core.helpers.validation import find_duplicate_skus, is_blank
from request_approval.core.logging import get_logger
from request_approval.domain.enums import IntentKind
from request_approval.domain.schemas import (
    EDITABLE_FIELDS,
    DecisionIntent,
    IntentOutcome,
    MarkupSearchResult,
    ProductRequest,
    ReferenceLists,
    TablePage,
    TableRow,
)
from request_approval.domain.services.action_dispatcher import ActionDispatcher
from request_approval.domain.services.markup_service import MarkupService
from request_approval.domain.services.request_store import RequestStore
from request_approval.domain.views.request_table import TableView
from request_approval.libs.gateway import DecisionSink, GatewayError, RequestSource

logger = get_logger(__name__)


def existing_sku_error(record: ProductRequest) -> errors.ValidationError:
    sku = record.sku.strip()
    return errors.ValidationError(
        detail=f"SKU '{sku}' already exists in the catalogue.",
        request_id=record.id,
        existing_sku=sku,
    )


class ApprovalSession:
    """
    One reviewer's approval screen: the store, the table and the dispatcher
    wired to a request source and a decision sink.

    Errors raised while applying an intent are shown next to the affected row
    and returned as an `IntentOutcome`; they never end the session. Approvals
    are refused for SKUs the catalogue already has.
    """

    def __init__(
        self,
        source: RequestSource,
        sink: DecisionSink,
        store: RequestStore | None = None,
        view: TableView | None = None,
        timeout: float | None = None,
    ):
        self.source = source
        self.store = store or RequestStore()
        self.view = view or TableView()
        self.dispatcher = ActionDispatcher(self.store, sink, timeout=timeout)
        self.markups = MarkupService(source)
        self.reference: ReferenceLists | None = None

    async def refresh(self) -> int:
        """
        Reload pending requests from the source.

        Returns:
            int: Number of requests loaded

        Raises:
            errors.RequestSourceError: If the source cannot be read
            errors.DuplicateIdError: If the source returned the same id twice
        """
        try:
            requests = await self.source.fetch_requests()
        except GatewayError as e:
            logger.error(f"Failed to fetch product requests: {e.message}", extra={"event_type": "request_fetch_failed"})
            raise errors.RequestSourceError() from e

        self.store.load(requests)
        self.view.retain(record.id for record in self.store.snapshot())
        return len(self.store)

    async def load_reference_lists(self) -> ReferenceLists:
        """
        Fetch the catalogue brands, suppliers and categories.

        Once loaded, they are served to the table and edits are checked
        against them.

        Raises:
            errors.RequestSourceError: If the catalogue cannot be read
        """
        try:
            reference = await self.source.fetch_reference_lists()
        except GatewayError as e:
            logger.error(f"Failed to fetch reference lists: {e.message}", extra={"event_type": "reference_fetch_failed"})
            raise errors.RequestSourceError(detail="Catalogue reference lists could not be loaded.") from e

        self.reference = reference
        self.dispatcher.reference = reference
        logger.info(
            "Loaded catalogue reference lists",
            extra={
                "event_type": "reference_lists_loaded",
                "brands": len(reference.brands),
                "suppliers": len(reference.suppliers),
                "categories": len(reference.categories),
            },
        )
        return reference

    async def _existing_skus(self, records: Iterable[ProductRequest]) -> set[str]:
        skus = {record.sku.strip() for record in records if record.sku.strip()}
        if not skus:
            return set()
        try:
            return await self.source.fetch_existing_skus(sorted(skus))
        except GatewayError as e:
            logger.error(f"Failed to check SKUs: {e.message}", extra={"event_type": "sku_check_failed"})
            raise errors.RequestSourceError(detail="SKUs could not be checked against the catalogue.") from e

    async def _check_catalogue(self, intent: DecisionIntent) -> None:
        if intent.kind != IntentKind.APPROVE:
            return
        record = self.store.get(intent.request_id)
        if not record.is_pending:
            return
        if await self._existing_skus([record]):
            raise existing_sku_error(record)

    def _fail(self, request_id: str, error: errors.ServiceError, extras: dict[str, Any]) -> IntentOutcome:
        self.view.report_error(request_id, error.detail)
        return IntentOutcome(
            request_id=request_id,
            ok=False,
            error_type=error.type_,
            message=error.detail,
            extras=extras,
        )

    def rows(self) -> list[TableRow]:
        return self.view.render(self.store.snapshot(), self.store.in_flight_ids())

    def view_page(self, page: int | None = None) -> TablePage:
        return self.view.paginate(self.rows(), page or 1)

    async def submit(self, intent: DecisionIntent, check_catalogue: bool = True) -> IntentOutcome:
        """
        Apply an intent and report the result instead of raising.

        Args:
            intent (DecisionIntent): The intent emitted by the table

        Returns:
            IntentOutcome: The updated record on success, the error otherwise
        """
        try:
            if check_catalogue:
                await self._check_catalogue(intent)
            record = await self.dispatcher.handle(intent)
        except errors.ServiceError as se:
            logger.info(
                f"Intent {intent.kind.value} for product request {intent.request_id} failed: {se.detail}",
                extra={
                    "event_type": "intent_failed",
                    "product_request_id": intent.request_id,
                    "error_type": se.type_,
                },
            )
            return self._fail(intent.request_id, se, dict(se.extras))

        self.view.clear_error(intent.request_id)
        if intent.kind != IntentKind.EDIT and intent.request_id in self.view.selected_ids:
            self.view.toggle_select(intent.request_id)
        return IntentOutcome(request_id=intent.request_id, ok=True, record=record)

    async def act(
        self,
        kind: IntentKind | str,
        request_id: str,
        note: str | None = None,
        changes: Mapping[str, Any] | None = None,
        check_catalogue: bool = True,
    ) -> IntentOutcome:
        """Emit an intent for one row through the table and submit it."""
        try:
            intent = self.view.emit(kind, request_id, note=note, changes=changes)
        except errors.ServiceError as se:
            return self._fail(request_id, se, {})
        return await self.submit(intent, check_catalogue=check_catalogue)

    async def submit_selected(self, kind: IntentKind | str, note: str | None = None) -> list[IntentOutcome]:
        """
        Apply the same decision to every selected row.

        Rows whose SKU is shared with another selected row are not submitted
        and fail with a validation error. Approvals are checked against the
        catalogue in one call, and rows whose SKU already exists fail the same
        way. The others are dispatched concurrently; each one succeeds or
        fails on its own.

        Returns:
            list[IntentOutcome]: One outcome per selected row, in table order
        """
        selected = self.view.selected_ids
        records = [record for record in self.store.snapshot() if record.id in selected]
        duplicates = find_duplicate_skus(records)
        duplicate_ids = {request_id: sku for sku, ids in duplicates.items() for request_id in ids}

        existing: set[str] = set()
        source_error: errors.RequestSourceError | None = None
        if kind == IntentKind.APPROVE:
            candidates = [record for record in records if record.id not in duplicate_ids and record.is_pending]
            try:
                existing = await self._existing_skus(candidates)
            except errors.RequestSourceError as e:
                source_error = e
        by_id = {record.id: record for record in records}

        async def run(request_id: str) -> IntentOutcome:
            if request_id in duplicate_ids:
                sku = duplicate_ids[request_id]
                error = errors.ValidationError(
                    detail=f"SKU '{sku}' is used by more than one selected request.",
                    request_id=request_id,
                    duplicate_sku=sku,
                )
                return self._fail(request_id, error, {"duplicate_sku": sku})
            record = by_id[request_id]
            if record.is_pending and source_error is not None:
                return self._fail(request_id, source_error, {})
            if record.is_pending and record.sku.strip() in existing:
                return self._fail(request_id, existing_sku_error(record), {"existing_sku": record.sku.strip()})
            return await self.act(kind, request_id, note=note, check_catalogue=False)

        outcomes = await asyncio.gather(*(run(record.id) for record in records))

        logger.info(
            f"Bulk {kind} over {len(outcomes)} requests: {sum(o.ok for o in outcomes)} succeeded",
            extra={
                "event_type": "bulk_decision",
                "count": len(outcomes),
                "duplicates": len(duplicate_ids),
                "existing": len(existing),
            },
        )
        return list(outcomes)

    async def apply_field_to_all(self, field: str) -> list[IntentOutcome]:
        """
        Copy `field` from the first visible row to every other visible pending row.

        Raises:
            errors.ValidationError: If the field is not editable or the first row has no value
        """
        if field not in EDITABLE_FIELDS:
            raise errors.ValidationError(detail=f"'{field}' cannot be copied to other requests.")

        records = [record for record in self.view.visible(self.store.snapshot()) if record.is_pending]
        if not records:
            return []

        first, others = records[0], records[1:]
        value = getattr(first, field)
        if is_blank(value):
            raise errors.ValidationError(
                detail=f"The first request has no {field} to copy.",
                request_id=first.id,
            )

        outcomes = []
        for record in others:
            outcomes.append(await self.act(IntentKind.EDIT, record.id, changes={field: value}))
        return outcomes

    async def search_markups(self) -> MarkupSearchResult:
        return await self.markups.search(self.store.snapshot())
