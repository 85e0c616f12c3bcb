from __future__ import annotations

import asyncio
from decimal import Decimal

from request_approval.core.config import settings
from request_approval.core.exceptions import errors
from request_approval.core.helpers.pricing import calculate_client_price, reprice
from request_approval.core.helpers.validation import (
    validate_decision,
    validate_edit_changes,
    validate_note,
    validate_reference_values,
    validate_required_fields,
)
from request_approval.core.logging import get_logger
from request_approval.domain.enums import IntentKind, ProductRequestStatus
from request_approval.domain.schemas import (
    DecisionIntent,
    DecisionPayload,
    ProductPayload,
    ProductRequest,
    ReferenceLists,
)
from request_approval.domain.services.request_store import RequestStore
from request_approval.libs.gateway import DecisionSink, GatewayConflictError, GatewayError, GatewayTimeoutError

logger = get_logger(__name__)


def price_group_for(record: ProductRequest) -> Decimal | None:
    """The trade price group of the created product: the client price, computed when it was left empty."""
    if record.client_price is not None:
        return record.client_price
    if record.purchase_price is None or record.client_mup is None:
        return None
    return calculate_client_price(record.purchase_price, record.client_mup)


def build_product_payload(record: ProductRequest) -> ProductPayload:
    """The product to create in the catalogue when `record` is approved."""
    zero = Decimal("0")
    return ProductPayload(
        sku=record.sku,
        model=record.product_name,
        brand=record.brand,
        primary_supplier=record.primary_supplier,
        default_purchase_price=record.purchase_price or zero,
        category=record.category,
        rrp=record.rrp or zero,
        client_mup=record.client_mup or zero,
        retail_mup=record.retail_mup or zero,
        price_group=price_group_for(record) or zero,
        requestor_email=record.requester_email,
        requestor_firstname=record.requester_first_name,
        requestor_lastname=record.requester_last_name,
    )


class ActionDispatcher:
    """
    Applies intents emitted by the table to the request store.

    Decisions are sent to the decision sink first and only written to the
    store once the sink has accepted them. At most one decision per request
    can be in flight; a second one is refused with a ConflictError rather
    than queued. Every failure leaves the store as it was. Once the
    catalogue reference lists are known, brand, supplier and category edits
    are checked against them.
    """

    def __init__(self, store: RequestStore, sink: DecisionSink, timeout: float | None = None):
        self.store = store
        self.sink = sink
        self.timeout = timeout if timeout is not None else settings.DECISION_TIMEOUT_SECONDS
        self.reference: ReferenceLists | None = None

    async def handle(self, intent: DecisionIntent) -> ProductRequest:
        """
        Apply one intent.

        Args:
            intent (DecisionIntent): The user action to apply

        Returns:
            ProductRequest: The updated record

        Raises:
            errors.NotFoundError: If the request does not exist
            errors.InvalidTransitionError: If the request is no longer pending
            errors.ValidationError: If the intent is malformed
            errors.ConflictError: If a decision is already in flight or the sink reports a conflict
            errors.DecisionTimeoutError: If the sink does not answer in time
            errors.DecisionSinkError: If the sink fails
        """
        if intent.kind == IntentKind.EDIT:
            return self._handle_edit(intent)
        return await self._handle_decision(intent)

    def _check_pending(self, record: ProductRequest) -> None:
        if not record.is_pending:
            raise errors.InvalidTransitionError(
                detail=f"Product request '{record.id}' is already {record.status.value}.",
                request_id=record.id,
            )

    def _handle_edit(self, intent: DecisionIntent) -> ProductRequest:
        record = self.store.get(intent.request_id)
        self._check_pending(record)
        if self.store.is_in_flight(record.id):
            raise errors.ConflictError(
                detail=f"Product request '{record.id}' cannot be edited while a decision is in progress.",
                request_id=record.id,
            )

        changes = validate_edit_changes(intent.changes, request_id=record.id)
        changes = validate_reference_values(changes, self.reference, request_id=record.id)
        changes.update(reprice(record.model_dump(), changes))
        return self.store.apply_edit(record.id, changes)

    async def _handle_decision(self, intent: DecisionIntent) -> ProductRequest:
        record = self.store.get(intent.request_id)
        decision = validate_decision(intent.kind, request_id=record.id)
        note = validate_note(intent.note, request_id=record.id)
        self._check_pending(record)
        if decision == ProductRequestStatus.APPROVED:
            validate_required_fields(record)

        payload = DecisionPayload(
            id=record.id,
            decision=decision,
            note=note,
            product=build_product_payload(record) if decision == ProductRequestStatus.APPROVED else None,
        )

        self.store.mark_in_flight(record.id)
        try:
            await self._submit(payload)
            return self.store.apply_decision(record.id, decision, note)
        finally:
            self.store.clear_in_flight(record.id)

    async def _submit(self, payload: DecisionPayload) -> None:
        extra = {"product_request_id": payload.id, "decision": payload.decision.value}
        try:
            await asyncio.wait_for(self.sink.submit_decision(payload), timeout=self.timeout)
        except (asyncio.TimeoutError, GatewayTimeoutError) as e:
            logger.warning(
                f"Decision for product request {payload.id} timed out after {self.timeout}s",
                extra={**extra, "event_type": "decision_timeout"},
            )
            raise errors.DecisionTimeoutError(request_id=payload.id) from e
        except GatewayConflictError as e:
            logger.warning(
                f"Decision sink reported a conflict for product request {payload.id}: {e.message}",
                extra={**extra, "event_type": "decision_conflict"},
            )
            raise errors.ConflictError(
                detail=f"Product request '{payload.id}' was already decided elsewhere.",
                request_id=payload.id,
            ) from e
        except GatewayError as e:
            logger.error(
                f"Decision sink failed for product request {payload.id}: {e.message}",
                extra={**extra, "event_type": "decision_sink_error"},
                exc_info=True,
            )
            raise errors.DecisionSinkError(request_id=payload.id) from e

        logger.info(
            f"Decision for product request {payload.id} accepted by sink",
            extra={**extra, "event_type": "decision_submitted"},
        )
