from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from request_approval.core.exceptions import errors
from request_approval.core.helpers.formatting import utcnow
from request_approval.core.logging import get_logger
from request_approval.domain.enums import ProductRequestStatus
from request_approval.domain.schemas import EDITABLE_FIELDS, ProductRequest

logger = get_logger(__name__)


class RequestStore:
    """
    In-memory, insertion-ordered collection of product requests.

    The store is the single owner of request records. Everything else reads
    through `get`/`snapshot` and changes records through `apply_decision` and
    `apply_edit`. It also tracks which requests have a decision in flight.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._records: dict[str, ProductRequest] = {}
        self._in_flight: set[str] = set()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._records

    def load(self, requests: Iterable[ProductRequest]) -> None:
        """
        Replace the store contents with `requests`, keeping their order.

        Args:
            requests (Iterable[ProductRequest]): The records to load

        Raises:
            errors.DuplicateIdError: If two records share an id. The store is left unchanged.
        """
        records: dict[str, ProductRequest] = {}
        for request in requests:
            if request.id in records:
                logger.warning(
                    f"Refusing to load duplicate product request id {request.id}",
                    extra={"event_type": "request_store_duplicate_id", "product_request_id": request.id},
                )
                raise errors.DuplicateIdError(
                    detail=f"Product request id '{request.id}' appears more than once.",
                    request_id=request.id,
                )
            records[request.id] = request

        self._records = records
        self._in_flight = {request_id for request_id in self._in_flight if request_id in records}

        logger.info(
            f"Loaded {len(records)} product requests",
            extra={"event_type": "request_store_loaded", "count": len(records)},
        )

    def get(self, request_id: str) -> ProductRequest:
        """
        Get a request by id.

        Raises:
            errors.NotFoundError: If no request has this id
        """
        record = self._records.get(request_id)
        if record is None:
            raise errors.NotFoundError(
                detail=f"Product request '{request_id}' was not found.",
                request_id=request_id,
            )
        return record

    def snapshot(self) -> tuple[ProductRequest, ...]:
        return tuple(self._records.values())

    def _get_pending(self, request_id: str) -> ProductRequest:
        record = self.get(request_id)
        if not record.is_pending:
            raise errors.InvalidTransitionError(
                detail=f"Product request '{request_id}' is already {record.status.value}.",
                request_id=request_id,
            )
        return record

    def apply_decision(
        self, request_id: str, decision: ProductRequestStatus, note: str | None = None
    ) -> ProductRequest:
        """
        Move a pending request to `approved` or `rejected`.

        Args:
            request_id (str): The request to decide
            decision (ProductRequestStatus): The terminal status to apply
            note (str | None): Optional reviewer note

        Returns:
            ProductRequest: The updated record

        Raises:
            errors.NotFoundError: If no request has this id
            errors.InvalidTransitionError: If the request is not pending or `decision` is not terminal
        """
        record = self._get_pending(request_id)
        if not ProductRequestStatus(decision).is_terminal:
            raise errors.InvalidTransitionError(
                detail=f"Cannot move product request '{request_id}' to {decision}.",
                request_id=request_id,
            )

        updated = record.model_copy(
            update={"status": ProductRequestStatus(decision), "decided_at": self._clock(), "decision_note": note}
        )
        self._records[request_id] = updated

        logger.info(
            f"Product request {request_id} {updated.status.value}",
            extra={
                "event_type": "request_decision_applied",
                "product_request_id": request_id,
                "decision": updated.status.value,
            },
        )
        return updated

    def apply_edit(self, request_id: str, changes: Mapping[str, Any]) -> ProductRequest:
        """
        Update catalogue fields of a pending request.

        Raises:
            errors.NotFoundError: If no request has this id
            errors.InvalidTransitionError: If the request is not pending
            errors.ValidationError: If a field is not editable
        """
        record = self._get_pending(request_id)
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise errors.ValidationError(
                detail=f"Fields cannot be edited: {', '.join(unknown)}.",
                request_id=request_id,
            )

        updated = ProductRequest.model_validate({**record.model_dump(exclude={"requester_name"}), **changes})
        self._records[request_id] = updated

        logger.debug(
            f"Product request {request_id} edited",
            extra={"event_type": "request_edit_applied", "product_request_id": request_id, "fields": sorted(changes)},
        )
        return updated

    def mark_in_flight(self, request_id: str) -> None:
        """
        Flag a request as having a decision in flight.

        Raises:
            errors.ConflictError: If a decision is already in flight for it
        """
        if request_id in self._in_flight:
            raise errors.ConflictError(
                detail=f"A decision for product request '{request_id}' is already in progress.",
                request_id=request_id,
            )
        self._in_flight.add(request_id)

    def clear_in_flight(self, request_id: str) -> None:
        self._in_flight.discard(request_id)

    def is_in_flight(self, request_id: str) -> bool:
        return request_id in self._in_flight

    def in_flight_ids(self) -> frozenset[str]:
        return frozenset(self._in_flight)
