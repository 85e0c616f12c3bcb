import asyncio
from typing import Iterable, Optional

from request_approval.core.helpers.formatting import utcnow
from request_approval.core.logging import get_logger
from request_approval.domain.enums import ProductRequestStatus
from request_approval.domain.schemas import DecisionPayload, Markup, ProductRequest, ReferenceLists
from request_approval.libs.gateway.exceptions import GatewayConflictError, GatewayError, GatewayTimeoutError
from request_approval.libs.gateway.interface import GatewayProvider
from request_approval.libs.gateway.schemas import MemoryGatewayConfiguration

logger = get_logger(__name__)


class MemoryGatewayProvider(GatewayProvider):
    """
    In-process request source and decision sink.

    Used for local development and tests. Requests decided through the sink
    drop out of `fetch_requests`, like the remote source which only returns
    open requests, and approved SKUs join the catalogue. Submissions can be paused to hold decisions in flight, and
    failures can be scripted per request id.
    """

    def __init__(
        self,
        config: MemoryGatewayConfiguration,
        requests: Optional[Iterable[ProductRequest]] = None,
        markups: Optional[Iterable[Markup]] = None,
        existing_skus: Optional[Iterable[str]] = None,
        reference: Optional[ReferenceLists] = None,
    ) -> None:
        super().__init__(config)
        self.config: MemoryGatewayConfiguration = config
        self._requests: dict[str, ProductRequest] = {}
        self._ordered: list[ProductRequest] = []
        self._markups: list[Markup] = list(markups or [])
        self.catalogue: set[str] = set(existing_skus or [])
        self.reference = reference or ReferenceLists()
        self._failures: dict[str, GatewayError] = {}
        self._gate = asyncio.Event()
        self._gate.set()
        self.submissions: list[DecisionPayload] = []
        self.seed(requests or [])

    def seed(self, requests: Iterable[ProductRequest]) -> None:
        """Replace the source contents. Later duplicates are kept so loads can be tested against them."""
        self._requests = {}
        self._ordered = list(requests)
        for request in self._ordered:
            self._requests.setdefault(request.id, request)

    def fail_next(self, request_id: str, error: GatewayError) -> None:
        """Make the next submission for `request_id` raise `error`."""
        self._failures[request_id] = error

    def pause(self) -> None:
        """Hold every submission until `resume` is called."""
        self._gate.clear()

    def resume(self) -> None:
        self._gate.set()

    async def fetch_requests(self) -> list[ProductRequest]:
        await self._simulate_latency()
        return [request for request in self._ordered if request.is_pending]

    async def fetch_markups(self) -> list[Markup]:
        await self._simulate_latency()
        return list(self._markups)

    async def fetch_existing_skus(self, skus: Iterable[str]) -> set[str]:
        await self._simulate_latency()
        return set(skus) & self.catalogue

    async def fetch_reference_lists(self) -> ReferenceLists:
        await self._simulate_latency()
        return self.reference.model_copy(deep=True)

    async def submit_decision(self, payload: DecisionPayload) -> None:
        await self._gate.wait()
        await self._simulate_latency()

        failure = self._failures.pop(payload.id, None)
        if failure is not None:
            raise failure

        current = self._requests.get(payload.id)
        if current is None:
            raise GatewayError(f"Unknown product request: {payload.id}")
        if not current.is_pending:
            raise GatewayConflictError(f"Product request {payload.id} is already {current.status.value}")

        decided = current.model_copy(
            update={"status": payload.decision, "decided_at": utcnow(), "decision_note": payload.note}
        )
        self._requests[payload.id] = decided
        self._ordered = [decided if request.id == payload.id else request for request in self._ordered]
        self.submissions.append(payload)
        if payload.decision == ProductRequestStatus.APPROVED and current.sku:
            self.catalogue.add(current.sku)

        logger.debug(
            "Decision recorded in memory gateway",
            extra={"event_type": "memory_decision_recorded", "product_request_id": payload.id},
        )

    async def _simulate_latency(self) -> None:
        if self.config.latency_seconds <= 0:
            return
        if self.config.latency_seconds >= self.config.timeout:
            await asyncio.sleep(self.config.timeout)
            raise GatewayTimeoutError()
        await asyncio.sleep(self.config.latency_seconds)

    async def health_check(self) -> bool:
        return True
