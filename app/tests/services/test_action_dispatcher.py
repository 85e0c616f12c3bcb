import asyncio
from decimal import Decimal

import pytest
from request_approval.core.exceptions import errors
from request_approval.domain.enums import IntentKind, ProductRequestStatus
from request_approval.domain.schemas import DecisionIntent
from request_approval.domain.services import ActionDispatcher, RequestStore
from request_approval.domain.services.action_dispatcher import build_product_payload
from request_approval.libs.gateway import (
    GatewayConflictError,
    GatewayError,
    MemoryGatewayConfiguration,
    MemoryGatewayProvider,
)


def approve(request_id: str, note: str | None = None) -> DecisionIntent:
    return DecisionIntent(kind=IntentKind.APPROVE, request_id=request_id, note=note)


def reject(request_id: str, note: str | None = None) -> DecisionIntent:
    return DecisionIntent(kind=IntentKind.REJECT, request_id=request_id, note=note)


def edit(request_id: str, **changes) -> DecisionIntent:
    return DecisionIntent(kind=IntentKind.EDIT, request_id=request_id, changes=changes)


class TestActionDispatcher:
    """Test cases for ActionDispatcher"""

    @pytest.fixture(autouse=True)
    def setup(self, make_request):
        self.requests = [make_request("1"), make_request("2", minutes=5)]
        self.gateway = MemoryGatewayProvider(MemoryGatewayConfiguration(), requests=self.requests)
        self.store = RequestStore()
        self.store.load(self.requests)
        self.dispatcher = ActionDispatcher(self.store, self.gateway, timeout=1.0)

    @pytest.mark.asyncio
    async def test_approve_then_reject_scenario(self):
        """Test approving one of two requests, then trying to reject it."""
        approved = await self.dispatcher.handle(approve("1"))

        assert approved.status == ProductRequestStatus.APPROVED
        assert approved.decided_at is not None
        assert self.store.get("2") == self.requests[1]

        with pytest.raises(errors.InvalidTransitionError):
            await self.dispatcher.handle(reject("1"))

        assert self.store.get("1") == approved
        assert len(self.gateway.submissions) == 1

    @pytest.mark.asyncio
    async def test_approval_sends_decision_and_product(self):
        """Test that approvals carry the product creation payload."""
        await self.dispatcher.handle(approve("1", note="  ship it  "))

        payload = self.gateway.submissions[0]
        assert payload.id == "1"
        assert payload.decision == ProductRequestStatus.APPROVED
        assert payload.note == "ship it"
        assert payload.product is not None

        product = payload.product.model_dump(mode="json", by_alias=True)
        assert product["SKU"] == "SKU-1"
        assert product["Model"] == "Widget 1"
        assert product["Brand"] == "Acme"
        assert product["requestor_email"] == "ada@example.com"
        assert payload.product.price_group == Decimal("13.20")

    def test_price_group_is_the_client_price(self, make_request):
        """Test that the price group is computed from purchase price and client markup when needed."""
        record = make_request("9", purchase_price=Decimal("10"), client_mup=Decimal("1.5"), client_price=None)

        assert build_product_payload(record).price_group == Decimal("16.50")

        priced = record.model_copy(update={"client_price": Decimal("17")})
        assert build_product_payload(priced).price_group == Decimal("17")

    @pytest.mark.asyncio
    async def test_rejection_sends_no_product(self):
        """Test that rejections only send id, decision and note."""
        record = await self.dispatcher.handle(reject("2", note="Duplicate of 1"))

        assert record.status == ProductRequestStatus.REJECTED
        assert record.decision_note == "Duplicate of 1"
        assert self.gateway.submissions[0].product is None

    @pytest.mark.asyncio
    async def test_concurrent_decisions_on_same_request(self):
        """Test that a second decision while the first is in flight is refused."""
        self.gateway.pause()
        first = asyncio.create_task(self.dispatcher.handle(approve("1")))
        await asyncio.sleep(0)

        assert self.store.is_in_flight("1")
        with pytest.raises(errors.ConflictError):
            await self.dispatcher.handle(reject("1"))

        self.gateway.resume()
        record = await first

        assert record.status == ProductRequestStatus.APPROVED
        assert self.store.get("1").status == ProductRequestStatus.APPROVED
        assert not self.store.is_in_flight("1")
        assert [payload.decision for payload in self.gateway.submissions] == [ProductRequestStatus.APPROVED]

    @pytest.mark.asyncio
    async def test_decisions_on_different_requests_run_together(self):
        """Test that in-flight tracking is per request."""
        self.gateway.pause()
        first = asyncio.create_task(self.dispatcher.handle(approve("1")))
        second = asyncio.create_task(self.dispatcher.handle(reject("2")))
        await asyncio.sleep(0)

        assert self.store.in_flight_ids() == frozenset({"1", "2"})

        self.gateway.resume()
        results = await asyncio.gather(first, second)

        assert [record.status for record in results] == [ProductRequestStatus.APPROVED, ProductRequestStatus.REJECTED]

    @pytest.mark.asyncio
    async def test_timeout_leaves_request_pending(self):
        """Test that a slow sink raises DecisionTimeoutError and changes nothing."""
        dispatcher = ActionDispatcher(self.store, self.gateway, timeout=0.05)
        self.gateway.pause()

        with pytest.raises(errors.DecisionTimeoutError):
            await dispatcher.handle(approve("1"))

        assert self.store.get("1").is_pending
        assert not self.store.is_in_flight("1")

        self.gateway.resume()
        record = await dispatcher.handle(approve("1"))
        assert record.status == ProductRequestStatus.APPROVED

    @pytest.mark.asyncio
    async def test_sink_conflict_becomes_conflict_error(self):
        """Test that a conflict reported by the sink is surfaced as ConflictError."""
        self.gateway.fail_next("1", GatewayConflictError())

        with pytest.raises(errors.ConflictError):
            await self.dispatcher.handle(approve("1"))

        assert self.store.get("1").is_pending

    @pytest.mark.asyncio
    async def test_request_decided_elsewhere(self):
        """Test that a decision already recorded by another reviewer is a conflict."""
        other_store = RequestStore()
        other_store.load(self.requests)
        await ActionDispatcher(other_store, self.gateway).handle(reject("1"))

        with pytest.raises(errors.ConflictError):
            await self.dispatcher.handle(approve("1"))

        assert self.store.get("1").is_pending

    @pytest.mark.asyncio
    async def test_sink_failure_becomes_sink_error(self):
        """Test that sink failures are surfaced as DecisionSinkError."""
        self.gateway.fail_next("2", GatewayError("connection reset"))

        with pytest.raises(errors.DecisionSinkError):
            await self.dispatcher.handle(reject("2"))

        assert self.store.get("2").is_pending
        assert not self.store.is_in_flight("2")

    @pytest.mark.asyncio
    async def test_note_too_long(self):
        """Test that overlong notes are rejected before anything is sent."""
        with pytest.raises(errors.ValidationError):
            await self.dispatcher.handle(reject("1", note="x" * 501))

        assert self.gateway.submissions == []
        assert self.store.get("1").is_pending

    @pytest.mark.asyncio
    async def test_approve_requires_catalogue_fields(self, make_request):
        """Test that approvals need a SKU and product name."""
        incomplete = make_request("3", sku="  ")
        self.store.load([*self.requests, incomplete])

        with pytest.raises(errors.ValidationError) as exc_info:
            await self.dispatcher.handle(approve("3"))

        assert "sku" in exc_info.value.detail
        assert self.gateway.submissions == []

    @pytest.mark.asyncio
    async def test_approve_requires_prices(self, make_request):
        """Test that a request without prices is not approved with a zero-priced product."""
        unpriced = make_request(
            "4", purchase_price=None, client_mup=None, retail_mup=None, client_price=None, rrp=None
        )
        self.store.load([*self.requests, unpriced])

        with pytest.raises(errors.ValidationError) as exc_info:
            await self.dispatcher.handle(approve("4"))

        assert exc_info.value.extras["missing_fields"] == ["purchase_price", "client_mup", "retail_mup", "client_price", "rrp"]
        assert self.gateway.submissions == []
        assert self.store.get("4").is_pending

        rejected = await self.dispatcher.handle(reject("4"))
        assert rejected.status == ProductRequestStatus.REJECTED

    @pytest.mark.asyncio
    async def test_unknown_request(self):
        """Test that intents for unknown ids raise NotFoundError."""
        with pytest.raises(errors.NotFoundError):
            await self.dispatcher.handle(approve("42"))

    @pytest.mark.asyncio
    async def test_edit_recomputes_client_price(self):
        """Test that editing a markup recomputes the price it drives."""
        record = await self.dispatcher.handle(edit("1", client_mup="1.5"))

        assert record.client_mup == Decimal("1.5")
        assert record.client_price == Decimal("16.50")
        assert self.gateway.submissions == []

    @pytest.mark.asyncio
    async def test_edit_price_recomputes_markup(self):
        """Test that editing a price recomputes its markup."""
        record = await self.dispatcher.handle(edit("1", rrp="22"))

        assert record.rrp == Decimal("22")
        assert record.retail_mup == Decimal("2.00")

    @pytest.mark.asyncio
    async def test_edit_with_invalid_number(self):
        """Test that non-numeric prices are rejected and the record is unchanged."""
        with pytest.raises(errors.ValidationError):
            await self.dispatcher.handle(edit("1", purchase_price="ten"))

        assert self.store.get("1") == self.requests[0]

    @pytest.mark.asyncio
    async def test_edit_while_decision_in_flight(self):
        """Test that a request cannot be edited while its decision is pending."""
        self.gateway.pause()
        task = asyncio.create_task(self.dispatcher.handle(approve("1")))
        await asyncio.sleep(0)

        with pytest.raises(errors.ConflictError):
            await self.dispatcher.handle(edit("1", category="7"))

        self.gateway.resume()
        await task
