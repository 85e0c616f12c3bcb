from datetime import datetime, timezone
from decimal import Decimal

import pytest
from request_approval.core.exceptions import errors
from request_approval.domain.enums import ProductRequestStatus
from request_approval.domain.services import RequestStore

DECIDED_AT = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestRequestStore:
    """Test cases for RequestStore"""

    def setup_method(self):
        self.store = RequestStore(clock=lambda: DECIDED_AT)

    def test_load_then_snapshot_keeps_records_and_order(self, make_request):
        """Test that snapshot returns exactly what was loaded, in load order."""
        requests = [make_request("3"), make_request("1"), make_request("2")]

        self.store.load(requests)

        assert self.store.snapshot() == tuple(requests)
        assert len(self.store) == 3
        assert "1" in self.store

    def test_load_replaces_previous_contents(self, make_request):
        """Test that a second load drops records the new batch does not contain."""
        self.store.load([make_request("1"), make_request("2")])
        self.store.load([make_request("2")])

        assert [record.id for record in self.store.snapshot()] == ["2"]

    def test_load_duplicate_ids_leaves_store_unchanged(self, make_request):
        """Test that loading duplicate ids fails and keeps the previous contents."""
        original = [make_request("1")]
        self.store.load(original)

        with pytest.raises(errors.DuplicateIdError) as exc_info:
            self.store.load([make_request("2"), make_request("3"), make_request("2")])

        assert exc_info.value.request_id == "2"
        assert self.store.snapshot() == tuple(original)

    def test_get_missing_request(self):
        """Test that looking up an unknown id raises NotFoundError."""
        with pytest.raises(errors.NotFoundError):
            self.store.get("missing")

    def test_apply_decision_sets_status_timestamp_and_note(self, make_request):
        """Test that a decision moves a pending request to its terminal status."""
        self.store.load([make_request("1"), make_request("2")])

        updated = self.store.apply_decision("1", ProductRequestStatus.APPROVED, note="Looks good")

        assert updated.status == ProductRequestStatus.APPROVED
        assert updated.decided_at == DECIDED_AT
        assert updated.decision_note == "Looks good"
        assert self.store.get("1") == updated
        assert self.store.get("2").status == ProductRequestStatus.PENDING
        assert self.store.get("2").decided_at is None

    @pytest.mark.parametrize(
        "first, second",
        [
            (ProductRequestStatus.APPROVED, ProductRequestStatus.REJECTED),
            (ProductRequestStatus.REJECTED, ProductRequestStatus.APPROVED),
            (ProductRequestStatus.APPROVED, ProductRequestStatus.APPROVED),
        ],
    )
    def test_only_one_decision_succeeds(self, make_request, first, second):
        """Test that a decided request cannot be decided again."""
        self.store.load([make_request("1")])
        decided = self.store.apply_decision("1", first)

        with pytest.raises(errors.InvalidTransitionError):
            self.store.apply_decision("1", second)

        assert self.store.get("1") == decided

    def test_apply_decision_back_to_pending_is_refused(self, make_request):
        """Test that pending is not a valid decision."""
        self.store.load([make_request("1")])

        with pytest.raises(errors.InvalidTransitionError):
            self.store.apply_decision("1", ProductRequestStatus.PENDING)

        assert self.store.get("1").is_pending

    def test_apply_decision_unknown_request(self):
        """Test that deciding an unknown id raises NotFoundError."""
        with pytest.raises(errors.NotFoundError):
            self.store.apply_decision("nope", ProductRequestStatus.REJECTED)

    def test_apply_edit_updates_fields(self, make_request):
        """Test that edits replace the record with an updated copy."""
        self.store.load([make_request("1")])
        before = self.store.get("1")

        updated = self.store.apply_edit("1", {"category": "44", "client_mup": Decimal("1.5")})

        assert updated.category == "44"
        assert updated.client_mup == Decimal("1.5")
        assert before.category == "12"
        assert self.store.get("1") is updated

    def test_apply_edit_rejects_unknown_fields(self, make_request):
        """Test that only catalogue fields can be edited."""
        self.store.load([make_request("1")])

        with pytest.raises(errors.ValidationError):
            self.store.apply_edit("1", {"status": "approved"})

    def test_apply_edit_on_decided_request(self, make_request):
        """Test that decided requests are read only."""
        self.store.load([make_request("1", status=ProductRequestStatus.REJECTED)])

        with pytest.raises(errors.InvalidTransitionError):
            self.store.apply_edit("1", {"category": "44"})

    def test_in_flight_markers(self, make_request):
        """Test marking, checking and clearing in-flight decisions."""
        self.store.load([make_request("1")])

        self.store.mark_in_flight("1")
        assert self.store.is_in_flight("1")
        assert self.store.in_flight_ids() == frozenset({"1"})

        with pytest.raises(errors.ConflictError):
            self.store.mark_in_flight("1")

        self.store.clear_in_flight("1")
        assert not self.store.is_in_flight("1")

    def test_load_forgets_in_flight_markers_of_dropped_requests(self, make_request):
        """Test that a reload only keeps in-flight markers for ids it still contains."""
        self.store.load([make_request("1"), make_request("2")])
        self.store.mark_in_flight("1")
        self.store.mark_in_flight("2")

        self.store.load([make_request("2")])

        assert self.store.in_flight_ids() == frozenset({"2"})
