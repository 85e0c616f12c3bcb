from decimal import Decimal

import pytest
from request_approval.core.exceptions import errors
from request_approval.domain.enums import IntentKind, ProductRequestStatus
from request_approval.domain.schemas import EMPTY_TABLE_MESSAGE, DecisionIntent
from request_approval.domain.views import TableView
from request_approval.libs.query_engine import InvalidFieldError, InvalidFilterError, SortDirection


class TestTableView:
    """Test cases for TableView"""

    @pytest.fixture(autouse=True)
    def setup(self, make_request):
        self.view = TableView(page_size=10)
        self.snapshot = (
            make_request("b", minutes=2, brand="Initech"),
            make_request("a", minutes=2, status=ProductRequestStatus.REJECTED),
            make_request("c", minutes=1, brand=""),
            make_request("d", minutes=0, status=ProductRequestStatus.APPROVED, brand="acme"),
            make_request("e", minutes=3),
        )

    def ids(self, rows):
        return [row.id for row in rows]

    def test_render_without_sort_keeps_store_order(self):
        """Test that rows come out in snapshot order by default."""
        assert self.ids(self.view.render(self.snapshot)) == ["b", "a", "c", "d", "e"]

    def test_sort_by_status_breaks_ties_by_submitted_at_then_id(self):
        """Test the tie-break order and that it is stable across renders."""
        self.view.set_sort("status", SortDirection.ASC)

        first = self.view.render(self.snapshot)
        second = self.view.render(self.snapshot)

        assert self.ids(first) == ["d", "c", "b", "e", "a"]
        assert first == second

    def test_sort_descending_keeps_ascending_tie_break(self):
        """Test that only the primary key is reversed."""
        self.view.set_sort("status", "desc")

        assert self.ids(self.view.render(self.snapshot)) == ["a", "c", "b", "e", "d"]

    @pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
    def test_missing_values_sort_last(self, direction):
        """Test that rows without a brand end up at the bottom either way."""
        self.view.set_sort("brand", direction)

        assert self.ids(self.view.render(self.snapshot))[-1] == "c"

    def test_sort_is_case_insensitive(self):
        """Test that text columns ignore case."""
        self.view.set_sort("brand", SortDirection.ASC)

        assert self.ids(self.view.render(self.snapshot)) == ["d", "a", "e", "b", "c"]

    def test_sort_on_unknown_field(self):
        """Test that unknown sort columns are refused."""
        with pytest.raises(InvalidFieldError):
            self.view.set_sort("favourite_colour")

    def test_set_filter_with_predicate(self):
        """Test filtering with a plain predicate."""
        self.view.set_filter(lambda record: record.is_pending)

        assert self.ids(self.view.render(self.snapshot)) == ["b", "c", "e"]

        self.view.set_filter(None)
        assert len(self.view.render(self.snapshot)) == 5

    def test_set_filters_with_expressions(self):
        """Test filtering with field__operator expressions."""
        self.view.set_filters({"brand__ilike": "acme", "status__ne": "approved"})

        assert self.ids(self.view.render(self.snapshot)) == ["a", "e"]

    def test_set_filters_on_unknown_field(self):
        """Test that filters naming unknown fields are refused."""
        with pytest.raises(InvalidFieldError):
            self.view.set_filters({"colour__eq": "red"})

    def test_invalid_filter_keeps_previous_state(self):
        """Test that a refused filter or sort changes nothing and rendering keeps working."""
        self.view.apply_query(sort=("id", "desc"), filters={"brand__ilike": "acme"})

        with pytest.raises(InvalidFilterError):
            self.view.apply_query(sort=("status", "asc"), filters={"status": "bogus"})
        with pytest.raises(InvalidFieldError):
            self.view.apply_query(sort=("colour", "asc"), filters={"brand__ilike": "init"})

        assert self.ids(self.view.render(self.snapshot)) == ["e", "d", "a"]

    def test_filter_on_naive_timestamp(self):
        """Test that timestamps without an offset are compared as UTC."""
        self.view.set_filters({"submitted_at__gte": "2024-05-01T09:02:00"})

        assert self.ids(self.view.render(self.snapshot)) == ["b", "a", "e"]

    def test_row_formatting(self, make_request):
        """Test that prices get two decimals and missing values become empty strings."""
        record = make_request(
            "p", purchase_price=Decimal("10"), rrp=Decimal("22"), client_mup=None, client_price=None, retail_mup=None
        )

        row = self.view.render([record])[0]

        assert row.purchase_price == "10.00"
        assert row.rrp == "22.00"
        assert row.client_mup == ""
        assert row.client_price == ""
        assert row.retail_mup == "2.00"
        assert row.requester_name == "Ada Lovelace"
        assert row.decided_at == ""
        assert row.submitted_at == "2024-05-01T09:00:00+00:00"

    def test_actions_enabled_only_for_pending_rows_not_in_flight(self):
        """Test which rows offer approve and reject."""
        rows = {row.id: row for row in self.view.render(self.snapshot, in_flight={"b"})}

        assert rows["b"].in_flight is True
        assert rows["b"].actions_enabled is False
        assert rows["a"].actions_enabled is False
        assert rows["d"].actions_enabled is False
        assert rows["e"].actions_enabled is True

    def test_selection(self):
        """Test toggling, select all and clearing the selection."""
        assert self.view.toggle_select("b") is True
        assert self.view.toggle_select("b") is False

        self.view.select_all(True, ["b", "e"])
        rows = {row.id: row for row in self.view.render(self.snapshot)}
        assert rows["b"].selected and rows["e"].selected
        assert not rows["c"].selected

        self.view.select_all(False, ["b"])
        assert self.view.selected_ids == frozenset({"e"})

        self.view.clear_selection()
        assert self.view.selected_ids == frozenset()

    def test_row_messages(self):
        """Test that reported errors are shown until cleared."""
        self.view.report_error("e", "Decision timed out")
        row = next(row for row in self.view.render(self.snapshot) if row.id == "e")
        assert row.error == "Decision timed out"
        assert row.status == ProductRequestStatus.PENDING

        self.view.clear_error("e")
        row = next(row for row in self.view.render(self.snapshot) if row.id == "e")
        assert row.error is None

    def test_retain_forgets_missing_rows(self):
        """Test that selection and messages of dropped rows are discarded."""
        self.view.select_all(True, ["b", "e"])
        self.view.report_error("b", "boom")

        self.view.retain(["e"])

        assert self.view.selected_ids == frozenset({"e"})
        assert self.view.render(self.snapshot)[0].error is None

    def test_paginate(self, make_request):
        """Test splitting rows into pages."""
        rows = self.view.render([make_request(str(i), minutes=i) for i in range(12)])

        first = self.view.paginate(rows, 1)
        second = self.view.paginate(rows, 2)

        assert len(first.rows) == 10
        assert first.has_next and not first.has_previous
        assert [row.id for row in second.rows] == ["10", "11"]
        assert second.total_pages == 2
        assert second.empty_message is None

    def test_paginate_empty_table(self):
        """Test the empty table message."""
        page = self.view.paginate([], 1)

        assert page.rows == []
        assert page.total_count == 0
        assert page.empty_message == EMPTY_TABLE_MESSAGE

    def test_emit_builds_intent(self):
        """Test that emit produces the intent value for a row action."""
        intent = self.view.emit("approve", "e", note="fine")

        assert intent == DecisionIntent(kind=IntentKind.APPROVE, request_id="e", note="fine")

    def test_emit_unknown_kind(self):
        """Test that unknown actions are refused."""
        with pytest.raises(errors.ValidationError):
            self.view.emit("archive", "e")
