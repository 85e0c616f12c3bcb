from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from request_approval.domain.enums import ProductRequestStatus
from request_approval.domain.schemas.product_request import ProductRequest

EMPTY_TABLE_MESSAGE = "No Request at the moment"


class TableRow(BaseModel):
    """
    Display-ready row for one product request.

    Prices are already formatted with two decimals; missing values are empty strings.
    """

    id: str
    requester_name: str
    requester_email: str
    sku: str
    product_name: str
    brand: str
    primary_supplier: str
    category: str
    purchase_price: str
    client_mup: str
    retail_mup: str
    client_price: str
    rrp: str
    status: ProductRequestStatus
    submitted_at: str
    decided_at: str
    decision_note: str
    selected: bool = False
    in_flight: bool = False
    actions_enabled: bool = False
    error: str | None = None


class TablePage(BaseModel):
    """One page of rendered rows plus offset pagination metadata."""

    rows: list[TableRow]
    page: int
    per_page: int
    total_count: int
    total_pages: int
    has_next: bool
    has_previous: bool
    empty_message: str | None = None


class IntentOutcome(BaseModel):
    """
    Result of submitting an intent through the approval session.

    Failures are reported here instead of being raised so that a single bad
    row never interrupts the session.
    """

    request_id: str
    ok: bool
    record: ProductRequest | None = None
    error_type: str | None = None
    message: str | None = None
    extras: dict[str, Any] = Field(default_factory=dict)
