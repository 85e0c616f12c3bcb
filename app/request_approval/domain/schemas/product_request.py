from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from request_approval.domain.enums import IntentKind, ProductRequestStatus

EDITABLE_FIELDS: tuple[str, ...] = (
    "sku",
    "product_name",
    "brand",
    "primary_supplier",
    "category",
    "purchase_price",
    "client_mup",
    "retail_mup",
    "client_price",
    "rrp",
)

PRICE_FIELDS: tuple[str, ...] = ("purchase_price", "client_mup", "retail_mup", "client_price", "rrp")


class ProductRequest(BaseModel):
    """
    A request for a new catalogue product, awaiting an approve/reject decision.

    Instances are immutable; the request store swaps in an updated copy on
    every change. `decided_at` is set if and only if the status is terminal.

    Attributes:
        id (str): Unique, immutable identifier (the source document id).
        requester_first_name (str): First name of the staff member who asked.
        requester_last_name (str): Last name of the staff member who asked.
        requester_email (str): Email of the requester.
        product_name (str): The requested item.
        description (str | None): Free-text description of the request.
        sku (str): Proposed SKU.
        brand (str): Brand name.
        primary_supplier (str): Supplier id.
        category (str): Category id or name.
        purchase_price (Decimal | None): Cost price.
        client_mup (Decimal | None): Client markup multiplier.
        retail_mup (Decimal | None): Retail markup multiplier.
        client_price (Decimal | None): Price for trade clients.
        rrp (Decimal | None): Recommended retail price.
        status (ProductRequestStatus): Current status.
        submitted_at (datetime): When the request was made.
        decided_at (datetime | None): When it was approved or rejected.
        decision_note (str | None): Optional reviewer note.
    """

    model_config = ConfigDict(frozen=True)

    SORTABLE_FIELDS: ClassVar[tuple[str, ...]] = (
        "id",
        "requester_name",
        "product_name",
        "sku",
        "brand",
        "primary_supplier",
        "category",
        "purchase_price",
        "client_price",
        "rrp",
        "status",
        "submitted_at",
        "decided_at",
    )

    id: str = Field(..., min_length=1, description="Unique request identifier")
    requester_first_name: str = ""
    requester_last_name: str = ""
    requester_email: str = ""
    product_name: str = ""
    description: str | None = None
    sku: str = ""
    brand: str = ""
    primary_supplier: str = ""
    category: str = ""
    purchase_price: Decimal | None = Field(default=None, ge=0)
    client_mup: Decimal | None = Field(default=None, ge=0)
    retail_mup: Decimal | None = Field(default=None, ge=0)
    client_price: Decimal | None = Field(default=None, ge=0)
    rrp: Decimal | None = Field(default=None, ge=0)
    status: ProductRequestStatus = ProductRequestStatus.PENDING
    submitted_at: datetime
    decided_at: datetime | None = None
    decision_note: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def requester_name(self) -> str:
        return f"{self.requester_first_name} {self.requester_last_name}".strip()

    @property
    def is_pending(self) -> bool:
        return self.status == ProductRequestStatus.PENDING

    @model_validator(mode="after")
    def _enforce_decision_timestamp(self) -> Self:
        if self.status.is_terminal and self.decided_at is None:
            raise ValueError(f"A {self.status.value} request must have decided_at set.")
        if not self.status.is_terminal and self.decided_at is not None:
            raise ValueError("A pending request cannot have decided_at set.")
        return self


class DecisionIntent(BaseModel):
    """
    A user-triggered action on one table row.

    Attributes:
        kind (IntentKind): approve, reject or edit.
        request_id (str): The targeted product request.
        note (str | None): Optional decision note.
        changes (dict[str, Any]): Field changes for edit intents.
    """

    model_config = ConfigDict(frozen=True)

    kind: IntentKind
    request_id: str = Field(..., min_length=1)
    note: str | None = None
    changes: dict[str, Any] = Field(default_factory=dict)


class ProductPayload(BaseModel):
    """Product creation payload sent alongside an approval."""

    model_config = ConfigDict(populate_by_name=True)

    sku: str = Field(default="", alias="SKU")
    model: str = Field(default="", alias="Model")
    brand: str = Field(default="", alias="Brand")
    primary_supplier: str = Field(default="", alias="PrimarySupplier")
    default_purchase_price: Decimal = Field(default=Decimal("0"), alias="DefaultPurchasePrice")
    category: str = Field(default="", alias="Category")
    rrp: Decimal = Field(default=Decimal("0"), alias="RRP")
    client_mup: Decimal = Field(default=Decimal("0"), alias="ClientMUP")
    retail_mup: Decimal = Field(default=Decimal("0"), alias="RetailMUP")
    price_group: Decimal = Field(default=Decimal("0"), alias="PriceGroup")
    requestor_email: str = ""
    requestor_firstname: str = ""
    requestor_lastname: str = ""


class DecisionPayload(BaseModel):
    """
    What the decision sink receives: `{id, decision, note}` plus the product
    to create when the decision is an approval.
    """

    id: str
    decision: ProductRequestStatus
    note: str | None = None
    product: ProductPayload | None = None
