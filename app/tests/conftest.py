from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from request_approval.domain.enums import ProductRequestStatus
from request_approval.domain.schemas import Markup, ProductRequest

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def build_request(request_id: str = "1", minutes: int = 0, **overrides) -> ProductRequest:
    """A pending request with every approval field filled in."""
    data = {
        "id": request_id,
        "requester_first_name": "Ada",
        "requester_last_name": "Lovelace",
        "requester_email": "ada@example.com",
        "product_name": f"Widget {request_id}",
        "sku": f"SKU-{request_id}",
        "brand": "Acme",
        "primary_supplier": "Globex",
        "category": "12",
        "purchase_price": Decimal("10"),
        "client_mup": Decimal("1.2"),
        "client_price": Decimal("13.20"),
        "retail_mup": Decimal("2.0"),
        "rrp": Decimal("22.00"),
        "submitted_at": BASE_TIME + timedelta(minutes=minutes),
    }
    data.update(overrides)
    if data.get("status", ProductRequestStatus.PENDING) != ProductRequestStatus.PENDING:
        data.setdefault("decided_at", BASE_TIME + timedelta(days=1))
    return ProductRequest(**data)


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def markups() -> list[Markup]:
    return [
        Markup(id="m1", brand="Acme", main_category="Tools", sub_category="Hand", rrp_markup=Decimal("1.8")),
        Markup(id="m2", brand="ACME Pro", main_category="Tools", sub_category="Power", rrp_markup=Decimal("2.1")),
        Markup(id="m3", brand="Initech", main_category="Office", sub_category="Paper", rrp_markup=Decimal("1.4")),
    ]
