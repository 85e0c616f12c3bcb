from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

from request_approval.core.config import settings

CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal | None:
    """
    Convert user input (str, int, float, Decimal) into a Decimal.

    Returns None for empty input. Raises ValueError when the input is not a number.
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    if isinstance(value, bool):
        raise ValueError(f"{value!r} is not a number")
    try:
        result = Decimal(str(value).strip())
    except ArithmeticError as e:
        raise ValueError(f"{value!r} is not a number") from e
    if not result.is_finite():
        raise ValueError(f"{value!r} is not a finite number")
    return result


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def tax_multiplier() -> Decimal:
    return Decimal(str(settings.PRICE_TAX_MULTIPLIER))


def calculate_client_price(purchase_price: Decimal, client_mup: Decimal) -> Decimal:
    """Client price = purchase price x client markup x tax."""
    return quantize(purchase_price * client_mup * tax_multiplier())


def calculate_rrp(purchase_price: Decimal, retail_mup: Decimal) -> Decimal:
    """RRP = purchase price x retail markup x tax."""
    return quantize(purchase_price * retail_mup * tax_multiplier())


def derive_markup(price: Decimal, purchase_price: Decimal) -> Decimal | None:
    """
    Inverse of the price calculators: the markup that turns `purchase_price`
    into `price`. None when the purchase price is zero.
    """
    if purchase_price == 0:
        return None
    return quantize(price / (purchase_price * tax_multiplier()))


def reprice(current: Mapping[str, Any], changes: Mapping[str, Any]) -> dict[str, Decimal | None]:
    """
    Work out the price fields implied by an edit.

    The markup and the price it produces are kept consistent in both
    directions: changing a markup recomputes the price, changing a price
    recomputes the markup, and changing the purchase price recomputes both
    prices from the current markups. Fields the edit set explicitly win.

    Args:
        current: The request's current field values
        changes: The (already coerced) fields being edited

    Returns:
        The derived price fields to merge into the edit
    """
    values = {**current, **changes}
    purchase = values.get("purchase_price")
    derived: dict[str, Decimal | None] = {}

    if purchase is None:
        return derived

    pairs = (
        ("client_mup", "client_price", calculate_client_price),
        ("retail_mup", "rrp", calculate_rrp),
    )
    for mup_field, price_field, calculate in pairs:
        mup, price = values.get(mup_field), values.get(price_field)
        if price_field in changes:
            if mup_field not in changes and price is not None:
                derived[mup_field] = derive_markup(price, purchase)
        elif (mup_field in changes or "purchase_price" in changes) and mup is not None:
            derived[price_field] = calculate(purchase, mup)

    return derived
