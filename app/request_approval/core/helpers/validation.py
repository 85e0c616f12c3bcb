from collections import defaultdict
from typing import Any, Iterable, Mapping, Sequence

from request_approval.core.config import settings
from request_approval.core.exceptions import errors
from request_approval.core.helpers.pricing import to_decimal
from request_approval.domain.enums import IntentKind, ProductRequestStatus
from request_approval.domain.schemas import EDITABLE_FIELDS, PRICE_FIELDS, ProductRequest, ReferenceLists


def validate_decision(kind: Any, request_id: str | None = None) -> ProductRequestStatus:
    """
    Map an intent kind onto the decision it stands for.

    Raises:
        errors.ValidationError: when `kind` is not approve or reject
    """
    try:
        decision = IntentKind(kind).decision
    except ValueError:
        decision = None

    if decision is None:
        raise errors.ValidationError(
            detail=f"'{kind}' is not a permitted decision. Use approve or reject.",
            request_id=request_id,
        )
    return decision


def validate_note(note: str | None, request_id: str | None = None, max_length: int | None = None) -> str | None:
    """
    Normalise a decision note: strip it, turn blanks into None and enforce the length limit.

    Raises:
        errors.ValidationError: when the note is longer than the configured limit
    """
    if note is None:
        return None

    limit = settings.NOTE_MAX_LENGTH if max_length is None else max_length
    note = note.strip()
    if len(note) > limit:
        raise errors.ValidationError(
            detail=f"Decision note is {len(note)} characters long; the limit is {limit}.",
            request_id=request_id,
        )
    return note or None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def validate_required_fields(record: ProductRequest, required: Sequence[str] | None = None) -> None:
    """
    Check that every field needed to create the product is filled in.

    Raises:
        errors.ValidationError: listing the missing fields
    """
    required = settings.APPROVAL_REQUIRED_FIELDS if required is None else required
    missing = [field for field in required if is_blank(getattr(record, field, None))]
    if missing:
        raise errors.ValidationError(
            detail=f"Please fill in all required fields: {', '.join(missing)}.",
            request_id=record.id,
            missing_fields=missing,
        )


def validate_edit_changes(changes: Mapping[str, Any], request_id: str | None = None) -> dict[str, Any]:
    """
    Validate and coerce the fields of an edit intent.

    Text fields are stripped and must not be blank; price fields must be
    non-negative numbers (an empty value clears them).

    Returns:
        The coerced changes

    Raises:
        errors.ValidationError: on unknown fields, blank text or bad numbers
    """
    if not changes:
        raise errors.ValidationError(detail="An edit must change at least one field.", request_id=request_id)

    unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
    if unknown:
        raise errors.ValidationError(
            detail=f"Fields cannot be edited: {', '.join(unknown)}.",
            request_id=request_id,
        )

    coerced: dict[str, Any] = {}
    for field, value in changes.items():
        if field in PRICE_FIELDS:
            try:
                number = to_decimal(value)
            except ValueError:
                raise errors.ValidationError(
                    detail=f"{field} must be a number, got {value!r}.",
                    request_id=request_id,
                ) from None
            if number is not None and number < 0:
                raise errors.ValidationError(detail=f"{field} cannot be negative.", request_id=request_id)
            coerced[field] = number
        else:
            if is_blank(value):
                raise errors.ValidationError(detail=f"{field} cannot be empty.", request_id=request_id)
            coerced[field] = str(value).strip()

    return coerced


def validate_reference_values(
    changes: dict[str, Any], reference: ReferenceLists | None, request_id: str | None = None
) -> dict[str, Any]:
    """
    Check brand, supplier and category edits against the catalogue reference lists.

    Categories may be given by id or by name and are stored as the id. A field
    whose list is empty is not checked.

    Raises:
        errors.ValidationError: when a value is not in its list
    """
    if reference is None:
        return changes

    checked = dict(changes)
    if "brand" in checked and reference.brands and checked["brand"] not in reference.brands:
        raise errors.ValidationError(detail=f"Unknown brand '{checked['brand']}'.", request_id=request_id)

    supplier = checked.get("primary_supplier")
    if supplier is not None and reference.suppliers and supplier not in reference.suppliers:
        raise errors.ValidationError(detail=f"Unknown supplier '{supplier}'.", request_id=request_id)

    if "category" in checked and reference.categories:
        category = reference.resolve_category(checked["category"])
        if category is None:
            raise errors.ValidationError(
                detail=f"Unknown category '{checked['category']}'.", request_id=request_id
            )
        checked["category"] = category

    return checked


def find_duplicate_skus(records: Iterable[ProductRequest]) -> dict[str, list[str]]:
    """
    Group request ids by SKU and keep only the SKUs used more than once.

    SKUs are compared after stripping; blank SKUs are ignored.
    """
    by_sku: dict[str, list[str]] = defaultdict(list)
    for record in records:
        sku = record.sku.strip()
        if sku:
            by_sku[sku].append(record.id)
    return {sku: ids for sku, ids in by_sku.items() if len(ids) > 1}
