from datetime import datetime, timezone
from typing import Any, Mapping

from request_approval.domain.enums import ProductRequestStatus
from request_approval.domain.schemas import CategoryOption, Markup, ProductRequest, ReferenceLists

# Statuses written by the request form and the product creation workflow
SOURCE_STATUSES: dict[str, ProductRequestStatus] = {
    "request": ProductRequestStatus.PENDING,
    "pending": ProductRequestStatus.PENDING,
    "product_created": ProductRequestStatus.APPROVED,
    "approved": ProductRequestStatus.APPROVED,
    "delete": ProductRequestStatus.REJECTED,
    "rejected": ProductRequestStatus.REJECTED,
}


def _first(document: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = document.get(key)
        if value is not None and value != "":
            return value
    return default


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def document_to_request(document: Mapping[str, Any]) -> ProductRequest:
    """
    Build a ProductRequest from a source document.

    Accepts both the field names of this service and the ones written by the
    request form (`requestor_firstName`, `date_created`, `status: "request"`, ...).

    Raises:
        ValueError: If the document has no id, an unknown status or invalid values
    """
    raw_status = str(_first(document, "status", default="request")).lower()
    if raw_status not in SOURCE_STATUSES:
        raise ValueError(f"Unknown product request status: {raw_status!r}")
    status = SOURCE_STATUSES[raw_status]

    decided_at = None
    if status.is_terminal:
        decided_at = _parse_datetime(
            _first(document, "decided_at", "product_creation_date", "deletion_date", "date_updated")
        ) or _parse_datetime(_first(document, "submitted_at", "date_created"))

    return ProductRequest.model_validate(
        {
            "id": _first(document, "id", "docId", "documentId", default=""),
            "requester_first_name": _first(document, "requester_first_name", "requestor_firstName", default=""),
            "requester_last_name": _first(document, "requester_last_name", "requestor_lastName", default=""),
            "requester_email": _first(document, "requester_email", "requestor_email", default=""),
            "product_name": _first(document, "product_name", default=""),
            "description": _first(document, "description"),
            "sku": _first(document, "sku", default=""),
            "brand": _first(document, "brand", default=""),
            "primary_supplier": _first(document, "primary_supplier", default=""),
            "category": str(_first(document, "category", default="")),
            "purchase_price": _first(document, "purchase_price"),
            "client_mup": _first(document, "client_mup"),
            "retail_mup": _first(document, "retail_mup"),
            "client_price": _first(document, "client_price"),
            "rrp": _first(document, "rrp"),
            "status": status,
            "submitted_at": _parse_datetime(_first(document, "submitted_at", "date_created")),
            "decided_at": decided_at,
            "decision_note": _first(document, "decision_note"),
        }
    )


def document_to_markup(document: Mapping[str, Any]) -> Markup:
    return Markup.model_validate(
        {
            "id": str(_first(document, "id", "docId", default="")),
            "brand": _first(document, "brand", default=""),
            "main_category": _first(document, "main_category", default=""),
            "sub_category": _first(document, "sub_category", default=""),
            "description": _first(document, "description", default=""),
            "rrp_markup": _first(document, "rrp_markup"),
        }
    )


def _names(documents: list[Any], *keys: str) -> list[str]:
    names = []
    for document in documents:
        value = _first(document, *keys) if isinstance(document, Mapping) else document
        if value is not None and str(value).strip():
            names.append(str(value).strip())
    return names


def documents_to_reference_lists(
    brands: list[Any], suppliers: list[Any], categories: list[Any]
) -> ReferenceLists:
    """
    Build the reference lists from catalogue documents.

    Brands are read from `ContentName` (or `name`), suppliers from `SupplierID`
    (or `id`), and categories from `CategoryID`/`CategoryName` (or `id`/`name`).
    Plain strings are taken as they are.
    """
    options = []
    for document in categories:
        if isinstance(document, Mapping):
            category_id = _first(document, "CategoryID", "id")
            name = _first(document, "CategoryName", "name", default="")
        else:
            category_id, name = document, ""
        if category_id is not None and str(category_id).strip():
            options.append(CategoryOption(id=str(category_id).strip(), name=str(name).strip()))

    return ReferenceLists(
        brands=_names(brands, "ContentName", "name", "brand"),
        suppliers=_names(suppliers, "SupplierID", "id", "name"),
        categories=options,
    )


def documents_to_skus(documents: list[Any]) -> set[str]:
    """Read SKUs from `{"SKU": ...}` items or plain strings."""
    return set(_names(documents, "SKU", "sku"))
