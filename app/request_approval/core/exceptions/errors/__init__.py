from .base import ServiceError  # noqa: F401
from .product_request import (  # noqa: F401
    PRODUCT_REQUEST_ERRORS,
    ConflictError,
    DecisionSinkError,
    DecisionTimeoutError,
    DuplicateIdError,
    InvalidTransitionError,
    NotFoundError,
    ProductRequestError,
    RequestSourceError,
    ValidationError,
)

__all__ = [
    "PRODUCT_REQUEST_ERRORS",
    "ConflictError",
    "DecisionSinkError",
    "DecisionTimeoutError",
    "DuplicateIdError",
    "InvalidTransitionError",
    "NotFoundError",
    "ProductRequestError",
    "RequestSourceError",
    "ServiceError",
    "ValidationError",
]
