from .product_request import IntentKind, ProductRequestStatus  # noqa: F401
