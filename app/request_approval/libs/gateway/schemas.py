from dataclasses import dataclass


@dataclass
class GatewayConfiguration:
    """Base gateway configuration."""

    timeout: float = 15.0


@dataclass
class MemoryGatewayConfiguration(GatewayConfiguration):
    """In-memory gateway configuration."""

    latency_seconds: float = 0.0


@dataclass
class HttpGatewayConfiguration(GatewayConfiguration):
    """HTTP gateway configuration."""

    base_url: str = "http://localhost:9000"
    api_key: str | None = None
    requests_path: str = "/product_requests"
    markups_path: str = "/markups"
    decisions_path: str = "/decisions"
    sku_check_path: str = "/skus/verify"
    brands_path: str = "/brands"
    suppliers_path: str = "/suppliers"
    categories_path: str = "/categories"
