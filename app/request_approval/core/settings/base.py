from pathlib import Path
from typing import Annotated, Any, Literal, Self

from dotenv import load_dotenv
from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def parse_cors(v: Any) -> list[str]:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list):
        return v
    elif isinstance(v, str):
        return [v]
    raise ValueError(v)


def parse_string_separated_list(value: Any) -> list[str]:
    """Parse string separated list."""
    if isinstance(value, list):
        return value

    if not isinstance(value, str):
        raise ValueError(f"`{value}` expected to be list or string sperate list")

    value = value.replace("[", "").replace("]", "")
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    BASE_DIR: str = str(Path(__file__).resolve().parent.parent.parent.parent)

    APP_NAME: str = "Product Request Approval"
    APP_DESCRIPTION: str = "Review, price and approve product requests"
    APP_VERSION: str = "0.1.0"
    OPENAPI_DOCS_URL: str = "/docs"
    OPENAPI_JSON_SCHEMA_URL: str = "/openapi.json"
    DOMAIN: str = "localhost"
    PORT: str = "8000"
    V1_STR: str = "v1"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SERVER_URL(self) -> str:
        if self.ENVIRONMENT == "local":
            return f"http://{self.DOMAIN}:{self.PORT}"
        return f"https://{self.DOMAIN}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def API_V1_STR(self) -> str:
        return f"/api/{self.V1_STR}"

    BACKEND_CORS_ORIGINS: Annotated[list[AnyUrl] | str, BeforeValidator(parse_cors)] = []

    # Approval rules
    NOTE_MAX_LENGTH: int = 500
    DECISION_TIMEOUT_SECONDS: float = 10.0
    # Everything the product creation payload needs
    APPROVAL_REQUIRED_FIELDS: Annotated[list[str] | str, BeforeValidator(parse_string_separated_list)] = [
        "sku",
        "product_name",
        "purchase_price",
        "client_mup",
        "retail_mup",
        "client_price",
        "rrp",
    ]

    # Table
    TABLE_PAGE_SIZE: int = 10

    # Pricing
    PRICE_TAX_MULTIPLIER: float = 1.1

    # Gateway (data source + decision sink)
    GATEWAY_PROVIDER: Literal["memory", "http"] = "memory"
    GATEWAY_BASE_URL: HttpUrl | str = "http://localhost:9000"
    GATEWAY_API_KEY: str | None = None
    GATEWAY_TIMEOUT_SECONDS: float = 15.0
    GATEWAY_REQUESTS_PATH: str = "/product_requests"
    GATEWAY_MARKUPS_PATH: str = "/markups"
    GATEWAY_DECISIONS_PATH: str = "/decisions"
    GATEWAY_SKU_CHECK_PATH: str = "/skus/verify"
    GATEWAY_BRANDS_PATH: str = "/brands"
    GATEWAY_SUPPLIERS_PATH: str = "/suppliers"
    GATEWAY_CATEGORIES_PATH: str = "/categories"

    @model_validator(mode="after")
    def _enforce_approval_rules(self) -> Self:
        if self.NOTE_MAX_LENGTH < 0:
            raise ValueError("NOTE_MAX_LENGTH must not be negative.")
        if self.DECISION_TIMEOUT_SECONDS <= 0:
            raise ValueError("DECISION_TIMEOUT_SECONDS must be greater than zero.")
        if self.TABLE_PAGE_SIZE < 1:
            raise ValueError("TABLE_PAGE_SIZE must be at least 1.")
        return self

    @model_validator(mode="after")
    def _enforce_gateway_config(self) -> Self:
        if self.GATEWAY_PROVIDER == "http" and not self.GATEWAY_BASE_URL:
            raise ValueError("GATEWAY_BASE_URL is required for the http gateway provider.")
        return self
