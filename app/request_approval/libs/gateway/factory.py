from typing import Any

from request_approval.core.config import settings
from request_approval.core.logging import get_logger
from request_approval.libs.gateway.exceptions import GatewayConfigurationError
from request_approval.libs.gateway.interface import GatewayProvider
from request_approval.libs.gateway.providers.http import HttpGatewayProvider
from request_approval.libs.gateway.providers.memory import MemoryGatewayProvider
from request_approval.libs.gateway.schemas import HttpGatewayConfiguration, MemoryGatewayConfiguration

logger = get_logger(__name__)


class GatewayFactory:
    """
    Factory for creating gateway providers based on configuration.
    """

    _providers: dict[str, type[GatewayProvider]] = {
        "memory": MemoryGatewayProvider,
        "http": HttpGatewayProvider,
    }

    @classmethod
    def register_provider(cls, name: str, provider_class: type[GatewayProvider]) -> None:
        """
        Register a custom gateway provider.

        Args:
            name: Provider name
            provider_class: Provider class
        """
        cls._providers[name] = provider_class

    @classmethod
    def create_provider(cls, provider_type: str, config: Any, **kwargs: Any) -> GatewayProvider:
        """
        Create a provider instance.

        Args:
            provider_type: Type of provider to create
            config: Provider configuration
            **kwargs: Extra constructor arguments (seed data, transport)

        Returns:
            An instance of the requested provider

        Raises:
            GatewayConfigurationError: If the provider type is not supported
        """
        if provider_type not in cls._providers:
            raise GatewayConfigurationError(f"Unsupported gateway provider type: {provider_type}")

        provider_class = cls._providers[provider_type]
        return provider_class(config, **kwargs)  # type: ignore

    @classmethod
    def get_configured_provider(cls, **kwargs: Any) -> GatewayProvider:
        """
        Get the gateway provider selected by `GATEWAY_PROVIDER`.

        Returns:
            An instance of the configured gateway provider
        """
        provider_type = settings.GATEWAY_PROVIDER

        logger.info(f"Creating gateway provider: {provider_type} for environment: {settings.ENVIRONMENT}")

        if provider_type == "memory":
            config = MemoryGatewayConfiguration(timeout=settings.GATEWAY_TIMEOUT_SECONDS)
            return cls.create_provider("memory", config, **kwargs)

        elif provider_type == "http":
            config = HttpGatewayConfiguration(
                timeout=settings.GATEWAY_TIMEOUT_SECONDS,
                base_url=str(settings.GATEWAY_BASE_URL),
                api_key=settings.GATEWAY_API_KEY,
                requests_path=settings.GATEWAY_REQUESTS_PATH,
                markups_path=settings.GATEWAY_MARKUPS_PATH,
                decisions_path=settings.GATEWAY_DECISIONS_PATH,
                sku_check_path=settings.GATEWAY_SKU_CHECK_PATH,
                brands_path=settings.GATEWAY_BRANDS_PATH,
                suppliers_path=settings.GATEWAY_SUPPLIERS_PATH,
                categories_path=settings.GATEWAY_CATEGORIES_PATH,
            )
            return cls.create_provider("http", config, **kwargs)

        else:
            raise GatewayConfigurationError(f"Unsupported gateway provider: {provider_type}")
