from .exceptions import (  # noqa: F401
    GatewayConfigurationError,
    GatewayConflictError,
    GatewayError,
    GatewayTimeoutError,
)
from .factory import GatewayFactory  # noqa: F401
from .interface import DecisionSink, GatewayProvider, RequestSource  # noqa: F401
from .providers import HttpGatewayProvider, MemoryGatewayProvider  # noqa: F401
from .schemas import GatewayConfiguration, HttpGatewayConfiguration, MemoryGatewayConfiguration  # noqa: F401

__all__ = [
    "GatewayFactory",
    "GatewayProvider",
    "RequestSource",
    "DecisionSink",
    "HttpGatewayProvider",
    "MemoryGatewayProvider",
    "GatewayConfiguration",
    "HttpGatewayConfiguration",
    "MemoryGatewayConfiguration",
    "GatewayError",
    "GatewayTimeoutError",
    "GatewayConflictError",
    "GatewayConfigurationError",
]
