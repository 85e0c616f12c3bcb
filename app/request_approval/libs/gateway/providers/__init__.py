from .http import HttpGatewayProvider  # noqa: F401
from .memory import MemoryGatewayProvider  # noqa: F401
