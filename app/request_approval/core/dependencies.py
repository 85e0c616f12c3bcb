from functools import lru_cache

from request_approval.domain.services import ApprovalSession
from request_approval.libs.gateway import GatewayFactory, GatewayProvider


@lru_cache(maxsize=1)
def get_gateway() -> GatewayProvider:
    """
    Dependency to get the configured gateway provider.

    Returns:
        The provider acting as request source and decision sink
    """
    return GatewayFactory.get_configured_provider()


@lru_cache(maxsize=1)
def get_approval_session() -> ApprovalSession:
    """
    Dependency to get the approval session shared by the API.

    Returns:
        The approval session wired to the configured gateway
    """
    gateway = get_gateway()
    return ApprovalSession(source=gateway, sink=gateway)

