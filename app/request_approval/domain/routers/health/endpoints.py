from typing import Annotated

from fastapi import APIRouter, Depends
from request_approval.core.dependencies import get_gateway
from request_approval.libs.gateway import GatewayProvider

router = APIRouter()


@router.get("/", include_in_schema=False)
async def health_check(gateway: Annotated[GatewayProvider, Depends(get_gateway)]) -> dict[str, str]:
    """
    Basic health check endpoint, including whether the request gateway answers.
    """
    gateway_ok = await gateway.health_check()
    return {"status": "healthy", "gateway": "up" if gateway_ok else "down"}
