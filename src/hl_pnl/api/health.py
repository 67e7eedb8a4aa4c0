from fastapi import APIRouter

from .. import __version__
from ..utils.time_utils import utc_now_iso
from .models import HealthResponse

SERVICE_NAME = "hyperliquid-pnl"

health_router = APIRouter(tags=["health"])


@health_router.get("/api/health", response_model=HealthResponse)
def get_health() -> HealthResponse:
    """存活探针, 不访问任何上游"""
    return HealthResponse(status="OK", service=SERVICE_NAME, version=__version__, timestamp=utc_now_iso())
