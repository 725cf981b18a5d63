"""Health check endpoints for monitoring."""
from typing import Any, Dict

from fastapi import APIRouter, Depends

from receipt_keeper.api.dependencies import get_settings
from receipt_keeper.core.config import Settings

router = APIRouter()


@router.api_route("/health", methods=["GET", "HEAD"])
async def health_check(cfg: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Liveness probe (supports GET & HEAD)."""
    return {"status": "ok", "env": cfg.ENVIRONMENT}
