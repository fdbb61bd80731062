from datetime import datetime, timezone
from fastapi import APIRouter
from typing import Dict

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=Dict[str, str])
async def health_check():
    """
    Liveness probe.

    Returns:
        Dict with the service status and the current server time
    """
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
