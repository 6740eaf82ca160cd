"""Health probe: reports whether the service is configured to call its model provider."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.config import Settings
from app.routers.generate import get_settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(config: Settings = Depends(get_settings)):
    """Verifies deployment and config. 503 when the OpenAI key is missing."""
    has_key = bool(config.openai_api_key)

    return JSONResponse(
        {
            "status": "ok" if has_key else "degraded",
            "service": config.app_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "openai_key_configured": has_key,
                "environment": config.environment,
            },
        },
        status_code=200 if has_key else 503,
        headers={"Cache-Control": "no-store"},
    )
