"""Script generation endpoint."""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from app.config import Settings, settings
from app.models import GenerateRequest
from app.services.generator import ScriptGenerator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["generate"])


def get_settings() -> Settings:
    return settings


def get_generator(config: Settings = Depends(get_settings)) -> ScriptGenerator:
    """Fresh generator per request; raises ConfigurationError without a key."""
    return ScriptGenerator(config)


async def _read_body(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@router.post("/generate")
async def generate_scripts(
    request: Request,
    generator: ScriptGenerator = Depends(get_generator),
):
    """
    Generate 3 audio scripts from today's trending Indian topics.

    Body (all optional):
    - **mode**: "inform" | "imagine" | "both" (default "both")
    - **language**: "en" | "hi" | "hinglish" (default "en")
    - **exclude_topics**: previously used topics to steer away from
    """
    params = GenerateRequest.model_validate(await _read_body(request))
    logger.info(
        f"Generate: mode={params.mode.value} language={params.language.value} "
        f"excluded={len(params.exclude_topics)}"
    )
    result = await generator.generate(params)
    return JSONResponse(result.model_dump(mode="json", exclude_none=True))


@router.options("/generate")
async def generate_preflight():
    return Response(status_code=200)


@router.api_route("/generate", methods=["GET", "PUT", "PATCH", "DELETE", "HEAD"])
async def generate_wrong_method():
    return JSONResponse({"error": "POST only"}, status_code=405)
