"""Kahaani AI - FastAPI Application."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.errors import ConfigurationError, PipelineError
from app.routers import generate, health

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"

# Create app
app = FastAPI(
    title=settings.app_name,
    description="AI audio script generator for Indian audiences",
    version=VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.allowed_origin],
    allow_methods=["POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Include routers
app.include_router(generate.router)
app.include_router(health.router)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Service not configured: {exc}")
    return JSONResponse({"error": "Service not configured"}, status_code=503)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError):
    logger.error(f"Kahaani API error: {exc}")
    return JSONResponse(
        {"error": "Script generation failed. Please try again."},
        status_code=500,
    )


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": VERSION,
        "description": "Trending topics in, three audio scripts out",
        "docs": "/docs",
        "endpoints": {
            "generate": "POST /api/generate - Research + write 3 scripts",
            "health": "GET /api/health - Config and deployment check",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8765)
