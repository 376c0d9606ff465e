from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from makeable.agent.generator import has_usable_api_key
from makeable.config import get_settings
from makeable.database.connection import init_db
from makeable.errors import CompressionError, GenerationError, UpstreamError, UpstreamTimeout
from makeable.routes import admin, auth, projects

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Makeable", description="Prompt-to-web-app generator")
app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=".*",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(projects.router)
app.include_router(admin.router)


@app.on_event("startup")
async def startup_event() -> None:
    init_db()
    settings = get_settings()
    settings.projects_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Makeable ready, data in %s", settings.data_dir.resolve())


@app.exception_handler(CompressionError)
async def compression_error_handler(request: Request, exc: CompressionError) -> JSONResponse:
    return JSONResponse(
        {
            "error": "Image processing failed",
            "details": "Unable to process the provided image. Please try with a different image format (JPEG, PNG, WebP).",
            "suggestion": "Try using a simpler image or a different format.",
        },
        status_code=400,
    )


def failure_label(request: Request) -> str:
    if request.url.path.endswith("/iterate"):
        return "Failed to update project"
    return "Failed to generate app"


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    return JSONResponse({"error": failure_label(request), "details": str(exc)}, status_code=500)


@app.exception_handler(UpstreamError)
async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    logger.error("Upstream LLM failure (status %s): %s", exc.status, exc.message)
    if "image exceeds" in exc.message:
        return JSONResponse(
            {
                "error": "Image too large",
                "details": "The image you provided is too large. Please use an image smaller than 5MB or try a different image.",
                "suggestion": "You can compress your image using online tools or take a screenshot with lower quality.",
            },
            status_code=400,
        )
    status_code = 504 if isinstance(exc, UpstreamTimeout) else 502
    return JSONResponse({"error": failure_label(request), "details": exc.message}, status_code=status_code)


@app.get("/api/health")
async def health():
    settings = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "model": settings.model,
        "generator": "llm" if has_usable_api_key(settings.anthropic_api_key) else "template",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
