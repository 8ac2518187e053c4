"""
Purpose:
- FastAPI application factory and router mounts.
- Adds CORS (the browser app may be hosted elsewhere) and a JSON error handler.
- `insta-helper` (see pyproject) serves this with Uvicorn on settings.host:settings.port.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .core.log import configure_logging
from .core.settings import settings
from .api.health import router as health_router
from .api.process import router as process_router

logger = logging.getLogger(__name__)

async def unhandled_error(request: Request, exc: Exception):
    logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "A server error occurred.", "details": str(exc)},
    )

def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; captions will use the fallback text.")

    app = FastAPI(title="Instagram Helper API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_exception_handler(Exception, unhandled_error)
    app.include_router(health_router)
    app.include_router(process_router)
    return app

app = create_app()

def run() -> None:
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
