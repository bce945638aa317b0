"""
Main application module for the tour navigation service.

Sets up the FastAPI application with permissive CORS for the viewer,
a health check, and the tour and settings routers under ``/api``.
Validation errors are reported as 422 even when the rejected input
holds ``NaN`` or ``Infinity``, which strict JSON cannot carry.
"""

import json

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes_settings import router as settings_router
from .api.routes_tours import router as tours_router
from .services.settings_store import init_db


def _strict_json_input(value):
    """Return ``value`` if it encodes as strict JSON, else its string form."""
    try:
        json.dumps(value, allow_nan=False)
    except (TypeError, ValueError):
        return str(value)
    return value


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    for error in errors:
        if "input" in error:
            error["input"] = _strict_json_input(error["input"])
    return JSONResponse(status_code=422, content={"detail": errors})


def create_app() -> FastAPI:
    """Factory to create and configure the FastAPI application.

    The settings table is created here rather than in a startup hook so
    that a plain ``TestClient(app)`` sees it too.

    Returns:
        FastAPI: The configured application instance.
    """
    init_db()
    app = FastAPI(title="Tour navigation engine")
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(tours_router, prefix="/api", tags=["tours"])
    app.include_router(settings_router, prefix="/api", tags=["settings"])

    return app


# Uvicorn imports this when running ``uvicorn tourengine.main:app`` from backend/.
app = create_app()
