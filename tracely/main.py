"""
Server entry point — FastAPI app setup and route configuration.
Builds the storage backend, ledger and observation pipeline, wires
CORS, the API routers and the error handlers.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator

import dotenv
import fastapi
import uvicorn
from fastapi import exceptions
from fastapi.middleware import cors
from starlette import responses

from tracely import config, storage
from tracely.pipeline import observation_pipeline
from tracely.routes import events, sites, trackers
from tracely.services import ledger as ledger_service
from tracely.storage import base
from tracely.utils import errors, logger

dotenv.load_dotenv()

log = logger.create_logger("Server")


def _error_response(status_code: int, message: str) -> responses.JSONResponse:
    return responses.JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: fastapi.FastAPI) -> None:
    """Map the error taxonomy onto HTTP status codes."""

    @app.exception_handler(errors.ValidationError)
    async def handle_validation(_request: fastapi.Request, exc: errors.ValidationError) -> responses.JSONResponse:
        log.warn("Rejected request", {"error": errors.get_error_message(exc)})
        return _error_response(400, errors.get_error_message(exc))

    @app.exception_handler(exceptions.RequestValidationError)
    async def handle_bad_body(_request: fastapi.Request, exc: exceptions.RequestValidationError) -> responses.JSONResponse:
        log.warn("Malformed request", {"errors": len(exc.errors())})
        return _error_response(400, "Invalid request")

    @app.exception_handler(errors.NotFoundError)
    async def handle_not_found(_request: fastapi.Request, exc: errors.NotFoundError) -> responses.JSONResponse:
        return _error_response(404, errors.get_error_message(exc))

    @app.exception_handler(errors.StorageError)
    async def handle_storage(_request: fastapi.Request, exc: errors.StorageError) -> responses.JSONResponse:
        log.error("Storage unavailable", {"error": errors.get_error_message(exc)})
        return _error_response(503, "Storage unavailable")

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: fastapi.Request, exc: Exception) -> responses.JSONResponse:
        log.error("Unhandled error", {"error": errors.get_error_message(exc)})
        return _error_response(500, "Internal server error")


def create_app(
    settings: config.Settings | None = None,
    store: base.Store | None = None,
) -> fastapi.FastAPI:
    """Build the application.

    Args:
        settings: Runtime configuration; read from the environment when omitted.
        store: Storage backend; built from *settings* when omitted.
    """
    settings = settings or config.Settings()
    logger.set_debug(settings.debug)
    store = store or storage.create_store(settings)

    @contextlib.asynccontextmanager
    async def lifespan(_app: fastapi.FastAPI) -> AsyncGenerator[None]:
        """Log server start on startup."""
        log.section("Tracely Server Started")
        log.info(
            "Environment",
            {
                "env": settings.environment,
                "storage": settings.storage_backend,
                "historyCapacity": settings.history_capacity,
            },
        )
        yield

    app = fastapi.FastAPI(title="Tracely Server", lifespan=lifespan)
    app.state.ledger = ledger_service.Ledger(store)
    app.state.pipeline = observation_pipeline.ObservationPipeline(
        store, history_capacity=settings.history_capacity
    )

    # ========================================================================
    # Middleware
    # ========================================================================

    app.add_middleware(
        cors.CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ========================================================================
    # API Routes
    # ========================================================================

    app.include_router(events.router)
    app.include_router(sites.router)
    app.include_router(trackers.router)

    @app.get("/api/health")
    def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok"}

    _register_error_handlers(app)
    return app


app = create_app()


def main() -> None:
    """Run the server with uvicorn."""
    settings = config.Settings()
    uvicorn.run(
        "tracely.main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()
