"""FastAPI application factory."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from device_link.api.directory import router as directory_router
from device_link.api.middleware import install_middleware
from device_link.api.models import RegisterRequest
from device_link.api.sessions import router as sessions_router
from device_link.app_logging import configure_logging
from device_link.containers import AppContainer
from device_link.domain.errors import NotFoundError, TransientIOError, ValidationError

_STARTED_AT = time.monotonic()


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    install_middleware(app, container.settings)

    @app.exception_handler(ValidationError)
    async def validation_error(_request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse({"error": _describe_invalid(exc)}, status_code=400)

    @app.exception_handler(NotFoundError)
    async def not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=404)

    @app.exception_handler(TransientIOError)
    async def store_unavailable(
        _request: Request, exc: TransientIOError
    ) -> JSONResponse:
        logger.warning("Backing store unavailable: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=503)

    app.include_router(sessions_router)
    app.include_router(directory_router)

    @app.get("/health")
    async def health() -> dict[str, object]:
        """Simple health check endpoint."""
        return {"ok": True, "uptime": time.monotonic() - _STARTED_AT}

    @app.post("/register")
    def register(
        request: Request, body: RegisterRequest | None = None
    ) -> dict[str, object]:
        """Confirm the device id, falling back to the device cookie."""
        state_container: AppContainer = request.app.state.container
        payload = body or RegisterRequest()
        registration = state_container.registration_service.register(
            agent_id=payload.agent_id,
            device_id=payload.device_id,
            cookie_device_id=request.cookies.get(
                state_container.settings.device_cookie_name
            ),
        )
        return registration.to_payload()

    return app


def _describe_invalid(exc: RequestValidationError) -> str:
    """Summarize the first request validation error as one line."""
    errors = exc.errors()
    if not errors:
        return "Bad Request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Invalid JSON body"
    location = ".".join(
        str(part) for part in first.get("loc", ()) if part not in ("body", "query")
    )
    message = first.get("msg", "Invalid value")
    return f"Invalid {location}: {message}" if location else f"Invalid body: {message}"
