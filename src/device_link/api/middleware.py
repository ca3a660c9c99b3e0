"""HTTP middleware: device cookie bootstrap and cache suppression."""

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response

from device_link.config import Settings
from device_link.services.identity import mint_device_token

logger = logging.getLogger(__name__)


def install_middleware(app: FastAPI, settings: Settings) -> None:
    """Attach the device-cookie and no-store middleware to ``app``."""

    @app.middleware("http")
    async def device_cookie(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers["Cache-Control"] = "no-store"
        if request.cookies.get(settings.device_cookie_name):
            return response
        response.set_cookie(
            key=settings.device_cookie_name,
            value=mint_device_token(),
            max_age=settings.device_cookie_max_age_seconds,
            path="/",
            httponly=True,
            samesite="lax",
            secure=_is_https(request),
        )
        logger.info("Minted device cookie for %s %s", request.method, request.url.path)
        return response


def _is_https(request: Request) -> bool:
    forwarded = request.headers.get("x-forwarded-proto", "")
    scheme = forwarded.split(",")[0].strip() or request.url.scheme
    return scheme == "https"
