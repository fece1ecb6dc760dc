"""
CORS Middleware - Origin policy for browser clients.

Policy:
- development / CORS_ALLOW_ALL: echo the caller's origin, credentials only when an origin was sent
- known origin: echo it with credentials
- unknown origin: echo it without credentials

A wildcard origin is never combined with credentials.
Every OPTIONS preflight is answered here with 200 and an empty body.
"""

from typing import Callable, Any, Dict, Optional
import logging

from fastapi import Request
from fastapi.responses import Response

from mathsolver.config import Settings, settings as default_settings


logger = logging.getLogger(__name__)


DEFAULT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:3002",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
    "http://127.0.0.1:3002",
    "https://math-solver2.vercel.app",
]

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOW_HEADERS = "Origin, X-Requested-With, Content-Type, Accept, Authorization"


def allowed_origins(config: Settings) -> list[str]:
    origins = list(DEFAULT_ORIGINS)
    origins.extend(config.extra_origins)
    if config.frontend_url:
        origins.append(config.frontend_url.rstrip("/"))
    return origins


def resolve_cors_headers(origin: Optional[str], config: Settings) -> Dict[str, str]:
    """Compute the CORS response headers for a request origin"""
    if config.is_development or config.cors_allow_all:
        allow_origin = origin or "*"
        credentials = "true" if origin else "false"
        logger.debug(f"[CORS] Development mode - allowing origin: {origin}")
    elif origin in allowed_origins(config):
        allow_origin = origin
        credentials = "true"
        logger.debug(f"[CORS] Allowing listed origin: {origin}")
    else:
        allow_origin = origin or "null"
        credentials = "false"
        logger.info(f"[CORS] Unknown origin allowed without credentials: {origin}")

    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Credentials": credentials,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
    }


def build_cors_middleware(config: Optional[Settings] = None) -> Callable:
    """Return an ``http`` middleware applying the origin policy."""

    async def cors_middleware(request: Request, call_next: Callable) -> Any:
        cfg = config or default_settings
        origin = request.headers.get("origin")
        headers = resolve_cors_headers(origin, cfg)

        if request.method == "OPTIONS":
            logger.debug(f"[CORS] Handling OPTIONS preflight request from: {origin}")
            return Response(status_code=200, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response

    return cors_middleware
