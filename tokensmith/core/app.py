"""FastAPI application factory for the tokensmith issuer."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from pydantic import ValidationError
from starlette.responses import JSONResponse

from tokensmith.api.routes_config import router as config_router
from tokensmith.api.routes_keys import router as keys_router
from tokensmith.api.routes_roles import router as roles_router
from tokensmith.api.routes_sign import router as sign_router
from tokensmith.core.errors import (
    ClaimTypeError,
    IssuanceError,
    KeyGenerationError,
    NotFoundError,
    PolicyViolationError,
)
from tokensmith.core.settings import IssuerSettings
from tokensmith.db.engine import create_schema

HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_INTERNAL_ERROR = 500

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, description: str) -> JSONResponse:
    return JSONResponse(
        {"error": error, "error_description": description},
        status_code=status_code,
    )


def _issuance_error_response(exc: IssuanceError) -> JSONResponse:
    if isinstance(exc, PolicyViolationError):
        return _error(HTTP_BAD_REQUEST, "policy_violation", str(exc))
    if isinstance(exc, ClaimTypeError):
        return _error(HTTP_BAD_REQUEST, "invalid_claim_type", str(exc))
    if isinstance(exc, NotFoundError):
        return _error(HTTP_NOT_FOUND, "not_found", str(exc))
    if isinstance(exc, KeyGenerationError):
        logger.error("signing key generation failed: %s", exc)
        return _error(HTTP_INTERNAL_ERROR, "key_generation_failed", str(exc))
    return _error(HTTP_INTERNAL_ERROR, "server_error", str(exc))


async def _handle_issuance_error(_request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, IssuanceError):
        raise exc
    return _issuance_error_response(exc)


async def _handle_validation_error(_request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, ValidationError):
        raise exc
    messages = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}"
        for err in exc.errors()
    )
    return _error(HTTP_BAD_REQUEST, "invalid_request", messages)


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = IssuerSettings()
    logging.basicConfig(level=settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if settings.create_schema:
            await create_schema()
        yield

    app = FastAPI(
        title="tokensmith JWT issuer",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.rotation_lock = asyncio.Lock()

    app.add_exception_handler(IssuanceError, _handle_issuance_error)
    app.add_exception_handler(ValidationError, _handle_validation_error)

    app.include_router(sign_router)
    app.include_router(keys_router)
    app.include_router(roles_router)
    app.include_router(config_router)

    return app
