"""Tests for the application's exception handlers."""

import json

import pytest
from starlette.requests import Request

from tokensmith.core.app import _handle_issuance_error, _handle_validation_error
from tokensmith.core.errors import (
    ClaimTypeError,
    KeyGenerationError,
    ReservedClaimError,
    UnknownKeyError,
)


def _request() -> Request:
    return Request({"type": "http", "method": "POST", "path": "/", "headers": []})


class TestIssuanceErrorHandler:
    @pytest.mark.parametrize(
        ("exc", "status", "error"),
        [
            (ReservedClaimError("exp"), 400, "policy_violation"),
            (ClaimTypeError("bad aud"), 400, "invalid_claim_type"),
            (UnknownKeyError("k1"), 404, "not_found"),
            (KeyGenerationError("no entropy"), 500, "key_generation_failed"),
        ],
    )
    async def test_maps_to_error_body(
        self, exc: Exception, status: int, error: str
    ) -> None:
        resp = await _handle_issuance_error(_request(), exc)
        assert resp.status_code == status
        body = json.loads(resp.body)
        assert body == {"error": error, "error_description": str(exc)}

    async def test_other_exceptions_propagate(self) -> None:
        with pytest.raises(RuntimeError, match="boom"):
            await _handle_issuance_error(_request(), RuntimeError("boom"))


class TestValidationErrorHandler:
    async def test_other_exceptions_propagate(self) -> None:
        with pytest.raises(LookupError):
            await _handle_validation_error(_request(), LookupError("missing"))
