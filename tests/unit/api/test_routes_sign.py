"""Tests for the sign, JWKS, and rotate endpoints."""

import jwt
import pytest
from httpx import AsyncClient

from tokensmith.crypto.jwt_codec import verify_token
from tokensmith.crypto.types import JWKSResponse

AUTH_HEADER = {"Authorization": "Bearer test-api-token"}


@pytest.fixture
async def tester_role(client: AsyncClient) -> str:
    resp = await client.post(
        "/roles/tester",
        json={"issuer": "tester.example.com"},
        headers=AUTH_HEADER,
    )
    assert resp.status_code == 201
    return "tester"


async def _sign(client: AsyncClient, role: str, claims: dict):
    return await client.post(f"/sign/{role}", json={"claims": claims}, headers=AUTH_HEADER)


async def _jwks(client: AsyncClient) -> JWKSResponse:
    resp = await client.get("/jwks")
    assert resp.status_code == 200
    return JWKSResponse.model_validate(resp.json())


class TestSignEndpoint:
    async def test_returns_verifiable_token(
        self, client: AsyncClient, tester_role: str
    ) -> None:
        resp = await _sign(client, tester_role, {"aud": ["A", "B"], "sub": "svc-1"})
        assert resp.status_code == 200
        token = resp.json()["token"]
        claims = verify_token(token, await _jwks(client))
        assert claims["iss"] == "tester.example.com"
        assert claims["aud"] == ["A", "B"]
        assert claims["sub"] == "svc-1"

    async def test_requires_api_token(self, client: AsyncClient, tester_role: str) -> None:
        resp = await client.post(f"/sign/{tester_role}", json={"claims": {}})
        assert resp.status_code == 401

    async def test_unknown_role(self, client: AsyncClient) -> None:
        resp = await _sign(client, "nobody", {})
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    async def test_reserved_claim(self, client: AsyncClient, tester_role: str) -> None:
        resp = await _sign(client, tester_role, {"exp": 1234})
        assert resp.status_code == 400
        assert resp.json()["error"] == "policy_violation"

    async def test_malformed_audience(self, client: AsyncClient, tester_role: str) -> None:
        resp = await _sign(client, tester_role, {"aud": 1234})
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_claim_type"

    async def test_role_name_is_case_insensitive(
        self, client: AsyncClient, tester_role: str
    ) -> None:
        resp = await _sign(client, tester_role.upper(), {})
        assert resp.status_code == 200


class TestJwksEndpoint:
    async def test_public_and_cacheable(self, client: AsyncClient) -> None:
        resp = await client.get("/jwks")
        assert resp.status_code == 200
        assert resp.json() == {"keys": []}
        assert resp.headers["cache-control"] == "public, max-age=60"

    async def test_lists_key_after_first_sign(
        self, client: AsyncClient, tester_role: str
    ) -> None:
        token = (await _sign(client, tester_role, {})).json()["token"]
        body = (await client.get("/jwks")).json()
        kid = jwt.get_unverified_header(token)["kid"]
        assert [k["kid"] for k in body["keys"]] == [kid]
        assert "d" not in body["keys"][0]


class TestRotateEndpoint:
    async def test_rotation_keeps_old_tokens_verifiable(
        self, client: AsyncClient, tester_role: str
    ) -> None:
        old_token = (await _sign(client, tester_role, {})).json()["token"]
        old_kid = jwt.get_unverified_header(old_token)["kid"]

        resp = await client.post("/keys/rotate", headers=AUTH_HEADER)
        assert resp.status_code == 200
        new_kid = resp.json()["kid"]
        assert new_kid != old_kid

        new_token = (await _sign(client, tester_role, {})).json()["token"]
        assert jwt.get_unverified_header(new_token)["kid"] == new_kid

        jwks = await _jwks(client)
        assert [k.kid for k in jwks.keys] == [old_kid, new_kid]
        assert verify_token(old_token, jwks)["iss"] == "tester.example.com"

    async def test_rotate_requires_api_token(self, client: AsyncClient) -> None:
        resp = await client.post("/keys/rotate")
        assert resp.status_code == 401
