"""Issuer policy config endpoints."""

from fastapi import APIRouter

from tokensmith.api.deps import ApiToken, DbSession
from tokensmith.api.schemas import ConfigResponse, ConfigWritePayload
from tokensmith.db.repo_config import load_config
from tokensmith.policy.service import ConfigUpdateData, update_config

router = APIRouter(prefix="/config", tags=["config"])


@router.get("")
async def read_config(db: DbSession, _token: ApiToken) -> ConfigResponse:
    """GET /config."""
    return ConfigResponse.from_config(await load_config(db))


@router.post("")
async def write_config(
    payload: ConfigWritePayload, db: DbSession, _token: ApiToken
) -> ConfigResponse:
    """POST /config -- partial update; existing roles are not revalidated."""
    data = ConfigUpdateData(**payload.model_dump())
    return ConfigResponse.from_config(await update_config(db, data))
