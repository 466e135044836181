"""Role management endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Response, status

from tokensmith.api.deps import ApiToken, DbSession
from tokensmith.api.schemas import RoleListResponse, RoleResponse, RoleWritePayload
from tokensmith.core.errors import RoleNotFoundError
from tokensmith.db.repo_roles import get_role, list_role_names
from tokensmith.policy.service import RoleUpdateData, remove_role, write_role
from tokensmith.policy.types import ROLE_NAME_PATTERN

router = APIRouter(prefix="/roles", tags=["roles"])

RoleName = Annotated[str, Path(pattern=ROLE_NAME_PATTERN)]


@router.get("")
async def list_roles(db: DbSession, _token: ApiToken) -> RoleListResponse:
    """GET /roles -- names of all roles."""
    return RoleListResponse(keys=await list_role_names(db))


@router.get("/{name}")
async def read_role(name: RoleName, db: DbSession, _token: ApiToken) -> RoleResponse:
    """GET /roles/{name}."""
    role_name = name.lower()
    role = await get_role(db, role_name)
    if role is None:
        raise RoleNotFoundError(role_name)
    return RoleResponse.from_role(role_name, role)


@router.post("/{name}")
async def upsert_role(
    name: RoleName,
    payload: RoleWritePayload,
    response: Response,
    db: DbSession,
    _token: ApiToken,
) -> RoleResponse:
    """POST /roles/{name} -- create or partially update a role."""
    role_name = name.lower()
    data = RoleUpdateData(**payload.model_dump())
    created = await write_role(db, role_name, data)
    if created:
        response.status_code = status.HTTP_201_CREATED
    role = await get_role(db, role_name)
    if role is None:
        raise RoleNotFoundError(role_name)
    return RoleResponse.from_role(role_name, role)


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(name: RoleName, db: DbSession, _token: ApiToken) -> None:
    """DELETE /roles/{name} -- unconditional, idempotent."""
    await remove_role(db, name.lower())
