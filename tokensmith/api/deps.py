"""FastAPI dependency injection: settings, API auth, key manager, signer."""

import asyncio
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.settings import IssuerSettings
from tokensmith.db.engine import get_session
from tokensmith.signing.key_manager import KeyManager
from tokensmith.signing.signer import TokenSigner

_security = HTTPBearer(auto_error=False)


def load_settings() -> IssuerSettings:
    return IssuerSettings()


async def require_api_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_security)],
    settings: Annotated[IssuerSettings, Depends(load_settings)],
) -> str:
    """Verify the TOKENSMITH_API_TOKEN Bearer token."""
    expected = settings.api_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    if credentials is None or credentials.credentials != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return credentials.credentials


def get_rotation_lock(request: Request) -> asyncio.Lock:
    """The process-wide lock shared by every KeyManager."""
    lock: asyncio.Lock = request.app.state.rotation_lock
    return lock


def get_key_manager(
    db: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[IssuerSettings, Depends(load_settings)],
    lock: Annotated[asyncio.Lock, Depends(get_rotation_lock)],
) -> KeyManager:
    return KeyManager(db, settings, lock=lock)


def get_token_signer(
    key_manager: Annotated[KeyManager, Depends(get_key_manager)],
    settings: Annotated[IssuerSettings, Depends(load_settings)],
) -> TokenSigner:
    return TokenSigner(key_manager, settings.signing_key_encryption_key)


DbSession = Annotated[AsyncSession, Depends(get_session)]
ApiToken = Annotated[str, Depends(require_api_token)]
Keys = Annotated[KeyManager, Depends(get_key_manager)]
Signer = Annotated[TokenSigner, Depends(get_token_signer)]
Settings = Annotated[IssuerSettings, Depends(load_settings)]
