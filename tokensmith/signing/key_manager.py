"""Signing key lifecycle: bootstrap, rotation, retention, lookup.

Each key moves through ``active -> retired -> purged``. One key is active at
any time; retired keys stay in the verification set until ``key_retention``
seconds after their retirement, then the next rotation deletes them.

Rotation retires the old key, stores the new one, purges expired keys, and
commits, all while holding the rotation lock. A request that takes the lock
next reads the committed result, so one process never bootstraps twice. Across
processes the single-active index rejects the losing insert; the loser rolls
back and adopts the key that won.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.errors import NoSigningKeysError, UnknownKeyError
from tokensmith.core.settings import IssuerSettings
from tokensmith.crypto.keys import (
    SIGNING_ALGORITHM,
    encrypt_private_key,
    generate_rsa_keypair,
)
from tokensmith.db.models_keys import SigningKeyEntity
from tokensmith.db.repo_keys import (
    get_active_key,
    get_all_keys,
    get_key,
    purge_retired,
    retire_active,
    store_key,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class KeyManager:
    """Owns the signing key set for one unit of work (a database session).

    Rotation commits the session, so it must be built with
    ``expire_on_commit=False`` and hold no unrelated pending writes.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: IssuerSettings,
        *,
        lock: asyncio.Lock | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._lock = lock or asyncio.Lock()
        self._clock = clock or _utcnow

    async def current_signing_key(self) -> SigningKeyEntity:
        """Return the active key, creating or rotating it first when due."""
        async with self._lock:
            active = await get_active_key(self._session)
            if active is None:
                logger.info("no active signing key, bootstrapping")
                return await self._rotate_locked()
            if self._rotation_due(active):
                logger.info("signing key %s exceeded rotation period", active.kid)
                return await self._rotate_locked()
            return active

    async def verification_key_set(self) -> list[SigningKeyEntity]:
        """Active plus retired-but-not-purged keys, in creation order."""
        return await get_all_keys(self._session)

    async def get_verification_key(self, kid: str) -> SigningKeyEntity:
        """Look up a retained key by identifier."""
        key = await get_key(self._session, kid)
        if key is not None:
            return key
        if not await get_all_keys(self._session):
            raise NoSigningKeysError()
        raise UnknownKeyError(kid)

    async def rotate(self) -> SigningKeyEntity:
        """Generate and activate a new key, retiring and purging old ones."""
        async with self._lock:
            return await self._rotate_locked()

    def _rotation_due(self, active: SigningKeyEntity) -> bool:
        period = self._settings.key_rotation_period
        if period <= 0:
            return False
        age = self._clock() - _as_utc(active.created_at)
        return age >= timedelta(seconds=period)

    async def _rotate_locked(self) -> SigningKeyEntity:
        # Nothing is written until the new keypair exists.
        keypair = generate_rsa_keypair()
        encrypted_private = encrypt_private_key(
            keypair.private_key_pem, self._settings.signing_key_encryption_key
        )
        now = self._clock()

        try:
            await retire_active(self._session, now)
            entity = await store_key(
                self._session,
                SigningKeyEntity(
                    kid=keypair.kid,
                    algorithm=SIGNING_ALGORITHM,
                    private_key_pem=encrypted_private,
                    public_key_pem=keypair.public_key_pem,
                    is_active=True,
                    created_at=now,
                ),
            )
            cutoff = now - timedelta(seconds=self._settings.key_retention)
            purged = await purge_retired(self._session, cutoff)
            await self._session.commit()
        except IntegrityError:
            await self._session.rollback()
            winner = await get_active_key(self._session)
            if winner is None:
                raise
            logger.info("signing key %s was activated by another process", winner.kid)
            return winner

        logger.info("activated signing key %s", entity.kid)
        if purged:
            logger.info("purged signing keys past retention: %s", ", ".join(purged))
        return entity
