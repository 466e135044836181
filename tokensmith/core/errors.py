"""Error taxonomy for token issuance, role/config policy, and key management.

Policy violations and claim type errors are both request errors, but they are
kept as separate branches so callers (and tests) can tell a malformed claim
from a well-formed claim that the policy refuses.
"""


class IssuanceError(Exception):
    """Base class for every error raised by tokensmith itself."""


class PolicyViolationError(IssuanceError):
    """A claim set or role definition is refused by policy."""


class ReservedClaimError(PolicyViolationError):
    """A structural claim was supplied where only the issuer may set it."""

    def __init__(self, claim: str, *, where: str = "request") -> None:
        self.claim = claim
        super().__init__(f"'{claim}' claim cannot be set in the {where}")


class RoleClaimOverrideError(PolicyViolationError):
    """A request tried to replace a claim fixed by the role."""

    def __init__(self, claim: str) -> None:
        self.claim = claim
        super().__init__(f"'{claim}' claim is fixed by the role")


class DisallowedClaimError(PolicyViolationError):
    """A claim is not in the configured allow-list."""

    def __init__(self, claim: str) -> None:
        self.claim = claim
        super().__init__(f"claim {claim} not permitted")


class AudienceViolationError(PolicyViolationError):
    """An 'aud' value fails the audience pattern or count limit."""


class SubjectViolationError(PolicyViolationError):
    """A 'sub' value fails the role's subject pattern."""


class ClaimTypeError(IssuanceError):
    """A claim value has a type the issuer cannot accept."""


class NotFoundError(IssuanceError):
    """A named resource does not exist."""


class RoleNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown role: {name}")


class UnknownKeyError(NotFoundError):
    def __init__(self, kid: str | None) -> None:
        self.kid = kid
        super().__init__(f"unknown key: {kid}")


class NoSigningKeysError(NotFoundError):
    """The verification key set is empty."""

    def __init__(self) -> None:
        super().__init__("no signing keys configured")


class KeyGenerationError(IssuanceError):
    """Generating a new signing keypair failed; rotation was not applied."""
