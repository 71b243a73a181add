from .verification import (
    AlreadyVerified,
    ClaimKind,
    ClaimNotAccepted,
    GrantReport,
    IdentityClaim,
    IdentityServiceUnavailable,
    MultipleMatches,
    UserNotFound,
    VerificationError,
    VerificationService,
    VerifiedIdentity,
)
from .warera import WarEraClient, WarEraCountry, WarEraError, WarEraUnavailable, WarEraUser

__all__ = [
    "AlreadyVerified",
    "ClaimKind",
    "ClaimNotAccepted",
    "GrantReport",
    "IdentityClaim",
    "IdentityServiceUnavailable",
    "MultipleMatches",
    "UserNotFound",
    "VerificationError",
    "VerificationService",
    "VerifiedIdentity",
    "WarEraClient",
    "WarEraCountry",
    "WarEraError",
    "WarEraUnavailable",
    "WarEraUser",
]
