"""
Error taxonomy for token issuance and validation.
"""

from enum import Enum
from typing import Any, Dict, Optional

from shared.errors import AuthenticationError, ConfigurationError, ValidationError

__all__ = [
    "ConfigurationError",
    "InvalidDescriptor",
    "InvalidTokenReason",
    "TokenInvalid",
    "TokenMalformed",
    "UnsupportedAlgorithm",
    "SignatureMismatch",
    "TokenExpired",
    "TokenNotYetValid",
    "IssuerMismatch",
    "AudienceMismatch",
]


class InvalidTokenReason(str, Enum):
    """Why a token was rejected."""
    MALFORMED = "malformed"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    SIGNATURE_MISMATCH = "signature_mismatch"
    EXPIRED = "expired"
    NOT_YET_VALID = "not_yet_valid"
    ISSUER_MISMATCH = "issuer_mismatch"
    AUDIENCE_MISMATCH = "audience_mismatch"


class InvalidDescriptor(ValidationError):
    """A token descriptor violates one of its invariants."""
    
    def __init__(self, message: str = "Invalid token descriptor", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class TokenInvalid(AuthenticationError):
    """A token failed validation. Subclasses name the failed check."""
    
    reason: InvalidTokenReason = InvalidTokenReason.MALFORMED
    
    def __init__(self, message: str = "Invalid token", details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        details["reason"] = self.reason.value
        super().__init__(message, details)


class TokenMalformed(TokenInvalid):
    reason = InvalidTokenReason.MALFORMED


class UnsupportedAlgorithm(TokenInvalid):
    reason = InvalidTokenReason.UNSUPPORTED_ALGORITHM


class SignatureMismatch(TokenInvalid):
    reason = InvalidTokenReason.SIGNATURE_MISMATCH


class TokenExpired(TokenInvalid):
    reason = InvalidTokenReason.EXPIRED


class TokenNotYetValid(TokenInvalid):
    reason = InvalidTokenReason.NOT_YET_VALID


class IssuerMismatch(TokenInvalid):
    reason = InvalidTokenReason.ISSUER_MISMATCH


class AudienceMismatch(TokenInvalid):
    reason = InvalidTokenReason.AUDIENCE_MISMATCH
