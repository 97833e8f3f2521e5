"""
Value types describing tokens to mint and the rules used to validate them.
"""

from dataclasses import dataclass
from datetime import timedelta
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

from pydantic import BaseModel

from shared.errors import ConfigurationError
from .errors import InvalidDescriptor
from .keys import SigningKey

# Claims the factory always sets itself
RESERVED_CLAIMS = frozenset({"iss", "aud", "iat", "nbf", "exp"})


@dataclass(frozen=True)
class TokenDescriptor:
    """Immutable description of a token to be minted.

    ``issuer`` and ``audience`` become the ``iss`` and ``aud`` claims,
    ``claims`` holds additional string claims and ``lifetime`` sets ``exp``
    relative to the moment of creation. Invariants are checked by the
    factory when the descriptor is consumed.
    """
    
    issuer: str
    audience: str
    claims: Mapping[str, str]
    lifetime: timedelta
    
    def __post_init__(self):
        if not isinstance(self.claims, Mapping):
            raise InvalidDescriptor("Custom claims must be a mapping", details={"field": "claims"})
        # Detach from the caller's dict so later mutation cannot leak in
        object.__setattr__(self, "claims", MappingProxyType(dict(self.claims)))
    
    def __hash__(self) -> int:
        return hash((self.issuer, self.audience, frozenset(self.claims.items()), self.lifetime))


@dataclass(frozen=True)
class ValidationPolicy:
    """Rules a token must satisfy to be accepted."""
    
    signing_key: SigningKey
    expected_audience: str
    expected_issuer: Union[None, str, Iterable[str]] = None
    validate_issuer: bool = True
    validate_lifetime: bool = True
    clock_skew: timedelta = timedelta(0)
    
    def __post_init__(self):
        if not isinstance(self.signing_key, SigningKey):
            raise ConfigurationError("Validation policy requires a SigningKey")
        if not self.expected_audience:
            raise ConfigurationError("Validation policy requires an expected audience")
        
        issuers = _normalize_issuers(self.expected_issuer)
        object.__setattr__(self, "expected_issuer", issuers)
        if self.validate_issuer and not issuers:
            raise ConfigurationError(
                "Issuer validation is enabled but no expected issuer was supplied"
            )
        
        if self.clock_skew < timedelta(0):
            raise ConfigurationError("Clock skew must not be negative")
    
    @property
    def expected_issuers(self) -> FrozenSet[str]:
        return self.expected_issuer or frozenset()


def _normalize_issuers(value: Union[None, str, Iterable[str]]) -> Optional[FrozenSet[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return frozenset({value}) if value else None
    issuers = frozenset(i for i in value if i)
    return issuers or None


class TokenVerificationResponse(BaseModel):
    """Non-raising outcome of a token verification."""
    valid: bool
    claims: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    reason: Optional[str] = None
