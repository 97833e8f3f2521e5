"""
Generic HMAC-SHA256 JWT factory.
"""

import time
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

import jwt

from shared.errors import ConfigurationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..abstractions import TokenFactory
from ..errors import InvalidDescriptor
from ..keys import SigningKey
from ..models import RESERVED_CLAIMS, TokenDescriptor

ALGORITHM = "HS256"


class HmacTokenFactory(TokenFactory):
    """Mint compact JWTs signed with a shared symmetric key.

    A default key may be bound at construction; a key passed to ``create``
    takes precedence. ``iat`` and ``nbf`` carry the current time with its
    sub-second part and ``exp`` adds the descriptor lifetime, so two
    otherwise identical requests never produce the same token.
    """
    
    def __init__(
        self,
        key: Optional[SigningKey] = None,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._key = key
        self._clock = clock
        self.metrics = metrics
        self.logger = get_logger("tokens.factory")
    
    def create(self, descriptor: TokenDescriptor, key: Optional[SigningKey] = None) -> str:
        signing_key = key if key is not None else self._key
        if signing_key is None:
            raise ConfigurationError("No signing key available for token creation")
        
        self._check_descriptor(descriptor)
        payload = self._build_payload(descriptor)
        
        try:
            token = jwt.encode(payload, signing_key.secret, algorithm=ALGORITHM)
        except jwt.InvalidKeyError:
            raise ConfigurationError("Signing key cannot be used for HMAC") from None
        
        if self.metrics:
            self.metrics.record_token_issued(descriptor.audience)
        
        self.logger.debug(
            "Token issued",
            iss=descriptor.issuer,
            aud=descriptor.audience,
            iat=payload["iat"],
            exp=payload["exp"]
        )
        
        return token
    
    def _build_payload(self, descriptor: TokenDescriptor) -> Dict[str, Any]:
        now = self._clock()
        
        payload: Dict[str, Any] = dict(descriptor.claims)
        payload.update({
            "iss": descriptor.issuer,
            "aud": descriptor.audience,
            "iat": now,
            "nbf": now,
            "exp": now + descriptor.lifetime.total_seconds(),
        })
        return payload
    
    @staticmethod
    def _check_descriptor(descriptor: TokenDescriptor) -> None:
        if not isinstance(descriptor, TokenDescriptor):
            raise InvalidDescriptor("Expected a TokenDescriptor")
        
        if not isinstance(descriptor.issuer, str):
            raise InvalidDescriptor("Issuer must be a string", details={"field": "issuer"})
        
        if not isinstance(descriptor.audience, str) or not descriptor.audience:
            raise InvalidDescriptor("Audience must be a non-empty string", details={"field": "audience"})
        
        lifetime = descriptor.lifetime
        if not isinstance(lifetime, timedelta) or lifetime <= timedelta(0):
            raise InvalidDescriptor("Lifetime must be a positive duration", details={"field": "lifetime"})
        
        for name, value in descriptor.claims.items():
            if not isinstance(name, str) or not isinstance(value, str):
                raise InvalidDescriptor("Custom claims must map strings to strings", details={"field": "claims"})
        
        reserved = sorted(RESERVED_CLAIMS.intersection(descriptor.claims))
        if reserved:
            raise InvalidDescriptor(
                "Custom claims collide with reserved claim names",
                details={"field": "claims", "reserved": reserved}
            )
