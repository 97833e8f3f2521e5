"""
In-memory symmetric signing key.
"""

import base64
import binascii
import hmac
from typing import Optional

from shared.errors import ConfigurationError
from shared.logging import get_logger

# Recommended minimum HMAC-SHA256 key size
MIN_KEY_BITS = 256

logger = get_logger("tokens.keys")


class SigningKey:
    """Shared HMAC secret.

    The raw bytes are exposed only through ``secret`` for signing. The key
    never shows up in ``repr`` and refuses to be pickled.
    """
    
    __slots__ = ("_secret",)
    
    def __init__(self, secret: bytes):
        if not isinstance(secret, (bytes, bytearray)):
            raise ConfigurationError("Signing key must be bytes")
        if not secret:
            raise ConfigurationError("Signing key must not be empty")
        self._secret = bytes(secret)
        if self.bit_length < MIN_KEY_BITS:
            logger.warning(
                "Signing key is shorter than recommended",
                key_bits=self.bit_length,
                recommended_bits=MIN_KEY_BITS
            )
    
    @classmethod
    def from_base64(cls, value: Optional[str]) -> "SigningKey":
        """Decode a base64 configuration value into a key."""
        if not value:
            raise ConfigurationError("Missing token secret")
        try:
            raw = base64.b64decode(value.strip(), validate=True)
        except (binascii.Error, ValueError):
            # The value itself is never echoed back
            raise ConfigurationError("Token secret is not valid base64") from None
        return cls(raw)
    
    @property
    def secret(self) -> bytes:
        return self._secret
    
    @property
    def bit_length(self) -> int:
        return len(self._secret) * 8
    
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SigningKey):
            return NotImplemented
        return hmac.compare_digest(self._secret, other._secret)
    
    def __hash__(self) -> int:
        return hash((SigningKey, self.bit_length))
    
    def __repr__(self) -> str:
        return f"SigningKey(<redacted>, bits={self.bit_length})"
    
    __str__ = __repr__
    
    def __reduce__(self):
        raise TypeError("SigningKey cannot be serialized")
