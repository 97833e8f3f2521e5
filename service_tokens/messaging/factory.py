"""
Token factory for outbound bus messages.
"""

from typing import Optional

from shared.errors import ConfigurationError
from shared.logging import get_logger
from ..abstractions import TokenFactory
from ..jwt_hmac import HmacTokenFactory
from ..keys import SigningKey
from ..models import TokenDescriptor
from .defaults import MESSAGING_TOKEN_LIFETIME


class MessagingTokenFactory(TokenFactory):
    """Mint the token attached to every message this service publishes.

    The issuer is always the current service. ``create_for`` is the usual
    entry point; ``create`` is kept for callers that need custom claims.
    """
    
    def __init__(self, signing_key: SigningKey, service_name: str, inner: Optional[HmacTokenFactory] = None):
        if not service_name:
            raise ConfigurationError("Messaging token factory requires a service name")
        
        self._key = signing_key
        self._issuer = service_name
        self._inner = inner or HmacTokenFactory(signing_key)
        self.logger = get_logger("tokens.messaging.factory")
    
    @property
    def service_name(self) -> str:
        return self._issuer
    
    def create(self, descriptor: TokenDescriptor, key: Optional[SigningKey] = None) -> str:
        return self._inner.create(descriptor, key if key is not None else self._key)
    
    def create_for(self, destination_service: str) -> str:
        """Create a token from this service to ``destination_service``."""
        descriptor = TokenDescriptor(
            issuer=self._issuer,
            audience=destination_service,
            claims={},
            lifetime=MESSAGING_TOKEN_LIFETIME,
        )
        return self._inner.create(descriptor, self._key)
