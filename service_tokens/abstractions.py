"""
Token factory and validator contracts.

The generic HMAC implementations and the messaging adapters share these
contracts; the adapters hold a generic instance and delegate to it.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .errors import TokenInvalid
from .keys import SigningKey
from .models import TokenDescriptor, TokenVerificationResponse, ValidationPolicy


class TokenFactory(ABC):
    """Creates signed tokens from descriptors."""
    
    @abstractmethod
    def create(self, descriptor: TokenDescriptor, key: Optional[SigningKey] = None) -> str:
        """Mint a compact signed token for ``descriptor``.

        Raises:
            InvalidDescriptor: if the descriptor violates an invariant.
            ConfigurationError: if no signing key is available.
        """


class TokenValidator(ABC):
    """Verifies tokens and returns their claims."""
    
    @abstractmethod
    def validate(self, token: str, policy: Optional[ValidationPolicy] = None) -> Dict[str, Any]:
        """Return the full claim set of ``token``.

        Raises:
            TokenInvalid: subclass naming the first check that failed.
        """
    
    def verify(self, token: str, policy: Optional[ValidationPolicy] = None) -> TokenVerificationResponse:
        """Validate without raising on token failures."""
        try:
            claims = self.validate(token, policy)
        except TokenInvalid as e:
            return TokenVerificationResponse(
                valid=False,
                error=e.message,
                reason=e.reason.value
            )
        
        return TokenVerificationResponse(valid=True, claims=claims)
