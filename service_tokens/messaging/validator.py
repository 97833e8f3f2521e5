"""
Token validator for inbound bus messages.
"""

from typing import Any, Dict, Optional

from shared.errors import ConfigurationError
from shared.logging import get_logger
from ..abstractions import TokenValidator
from ..jwt_hmac import HmacTokenValidator
from ..models import ValidationPolicy
from .defaults import MESSAGING_AUDIENCE


class MessagingTokenValidator(TokenValidator):
    """Validate the token found on a consumed message.

    The policy is fixed at construction; a policy passed to ``validate`` is
    ignored so one consumer cannot loosen the convention for a single call.
    Any ``TokenInvalid`` raised here should make the consume pipeline reject
    the message.
    """
    
    def __init__(self, policy: ValidationPolicy, inner: Optional[HmacTokenValidator] = None):
        if policy.expected_audience != MESSAGING_AUDIENCE:
            raise ConfigurationError(
                "Messaging validation policy must expect the internal bus audience",
                details={"expected": MESSAGING_AUDIENCE, "configured": policy.expected_audience}
            )
        if not policy.validate_lifetime:
            raise ConfigurationError("Messaging validation policy must validate token lifetime")
        
        self._policy = policy
        self._inner = inner or HmacTokenValidator()
        self.logger = get_logger("tokens.messaging.validator")
    
    @property
    def policy(self) -> ValidationPolicy:
        return self._policy
    
    def validate(self, token: str, policy: Optional[ValidationPolicy] = None) -> Dict[str, Any]:
        if policy is not None and policy != self._policy:
            self.logger.debug("Ignoring per-call validation policy")
        return self._inner.validate(token, self._policy)
