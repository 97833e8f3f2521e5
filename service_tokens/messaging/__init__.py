"""Internal bus conventions layered over the generic HMAC factory/validator."""

from .defaults import (
    MESSAGING_AUDIENCE,
    MESSAGING_TOKEN_HEADER,
    MESSAGING_TOKEN_LIFETIME,
    build_messaging_policy,
)
from .factory import MessagingTokenFactory
from .validator import MessagingTokenValidator

__all__ = [
    "MESSAGING_AUDIENCE",
    "MESSAGING_TOKEN_HEADER",
    "MESSAGING_TOKEN_LIFETIME",
    "build_messaging_policy",
    "MessagingTokenFactory",
    "MessagingTokenValidator",
]
