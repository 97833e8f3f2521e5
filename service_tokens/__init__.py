"""
Short-lived HMAC tokens authenticating messages between internal services.

Typical use while publishing::

    services = create_token_services()
    headers[MESSAGING_TOKEN_HEADER] = services.factory.create_for("payments-service")

and while consuming::

    claims = services.validator.validate(headers[MESSAGING_TOKEN_HEADER])
"""

from .abstractions import TokenFactory, TokenValidator
from .bootstrap import TokenServices, create_token_services
from .errors import (
    AudienceMismatch,
    ConfigurationError,
    InvalidDescriptor,
    InvalidTokenReason,
    IssuerMismatch,
    SignatureMismatch,
    TokenExpired,
    TokenInvalid,
    TokenMalformed,
    TokenNotYetValid,
    UnsupportedAlgorithm,
)
from .jwt_hmac import HmacTokenFactory, HmacTokenValidator
from .keys import SigningKey
from .messaging import (
    MESSAGING_AUDIENCE,
    MESSAGING_TOKEN_HEADER,
    MESSAGING_TOKEN_LIFETIME,
    MessagingTokenFactory,
    MessagingTokenValidator,
    build_messaging_policy,
)
from .models import TokenDescriptor, TokenVerificationResponse, ValidationPolicy

__all__ = [
    "TokenFactory",
    "TokenValidator",
    "TokenServices",
    "create_token_services",
    "AudienceMismatch",
    "ConfigurationError",
    "InvalidDescriptor",
    "InvalidTokenReason",
    "IssuerMismatch",
    "SignatureMismatch",
    "TokenExpired",
    "TokenInvalid",
    "TokenMalformed",
    "TokenNotYetValid",
    "UnsupportedAlgorithm",
    "HmacTokenFactory",
    "HmacTokenValidator",
    "SigningKey",
    "MESSAGING_AUDIENCE",
    "MESSAGING_TOKEN_HEADER",
    "MESSAGING_TOKEN_LIFETIME",
    "MessagingTokenFactory",
    "MessagingTokenValidator",
    "build_messaging_policy",
    "TokenDescriptor",
    "TokenVerificationResponse",
    "ValidationPolicy",
]
