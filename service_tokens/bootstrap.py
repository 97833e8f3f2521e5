"""
Start-up wiring for messaging token services.

Call ``create_token_services`` once while the service boots. It reads the
shared secret and service name from configuration, decodes the signing key
once and shares it between the outbound factory and the inbound validator.

Configuration (environment, ``MESSAGING_`` prefix):

- ``MESSAGING_SYSTEM_TOKEN``: base64 encoded HMAC secret shared by all
  trusted services. Required.
- ``MESSAGING_SERVICE_NAME``: logical name of this service, written to the
  ``iss`` claim.
- ``MESSAGING_TRUSTED_ISSUERS``: comma separated services whose messages
  are accepted. Required while ``MESSAGING_VALIDATE_ISSUER`` is on.
- ``MESSAGING_CLOCK_SKEW_SECONDS``: tolerance for clock drift.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from shared.config import MessagingTokenConfig, get_config
from shared.errors import ConfigurationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .jwt_hmac import HmacTokenFactory, HmacTokenValidator
from .keys import SigningKey
from .messaging import MessagingTokenFactory, MessagingTokenValidator, build_messaging_policy

logger = get_logger("tokens.bootstrap")


@dataclass(frozen=True)
class TokenServices:
    """Factory and validator sharing one signing key."""
    signing_key: SigningKey
    factory: MessagingTokenFactory
    validator: MessagingTokenValidator


def create_token_services(
    config: Optional[MessagingTokenConfig] = None,
    metrics: Optional[MetricsCollector] = None,
) -> TokenServices:
    """Build the messaging token factory and validator from configuration.

    Raises:
        ConfigurationError: if the secret is missing or not base64, or issuer
            validation is enabled without any trusted issuer.
    """
    config = config or get_config()
    
    try:
        if config.system_token is None:
            raise ConfigurationError("Missing token secret")
        
        signing_key = SigningKey.from_base64(config.system_token.get_secret_value())
        
        policy = build_messaging_policy(
            signing_key,
            trusted_issuers=config.trusted_issuer_list,
            validate_issuer=config.validate_issuer,
            clock_skew=timedelta(seconds=config.clock_skew_seconds),
        )
    except ConfigurationError as e:
        logger.error("Messaging token services misconfigured", error=e.message)
        if metrics:
            metrics.record_error("configuration")
        raise
    
    factory = MessagingTokenFactory(
        signing_key,
        config.service_name,
        inner=HmacTokenFactory(signing_key, metrics=metrics),
    )
    validator = MessagingTokenValidator(policy, inner=HmacTokenValidator(metrics=metrics))
    
    logger.info(
        "Messaging token services configured",
        service_name=config.service_name,
        validate_issuer=config.validate_issuer,
        trusted_issuers=sorted(policy.expected_issuers),
        key_bits=signing_key.bit_length
    )
    
    return TokenServices(signing_key=signing_key, factory=factory, validator=validator)
