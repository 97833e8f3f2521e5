"""
Fixed settings of the token attached to every internal bus message.

The audience is shared by every consumer so a token minted for another
channel is never accepted on the bus. The lifetime bounds the replay window
while leaving room for normal delivery delays and retries.
"""

from datetime import timedelta
from typing import Iterable, Optional

from ..keys import SigningKey
from ..models import ValidationPolicy

MESSAGING_AUDIENCE = "internal-bus"
MESSAGING_TOKEN_LIFETIME = timedelta(minutes=3)

# Message header carrying the token; read and written by the bus integration
MESSAGING_TOKEN_HEADER = "X-Messaging-Token"


def build_messaging_policy(
    signing_key: SigningKey,
    trusted_issuers: Optional[Iterable[str]] = None,
    validate_issuer: bool = True,
    clock_skew: timedelta = timedelta(0),
) -> ValidationPolicy:
    """Build the validation policy used by bus consumers."""
    return ValidationPolicy(
        signing_key=signing_key,
        expected_audience=MESSAGING_AUDIENCE,
        expected_issuer=trusted_issuers,
        validate_issuer=validate_issuer,
        validate_lifetime=True,
        clock_skew=clock_skew,
    )
