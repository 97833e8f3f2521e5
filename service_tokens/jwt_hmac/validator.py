"""
Generic HMAC-SHA256 JWT validator.
"""

import binascii
import json
import math
import numbers
import time
from typing import Any, Callable, Dict, Optional, Tuple

from jwt.algorithms import HMACAlgorithm
from jwt.utils import base64url_decode

from shared.errors import ConfigurationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..abstractions import TokenValidator
from ..errors import (
    AudienceMismatch,
    IssuerMismatch,
    SignatureMismatch,
    TokenExpired,
    TokenInvalid,
    TokenMalformed,
    TokenNotYetValid,
    UnsupportedAlgorithm,
)
from ..keys import SigningKey
from ..models import ValidationPolicy
from .factory import ALGORITHM

_HS256 = HMACAlgorithm(HMACAlgorithm.SHA256)


class HmacTokenValidator(TokenValidator):
    """Validate compact HS256 JWTs against a ``ValidationPolicy``.

    Checks run in a fixed order and stop at the first failure: structure,
    header algorithm, signature, payload decoding, lifetime, issuer,
    audience. The algorithm named in the header is only ever compared to
    HS256; it never selects how the signature is verified.
    """
    
    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._clock = clock
        self.metrics = metrics
        self.logger = get_logger("tokens.validator")
    
    def validate(self, token: str, policy: Optional[ValidationPolicy] = None) -> Dict[str, Any]:
        if policy is None:
            raise ConfigurationError("A validation policy is required")
        
        try:
            if self.metrics:
                with self.metrics.time_operation("token_validation_duration_seconds"):
                    claims = self._validate(token, policy)
            else:
                claims = self._validate(token, policy)
        except TokenInvalid as e:
            self.logger.warning(
                "Token validation failed",
                reason=e.reason.value,
                error=e.message
            )
            if self.metrics:
                self.metrics.record_token_validation("rejected", e.reason.value)
            raise
        
        if self.metrics:
            self.metrics.record_token_validation("accepted")
        
        self.logger.debug(
            "Token validated",
            iss=claims.get("iss"),
            aud=claims.get("aud"),
            iat=claims.get("iat")
        )
        
        return claims
    
    def _validate(self, token: str, policy: ValidationPolicy) -> Dict[str, Any]:
        header_segment, payload_segment, signature_segment = self._split(token)
        
        header = self._decode_json_segment(header_segment, "header")
        self._check_algorithm(header)
        
        self._check_signature(header_segment, payload_segment, signature_segment, policy.signing_key)
        
        claims = self._decode_json_segment(payload_segment, "payload")
        
        if policy.validate_lifetime:
            self._check_lifetime(claims, policy.clock_skew.total_seconds())
        
        issuer = claims.get("iss")
        if policy.validate_issuer and (not isinstance(issuer, str) or issuer not in policy.expected_issuers):
            raise IssuerMismatch(
                "Token issuer is not trusted",
                details={"issuer": _describe(issuer)}
            )
        
        if claims.get("aud") != policy.expected_audience:
            raise AudienceMismatch(
                "Token audience does not match",
                details={
                    "expected": policy.expected_audience,
                    "audience": _describe(claims.get("aud"))
                }
            )
        
        return dict(claims)
    
    @staticmethod
    def _split(token: Any) -> Tuple[str, str, str]:
        if not isinstance(token, str):
            raise TokenMalformed("Token must be a string")
        
        segments = token.split(".")
        if len(segments) != 3:
            raise TokenMalformed(
                "Token must have exactly three segments",
                details={"segments": len(segments)}
            )
        return segments[0], segments[1], segments[2]
    
    @staticmethod
    def _decode_json_segment(segment: str, name: str) -> Dict[str, Any]:
        try:
            decoded = json.loads(base64url_decode(segment.encode("utf-8")))
        except (binascii.Error, ValueError, UnicodeError, RecursionError):
            raise TokenMalformed(f"Token {name} is not valid base64url JSON") from None
        
        if not isinstance(decoded, dict):
            raise TokenMalformed(f"Token {name} must be a JSON object")
        return decoded
    
    @staticmethod
    def _check_algorithm(header: Dict[str, Any]) -> None:
        alg = header.get("alg")
        if alg != ALGORITHM:
            raise UnsupportedAlgorithm(
                "Token algorithm is not supported",
                details={"alg": _describe(alg)}
            )
    
    @staticmethod
    def _check_signature(
        header_segment: str,
        payload_segment: str,
        signature_segment: str,
        key: SigningKey,
    ) -> None:
        try:
            signature = base64url_decode(signature_segment.encode("utf-8"))
        except (binascii.Error, ValueError, UnicodeError):
            raise TokenMalformed("Token signature is not valid base64url") from None
        
        signing_input = f"{header_segment}.{payload_segment}".encode("utf-8")
        if not _HS256.verify(signing_input, key.secret, signature):
            raise SignatureMismatch("Token signature does not match")
    
    def _check_lifetime(self, claims: Dict[str, Any], skew: float) -> None:
        now = self._clock()
        
        exp = claims.get("exp")
        if not _is_timestamp(exp):
            raise TokenMalformed("Token has no valid expiration")
        if now > exp + skew:
            raise TokenExpired("Token has expired", details={"exp": exp})
        
        if "nbf" in claims:
            nbf = claims["nbf"]
            if not _is_timestamp(nbf):
                raise TokenMalformed("Token not-before claim is invalid")
            if now < nbf - skew:
                raise TokenNotYetValid("Token is not yet valid", details={"nbf": nbf})


def _is_timestamp(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _describe(value: Any) -> Optional[str]:
    # Claims come from the token; keep error details short and printable
    if value is None:
        return None
    return str(value)[:128]
