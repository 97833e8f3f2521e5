"""
Unit tests for HmacTokenValidator.
"""

import time
from datetime import timedelta

import pytest
from jwt.utils import base64url_encode
from prometheus_client import CollectorRegistry

from shared.errors import ConfigurationError
from shared.metrics import MetricsCollector
from shared.test_helpers import MockTokenGenerator, flip_bit, generate_secret
from service_tokens.errors import (
    AudienceMismatch,
    InvalidTokenReason,
    IssuerMismatch,
    SignatureMismatch,
    TokenExpired,
    TokenInvalid,
    TokenMalformed,
    TokenNotYetValid,
    UnsupportedAlgorithm,
)
from service_tokens.jwt_hmac import HmacTokenFactory, HmacTokenValidator
from service_tokens.keys import SigningKey
from service_tokens.models import TokenDescriptor, ValidationPolicy


class TestHmacTokenValidator:
    """Test cases for HmacTokenValidator."""
    
    @pytest.fixture
    def secret(self):
        return generate_secret()
    
    @pytest.fixture
    def signing_key(self, secret):
        return SigningKey(secret)
    
    @pytest.fixture
    def factory(self, signing_key):
        return HmacTokenFactory(signing_key)
    
    @pytest.fixture
    def validator(self):
        return HmacTokenValidator()
    
    @pytest.fixture
    def descriptor(self):
        return TokenDescriptor(
            issuer="orders-service",
            audience="payments-service",
            claims={"sub": "u123"},
            lifetime=timedelta(minutes=3)
        )
    
    @pytest.fixture
    def policy(self, signing_key):
        return ValidationPolicy(
            signing_key=signing_key,
            expected_audience="payments-service",
            expected_issuer={"orders-service"}
        )
    
    @pytest.fixture
    def generator(self, secret):
        return MockTokenGenerator(secret, audience="payments-service")
    
    def test_round_trip(self, factory, validator, descriptor, policy):
        """A freshly minted token validates to its full claim set."""
        before = time.time()
        token = factory.create(descriptor)
        
        claims = validator.validate(token, policy)
        
        now = time.time()
        assert set(claims) == {"sub", "iss", "aud", "iat", "nbf", "exp"}
        assert claims["sub"] == "u123"
        assert claims["iss"] == "orders-service"
        assert claims["aud"] == "payments-service"
        assert before <= claims["iat"] <= now <= claims["exp"]
        assert claims["exp"] - claims["iat"] == 180
    
    def test_returns_fresh_dict(self, factory, validator, descriptor, policy):
        """Each validation returns an independent mapping."""
        token = factory.create(descriptor)
        
        first = validator.validate(token, policy)
        first["sub"] = "tampered"
        
        assert validator.validate(token, policy)["sub"] == "u123"
    
    def test_accepts_tokens_minted_by_pyjwt(self, validator, policy, generator):
        """Any standard HS256 JWT with the right claims is accepted."""
        token = generator.generate_token(generator.claims(sub="u1"))
        
        assert validator.validate(token, policy)["sub"] == "u1"
    
    @pytest.mark.parametrize("position", [0, 5, 17, 30])
    @pytest.mark.parametrize("bit", [0, 1, 3, 7])
    def test_payload_bit_flip(self, factory, validator, descriptor, policy, position, bit):
        """Flipping any single payload bit breaks the signature."""
        token = factory.create(descriptor)
        
        with pytest.raises(SignatureMismatch):
            validator.validate(flip_bit(token, segment=1, position=position, bit=bit), policy)
    
    def test_signature_tamper(self, factory, validator, descriptor, policy):
        """A modified signature is rejected."""
        header, payload, signature = factory.create(descriptor).split(".")
        replacement = "B" if signature[0] == "A" else "A"
        
        with pytest.raises(SignatureMismatch):
            validator.validate(f"{header}.{payload}.{replacement}{signature[1:]}", policy)
    
    def test_key_isolation(self, factory, validator, descriptor, signing_key):
        """A token signed with one key fails under another."""
        token = factory.create(descriptor, signing_key)
        other_policy = ValidationPolicy(
            signing_key=SigningKey(generate_secret()),
            expected_audience="payments-service",
            expected_issuer="orders-service"
        )
        
        with pytest.raises(SignatureMismatch):
            validator.validate(token, other_policy)
    
    def test_expired(self, signing_key, validator, policy):
        """A 1 ms token is expired 50 ms later."""
        factory = HmacTokenFactory(signing_key)
        token = factory.create(TokenDescriptor("orders-service", "payments-service", {}, timedelta(milliseconds=1)))
        
        time.sleep(0.05)
        
        with pytest.raises(TokenExpired) as exc_info:
            validator.validate(token, policy)
        assert exc_info.value.reason is InvalidTokenReason.EXPIRED
    
    def test_clock_skew_tolerates_expiry(self, signing_key, descriptor):
        """Expired tokens within the skew window are accepted."""
        token = HmacTokenFactory(signing_key, clock=lambda: 1_000.0).create(descriptor)
        policy = ValidationPolicy(
            signing_key,
            "payments-service",
            expected_issuer="orders-service",
            clock_skew=timedelta(seconds=30)
        )
        
        assert HmacTokenValidator(clock=lambda: 1_000.0 + 180 + 29).validate(token, policy)
        with pytest.raises(TokenExpired):
            HmacTokenValidator(clock=lambda: 1_000.0 + 180 + 31).validate(token, policy)
    
    def test_not_yet_valid(self, signing_key, descriptor, policy):
        """Tokens from a clock ahead of ours are rejected until nbf."""
        token = HmacTokenFactory(signing_key, clock=lambda: 2_000.0).create(descriptor)
        
        with pytest.raises(TokenNotYetValid):
            HmacTokenValidator(clock=lambda: 1_990.0).validate(token, policy)
    
    def test_clock_skew_tolerates_early_tokens(self, signing_key, descriptor):
        """Tokens whose nbf is within the skew window are accepted."""
        token = HmacTokenFactory(signing_key, clock=lambda: 2_000.0).create(descriptor)
        policy = ValidationPolicy(
            signing_key,
            "payments-service",
            expected_issuer="orders-service",
            clock_skew=timedelta(seconds=30)
        )
        
        assert HmacTokenValidator(clock=lambda: 2_000.0 - 29).validate(token, policy)["sub"] == "u123"
        with pytest.raises(TokenNotYetValid):
            HmacTokenValidator(clock=lambda: 2_000.0 - 31).validate(token, policy)
    
    def test_lifetime_validation_disabled(self, signing_key, descriptor):
        """Without lifetime checks expired tokens pass."""
        token = HmacTokenFactory(signing_key, clock=lambda: 1_000.0).create(descriptor)
        policy = ValidationPolicy(
            signing_key,
            "payments-service",
            expected_issuer="orders-service",
            validate_lifetime=False
        )
        
        assert HmacTokenValidator().validate(token, policy)["sub"] == "u123"
    
    def test_missing_expiration(self, validator, policy, generator):
        """Lifetime checks require an exp claim."""
        payload = generator.claims()
        del payload["exp"]
        
        with pytest.raises(TokenMalformed):
            validator.validate(generator.generate_token(payload), policy)
    
    def test_non_numeric_not_before(self, validator, policy, generator):
        """nbf must be numeric when present."""
        token = generator.craft_token({"alg": "HS256", "typ": "JWT"}, generator.claims(nbf="soon"))
        
        with pytest.raises(TokenMalformed):
            validator.validate(token, policy)
    
    @pytest.mark.parametrize("claim", ["exp", "nbf"])
    def test_timestamp_too_large_for_a_float(self, validator, policy, generator, claim):
        """Integer timestamps beyond the float range are malformed."""
        token = generator.craft_token({"alg": "HS256", "typ": "JWT"}, generator.claims(**{claim: 10 ** 400}))
        
        with pytest.raises(TokenMalformed):
            validator.validate(token, policy)
    
    def test_issuer_mismatch(self, signing_key, validator, policy):
        """Tokens from untrusted services are rejected."""
        token = HmacTokenFactory(signing_key).create(
            TokenDescriptor("rogue-service", "payments-service", {}, timedelta(minutes=3))
        )
        
        with pytest.raises(IssuerMismatch):
            validator.validate(token, policy)
    
    def test_issuer_from_set(self, signing_key, validator):
        """Any issuer of the trusted set is accepted."""
        policy = ValidationPolicy(
            signing_key,
            "payments-service",
            expected_issuer={"orders-service", "inventory-service"}
        )
        token = HmacTokenFactory(signing_key).create(
            TokenDescriptor("inventory-service", "payments-service", {}, timedelta(minutes=3))
        )
        
        assert validator.validate(token, policy)["iss"] == "inventory-service"
    
    def test_issuer_check_disabled(self, signing_key, validator):
        """Issuer is ignored when issuer validation is off."""
        policy = ValidationPolicy(signing_key, "payments-service", validate_issuer=False)
        token = HmacTokenFactory(signing_key).create(
            TokenDescriptor("anyone", "payments-service", {}, timedelta(minutes=3))
        )
        
        assert validator.validate(token, policy)["iss"] == "anyone"
    
    def test_non_string_issuer(self, validator, policy, generator):
        """List-valued issuers never match."""
        token = generator.craft_token({"alg": "HS256", "typ": "JWT"}, generator.claims(iss=["orders-service"]))
        
        with pytest.raises(IssuerMismatch):
            validator.validate(token, policy)
    
    def test_audience_mismatch(self, factory, validator, descriptor, signing_key):
        """A token for payments-service is not valid on the internal bus."""
        token = factory.create(descriptor)
        bus_policy = ValidationPolicy(signing_key, "internal-bus", expected_issuer="orders-service")
        
        with pytest.raises(AudienceMismatch):
            validator.validate(token, bus_policy)
    
    def test_expiry_checked_before_issuer_and_audience(self, signing_key, validator):
        """The first failing check determines the error."""
        token = HmacTokenFactory(signing_key, clock=lambda: 1_000.0).create(
            TokenDescriptor("rogue-service", "elsewhere", {}, timedelta(minutes=3))
        )
        policy = ValidationPolicy(signing_key, "payments-service", expected_issuer="orders-service")
        
        with pytest.raises(TokenExpired):
            validator.validate(token, policy)
    
    def test_issuer_checked_before_audience(self, signing_key, validator):
        """Issuer failures win over audience failures."""
        token = HmacTokenFactory(signing_key).create(
            TokenDescriptor("rogue-service", "elsewhere", {}, timedelta(minutes=3))
        )
        policy = ValidationPolicy(signing_key, "payments-service", expected_issuer="orders-service")
        
        with pytest.raises(IssuerMismatch):
            validator.validate(token, policy)
    
    def test_alg_none_rejected(self, validator, policy, generator):
        """Unsigned tokens are never accepted."""
        with pytest.raises(UnsupportedAlgorithm):
            validator.validate(generator.generate_unsigned_token(), policy)
    
    @pytest.mark.parametrize("alg", ["HS512", "RS256", "ES256", "hs256", None])
    def test_other_algorithms_rejected(self, validator, policy, generator, alg):
        """The header algorithm never selects another verification path."""
        header = {"typ": "JWT"} if alg is None else {"alg": alg, "typ": "JWT"}
        token = generator.craft_token(header, generator.claims())
        
        with pytest.raises(UnsupportedAlgorithm):
            validator.validate(token, policy)
    
    def test_algorithm_checked_before_signature(self, validator, policy, generator):
        """A foreign algorithm is reported even with a bad signature."""
        token = generator.craft_token({"alg": "RS256"}, generator.claims(), secret=b"wrong")
        
        with pytest.raises(UnsupportedAlgorithm):
            validator.validate(token, policy)
    
    @pytest.mark.parametrize("token", [
        "",
        "abc",
        "a.b",
        "a.b.c.d",
        "!!!.e30.sig",
        "e30",
    ])
    def test_structurally_malformed(self, validator, policy, token):
        """Tokens without three decodable segments are malformed."""
        with pytest.raises(TokenMalformed):
            validator.validate(token, policy)
    
    def test_non_string_token(self, validator, policy):
        """Only strings are tokens."""
        with pytest.raises(TokenMalformed):
            validator.validate(b"a.b.c", policy)
    
    def test_header_not_an_object(self, validator, policy, generator):
        """Header must be a JSON object."""
        token = generator.craft_token(["HS256"], generator.claims())
        
        with pytest.raises(TokenMalformed):
            validator.validate(token, policy)
    
    def test_deeply_nested_header(self, validator, policy):
        """A header nested too deep to parse is malformed, not a crash."""
        header = base64url_encode(b"[" * 200_000).decode("ascii")
        token = f"{header}.e30.AAAA"
        
        with pytest.raises(TokenMalformed):
            validator.validate(token, policy)
        assert validator.verify(token, policy).reason == "malformed"
    
    @pytest.mark.parametrize("payload", [b"not json", b"[1, 2]", b"\xff\xfe\x00"])
    def test_signed_payload_not_claims(self, validator, policy, generator, payload):
        """A correctly signed payload that is not a claim object is malformed."""
        token = generator.craft_token({"alg": "HS256", "typ": "JWT"}, payload)
        
        with pytest.raises(TokenMalformed):
            validator.validate(token, policy)
    
    def test_missing_policy(self, factory, validator, descriptor):
        """The generic validator needs a policy."""
        with pytest.raises(ConfigurationError):
            validator.validate(factory.create(descriptor))
    
    def test_failures_share_base_type(self, factory, validator, descriptor, signing_key):
        """All validation failures are TokenInvalid authentication errors."""
        token = factory.create(descriptor)
        bus_policy = ValidationPolicy(signing_key, "internal-bus", expected_issuer="orders-service")
        
        with pytest.raises(TokenInvalid) as exc_info:
            validator.validate(token, bus_policy)
        
        response = exc_info.value.to_response()
        assert response.code == "AUTHENTICATION_ERROR"
        assert response.details["reason"] == "audience_mismatch"
        assert token not in str(response.model_dump())
    
    def test_verify_success(self, factory, validator, descriptor, policy):
        """verify wraps a successful validation."""
        result = validator.verify(factory.create(descriptor), policy)
        
        assert result.valid is True
        assert result.claims["sub"] == "u123"
        assert result.error is None
    
    def test_verify_failure(self, validator, policy):
        """verify reports failures without raising or leaking claims."""
        result = validator.verify("a.b", policy)
        
        assert result.valid is False
        assert result.claims is None
        assert result.reason == "malformed"
    
    def test_validations_are_counted(self, factory, descriptor, policy):
        """Accepted and rejected validations are recorded by reason."""
        registry = CollectorRegistry()
        validator = HmacTokenValidator(metrics=MetricsCollector("payments-service", registry))
        
        validator.validate(factory.create(descriptor), policy)
        with pytest.raises(TokenMalformed):
            validator.validate("a.b", policy)
        
        accepted = registry.get_sample_value(
            "token_validations_total",
            {"status": "accepted", "reason": "ok", "service": "payments-service"}
        )
        rejected = registry.get_sample_value(
            "token_validations_total",
            {"status": "rejected", "reason": "malformed", "service": "payments-service"}
        )
        observed = registry.get_sample_value(
            "token_validation_duration_seconds_count",
            {"service": "payments-service"}
        )
        assert accepted == 1.0
        assert rejected == 1.0
        assert observed == 2.0
