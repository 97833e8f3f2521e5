"""HS256 JWT issuance and validation."""

from .factory import ALGORITHM, HmacTokenFactory
from .validator import HmacTokenValidator

__all__ = ["ALGORITHM", "HmacTokenFactory", "HmacTokenValidator"]
