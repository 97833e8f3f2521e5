"""
Shared configuration management for the service token library.
"""

from typing import List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="MESSAGING_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )
    
    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")


class MessagingTokenConfig(BaseConfig):
    """Settings for issuing and validating internal messaging tokens."""
    
    # Base64 encoded HMAC secret shared by every trusted service
    system_token: Optional[SecretStr] = Field(default=None)
    
    # Logical name of this service; becomes the iss claim
    service_name: str = Field(default="unknown-service")
    
    # Issuer checks on consumed messages
    validate_issuer: bool = Field(default=True)
    trusted_issuers: str = Field(default="")
    
    clock_skew_seconds: float = Field(default=0, ge=0)
    
    @property
    def trusted_issuer_list(self) -> List[str]:
        return [i.strip() for i in self.trusted_issuers.split(",") if i.strip()]


def get_config(**overrides) -> MessagingTokenConfig:
    """Get messaging token configuration from the environment."""
    return MessagingTokenConfig(**overrides)
