"""
Client configuration settings.

Settings are loaded from environment variables, with defaults that point
at Bitbucket Cloud.
"""

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator  # type: ignore

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0"


class AuthType(str, Enum):
    """Supported authentication strategies."""
    BASIC = "BASIC"
    BEARER = "BEARER"


class BitbucketSettings(BaseModel):
    """
    Bitbucket client settings.

    BASIC uses a username (or email) with an App Password / API token,
    BEARER uses a workspace or OAuth access token.
    """

    auth_type: AuthType = Field(default=AuthType.BASIC, description="Authentication strategy")
    username: Optional[str] = Field(default=None, description="Bitbucket username or email")
    password: Optional[str] = Field(default=None, description="App Password or API token")
    token: Optional[str] = Field(default=None, description="Workspace or OAuth access token")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Base API URL")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Ensure base URL doesn't end with trailing slash."""
        return v.rstrip("/")

    @field_validator("auth_type", mode="before")
    @classmethod
    def normalize_auth_type(cls, v: object) -> object:
        # Accept the aliases used by connector configs
        if isinstance(v, str):
            v = v.upper()
            if v == "USERNAME_PASSWORD":
                return AuthType.BASIC
            if v == "TOKEN":
                return AuthType.BEARER
        return v

    @classmethod
    def from_env(cls) -> "BitbucketSettings":
        """
        Load settings from environment variables.

        Returns:
            BitbucketSettings instance with values from environment
        """
        return cls(
            auth_type=os.getenv("BITBUCKET_AUTH_TYPE", "BASIC"),
            username=os.getenv("BITBUCKET_USERNAME"),
            password=os.getenv("BITBUCKET_PASSWORD"),
            token=os.getenv("BITBUCKET_TOKEN"),
            base_url=os.getenv("BITBUCKET_BASE_URL", DEFAULT_BASE_URL),
            timeout=float(os.getenv("BITBUCKET_TIMEOUT", "30")),
            log_level=os.getenv("BITBUCKET_LOG_LEVEL", "INFO"),
        )


# Global settings instance
_settings: Optional[BitbucketSettings] = None


def get_settings() -> BitbucketSettings:
    """
    Get settings singleton.

    Returns:
        BitbucketSettings instance
    """
    global _settings
    if _settings is None:
        _settings = BitbucketSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
