import base64
import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

import httpx  # type: ignore

from bitbucket_cloud.config.settings import (
    DEFAULT_BASE_URL,
    AuthType,
    BitbucketSettings,
    get_settings,
)
from bitbucket_cloud.exceptions.bitbucket_exceptions import BitbucketConfigurationError
from bitbucket_cloud.sources.client.http.http_client import HTTPClient
from bitbucket_cloud.sources.client.iclient import IClient


class BitbucketRESTClientViaBasicAuth(HTTPClient):
    """Bitbucket Cloud REST client via Basic Auth (User API Token or App Password)

    This is the standard authentication method for User API Tokens in Bitbucket Cloud.
    The client handles the Base64 encoding of 'username:password' automatically.

    Args:
        base_url: The base URL of the Bitbucket instance (usually https://api.bitbucket.org/2.0)
        username: The Bitbucket username (or email for API Tokens)
        password: The App Password or API Token value
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        auth_str = f"{username}:{password}"
        encoded_auth = base64.b64encode(auth_str.encode("utf-8")).decode("ascii")

        super().__init__(encoded_auth, "Basic", timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip('/')

    def get_base_url(self) -> str:
        """Get the base URL"""
        return self.base_url


class BitbucketRESTClientViaBearer(HTTPClient):
    """Bitbucket Cloud REST client via Bearer Token (Workspace Access Token / OAuth)

    Args:
        base_url: The base URL of the Bitbucket instance
        token: The Access Token (Workspace or OAuth)
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(token, "Bearer", timeout=timeout, transport=transport)
        self.base_url = base_url.rstrip('/')

    def get_base_url(self) -> str:
        """Get the base URL"""
        return self.base_url


BitbucketRESTClient = Union[BitbucketRESTClientViaBasicAuth, BitbucketRESTClientViaBearer]


@dataclass
class BitbucketBasicAuthConfig:
    """Configuration for Bitbucket client via Basic Auth (User API Token)

    Args:
        username: The Bitbucket username or email address
        password: The API Token or App Password
        base_url: The base URL (default: https://api.bitbucket.org/2.0)
        timeout: Request timeout in seconds
    """
    username: str
    password: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0

    def create_client(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> BitbucketRESTClientViaBasicAuth:
        if not self.username or not self.password:
            raise BitbucketConfigurationError("Username (or email) and password (or API token) are required for BASIC auth")
        return BitbucketRESTClientViaBasicAuth(
            self.base_url, self.username, self.password, timeout=self.timeout, transport=transport
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["password"] = "***"
        return data


@dataclass
class BitbucketTokenConfig:
    """Configuration for Bitbucket client via Bearer Token (Workspace Token)

    Args:
        token: The Workspace Access Token or OAuth Access Token
        base_url: The base URL (default: https://api.bitbucket.org/2.0)
        timeout: Request timeout in seconds
    """
    token: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0

    def create_client(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> BitbucketRESTClientViaBearer:
        if not self.token:
            raise BitbucketConfigurationError("Token is required for BEARER auth")
        return BitbucketRESTClientViaBearer(self.base_url, self.token, timeout=self.timeout, transport=transport)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["token"] = "***"
        return data


class BitbucketClient(IClient):
    """Builder class for Bitbucket clients"""

    def __init__(self, client: BitbucketRESTClient) -> None:
        """Initialize with a Bitbucket client object"""
        self.client = client

    def get_client(self) -> BitbucketRESTClient:
        """Return the Bitbucket client object"""
        return self.client

    def get_base_url(self) -> str:
        """Return the base URL"""
        return self.client.get_base_url()

    def extend(self, **options: Any) -> None:
        """Merge extra default options (headers, timeout, proxy, ...) into the transport"""
        self.client.extend(**options)

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "BitbucketClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @classmethod
    def build_with_config(
        cls,
        config: Union[BitbucketBasicAuthConfig, BitbucketTokenConfig],
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "BitbucketClient":
        """Build BitbucketClient with configuration"""
        return cls(config.create_client(transport=transport))

    @classmethod
    def build_from_settings(
        cls,
        logger: logging.Logger,
        settings: Optional[BitbucketSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "BitbucketClient":
        """Build BitbucketClient from settings (environment by default)

        Supports two authentication strategies:
        1. BASIC: For User API Tokens / App Passwords (requires username + password)
        2. BEARER: For Workspace Access Tokens (requires token only)

        Args:
            logger: Logger instance
            settings: Settings to use instead of the environment
            transport: Optional httpx transport
        Returns:
            BitbucketClient instance
        """
        settings = settings or get_settings()

        try:
            if settings.auth_type == AuthType.BASIC:
                if not settings.username or not settings.password:
                    raise BitbucketConfigurationError(
                        "Username (or email) and password (or API token) required for BASIC auth type"
                    )
                config: Union[BitbucketBasicAuthConfig, BitbucketTokenConfig] = BitbucketBasicAuthConfig(
                    username=settings.username,
                    password=settings.password,
                    base_url=settings.base_url,
                    timeout=settings.timeout,
                )
            else:
                if not settings.token:
                    raise BitbucketConfigurationError("Token required for BEARER auth type")
                config = BitbucketTokenConfig(
                    token=settings.token,
                    base_url=settings.base_url,
                    timeout=settings.timeout,
                )

            logger.debug(f"Building Bitbucket client with {settings.auth_type.value} auth for {settings.base_url}")
            return cls.build_with_config(config, transport=transport)

        except BitbucketConfigurationError as e:
            logger.error(f"Failed to build Bitbucket client from settings: {str(e)}")
            raise
