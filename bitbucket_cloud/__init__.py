"""Async typed client for the Bitbucket Cloud REST API 2.0."""

from bitbucket_cloud.exceptions.bitbucket_exceptions import (
    BitbucketConfigurationError,
    BitbucketError,
    BitbucketRequestError,
)
from bitbucket_cloud.sources.client.bitbucket.bitbucket import (
    BitbucketBasicAuthConfig,
    BitbucketClient,
    BitbucketTokenConfig,
)
from bitbucket_cloud.sources.external.bitbucket.bitbucket import BitbucketDataSource

__version__ = "1.0.0"

__all__ = [
    "BitbucketBasicAuthConfig",
    "BitbucketClient",
    "BitbucketConfigurationError",
    "BitbucketDataSource",
    "BitbucketError",
    "BitbucketRequestError",
    "BitbucketTokenConfig",
]
