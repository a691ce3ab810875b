"""Bitbucket client module."""

from .bitbucket import (
    BitbucketBasicAuthConfig,
    BitbucketClient,
    BitbucketRESTClientViaBasicAuth,
    BitbucketRESTClientViaBearer,
    BitbucketTokenConfig,
)

__all__ = [
    "BitbucketClient",
    "BitbucketBasicAuthConfig",
    "BitbucketTokenConfig",
    "BitbucketRESTClientViaBasicAuth",
    "BitbucketRESTClientViaBearer",
]
