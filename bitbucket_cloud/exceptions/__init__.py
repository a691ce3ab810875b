"""Bitbucket client exceptions."""

from .bitbucket_exceptions import (
    BitbucketConfigurationError,
    BitbucketError,
    BitbucketRequestError,
)

__all__ = ["BitbucketError", "BitbucketConfigurationError", "BitbucketRequestError"]
