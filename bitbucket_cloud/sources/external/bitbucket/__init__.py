"""Bitbucket data source module."""

from .bitbucket import BitbucketDataSource
from .pagination import collect_values, iterate_pages

__all__ = ["BitbucketDataSource", "collect_values", "iterate_pages"]
