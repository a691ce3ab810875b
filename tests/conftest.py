"""
Global pytest configuration and fixtures for the Bitbucket client tests.

The remote API is replaced by an httpx.MockTransport routed through
MockBitbucketAPI, so no test touches the network.
"""

import os
from typing import Dict, Generator

import httpx  # type: ignore
import pytest  # type: ignore
from faker import Faker  # type: ignore

from bitbucket_cloud.config.settings import reset_settings
from bitbucket_cloud.sources.client.bitbucket.bitbucket import (
    BitbucketBasicAuthConfig,
    BitbucketClient,
)
from bitbucket_cloud.sources.external.bitbucket.bitbucket import BitbucketDataSource
from tests.utils.mock_api import MockBitbucketAPI

fake: Faker = Faker()


# ============================================================================
# Session-level fixtures
# ============================================================================


@pytest.fixture(scope="session")
def faker_instance() -> Faker:
    """
    Provide a Faker instance for generating test data.

    Returns:
        Configured Faker instance
    """
    return fake


# ============================================================================
# Function-level fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """
    Reset environment state and cached settings around each test.
    """
    original_env: Dict[str, str] = os.environ.copy()
    reset_settings()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    reset_settings()


@pytest.fixture
def bitbucket_api() -> MockBitbucketAPI:
    """
    Provide an in-memory Bitbucket API that records every request.
    """
    return MockBitbucketAPI()


@pytest.fixture
def bitbucket_client(bitbucket_api: MockBitbucketAPI) -> BitbucketClient:
    """
    Provide a Basic Auth client wired to the mock API.
    """
    config = BitbucketBasicAuthConfig(username="alice", password="app-password")
    return BitbucketClient.build_with_config(config, transport=httpx.MockTransport(bitbucket_api.handle))


@pytest.fixture
def data_source(bitbucket_client: BitbucketClient) -> BitbucketDataSource:
    """
    Provide a data source backed by the mock API.
    """
    return BitbucketDataSource(bitbucket_client)
