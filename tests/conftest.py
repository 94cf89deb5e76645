"""Shared test fixtures."""

import pytest

from commit_haiku.services import rate_limit
from tests.fakes import FakeModelClient, FakeRuntime


@pytest.fixture(autouse=True)
def reset_rate_limits():
    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def model_client():
    return FakeModelClient()
