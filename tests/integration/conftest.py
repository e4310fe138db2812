"""Fixtures for end-to-end scenarios.

Scenarios run against the offline fake krew unless KREW_HARNESS_BINARY
points at a real krew build.
"""

import os

import pytest

from krew_harness.config import ENV_BINARY
from krew_harness.settings import load_settings


@pytest.fixture
def harness_settings(pytestconfig, request):
    if os.environ.get(ENV_BINARY):
        return load_settings(pytestconfig.rootpath)
    return request.getfixturevalue("fake_settings")
