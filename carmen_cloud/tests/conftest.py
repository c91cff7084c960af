"""Pytest configuration and shared fixtures.

This module provides shared fixtures for the client tests:
- clean_env: Settings cache cleared and CARMEN_* variables removed
- recorder: Scripted httpx.MockTransport that records every request
- vehicle_builder / transport_builder / anpr_builder: Builders wired to the recorder

No test performs real network I/O; every exchange goes through
``httpx.MockTransport`` (see ``mock_utils``).
"""

from __future__ import annotations

import os

import pytest

from carmen_cloud.core.config import get_settings
from carmen_cloud.services.anpr_client import AnprClientBuilder
from carmen_cloud.services.client_builder import ClientBuilder
from carmen_cloud.services.transport_client import TransportClientBuilder
from carmen_cloud.services.vehicle_client import VehicleClientBuilder
from carmen_cloud.tests.mock_utils import API_KEY, ENDPOINT, Recorder


@pytest.fixture
def clean_env(monkeypatch):
    """Clean CARMEN_* environment variables and the settings cache."""
    for var in list(os.environ):
        if var.startswith("CARMEN_"):
            monkeypatch.delenv(var, raising=False)
    # Keep a developer's local .env out of the tests
    monkeypatch.chdir(os.path.dirname(__file__))
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def recorder() -> Recorder:
    """Scripted mock HTTP service."""
    return Recorder()


def _wire[B: ClientBuilder](builder: B, recorder: Recorder) -> B:
    transport = recorder.transport()
    return (
        builder.endpoint(ENDPOINT)
        .api_key(API_KEY)
        .http_transport(transport)
        .async_http_transport(transport)
    )


@pytest.fixture
def vehicle_builder(recorder) -> VehicleClientBuilder:
    """Vehicle builder wired to the mock service."""
    return _wire(VehicleClientBuilder(), recorder)


@pytest.fixture
def transport_builder(recorder) -> TransportClientBuilder:
    """Transport builder wired to the mock service."""
    return _wire(TransportClientBuilder(), recorder)


@pytest.fixture
def anpr_builder(recorder) -> AnprClientBuilder:
    """ANPR builder wired to the mock service."""
    return _wire(AnprClientBuilder(), recorder)
