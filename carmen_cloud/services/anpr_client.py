"""Plate recognition (ANPR) API client."""

from __future__ import annotations

from typing import ClassVar

from carmen_cloud.models.anpr import AnprRequest, AnprResult
from carmen_cloud.services.client_builder import ClientBuilder
from carmen_cloud.services.recognition_client import RecognitionClient


class AnprClient(RecognitionClient[AnprRequest, AnprResult]):
    """Client for the plate recognition API."""

    service_name: ClassVar[str] = "anpr"
    result_model = AnprResult


class AnprClientBuilder(ClientBuilder[AnprClient]):
    """Builder for ``AnprClient``. The service has no feature flags."""

    client_class = AnprClient
    settings_endpoint_field = "anpr_endpoint"


def anpr_client_builder() -> AnprClientBuilder:
    """Create a new plate recognition client builder."""
    return AnprClientBuilder()
