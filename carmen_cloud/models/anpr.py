"""Plate recognition (ANPR) API request and result models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field

from carmen_cloud.models.common import InputImage, RecognitionRequest, RecognitionResult


class AnprService(StrEnum):
    """Sub-analyses offered by the plate recognition API."""

    ANPR = "ANPR"
    MMR = "MMR"


class AnprRequest(RecognitionRequest):
    """Request for the plate recognition API."""

    services: list[AnprService] = Field(default_factory=list)
    image: InputImage | None = None
    region: str | None = None

    def selector_codes(self) -> list[str]:
        return [service.value for service in self.services]

    def input_images(self) -> list[InputImage]:
        return [self.image] if self.image is not None else []

    @property
    def subpath(self) -> str | None:
        return self.region


class AnprResult(RecognitionResult):
    """Decoded plate recognition response."""

    version: str | None = None
    data: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
