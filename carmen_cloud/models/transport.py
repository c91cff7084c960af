"""Transportation & cargo code API request and result models."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from carmen_cloud.models.common import InputImage, RecognitionRequest, RecognitionResult


class TransportRequest(RecognitionRequest):
    """Request for the transportation & cargo code API.

    Several images may be sent at once (e.g. the sides of a container); each
    becomes its own ``image`` part. ``type`` selects the code type endpoint.
    """

    images: list[InputImage] = Field(default_factory=list)
    type: str | None = None

    def input_images(self) -> list[InputImage]:
        return list(self.images)

    @property
    def subpath(self) -> str | None:
        return self.type


class TransportResult(RecognitionResult):
    """Decoded transportation & cargo code response."""

    version: str | None = None
    data: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None
