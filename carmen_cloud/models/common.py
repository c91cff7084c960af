"""Shared request and result models for the recognition services."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InputImage(BaseModel):
    """An image submitted to a recognition service.

    ``mime_type`` is the subtype only (``jpeg``, ``png``); a full
    ``image/jpeg`` value is accepted and reduced to its subtype.
    """

    model_config = ConfigDict(frozen=True)

    source: bytes
    mime_type: str = "jpeg"
    name: str | None = None

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: bytes) -> bytes:
        """Reject empty image payloads."""
        if not v:
            raise ValueError("image source must not be empty")
        return v

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Reduce ``image/<subtype>`` to ``<subtype>`` and reject empty values."""
        v = v.strip().lower().removeprefix("image/")
        if not v:
            raise ValueError("image mime type must not be empty")
        return v

    @property
    def content_type(self) -> str:
        """MIME type sent with the multipart part."""
        return f"image/{self.mime_type}"

    @classmethod
    def from_path(cls, path: str | Path, mime_type: str | None = None) -> InputImage:
        """Read an image file, using its name and guessing the mime type from the suffix."""
        image_path = Path(path)
        if mime_type is None:
            guessed, _ = mimetypes.guess_type(image_path.name)
            mime_type = guessed if guessed and guessed.startswith("image/") else "jpeg"
        return cls(source=image_path.read_bytes(), mime_type=mime_type, name=image_path.name)


class RecognitionRequest(BaseModel):
    """Base class for service requests.

    Subclasses expose their fields through the accessors below so that the
    multipart assembler does not need to know each service's request shape.
    """

    model_config = ConfigDict(validate_assignment=True)

    location: str | None = None
    maxreads: int | None = Field(default=None, ge=1)

    def selector_codes(self) -> list[str]:
        """Codes of the sub-analyses to run, in request order."""
        return []

    def input_images(self) -> list[InputImage]:
        """Images to upload, one multipart part each."""
        return []

    @property
    def roi(self) -> str | None:
        """Region of interest, if the service supports one."""
        return None

    @property
    def subpath(self) -> str | None:
        """Routing segment appended to the endpoint."""
        return None


class RecognitionResult(BaseModel):
    """Base class for decoded service responses.

    Unknown response keys are kept as extra attributes. ``request_id`` is not
    part of the body; it is filled from the response headers after decoding.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    request_id: str | None = Field(default=None, exclude=True)

    def to_dict(self) -> dict[str, Any]:
        """Return the decoded body as a dictionary."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
