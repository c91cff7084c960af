"""Translation of typed requests into multipart request bodies.

Each request becomes an ordered list of multipart parts in the tuple shape
``httpx`` accepts for ``files=``:

    ("service", (None, "ANPR,MMR", None))
    ("image", ("plate.jpg", b"...", "image/jpeg"))
    ("location", (None, "HU", None))

Plain fields are sent as parts without a filename, so the body is always
``multipart/form-data`` even when no image is attached. A part is only emitted
when its source value is present and non-empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from carmen_cloud.models.common import RecognitionRequest

type MultipartPart = tuple[str, tuple[str | None, bytes | str, str | None]]


@dataclass(slots=True)
class MultipartPayload:
    """Ordered multipart parts plus the normalized routing subpath."""

    parts: list[MultipartPart] = field(default_factory=list)
    subpath: str = ""

    def add_field(self, name: str, value: str) -> None:
        """Append a plain form field."""
        self.parts.append((name, (None, value, None)))

    def add_file(self, name: str, filename: str | None, content: bytes, content_type: str) -> None:
        """Append a file part."""
        self.parts.append((name, (filename, content, content_type)))

    def names(self) -> list[str]:
        """Part names in emission order."""
        return [name for name, _ in self.parts]

    def fields(self, name: str) -> list[tuple[str | None, bytes | str, str | None]]:
        """All parts with the given name, in emission order."""
        return [value for part_name, value in self.parts if part_name == name]


def normalize_subpath(segment: str | None) -> str:
    """Normalize a routing segment (region or document type).

    Empty or missing segments map to no subpath, segments starting with ``/``
    are used unchanged, anything else is prefixed with ``/``.

    Args:
        segment: Raw routing segment from the request

    Returns:
        Subpath to append to the configured endpoint
    """
    if not segment:
        return ""
    if segment.startswith("/"):
        return segment
    return f"/{segment}"


def assemble(request: RecognitionRequest) -> MultipartPayload:
    """Build the multipart payload for a typed request.

    Args:
        request: Service request

    Returns:
        Ordered parts and the normalized subpath
    """
    payload = MultipartPayload(subpath=normalize_subpath(request.subpath))

    selectors = request.selector_codes()
    if selectors:
        payload.add_field("service", ",".join(selectors))

    for image in request.input_images():
        payload.add_file("image", image.name, image.source, image.content_type)

    if request.location:
        payload.add_field("location", request.location)
    if request.roi:
        payload.add_field("roi", request.roi)
    if request.maxreads is not None:
        payload.add_field("maxreads", str(request.maxreads))

    return payload
