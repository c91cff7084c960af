"""Transportation & cargo code API client.

Reads container, wagon and dangerous goods codes. A request may carry several
images (one per side or page); each is uploaded as a separate ``image`` part.
"""

from __future__ import annotations

from typing import ClassVar, Self

from carmen_cloud.models.transport import TransportRequest, TransportResult
from carmen_cloud.services.client_builder import ClientBuilder
from carmen_cloud.services.recognition_client import RecognitionClient


class TransportClient(RecognitionClient[TransportRequest, TransportResult]):
    """Client for the transportation & cargo code API."""

    service_name: ClassVar[str] = "transport"
    result_model = TransportResult


class TransportClientBuilder(ClientBuilder[TransportClient]):
    """Builder for ``TransportClient``."""

    client_class = TransportClient
    feature_flags = {
        "X-Disable-Image-Resizing": "disable_image_resizing",
        "X-Enable-Wide-Range-Analysis": "enable_wide_range_analysis",
        "X-Disable-Checksum-Check": "disable_checksum_check",
        "X-Enable-Full-Us-Accr-Code": "enable_full_us_accr_code",
        "X-Disable-Iso-Code": "disable_iso_code",
    }
    settings_endpoint_field = "transport_endpoint"

    def disable_image_resizing(self, disable_image_resizing: bool) -> Self:
        """Ask the service to process images at their original size."""
        return self._set_flag("disable_image_resizing", disable_image_resizing)

    def enable_wide_range_analysis(self, enable_wide_range_analysis: bool) -> Self:
        """Search the whole image for small or distant codes."""
        return self._set_flag("enable_wide_range_analysis", enable_wide_range_analysis)

    def disable_checksum_check(self, disable_checksum_check: bool) -> Self:
        """Return codes even when their check digit does not validate."""
        return self._set_flag("disable_checksum_check", disable_checksum_check)

    def enable_full_us_accr_code(self, enable_full_us_accr_code: bool) -> Self:
        """Return the full US accreditation code."""
        return self._set_flag("enable_full_us_accr_code", enable_full_us_accr_code)

    def disable_iso_code(self, disable_iso_code: bool) -> Self:
        """Skip reading the ISO size/type code."""
        return self._set_flag("disable_iso_code", disable_iso_code)


def transport_client_builder() -> TransportClientBuilder:
    """Create a new transportation & cargo code client builder."""
    return TransportClientBuilder()
