"""Vehicle API client.

Recognizes plates, make/model and dangerous goods plates on vehicle images,
and lists the locations supported for plate recognition.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Self

from carmen_cloud.core.logging import get_logger
from carmen_cloud.core.retry import RetryContext
from carmen_cloud.models.vehicle import Locations, VehicleRequest, VehicleResult
from carmen_cloud.services.client_builder import ClientBuilder
from carmen_cloud.services.error_classifier import decode_result
from carmen_cloud.services.recognition_client import RecognitionClient

logger = get_logger(__name__)

LOCATIONS_PATH = "/countries"


class VehicleClient(RecognitionClient[VehicleRequest, VehicleResult]):
    """Client for the Vehicle API.

    Usage:
        client = vehicle_client_builder().endpoint(url).api_key(key).build()
        result = client.search(VehicleRequest(services=["ANPR"], image=image, region="eur"))
        locations = client.get_locations()
    """

    service_name: ClassVar[str] = "vehicle"
    result_model = VehicleResult

    def get_locations(self, context: Mapping[str, Any] | None = None) -> Locations:
        """List the locations supported for plate recognition.

        Raises:
            ClientError: Terminal failure
        """
        return self._run_sync(self._get_locations, context)

    async def get_locations_async(self, context: Mapping[str, Any] | None = None) -> Locations:
        """List the locations supported for plate recognition.

        Raises:
            ClientError: Terminal failure
        """
        retry_context = RetryContext.coerce(context)

        async def attempt_once() -> Locations:
            response = await self._exchange_async("GET", LOCATIONS_PATH)
            return decode_result(response, Locations)

        return await self._execute_async(attempt_once, retry_context, operation="get_locations")

    def _get_locations(self, retry_context: RetryContext) -> Locations:
        def attempt_once() -> Locations:
            response = self._exchange("GET", LOCATIONS_PATH)
            return decode_result(response, Locations)

        return self._execute(attempt_once, retry_context, operation="get_locations")


class VehicleClientBuilder(ClientBuilder[VehicleClient]):
    """Builder for ``VehicleClient``."""

    client_class = VehicleClient
    feature_flags = {
        "X-Disable-Call-Statistics": "disable_call_statistics",
        "X-Disable-Image-Resizing": "disable_image_resizing",
        "X-Enable-Wide-Range-Analysis": "enable_wide_range_analysis",
    }
    settings_endpoint_field = "vehicle_endpoint"

    def disable_call_statistics(self, disable_call_statistics: bool) -> Self:
        """Exclude the calls from usage statistics."""
        return self._set_flag("disable_call_statistics", disable_call_statistics)

    def disable_image_resizing(self, disable_image_resizing: bool) -> Self:
        """Ask the service to process images at their original size."""
        return self._set_flag("disable_image_resizing", disable_image_resizing)

    def enable_wide_range_analysis(self, enable_wide_range_analysis: bool) -> Self:
        """Search the whole image for small or distant vehicles."""
        return self._set_flag("enable_wide_range_analysis", enable_wide_range_analysis)


def vehicle_client_builder() -> VehicleClientBuilder:
    """Create a new Vehicle API client builder."""
    return VehicleClientBuilder()
