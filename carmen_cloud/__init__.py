"""Python client for the Carmen Cloud recognition services."""

from carmen_cloud.core.exceptions import ClientError, ConfigurationError, ErrorKind
from carmen_cloud.core.retry import BackoffStrategy, RetryContext, RetryPolicy, default_retry
from carmen_cloud.models import (
    AnprRequest,
    AnprResult,
    AnprService,
    InputImage,
    Location,
    Locations,
    TransportRequest,
    TransportResult,
    VehicleRequest,
    VehicleResult,
    VehicleService,
)
from carmen_cloud.services import (
    AnprClient,
    AnprClientBuilder,
    ClientConfiguration,
    TransportClient,
    TransportClientBuilder,
    VehicleClient,
    VehicleClientBuilder,
    anpr_client_builder,
    transport_client_builder,
    vehicle_client_builder,
)

__version__ = "0.1.0"

__all__ = [
    "AnprClient",
    "AnprClientBuilder",
    "AnprRequest",
    "AnprResult",
    "AnprService",
    "BackoffStrategy",
    "ClientConfiguration",
    "ClientError",
    "ConfigurationError",
    "ErrorKind",
    "InputImage",
    "Location",
    "Locations",
    "RetryContext",
    "RetryPolicy",
    "TransportClient",
    "TransportClientBuilder",
    "TransportRequest",
    "TransportResult",
    "VehicleClient",
    "VehicleClientBuilder",
    "VehicleRequest",
    "VehicleResult",
    "VehicleService",
    "anpr_client_builder",
    "default_retry",
    "transport_client_builder",
    "vehicle_client_builder",
]
