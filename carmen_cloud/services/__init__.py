"""Recognition service clients and the machinery they share."""

from .anpr_client import AnprClient, AnprClientBuilder, anpr_client_builder
from .client_builder import ClientBuilder
from .recognition_client import ClientConfiguration, RecognitionClient
from .request_assembler import MultipartPayload, assemble, normalize_subpath
from .transport import HttpTransport
from .transport_client import TransportClient, TransportClientBuilder, transport_client_builder
from .vehicle_client import VehicleClient, VehicleClientBuilder, vehicle_client_builder

__all__ = [
    "AnprClient",
    "AnprClientBuilder",
    "ClientBuilder",
    "ClientConfiguration",
    "HttpTransport",
    "MultipartPayload",
    "RecognitionClient",
    "TransportClient",
    "TransportClientBuilder",
    "VehicleClient",
    "VehicleClientBuilder",
    "anpr_client_builder",
    "assemble",
    "normalize_subpath",
    "transport_client_builder",
    "vehicle_client_builder",
]
