"""Typed requests and results of the recognition services."""

from carmen_cloud.models.anpr import AnprRequest, AnprResult, AnprService
from carmen_cloud.models.common import InputImage, RecognitionRequest, RecognitionResult
from carmen_cloud.models.transport import TransportRequest, TransportResult
from carmen_cloud.models.vehicle import (
    Location,
    Locations,
    VehicleRequest,
    VehicleResult,
    VehicleService,
)

__all__ = [
    "AnprRequest",
    "AnprResult",
    "AnprService",
    "InputImage",
    "Location",
    "Locations",
    "RecognitionRequest",
    "RecognitionResult",
    "TransportRequest",
    "TransportResult",
    "VehicleRequest",
    "VehicleResult",
    "VehicleService",
]
