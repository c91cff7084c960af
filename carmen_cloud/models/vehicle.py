"""Vehicle API request and result models."""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, RootModel

from carmen_cloud.models.common import InputImage, RecognitionRequest, RecognitionResult


class VehicleService(StrEnum):
    """Sub-analyses offered by the Vehicle API."""

    ANPR = "ANPR"  # plate recognition
    MMR = "MMR"  # make and model recognition
    ADR = "ADR"  # dangerous goods plate recognition


class VehicleRequest(RecognitionRequest):
    """Request for the Vehicle API.

    Example:
        VehicleRequest(
            services=[VehicleService.ANPR, VehicleService.MMR],
            image=InputImage(source=data, mime_type="jpeg", name="plate.jpg"),
            region="eur",
        )
    """

    services: list[VehicleService] = Field(default_factory=list)
    image: InputImage | None = None
    region: str | None = None
    roi_box: str | None = Field(default=None, alias="roi")

    model_config = ConfigDict(validate_assignment=True, populate_by_name=True)

    def selector_codes(self) -> list[str]:
        return [service.value for service in self.services]

    def input_images(self) -> list[InputImage]:
        return [self.image] if self.image is not None else []

    @property
    def roi(self) -> str | None:
        return self.roi_box

    @property
    def subpath(self) -> str | None:
        return self.region


class VehicleResult(RecognitionResult):
    """Decoded Vehicle API response."""

    version: str | None = None
    data: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None

    @property
    def vehicles(self) -> list[dict[str, Any]]:
        """Vehicles found in the image (empty when none)."""
        if not self.data:
            return []
        return list(self.data.get("vehicles") or [])


class Location(BaseModel):
    """A location (country or state) supported for plate recognition."""

    model_config = ConfigDict(extra="allow")

    code: str | None = None
    name: str | None = None


class Locations(RootModel[list[Location]]):
    """Locations returned by the countries lookup."""

    def __iter__(self) -> Iterator[Location]:  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> Location:
        return self.root[index]

    def codes(self) -> list[str]:
        """Location codes in response order."""
        return [location.code for location in self.root if location.code]
