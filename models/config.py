"""Static dashboard configuration: devices, places and map markers."""

from __future__ import annotations

from typing import Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

PlaceType = Literal["waste", "product"]
Number = Union[int, float]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(strict=True, frozen=True)


class DeviceConfig(_ConfigModel):
    """A physical sensor device and the place it is installed at."""

    name: str
    display_name: str
    place_name: str
    display_order: Number
    category: str


class PlaceConfig(_ConfigModel):
    """A waste bin location or product line shown on the dashboard."""

    name: str
    display_name: str
    type: PlaceType
    path: str
    marker_name: str


class MarkerConfig(_ConfigModel):
    """A pin on the factory map, in percentage coordinates."""

    name: str
    x: Number
    y: Number


class DashboardConfig(_ConfigModel):
    """Validated configuration plus the joins the dashboard needs.

    Foreign keys are not checked here: a device pointing at an unknown place
    parses fine and simply never matches a join.
    """

    sensors: Tuple[DeviceConfig, ...]
    places: Tuple[PlaceConfig, ...]
    markers: Tuple[MarkerConfig, ...]

    @classmethod
    def empty(cls) -> "DashboardConfig":
        return cls(sensors=(), places=(), markers=())

    def devices_at(self, place_name: str) -> list[DeviceConfig]:
        return [device for device in self.sensors if device.place_name == place_name]

    def first_device_at(self, place_name: str) -> Optional[DeviceConfig]:
        # Product places are expected to carry at most one device.
        for device in self.sensors:
            if device.place_name == place_name:
                return device
        return None

    def places_of_type(self, place_type: PlaceType) -> list[PlaceConfig]:
        return [place for place in self.places if place.type == place_type]

    def places_at_marker(self, marker_name: str) -> list[PlaceConfig]:
        return [place for place in self.places if place.marker_name == marker_name]
