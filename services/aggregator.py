"""Aggregation of normalized sensor values into the home dashboard payload."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Iterable, Optional

from app.schemas import (
    DashboardPayload,
    MapMarkerView,
    MarkerItem,
    ProductGroup,
    ProductView,
    WasteCategoryGroup,
    WasteSensorView,
)
from models.config import DashboardConfig, DeviceConfig, PlaceConfig
from models.records import DistanceValue, NormalizedValue, WeightValue
from services.metrics import DEFAULT_ACTIVE_THRESHOLD_HOURS, is_active, round_half_up

logger = logging.getLogger(__name__)


class DashboardAggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def build(
        self,
        reference_time: datetime,
        config: DashboardConfig,
        values: Iterable[NormalizedValue],
        threshold_hours: float = DEFAULT_ACTIVE_THRESHOLD_HOURS,
    ) -> DashboardPayload:
        by_device: Dict[str, NormalizedValue] = {value.device_name: value for value in values}

        waste_categories = [
            self._waste_group(place, config.devices_at(place.name), by_device, reference_time, threshold_hours)
            for place in config.places_of_type("waste")
        ]
        products = [
            self._product_group(
                place, config.first_device_at(place.name), by_device, reference_time, threshold_hours
            )
            for place in config.places_of_type("product")
        ]
        map_markers = [
            MapMarkerView(
                name=marker.name,
                x=marker.x,
                y=marker.y,
                items=[
                    MarkerItem(name=place.display_name, path=place.path)
                    for place in config.places_at_marker(marker.name)
                ],
            )
            for marker in config.markers
        ]

        return DashboardPayload(
            timestamp=reference_time,
            waste_categories=waste_categories,
            products=products,
            map_markers=map_markers,
        )

    def _waste_group(
        self,
        place: PlaceConfig,
        devices: list[DeviceConfig],
        by_device: Dict[str, NormalizedValue],
        reference_time: datetime,
        threshold_hours: float,
    ) -> WasteCategoryGroup:
        sensors: list[WasteSensorView] = []
        for device in devices:
            value = by_device.get(device.name)
            if value is None:
                logger.warning(
                    "No sensor value for device",
                    extra={"device_name": device.name},
                )
            percentage = value.value.distance if value and isinstance(value.value, DistanceValue) else 0
            sensors.append(
                WasteSensorView(
                    name=device.display_name,
                    percentage=percentage,
                    active=_active(value, reference_time, threshold_hours),
                    updated_at=value.time if value else None,
                    display_order=device.display_order,
                    category=device.category,
                )
            )

        sensors.sort(key=lambda sensor: sensor.display_order)
        return WasteCategoryGroup(title=place.display_name, sensors=sensors, path=place.path)

    def _product_group(
        self,
        place: PlaceConfig,
        device: Optional[DeviceConfig],
        by_device: Dict[str, NormalizedValue],
        reference_time: datetime,
        threshold_hours: float,
    ) -> ProductGroup:
        value = by_device.get(device.name) if device else None
        weight = (
            round_half_up(value.value.weight)
            if value and isinstance(value.value, WeightValue)
            else 0
        )
        product = ProductView(
            name=place.display_name,
            weight=weight,
            active=_active(value, reference_time, threshold_hours),
            updated_at=value.time if value else None,
            display_order=device.display_order if device else 0,
            category=device.category if device else "",
        )
        return ProductGroup(title=place.display_name, product=product, path=place.path)


def _active(value: Optional[NormalizedValue], reference_time: datetime, threshold_hours: float) -> bool:
    return is_active(value.time if value else None, reference_time, threshold_hours)
