"""Decide which Home Assistant platform(s) a hub service becomes."""
from __future__ import annotations

import logging
from typing import Collection, FrozenSet, Optional

from homeassistant.const import Platform

from .models import PlatformMatch, Service, Variant

_LOGGER = logging.getLogger(__name__)

# Unambiguous service types
SERVICE_VARIANTS = {
    "sensor_direct": (Platform.SENSOR, Variant.WIND_DIRECTION),
    "sensor_temp": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "sensor_humid": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "sensor_lumin": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "sensor_power": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "sensor_co2": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "sensor_wind": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "sensor_rain": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "sensor_uv": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "meter_elec": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "battery": (Platform.SENSOR, Variant.NUMERIC_SENSOR),
    "sensor_presence": (Platform.BINARY_SENSOR, Variant.BINARY_SENSOR),
    "sensor_contact": (Platform.BINARY_SENSOR, Variant.BINARY_SENSOR),
    "thermostat": (Platform.CLIMATE, Variant.THERMOSTAT),
    "humidity-control": (Platform.HUMIDIFIER, Variant.HUMIDIFIER),
}

GENERIC_SENSOR = "sensor"
DIRECTIONAL_UNITS = frozenset({"°", "deg", "degree", "degrees"})


def is_directional(service: Service) -> bool:
    units = service.props.strings("sup_units")
    return bool(units) and units[0].strip().lower() in DIRECTIONAL_UNITS


def classify(
    service: Service, platforms: Optional[Collection[str]] = None
) -> FrozenSet[PlatformMatch]:
    """Return the platform matches of ``service``.

    Services without an address and services of an unknown type yield no
    match. ``platforms`` optionally restricts matches to enabled platforms.
    """
    if not service.address:
        return frozenset()

    matches = set()
    if service.service_type == GENERIC_SENSOR:
        variant = Variant.WIND_DIRECTION if is_directional(service) else Variant.NUMERIC_SENSOR
        matches.add(PlatformMatch(Platform.SENSOR, variant))
    elif service.service_type in SERVICE_VARIANTS:
        platform, variant = SERVICE_VARIANTS[service.service_type]
        matches.add(PlatformMatch(platform, variant))
    else:
        _LOGGER.debug("No platform for service type %s (%s)", service.service_type, service.address)
        return frozenset()

    if service.service_type == "thermostat" and service.props.strings("sup_fan_modes"):
        matches.add(PlatformMatch(Platform.SELECT, Variant.FAN_MODE_SELECT, primary=False))

    if platforms is not None:
        matches = {m for m in matches if m.platform.value in platforms}
    return frozenset(matches)


def ordered(matches: Collection[PlatformMatch]) -> list[PlatformMatch]:
    """Primary match first, then auxiliary ones by platform name."""
    return sorted(matches, key=lambda m: (not m.primary, m.platform.value, m.variant.value))


__all__ = ["classify", "is_directional", "ordered", "SERVICE_VARIANTS"]
