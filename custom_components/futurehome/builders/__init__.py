"""Component builders, one per platform variant."""
from __future__ import annotations

from typing import Callable, Dict, Tuple

from ..models import ComponentConfig, DeviceIdentity, PlatformMatch, Service, Variant
from .climate import build_fan_mode_select, build_thermostat
from .humidifier import build_humidifier
from .sensor import build_binary_sensor, build_numeric_sensor, build_wind_direction

Builder = Callable[[PlatformMatch, Service, DeviceIdentity], Tuple[ComponentConfig, ...]]

BUILDERS: Dict[Variant, Builder] = {
    Variant.NUMERIC_SENSOR: build_numeric_sensor,
    Variant.WIND_DIRECTION: build_wind_direction,
    Variant.BINARY_SENSOR: build_binary_sensor,
    Variant.THERMOSTAT: build_thermostat,
    Variant.FAN_MODE_SELECT: build_fan_mode_select,
    Variant.HUMIDIFIER: build_humidifier,
}


def build(
    match: PlatformMatch, service: Service, identity: DeviceIdentity
) -> Tuple[ComponentConfig, ...]:
    """Build the components a matched service contributes to its device."""
    return BUILDERS[match.variant](match, service, identity)


__all__ = ["BUILDERS", "build"]
