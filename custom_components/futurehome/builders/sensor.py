"""Sensor and binary sensor builders."""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from ..models import ComponentConfig, DeviceIdentity, PlatformMatch, Service
from .common import make_component, on_off_template, resolve_unit, state_template

SENSOR_SUB_KEY = "sensor"


@dataclass(frozen=True)
class SensorType:
    name: str
    device_class: Optional[str]
    state_class: Optional[str]
    unit: Optional[str]
    units: Optional[FrozenSet[str]] = None


SENSOR_TYPES = {
    "sensor_temp": SensorType("Temperature", "temperature", "measurement", "°C", frozenset({"°C", "°F", "K"})),
    "sensor_humid": SensorType("Humidity", "humidity", "measurement", "%", frozenset({"%"})),
    "sensor_lumin": SensorType("Illuminance", "illuminance", "measurement", "lx", frozenset({"lx"})),
    "sensor_power": SensorType("Power", "power", "measurement", "W", frozenset({"W", "kW"})),
    "sensor_co2": SensorType("CO2", "carbon_dioxide", "measurement", "ppm", frozenset({"ppm"})),
    "sensor_wind": SensorType("Wind speed", "wind_speed", "measurement", "m/s", frozenset({"m/s", "km/h", "mph", "kn"})),
    "sensor_rain": SensorType("Rain", "precipitation_intensity", "measurement", "mm/h", frozenset({"mm/h", "in/h"})),
    "sensor_uv": SensorType("UV index", None, "measurement", "UV index", frozenset({"UV index"})),
    "meter_elec": SensorType("Energy", "energy", "total_increasing", "kWh", frozenset({"kWh", "Wh"})),
    "battery": SensorType("Battery", "battery", "measurement", "%", frozenset({"%"})),
}
GENERIC_SENSOR = SensorType("Sensor", None, "measurement", None)
WIND_DIRECTION = SensorType("Wind direction", "wind_direction", "measurement_angle", "°", frozenset({"°"}))

# service type -> (name, device_class, state sub-key)
BINARY_TYPES = {
    "sensor_presence": ("Presence", "occupancy", "presence"),
    "sensor_contact": ("Contact", "opening", "open"),
}


def _sensor(
    kind: SensorType, match: PlatformMatch, service: Service, identity: DeviceIdentity
) -> ComponentConfig:
    return make_component(
        match,
        service,
        identity,
        {
            "name": kind.name,
            "state_topic": identity.state_topic,
            "value_template": state_template(service.address, SENSOR_SUB_KEY),
            "device_class": kind.device_class,
            "state_class": kind.state_class,
            "unit_of_measurement": resolve_unit(service, kind.unit, kind.units),
        },
    )


def build_numeric_sensor(
    match: PlatformMatch, service: Service, identity: DeviceIdentity
) -> Tuple[ComponentConfig, ...]:
    kind = SENSOR_TYPES.get(service.service_type, GENERIC_SENSOR)
    return (_sensor(kind, match, service, identity),)


def build_wind_direction(
    match: PlatformMatch, service: Service, identity: DeviceIdentity
) -> Tuple[ComponentConfig, ...]:
    return (_sensor(WIND_DIRECTION, match, service, identity),)


def build_binary_sensor(
    match: PlatformMatch, service: Service, identity: DeviceIdentity
) -> Tuple[ComponentConfig, ...]:
    name, device_class, sub_key = BINARY_TYPES.get(service.service_type, ("State", None, "state"))
    return (
        make_component(
            match,
            service,
            identity,
            {
                "name": name,
                "state_topic": identity.state_topic,
                "value_template": on_off_template(service.address, sub_key),
                "payload_on": "ON",
                "payload_off": "OFF",
                "device_class": device_class,
            },
        ),
    )
