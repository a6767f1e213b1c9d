"""Home Assistant MQTT discovery schemas supported by the bridge.

Each platform is described by the fields it accepts, the fields it
requires, documented defaults and the value domain of enumerated fields.
The catalog is built at import time and never mutated.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from homeassistant.const import Platform

from .models import ComponentConfig

_LOGGER = logging.getLogger(__name__)

COMMON_FIELDS = frozenset(
    {
        "availability_topic",
        "device",
        "enabled_by_default",
        "encoding",
        "entity_category",
        "entity_picture",
        "icon",
        "json_attributes_template",
        "json_attributes_topic",
        "name",
        "object_id",
        "payload_available",
        "payload_not_available",
        "qos",
        "unique_id",
    }
)

# Templates whose topic is not derived by swapping the "_template" suffix.
TEMPLATE_TOPICS = {
    "value_template": "state_topic",
    "state_value_template": "state_topic",
    "preset_mode_value_template": "preset_mode_state_topic",
}

ENTITY_CATEGORIES = frozenset({"config", "diagnostic"})


@dataclass(frozen=True)
class ComponentSchema:
    platform: Platform
    fields: FrozenSet[str]
    required: FrozenSet[str] = frozenset()
    defaults: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    domains: Mapping[str, FrozenSet[Any]] = field(default_factory=lambda: MappingProxyType({}))

    def accepts(self, key: str) -> bool:
        return key in self.fields or key in COMMON_FIELDS

    def default(self, key: str) -> Any:
        value = self.defaults.get(key)
        if isinstance(value, tuple):
            return list(value)
        return value


SENSOR = ComponentSchema(
    platform=Platform.SENSOR,
    fields=frozenset(
        {
            "device_class",
            "expire_after",
            "force_update",
            "last_reset_value_template",
            "state_class",
            "state_topic",
            "suggested_display_precision",
            "unit_of_measurement",
            "value_template",
        }
    ),
    required=frozenset({"state_topic"}),
    defaults=MappingProxyType({"force_update": False, "expire_after": 0}),
    domains=MappingProxyType(
        {
            "device_class": frozenset(
                {
                    "battery",
                    "carbon_dioxide",
                    "energy",
                    "humidity",
                    "illuminance",
                    "power",
                    "precipitation_intensity",
                    "temperature",
                    "wind_direction",
                    "wind_speed",
                }
            ),
            "state_class": frozenset({"measurement", "measurement_angle", "total", "total_increasing"}),
        }
    ),
)

BINARY_SENSOR = ComponentSchema(
    platform=Platform.BINARY_SENSOR,
    fields=frozenset(
        {
            "device_class",
            "expire_after",
            "force_update",
            "off_delay",
            "payload_off",
            "payload_on",
            "state_topic",
            "value_template",
        }
    ),
    required=frozenset({"state_topic"}),
    defaults=MappingProxyType({"payload_on": "ON", "payload_off": "OFF", "force_update": False}),
    domains=MappingProxyType(
        {
            "device_class": frozenset(
                {"door", "moisture", "motion", "occupancy", "opening", "smoke", "tamper", "window"}
            ),
        }
    ),
)

CLIMATE = ComponentSchema(
    platform=Platform.CLIMATE,
    fields=frozenset(
        {
            "action_template",
            "action_topic",
            "current_humidity_template",
            "current_humidity_topic",
            "current_temperature_template",
            "current_temperature_topic",
            "fan_mode_command_template",
            "fan_mode_command_topic",
            "fan_mode_state_template",
            "fan_mode_state_topic",
            "fan_modes",
            "initial",
            "max_humidity",
            "max_temp",
            "min_humidity",
            "min_temp",
            "mode_command_template",
            "mode_command_topic",
            "mode_state_template",
            "mode_state_topic",
            "modes",
            "optimistic",
            "payload_off",
            "payload_on",
            "power_command_template",
            "power_command_topic",
            "precision",
            "preset_mode_command_template",
            "preset_mode_command_topic",
            "preset_mode_state_topic",
            "preset_mode_value_template",
            "preset_modes",
            "retain",
            "swing_mode_command_template",
            "swing_mode_command_topic",
            "swing_mode_state_template",
            "swing_mode_state_topic",
            "swing_modes",
            "target_humidity_command_template",
            "target_humidity_command_topic",
            "target_humidity_state_template",
            "target_humidity_state_topic",
            "temp_step",
            "temperature_command_template",
            "temperature_command_topic",
            "temperature_state_template",
            "temperature_state_topic",
            "temperature_unit",
            "value_template",
        }
    ),
    defaults=MappingProxyType(
        {
            "modes": ("auto", "off", "cool", "heat", "dry", "fan_only"),
            "fan_modes": ("auto", "low", "medium", "high"),
            "min_temp": 7.0,
            "max_temp": 35.0,
            "temp_step": 1.0,
            "min_humidity": 30.0,
            "max_humidity": 99.0,
            "optimistic": False,
            "retain": False,
        }
    ),
    domains=MappingProxyType(
        {
            "modes": frozenset({"auto", "off", "cool", "heat", "dry", "fan_only"}),
            "precision": frozenset({0.1, 0.5, 1.0}),
            "temperature_unit": frozenset({"C", "F"}),
        }
    ),
)

HUMIDIFIER = ComponentSchema(
    platform=Platform.HUMIDIFIER,
    fields=frozenset(
        {
            "action_template",
            "action_topic",
            "command_template",
            "command_topic",
            "current_humidity_template",
            "current_humidity_topic",
            "device_class",
            "max_humidity",
            "min_humidity",
            "mode_command_template",
            "mode_command_topic",
            "mode_state_template",
            "mode_state_topic",
            "modes",
            "optimistic",
            "payload_off",
            "payload_on",
            "payload_reset_humidity",
            "payload_reset_mode",
            "retain",
            "state_topic",
            "state_value_template",
            "target_humidity_command_template",
            "target_humidity_command_topic",
            "target_humidity_state_template",
            "target_humidity_state_topic",
        }
    ),
    required=frozenset({"command_topic", "target_humidity_command_topic"}),
    defaults=MappingProxyType(
        {
            "device_class": "humidifier",
            "min_humidity": 0.0,
            "max_humidity": 100.0,
            "payload_on": "ON",
            "payload_off": "OFF",
            "payload_reset_humidity": "None",
            "payload_reset_mode": "None",
            "optimistic": False,
            "retain": False,
        }
    ),
    domains=MappingProxyType({"device_class": frozenset({"humidifier", "dehumidifier"})}),
)

SELECT = ComponentSchema(
    platform=Platform.SELECT,
    fields=frozenset(
        {
            "command_template",
            "command_topic",
            "optimistic",
            "options",
            "retain",
            "state_topic",
            "value_template",
        }
    ),
    required=frozenset({"command_topic", "options"}),
    defaults=MappingProxyType({"optimistic": False, "retain": False}),
)

CATALOG: Mapping[Platform, ComponentSchema] = MappingProxyType(
    {schema.platform: schema for schema in (SENSOR, BINARY_SENSOR, CLIMATE, HUMIDIFIER, SELECT)}
)


def schema_for(platform: Platform) -> Optional[ComponentSchema]:
    return CATALOG.get(platform)


def topic_for_template(key: str) -> Optional[str]:
    """Return the topic field a template field renders for, if any."""
    if key in TEMPLATE_TOPICS:
        return TEMPLATE_TOPICS[key]
    if key.endswith("_template"):
        return key[: -len("_template")] + "_topic"
    return None


def _in_domain(schema: ComponentSchema, key: str, value: Any) -> Any:
    domain = schema.domains.get(key)
    if domain is None:
        return value
    if isinstance(value, list):
        kept = [item for item in value if item in domain]
        return kept or schema.default(key)
    if value in domain:
        return value
    return schema.default(key)


def sanitize(platform: Platform, values: Mapping[str, Any]) -> Dict[str, Any]:
    """Clean builder output against the platform schema.

    Drops empty values and fields the platform does not accept, drops
    templates whose topic is absent and pulls enumerated values back into
    their domain (falling back to the documented default).
    """
    schema = CATALOG[platform]
    cleaned: Dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if not schema.accepts(key):
            _LOGGER.debug("Dropping field %s not accepted by %s", key, platform)
            continue
        value = _in_domain(schema, key, value)
        if value is None:
            continue
        cleaned[key] = value

    for key in list(cleaned):
        topic = topic_for_template(key)
        if topic and schema.accepts(topic) and topic not in cleaned:
            _LOGGER.debug("Dropping %s without %s on %s", key, topic, platform)
            del cleaned[key]
    return cleaned


def validate(component: ComponentConfig) -> List[str]:
    """Return the schema violations of a built component (empty when valid)."""
    schema = CATALOG.get(component.platform)
    if schema is None:
        return [f"unknown platform {component.platform}"]

    problems: List[str] = []
    fields = component.as_dict()
    for key in sorted(schema.required):
        if key not in fields:
            problems.append(f"missing required field {key}")
    for key, value in sorted(fields.items()):
        if not schema.accepts(key):
            problems.append(f"unknown field {key}")
            continue
        domain = schema.domains.get(key)
        if domain is not None:
            items = value if isinstance(value, list) else [value]
            for item in items:
                if item not in domain:
                    problems.append(f"{key}={item!r} outside domain")
        topic = topic_for_template(key)
        if topic and key.endswith("command_template") and topic not in fields:
            problems.append(f"{key} set without {topic}")
    if fields.get("entity_category") not in (None, *ENTITY_CATEGORIES):
        problems.append("invalid entity_category")

    device = fields.get("device") or {}
    if component.unique_id and not (device.get("identifiers") or device.get("connections")):
        problems.append("unique_id set without device identifiers or connections")
    return problems


__all__ = [
    "CATALOG",
    "ComponentSchema",
    "sanitize",
    "schema_for",
    "topic_for_template",
    "validate",
]
