"""Wire format of the bridge: discovery topics, device state objects and hub commands.

Everything here is pure; ``hub.py`` owns the MQTT side.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .builders.climate import FIMP_HVAC_MODES, THERMOSTAT_ACTIONS
from .builders.humidifier import HUMIDIFIER_ACTIONS
from .const import FIMP_CMD_PREFIX, FIMP_EVT_PREFIX, FIMP_SOURCE
from .models import CommandRoute, DiscoveryPayload, object_id

_LOGGER = logging.getLogger(__name__)

# FIMP event type -> sub-key of the service entry in the device state object
EVENT_SUB_KEYS = {
    "evt.sensor.report": "sensor",
    "evt.lvl.report": "sensor",
    "evt.meter.report": "sensor",
    "evt.presence.report": "presence",
    "evt.open.report": "open",
    "evt.mode.report": "mode",
    "evt.setpoint.report": "setpoint",
    "evt.state.report": "action",
    "evt.binary.report": "state",
    "evt.fan_mode.report": "fan_mode",
}

# (service type, command) -> (FIMP message type, value type)
COMMANDS = {
    ("thermostat", "mode"): ("cmd.mode.set", "string"),
    ("thermostat", "temperature"): ("cmd.setpoint.set", "str_map"),
    ("thermostat", "fan_mode"): ("cmd.fan_mode.set", "string"),
    ("humidity-control", "power"): ("cmd.binary.set", "bool"),
    ("humidity-control", "target_humidity"): ("cmd.setpoint.set", "str_map"),
    ("humidity-control", "mode"): ("cmd.mode.set", "string"),
}

VALUE_MAPS = {
    ("thermostat", "mode"): FIMP_HVAC_MODES,
    ("thermostat", "action"): THERMOSTAT_ACTIONS,
    ("humidity-control", "action"): HUMIDIFIER_ACTIONS,
}


class InvalidCommandPayload(ValueError):
    """Raised when a Home Assistant command payload cannot become a hub command."""


def discovery_topic(prefix: str, platform: str, device_id: str, unique_id: str) -> str:
    return f"{prefix}/{platform}/{device_id}/{object_id(unique_id)}/config"


def discovery_messages(prefix: str, payload: DiscoveryPayload) -> Dict[str, str]:
    """Retained discovery config per topic for every component of a device."""
    messages: Dict[str, str] = {}
    for unique_id, component in payload.components.items():
        topic = discovery_topic(prefix, component.platform.value, payload.device_id, unique_id)
        messages[topic] = json.dumps(component.as_dict(), sort_keys=True, ensure_ascii=False)
    return messages


def stale_topics(previous: Iterable[str], current: Iterable[str]) -> List[str]:
    """Topics published before that the current pass no longer produces."""
    keep = set(current)
    return sorted(topic for topic in previous if topic not in keep)


def command_routes(payloads: Iterable[DiscoveryPayload]) -> Dict[str, CommandRoute]:
    routes: Dict[str, CommandRoute] = {}
    for payload in payloads:
        for component in payload.components.values():
            for route in component.commands:
                routes[route.topic] = route
    return routes


def service_address(topic: str) -> Optional[str]:
    """Service address of a FIMP device event topic."""
    if not topic.startswith(FIMP_EVT_PREFIX + "/"):
        return None
    return topic[len(FIMP_EVT_PREFIX):]


def _number(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def state_update(service_type: str, message: Mapping[str, Any]) -> Optional[Tuple[str, Any]]:
    """Sub-key and normalised value a FIMP event contributes to the device state."""
    sub_key = EVENT_SUB_KEYS.get(str(message.get("type") or ""))
    if sub_key is None:
        return None
    value = message.get("val")

    if sub_key == "sensor":
        value = _number(value)
    elif sub_key == "setpoint":
        if not isinstance(value, dict):
            return None
        value = {k: _number(v) if k == "temp" else v for k, v in value.items()}
    elif sub_key in ("presence", "open", "state"):
        value = bool(value)
    else:
        mapping = VALUE_MAPS.get((service_type, sub_key))
        if mapping is not None and isinstance(value, str):
            value = mapping.get(value, value)
    return sub_key, value


def _command_value(val_t: str, payload: str) -> Any:
    if val_t == "bool":
        if payload not in ("ON", "OFF"):
            raise InvalidCommandPayload(f"expected ON or OFF, got {payload!r}")
        return payload == "ON"
    if val_t == "str_map":
        try:
            value = json.loads(payload)
        except json.JSONDecodeError as err:
            raise InvalidCommandPayload(f"invalid JSON command payload {payload!r}") from err
        if not isinstance(value, dict):
            raise InvalidCommandPayload(f"expected a JSON object, got {payload!r}")
        return {str(k): str(v) for k, v in value.items()}
    if not payload:
        raise InvalidCommandPayload("empty command payload")
    return payload


def command_message(route: CommandRoute, payload: str, uid: str) -> Tuple[str, Dict[str, Any]]:
    """FIMP topic and message for a Home Assistant command payload."""
    spec = COMMANDS.get((route.service_type, route.command))
    if spec is None:
        raise InvalidCommandPayload(f"no hub command for {route.service_type}/{route.command}")
    msg_type, val_t = spec
    message = {
        "serv": route.service_type,
        "type": msg_type,
        "val_t": val_t,
        "val": _command_value(val_t, payload.strip()),
        "props": None,
        "tags": None,
        "src": FIMP_SOURCE,
        "ver": "1",
        "uid": uid,
    }
    return f"{FIMP_CMD_PREFIX}/{route.address.lstrip('/')}", message


__all__ = [
    "InvalidCommandPayload",
    "command_message",
    "command_routes",
    "discovery_messages",
    "discovery_topic",
    "service_address",
    "stale_topics",
    "state_update",
]
