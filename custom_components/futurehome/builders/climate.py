"""Thermostat builders: the climate entity and its auxiliary fan-mode select."""
from __future__ import annotations

import json
from typing import Dict, List, Tuple

from ..catalog import CLIMATE
from ..models import ComponentConfig, DeviceIdentity, PlatformMatch, Service
from .common import command_route, make_component, state_template

# FIMP thermostat mode -> Home Assistant HVAC mode
FIMP_HVAC_MODES = {
    "off": "off",
    "heat": "heat",
    "cool": "cool",
    "auto": "auto",
    "auto_changeover": "auto",
    "fan": "fan_only",
    "fan_only": "fan_only",
    "dry": "dry",
    "dry_air": "dry",
}

# FIMP thermostat state -> Home Assistant HVAC action
THERMOSTAT_ACTIONS = {
    "off": "off",
    "idle": "idle",
    "heat": "heating",
    "cool": "cooling",
    "fan": "fan",
    "fan_only": "fan",
    "dry": "drying",
    "pending_heat": "preheating",
}

DEFAULT_MODES = ["off", "heat"]
DEFAULT_SETPOINT = "heat"
FAN_MODE_SUFFIX = "_fan_mode"


def hvac_modes(service: Service) -> Dict[str, str]:
    """Home Assistant mode -> FIMP mode for the modes the service declares."""
    modes: Dict[str, str] = {}
    for fimp_mode in service.props.strings("sup_modes"):
        ha_mode = FIMP_HVAC_MODES.get(fimp_mode)
        if ha_mode and ha_mode not in modes:
            modes[ha_mode] = fimp_mode
    return modes


def _mode_command_template(modes: Dict[str, str]) -> str:
    mapping = json.dumps(modes, sort_keys=True)
    return f"{{{{ {mapping}.get(value, value) }}}}"


def _setpoint_command_template(setpoint_type: str, unit: str) -> str:
    return '{"type": "%s", "temp": "{{ value }}", "unit": "%s"}' % (setpoint_type, unit)


def build_thermostat(
    match: PlatformMatch, service: Service, identity: DeviceIdentity
) -> Tuple[ComponentConfig, ...]:
    props = service.props
    modes = hvac_modes(service)
    mode_list: List[str] = list(modes) or list(DEFAULT_MODES)

    units = props.strings("sup_units")
    temperature_unit = units[0] if units and units[0] in ("C", "F") else None
    setpoints = props.strings("sup_setpoints")
    setpoint_type = setpoints[0] if setpoints else DEFAULT_SETPOINT

    min_temp = props.number("min_temp", CLIMATE.default("min_temp"))
    max_temp = props.number("max_temp", CLIMATE.default("max_temp"))
    if min_temp >= max_temp:
        min_temp, max_temp = CLIMATE.default("min_temp"), CLIMATE.default("max_temp")
    temp_step = props.number("step", CLIMATE.default("temp_step"))
    if temp_step <= 0:
        temp_step = CLIMATE.default("temp_step")

    mode_route = command_route(identity, service, "mode")
    temp_route = command_route(identity, service, "temperature")
    state_topic = identity.state_topic

    values = {
        "modes": mode_list,
        "mode_command_topic": mode_route.topic,
        "mode_command_template": _mode_command_template(modes) if modes else None,
        "mode_state_topic": state_topic,
        "mode_state_template": state_template(service.address, "mode"),
        "temperature_command_topic": temp_route.topic,
        "temperature_command_template": _setpoint_command_template(setpoint_type, temperature_unit or "C"),
        "temperature_state_topic": state_topic,
        "temperature_state_template": state_template(service.address, "setpoint.temp"),
        "action_topic": state_topic,
        "action_template": state_template(service.address, "action"),
        "min_temp": min_temp,
        "max_temp": max_temp,
        "temp_step": temp_step,
        "precision": props.number("precision"),
        "temperature_unit": temperature_unit,
    }
    return (
        make_component(match, service, identity, values, commands=(mode_route, temp_route)),
    )


def build_fan_mode_select(
    match: PlatformMatch, service: Service, identity: DeviceIdentity
) -> Tuple[ComponentConfig, ...]:
    options = list(service.props.strings("sup_fan_modes"))
    if not options:
        return ()
    route = command_route(identity, service, "fan_mode")
    return (
        make_component(
            match,
            service,
            identity,
            {
                "name": "Fan mode",
                "options": options,
                "command_topic": route.topic,
                "state_topic": identity.state_topic,
                "value_template": state_template(service.address, "fan_mode"),
                "entity_category": "config",
            },
            unique_id=f"{service.address}{FAN_MODE_SUFFIX}",
            commands=(route,),
        ),
    )
