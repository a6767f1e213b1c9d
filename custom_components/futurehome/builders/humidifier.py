"""Humidity-control builder."""
from __future__ import annotations

from typing import Tuple

from ..catalog import HUMIDIFIER
from ..models import ComponentConfig, DeviceIdentity, PlatformMatch, Service
from .common import command_route, make_component, on_off_template, state_template

# FIMP humidity-control state -> Home Assistant humidifier action
HUMIDIFIER_ACTIONS = {
    "off": "off",
    "idle": "idle",
    "humidify": "humidifying",
    "humidifying": "humidifying",
    "dehumidify": "drying",
    "drying": "drying",
}

TARGET_HUMIDITY_TEMPLATE = '{"type": "humidity", "temp": "{{ value }}", "unit": "%"}'


def build_humidifier(
    match: PlatformMatch, service: Service, identity: DeviceIdentity
) -> Tuple[ComponentConfig, ...]:
    props = service.props
    state_topic = identity.state_topic
    power = command_route(identity, service, "power")
    target = command_route(identity, service, "target_humidity")
    mode = command_route(identity, service, "mode")
    modes = list(props.strings("sup_modes"))

    min_humidity = props.number("min_humidity", HUMIDIFIER.default("min_humidity"))
    max_humidity = props.number("max_humidity", HUMIDIFIER.default("max_humidity"))
    if not 0 <= min_humidity < max_humidity <= 100:
        min_humidity, max_humidity = HUMIDIFIER.default("min_humidity"), HUMIDIFIER.default("max_humidity")

    values = {
        "device_class": props.string("type", HUMIDIFIER.default("device_class")),
        "command_topic": power.topic,
        "state_topic": state_topic,
        "state_value_template": on_off_template(service.address, "state"),
        "payload_on": "ON",
        "payload_off": "OFF",
        "target_humidity_command_topic": target.topic,
        "target_humidity_command_template": TARGET_HUMIDITY_TEMPLATE,
        "target_humidity_state_topic": state_topic,
        "target_humidity_state_template": state_template(service.address, "setpoint.temp"),
        "action_topic": state_topic,
        "action_template": state_template(service.address, "action"),
        "min_humidity": min_humidity,
        "max_humidity": max_humidity,
    }
    commands = [power, target]
    if modes:
        values.update(
            {
                "modes": modes,
                "mode_command_topic": mode.topic,
                "mode_state_topic": state_topic,
                "mode_state_template": state_template(service.address, "mode"),
            }
        )
        commands.append(mode)
    return (make_component(match, service, identity, values, commands=commands),)
