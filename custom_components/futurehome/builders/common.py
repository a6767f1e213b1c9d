"""Helpers shared by the component builders."""
from __future__ import annotations

from typing import Any, Collection, Iterable, Mapping, Optional

from ..catalog import sanitize
from ..models import CommandRoute, ComponentConfig, DeviceIdentity, PlatformMatch, Service

UNIT_ALIASES = {
    "deg": "°",
    "degree": "°",
    "degrees": "°",
    "C": "°C",
    "F": "°F",
    "Lux": "lx",
    "lux": "lx",
    "kwh": "kWh",
    "wh": "Wh",
    "km/t": "km/h",
}


def quote_address(address: str) -> str:
    return address.replace("\\", "\\\\").replace("'", "\\'")


def state_template(address: str, sub_key: str) -> str:
    """Template reading ``sub_key`` of the service entry in the device state object."""
    return f"{{{{ value_json['{quote_address(address)}'].{sub_key} }}}}"


def on_off_template(address: str, sub_key: str) -> str:
    return f"{{{{ 'ON' if value_json['{quote_address(address)}'].{sub_key} else 'OFF' }}}}"


def normalize_unit(unit: str) -> str:
    unit = unit.strip()
    return UNIT_ALIASES.get(unit, unit)


def resolve_unit(
    service: Service, default: Optional[str], allowed: Optional[Collection[str]] = None
) -> Optional[str]:
    """First declared unit when usable, otherwise ``default``."""
    units = service.props.strings("sup_units")
    if units:
        unit = normalize_unit(units[0])
        if unit and (allowed is None or unit in allowed):
            return unit
    return default


def command_route(identity: DeviceIdentity, service: Service, command: str) -> CommandRoute:
    return CommandRoute(
        topic=identity.command_topic(service.address, command),
        address=service.address,
        service_type=service.service_type,
        command=command,
    )


def make_component(
    match: PlatformMatch,
    service: Service,
    identity: DeviceIdentity,
    values: Mapping[str, Any],
    unique_id: Optional[str] = None,
    commands: Iterable[CommandRoute] = (),
) -> ComponentConfig:
    fields = sanitize(match.platform, {**values, "device": identity.device})
    topics = {v for k, v in fields.items() if k.endswith("_topic")}
    return ComponentConfig(
        platform=match.platform,
        unique_id=unique_id or service.address,
        fields=fields,
        address=service.address,
        service_type=service.service_type,
        commands=tuple(route for route in commands if route.topic in topics),
    )


__all__ = [
    "command_route",
    "make_component",
    "normalize_unit",
    "on_off_template",
    "resolve_unit",
    "state_template",
]
