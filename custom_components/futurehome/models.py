"""Shared models for the Futurehome integration."""
from __future__ import annotations

import hashlib
import json
import math
import re
import unicodedata
from dataclasses import dataclass, field
from enum import StrEnum
from functools import cached_property
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from homeassistant.const import Platform

from .const import IDENTIFIER_PREFIX

PropValue = Union[str, int, float, List[str]]


def slugify(value: str) -> str:
    value = (value or "").strip().lower()
    value = unicodedata.normalize("NFKD", value)
    value = "".join(ch for ch in value if not unicodedata.combining(ch))
    value = re.sub(r"[’'`]", "", value)
    value = re.sub(r"[^a-z0-9]+", "_", value)
    value = re.sub(r"_+", "_", value).strip("_")
    return value or "item"


def object_id(value: str) -> str:
    """Topic-safe id, distinct for distinct values.

    A value that slugify leaves untouched is used as is. Otherwise the slug
    gets a short hash of the verbatim value, so that addresses differing
    only in punctuation or case get distinct topics.
    """
    slug = slugify(value)
    if slug == value:
        return slug
    digest = hashlib.sha1(value.encode("utf-8")).hexdigest()[:8]
    return f"{slug}_{digest}"


class ServiceProps(Mapping[str, PropValue]):
    """Read-only property bag of a hub service.

    Values are tagged as string, number or list of strings. The typed
    accessors return ``default`` whenever a key is missing or holds a value
    of another tag, so builders never have to inspect raw values.
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        self._data: Dict[str, PropValue] = {}
        for key, value in (data or {}).items():
            coerced = _coerce_prop(value)
            if coerced is not None:
                self._data[str(key)] = coerced

    def __getitem__(self, key: str) -> PropValue:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ServiceProps({self._data!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ServiceProps):
            return self._data == other._data
        return NotImplemented

    def __hash__(self) -> int:
        return hash(json.dumps(self._data, sort_keys=True))

    def string(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._data.get(key)
        if isinstance(value, str) and value:
            return value
        return default

    def number(self, key: str, default: Optional[float] = None) -> Optional[float]:
        """Finite numeric value of ``key``; NaN and infinities count as missing."""
        value = self._data.get(key)
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError:
                return default
        if isinstance(value, (int, float)) and math.isfinite(value):
            return value
        return default

    def strings(self, key: str) -> Tuple[str, ...]:
        value = self._data.get(key)
        if isinstance(value, list):
            return tuple(value)
        return ()


def _coerce_prop(value: Any) -> Optional[PropValue]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
    return None


@dataclass(frozen=True)
class Interface:
    intf_t: str
    msg_t: str
    val_t: Optional[str] = None


@dataclass(frozen=True)
class Service:
    service_type: str
    address: str
    props: ServiceProps = field(default_factory=ServiceProps)
    interfaces: Tuple[Interface, ...] = ()

    def supports(self, msg_t: str) -> bool:
        return any(intf.msg_t == msg_t for intf in self.interfaces)


@dataclass(frozen=True)
class InclusionReport:
    address: str
    services: Tuple[Service, ...] = ()
    comm_tech: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    sw_version: Optional[str] = None
    hw_version: Optional[str] = None
    name: Optional[str] = None


def device_key(report: InclusionReport) -> str:
    """Stable key of a device across adapters, also used as its topic id."""
    parts = [report.comm_tech, report.address] if report.comm_tech else [report.address]
    return slugify("_".join(parts))


@dataclass(frozen=True)
class DeviceIdentity:
    """Identity of one physical device, shared by all its components."""

    device_id: str
    identifiers: Tuple[str, ...]
    topic_root: str
    connections: Tuple[Tuple[str, str], ...] = ()
    name: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    sw_version: Optional[str] = None
    hw_version: Optional[str] = None
    suggested_area: Optional[str] = None

    @classmethod
    def from_report(
        cls,
        report: InclusionReport,
        topic_root: str,
        name: Optional[str] = None,
        suggested_area: Optional[str] = None,
    ) -> "DeviceIdentity":
        device_id = device_key(report)
        return cls(
            device_id=device_id,
            identifiers=(f"{IDENTIFIER_PREFIX}_{device_id}",),
            topic_root=topic_root,
            name=name or report.name or report.model or f"Futurehome {report.address}",
            manufacturer=report.manufacturer,
            model=report.model,
            sw_version=report.sw_version,
            hw_version=report.hw_version,
            suggested_area=suggested_area,
        )

    @property
    def state_topic(self) -> str:
        return f"{self.topic_root}/{self.device_id}/state"

    def command_topic(self, address: str, command: str) -> str:
        return f"{self.topic_root}/{self.device_id}/{object_id(address)}/{command}/set"

    @cached_property
    def device(self) -> Dict[str, Any]:
        """Home Assistant device block, built once per identity."""
        block: Dict[str, Any] = {
            "identifiers": list(self.identifiers),
            "connections": [list(pair) for pair in self.connections],
            "name": self.name,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "sw_version": self.sw_version,
            "hw_version": self.hw_version,
            "suggested_area": self.suggested_area,
        }
        return {k: v for k, v in block.items() if v}


class Variant(StrEnum):
    """Closed set of builder variants, one builder function each."""

    NUMERIC_SENSOR = "numeric_sensor"
    WIND_DIRECTION = "wind_direction"
    BINARY_SENSOR = "binary_sensor"
    THERMOSTAT = "thermostat"
    FAN_MODE_SELECT = "fan_mode_select"
    HUMIDIFIER = "humidifier"


@dataclass(frozen=True)
class PlatformMatch:
    platform: Platform
    variant: Variant
    primary: bool = True


@dataclass(frozen=True)
class CommandRoute:
    """Maps a Home Assistant command topic back to a hub service command."""

    topic: str
    address: str
    service_type: str
    command: str


@dataclass(frozen=True)
class ComponentConfig:
    platform: Platform
    unique_id: str
    fields: Mapping[str, Any]
    address: str
    service_type: str
    commands: Tuple[CommandRoute, ...] = ()

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Discovery config as serialized on the wire."""
        return {"unique_id": self.unique_id, **self.fields}


@dataclass(frozen=True)
class DiscoveryPayload:
    device_id: str
    device: Mapping[str, Any]
    components: Mapping[str, ComponentConfig] = field(default_factory=lambda: MappingProxyType({}))
    state_topic: Optional[str] = None

    def __len__(self) -> int:
        return len(self.components)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "device": dict(self.device),
            "components": {
                uid: {"platform": comp.platform.value, **comp.as_dict()}
                for uid, comp in self.components.items()
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.as_dict(), sort_keys=True, ensure_ascii=False)


__all__ = [
    "CommandRoute",
    "ComponentConfig",
    "DeviceIdentity",
    "DiscoveryPayload",
    "InclusionReport",
    "Interface",
    "PlatformMatch",
    "Service",
    "ServiceProps",
    "Variant",
    "device_key",
    "object_id",
    "slugify",
]
