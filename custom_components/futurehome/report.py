"""FIMP inclusion report parsing.

Reports are validated here, before they reach the translation engine. A
report that is not a well formed record raises ``InvalidInclusionReport``;
everything past this point is total.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .models import InclusionReport, Interface, Service, ServiceProps

_LOGGER = logging.getLogger(__name__)


class InvalidInclusionReport(ValueError):
    """Raised when an inclusion report cannot be turned into a device."""


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


def _interfaces(raw: Any) -> tuple[Interface, ...]:
    if not isinstance(raw, list):
        return ()
    result: List[Interface] = []
    for intf in raw:
        if not isinstance(intf, dict) or not intf.get("msg_t"):
            continue
        result.append(
            Interface(
                intf_t=str(intf.get("intf_t") or ""),
                msg_t=str(intf["msg_t"]),
                val_t=_text(intf.get("val_t")),
            )
        )
    return tuple(result)


def parse_service(raw: Any) -> Service:
    if not isinstance(raw, dict):
        raise InvalidInclusionReport(f"service entry is not an object: {raw!r}")
    name = _text(raw.get("name"))
    if name is None:
        raise InvalidInclusionReport("service entry without a name")
    props = raw.get("props")
    return Service(
        service_type=name,
        address=_text(raw.get("address")) or "",
        props=ServiceProps(props if isinstance(props, dict) else None),
        interfaces=_interfaces(raw.get("interfaces")),
    )


def parse_inclusion_report(data: Any) -> InclusionReport:
    """Build an ``InclusionReport`` from the ``val`` of an inclusion report message."""
    if not isinstance(data, dict):
        raise InvalidInclusionReport("inclusion report is not an object")

    address = _text(data.get("address"))
    if address is None:
        raise InvalidInclusionReport("inclusion report without a device address")

    raw_services = data.get("services")
    if raw_services is None:
        raw_services = []
    if not isinstance(raw_services, list):
        raise InvalidInclusionReport(f"services of device {address} is not a list")

    services: List[Service] = []
    for raw in raw_services:
        service = parse_service(raw)
        if isinstance(raw, dict) and raw.get("enabled") is False:
            _LOGGER.debug("Skipping disabled service %s on device %s", service.address, address)
            continue
        services.append(service)

    return InclusionReport(
        address=address,
        services=tuple(services),
        comm_tech=_text(data.get("comm_tech")),
        manufacturer=_text(data.get("manufacturer")) or _text(data.get("manufacturer_id")),
        model=_text(data.get("product_name")) or _text(data.get("product_id")),
        sw_version=_text(data.get("sw_ver")),
        hw_version=_text(data.get("hw_ver")),
        name=_text(data.get("alias")),
    )


def report_address(data: Dict[str, Any]) -> Optional[str]:
    """Device address of a raw report or exclusion message value."""
    if not isinstance(data, dict):
        return None
    return _text(data.get("address"))


def adapter_from_topic(topic: str) -> Optional[str]:
    """Resource name of an adapter topic, e.g. ``zw`` for ``pt:j1/mt:evt/rt:ad/rn:zw/ad:1``."""
    for part in (topic or "").split("/"):
        if part.startswith("rn:") and len(part) > 3:
            return part[3:]
    return None


__all__ = [
    "InvalidInclusionReport",
    "adapter_from_topic",
    "parse_inclusion_report",
    "parse_service",
    "report_address",
]
