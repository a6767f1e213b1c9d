"""Futurehome inclusion report translation and per-device merge."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Optional

import yaml

from .builders import build
from .classifier import classify, ordered
from .const import DEFAULT_TOPIC_ROOT
from .models import ComponentConfig, DeviceIdentity, DiscoveryPayload, InclusionReport, device_key

_LOGGER = logging.getLogger(__name__)


@dataclass
class DiscoveryConfig:
    topic_root: str = DEFAULT_TOPIC_ROOT
    platforms: Optional[set[str]] = None
    devices: list[dict[str, Any]] = field(default_factory=list)


def load_config(path: Optional[Path], topic_root: str = DEFAULT_TOPIC_ROOT) -> DiscoveryConfig:
    if path is None or not path.exists():
        return DiscoveryConfig(topic_root=topic_root)
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    defaults = data.get("defaults") or {}
    devices = data.get("devices") or []
    platforms = defaults.get("platforms")
    return DiscoveryConfig(
        topic_root=str(defaults.get("topic_root") or topic_root),
        platforms=set(platforms) if platforms else None,
        devices=[rule for rule in devices if isinstance(rule, dict)],
    )


def find_rule(report: InclusionReport, config: DiscoveryConfig) -> Optional[Dict[str, Any]]:
    for rule in config.devices:
        match = rule.get("match", {}) or {}
        if str(match.get("address", "")) != report.address:
            continue
        if match.get("comm_tech") and match["comm_tech"] != report.comm_tech:
            continue
        return rule
    return None


def device_identity(report: InclusionReport, config: DiscoveryConfig) -> DeviceIdentity:
    rule = find_rule(report, config) or {}
    return DeviceIdentity.from_report(
        report,
        topic_root=config.topic_root,
        name=rule.get("device_name"),
        suggested_area=rule.get("suggested_area"),
    )


def merge(identity: DeviceIdentity, components: Iterable[ComponentConfig]) -> DiscoveryPayload:
    """Aggregate the components of one device, keyed by unique_id.

    A duplicate unique_id replaces the earlier component whole.
    """
    merged: Dict[str, ComponentConfig] = {}
    for component in components:
        if component.unique_id in merged:
            _LOGGER.debug(
                "Duplicate unique_id %s on device %s, keeping the later service",
                component.unique_id,
                identity.device_id,
            )
            del merged[component.unique_id]
        merged[component.unique_id] = component
    return DiscoveryPayload(
        device_id=identity.device_id,
        device=identity.device,
        components=MappingProxyType(merged),
        state_topic=identity.state_topic,
    )


def translate(report: InclusionReport, config: Optional[DiscoveryConfig] = None) -> DiscoveryPayload:
    """Translate one inclusion report into the discovery payload of its device."""
    config = config or DiscoveryConfig()
    identity = device_identity(report, config)
    rule = find_rule(report, config) or {}
    excluded = set(rule.get("exclude_services") or [])

    components = []
    for service in report.services:
        if service.address in excluded:
            continue
        for match in ordered(classify(service, config.platforms)):
            components.extend(build(match, service, identity))
    return merge(identity, components)


class FuturehomeDiscoveryEngine:
    """Keep the latest inclusion report per device and translate them."""

    def __init__(self, config: Optional[DiscoveryConfig] = None) -> None:
        self._config = config or DiscoveryConfig()
        self._reports: Dict[str, InclusionReport] = {}

    @property
    def reports(self) -> Dict[str, InclusionReport]:
        return self._reports

    def update_report(self, report: InclusionReport) -> str:
        key = device_key(report)
        self._reports[key] = report
        return key

    def remove_report(self, key: str) -> Optional[InclusionReport]:
        return self._reports.pop(key, None)

    def translate(self, key: str) -> Optional[DiscoveryPayload]:
        report = self._reports.get(key)
        if report is None:
            return None
        return translate(report, self._config)

    def generate(self) -> Dict[str, DiscoveryPayload]:
        return {key: translate(self._reports[key], self._config) for key in sorted(self._reports)}

    def set_config(self, config: DiscoveryConfig) -> None:
        self._config = config


__all__ = [
    "DiscoveryConfig",
    "FuturehomeDiscoveryEngine",
    "device_identity",
    "device_key",
    "find_rule",
    "load_config",
    "merge",
    "translate",
]
