"""Futurehome hub coordinating inclusion reports, discovery publishing and state/command forwarding."""
from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from homeassistant.components import mqtt
from homeassistant.helpers.storage import Store

from .const import (
    CONF_CONFIG_PATH,
    CONF_DISCOVERY_PREFIX,
    CONF_PLATFORMS,
    CONF_QOS,
    CONF_TOPIC_ROOT,
    DEFAULT_DISCOVERY_PREFIX,
    DEFAULT_QOS,
    DEFAULT_TOPIC_ROOT,
    DOMAIN,
    FIMP_ADAPTER_TOPIC,
    FIMP_DEVICE_EVENT_TOPIC,
    FIMP_EXCLUSION_REPORT,
    FIMP_INCLUSION_REPORT,
    SUPPORTED_PLATFORMS,
)
from .discovery import FuturehomeDiscoveryEngine, load_config
from .models import CommandRoute, DiscoveryPayload
from .publish import (
    InvalidCommandPayload,
    command_message,
    command_routes,
    discovery_messages,
    service_address,
    stale_topics,
    state_update,
)
from .report import InvalidInclusionReport, adapter_from_topic, parse_inclusion_report, report_address

_LOGGER = logging.getLogger(__name__)

DISCOVERY_STORE_VERSION = 1


def _decode(payload: Any) -> str:
    raw = payload if isinstance(payload, str) else payload.decode("utf-8", errors="ignore")
    return raw.strip() if raw else ""


class FuturehomeHub:
    """Hub bridging Futurehome FIMP messages and Home Assistant MQTT discovery."""

    def __init__(self, hass, entry) -> None:
        self.hass = hass
        self.entry = entry
        self._unsub_mqtt: List[Callable[[], None]] = []
        self._lock = asyncio.Lock()
        self._store = Store(hass, DISCOVERY_STORE_VERSION, f"{DOMAIN}.{entry.entry_id}.reports")
        self._save_task: Optional[asyncio.Task] = None

        self._discovery_prefix = self._option(CONF_DISCOVERY_PREFIX, DEFAULT_DISCOVERY_PREFIX)
        self._topic_root = self._option(CONF_TOPIC_ROOT, DEFAULT_TOPIC_ROOT)
        self._qos = int(self._option(CONF_QOS, DEFAULT_QOS))

        config_path = self._option(CONF_CONFIG_PATH, None)
        config = load_config(Path(config_path) if config_path else None, topic_root=self._topic_root)
        platforms = self._option(CONF_PLATFORMS, None)
        if platforms is not None and config.platforms is None:
            config.platforms = set(platforms) & set(SUPPORTED_PLATFORMS)
        self._topic_root = config.topic_root
        self._discovery = FuturehomeDiscoveryEngine(config)
        if config_path:
            _LOGGER.debug(
                "Loaded Futurehome rules from %s (devices=%s, platforms=%s)",
                config_path,
                len(config.devices),
                config.platforms,
            )

        self._raw_reports: Dict[str, Dict[str, Any]] = {}
        self._payloads: Dict[str, DiscoveryPayload] = {}
        self._published: Dict[str, List[str]] = {}
        self._routes: Dict[str, CommandRoute] = {}
        self._services: Dict[str, Tuple[str, str]] = {}
        self._states: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _option(self, key: str, default: Any) -> Any:
        value = self.entry.options.get(key)
        if value in (None, ""):
            value = self.entry.data.get(key, default)
        return default if value in (None, "") else value

    @property
    def payloads(self) -> Dict[str, DiscoveryPayload]:
        return self._payloads

    async def async_setup(self) -> None:
        _LOGGER.debug("Setting up Futurehome hub")
        await self._restore_reports()
        self._unsub_mqtt.append(
            await mqtt.async_subscribe(self.hass, FIMP_ADAPTER_TOPIC, self._handle_adapter_message)
        )
        self._unsub_mqtt.append(
            await mqtt.async_subscribe(self.hass, FIMP_DEVICE_EVENT_TOPIC, self._handle_event_message)
        )
        self._unsub_mqtt.append(
            await mqtt.async_subscribe(
                self.hass, f"{self._topic_root}/+/+/+/set", self._handle_command_message
            )
        )

    async def async_unload(self) -> None:
        for unsub in self._unsub_mqtt:
            unsub()
        self._unsub_mqtt.clear()
        if self._save_task and not self._save_task.done():
            self._save_task.cancel()
            self._save_task = None
        await self._flush_store()

    async def _handle_adapter_message(self, msg) -> None:
        raw = _decode(msg.payload)
        if not raw:
            return
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            _LOGGER.debug("FIMP JSON parse failed for topic %s", msg.topic)
            return
        if not isinstance(data, dict):
            return

        msg_type = data.get("type")
        if msg_type == FIMP_INCLUSION_REPORT:
            await self._async_include(data.get("val"), adapter_from_topic(msg.topic))
        elif msg_type == FIMP_EXCLUSION_REPORT:
            await self._async_exclude(data.get("val"), adapter_from_topic(msg.topic))

    async def _async_include(self, val: Any, adapter: Optional[str]) -> None:
        try:
            report = parse_inclusion_report(val)
        except InvalidInclusionReport as err:
            _LOGGER.warning("Ignoring inclusion report: %s", err)
            return
        if report.comm_tech is None and adapter:
            report = dataclasses.replace(report, comm_tech=adapter)

        async with self._lock:
            key = self._discovery.update_report(report)
            self._raw_reports[key] = {"adapter": report.comm_tech, "report": val}
            payload = await self.hass.async_add_executor_job(self._discovery.translate, key)
            await self._async_publish_device(key, payload)
            self._schedule_store_save()

    async def _async_exclude(self, val: Any, adapter: Optional[str]) -> None:
        address = report_address(val)
        if address is None:
            return
        async with self._lock:
            key = next(
                (
                    k
                    for k, report in self._discovery.reports.items()
                    if report.address == address and (adapter is None or report.comm_tech in (None, adapter))
                ),
                None,
            )
            if key is None:
                return
            self._discovery.remove_report(key)
            self._raw_reports.pop(key, None)
            await self._async_publish_device(key, None)
            self._schedule_store_save()
        _LOGGER.info("Removed Futurehome device %s", key)

    async def _async_publish_device(self, key: str, payload: Optional[DiscoveryPayload]) -> None:
        messages = discovery_messages(self._discovery_prefix, payload) if payload is not None else {}
        for topic in stale_topics(self._published.get(key, []), messages):
            await mqtt.async_publish(self.hass, topic, "", self._qos, retain=True)
        for topic, config in messages.items():
            await mqtt.async_publish(self.hass, topic, config, self._qos, retain=True)

        if payload is None:
            self._payloads.pop(key, None)
            self._published.pop(key, None)
            self._states.pop(key, None)
        else:
            self._payloads[key] = payload
            self._published[key] = list(messages)
            _LOGGER.debug("Published %s components for Futurehome device %s", len(messages), key)
        self._rebuild_index()

    def _rebuild_index(self) -> None:
        self._routes = command_routes(self._payloads.values())
        self._services = {}
        for key, payload in self._payloads.items():
            for component in payload.components.values():
                self._services[component.address] = (key, component.service_type)

    async def _handle_event_message(self, msg) -> None:
        address = service_address(msg.topic or "")
        if address is None or address not in self._services:
            return
        raw = _decode(msg.payload)
        if not raw:
            return
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            return
        if not isinstance(data, dict):
            return

        key, service_type = self._services[address]
        update = state_update(service_type, data)
        if update is None:
            return
        sub_key, value = update
        state = self._states.setdefault(key, {})
        state.setdefault(address, {})[sub_key] = value

        await mqtt.async_publish(
            self.hass,
            self._payloads[key].state_topic,
            json.dumps(state, sort_keys=True),
            self._qos,
            retain=True,
        )

    async def _handle_command_message(self, msg) -> None:
        route = self._routes.get(msg.topic or "")
        if route is None:
            return
        try:
            topic, message = command_message(route, _decode(msg.payload), uid=str(uuid.uuid4()))
        except InvalidCommandPayload as err:
            _LOGGER.warning("Dropping command on %s: %s", msg.topic, err)
            return
        await mqtt.async_publish(self.hass, topic, json.dumps(message), self._qos, retain=False)

    async def _restore_reports(self) -> None:
        stored = await self._store.async_load()
        if not stored:
            return
        reports = stored.get("reports")
        if not isinstance(reports, dict):
            return
        restored = 0
        for item in reports.values():
            if not isinstance(item, dict):
                continue
            try:
                report = parse_inclusion_report(item.get("report"))
            except InvalidInclusionReport as err:
                _LOGGER.debug("Skipping stored report: %s", err)
                continue
            if report.comm_tech is None and item.get("adapter"):
                report = dataclasses.replace(report, comm_tech=item["adapter"])
            key = self._discovery.update_report(report)
            self._raw_reports[key] = item
            restored += 1
        if not restored:
            return
        payloads = await self.hass.async_add_executor_job(self._discovery.generate)
        for key, payload in payloads.items():
            await self._async_publish_device(key, payload)
        _LOGGER.debug("Restored Futurehome discovery cache (%s devices)", restored)

    def _schedule_store_save(self) -> None:
        if self._save_task and not self._save_task.done():
            return
        self._save_task = self.hass.async_create_task(self._async_save_store_delayed())

    async def _async_save_store_delayed(self) -> None:
        try:
            await asyncio.sleep(2)
            await self._flush_store()
        finally:
            self._save_task = None

    async def _flush_store(self) -> None:
        await self._store.async_save({"reports": dict(self._raw_reports)})


__all__ = ["FuturehomeHub"]
