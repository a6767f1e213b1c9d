import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

pytest.importorskip("homeassistant.components.mqtt")

from custom_components.futurehome import hub as hub_module  # noqa: E402
from custom_components.futurehome.const import (  # noqa: E402
    CONF_CONFIG_PATH,
    CONF_DISCOVERY_PREFIX,
    CONF_PLATFORMS,
    CONF_TOPIC_ROOT,
)
from custom_components.futurehome.publish import discovery_topic  # noqa: E402

from .conftest import THERMOSTAT_ADDRESS  # noqa: E402

ADAPTER_TOPIC = "pt:j1/mt:evt/rt:ad/rn:zw/ad:1"


def _message(topic, payload):
    return SimpleNamespace(topic=topic, payload=json.dumps(payload))


async def _executor(func, *args):
    return func(*args)


@pytest.fixture
def mqtt_mock():
    mock = MagicMock()
    mock.async_publish = AsyncMock()
    mock.async_subscribe = AsyncMock(return_value=MagicMock())
    with patch.object(hub_module, "mqtt", mock):
        yield mock


@pytest.fixture
def make_hub(mqtt_mock):
    hass = MagicMock()
    hass.async_add_executor_job = AsyncMock(side_effect=_executor)
    hass.async_create_task = MagicMock(side_effect=lambda coro: coro.close())

    with patch.object(hub_module, "Store") as store:
        store.return_value.async_load = AsyncMock(return_value=None)
        store.return_value.async_save = AsyncMock()

        def _make(**options):
            entry = SimpleNamespace(
                entry_id="abc",
                data={CONF_DISCOVERY_PREFIX: "homeassistant", CONF_TOPIC_ROOT: "futurehome"},
                options=options,
            )
            return hub_module.FuturehomeHub(hass, entry)

        yield _make


@pytest.fixture
def hub(make_hub):
    return make_hub()


def _published(mqtt_mock):
    return {c.args[1]: (c.args[2], c.kwargs.get("retain")) for c in mqtt_mock.async_publish.call_args_list}


def test_setup_subscribes(hub, mqtt_mock):
    asyncio.run(hub.async_setup())

    topics = [c.args[1] for c in mqtt_mock.async_subscribe.call_args_list]
    assert topics == ["pt:j1/mt:evt/rt:ad/#", "pt:j1/mt:evt/rt:dev/#", "futurehome/+/+/+/set"]


def test_inclusion_report_publishes_retained_discovery(hub, mqtt_mock, raw_report):
    raw_report.pop("comm_tech")
    asyncio.run(
        hub._handle_adapter_message(
            _message(ADAPTER_TOPIC, {"type": "evt.thing.inclusion_report", "val": raw_report})
        )
    )

    published = _published(mqtt_mock)
    topic = discovery_topic("homeassistant", "climate", "zw_14", THERMOSTAT_ADDRESS)
    assert topic in published
    config, retain = published[topic]
    assert retain is True
    assert json.loads(config)["unique_id"] == THERMOSTAT_ADDRESS
    assert "zw_14" in hub.payloads


def test_malformed_inclusion_report_is_dropped(hub, mqtt_mock):
    asyncio.run(
        hub._handle_adapter_message(
            _message(ADAPTER_TOPIC, {"type": "evt.thing.inclusion_report", "val": {"services": []}})
        )
    )
    asyncio.run(hub._handle_adapter_message(SimpleNamespace(topic=ADAPTER_TOPIC, payload=b"{not json")))

    mqtt_mock.async_publish.assert_not_called()
    assert hub.payloads == {}


def test_exclusion_clears_discovery_topics(hub, mqtt_mock, raw_report):
    asyncio.run(
        hub._handle_adapter_message(
            _message(ADAPTER_TOPIC, {"type": "evt.thing.inclusion_report", "val": raw_report})
        )
    )
    mqtt_mock.async_publish.reset_mock()

    asyncio.run(
        hub._handle_adapter_message(
            _message(ADAPTER_TOPIC, {"type": "evt.thing.exclusion_report", "val": {"address": "14"}})
        )
    )

    published = _published(mqtt_mock)
    assert len(published) == 2
    assert all(payload == "" and retain for payload, retain in published.values())
    assert hub.payloads == {}


def test_events_are_forwarded_as_device_state(hub, mqtt_mock, raw_report):
    asyncio.run(
        hub._handle_adapter_message(
            _message(ADAPTER_TOPIC, {"type": "evt.thing.inclusion_report", "val": raw_report})
        )
    )
    mqtt_mock.async_publish.reset_mock()

    asyncio.run(
        hub._handle_event_message(
            _message("pt:j1/mt:evt" + THERMOSTAT_ADDRESS, {"type": "evt.mode.report", "val": "heat"})
        )
    )

    published = _published(mqtt_mock)
    state, retain = published["futurehome/zw_14/state"]
    assert retain is True
    assert json.loads(state) == {THERMOSTAT_ADDRESS: {"mode": "heat"}}


def test_commands_are_forwarded_to_the_hub(hub, mqtt_mock, raw_report):
    asyncio.run(
        hub._handle_adapter_message(
            _message(ADAPTER_TOPIC, {"type": "evt.thing.inclusion_report", "val": raw_report})
        )
    )
    mqtt_mock.async_publish.reset_mock()

    command_topic = hub.payloads["zw_14"].components[THERMOSTAT_ADDRESS].get("mode_command_topic")
    asyncio.run(hub._handle_command_message(SimpleNamespace(topic=command_topic, payload=b"heat")))
    asyncio.run(hub._handle_command_message(SimpleNamespace(topic=command_topic, payload=b"")))

    (call,) = mqtt_mock.async_publish.call_args_list
    assert call.args[1] == "pt:j1/mt:cmd" + THERMOSTAT_ADDRESS
    message = json.loads(call.args[2])
    assert message["type"] == "cmd.mode.set"
    assert message["val"] == "heat"
    assert call.kwargs["retain"] is False


def _include(hub, raw_report):
    asyncio.run(
        hub._handle_adapter_message(
            _message(ADAPTER_TOPIC, {"type": "evt.thing.inclusion_report", "val": raw_report})
        )
    )


def test_empty_platform_selection_publishes_nothing(make_hub, mqtt_mock, raw_report):
    hub = make_hub(**{CONF_PLATFORMS: []})

    _include(hub, raw_report)

    mqtt_mock.async_publish.assert_not_called()
    assert len(hub.payloads["zw_14"]) == 0


def test_platform_selection_limits_components(make_hub, mqtt_mock, raw_report):
    hub = make_hub(**{CONF_PLATFORMS: ["sensor"]})

    _include(hub, raw_report)

    assert [c.platform for c in hub.payloads["zw_14"].components.values()] == ["sensor"]


def test_state_is_published_on_the_template_state_topic(make_hub, mqtt_mock, raw_report, tmp_path):
    rules = tmp_path / "futurehome.yaml"
    rules.write_text("defaults:\n  topic_root: fh\n", encoding="utf-8")
    hub = make_hub(**{CONF_CONFIG_PATH: str(rules)})
    _include(hub, raw_report)
    component = hub.payloads["zw_14"].components[THERMOSTAT_ADDRESS]
    mqtt_mock.async_publish.reset_mock()

    asyncio.run(
        hub._handle_event_message(
            _message("pt:j1/mt:evt" + THERMOSTAT_ADDRESS, {"type": "evt.mode.report", "val": "heat"})
        )
    )

    (call,) = mqtt_mock.async_publish.call_args_list
    assert call.args[1] == "fh/zw_14/state"
    assert call.args[1] == component.get("mode_state_topic")
