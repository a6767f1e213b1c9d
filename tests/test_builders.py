import json

import pytest
from homeassistant.const import Platform

from custom_components.futurehome.builders import BUILDERS, build
from custom_components.futurehome.catalog import validate
from custom_components.futurehome.classifier import SERVICE_VARIANTS, classify, ordered
from custom_components.futurehome.models import PlatformMatch, Variant, object_id

WIND = PlatformMatch(Platform.SENSOR, Variant.WIND_DIRECTION)


def _build_all(service, identity):
    components = []
    for match in ordered(classify(service)):
        components.extend(build(match, service, identity))
    return components


def test_every_variant_has_a_builder():
    assert set(BUILDERS) == set(Variant)


def test_wind_direction_sensor(service_factory, identity):
    (component,) = build(WIND, service_factory("sensor_direct", "dev1/sensor1", sup_units=["°"]), identity)

    assert component.unique_id == "dev1/sensor1"
    assert component.platform == Platform.SENSOR
    assert component.get("unit_of_measurement") == "°"
    assert component.get("device_class") == "wind_direction"
    assert component.get("value_template") == "{{ value_json['dev1/sensor1'].sensor }}"
    assert component.get("state_topic") == "futurehome/zw_12/state"
    assert component.get("device") is identity.device


@pytest.mark.parametrize("units", [[], ["%"], [""]])
def test_wind_direction_falls_back_to_degrees(service_factory, identity, units):
    (component,) = build(WIND, service_factory("sensor_direct", "dev1/sensor1", sup_units=units), identity)

    assert component.get("unit_of_measurement") == "°"


def test_wind_direction_unit_alias(service_factory, identity):
    (component,) = build(WIND, service_factory("sensor", "dev1/sensor1", sup_units=["deg"]), identity)

    assert component.get("unit_of_measurement") == "°"


def test_temperature_sensor_unit_mapping(service_factory, identity):
    (component,) = _build_all(service_factory("sensor_temp", "dev1/t", sup_units=["C"]), identity)

    assert component.get("device_class") == "temperature"
    assert component.get("unit_of_measurement") == "°C"
    assert component.get("state_class") == "measurement"


def test_unmapped_device_class_stays_unset(service_factory, identity):
    (component,) = _build_all(service_factory("sensor_uv", "dev1/uv"), identity)

    assert "device_class" not in component.fields
    assert component.get("unit_of_measurement") == "UV index"


def test_generic_sensor_uses_declared_unit(service_factory, identity):
    (component,) = _build_all(service_factory("sensor", "dev1/s", sup_units=["ppb"]), identity)

    assert component.get("unit_of_measurement") == "ppb"
    assert "device_class" not in component.fields


def test_generic_sensor_without_unit(service_factory, identity):
    (component,) = _build_all(service_factory("sensor", "dev1/s"), identity)

    assert "unit_of_measurement" not in component.fields


def test_binary_sensor(service_factory, identity):
    (component,) = _build_all(service_factory("sensor_presence", "dev1/p"), identity)

    assert component.platform == Platform.BINARY_SENSOR
    assert component.get("device_class") == "occupancy"
    assert component.get("value_template") == "{{ 'ON' if value_json['dev1/p'].presence else 'OFF' }}"


def test_address_is_quoted_in_templates(service_factory, identity):
    (component,) = build(WIND, service_factory("sensor_direct", "dev'1"), identity)

    assert component.unique_id == "dev'1"
    assert component.get("value_template") == "{{ value_json['dev\\'1'].sensor }}"


def test_thermostat(service_factory, identity):
    service = service_factory(
        "thermostat",
        "dev1/th",
        sup_modes=["off", "heat", "fan", "eco"],
        sup_setpoints=["heat"],
        sup_units=["C"],
        min_temp=5,
        max_temp=28,
        step=0.5,
    )
    (component,) = _build_all(service, identity)

    assert component.platform == Platform.CLIMATE
    assert component.unique_id == "dev1/th"
    assert component.get("modes") == ["off", "heat", "fan_only"]
    assert component.get("mode_state_template") == "{{ value_json['dev1/th'].mode }}"
    assert component.get("temperature_state_template") == "{{ value_json['dev1/th'].setpoint.temp }}"
    assert component.get("action_template") == "{{ value_json['dev1/th'].action }}"
    assert component.get("min_temp") == 5
    assert component.get("max_temp") == 28
    assert component.get("temp_step") == 0.5
    assert component.get("temperature_unit") == "C"
    assert component.get("temperature_command_template") == (
        '{"type": "heat", "temp": "{{ value }}", "unit": "C"}'
    )
    mode_template = component.get("mode_command_template")
    assert json.dumps({"fan_only": "fan", "heat": "heat", "off": "off"}, sort_keys=True) in mode_template

    assert {route.command for route in component.commands} == {"mode", "temperature"}
    assert {route.topic for route in component.commands} == {
        component.get("mode_command_topic"),
        component.get("temperature_command_topic"),
    }
    assert component.get("mode_command_topic") == f"futurehome/zw_12/{object_id('dev1/th')}/mode/set"


def test_thermostat_defaults_on_bad_props(service_factory, identity):
    service = service_factory("thermostat", "dev1/th", sup_modes=["eco"], min_temp=30, max_temp=10, sup_units=["K"])
    (component,) = _build_all(service, identity)

    assert component.get("modes") == ["off", "heat"]
    assert "mode_command_template" not in component.fields
    assert component.get("min_temp") == 7.0
    assert component.get("max_temp") == 35.0
    assert "temperature_unit" not in component.fields


def test_thermostat_with_fan_modes(service_factory, identity):
    service = service_factory("thermostat", "dev1/th", sup_fan_modes=["auto", "low", "high"])
    climate, select = _build_all(service, identity)

    assert climate.unique_id == "dev1/th"
    assert select.platform == Platform.SELECT
    assert select.unique_id == "dev1/th_fan_mode"
    assert select.get("options") == ["auto", "low", "high"]
    assert select.get("value_template") == "{{ value_json['dev1/th'].fan_mode }}"
    assert [route.command for route in select.commands] == ["fan_mode"]


def test_fan_mode_select_without_modes_builds_nothing(service_factory, identity):
    match = PlatformMatch(Platform.SELECT, Variant.FAN_MODE_SELECT, primary=False)

    assert build(match, service_factory("thermostat", "dev1/th"), identity) == ()


def test_humidifier(service_factory, identity):
    service = service_factory("humidity-control", "dev1/h", type="dehumidifier", sup_modes=["auto", "boost"])
    (component,) = _build_all(service, identity)

    assert component.platform == Platform.HUMIDIFIER
    assert component.get("device_class") == "dehumidifier"
    assert component.get("modes") == ["auto", "boost"]
    assert component.get("state_value_template") == "{{ 'ON' if value_json['dev1/h'].state else 'OFF' }}"
    assert component.get("min_humidity") == 0.0
    assert component.get("max_humidity") == 100.0
    assert {route.command for route in component.commands} == {"power", "target_humidity", "mode"}


def test_humidifier_defaults(service_factory, identity):
    service = service_factory("humidity-control", "dev1/h", type="sprinkler", min_humidity=80, max_humidity=20)
    (component,) = _build_all(service, identity)

    assert component.get("device_class") == "humidifier"
    assert "modes" not in component.fields
    assert "mode_command_topic" not in component.fields
    assert component.get("min_humidity") == 0.0
    assert {route.command for route in component.commands} == {"power", "target_humidity"}


@pytest.mark.parametrize("service_type", sorted(SERVICE_VARIANTS) + ["sensor"])
def test_built_components_satisfy_the_catalog(service_factory, identity, service_type):
    service = service_factory(service_type, "dev1/svc", sup_units=["bogus"], sup_fan_modes=["low"])

    components = _build_all(service, identity)

    assert components
    assert components[0].unique_id == "dev1/svc"
    for component in components:
        assert validate(component) == []


@pytest.mark.parametrize(
    "props",
    [
        {"min_temp": "nan", "max_temp": "inf", "step": "-2"},
        {"min_temp": "1e999", "step": 0},
        {"min_temp": float("nan"), "max_temp": float("nan"), "step": "nan"},
    ],
)
def test_thermostat_non_finite_or_non_positive_props_fall_back(service_factory, identity, props):
    (component,) = _build_all(service_factory("thermostat", "dev1/th", **props), identity)

    assert component.get("min_temp") == 7.0
    assert component.get("max_temp") == 35.0
    assert component.get("temp_step") == 1.0
    assert "NaN" not in json.dumps(component.as_dict())
    assert "Infinity" not in json.dumps(component.as_dict())


def test_humidifier_non_finite_range_falls_back(service_factory, identity):
    service = service_factory("humidity-control", "dev1/h", min_humidity="nan", max_humidity="inf")
    (component,) = _build_all(service, identity)

    assert component.get("min_humidity") == 0.0
    assert component.get("max_humidity") == 100.0
