"""Shared fixtures for the Futurehome tests."""
from __future__ import annotations

import pytest

from custom_components.futurehome.models import (
    DeviceIdentity,
    InclusionReport,
    Service,
    ServiceProps,
)

WIND_ADDRESS = "/rt:dev/rn:zw/ad:1/sv:sensor_direct/ad:12_0"
THERMOSTAT_ADDRESS = "/rt:dev/rn:zw/ad:1/sv:thermostat/ad:14_0"


def make_service(service_type: str, address: str, **props) -> Service:
    return Service(service_type=service_type, address=address, props=ServiceProps(props))


@pytest.fixture
def identity() -> DeviceIdentity:
    return DeviceIdentity(
        device_id="zw_12",
        identifiers=("futurehome_zw_12",),
        topic_root="futurehome",
        name="Weather station",
        manufacturer="Popp",
        model="Wind sensor",
    )


@pytest.fixture
def wind_report() -> InclusionReport:
    return InclusionReport(
        address="12",
        comm_tech="zw",
        manufacturer="Popp",
        model="Wind sensor",
        services=(make_service("sensor_direct", "dev1/sensor1", sup_units=["°"]),),
    )


@pytest.fixture
def raw_report() -> dict:
    return {
        "address": "14",
        "comm_tech": "zw",
        "manufacturer_id": "Heatit",
        "product_name": "Z-TRM3",
        "hw_ver": "1",
        "sw_ver": "4.1",
        "services": [
            {
                "name": "thermostat",
                "address": THERMOSTAT_ADDRESS,
                "enabled": True,
                "props": {
                    "sup_modes": ["off", "heat", "eco"],
                    "sup_setpoints": ["heat"],
                    "sup_units": ["C"],
                },
                "interfaces": [
                    {"intf_t": "in", "msg_t": "cmd.mode.set", "val_t": "string", "ver": "1"},
                    {"intf_t": "out", "msg_t": "evt.mode.report", "val_t": "string", "ver": "1"},
                ],
            },
            {
                "name": "sensor_temp",
                "address": "/rt:dev/rn:zw/ad:1/sv:sensor_temp/ad:14_1",
                "props": {"sup_units": ["C"]},
                "interfaces": [],
            },
            {
                "name": "dev_sys",
                "address": "/rt:dev/rn:zw/ad:1/sv:dev_sys/ad:14_0",
                "props": {},
                "interfaces": [],
            },
        ],
    }


@pytest.fixture
def service_factory():
    return make_service
