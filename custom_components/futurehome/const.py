"""Constants for the Futurehome integration."""

DOMAIN = "futurehome"

CONF_DISCOVERY_PREFIX = "discovery_prefix"
CONF_TOPIC_ROOT = "topic_root"
CONF_CONFIG_PATH = "config_path"
CONF_PLATFORMS = "platforms"
CONF_QOS = "qos"
CONF_NAME = "name"

DEFAULT_DISCOVERY_PREFIX = "homeassistant"
DEFAULT_TOPIC_ROOT = "futurehome"
DEFAULT_QOS = 1

SUPPORTED_PLATFORMS = [
    "sensor",
    "binary_sensor",
    "climate",
    "humidifier",
    "select",
]

# FIMP topics
FIMP_EVT_PREFIX = "pt:j1/mt:evt"
FIMP_CMD_PREFIX = "pt:j1/mt:cmd"
FIMP_ADAPTER_TOPIC = "pt:j1/mt:evt/rt:ad/#"
FIMP_DEVICE_EVENT_TOPIC = "pt:j1/mt:evt/rt:dev/#"

FIMP_INCLUSION_REPORT = "evt.thing.inclusion_report"
FIMP_EXCLUSION_REPORT = "evt.thing.exclusion_report"
FIMP_SOURCE = "homeassistant"

IDENTIFIER_PREFIX = "futurehome"
