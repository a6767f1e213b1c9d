"""Config flow for Futurehome integration."""
import voluptuous as vol
from homeassistant import config_entries
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector

from .const import (
    CONF_CONFIG_PATH,
    CONF_DISCOVERY_PREFIX,
    CONF_NAME,
    CONF_PLATFORMS,
    CONF_QOS,
    CONF_TOPIC_ROOT,
    DEFAULT_DISCOVERY_PREFIX,
    DEFAULT_QOS,
    DEFAULT_TOPIC_ROOT,
    DOMAIN,
    SUPPORTED_PLATFORMS,
)

PLATFORMS_SELECTOR = selector.SelectSelector(
    selector.SelectSelectorConfig(
        options=[selector.SelectOptionDict(value=p, label=p) for p in SUPPORTED_PLATFORMS],
        multiple=True,
        mode=selector.SelectSelectorMode.DROPDOWN,
    )
)

QOS_SCHEMA = vol.All(vol.Coerce(int), vol.In([0, 1, 2]))

DATA_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_NAME, default="Futurehome"): str,
        vol.Optional(CONF_DISCOVERY_PREFIX, default=DEFAULT_DISCOVERY_PREFIX): str,
        vol.Optional(CONF_TOPIC_ROOT, default=DEFAULT_TOPIC_ROOT): str,
        vol.Optional(CONF_PLATFORMS, default=SUPPORTED_PLATFORMS): PLATFORMS_SELECTOR,
        vol.Optional(CONF_QOS, default=DEFAULT_QOS): QOS_SCHEMA,
        vol.Optional(CONF_CONFIG_PATH): str,
    }
)


class FuturehomeConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a Futurehome config flow."""

    VERSION = 1

    async def async_step_user(self, user_input=None) -> FlowResult:
        """Handle the initial step."""
        if user_input is None:
            return self.async_show_form(step_id="user", data_schema=DATA_SCHEMA)

        await self.async_set_unique_id(user_input[CONF_TOPIC_ROOT])
        self._abort_if_unique_id_configured()
        return self.async_create_entry(
            title=user_input[CONF_NAME],
            data=user_input,
        )

    @staticmethod
    def async_get_options_flow(config_entry):
        return FuturehomeOptionsFlowHandler(config_entry)


class FuturehomeOptionsFlowHandler(config_entries.OptionsFlow):
    """Handle Futurehome options flow."""

    def __init__(self, config_entry: config_entries.ConfigEntry) -> None:
        self._entry = config_entry

    async def async_step_init(self, user_input=None) -> FlowResult:
        """Manage the Futurehome options."""
        if user_input is not None:
            return self.async_create_entry(title="", data=user_input)

        data = self._entry.data
        options = self._entry.options

        schema = vol.Schema(
            {
                vol.Optional(
                    CONF_DISCOVERY_PREFIX,
                    default=options.get(
                        CONF_DISCOVERY_PREFIX, data.get(CONF_DISCOVERY_PREFIX, DEFAULT_DISCOVERY_PREFIX)
                    ),
                ): str,
                vol.Optional(
                    CONF_PLATFORMS,
                    default=options.get(CONF_PLATFORMS, data.get(CONF_PLATFORMS, SUPPORTED_PLATFORMS)),
                ): PLATFORMS_SELECTOR,
                vol.Optional(
                    CONF_QOS,
                    default=options.get(CONF_QOS, data.get(CONF_QOS, DEFAULT_QOS)),
                ): QOS_SCHEMA,
                vol.Optional(
                    CONF_CONFIG_PATH,
                    default=options.get(CONF_CONFIG_PATH, data.get(CONF_CONFIG_PATH, "")),
                ): str,
            }
        )

        return self.async_show_form(step_id="init", data_schema=schema)
