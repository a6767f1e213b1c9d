"""Support for Futurehome devices via Home Assistant MQTT discovery."""
import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from .const import DOMAIN

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Futurehome from a config entry."""
    from .hub import FuturehomeHub

    _LOGGER.debug("Setting up Futurehome integration")

    hass.data.setdefault(DOMAIN, {})
    hub = FuturehomeHub(hass, entry)
    await hub.async_setup()
    hass.data[DOMAIN][entry.entry_id] = hub
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    _LOGGER.debug("Unloading Futurehome integration")

    hub = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    if hub:
        await hub.async_unload()
    return True


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload config entry."""
    await async_unload_entry(hass, entry)
    await async_setup_entry(hass, entry)
