"""Expose Yeelight bulbs to HomeKit through a HAP-python bridge."""

from __future__ import annotations

import logging
import signal
from typing import Any

from pyhap.accessory_driver import AccessoryDriver

from homeassistant.const import CONF_LIGHTS, CONF_PORT

from . import type_lights, type_switches  # noqa: F401
from .accessories import HomeBridge, get_accessory
from .config import AccessoryContext, DeviceSettings
from .const import (
    CONF_BRIDGE_NAME,
    CONF_DEBUG_LOGGING,
    CONF_PERSIST_FILE,
    CONF_PINCODE,
    TYPE_LIGHT,
    TYPE_NIGHT_MODE_SWITCH,
    __version__,
)

_LOGGER = logging.getLogger(__name__)

__all__ = ["YeelightHomeKit", "__version__"]


class YeelightHomeKit:
    """Class to handle all actions between HomeKit and the Yeelight bulbs."""

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize a YeelightHomeKit object."""
        self._config = config
        self.driver: AccessoryDriver | None = None
        self.bridge: HomeBridge | None = None
        self.lights: list[type_lights.Light] = []

        if config.get(CONF_DEBUG_LOGGING):
            logging.getLogger(__package__).setLevel(logging.DEBUG)

    def setup(self) -> None:
        """Set up bridge and accessory driver."""
        config = self._config
        pincode = config.get(CONF_PINCODE)
        self.driver = AccessoryDriver(
            port=config[CONF_PORT],
            persist_file=config[CONF_PERSIST_FILE],
            pincode=pincode.encode("utf-8") if pincode else None,
        )
        self.bridge = HomeBridge(self.driver, config[CONF_BRIDGE_NAME])

        for light_config in config[CONF_LIGHTS]:
            self.add_light(light_config)

        self.driver.add_accessory(accessory=self.bridge)
        _LOGGER.debug("Driver set up with %d accessories", len(self.bridge.accessories))

    def add_light(self, light_config: dict[str, Any]) -> type_lights.Light:
        """Add the accessories of one configured bulb to the bridge."""
        assert self.driver is not None and self.bridge is not None
        context = AccessoryContext(DeviceSettings.from_config(light_config))

        light = get_accessory(self.driver, context, self._config, TYPE_LIGHT)
        self.bridge.add_accessory(light)
        self.lights.append(light)

        if context.device.night_mode_switch:
            switch = get_accessory(
                self.driver, context, self._config, TYPE_NIGHT_MODE_SWITCH, light=light
            )
            self.bridge.add_accessory(switch)
        return light

    def start(self) -> None:
        """Run the accessory driver until it is stopped."""
        if self.driver is None:
            self.setup()
        assert self.driver is not None
        signal.signal(signal.SIGTERM, self.driver.signal_handler)
        _LOGGER.info("Starting %s (version %s)", self.bridge.display_name, __version__)
        self.driver.start()
