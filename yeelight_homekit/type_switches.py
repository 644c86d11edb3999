"""Class to hold all switch accessories."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from pyhap.const import CATEGORY_SWITCH

from homeassistant.core import callback

from .accessories import TYPES, HomeAccessory
from .const import (
    CHAR_NAME,
    CHAR_ON,
    NIGHT_MODE_REARM_DELAY,
    SERV_SWITCH,
    TYPE_NIGHT_MODE_SWITCH,
)

if TYPE_CHECKING:
    from .type_lights import Light

_LOGGER = logging.getLogger(__name__)


@TYPES.register(TYPE_NIGHT_MODE_SWITCH)
class NightModeSwitch(HomeAccessory):
    """Switch that puts a light into night mode."""

    def __init__(self, *args: Any, light: Light) -> None:
        """Initialize a NightModeSwitch accessory object."""
        super().__init__(*args, category=CATEGORY_SWITCH)
        self.light = light
        self._rearm: asyncio.TimerHandle | None = None
        light.night_mode_switch = self

        serv_switch = self.add_preload_service(SERV_SWITCH, [CHAR_NAME])
        serv_switch.configure_char(CHAR_NAME, value=self.display_name)
        self.char_on = serv_switch.configure_char(
            CHAR_ON, value=False, setter_callback=self.set_state
        )

    @property
    def available(self) -> bool:
        return self.light.available

    def set_state(self, value: bool) -> None:
        """Move switch state to value if call came from HomeKit."""
        _LOGGER.debug("%s: Set switch state to %s", self.display_name, value)
        self.driver.async_add_job(self.light.async_set_night_mode, value)

    @callback
    def async_update_state(self, active: bool) -> None:
        """Reflect the night mode state of the light."""
        if not active:
            self._async_cancel_rearm()
        self.async_update_char(self.char_on, active)

    @callback
    def async_schedule_rearm(self) -> None:
        """Turn the switch back on shortly, as night mode is still active."""
        self._async_cancel_rearm()
        self._rearm = self.driver.loop.call_later(
            NIGHT_MODE_REARM_DELAY, self._async_rearm
        )

    @callback
    def _async_cancel_rearm(self) -> None:
        if self._rearm is not None:
            self._rearm.cancel()
            self._rearm = None

    @callback
    def _async_rearm(self) -> None:
        self._rearm = None
        if self.light.night_mode_active:
            # set_value does not call the setter, so no device command is sent
            self.char_on.set_value(True)

    async def stop(self) -> None:
        self._async_cancel_rearm()
