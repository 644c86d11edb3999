"""Extend the basic Accessory and Bridge functions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import Any

from pyhap.accessory import Accessory, Bridge
from pyhap.characteristic import Characteristic, CharacteristicError
from pyhap.const import CATEGORY_OTHER
from pyhap.service import Service

from homeassistant.core import callback
from homeassistant.util.decorator import Registry

from .config import AccessoryContext
from .const import (
    BRIDGE_MODEL,
    BRIDGE_SERIAL_NUMBER,
    MANUFACTURER,
    MODEL,
    NIGHT_MODE_SUFFIX,
    TYPE_NIGHT_MODE_SWITCH,
    __version__,
)
from .util import generate_aid

_LOGGER = logging.getLogger(__name__)

TYPES: Registry[str, type[HomeAccessory]] = Registry()


class CommunicationFailure(CharacteristicError):
    """The bulb could not be asked for a characteristic value."""


def get_accessory(
    driver,
    context: AccessoryContext,
    config: dict[str, Any],
    a_type: str,
    **kwargs: Any,
) -> HomeAccessory:
    """Build the accessory of type a_type for the bulb in context."""
    unique_id = context.device.ip_address
    name = context.device.name
    if a_type == TYPE_NIGHT_MODE_SWITCH:
        unique_id = f"{unique_id}-{NIGHT_MODE_SUFFIX}"
        name = f"{name} Night Mode"

    _LOGGER.debug('Add "%s" as "%s"', context.device.name, a_type)
    return TYPES[a_type](
        driver, name, generate_aid(unique_id), context, config, **kwargs
    )


class HomeAccessory(Accessory):
    """Adapter class for Accessory."""

    def __init__(
        self,
        driver,
        name: str,
        aid: int | None,
        context: AccessoryContext,
        config: dict[str, Any],
        *,
        category: int = CATEGORY_OTHER,
        **kwargs: Any,
    ) -> None:
        """Initialize a Accessory object."""
        super().__init__(driver=driver, display_name=name, aid=aid, **kwargs)
        self.context = context
        self.config = config or {}
        self.category = category
        self.set_info_service(
            manufacturer=MANUFACTURER,
            model=MODEL,
            serial_number=context.device.ip_address,
            firmware_revision=__version__,
        )

    def add_chars(self, service: Service, char_names: list[str]) -> None:
        """Attach characteristics to a service that was already added."""
        for char_name in char_names:
            char: Characteristic = self.driver.loader.get_char(char_name)
            service.add_characteristic(char)
            char.broker = self
            self.iid_manager.assign(char)

    def make_setter(
        self, target: Callable[[Any], Awaitable[None]]
    ) -> Callable[[Any], None]:
        """Return a setter_callback that schedules target on the driver loop."""

        def _setter(value: Any) -> None:
            self.driver.async_add_job(target, value)

        return _setter

    @callback
    def async_update_char(self, char: Characteristic | None, value: Any) -> None:
        """Push value into char unless it already holds it."""
        if char is None or char.value == value:
            return
        char.set_value(value)

    async def run(self) -> None:
        """Handle accessory driver started event."""

    async def stop(self) -> None:
        """Cancel any subscriptions when the bridge is stopped."""


class HomeBridge(Bridge):
    """Adapter class for Bridge."""

    def __init__(self, driver, name: str) -> None:
        """Initialize a Bridge object."""
        super().__init__(driver, name)
        self.set_info_service(
            firmware_revision=__version__,
            manufacturer=MANUFACTURER,
            model=BRIDGE_MODEL,
            serial_number=BRIDGE_SERIAL_NUMBER,
        )
