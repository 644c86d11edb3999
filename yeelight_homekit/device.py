"""Device client wrapping a python-yeelight bulb."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass
import enum
from functools import wraps
import logging
import re
from typing import Any

from yeelight import BulbException, PowerMode
from yeelight.aio import KEY_CONNECTED, AsyncBulb

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.util.color import (
    color_RGB_to_hs,
    color_temperature_kelvin_to_mired,
    color_temperature_to_hs,
)

from .config import DeviceSettings
from .const import (
    COLOR_MODEL_HSV,
    COLOR_MODEL_RGB,
    COLOR_MODEL_TEMPERATURE,
    EVENT_BRIGHTNESS_CHANGED,
    EVENT_COLOR_CHANGED,
    EVENT_FLOW_CHANGED,
    EVENT_MODE_CHANGED,
    EVENT_MOONLIGHT_BRIGHTNESS_CHANGED,
    EVENT_POWER_CHANGED,
)
from .util import rgb_from_int

_LOGGER = logging.getLogger(__name__)

# Values of the color_mode property
COLOR_MODE_RGB = 1
COLOR_MODE_TEMPERATURE = 2
COLOR_MODE_HSV = 3

COLOR_PROPERTIES = {"color_mode", "ct", "rgb", "hue", "sat"}

KELVIN_EXPRESSION = re.compile(r"^\s*(\d+)\s*K\s*$", re.IGNORECASE)
HSL_EXPRESSION = re.compile(
    r"^\s*hsl\(\s*(\d+(?:\.\d+)?)\s*,\s*(\d+(?:\.\d+)?)%\s*,"
    r"\s*(\d+(?:\.\d+)?)%\s*\)\s*$",
    re.IGNORECASE,
)
HEX_EXPRESSION = re.compile(r"^\s*#([0-9a-f]{6})\s*$", re.IGNORECASE)


class DeviceError(HomeAssistantError):
    """Base error for device client failures."""


class DeviceConnectionError(DeviceError):
    """The connection to the bulb could not be established."""


class DeviceCommandError(DeviceError):
    """A command sent to the bulb failed."""


class Capability(enum.Flag):
    """Features a bulb reports support for."""

    NONE = 0
    POWER = enum.auto()
    BRIGHTNESS = enum.auto()
    COLOR_TEMPERATURE = enum.auto()
    COLOR = enum.auto()
    MOONLIGHT = enum.auto()
    FLOW = enum.auto()


@dataclass(frozen=True)
class ColorChange:
    """Payload of the color_changed event."""

    model: str
    mired: int | None
    hue: float
    saturation: float


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _as_int(value: Any) -> int | None:
    if not _present(value):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def detect_capabilities(properties: dict[str, Any]) -> Capability:
    """Derive the capability set from a property snapshot."""
    capabilities = Capability.NONE
    if _present(properties.get("power")):
        capabilities |= Capability.POWER
    if _present(properties.get("bright")):
        capabilities |= Capability.BRIGHTNESS
    if _present(properties.get("ct")):
        capabilities |= Capability.COLOR_TEMPERATURE
    if _present(properties.get("rgb")) or (
        _present(properties.get("hue")) and _present(properties.get("sat"))
    ):
        capabilities |= Capability.COLOR
    if _present(properties.get("nl_br")) or _present(properties.get("active_mode")):
        capabilities |= Capability.MOONLIGHT
    if _present(properties.get("flowing")):
        capabilities |= Capability.FLOW
    return capabilities


def _async_cmd(func):
    """Define a wrapper to catch exceptions from the bulb."""

    @wraps(func)
    async def _async_wrap(self: YeelightDevice, *args, **kwargs):
        _LOGGER.debug(
            "%s: Calling %s with %s %s", self.name, func.__name__, args, kwargs
        )
        try:
            return await func(self, *args, **kwargs)
        except asyncio.TimeoutError as ex:
            raise DeviceCommandError(
                f"Timed out when calling {func.__name__} for bulb "
                f"{self.name} at {self.host}: {str(ex) or type(ex)}"
            ) from ex
        except OSError as ex:
            # A network error happened, the bulb is likely offline now
            self.async_mark_unavailable()
            raise DeviceCommandError(
                f"Error when calling {func.__name__} for bulb "
                f"{self.name} at {self.host}: {str(ex) or type(ex)}"
            ) from ex
        except BulbException as ex:
            raise DeviceCommandError(
                f"Error when calling {func.__name__} for bulb "
                f"{self.name} at {self.host}: {str(ex) or type(ex)}"
            ) from ex

    return _async_wrap


class YeelightDevice:
    """Connection to a single Yeelight bulb."""

    def __init__(self, settings: DeviceSettings, bulb: AsyncBulb) -> None:
        self.settings = settings
        self._bulb = bulb
        self._available = False
        self._listeners: dict[str, list[Callable[[Any], None]]] = {}
        self.properties: dict[str, Any] = {}
        self.capabilities = Capability.NONE

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def host(self) -> str:
        return self.settings.ip_address

    @property
    def available(self) -> bool:
        return self._available

    def matches(self, *capabilities: Capability) -> bool:
        """Return True if the bulb has every given capability."""
        return all(capability in self.capabilities for capability in capabilities)

    async def async_connect(self) -> None:
        """Start listening for notifications and load the bulb properties."""
        try:
            await self._bulb.async_listen(self._async_update_callback)
            await self._bulb.async_get_properties()
        except (asyncio.TimeoutError, OSError, BulbException) as ex:
            await self.async_close()
            raise DeviceConnectionError(
                f"Unable to connect to bulb {self.name} at {self.host}: "
                f"{str(ex) or type(ex)}"
            ) from ex

        self.properties = {
            key: value
            for key, value in (self._bulb.last_properties or {}).items()
            if _present(value)
        }
        if not self.properties:
            await self.async_close()
            raise DeviceConnectionError(
                f"Bulb {self.name} at {self.host} did not report any properties"
            )
        self.capabilities = detect_capabilities(self.properties)
        self._available = True
        _LOGGER.debug(
            "%s: Connected with capabilities %s", self.name, self.capabilities
        )

    async def async_close(self) -> None:
        """Stop listening for notifications."""
        self._available = False
        try:
            await self._bulb.async_stop_listening()
        except (asyncio.TimeoutError, OSError, BulbException) as ex:
            _LOGGER.debug("%s: Error while closing connection: %s", self.name, ex)

    @callback
    def async_mark_unavailable(self) -> None:
        self._available = False

    @callback
    def async_subscribe(
        self, event: str, listener: Callable[[Any], None]
    ) -> CALLBACK_TYPE:
        """Register a listener for a device event and return its remover."""
        listeners = self._listeners.setdefault(event, [])
        listeners.append(listener)

        @callback
        def _remove_listener() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return _remove_listener

    @callback
    def _async_fire(self, event: str, payload: Any) -> None:
        for listener in list(self._listeners.get(event, ())):
            listener(payload)

    @callback
    def _async_update_callback(self, data: dict[str, Any]) -> None:
        """Handle a notification pushed by the bulb."""
        if KEY_CONNECTED in data:
            connected = bool(data[KEY_CONNECTED])
            if connected != self._available:
                _LOGGER.info(
                    "%s: Bulb is %s", self.name, "online" if connected else "offline"
                )
            self._available = connected

        changed = {
            key: value
            for key, value in data.items()
            if key != KEY_CONNECTED and _present(value)
        }
        if not changed:
            return
        self.properties.update(changed)
        self._async_dispatch(changed)

    @callback
    def async_dispatch_state(self) -> None:
        """Fire every event for the current property snapshot."""
        self._async_dispatch(self.properties)

    @callback
    def _async_dispatch(self, changed: dict[str, Any]) -> None:
        if _present(changed.get("power")):
            self._async_fire(EVENT_POWER_CHANGED, changed["power"] == "on")

        if (brightness := _as_int(changed.get("bright"))) is not None:
            self._async_fire(EVENT_BRIGHTNESS_CHANGED, brightness)

        if COLOR_PROPERTIES.intersection(changed):
            if (color := self.color) is not None:
                self._async_fire(EVENT_COLOR_CHANGED, color)

        if (active_mode := _as_int(changed.get("active_mode"))) is not None:
            self._async_fire(EVENT_MODE_CHANGED, active_mode == 1)

        if (nl_brightness := _as_int(changed.get("nl_br"))) is not None:
            self._async_fire(EVENT_MOONLIGHT_BRIGHTNESS_CHANGED, nl_brightness)

        if (flowing := _as_int(changed.get("flowing"))) is not None:
            self._async_fire(EVENT_FLOW_CHANGED, flowing == 1)

    @property
    def color(self) -> ColorChange | None:
        """Return the current color, or None if it cannot be determined."""
        props = self.properties
        color_mode = _as_int(props.get("color_mode"))

        if color_mode == COLOR_MODE_TEMPERATURE:
            if (kelvin := _as_int(props.get("ct"))) is None or kelvin <= 0:
                return None
            hue, saturation = color_temperature_to_hs(kelvin)
            return ColorChange(
                COLOR_MODEL_TEMPERATURE,
                color_temperature_kelvin_to_mired(kelvin),
                hue,
                saturation,
            )

        if color_mode == COLOR_MODE_RGB:
            if (rgb := _as_int(props.get("rgb"))) is None:
                return None
            hue, saturation = color_RGB_to_hs(*rgb_from_int(rgb))
            return ColorChange(COLOR_MODEL_RGB, None, hue, saturation)

        if color_mode == COLOR_MODE_HSV:
            hue = _as_int(props.get("hue"))
            saturation = _as_int(props.get("sat"))
            if hue is None or saturation is None:
                return None
            return ColorChange(COLOR_MODEL_HSV, None, float(hue), float(saturation))

        return None

    @_async_cmd
    async def async_set_power(self, on: bool) -> None:
        if on:
            await self._bulb.async_turn_on()
        else:
            await self._bulb.async_turn_off()

    @_async_cmd
    async def async_set_brightness(self, brightness: int) -> None:
        await self._bulb.async_set_brightness(brightness)

    @_async_cmd
    async def async_color(self, expression: str) -> None:
        """Apply a color expression.

        Accepted forms are ``<N>K`` for a color temperature in kelvin,
        ``hsl(H, S%, L%)`` for hue and saturation (lightness is ignored, the
        bulb keeps brightness separately) and ``#rrggbb``.
        """
        if match := KELVIN_EXPRESSION.match(expression):
            await self._bulb.async_set_color_temp(int(match.group(1)))
        elif match := HSL_EXPRESSION.match(expression):
            hue = round(float(match.group(1))) % 360
            saturation = min(100, round(float(match.group(2))))
            await self._bulb.async_set_hsv(hue, saturation)
        elif match := HEX_EXPRESSION.match(expression):
            await self._bulb.async_set_rgb(*rgb_from_int(int(match.group(1), 16)))
        else:
            raise DeviceCommandError(f"Unsupported color expression: {expression}")

    @_async_cmd
    async def async_set_scene(self, scene_class, *args: Any) -> None:
        await self._bulb.async_set_scene(scene_class, *args)

    @_async_cmd
    async def async_stop_flow(self) -> None:
        await self._bulb.async_stop_flow()

    @_async_cmd
    async def async_set_moonlight(self, enabled: bool) -> None:
        await self._bulb.async_set_power_mode(
            PowerMode.MOONLIGHT if enabled else PowerMode.NORMAL
        )

    @_async_cmd
    async def async_load_properties(self, names: Iterable[str]) -> dict[str, Any]:
        """Read the given properties from the bulb."""
        names = list(names)
        await self._bulb.async_get_properties(names)
        last_properties = self._bulb.last_properties or {}
        loaded = {name: last_properties.get(name) for name in names}
        self.properties.update(
            {key: value for key, value in loaded.items() if _present(value)}
        )
        return loaded


async def async_open_device(settings: DeviceSettings) -> YeelightDevice:
    """Open a connection to the bulb described by settings."""
    bulb = AsyncBulb(settings.ip_address, port=settings.port)
    device = YeelightDevice(settings, bulb)
    await device.async_connect()
    return device
