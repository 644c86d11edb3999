"""Class to hold all light accessories."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
import logging
from time import monotonic
from typing import TYPE_CHECKING, Any

from pyhap.characteristic import Characteristic
from pyhap.const import CATEGORY_LIGHTBULB
from yeelight import Flow, RGBTransition, SceneClass

from homeassistant.core import CALLBACK_TYPE, callback
from homeassistant.util.color import color_temperature_kelvin_to_mired

from .accessories import TYPES, CommunicationFailure, HomeAccessory
from .const import (
    CHAR_BRIGHTNESS,
    CHAR_COLOR_TEMPERATURE,
    CHAR_HUE,
    CHAR_NAME,
    CHAR_ON,
    CHAR_SATURATION,
    COLOR_FLOW_BRIGHTNESS,
    COLOR_FLOW_COLORS,
    COLOR_FLOW_DURATION,
    COLOR_MODEL_TEMPERATURE,
    CONF_MAX_MIREDS,
    CONF_MIN_MIREDS,
    CONF_PULL_STATE,
    DEFAULT_MAX_MIREDS,
    DEFAULT_MIN_MIREDS,
    EVENT_BRIGHTNESS_CHANGED,
    EVENT_COLOR_CHANGED,
    EVENT_FLOW_CHANGED,
    EVENT_MODE_CHANGED,
    EVENT_MOONLIGHT_BRIGHTNESS_CHANGED,
    EVENT_POWER_CHANGED,
    HOLD_BRIGHTNESS,
    HOLD_COLOR,
    HOLD_POWER,
    LOCAL_SET_HOLD,
    NAME_COLOR_FLOW,
    NAME_MOONLIGHT,
    NIGHT_MODE_BRIGHTNESS,
    NIGHT_MODE_HUE,
    NIGHT_MODE_SATURATION,
    PROP_MAX_VALUE,
    PROP_MIN_VALUE,
    SERV_LIGHTBULB,
    SERV_SWITCH,
    TYPE_LIGHT,
    UNIQUE_ID_COLOR_FLOW,
    UNIQUE_ID_MOONLIGHT,
)
from .device import (
    Capability,
    ColorChange,
    DeviceError,
    YeelightDevice,
    async_open_device,
)
from .util import (
    clamp,
    hsl_expression,
    kelvin_expression,
    mired_to_kelvin,
    rgb_from_int,
)

if TYPE_CHECKING:
    from .type_switches import NightModeSwitch

_LOGGER = logging.getLogger(__name__)

DeviceFactory = Callable[..., Awaitable[YeelightDevice]]


@dataclass
class LightCharacteristics:
    """Characteristics of a light; None where the bulb lacks the capability."""

    on: Characteristic
    brightness: Characteristic | None = None
    color_temperature: Characteristic | None = None
    hue: Characteristic | None = None
    saturation: Characteristic | None = None
    moonlight: Characteristic | None = None
    moonlight_brightness: Characteristic | None = None
    color_flow: Characteristic | None = None


@dataclass
class ShadowState:
    """Last hue and saturation sent to the bulb.

    The bulb only accepts both channels in one command.
    """

    hue: float = 0
    saturation: float = 0


@TYPES.register(TYPE_LIGHT)
class Light(HomeAccessory):
    """Generate a Light accessory for a Yeelight bulb.

    Only the On characteristic exists until the bulb connection resolves.
    Brightness, color temperature, hue/saturation, moonlight and color flow
    are attached once the bulb reports the matching capabilities.
    """

    def __init__(
        self, *args: Any, device_factory: DeviceFactory = async_open_device
    ) -> None:
        """Initialize a new Light accessory object."""
        super().__init__(*args, category=CATEGORY_LIGHTBULB)
        self._device_factory = device_factory
        self.device: YeelightDevice | None = None
        self.state = ShadowState()
        self.min_mireds = self.config.get(CONF_MIN_MIREDS, DEFAULT_MIN_MIREDS)
        self.max_mireds = self.config.get(CONF_MAX_MIREDS, DEFAULT_MAX_MIREDS)
        self.pull_state = self.config.get(CONF_PULL_STATE, False)
        self.night_mode_active = False
        self.night_mode_switch: NightModeSwitch | None = None
        self._holds: dict[str, float] = {}
        self._subscriptions: list[CALLBACK_TYPE] = []

        self.serv_light = self.add_preload_service(SERV_LIGHTBULB, [CHAR_NAME])
        self.serv_light.configure_char(CHAR_NAME, value=self.display_name)
        self.set_primary_service(self.serv_light)
        self.chars = LightCharacteristics(
            on=self.serv_light.configure_char(CHAR_ON, value=False)
        )
        self.serv_light.setter_callback = self._set_chars

    @property
    def available(self) -> bool:
        """Return if the bulb connection is usable."""
        return self.device is not None and self.device.available

    def _getter(self, getter: Callable[[], Any]) -> Callable[[], Any] | None:
        return getter if self.pull_state else None

    def to_HAP(self, include_value: bool = True) -> dict[str, Any]:
        """Serialize the accessory from the cached characteristic values.

        Getters answer direct reads only; an unreachable bulb must not break
        the accessory listing of the whole bridge.
        """
        getters = []
        for service in self.services:
            for char in service.characteristics:
                if char.getter_callback is not None:
                    getters.append((char, char.getter_callback))
                    char.getter_callback = None
        try:
            return super().to_HAP(include_value=include_value)
        finally:
            for char, getter in getters:
                char.getter_callback = getter

    async def run(self) -> None:
        """Open the bulb connection and attach the supported characteristics."""
        settings = self.context.device
        try:
            self.device = await self._device_factory(settings)
        except DeviceError as err:
            _LOGGER.error("%s: %s", self.display_name, err)
            return

        _LOGGER.info(
            "%s: Opened connection to %s", self.display_name, settings.ip_address
        )
        self._async_setup_capabilities()
        self.driver.config_changed()
        self.device.async_dispatch_state()

    async def stop(self) -> None:
        """Remove device listeners and close the bulb connection."""
        while self._subscriptions:
            self._subscriptions.pop()()
        if self.device is not None:
            await self.device.async_close()

    @callback
    def _async_setup_capabilities(self) -> None:
        device = self.device
        assert device is not None
        serv_light = self.serv_light
        self.chars.on.getter_callback = self._getter(self.get_on)

        if device.matches(Capability.BRIGHTNESS):
            self.add_chars(serv_light, [CHAR_BRIGHTNESS])
            self.chars.brightness = serv_light.configure_char(
                CHAR_BRIGHTNESS,
                value=100,
                getter_callback=self._getter(self.get_brightness),
            )
            self._subscribe(EVENT_BRIGHTNESS_CHANGED, self._async_brightness_changed)

        if device.matches(Capability.COLOR_TEMPERATURE):
            self.add_chars(serv_light, [CHAR_COLOR_TEMPERATURE])
            self.chars.color_temperature = serv_light.configure_char(
                CHAR_COLOR_TEMPERATURE,
                value=self.min_mireds,
                properties={
                    PROP_MIN_VALUE: self.min_mireds,
                    PROP_MAX_VALUE: self.max_mireds,
                },
                getter_callback=self._getter(self.get_color_temperature),
            )

        if device.matches(Capability.COLOR):
            self.add_chars(serv_light, [CHAR_HUE, CHAR_SATURATION])
            self.chars.hue = serv_light.configure_char(
                CHAR_HUE, value=0, getter_callback=self._getter(self.get_hue)
            )
            self.chars.saturation = serv_light.configure_char(
                CHAR_SATURATION,
                value=0,
                getter_callback=self._getter(self.get_saturation),
            )

        if self.chars.color_temperature is not None or self.chars.hue is not None:
            self._subscribe(EVENT_COLOR_CHANGED, self._async_color_changed)

        if device.matches(Capability.MOONLIGHT):
            serv_moonlight = self.add_preload_service(
                SERV_LIGHTBULB,
                [CHAR_NAME, CHAR_BRIGHTNESS],
                unique_id=UNIQUE_ID_MOONLIGHT,
            )
            serv_moonlight.configure_char(CHAR_NAME, value=NAME_MOONLIGHT)
            self.chars.moonlight = serv_moonlight.configure_char(
                CHAR_ON,
                value=False,
                setter_callback=self.make_setter(self.async_set_moonlight),
            )
            self.chars.moonlight_brightness = serv_moonlight.configure_char(
                CHAR_BRIGHTNESS,
                value=100,
                setter_callback=self.make_setter(self.async_set_moonlight_brightness),
            )
            serv_light.add_linked_service(serv_moonlight)
            self._subscribe(EVENT_MODE_CHANGED, self._async_mode_changed)
            self._subscribe(
                EVENT_MOONLIGHT_BRIGHTNESS_CHANGED,
                self._async_moonlight_brightness_changed,
            )

        if device.matches(Capability.COLOR, Capability.FLOW):
            serv_flow = self.add_preload_service(
                SERV_SWITCH, [CHAR_NAME], unique_id=UNIQUE_ID_COLOR_FLOW
            )
            serv_flow.configure_char(CHAR_NAME, value=NAME_COLOR_FLOW)
            self.chars.color_flow = serv_flow.configure_char(
                CHAR_ON,
                value=False,
                setter_callback=self.make_setter(self.async_set_color_flow),
            )
            serv_light.add_linked_service(serv_flow)
            self._subscribe(EVENT_FLOW_CHANGED, self._async_flow_changed)

        self._subscribe(EVENT_POWER_CHANGED, self._async_power_changed)

    def _subscribe(self, event: str, listener: Callable[[Any], None]) -> None:
        assert self.device is not None
        self._subscriptions.append(self.device.async_subscribe(event, listener))

    # #### HomeKit writes ####

    def _set_chars(self, char_values: dict[str, Any]) -> None:
        _LOGGER.debug("%s: Set chars %s", self.display_name, char_values)
        self.driver.async_add_job(self.async_set_chars, char_values)

    async def async_set_chars(self, char_values: dict[str, Any]) -> None:
        """Apply one batch of Lightbulb characteristic writes."""
        self._async_leave_night_mode()

        if CHAR_ON in char_values and not char_values[CHAR_ON]:
            await self.async_set_on(False)
            return
        if self.chars.brightness is not None and char_values.get(CHAR_BRIGHTNESS) == 0:
            await self.async_set_on(False)
            return

        if CHAR_ON in char_values:
            await self.async_set_on(True)

        if self.chars.brightness is not None and CHAR_BRIGHTNESS in char_values:
            await self.async_set_brightness(char_values[CHAR_BRIGHTNESS])

        if (
            self.chars.color_temperature is not None
            and CHAR_COLOR_TEMPERATURE in char_values
        ):
            await self.async_set_color_temperature(char_values[CHAR_COLOR_TEMPERATURE])
        elif self.chars.hue is not None and (
            CHAR_HUE in char_values or CHAR_SATURATION in char_values
        ):
            await self._async_set_color(
                hue=char_values.get(CHAR_HUE),
                saturation=char_values.get(CHAR_SATURATION),
            )

    async def _async_call(
        self,
        description: str,
        holds: Iterable[str],
        command: Callable[[YeelightDevice], Awaitable[Any]],
    ) -> bool:
        """Send one command to the bulb, log and swallow failures."""
        if self.device is None:
            _LOGGER.error(
                "%s: Cannot set %s, the bulb is not connected",
                self.display_name,
                description,
            )
            return False

        holds = tuple(holds)
        now = monotonic()
        for hold in holds:
            self._holds[hold] = now

        _LOGGER.debug("%s: Setting %s", self.display_name, description)
        try:
            await command(self.device)
        except DeviceError as err:
            for hold in holds:
                self._holds.pop(hold, None)
            _LOGGER.error("%s: %s", self.display_name, err)
            return False

        _LOGGER.debug("%s: Set %s successfully", self.display_name, description)
        return True

    async def async_set_on(self, value: bool) -> None:
        """Turn the bulb on or off."""
        power = bool(value)
        await self._async_call(
            f"power to {power}",
            (HOLD_POWER,),
            lambda device: device.async_set_power(power),
        )

    async def async_set_brightness(self, value: int) -> None:
        """Set brightness of the light."""
        brightness = int(clamp(round(value), 1, 100))
        await self._async_call(
            f"brightness to {brightness}",
            (HOLD_BRIGHTNESS,),
            lambda device: device.async_set_brightness(brightness),
        )

    async def async_set_color_temperature(self, value: int) -> None:
        """Set color temperature of the light."""
        expression = kelvin_expression(value)
        await self._async_call(
            f"color temperature to {value} mired ({expression})",
            (HOLD_COLOR,),
            lambda device: device.async_color(expression),
        )

    async def async_set_hue(self, value: float) -> None:
        """Set the hue, keeping the last saturation."""
        await self._async_set_color(hue=value)

    async def async_set_saturation(self, value: float) -> None:
        """Set the saturation, keeping the last hue."""
        await self._async_set_color(saturation=value)

    async def _async_set_color(
        self, hue: float | None = None, saturation: float | None = None
    ) -> None:
        old_hue, old_saturation = self.state.hue, self.state.saturation
        if hue is not None:
            self.state.hue = hue
        if saturation is not None:
            self.state.saturation = saturation

        expression = hsl_expression(self.state.hue, self.state.saturation)
        if not await self._async_call(
            f"color to {expression}",
            (HOLD_COLOR,),
            lambda device: device.async_color(expression),
        ):
            self.state.hue, self.state.saturation = old_hue, old_saturation

    async def async_set_night_mode(self, value: bool) -> None:
        """Put the bulb into night mode.

        Turning night mode off makes no device call. Night mode ends when the
        light itself is changed, so the switch is re-armed while it lasts.
        """
        if not value:
            if self.night_mode_active and self.night_mode_switch is not None:
                self.night_mode_switch.async_schedule_rearm()
            return

        color = self.device is not None and self.device.matches(Capability.COLOR)
        if color:
            scene = (
                SceneClass.HSV,
                NIGHT_MODE_HUE,
                NIGHT_MODE_SATURATION,
                NIGHT_MODE_BRIGHTNESS,
            )
        else:
            scene = (
                SceneClass.CT,
                mired_to_kelvin(self.max_mireds),
                NIGHT_MODE_BRIGHTNESS,
            )

        if not await self._async_call(
            "night mode",
            (HOLD_POWER, HOLD_BRIGHTNESS, HOLD_COLOR),
            lambda device: device.async_set_scene(*scene),
        ):
            if self.night_mode_switch is not None:
                self.night_mode_switch.async_update_state(False)
            return

        self.night_mode_active = True
        if color:
            self.state.hue = NIGHT_MODE_HUE
            self.state.saturation = NIGHT_MODE_SATURATION
            self.async_update_char(self.chars.hue, NIGHT_MODE_HUE)
            self.async_update_char(self.chars.saturation, NIGHT_MODE_SATURATION)
        else:
            self.async_update_char(self.chars.color_temperature, self.max_mireds)
        self.async_update_char(self.chars.brightness, NIGHT_MODE_BRIGHTNESS)
        self.async_update_char(self.chars.on, True)
        if self.night_mode_switch is not None:
            self.night_mode_switch.async_update_state(True)

    @callback
    def _async_leave_night_mode(self) -> None:
        if not self.night_mode_active:
            return
        _LOGGER.debug("%s: Leaving night mode", self.display_name)
        self.night_mode_active = False
        if self.night_mode_switch is not None:
            self.night_mode_switch.async_update_state(False)

    async def async_set_moonlight(self, value: bool) -> None:
        """Switch between moonlight and normal power mode."""
        enabled = bool(value)
        await self._async_call(
            f"moonlight to {enabled}",
            (),
            lambda device: device.async_set_moonlight(enabled),
        )

    async def async_set_moonlight_brightness(self, value: int) -> None:
        """Set the moonlight brightness, enabling moonlight first if needed."""
        brightness = int(clamp(round(value), 1, 100))
        if self.chars.moonlight is not None and not self.chars.moonlight.value:
            if not await self._async_call(
                "moonlight to True",
                (),
                lambda device: device.async_set_moonlight(True),
            ):
                return
            self.async_update_char(self.chars.moonlight, True)

        await self._async_call(
            f"moonlight brightness to {brightness}",
            (),
            lambda device: device.async_set_brightness(brightness),
        )

    async def async_set_color_flow(self, value: bool) -> None:
        if value:
            await self.async_start_color_flow()
        else:
            await self._async_stop_color_flow()

    async def async_start_color_flow(self) -> None:
        """Start the color flow, or stop it if the bulb is already flowing."""
        if self.device is None:
            _LOGGER.error(
                "%s: Cannot start color flow, the bulb is not connected",
                self.display_name,
            )
            return
        try:
            properties = await self.device.async_load_properties(["flowing"])
        except DeviceError as err:
            _LOGGER.error("%s: %s", self.display_name, err)
            return

        if str(properties.get("flowing")) == "1":
            await self._async_stop_color_flow()
            return

        flow = Flow(
            count=0,
            transitions=[
                RGBTransition(
                    *rgb_from_int(color),
                    duration=COLOR_FLOW_DURATION,
                    brightness=COLOR_FLOW_BRIGHTNESS,
                )
                for color in COLOR_FLOW_COLORS
            ],
        )
        if await self._async_call(
            "color flow",
            (HOLD_COLOR,),
            lambda device: device.async_set_scene(SceneClass.CF, flow),
        ):
            self.async_update_char(self.chars.color_flow, True)

    async def _async_stop_color_flow(self) -> None:
        if await self._async_call(
            "color flow off", (), lambda device: device.async_stop_flow()
        ):
            self.async_update_char(self.chars.color_flow, False)

    # #### HomeKit reads ####

    def _require(self, name: str) -> Any:
        if self.device is None or not self.device.available:
            raise CommunicationFailure(f"{self.display_name} is not reachable")
        value = self.device.properties.get(name)
        if value is None or value == "":
            raise CommunicationFailure(f"{self.display_name} did not report {name}")
        return value

    def _require_int(self, name: str) -> int:
        value = self._require(name)
        try:
            return int(value)
        except (TypeError, ValueError) as err:
            raise CommunicationFailure(
                f"{self.display_name} reported an invalid {name}: {value}"
            ) from err

    def _require_color(self) -> ColorChange:
        self._require("color_mode")
        assert self.device is not None
        if (color := self.device.color) is None:
            raise CommunicationFailure(f"{self.display_name} did not report a color")
        return color

    def get_on(self) -> bool:
        return self._require("power") == "on"

    def get_brightness(self) -> int:
        return int(clamp(self._require_int("bright"), 0, 100))

    def get_color_temperature(self) -> int:
        kelvin = self._require_int("ct")
        if kelvin <= 0:
            raise CommunicationFailure(f"{self.display_name} reported an invalid ct")
        return round(
            clamp(
                color_temperature_kelvin_to_mired(kelvin),
                self.min_mireds,
                self.max_mireds,
            )
        )

    def get_hue(self) -> int:
        return round(self._require_color().hue)

    def get_saturation(self) -> int:
        return round(self._require_color().saturation)

    # #### Device events ####

    def _is_held(self, hold: str) -> bool:
        started = self._holds.get(hold)
        return started is not None and monotonic() - started < LOCAL_SET_HOLD

    @callback
    def _async_power_changed(self, power: bool) -> None:
        if self._is_held(HOLD_POWER):
            return
        if not power:
            self._async_leave_night_mode()
        self.async_update_char(self.chars.on, power)

    @callback
    def _async_brightness_changed(self, brightness: int) -> None:
        if self._is_held(HOLD_BRIGHTNESS):
            return
        if brightness != NIGHT_MODE_BRIGHTNESS:
            self._async_leave_night_mode()
        self.async_update_char(self.chars.brightness, int(clamp(brightness, 0, 100)))

    @callback
    def _async_color_changed(self, color: ColorChange) -> None:
        """Update light after a color change."""
        if self._is_held(HOLD_COLOR):
            return

        # Color must always be set before color temperature
        # or the iOS UI will not display it correctly.
        if self.chars.hue is not None:
            self.state.hue = round(color.hue)
            self.state.saturation = round(color.saturation)
            self.async_update_char(self.chars.hue, self.state.hue)
            self.async_update_char(self.chars.saturation, self.state.saturation)

        if (
            color.model == COLOR_MODEL_TEMPERATURE
            and color.mired is not None
            and self.chars.color_temperature is not None
        ):
            mired = round(clamp(color.mired, self.min_mireds, self.max_mireds))
            self.async_update_char(self.chars.color_temperature, mired)

    @callback
    def _async_mode_changed(self, moonlight: bool) -> None:
        self.async_update_char(self.chars.moonlight, moonlight)

    @callback
    def _async_moonlight_brightness_changed(self, brightness: int) -> None:
        self.async_update_char(
            self.chars.moonlight_brightness, int(clamp(brightness, 0, 100))
        )

    @callback
    def _async_flow_changed(self, flowing: bool) -> None:
        self.async_update_char(self.chars.color_flow, flowing)
