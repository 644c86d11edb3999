"""Test different accessory types: Switches."""

from unittest.mock import patch

from yeelight import SceneClass

from yeelight_homekit.const import CHAR_BRIGHTNESS, NIGHT_MODE_REARM_DELAY
from yeelight_homekit.type_lights import Light
from yeelight_homekit.type_switches import NightModeSwitch


async def _light_with_switch(hk_driver, context, config, factory):
    light = Light(hk_driver, "Desk", 2, context, config, device_factory=factory)
    switch = NightModeSwitch(
        hk_driver, "Desk Night Mode", 3, context, config, light=light
    )
    await light.run()
    return light, switch


async def test_night_mode_switch_setup(
    hk_driver, context, config, mock_bulb, device_for
):
    light, switch = await _light_with_switch(
        hk_driver, context, config, device_for(mock_bulb)
    )

    assert switch.category == 8  # Switch
    assert light.night_mode_switch is switch
    assert switch.char_on.value is False
    assert switch.available

    switch.set_state(True)
    hk_driver.async_add_job.assert_called_with(light.async_set_night_mode, True)


async def test_night_mode_switch_on(hk_driver, context, config, mock_bulb, device_for):
    light, switch = await _light_with_switch(
        hk_driver, context, config, device_for(mock_bulb)
    )

    await light.async_set_night_mode(True)
    mock_bulb.async_set_scene.assert_awaited_once_with(SceneClass.HSV, 30, 100, 1)
    assert switch.char_on.value is True


async def test_night_mode_switch_rearm(
    hk_driver, context, config, mock_bulb, device_for
):
    """Test turning the switch off while night mode lasts turns it back on."""
    light, switch = await _light_with_switch(
        hk_driver, context, config, device_for(mock_bulb)
    )
    await light.async_set_night_mode(True)

    switch.char_on.value = False
    await light.async_set_night_mode(False)

    mock_bulb.async_set_scene.assert_awaited_once()
    mock_bulb.async_turn_off.assert_not_awaited()
    hk_driver.loop.call_later.assert_called_once_with(
        NIGHT_MODE_REARM_DELAY, switch._async_rearm
    )
    assert switch.char_on.value is False

    switch._async_rearm()
    assert switch.char_on.value is True


async def test_night_mode_switch_rearm_cancelled(
    hk_driver, context, config, mock_bulb, device_for
):
    light, switch = await _light_with_switch(
        hk_driver, context, config, device_for(mock_bulb)
    )
    with patch("yeelight_homekit.type_lights.monotonic", return_value=100.0):
        await light.async_set_night_mode(True)
    switch.char_on.value = False
    await light.async_set_night_mode(False)
    timer = hk_driver.loop.call_later.return_value

    await light.async_set_chars({CHAR_BRIGHTNESS: 50})

    timer.cancel.assert_called_once()
    assert not light.night_mode_active
    switch._async_rearm()
    assert switch.char_on.value is False


async def test_night_mode_switch_off_without_night_mode(
    hk_driver, context, config, mock_bulb, device_for
):
    light, switch = await _light_with_switch(
        hk_driver, context, config, device_for(mock_bulb)
    )

    await light.async_set_night_mode(False)
    hk_driver.loop.call_later.assert_not_called()
    mock_bulb.async_set_scene.assert_not_awaited()


async def test_night_mode_switch_follows_light(
    hk_driver, context, config, mock_bulb, device_for
):
    light, switch = await _light_with_switch(
        hk_driver, context, config, device_for(mock_bulb)
    )
    with patch("yeelight_homekit.type_lights.monotonic", return_value=100.0):
        await light.async_set_night_mode(True)
    assert switch.char_on.value is True

    with patch("yeelight_homekit.type_lights.monotonic", return_value=110.0):
        light.device._async_update_callback({"power": "off"})
    assert switch.char_on.value is False


async def test_night_mode_switch_unavailable(hk_driver, context, config):
    light = Light(hk_driver, "Desk", 2, context, config)
    switch = NightModeSwitch(
        hk_driver, "Desk Night Mode", 3, context, config, light=light
    )

    assert not switch.available
    await switch.stop()
