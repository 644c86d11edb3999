"""Shared pytest fixtures for the Yeelight HomeKit tests."""

from unittest.mock import AsyncMock, MagicMock

from pyhap.loader import get_loader
import pytest

from yeelight_homekit.config import AccessoryContext, DeviceSettings, validate_config
from yeelight_homekit.device import YeelightDevice

COLOR_BULB_PROPERTIES = {
    "power": "on",
    "bright": "80",
    "ct": "4000",
    "rgb": "16711680",
    "hue": "120",
    "sat": "50",
    "color_mode": "3",
    "flowing": "0",
    "active_mode": "0",
    "nl_br": "10",
}

WHITE_BULB_PROPERTIES = {
    "power": "off",
    "bright": "50",
    "ct": "2700",
    "rgb": None,
    "hue": None,
    "sat": None,
    "color_mode": "2",
    "flowing": None,
    "active_mode": None,
    "nl_br": None,
}


@pytest.fixture
def hk_driver():
    """Return a HAP driver mock carrying the real characteristic loader."""
    driver = MagicMock()
    driver.loader = get_loader()
    return driver


def make_bulb(properties):
    """Return a python-yeelight AsyncBulb mock reporting properties."""
    bulb = MagicMock()
    bulb.last_properties = dict(properties)
    for name in (
        "async_listen",
        "async_stop_listening",
        "async_get_properties",
        "async_turn_on",
        "async_turn_off",
        "async_set_brightness",
        "async_set_color_temp",
        "async_set_hsv",
        "async_set_rgb",
        "async_set_scene",
        "async_stop_flow",
        "async_set_power_mode",
    ):
        setattr(bulb, name, AsyncMock())
    return bulb


@pytest.fixture
def mock_bulb():
    """Return a full featured color bulb."""
    return make_bulb(COLOR_BULB_PROPERTIES)


@pytest.fixture
def white_bulb():
    """Return a bulb supporting only brightness and color temperature."""
    return make_bulb(WHITE_BULB_PROPERTIES)


@pytest.fixture
def settings():
    return DeviceSettings(
        name="Desk", ip_address="192.168.1.20", token="abc", night_mode_switch=True
    )


@pytest.fixture
def context(settings):
    return AccessoryContext(settings)


@pytest.fixture
def config():
    """Return a validated configuration with one bulb."""
    return validate_config(
        {
            "pincode": "031-45-154",
            "lights": [
                {
                    "name": "Desk",
                    "ip_address": "192.168.1.20",
                    "token": "abc",
                    "night_mode_switch": True,
                }
            ],
        }
    )


@pytest.fixture
def device_for():
    """Return a factory building a connected device around a bulb mock."""

    def _factory(bulb):
        async def _open(device_settings):
            device = YeelightDevice(device_settings, bulb)
            await device.async_connect()
            return device

        return _open

    return _factory
