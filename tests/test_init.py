"""Tests for the bridge platform."""

import logging
import signal
from unittest.mock import patch

from yeelight_homekit import YeelightHomeKit
from yeelight_homekit.accessories import HomeBridge
from yeelight_homekit.config import validate_config
from yeelight_homekit.const import BRIDGE_NAME, DEFAULT_PERSIST_FILE, DEFAULT_PORT
from yeelight_homekit.type_lights import Light
from yeelight_homekit.type_switches import NightModeSwitch
from yeelight_homekit.util import generate_aid

PATH_DRIVER = "yeelight_homekit.AccessoryDriver"


def test_setup(hk_driver, config):
    config["lights"].append(
        validate_config({"lights": [{"name": "Bed", "ip_address": "192.168.1.21"}]})[
            "lights"
        ][0]
    )
    homekit = YeelightHomeKit(config)

    with patch(PATH_DRIVER, return_value=hk_driver) as mock_driver:
        homekit.setup()

    mock_driver.assert_called_once_with(
        port=DEFAULT_PORT, persist_file=DEFAULT_PERSIST_FILE, pincode=b"031-45-154"
    )
    bridge = homekit.bridge
    assert isinstance(bridge, HomeBridge)
    assert bridge.display_name == BRIDGE_NAME
    hk_driver.add_accessory.assert_called_once_with(accessory=bridge)

    accessories = bridge.accessories
    assert len(accessories) == 3
    desk = accessories[generate_aid("192.168.1.20")]
    assert isinstance(desk, Light)
    night = accessories[generate_aid("192.168.1.20-night_mode")]
    assert isinstance(night, NightModeSwitch)
    assert night.light is desk
    assert isinstance(accessories[generate_aid("192.168.1.21")], Light)
    assert [light.display_name for light in homekit.lights] == ["Desk", "Bed"]


def test_setup_without_pincode(hk_driver):
    config = validate_config({"lights": [{"name": "Desk", "ip_address": "10.0.0.2"}]})
    homekit = YeelightHomeKit(config)

    with patch(PATH_DRIVER, return_value=hk_driver) as mock_driver:
        homekit.setup()

    assert mock_driver.call_args.kwargs["pincode"] is None


def test_debug_logging(config):
    logger = logging.getLogger("yeelight_homekit")
    level = logger.level
    try:
        YeelightHomeKit({**config, "debug_logging": True})
        assert logger.level == logging.DEBUG
    finally:
        logger.setLevel(level)


def test_start(hk_driver, config):
    homekit = YeelightHomeKit(config)

    with patch(PATH_DRIVER, return_value=hk_driver), patch(
        "yeelight_homekit.signal.signal"
    ) as mock_signal:
        homekit.start()

    mock_signal.assert_called_once_with(signal.SIGTERM, hk_driver.signal_handler)
    hk_driver.start.assert_called_once()
