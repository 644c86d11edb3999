"""Test the configuration schema and loader."""

import json

import pytest

from yeelight_homekit.config import (
    ConfigError,
    DeviceSettings,
    load_config,
    validate_config,
)
from yeelight_homekit.const import (
    BRIDGE_NAME,
    DEFAULT_DEVICE_PORT,
    DEFAULT_MAX_MIREDS,
    DEFAULT_MIN_MIREDS,
    DEFAULT_PERSIST_FILE,
    DEFAULT_PORT,
)

LIGHT = {"name": "Desk", "ip_address": "192.168.1.20"}


def test_defaults():
    config = validate_config({"lights": [LIGHT]})

    assert config["bridge_name"] == BRIDGE_NAME
    assert config["port"] == DEFAULT_PORT
    assert config["persist_file"] == DEFAULT_PERSIST_FILE
    assert config["min_mireds"] == DEFAULT_MIN_MIREDS
    assert config["max_mireds"] == DEFAULT_MAX_MIREDS
    assert config["pull_state"] is False
    assert config["debug_logging"] is False
    assert "pincode" not in config

    light = config["lights"][0]
    assert light["token"] == ""
    assert light["port"] == DEFAULT_DEVICE_PORT
    assert light["night_mode_switch"] is False


def test_single_light_is_wrapped_in_list():
    config = validate_config({"lights": LIGHT})
    assert config["lights"] == [
        {**LIGHT, "token": "", "port": DEFAULT_DEVICE_PORT, "night_mode_switch": False}
    ]


@pytest.mark.parametrize(
    "config",
    [
        {},
        {"lights": []},
        {"lights": [{"name": "Desk"}]},
        {"lights": [LIGHT, {**LIGHT, "name": "Other"}]},
        {"lights": [LIGHT], "pincode": "1234"},
        {"lights": [LIGHT], "min_mireds": 100},
        {"lights": [LIGHT], "max_mireds": 600},
        {"lights": [LIGHT], "min_mireds": 300, "max_mireds": 200},
        {"lights": [LIGHT], "unknown": True},
    ],
)
def test_invalid_config(config):
    with pytest.raises(ConfigError):
        validate_config(config)


def test_duplicate_ip_address_message():
    with pytest.raises(ConfigError, match="duplicate ip_address 192.168.1.20"):
        validate_config({"lights": [LIGHT, {**LIGHT, "name": "Other"}]})


def test_device_settings_from_config():
    config = validate_config(
        {"lights": [{**LIGHT, "token": "abc", "night_mode_switch": True}]}
    )
    settings = DeviceSettings.from_config(config["lights"][0])

    assert settings == DeviceSettings(
        name="Desk", ip_address="192.168.1.20", token="abc", night_mode_switch=True
    )


def test_load_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"pincode": "031-45-154", "lights": [LIGHT]}))

    config = load_config(str(path))
    assert config["pincode"] == "031-45-154"
    assert config["lights"][0]["name"] == "Desk"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="Unable to read"):
        load_config(str(tmp_path / "missing.json"))


def test_load_config_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_config(str(path))
