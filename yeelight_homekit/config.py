"""Configuration loading for the Yeelight HomeKit bridge."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any

import voluptuous as vol
from voluptuous.humanize import humanize_error

from homeassistant.const import (
    CONF_IP_ADDRESS,
    CONF_LIGHTS,
    CONF_NAME,
    CONF_PORT,
    CONF_TOKEN,
)
from homeassistant.exceptions import HomeAssistantError
import homeassistant.helpers.config_validation as cv

from .const import (
    BRIDGE_NAME,
    CONF_BRIDGE_NAME,
    CONF_DEBUG_LOGGING,
    CONF_MAX_MIREDS,
    CONF_MIN_MIREDS,
    CONF_NIGHT_MODE_SWITCH,
    CONF_PERSIST_FILE,
    CONF_PINCODE,
    CONF_PULL_STATE,
    DEFAULT_DEVICE_PORT,
    DEFAULT_MAX_MIREDS,
    DEFAULT_MIN_MIREDS,
    DEFAULT_PERSIST_FILE,
    DEFAULT_PORT,
    HOMEKIT_MAX_MIREDS,
    HOMEKIT_MIN_MIREDS,
)

_LOGGER = logging.getLogger(__name__)

mireds = vol.All(
    vol.Coerce(int), vol.Range(min=HOMEKIT_MIN_MIREDS, max=HOMEKIT_MAX_MIREDS)
)
pincode = vol.All(cv.string, vol.Match(r"^\d{3}-\d{2}-\d{3}$"))


class ConfigError(HomeAssistantError):
    """Error to indicate the configuration file is invalid."""


def _unique_ip_addresses(lights: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Reject configurations that list the same bulb twice."""
    seen: set[str] = set()
    for light in lights:
        ip_address = light[CONF_IP_ADDRESS]
        if ip_address in seen:
            raise vol.Invalid(f"duplicate ip_address {ip_address}")
        seen.add(ip_address)
    return lights


def _mired_range(config: dict[str, Any]) -> dict[str, Any]:
    if config[CONF_MIN_MIREDS] >= config[CONF_MAX_MIREDS]:
        raise vol.Invalid(f"{CONF_MIN_MIREDS} must be lower than {CONF_MAX_MIREDS}")
    return config


LIGHT_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_NAME): cv.string,
        vol.Required(CONF_IP_ADDRESS): cv.string,
        vol.Optional(CONF_TOKEN, default=""): cv.string,
        vol.Optional(CONF_PORT, default=DEFAULT_DEVICE_PORT): cv.port,
        vol.Optional(CONF_NIGHT_MODE_SWITCH, default=False): cv.boolean,
    }
)

CONFIG_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Optional(CONF_BRIDGE_NAME, default=BRIDGE_NAME): cv.string,
            vol.Optional(CONF_PORT, default=DEFAULT_PORT): cv.port,
            vol.Optional(CONF_PINCODE): pincode,
            vol.Optional(CONF_PERSIST_FILE, default=DEFAULT_PERSIST_FILE): cv.string,
            vol.Optional(CONF_DEBUG_LOGGING, default=False): cv.boolean,
            vol.Optional(CONF_PULL_STATE, default=False): cv.boolean,
            vol.Optional(CONF_MIN_MIREDS, default=DEFAULT_MIN_MIREDS): mireds,
            vol.Optional(CONF_MAX_MIREDS, default=DEFAULT_MAX_MIREDS): mireds,
            vol.Required(CONF_LIGHTS): vol.All(
                cv.ensure_list,
                vol.Length(min=1),
                [LIGHT_SCHEMA],
                _unique_ip_addresses,
            ),
        }
    ),
    _mired_range,
)


@dataclass(frozen=True)
class DeviceSettings:
    """Static settings of one configured bulb."""

    name: str
    ip_address: str
    token: str = ""
    port: int = DEFAULT_DEVICE_PORT
    night_mode_switch: bool = False

    @classmethod
    def from_config(cls, conf: dict[str, Any]) -> DeviceSettings:
        return cls(
            name=conf[CONF_NAME],
            ip_address=conf[CONF_IP_ADDRESS],
            token=conf.get(CONF_TOKEN, ""),
            port=conf.get(CONF_PORT, DEFAULT_DEVICE_PORT),
            night_mode_switch=conf.get(CONF_NIGHT_MODE_SWITCH, False),
        )


@dataclass(frozen=True)
class AccessoryContext:
    """Context attached to every accessory built for a bulb."""

    device: DeviceSettings


def validate_config(config: Any) -> dict[str, Any]:
    """Validate a raw configuration mapping."""
    try:
        return CONFIG_SCHEMA(config)
    except vol.Invalid as err:
        raise ConfigError(humanize_error(config, err)) from err


def load_config(path: str) -> dict[str, Any]:
    """Load and validate the JSON configuration file at path."""
    _LOGGER.debug("Loading configuration from %s", path)
    try:
        with open(path, encoding="utf-8") as config_file:
            raw = json.load(config_file)
    except OSError as err:
        raise ConfigError(f"Unable to read {path}: {err}") from err
    except ValueError as err:
        raise ConfigError(f"Invalid JSON in {path}: {err}") from err
    return validate_config(raw)
