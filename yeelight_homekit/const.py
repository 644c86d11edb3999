"""Constants used by the Yeelight HomeKit bridge."""

from __future__ import annotations

__version__ = "1.2.0"

MANUFACTURER = "Xiaomi"
MODEL = "Yeelight"
BRIDGE_MODEL = "Bridge"
BRIDGE_NAME = "Yeelight Bridge"
BRIDGE_SERIAL_NUMBER = "yeelight.bridge"

# #### Config ####
CONF_BRIDGE_NAME = "bridge_name"
CONF_DEBUG_LOGGING = "debug_logging"
CONF_MAX_MIREDS = "max_mireds"
CONF_MIN_MIREDS = "min_mireds"
CONF_NIGHT_MODE_SWITCH = "night_mode_switch"
CONF_PERSIST_FILE = "persist_file"
CONF_PINCODE = "pincode"
CONF_PULL_STATE = "pull_state"

DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_DEVICE_PORT = 55443
DEFAULT_PERSIST_FILE = "yeelight-homekit.state"
DEFAULT_PORT = 51826
DEFAULT_MIN_MIREDS = 154
DEFAULT_MAX_MIREDS = 370

# Bounds accepted by the HomeKit ColorTemperature characteristic
HOMEKIT_MIN_MIREDS = 140
HOMEKIT_MAX_MIREDS = 500

# #### Accessory types ####
TYPE_LIGHT = "Light"
TYPE_NIGHT_MODE_SWITCH = "NightModeSwitch"

# #### Services ####
SERV_ACCESSORY_INFO = "AccessoryInformation"
SERV_LIGHTBULB = "Lightbulb"
SERV_SWITCH = "Switch"

# #### Characteristics ####
CHAR_BRIGHTNESS = "Brightness"
CHAR_COLOR_TEMPERATURE = "ColorTemperature"
CHAR_HUE = "Hue"
CHAR_NAME = "Name"
CHAR_ON = "On"
CHAR_SATURATION = "Saturation"

# #### Properties ####
PROP_MAX_VALUE = "maxValue"
PROP_MIN_VALUE = "minValue"

# #### Secondary services ####
UNIQUE_ID_COLOR_FLOW = "color_flow"
UNIQUE_ID_MOONLIGHT = "moonlight"
NAME_COLOR_FLOW = "Color Flow"
NAME_MOONLIGHT = "Moonlight"
NIGHT_MODE_SUFFIX = "night_mode"

# #### Device events ####
EVENT_BRIGHTNESS_CHANGED = "brightness_changed"
EVENT_COLOR_CHANGED = "color_changed"
EVENT_FLOW_CHANGED = "flow_changed"
EVENT_MODE_CHANGED = "mode_changed"
EVENT_MOONLIGHT_BRIGHTNESS_CHANGED = "moonlight_brightness_changed"
EVENT_POWER_CHANGED = "power_changed"

# #### Color models reported with color_changed ####
COLOR_MODEL_HSV = "hsv"
COLOR_MODEL_RGB = "rgb"
COLOR_MODEL_TEMPERATURE = "temperature"

# #### Sequencing ####
# Device events for a channel are ignored this long after a local write to it.
LOCAL_SET_HOLD = 1.5
HOLD_POWER = "power"
HOLD_BRIGHTNESS = "brightness"
HOLD_COLOR = "color"

# #### Night mode ####
NIGHT_MODE_BRIGHTNESS = 1
NIGHT_MODE_HUE = 30
NIGHT_MODE_SATURATION = 100
NIGHT_MODE_REARM_DELAY = 0.5

# #### Color flow ####
COLOR_FLOW_COLORS = (
    0xFF0000,
    0xFF7F00,
    0xFFFF00,
    0x00FF00,
    0x00FFFF,
    0x0000FF,
    0x8B00FF,
    0xFF00FF,
)
COLOR_FLOW_DURATION = 2000  # ms per color
COLOR_FLOW_BRIGHTNESS = 100
