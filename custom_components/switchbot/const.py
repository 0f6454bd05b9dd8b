"""Constants for the SwitchBot cloud integration."""

from typing import Final

DOMAIN: Final = "switchbot"

API_BASE_URL: Final = "https://api.switch-bot.com/v1.0"
DEVICES_PATH: Final = "/devices"

SUCCESS_STATUS_CODE: Final = 100
SUCCESS_MESSAGE: Final = "success"

DEFAULT_TIMEOUT: Final = 10.0
DEFAULT_REFRESH_RATE: Final = 300
DEFAULT_PUSH_RATE: Final = 0.1
# Hubs and IR remotes debounce on a fixed window regardless of push_rate.
FIXED_PUSH_RATE: Final = 0.1

COMMAND_TYPE: Final = "command"
DEFAULT_PARAMETER: Final = "default"

CONF_TOKEN: Final = "token"
CONF_TIMEOUT: Final = "timeout"
CONF_REFRESH_RATE: Final = "refresh_rate"
CONF_PUSH_RATE: Final = "push_rate"
CONF_HIDE_DEVICE: Final = "hide_device"
CONF_BOT: Final = "bot"
CONF_DEVICE_SWITCH: Final = "device_switch"
CONF_DEVICE_PRESS: Final = "device_press"
CONF_HUMIDIFIER: Final = "humidifier"
CONF_HIDE_TEMPERATURE: Final = "hide_temperature"
CONF_SET_MIN_STEP: Final = "set_min_step"

DEVICE_TYPE_BOT: Final = "Bot"
DEVICE_TYPE_HUMIDIFIER: Final = "Humidifier"
DEVICE_TYPE_HUB_MINI: Final = "Hub Mini"
REMOTE_TYPE_TV: Final = "TV"
REMOTE_TYPE_DIY_TV: Final = "DIY TV"
