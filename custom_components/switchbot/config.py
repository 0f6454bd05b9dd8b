"""Configuration schema and typed options for the SwitchBot integration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import voluptuous as vol

from .const import (
    CONF_BOT,
    CONF_DEVICE_PRESS,
    CONF_DEVICE_SWITCH,
    CONF_HIDE_DEVICE,
    CONF_HIDE_TEMPERATURE,
    CONF_HUMIDIFIER,
    CONF_PUSH_RATE,
    CONF_REFRESH_RATE,
    CONF_SET_MIN_STEP,
    CONF_TIMEOUT,
    CONF_TOKEN,
    DEFAULT_PUSH_RATE,
    DEFAULT_REFRESH_RATE,
    DEFAULT_TIMEOUT,
)
from .exceptions import ConfigurationError

_PUSH_RATE = vol.All(vol.Coerce(float), vol.Range(min=0))


def _disjoint_bot_modes(value: dict[str, Any]) -> dict[str, Any]:
    """Reject bot ids listed in both switch and press mode."""

    overlap = set(value[CONF_DEVICE_SWITCH]) & set(value[CONF_DEVICE_PRESS])
    if overlap:
        raise vol.Invalid(
            f"Bot devices configured for both switch and press mode: {sorted(overlap)}"
        )
    return value


BOT_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Optional(CONF_DEVICE_SWITCH, default=list): [str],
            vol.Optional(CONF_DEVICE_PRESS, default=list): [str],
            vol.Optional(CONF_PUSH_RATE): _PUSH_RATE,
        }
    ),
    _disjoint_bot_modes,
)

HUMIDIFIER_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_HIDE_TEMPERATURE, default=False): bool,
        vol.Optional(CONF_SET_MIN_STEP, default=1): vol.All(
            vol.Coerce(int), vol.Range(min=1, max=100)
        ),
        vol.Optional(CONF_PUSH_RATE): _PUSH_RATE,
    }
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_TOKEN): vol.All(str, vol.Length(min=1)),
        vol.Optional(CONF_TIMEOUT, default=DEFAULT_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)
        ),
        vol.Optional(CONF_REFRESH_RATE, default=DEFAULT_REFRESH_RATE): vol.All(
            vol.Coerce(int), vol.Range(min=1)
        ),
        vol.Optional(CONF_PUSH_RATE, default=DEFAULT_PUSH_RATE): _PUSH_RATE,
        vol.Optional(CONF_HIDE_DEVICE, default=list): [str],
        vol.Optional(CONF_BOT, default=dict): BOT_SCHEMA,
        vol.Optional(CONF_HUMIDIFIER, default=dict): HUMIDIFIER_SCHEMA,
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True, slots=True)
class BotOptions:
    """Command mode membership for SwitchBot Bot devices."""

    device_switch: frozenset[str] = frozenset()
    device_press: frozenset[str] = frozenset()
    push_rate: float | None = None


@dataclass(frozen=True, slots=True)
class HumidifierOptions:
    """Display and stepping options for humidifiers."""

    hide_temperature: bool = False
    set_min_step: int = 1
    push_rate: float | None = None


@dataclass(frozen=True, slots=True)
class SwitchBotConfig:
    """Validated integration configuration."""

    token: str
    timeout: float = DEFAULT_TIMEOUT
    refresh_rate: int = DEFAULT_REFRESH_RATE
    push_rate: float = DEFAULT_PUSH_RATE
    hide_device: frozenset[str] = frozenset()
    bot: BotOptions = field(default_factory=BotOptions)
    humidifier: HumidifierOptions = field(default_factory=HumidifierOptions)


def validate_config(raw: Mapping[str, Any]) -> SwitchBotConfig:
    """Validate ``raw`` against :data:`CONFIG_SCHEMA` and build typed options."""

    try:
        data = CONFIG_SCHEMA(dict(raw))
    except vol.Invalid as err:
        raise ConfigurationError(f"Invalid SwitchBot configuration: {err}") from err

    bot = data[CONF_BOT]
    humidifier = data[CONF_HUMIDIFIER]
    return SwitchBotConfig(
        token=data[CONF_TOKEN],
        timeout=data[CONF_TIMEOUT],
        refresh_rate=data[CONF_REFRESH_RATE],
        push_rate=data[CONF_PUSH_RATE],
        hide_device=frozenset(data[CONF_HIDE_DEVICE]),
        bot=BotOptions(
            device_switch=frozenset(bot[CONF_DEVICE_SWITCH]),
            device_press=frozenset(bot[CONF_DEVICE_PRESS]),
            push_rate=bot.get(CONF_PUSH_RATE),
        ),
        humidifier=HumidifierOptions(
            hide_temperature=humidifier[CONF_HIDE_TEMPERATURE],
            set_min_step=humidifier[CONF_SET_MIN_STEP],
            push_rate=humidifier.get(CONF_PUSH_RATE),
        ),
    )
