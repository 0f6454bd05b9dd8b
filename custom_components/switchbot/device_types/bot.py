"""SwitchBot Bot: a binary actuator driven in switch or press mode."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..config import SwitchBotConfig
from ..exceptions import MappingError
from ..models import BotStatusBody, Command, StatusResponse
from .base import (
    DeviceIdentity,
    IntentResult,
    ObservedState,
    parse_body,
    reject_unknown_fields,
    snapshot,
)

_LOGGER = logging.getLogger(__name__)

FIELD_ON = "on"
FIELD_OUTLET_IN_USE = "outlet_in_use"


@dataclass(frozen=True, slots=True)
class BotTarget:
    """Desired Bot state."""

    on: bool = False


class BotProfile:
    """Map Bot status payloads and targets.

    Switch-mode devices translate the target into ``turnOn``/``turnOff``;
    press-mode devices always send a momentary ``press`` and report ``on`` as
    false since the arm returns immediately.
    """

    supports_status = True
    writable_fields = frozenset({FIELD_ON})

    def fields(self, identity: DeviceIdentity) -> tuple[str, ...]:
        """Return the observed field names."""

        return (FIELD_ON, FIELD_OUTLET_IN_USE)

    def initial_observed(self, identity: DeviceIdentity) -> ObservedState:
        """Return placeholder values shown before the first poll."""

        return snapshot({FIELD_ON: False, FIELD_OUTLET_IN_USE: True})

    def initial_target(self, identity: DeviceIdentity) -> BotTarget:
        """Return the placeholder target."""

        return BotTarget()

    def target_from_observed(
        self, observed: ObservedState, target: BotTarget
    ) -> BotTarget:
        """Seed the target from the last observed power state."""

        return BotTarget(on=bool(observed.get(FIELD_ON, target.on)))

    def apply_intent(
        self,
        target: BotTarget,
        changes: Mapping[str, Any],
        identity: DeviceIdentity,
    ) -> IntentResult[BotTarget]:
        """Apply an ``on`` change."""

        reject_unknown_fields(changes, self.writable_fields)
        if FIELD_ON not in changes:
            return IntentResult(target=target, mirrored={})
        value = bool(changes[FIELD_ON])
        return IntentResult(target=BotTarget(on=value), mirrored={FIELD_ON: value})

    def parse(
        self, response: StatusResponse, identity: DeviceIdentity
    ) -> ObservedState:
        """Derive the observed state from a status body."""

        body = parse_body(BotStatusBody, response)
        pressed = identity.device_id in identity.bot.device_press
        is_on = body.power == "on" and not pressed
        return snapshot({FIELD_ON: is_on, FIELD_OUTLET_IN_USE: True})

    def map_command(self, target: BotTarget, identity: DeviceIdentity) -> Command:
        """Select ``turnOn``, ``turnOff`` or ``press`` for the configured mode."""

        device_id = identity.device_id
        if device_id in identity.bot.device_switch:
            _LOGGER.debug("Bot %s in switch mode, turning %s", device_id, target.on)
            return Command(command="turnOn" if target.on else "turnOff")
        if device_id in identity.bot.device_press:
            _LOGGER.debug("Bot %s in press mode", device_id)
            return Command(command="press")
        raise MappingError(
            f"Bot {device_id} is not configured in device_switch or device_press"
        )

    def push_rate(self, config: SwitchBotConfig) -> float:
        """Return the Bot debounce window."""

        if config.bot.push_rate is not None:
            return config.bot.push_rate
        return config.push_rate
