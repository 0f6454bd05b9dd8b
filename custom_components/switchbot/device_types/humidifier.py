"""SwitchBot Humidifier: a graduated-threshold actuator."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any

from ..config import SwitchBotConfig
from ..models import Command, HumidifierStatusBody, StatusResponse
from .base import (
    DeviceIdentity,
    IntentResult,
    ObservedState,
    parse_body,
    reject_unknown_fields,
    snapshot,
)

_LOGGER = logging.getLogger(__name__)

FIELD_CURRENT_HUMIDITY = "current_humidity"
FIELD_WATER_LEVEL = "water_level"
FIELD_CURRENT_STATE = "current_state"
FIELD_MODE = "mode"
FIELD_ACTIVE = "active"
FIELD_THRESHOLD = "threshold"
FIELD_TEMPERATURE = "temperature"

THRESHOLD_MIN = 0
THRESHOLD_MAX = 100


class HumidifierMode(IntEnum):
    """Target mode, numbered like the host's humidifier target state."""

    AUTO = 0
    MANUAL = 1


class OperatingState(IntEnum):
    """Derived current operating state."""

    INACTIVE = 0
    IDLE = 1
    HUMIDIFYING = 2


@dataclass(frozen=True, slots=True)
class HumidifierTarget:
    """Desired humidifier state."""

    active: bool = True
    mode: HumidifierMode = HumidifierMode.MANUAL
    threshold: int = 0


def round_threshold(value: Any, step: int) -> int:
    """Round ``value`` to the nearest ``step`` and clamp it to 0..100."""

    stepped = int(round(float(value) / step)) * step
    return max(THRESHOLD_MIN, min(THRESHOLD_MAX, stepped))


def derive_operating_state(
    *, active: bool, auto: bool, humidity: float, threshold: float
) -> OperatingState:
    """Derive the operating state.

    Checks run in a fixed order: auto mode always reports humidifying; in
    manual mode a humidity strictly above the threshold reports idle before
    the power flag is consulted, then an inactive device reports inactive,
    and anything else is humidifying.
    """

    if auto:
        return OperatingState.HUMIDIFYING
    if humidity > threshold:
        return OperatingState.IDLE
    if not active:
        return OperatingState.INACTIVE
    return OperatingState.HUMIDIFYING


class HumidifierProfile:
    """Map humidifier status payloads and targets."""

    supports_status = True
    writable_fields = frozenset({FIELD_ACTIVE, FIELD_MODE, FIELD_THRESHOLD})

    def fields(self, identity: DeviceIdentity) -> tuple[str, ...]:
        """Return the observed field names, honouring ``hide_temperature``."""

        names = (
            FIELD_CURRENT_HUMIDITY,
            FIELD_WATER_LEVEL,
            FIELD_CURRENT_STATE,
            FIELD_MODE,
            FIELD_ACTIVE,
            FIELD_THRESHOLD,
        )
        if identity.humidifier.hide_temperature:
            return names
        return (*names, FIELD_TEMPERATURE)

    def initial_observed(self, identity: DeviceIdentity) -> ObservedState:
        """Return placeholder values shown before the first poll."""

        values: dict[str, Any] = {
            FIELD_CURRENT_HUMIDITY: 0,
            FIELD_WATER_LEVEL: 0,
            FIELD_CURRENT_STATE: OperatingState.INACTIVE,
            FIELD_MODE: HumidifierMode.MANUAL,
            FIELD_ACTIVE: True,
            FIELD_THRESHOLD: 0,
        }
        if not identity.humidifier.hide_temperature:
            values[FIELD_TEMPERATURE] = 0
        return snapshot(values)

    def initial_target(self, identity: DeviceIdentity) -> HumidifierTarget:
        """Return the placeholder target."""

        return HumidifierTarget()

    def target_from_observed(
        self, observed: ObservedState, target: HumidifierTarget
    ) -> HumidifierTarget:
        """Seed the target from the observed power, mode and threshold."""

        return HumidifierTarget(
            active=bool(observed.get(FIELD_ACTIVE, target.active)),
            mode=HumidifierMode(observed.get(FIELD_MODE, target.mode)),
            threshold=round_threshold(
                observed.get(FIELD_THRESHOLD, target.threshold), 1
            ),
        )

    def apply_intent(
        self,
        target: HumidifierTarget,
        changes: Mapping[str, Any],
        identity: DeviceIdentity,
    ) -> IntentResult[HumidifierTarget]:
        """Apply active, mode and threshold changes.

        Setting a threshold on an inactive humidifier also switches it on and
        reports it idle until the next poll.
        """

        reject_unknown_fields(changes, self.writable_fields)
        mirrored: dict[str, Any] = {}
        for name, value in changes.items():
            if name == FIELD_ACTIVE:
                target = replace(target, active=bool(value))
                mirrored[FIELD_ACTIVE] = target.active
            elif name == FIELD_MODE:
                target = replace(target, mode=HumidifierMode(value))
                mirrored[FIELD_MODE] = target.mode
            else:
                threshold = round_threshold(value, identity.humidifier.set_min_step)
                target = replace(target, threshold=threshold)
                mirrored[FIELD_THRESHOLD] = threshold
                if not target.active:
                    target = replace(target, active=True)
                    mirrored[FIELD_ACTIVE] = True
                    mirrored[FIELD_CURRENT_STATE] = OperatingState.IDLE
        return IntentResult(target=target, mirrored=mirrored)

    def parse(
        self, response: StatusResponse, identity: DeviceIdentity
    ) -> ObservedState:
        """Derive the observed snapshot from a humidifier status body."""

        body = parse_body(HumidifierStatusBody, response)
        active = body.power == "on"
        humidity = body.humidity
        if body.auto:
            mode = HumidifierMode.AUTO
            threshold: float = humidity
        else:
            mode = HumidifierMode.MANUAL
            # Only the upper bound is clamped.
            threshold = min(body.nebulization_efficiency, THRESHOLD_MAX)

        values: dict[str, Any] = {
            FIELD_CURRENT_HUMIDITY: humidity,
            FIELD_WATER_LEVEL: 0 if body.lack_water else 100,
            FIELD_CURRENT_STATE: derive_operating_state(
                active=active, auto=body.auto, humidity=humidity, threshold=threshold
            ),
            FIELD_MODE: mode,
            FIELD_ACTIVE: active,
            FIELD_THRESHOLD: threshold,
        }
        if not identity.humidifier.hide_temperature:
            values[FIELD_TEMPERATURE] = body.temperature
        _LOGGER.debug("Humidifier %s parsed status: %s", identity.device_id, values)
        return snapshot(values)

    def map_command(
        self, target: HumidifierTarget, identity: DeviceIdentity
    ) -> Command:
        """Translate the target; an inactive target always turns the device off."""

        if not target.active:
            return Command(command="turnOff")
        if target.mode is HumidifierMode.MANUAL:
            return Command(command="setMode", parameter=str(target.threshold))
        return Command(command="setMode", parameter="auto")

    def push_rate(self, config: SwitchBotConfig) -> float:
        """Return the humidifier debounce window."""

        if config.humidifier.push_rate is not None:
            return config.humidifier.push_rate
        return config.push_rate
