"""Infrared TV remote emulated through a SwitchBot hub."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any

from ..config import SwitchBotConfig
from ..const import FIXED_PUSH_RATE
from ..models import Command, StatusResponse
from .base import (
    DeviceIdentity,
    IntentResult,
    ObservedState,
    reject_unknown_fields,
    snapshot,
)

_LOGGER = logging.getLogger(__name__)

FIELD_ACTIVE = "active"
FIELD_REMOTE_KEY = "remote_key"
FIELD_VOLUME_SELECTOR = "volume_selector"
FIELD_MUTE = "mute"


class RemoteKey(IntEnum):
    """Remote keys as numbered by the host's television service."""

    REWIND = 0
    FAST_FORWARD = 1
    NEXT_TRACK = 2
    PREVIOUS_TRACK = 3
    ARROW_UP = 4
    ARROW_DOWN = 5
    ARROW_LEFT = 6
    ARROW_RIGHT = 7
    SELECT = 8
    BACK = 9
    EXIT = 10
    PLAY_PAUSE = 11
    INFORMATION = 15


class VolumeSelector(IntEnum):
    """Volume buttons."""

    INCREMENT = 0
    DECREMENT = 1


_KEY_COMMANDS: dict[RemoteKey, str] = {
    RemoteKey.REWIND: "Rewind",
    RemoteKey.FAST_FORWARD: "FastForward",
    RemoteKey.NEXT_TRACK: "Next",
    RemoteKey.PREVIOUS_TRACK: "Previous",
    RemoteKey.ARROW_UP: "channelAdd",
    RemoteKey.ARROW_DOWN: "channelSub",
}

_VOLUME_COMMANDS: dict[VolumeSelector, str] = {
    VolumeSelector.INCREMENT: "volumeAdd",
    VolumeSelector.DECREMENT: "volumeSub",
}


@dataclass(frozen=True, slots=True)
class TelevisionTarget:
    """Desired TV state.

    ``remote_key``, ``volume_selector`` and ``mute`` are momentary: each intent
    clears them before applying its own change so the last button pressed in a
    burst is the one sent.
    """

    active: bool = False
    playing: bool = False
    remote_key: RemoteKey | None = None
    volume_selector: VolumeSelector | None = None
    mute: bool | None = None


class TelevisionProfile:
    """Map TV remote intents to IR commands.

    The cloud API keeps no state for IR remotes, so these devices are never
    polled.
    """

    supports_status = False
    writable_fields = frozenset(
        {FIELD_ACTIVE, FIELD_REMOTE_KEY, FIELD_VOLUME_SELECTOR, FIELD_MUTE}
    )

    def fields(self, identity: DeviceIdentity) -> tuple[str, ...]:
        """Return the observed field names."""

        return (FIELD_ACTIVE,)

    def initial_observed(self, identity: DeviceIdentity) -> ObservedState:
        """Return the placeholder snapshot."""

        return snapshot({FIELD_ACTIVE: False})

    def initial_target(self, identity: DeviceIdentity) -> TelevisionTarget:
        """Return the placeholder target."""

        return TelevisionTarget()

    def target_from_observed(
        self, observed: ObservedState, target: TelevisionTarget
    ) -> TelevisionTarget:
        """Keep ``target``; there is no reported state to rebase on."""

        return target

    def apply_intent(
        self,
        target: TelevisionTarget,
        changes: Mapping[str, Any],
        identity: DeviceIdentity,
    ) -> IntentResult[TelevisionTarget]:
        """Record the latest button or power change."""

        reject_unknown_fields(changes, self.writable_fields)
        mirrored: dict[str, Any] = {}
        for name, value in changes.items():
            target = replace(target, remote_key=None, volume_selector=None, mute=None)
            if name == FIELD_ACTIVE:
                target = replace(target, active=bool(value))
                mirrored[FIELD_ACTIVE] = target.active
            elif name == FIELD_REMOTE_KEY:
                key = RemoteKey(value)
                playing = target.playing
                if key is RemoteKey.PLAY_PAUSE:
                    playing = not playing
                target = replace(target, remote_key=key, playing=playing)
            elif name == FIELD_VOLUME_SELECTOR:
                target = replace(target, volume_selector=VolumeSelector(value))
            else:
                target = replace(target, mute=bool(value))
        return IntentResult(target=target, mirrored=mirrored)

    def parse(
        self, response: StatusResponse, identity: DeviceIdentity
    ) -> ObservedState:
        """IR remotes report nothing; return the placeholder snapshot."""

        return self.initial_observed(identity)

    def map_command(
        self, target: TelevisionTarget, identity: DeviceIdentity
    ) -> Command | None:
        """Select the IR command for the most recent intent."""

        if target.remote_key is not None:
            if target.remote_key is RemoteKey.PLAY_PAUSE:
                return Command(command="Play" if target.playing else "Pause")
            command = _KEY_COMMANDS.get(target.remote_key)
            if command is None:
                _LOGGER.debug(
                    "TV %s has no IR command for %s",
                    identity.device_id,
                    target.remote_key.name,
                )
                return None
            return Command(command=command)
        if target.volume_selector is not None:
            return Command(command=_VOLUME_COMMANDS[target.volume_selector])
        if target.mute is not None:
            return Command(command="setMute")
        return Command(command="turnOn" if target.active else "turnOff")

    def push_rate(self, config: SwitchBotConfig) -> float:
        """Return the fixed remote debounce window."""

        return FIXED_PUSH_RATE
