"""SwitchBot Hub Mini: a passive bridge exposing reachability only."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..config import SwitchBotConfig
from ..const import FIXED_PUSH_RATE
from ..models import Command, HubStatusBody, StatusResponse
from .base import (
    DeviceIdentity,
    IntentResult,
    ObservedState,
    parse_body,
    reject_unknown_fields,
    snapshot,
)

FIELD_REACHABLE = "reachable"
FIELD_LINK_QUALITY = "link_quality"
FIELD_ACCESSORY_IDENTIFIER = "accessory_identifier"
FIELD_CATEGORY = "category"

LINK_QUALITY_GOOD = 4
LINK_QUALITY_POOR = 1
CATEGORY_BRIDGE = 16
CATEGORY_OTHER = 1


@dataclass(frozen=True, slots=True)
class HubTarget:
    """Hubs expose nothing writable."""


class HubProfile:
    """Report hub reachability from the status envelope."""

    supports_status = True
    writable_fields: frozenset[str] = frozenset()

    def fields(self, identity: DeviceIdentity) -> tuple[str, ...]:
        """Return the observed field names."""

        return (
            FIELD_REACHABLE,
            FIELD_LINK_QUALITY,
            FIELD_ACCESSORY_IDENTIFIER,
            FIELD_CATEGORY,
        )

    def initial_observed(self, identity: DeviceIdentity) -> ObservedState:
        """Assume the hub is reachable until a poll says otherwise."""

        return self._state(identity, reachable=True)

    def initial_target(self, identity: DeviceIdentity) -> HubTarget:
        """Return the empty target."""

        return HubTarget()

    def target_from_observed(
        self, observed: ObservedState, target: HubTarget
    ) -> HubTarget:
        """Return ``target`` unchanged."""

        return target

    def apply_intent(
        self,
        target: HubTarget,
        changes: Mapping[str, Any],
        identity: DeviceIdentity,
    ) -> IntentResult[HubTarget]:
        """Reject every change."""

        reject_unknown_fields(changes, self.writable_fields)
        return IntentResult(target=target, mirrored={})

    def parse(
        self, response: StatusResponse, identity: DeviceIdentity
    ) -> ObservedState:
        """Derive reachability from the success sentinel."""

        parse_body(HubStatusBody, response)
        return self._state(identity, reachable=response.is_success)

    def map_command(
        self, target: HubTarget, identity: DeviceIdentity
    ) -> Command | None:
        """Hubs never receive commands."""

        return None

    def push_rate(self, config: SwitchBotConfig) -> float:
        """Return the fixed hub debounce window."""

        return FIXED_PUSH_RATE

    @staticmethod
    def _state(identity: DeviceIdentity, *, reachable: bool) -> ObservedState:
        link_quality = LINK_QUALITY_GOOD if reachable else LINK_QUALITY_POOR
        return snapshot(
            {
                FIELD_REACHABLE: reachable,
                FIELD_LINK_QUALITY: link_quality,
                FIELD_ACCESSORY_IDENTIFIER: identity.name,
                FIELD_CATEGORY: CATEGORY_BRIDGE if reachable else CATEGORY_OTHER,
            }
        )
