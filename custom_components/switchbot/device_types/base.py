"""Engine-facing contracts shared by every SwitchBot device profile."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from ..config import BotOptions, HumidifierOptions, SwitchBotConfig
from ..exceptions import ParseError
from ..models import Command, StatusResponse

ObservedState = Mapping[str, Any]

TargetT = TypeVar("TargetT")
BodyT = TypeVar("BodyT", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class DeviceIdentity:
    """Immutable identity and per-device options for one exposed device."""

    device_id: str
    device_type: str
    name: str
    remote_type: str | None = None
    bot: BotOptions = field(default_factory=BotOptions)
    humidifier: HumidifierOptions = field(default_factory=HumidifierOptions)

    @property
    def display_name(self) -> str:
        """Return the name shown by the host, suffixed with the type tag."""

        return f"{self.name} {self.remote_type or self.device_type}"


@dataclass(frozen=True, slots=True)
class IntentResult(Generic[TargetT]):
    """New target state plus the values mirrored optimistically to the sink."""

    target: TargetT
    mirrored: Mapping[str, Any]


class CharacteristicSink(Protocol):
    """Host-side receiver of parsed device state."""

    def update(self, field: str, value: Any) -> None:
        """Display ``value`` for ``field``."""

    def update_error(self, field: str, error: Exception) -> None:
        """Flag ``field`` as failed with ``error``."""


class DeviceProfile(Protocol[TargetT]):
    """Status parser and command mapper for one device family."""

    supports_status: bool
    writable_fields: frozenset[str]

    def fields(self, identity: DeviceIdentity) -> tuple[str, ...]:
        """Return the observed field names exposed for ``identity``."""

    def initial_observed(self, identity: DeviceIdentity) -> ObservedState:
        """Return the placeholder snapshot shown before the first poll."""

    def initial_target(self, identity: DeviceIdentity) -> TargetT:
        """Return the placeholder target state."""

    def target_from_observed(
        self, observed: ObservedState, target: TargetT
    ) -> TargetT:
        """Rebase ``target`` on the latest observed snapshot."""

    def apply_intent(
        self, target: TargetT, changes: Mapping[str, Any], identity: DeviceIdentity
    ) -> IntentResult[TargetT]:
        """Apply host intent ``changes`` to ``target``."""

    def parse(
        self, response: StatusResponse, identity: DeviceIdentity
    ) -> ObservedState:
        """Translate a successful status response into an observed snapshot."""

    def map_command(self, target: TargetT, identity: DeviceIdentity) -> Command | None:
        """Return the command realising ``target``; ``None`` means nothing to send."""

    def push_rate(self, config: SwitchBotConfig) -> float:
        """Return the debounce window in seconds for this device family."""


def snapshot(values: Mapping[str, Any]) -> ObservedState:
    """Freeze ``values`` into a read-only observed snapshot."""

    return MappingProxyType(dict(values))


def parse_body(model: type[BodyT], response: StatusResponse) -> BodyT:
    """Validate the status body against the device family schema."""

    try:
        return model.model_validate(response.body)
    except ValidationError as err:
        raise ParseError(f"Unexpected {model.__name__} payload: {err}") from err


def reject_unknown_fields(changes: Iterable[str], writable: frozenset[str]) -> None:
    """Raise ``KeyError`` for intent fields the device cannot change."""

    for name in changes:
        if name not in writable:
            raise KeyError(name)
