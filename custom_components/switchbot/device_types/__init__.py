"""Device profiles for the SwitchBot component."""

from .base import (
    CharacteristicSink,
    DeviceIdentity,
    DeviceProfile,
    IntentResult,
    ObservedState,
)
from .bot import BotProfile, BotTarget
from .humidifier import (
    HumidifierMode,
    HumidifierProfile,
    HumidifierTarget,
    OperatingState,
)
from .hub import HubProfile, HubTarget
from .television import (
    RemoteKey,
    TelevisionProfile,
    TelevisionTarget,
    VolumeSelector,
)

__all__ = [
    "BotProfile",
    "BotTarget",
    "CharacteristicSink",
    "DeviceIdentity",
    "DeviceProfile",
    "HubProfile",
    "HubTarget",
    "HumidifierMode",
    "HumidifierProfile",
    "HumidifierTarget",
    "IntentResult",
    "ObservedState",
    "OperatingState",
    "RemoteKey",
    "TelevisionProfile",
    "TelevisionTarget",
    "VolumeSelector",
]
