"""Discovery and lifecycle management for SwitchBot device engines."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from .api import SwitchBotAPIClient
from .config import SwitchBotConfig
from .const import (
    DEVICE_TYPE_BOT,
    DEVICE_TYPE_HUB_MINI,
    DEVICE_TYPE_HUMIDIFIER,
    REMOTE_TYPE_DIY_TV,
    REMOTE_TYPE_TV,
)
from .device_types import (
    BotProfile,
    CharacteristicSink,
    DeviceIdentity,
    DeviceProfile,
    HubProfile,
    HumidifierProfile,
    TelevisionProfile,
)
from .engine import DeviceSyncEngine
from .models import DeviceEntry, RemoteEntry

SinkFactory = Callable[[DeviceIdentity], CharacteristicSink]

_DEVICE_PROFILES: dict[str, DeviceProfile[Any]] = {
    DEVICE_TYPE_BOT: BotProfile(),
    DEVICE_TYPE_HUMIDIFIER: HumidifierProfile(),
    DEVICE_TYPE_HUB_MINI: HubProfile(),
}

_REMOTE_PROFILES: dict[str, DeviceProfile[Any]] = {
    REMOTE_TYPE_TV: TelevisionProfile(),
    REMOTE_TYPE_DIY_TV: TelevisionProfile(),
}


class SwitchBotCoordinator:
    """Own one :class:`DeviceSyncEngine` per discovered device."""

    def __init__(
        self,
        *,
        config: SwitchBotConfig,
        api_client: SwitchBotAPIClient,
        sink_factory: SinkFactory,
        loop: asyncio.AbstractEventLoop | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Store the validated configuration and shared collaborators."""

        self._config = config
        self._api_client = api_client
        self._sink_factory = sink_factory
        self._loop = loop
        self._logger = logger or logging.getLogger(__name__)
        self.engines: dict[str, DeviceSyncEngine[Any]] = {}

    @property
    def api_client(self) -> SwitchBotAPIClient:
        """Return the API client shared by every engine."""

        return self._api_client

    async def async_discover_devices(self) -> list[DeviceSyncEngine[Any]]:
        """Fetch the device list and start an engine for each supported device."""

        device_list = await self._api_client.async_get_devices()
        started: list[DeviceSyncEngine[Any]] = []
        for entry in device_list.device_list:
            engine = self._add_device(entry)
            if engine is not None:
                started.append(engine)
        for remote in device_list.infrared_remote_list:
            engine = self._add_remote(remote)
            if engine is not None:
                started.append(engine)
        return started

    def add_engine(
        self, identity: DeviceIdentity, profile: DeviceProfile[Any]
    ) -> DeviceSyncEngine[Any]:
        """Build and start the engine for ``identity`` unless it already runs."""

        existing = self.engines.get(identity.device_id)
        if existing is not None:
            return existing
        engine: DeviceSyncEngine[Any] = DeviceSyncEngine(
            identity=identity,
            profile=profile,
            api_client=self._api_client,
            sink=self._sink_factory(identity),
            refresh_rate=self._config.refresh_rate,
            push_rate=profile.push_rate(self._config),
            loop=self._loop,
            logger=self._logger.getChild(identity.device_id),
        )
        self.engines[identity.device_id] = engine
        engine.start()
        return engine

    async def async_stop(self) -> None:
        """Stop every engine."""

        await asyncio.gather(
            *(engine.async_stop() for engine in self.engines.values())
        )
        self.engines.clear()

    def _add_device(self, entry: DeviceEntry) -> DeviceSyncEngine[Any] | None:
        if self._is_hidden(entry.device_id):
            return None
        if not entry.enable_cloud_service:
            self._logger.info(
                "Skipping %s; cloud service is disabled for it", entry.device_name
            )
            return None
        profile = _DEVICE_PROFILES.get(entry.device_type)
        if profile is None:
            self._logger.info(
                "Device type %s of %s is not supported",
                entry.device_type,
                entry.device_name,
            )
            return None
        identity = DeviceIdentity(
            device_id=entry.device_id,
            device_type=entry.device_type,
            name=entry.device_name,
            bot=self._config.bot,
            humidifier=self._config.humidifier,
        )
        return self.add_engine(identity, profile)

    def _add_remote(self, remote: RemoteEntry) -> DeviceSyncEngine[Any] | None:
        if self._is_hidden(remote.device_id):
            return None
        profile = _REMOTE_PROFILES.get(remote.remote_type)
        if profile is None:
            self._logger.info(
                "Remote type %s of %s is not supported",
                remote.remote_type,
                remote.device_name,
            )
            return None
        identity = DeviceIdentity(
            device_id=remote.device_id,
            device_type="Infrared Remote",
            name=remote.device_name,
            remote_type=remote.remote_type,
        )
        return self.add_engine(identity, profile)

    def _is_hidden(self, device_id: str) -> bool:
        if device_id in self._config.hide_device:
            self._logger.debug("Hiding device %s", device_id)
            return True
        return False
