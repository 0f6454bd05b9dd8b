"""SwitchBot cloud integration entry points."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .api import SwitchBotAPIClient
from .config import SwitchBotConfig, validate_config
from .const import DOMAIN
from .coordinator import SinkFactory, SwitchBotCoordinator
from .exceptions import SwitchBotError

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "DOMAIN",
    "async_setup",
    "async_unload",
]


async def async_setup(
    raw_config: Mapping[str, Any] | SwitchBotConfig,
    sink_factory: SinkFactory,
    *,
    api_client: SwitchBotAPIClient | None = None,
) -> SwitchBotCoordinator:
    """Validate configuration, discover devices and start their engines."""

    config = (
        raw_config
        if isinstance(raw_config, SwitchBotConfig)
        else validate_config(raw_config)
    )
    client = api_client or SwitchBotAPIClient(config.token, timeout=config.timeout)
    coordinator = SwitchBotCoordinator(
        config=config,
        api_client=client,
        sink_factory=sink_factory,
        logger=_LOGGER,
    )
    try:
        engines = await coordinator.async_discover_devices()
    except SwitchBotError:
        await coordinator.async_stop()
        await client.async_close()
        raise
    _LOGGER.info("Started synchronisation for %d SwitchBot devices", len(engines))
    return coordinator


async def async_unload(coordinator: SwitchBotCoordinator) -> None:
    """Stop every engine and release the shared HTTP client."""

    await coordinator.async_stop()
    await coordinator.api_client.async_close()
