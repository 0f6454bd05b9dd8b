"""Per-device synchronisation between the SwitchBot cloud and the host.

Each :class:`DeviceSyncEngine` owns two timer driven paths:

* the read path polls ``GET /devices/{id}/status`` every ``refresh_rate``
  seconds and replaces the observed snapshot wholesale;
* the write path collects host intents into the target state and, once no new
  intent arrived for ``push_rate`` seconds, posts a single command.

Polls are skipped while a push is pending or in flight, and an
``asyncio.Lock`` keeps polls and pushes for one device from overlapping.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Mapping
from typing import Any, Generic, TypeVar

from .api import SwitchBotAPIClient
from .device_types.base import (
    CharacteristicSink,
    DeviceIdentity,
    DeviceProfile,
    ObservedState,
)
from .exceptions import ConfigurationError, MappingError, SwitchBotError

_LOGGER = logging.getLogger(__name__)

TargetT = TypeVar("TargetT")


class DeviceSyncEngine(Generic[TargetT]):
    """Mirror one device's cloud state and push coalesced host intents."""

    def __init__(
        self,
        *,
        identity: DeviceIdentity,
        profile: DeviceProfile[TargetT],
        api_client: SwitchBotAPIClient,
        sink: CharacteristicSink,
        refresh_rate: float,
        push_rate: float,
        refresh_after_push: bool = True,
        loop: asyncio.AbstractEventLoop | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialise placeholder state; nothing runs until :meth:`start`."""

        self.identity = identity
        self._profile = profile
        self._api_client = api_client
        self._sink = sink
        self._refresh_rate = refresh_rate
        self._push_rate = push_rate
        self._refresh_after_push = refresh_after_push
        self._loop = loop
        self._logger = logger or _LOGGER

        self._observed: ObservedState = profile.initial_observed(identity)
        self._target: TargetT = profile.initial_target(identity)

        self._io_lock = asyncio.Lock()
        self._poll_handle: asyncio.TimerHandle | None = None
        self._push_handle: asyncio.TimerHandle | None = None
        self._push_tasks: set[asyncio.Task[Any]] = set()
        self._started = False
        self._pending_tasks: set[asyncio.Task[Any]] = set()

    @property
    def profile(self) -> DeviceProfile[TargetT]:
        """Return the parser and mapper used for this device."""

        return self._profile

    @property
    def observed_state(self) -> ObservedState:
        """Return the last successfully parsed snapshot."""

        return self._observed

    @property
    def target_state(self) -> TargetT:
        """Return the latest desired state."""

        return self._target

    @property
    def push_in_flight(self) -> bool:
        """Return True while a command is being sent."""

        return bool(self._push_tasks)

    @property
    def push_pending(self) -> bool:
        """Return True while a debounce timer is armed."""

        return self._push_handle is not None

    @property
    def started(self) -> bool:
        """Return True once :meth:`start` has been called."""

        return self._started

    def start(self) -> None:
        """Publish placeholders, refresh once and start the poll loop."""

        if self._started:
            return
        self._started = True
        self._publish(self._observed)
        if self._profile.supports_status:
            self.request_refresh()
            self._schedule_poll()

    def stop(self) -> None:
        """Cancel timers and outstanding tasks."""

        self._started = False
        for handle in (self._poll_handle, self._push_handle):
            if handle is not None:
                handle.cancel()
        self._poll_handle = None
        self._push_handle = None
        self._push_tasks.clear()
        for task in list(self._pending_tasks):
            task.cancel()

    async def async_stop(self) -> None:
        """Stop the engine and wait for cancelled tasks to unwind."""

        tasks = list(self._pending_tasks)
        self.stop()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def on_intent(self, changes: Mapping[str, Any]) -> None:
        """Apply host intent ``changes`` and (re)arm the debounce timer.

        Returns without awaiting any I/O. Unknown fields raise ``KeyError``
        before any state is touched. Intents received while the engine is
        stopped are dropped.
        """

        if not self._started:
            self._logger.warning(
                "%s is stopped; ignoring intent %s",
                self.identity.display_name,
                dict(changes),
            )
            return
        self._logger.debug("%s intent: %s", self.identity.display_name, dict(changes))
        target = self._target
        if not (self.push_pending or self.push_in_flight):
            target = self._profile.target_from_observed(self._observed, target)
        result = self._profile.apply_intent(target, changes, self.identity)
        self._target = result.target
        for field, value in result.mirrored.items():
            self._sink.update(field, value)
        self._arm_push_timer()

    def request_refresh(self) -> asyncio.Task[bool]:
        """Schedule an immediate poll outside the regular cadence."""

        return self._spawn(self.async_refresh())

    async def async_refresh(self) -> bool:
        """Poll the cloud once; return True when the snapshot was replaced."""

        name = self.identity.display_name
        if self.push_pending or self.push_in_flight:
            self._logger.debug("%s refresh skipped; push in progress", name)
            return False
        if self._io_lock.locked():
            self._logger.debug("%s refresh skipped; refresh already running", name)
            return False

        async with self._io_lock:
            try:
                response = await self._api_client.async_get_status(
                    self.identity.device_id
                )
                observed = self._profile.parse(response, self.identity)
            except SwitchBotError as err:
                self._logger.error("Failed to update status of %s: %s", name, err)
                self._report_error(err)
                return False

        if self.push_pending or self.push_in_flight:
            # The result predates the command now queued.
            self._logger.debug("%s discarding status fetched before push", name)
            return False
        self._observed = observed
        self._publish(observed)
        return True

    def _schedule_poll(self) -> None:
        self._poll_handle = self._get_loop().call_later(
            self._refresh_rate, self._on_poll_tick
        )

    def _on_poll_tick(self) -> None:
        self._poll_handle = None
        if not self._started:
            return
        if self.push_pending or self.push_in_flight:
            self._logger.debug(
                "%s poll tick skipped; push in progress", self.identity.display_name
            )
        else:
            self.request_refresh()
        self._schedule_poll()

    def _arm_push_timer(self) -> None:
        if self._push_handle is not None:
            self._push_handle.cancel()
        self._push_handle = self._get_loop().call_later(
            self._push_rate, self._on_push_timer
        )

    def _on_push_timer(self) -> None:
        self._push_handle = None
        task = self._spawn(self._async_push())
        self._push_tasks.add(task)
        task.add_done_callback(self._on_push_done)

    async def _async_push(self) -> None:
        async with self._io_lock:
            await self._async_send_target()

    def _on_push_done(self, task: asyncio.Task[Any]) -> None:
        self._push_tasks.discard(task)
        if task.cancelled() or not self._started:
            return
        if (
            self._refresh_after_push
            and self._profile.supports_status
            and not (self.push_pending or self.push_in_flight)
        ):
            self.request_refresh()

    async def _async_send_target(self) -> None:
        name = self.identity.display_name
        try:
            command = self._profile.map_command(self._target, self.identity)
        except (MappingError, ConfigurationError) as err:
            self._logger.error("%s configuration error: %s", name, err)
            self._report_error(err)
            return
        if command is None:
            self._logger.debug("%s has no command for %s", name, self._target)
            return

        self._logger.info(
            "Sending request for %s to SwitchBot API. command: %s, parameter: %s, "
            "commandType: %s",
            name,
            command.command,
            command.parameter,
            command.command_type,
        )
        try:
            response = await self._api_client.async_post_command(
                self.identity.device_id, command
            )
        except SwitchBotError as err:
            self._logger.error("Failed to push changes to %s: %s", name, err)
            self._report_error(err)
            return
        self._logger.debug("%s changes pushed: %s", name, response.body)

    def _publish(self, observed: ObservedState) -> None:
        for field, value in observed.items():
            self._sink.update(field, value)

    def _report_error(self, error: Exception) -> None:
        for field in self._profile.fields(self.identity):
            self._sink.update_error(field, error)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = self._get_loop().create_task(coro)
        self._pending_tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._pending_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.error(
                "Unexpected error while syncing %s",
                self.identity.display_name,
                exc_info=error,
            )

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop
