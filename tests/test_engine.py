"""Tests for the per-device poll and push engine."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from custom_components.switchbot.config import BotOptions, HumidifierOptions
from custom_components.switchbot.device_types import (
    BotProfile,
    DeviceIdentity,
    DeviceProfile,
    HumidifierMode,
    HumidifierProfile,
    OperatingState,
    RemoteKey,
    TelevisionProfile,
)
from custom_components.switchbot.engine import DeviceSyncEngine
from custom_components.switchbot.exceptions import (
    MappingError,
    ProtocolError,
    TransportError,
)
from custom_components.switchbot.models import (
    Command,
    CommandResponse,
    StatusResponse,
)

SUCCESS = {"statusCode": 100, "message": "success"}
BOT_OPTIONS = BotOptions(
    device_switch=frozenset({"D1"}), device_press=frozenset({"D2"})
)


class FakeAPIClient:
    """Serve a mutable status body and record posted commands."""

    def __init__(self, body: dict[str, Any] | None = None, post_delay: float = 0):
        """Store the body returned by status polls."""

        self.body = dict(body or {})
        self.post_delay = post_delay
        self.status_errors: list[Exception] = []
        self.status_calls = 0
        self.polls_during_push = 0
        self.posted: list[tuple[str, dict[str, str]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def async_get_status(self, device_id: str) -> StatusResponse:
        """Return the current body or raise the next queued error."""

        self.status_calls += 1
        if self.in_flight:
            self.polls_during_push += 1
        if self.status_errors:
            raise self.status_errors.pop(0)
        return StatusResponse.model_validate({**SUCCESS, "body": dict(self.body)})

    async def async_post_command(
        self, device_id: str, command: Command
    ) -> CommandResponse:
        """Record ``command`` while tracking concurrent posts."""

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.post_delay)
            self.posted.append((device_id, command.as_payload()))
            self.apply_command(command)
        finally:
            self.in_flight -= 1
        return CommandResponse.model_validate({**SUCCESS, "body": {}})

    def apply_command(self, command: Command) -> None:
        """Hook for devices that react to commands."""


class EchoingHumidifierClient(FakeAPIClient):
    """Humidifier whose reported status follows the last command."""

    def apply_command(self, command: Command) -> None:
        """Reflect the command in the status body."""

        if command.command == "turnOff":
            self.body["power"] = "off"
        elif command.parameter == "auto":
            self.body.update(power="on", auto=True)
        else:
            self.body.update(
                power="on", auto=False, nebulizationEfficiency=int(command.parameter)
            )


class RecordingSink:
    """Collect values and errors pushed to the host."""

    def __init__(self) -> None:
        """Initialise empty records."""

        self.values: dict[str, Any] = {}
        self.updates: list[tuple[str, Any]] = []
        self.errors: list[tuple[str, Exception]] = []

    def update(self, field: str, value: Any) -> None:
        """Record a displayed value."""

        self.values[field] = value
        self.updates.append((field, value))

    def update_error(self, field: str, error: Exception) -> None:
        """Record an error indication."""

        self.errors.append((field, error))


def _engine(
    profile: DeviceProfile[Any],
    identity: DeviceIdentity,
    client: FakeAPIClient,
    sink: RecordingSink,
    *,
    refresh_rate: float = 60,
    push_rate: float = 0.02,
) -> DeviceSyncEngine[Any]:
    return DeviceSyncEngine(
        identity=identity,
        profile=profile,
        api_client=client,  # type: ignore[arg-type]
        sink=sink,
        refresh_rate=refresh_rate,
        push_rate=push_rate,
    )


def _bot(device_id: str) -> DeviceIdentity:
    return DeviceIdentity(
        device_id=device_id, device_type="Bot", name="Kettle", bot=BOT_OPTIONS
    )


def _humidifier(**options: Any) -> DeviceIdentity:
    return DeviceIdentity(
        device_id="H1",
        device_type="Humidifier",
        name="Bedroom",
        humidifier=HumidifierOptions(**options),
    )


@pytest.mark.asyncio
async def test_switch_mode_intent_posts_turn_on() -> None:
    """A switch-mode bot pushes ``turnOn`` once the debounce window elapses."""

    client = FakeAPIClient({"power": "off"})
    engine = _engine(BotProfile(), _bot("D1"), client, RecordingSink())
    engine.start()
    await asyncio.sleep(0.01)

    engine.on_intent({"on": True})
    await asyncio.sleep(0.1)
    await engine.async_stop()

    assert client.posted == [
        ("D1", {"commandType": "command", "command": "turnOn", "parameter": "default"})
    ]


@pytest.mark.asyncio
async def test_press_mode_intent_posts_press() -> None:
    """A press-mode bot presses whatever the requested value."""

    client = FakeAPIClient({"power": "off"})
    engine = _engine(BotProfile(), _bot("D2"), client, RecordingSink())
    engine.start()
    await asyncio.sleep(0.01)

    engine.on_intent({"on": False})
    await asyncio.sleep(0.1)
    await engine.async_stop()

    assert client.posted == [
        ("D2", {"commandType": "command", "command": "press", "parameter": "default"})
    ]


@pytest.mark.asyncio
async def test_on_intent_returns_without_network_io() -> None:
    """Intents only arm the debounce timer and mirror the value."""

    client = FakeAPIClient({"power": "off"})
    sink = RecordingSink()
    engine = _engine(BotProfile(), _bot("D1"), client, sink, push_rate=0.05)
    engine.start()
    await asyncio.sleep(0.01)

    result = engine.on_intent({"on": True})

    assert result is None
    assert engine.push_pending
    assert not engine.push_in_flight
    assert client.posted == []
    assert sink.values["on"] is True
    await engine.async_stop()


@pytest.mark.asyncio
async def test_rapid_intents_coalesce_into_last_value() -> None:
    """A burst of intents inside the window produces one post with the last value."""

    client = FakeAPIClient(
        {"power": "on", "humidity": 40, "nebulizationEfficiency": 20, "auto": False}
    )
    engine = _engine(HumidifierProfile(), _humidifier(), client, RecordingSink())
    engine.start()
    await asyncio.sleep(0.01)

    for threshold in (25, 30, 45, 50):
        engine.on_intent({"threshold": threshold})
        await asyncio.sleep(0)
    engine.on_intent({"threshold": 55})
    await asyncio.sleep(0.1)
    await engine.async_stop()

    assert client.posted == [
        ("H1", {"commandType": "command", "command": "setMode", "parameter": "55"})
    ]


@pytest.mark.asyncio
async def test_pushes_never_overlap() -> None:
    """A second push waits for the one already in flight."""

    client = FakeAPIClient({"power": "off"}, post_delay=0.05)
    engine = _engine(
        BotProfile(), _bot("D1"), client, RecordingSink(), push_rate=0.01
    )
    engine.start()
    await asyncio.sleep(0.01)

    engine.on_intent({"on": True})
    await asyncio.sleep(0.03)
    assert engine.push_in_flight
    engine.on_intent({"on": False})
    await asyncio.sleep(0.2)
    await engine.async_stop()

    assert client.max_in_flight == 1
    assert [payload["command"] for _, payload in client.posted] == [
        "turnOn",
        "turnOff",
    ]


@pytest.mark.asyncio
async def test_poll_ticks_during_push_make_no_network_call() -> None:
    """Poll ticks that land while a push is in flight are skipped."""

    client = FakeAPIClient({"power": "off"}, post_delay=0.15)
    sink = RecordingSink()
    engine = _engine(
        BotProfile(), _bot("D1"), client, sink, refresh_rate=0.02, push_rate=0.01
    )
    engine.start()
    await asyncio.sleep(0.005)
    observed = engine.observed_state

    engine.on_intent({"on": True})
    await asyncio.sleep(0.08)
    assert engine.push_in_flight
    assert engine.observed_state is observed
    assert await engine.async_refresh() is False
    await asyncio.sleep(0.15)
    await engine.async_stop()

    assert client.polls_during_push == 0
    assert len(client.posted) == 1


@pytest.mark.asyncio
async def test_failed_poll_keeps_last_snapshot_and_reports_error() -> None:
    """A non-success poll leaves state alone and the next tick still runs."""

    client = FakeAPIClient({"power": "on"})
    sink = RecordingSink()
    engine = _engine(BotProfile(), _bot("D1"), client, sink, refresh_rate=0.05)
    engine.start()
    await asyncio.sleep(0.01)
    assert engine.observed_state["on"] is True
    observed = engine.observed_state

    error = ProtocolError("statusCode 190", status_code=190, api_message="failed")
    client.status_errors.append(error)
    client.body = {"power": "off"}
    await asyncio.sleep(0.065)

    assert engine.observed_state is observed
    assert sorted(field for field, _ in sink.errors) == ["on", "outlet_in_use"]
    assert all(reported is error for _, reported in sink.errors)

    await asyncio.sleep(0.05)
    await engine.async_stop()

    assert client.status_calls >= 3
    assert engine.observed_state["on"] is False


@pytest.mark.asyncio
async def test_unconfigured_bot_reports_mapping_error_without_posting() -> None:
    """A bot outside both mode lists never reaches the network."""

    client = FakeAPIClient({"power": "off"})
    sink = RecordingSink()
    engine = _engine(BotProfile(), _bot("D3"), client, sink)
    engine.start()
    await asyncio.sleep(0.01)

    engine.on_intent({"on": True})
    await asyncio.sleep(0.1)
    await engine.async_stop()

    assert client.posted == []
    assert sink.errors
    assert all(isinstance(error, MappingError) for _, error in sink.errors)


@pytest.mark.asyncio
async def test_pushed_threshold_round_trips_through_status() -> None:
    """A pushed threshold comes back as the observed threshold."""

    client = EchoingHumidifierClient(
        {"power": "off", "humidity": 40, "nebulizationEfficiency": 0, "auto": False}
    )
    sink = RecordingSink()
    engine = _engine(HumidifierProfile(), _humidifier(set_min_step=5), client, sink)
    engine.start()
    await asyncio.sleep(0.01)
    assert engine.observed_state["active"] is False

    engine.on_intent({"threshold": 53})
    await asyncio.sleep(0.1)
    await engine.async_stop()

    assert [payload["parameter"] for _, payload in client.posted] == ["55"]
    observed = engine.observed_state
    assert observed["threshold"] == 55
    assert observed["active"] is True
    assert observed["mode"] is HumidifierMode.MANUAL
    assert observed["current_state"] is OperatingState.HUMIDIFYING
    assert sink.values["threshold"] == 55


@pytest.mark.asyncio
async def test_start_is_idempotent() -> None:
    """Starting twice publishes placeholders and refreshes only once."""

    client = FakeAPIClient({"power": "on"})
    sink = RecordingSink()
    engine = _engine(BotProfile(), _bot("D1"), client, sink)

    engine.start()
    engine.start()
    assert sink.values == {"on": False, "outlet_in_use": True}
    await asyncio.sleep(0.01)
    await engine.async_stop()

    assert client.status_calls == 1
    assert sink.values["on"] is True


@pytest.mark.asyncio
async def test_stop_cancels_polling() -> None:
    """No polls happen after the engine is stopped."""

    client = FakeAPIClient({"power": "on"})
    engine = _engine(
        BotProfile(), _bot("D1"), client, RecordingSink(), refresh_rate=0.02
    )
    engine.start()
    await asyncio.sleep(0.01)
    await engine.async_stop()
    calls = client.status_calls

    await asyncio.sleep(0.06)

    assert client.status_calls == calls
    assert not engine.started


@pytest.mark.asyncio
async def test_unknown_intent_field_is_rejected() -> None:
    """Unknown fields raise before any timer is armed."""

    client = FakeAPIClient({"power": "off"})
    engine = _engine(BotProfile(), _bot("D1"), client, RecordingSink())
    engine.start()

    with pytest.raises(KeyError):
        engine.on_intent({"brightness": 10})

    assert not engine.push_pending
    await engine.async_stop()


@pytest.mark.asyncio
async def test_television_is_never_polled() -> None:
    """IR remotes push commands without polling."""

    client = FakeAPIClient()
    identity = DeviceIdentity(
        device_id="T1",
        device_type="Infrared Remote",
        name="Lounge",
        remote_type="TV",
    )
    engine = _engine(
        TelevisionProfile(), identity, client, RecordingSink(), refresh_rate=0.01
    )
    engine.start()

    engine.on_intent({"remote_key": RemoteKey.PLAY_PAUSE})
    await asyncio.sleep(0.06)
    engine.on_intent({"remote_key": RemoteKey.PLAY_PAUSE})
    await asyncio.sleep(0.06)
    await engine.async_stop()

    assert client.status_calls == 0
    assert [payload["command"] for _, payload in client.posted] == ["Play", "Pause"]


class FailingPostClient(FakeAPIClient):
    """Client whose command endpoint is unreachable."""

    def __init__(self, body: dict[str, Any] | None = None) -> None:
        """Initialise the attempt counter."""

        super().__init__(body)
        self.post_attempts = 0

    async def async_post_command(
        self, device_id: str, command: Command
    ) -> CommandResponse:
        """Count the attempt and fail."""

        self.post_attempts += 1
        raise TransportError("connection reset")


@pytest.mark.asyncio
async def test_failed_push_reports_error_without_retry() -> None:
    """A failed post is surfaced on every field and not retried."""

    client = FailingPostClient({"power": "off"})
    sink = RecordingSink()
    engine = _engine(BotProfile(), _bot("D1"), client, sink)
    engine.start()
    await asyncio.sleep(0.01)

    engine.on_intent({"on": True})
    await asyncio.sleep(0.15)

    assert client.post_attempts == 1
    assert sorted(field for field, _ in sink.errors) == ["on", "outlet_in_use"]
    assert all(isinstance(error, TransportError) for _, error in sink.errors)
    assert engine.push_in_flight is False
    assert not engine.push_pending
    await engine.async_stop()


@pytest.mark.asyncio
async def test_restart_after_stop_during_push_resumes_polling() -> None:
    """Stopping while a push is queued does not block polls after a restart."""

    client = FakeAPIClient({"power": "off"})
    engine = _engine(
        BotProfile(), _bot("D1"), client, RecordingSink(), refresh_rate=0.02
    )
    engine.start()
    await asyncio.sleep(0.005)

    engine._on_push_timer()
    engine.stop()

    assert engine.push_in_flight is False
    calls = client.status_calls
    engine.start()
    await asyncio.sleep(0.1)
    await engine.async_stop()

    assert client.status_calls >= calls + 3
    assert client.posted == []


@pytest.mark.asyncio
async def test_intent_while_stopped_is_ignored() -> None:
    """A stopped engine arms no timer and sends nothing."""

    client = FakeAPIClient({"power": "off"})
    sink = RecordingSink()
    engine = _engine(BotProfile(), _bot("D1"), client, sink)

    engine.on_intent({"on": True})
    await asyncio.sleep(0.05)

    assert not engine.push_pending
    assert client.posted == []
    assert sink.updates == []
