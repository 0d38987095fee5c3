import asyncio
import json

import numpy as np
import pytest

from recognize_stream.domain.errors import TransportConnectionError
from recognize_stream.domain.events import StreamEvent
from recognize_stream.domain.recognize_stream import RecognizeStream, StreamOptions
from recognize_stream.ports.connection import ReadyState


SAMPLE_RATE = 8000
CHUNK_DURATION_MS = 20


def generate_silence(duration_ms: int = CHUNK_DURATION_MS, sample_rate: int = SAMPLE_RATE) -> bytes:
    num_samples = int(sample_rate * duration_ms / 1000)
    return np.zeros(num_samples, dtype=np.int16).tobytes()


def generate_sine_wave(
    frequency: float = 440.0,
    duration_ms: int = CHUNK_DURATION_MS,
    amplitude: float = 0.8,
    sample_rate: int = SAMPLE_RATE,
) -> bytes:
    num_samples = int(sample_rate * duration_ms / 1000)
    t = np.arange(num_samples) / sample_rate
    signal = np.sin(2 * np.pi * frequency * t) * amplitude
    return (signal * 32767).astype(np.int16).tobytes()


class FakeConnection:
    """Scriptable connection. Tests drive the service side with ``server_*``."""

    def __init__(self, url: str, headers: dict[str, str], depth_schedule: list[int] | None = None) -> None:
        self.url = url
        self.headers = headers
        self.sent: list[bytes | str] = []
        self.open_calls = 0
        self.close_calls = 0
        self.buffer_polls = 0
        self.drain_waits = 0
        self.fail_sends = False
        self.depth = 0
        self._depth_schedule = list(depth_schedule or [])
        self._state = ReadyState.CONNECTING

        self._on_open = None
        self._on_message = None
        self._on_error = None
        self._on_close = None

    @property
    def ready_state(self) -> ReadyState:
        return self._state

    @property
    def buffered_amount(self) -> int:
        self.buffer_polls += 1
        if self._depth_schedule:
            return self._depth_schedule.pop(0)
        return self.depth

    def bind(self, on_open, on_message, on_error, on_close) -> None:
        self._on_open = on_open
        self._on_message = on_message
        self._on_error = on_error
        self._on_close = on_close

    def open(self) -> None:
        self.open_calls += 1

    async def send(self, data: bytes | str) -> None:
        if self.fail_sends or self._state is not ReadyState.OPEN:
            raise TransportConnectionError(f"Cannot send while connection is {self._state.name}")
        self.sent.append(data)

    async def wait_drained(self, timeout: float) -> None:
        self.drain_waits += 1
        await asyncio.sleep(0)

    def close(self) -> None:
        self.close_calls += 1
        if self._state in (ReadyState.CLOSING, ReadyState.CLOSED):
            return
        self._state = ReadyState.CLOSING

    def server_open(self) -> None:
        self._state = ReadyState.OPEN
        self._on_open()

    def server_send(self, payload) -> None:
        if isinstance(payload, (str, bytes)):
            self._on_message(payload)
        else:
            self._on_message(json.dumps(payload))

    def server_error(self, error: Exception) -> None:
        self._on_error(error)

    def server_close(self, code: int = 1000, reason: str = "") -> None:
        self._state = ReadyState.CLOSED
        self._on_close(code, reason)


class FakeConnectionFactory:
    def __init__(self, depth_schedule: list[int] | None = None) -> None:
        self.connections: list[FakeConnection] = []
        self._depth_schedule = depth_schedule

    def __call__(self, url: str, headers: dict[str, str]) -> FakeConnection:
        connection = FakeConnection(url, headers, self._depth_schedule)
        self.connections.append(connection)
        return connection

    @property
    def connection(self) -> FakeConnection:
        return self.connections[-1]


def pending_events(stream: RecognizeStream) -> list[StreamEvent]:
    events = []
    while not stream._events.empty():
        event = stream._events.get_nowait()
        if event is not None:
            events.append(event)
    return events


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def options():
    return StreamOptions(
        url="wss://example.test/v2/listen/stream?model=phonecall&punctuate=true&interim_results=true",
        headers={"Authorization": "Basic dXNlcjpwYXNz"},
    )


@pytest.fixture
def connection_factory():
    return FakeConnectionFactory()


@pytest.fixture
def stream(options, connection_factory):
    return RecognizeStream(options, connection_factory=connection_factory)


@pytest.fixture
def audio_chunks():
    return [generate_sine_wave(frequency=220.0 * (i + 1)) for i in range(3)]
