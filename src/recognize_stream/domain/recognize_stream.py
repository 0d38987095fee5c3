"""Duplex adapter between an audio byte stream and a transcript event stream.

Audio written with ``write()`` is relayed over one persistent connection to the
recognition service. Everything the service (or the connection) reports comes
back as ``StreamEvent`` objects, in order, through ``read()`` / ``events()``.
The connection is opened lazily by the first ``write()``.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field

from recognize_stream.adapters.websocket_connection import WebsocketConnection
from recognize_stream.domain.errors import (
    ProtocolError,
    RecognizeStreamError,
    ServiceError,
    TransportConnectionError,
)
from recognize_stream.domain.events import (
    CloseEvent,
    ConnectEvent,
    DataEvent,
    ErrorEvent,
    FinalResult,
    ListeningEvent,
    ResultsEvent,
    StoppingEvent,
    StreamEvent,
)
from recognize_stream.domain.protocol import decode_frame
from recognize_stream.domain.state import SessionState, can_transition
from recognize_stream.ports.connection import ConnectionFactory, ConnectionPort, ReadyState

logger = logging.getLogger(__name__)

CLOSING_MESSAGE = ""
DEFAULT_DRAIN_POLL_INTERVAL = 0.01


@dataclass(frozen=True)
class StreamOptions:
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    high_water_mark: int = 0
    drain_poll_interval: float = DEFAULT_DRAIN_POLL_INTERVAL


class RecognizeStream:
    def __init__(
        self,
        options: StreamOptions,
        connection_factory: ConnectionFactory = WebsocketConnection,
    ) -> None:
        self._options = options
        self._connection_factory = connection_factory
        self._connection: ConnectionPort | None = None

        self._state = SessionState.CREATED
        self._ready: asyncio.Future[bool] | None = None
        self._write_lock = asyncio.Lock()
        self._events: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        self._ended = False

        self._finish_pending = False
        self._finish_task: asyncio.Task | None = None
        self._closing_message_sent = False

    @property
    def options(self) -> StreamOptions:
        return self._options

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def listening(self) -> bool:
        return self._state is SessionState.LISTENING

    @property
    def initialized(self) -> bool:
        return self._state is not SessionState.CREATED and self._connection is not None

    # Write side

    async def write(self, chunk: bytes) -> None:
        async with self._write_lock:
            if self._state in (SessionState.CLOSING, SessionState.CLOSED):
                self._emit_error(TransportConnectionError(
                    f"Cannot write audio, session is {self._state.name}"
                ))
                return

            if not self.listening:
                if not self.initialized:
                    self._initialize()
                if not await self._wait_until_listening():
                    self._emit_error(TransportConnectionError(
                        "Session closed before the service was ready for audio"
                    ))
                    return

            await self._send(chunk)
            await self._after_send()

    async def finish(self) -> None:
        """Signal end of input. Sends the closing message once the connection is open."""
        if not self.initialized:
            logger.debug("finish() before any audio was written, nothing to close")
            return
        if self._connection.ready_state is ReadyState.OPEN:
            await self._send_closing_message()
        else:
            self._finish_pending = True

    async def stop(self) -> None:
        if self._state in (SessionState.CLOSING, SessionState.CLOSED):
            logger.debug("stop() on a %s session ignored", self._state.name)
            return

        logger.info("Stopping recognition session")
        self._emit(StoppingEvent())

        if self._connection is None:
            self._transition_to(SessionState.CLOSED)
            self._resolve_ready(False)
            self._end_of_stream()
            return

        was_listening = self.listening
        self._transition_to(SessionState.CLOSING)
        if was_listening:
            await self._send_closing_message()
        self._connection.close()

    # Read side

    async def read(self) -> StreamEvent | None:
        """Return the next event, or ``None`` once the stream has ended.

        Never asks the connection for data; it only waits for whatever the
        connection callbacks have pushed.
        """
        if self._ended and self._events.empty():
            return None
        event = await self._events.get()
        if event is None:
            self._ended = True
        return event

    async def events(self) -> AsyncIterator[StreamEvent]:
        while True:
            event = await self.read()
            if event is None:
                return
            yield event

    # Connection lifecycle

    def _initialize(self) -> None:
        connection = self._connection_factory(self._options.url, dict(self._options.headers))
        connection.bind(
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )
        self._connection = connection
        self._transition_to(SessionState.INITIALIZING)
        connection.open()

    def _on_open(self) -> None:
        logger.info("Connected to recognition service")
        if not self._transition_to(SessionState.CONNECTING):
            return
        self._emit(ConnectEvent())
        self._become_listening()

        if self._finish_pending:
            self._finish_pending = False
            self._finish_task = asyncio.create_task(self._send_closing_message())

    def _on_error(self, error: Exception) -> None:
        if self.listening:
            self._transition_to(SessionState.CONNECTING)
        wrapped = TransportConnectionError(f"Connection error: {error}")
        wrapped.__cause__ = error
        self._emit_error(wrapped)

    def _on_close(self, code: int | None, reason: str) -> None:
        logger.info("Connection closed (code=%s reason=%r)", code, reason)
        self._transition_to(SessionState.CLOSED)
        self._resolve_ready(False)
        self._emit(CloseEvent(code=code, reason=reason))
        self._end_of_stream()

    def _on_message(self, data: str | bytes) -> None:
        logger.debug("Frame received: %r", data)
        try:
            self._dispatch(data)
        except RecognizeStreamError as exc:
            self._emit_error(exc)

    def _dispatch(self, data: str | bytes) -> None:
        message = decode_frame(data)
        recognized = False

        if message.error:
            self._emit_error(ServiceError(str(message.error), raw=data))
            recognized = True

        if message.has_transcript or message.is_connected:
            # The service's own "ready for audio" signal.
            if not self.listening:
                self._become_listening()
            recognized = True

        if message.has_transcript:
            self._emit(ResultsEvent(
                transcript=message.transcript,
                is_final=bool(message.is_final),
                raw=message.raw_payload(),
            ))
            if message.is_final:
                self._emit(DataEvent(results=(
                    FinalResult(
                        value=message.transcript,
                        confidence=message.confidence,
                        channel=message.channel,
                    ),
                )))
            recognized = True

        if not recognized:
            raise ProtocolError("Unrecognised message from server", raw=data)

    # Helpers

    def _become_listening(self) -> None:
        if not self._transition_to(SessionState.LISTENING):
            return
        self._emit(ListeningEvent())
        self._resolve_ready(True)

    def _transition_to(self, target: SessionState) -> bool:
        if not can_transition(self._state, target):
            logger.debug("Ignoring transition %s -> %s", self._state.name, target.name)
            return False
        logger.info("State: %s -> %s", self._state.name, target.name)
        self._state = target
        return True

    async def _wait_until_listening(self) -> bool:
        if self._ready is None or self._ready.done():
            self._ready = asyncio.get_running_loop().create_future()
        return await self._ready

    def _resolve_ready(self, listening: bool) -> None:
        if self._ready is not None and not self._ready.done():
            self._ready.set_result(listening)

    async def _send(self, data: bytes | str) -> None:
        try:
            await self._connection.send(data)
        except RecognizeStreamError as exc:
            self._emit_error(exc)
            return
        logger.debug("Sent %d bytes", len(data))

    async def _send_closing_message(self) -> None:
        if self._closing_message_sent:
            return
        self._closing_message_sent = True
        logger.info("Sending closing message")
        await self._send(CLOSING_MESSAGE)

    async def _after_send(self) -> None:
        # Hold the producer back until the connection's send buffer drains.
        while self._connection.buffered_amount > self._options.high_water_mark:
            await self._connection.wait_drained(timeout=self._options.drain_poll_interval)
        await asyncio.sleep(0)

    def _emit(self, event: StreamEvent) -> None:
        if self._ended:
            logger.debug("Dropping %s event, stream already ended", event.kind.value)
            return
        self._events.put_nowait(event)

    def _emit_error(self, error: RecognizeStreamError) -> None:
        logger.warning("Recognition stream error: %s", error)
        self._emit(ErrorEvent(error=error))

    def _end_of_stream(self) -> None:
        if self._ended:
            return
        self._ended = True
        self._events.put_nowait(None)
