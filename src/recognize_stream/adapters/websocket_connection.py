import asyncio
import logging

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from recognize_stream.domain.errors import TransportConnectionError
from recognize_stream.ports.connection import (
    CloseHandler,
    ErrorHandler,
    MessageHandler,
    OpenHandler,
    ReadyState,
)

logger = logging.getLogger(__name__)

ABNORMAL_CLOSURE = 1006
INTERNAL_ERROR = 1011
MAX_MESSAGE_SIZE = 2**22


def _ignore(*_args) -> None:
    pass


class WebsocketConnection:
    """Persistent websocket to the recognition service.

    Callbacks mirror a browser WebSocket: ``on_open`` once connected,
    ``on_message`` per frame (``str`` for text, ``bytes`` for binary),
    ``on_error`` on transport failure and exactly one ``on_close`` at the end.
    """

    def __init__(self, url: str, headers: dict[str, str] | None = None) -> None:
        self._url = url
        self._headers = dict(headers or {})
        self._ws: ClientConnection | None = None
        self._task: asyncio.Task | None = None
        self._state = ReadyState.CONNECTING
        self._close_requested = False
        self._close_task: asyncio.Task | None = None

        self._on_open: OpenHandler = _ignore
        self._on_message: MessageHandler = _ignore
        self._on_error: ErrorHandler = _ignore
        self._on_close: CloseHandler = _ignore

    @property
    def ready_state(self) -> ReadyState:
        return self._state

    @property
    def buffered_amount(self) -> int:
        if self._ws is None or self._ws.transport is None:
            return 0
        return self._ws.transport.get_write_buffer_size()

    def bind(
        self,
        on_open: OpenHandler,
        on_message: MessageHandler,
        on_error: ErrorHandler,
        on_close: CloseHandler,
    ) -> None:
        self._on_open = on_open
        self._on_message = on_message
        self._on_error = on_error
        self._on_close = on_close

    def open(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run())

    async def send(self, data: bytes | str) -> None:
        if self._ws is None or self._state is not ReadyState.OPEN:
            raise TransportConnectionError(f"Cannot send while connection is {self._state.name}")
        try:
            await self._ws.send(data)
        except ConnectionClosed as exc:
            raise TransportConnectionError(f"Connection closed while sending: {exc}") from exc

    async def wait_drained(self, timeout: float) -> None:
        ws = self._ws
        if ws is None or self.buffered_amount == 0:
            return
        if not ws.paused:
            await asyncio.sleep(timeout)
            return
        try:
            await asyncio.wait_for(ws.drain(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    def close(self) -> None:
        if self._state in (ReadyState.CLOSING, ReadyState.CLOSED):
            return
        self._close_requested = True
        self._state = ReadyState.CLOSING
        if self._ws is not None:
            self._close_task = asyncio.create_task(self._ws.close())

    async def _run(self) -> None:
        try:
            self._ws = await connect(
                self._url,
                additional_headers=self._headers,
                compression=None,
                ping_interval=None,
                max_size=MAX_MESSAGE_SIZE,
            )
        except Exception as exc:
            logger.warning("Connection to %s failed: %s", self._url, exc)
            self._state = ReadyState.CLOSED
            self._on_error(exc)
            self._on_close(ABNORMAL_CLOSURE, str(exc))
            return

        if self._close_requested:
            await self._ws.close()
            self._closed()
            return

        self._state = ReadyState.OPEN
        logger.debug("Connected to %s", self._url)
        self._on_open()

        try:
            async for message in self._ws:
                self._deliver(message)
        except ConnectionClosedError as exc:
            logger.warning("Connection lost: %s", exc)
            self._on_error(exc)
        except Exception as exc:
            logger.exception("Receive loop failed")
            self._on_error(exc)
            await self._ws.close(INTERNAL_ERROR, "receive loop failed")
        finally:
            self._closed()

    def _deliver(self, message: str | bytes) -> None:
        # A failing handler loses its frame, not the connection.
        try:
            self._on_message(message)
        except Exception:
            logger.exception("Message handler failed, frame dropped")

    def _closed(self) -> None:
        self._state = ReadyState.CLOSED
        code = self._ws.close_code if self._ws is not None else None
        reason = (self._ws.close_reason if self._ws is not None else None) or ""
        self._on_close(code if code is not None else ABNORMAL_CLOSURE, reason)
