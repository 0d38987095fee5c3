from collections.abc import Callable
from enum import Enum, auto
from typing import Protocol


class ReadyState(Enum):
    CONNECTING = auto()
    OPEN = auto()
    CLOSING = auto()
    CLOSED = auto()


OpenHandler = Callable[[], None]
MessageHandler = Callable[[str | bytes], None]
ErrorHandler = Callable[[Exception], None]
CloseHandler = Callable[[int | None, str], None]


class ConnectionPort(Protocol):
    @property
    def ready_state(self) -> ReadyState: ...

    @property
    def buffered_amount(self) -> int: ...

    def bind(
        self,
        on_open: OpenHandler,
        on_message: MessageHandler,
        on_error: ErrorHandler,
        on_close: CloseHandler,
    ) -> None: ...

    def open(self) -> None: ...
    async def send(self, data: bytes | str) -> None: ...
    async def wait_drained(self, timeout: float) -> None: ...
    def close(self) -> None: ...


ConnectionFactory = Callable[[str, dict[str, str]], ConnectionPort]
