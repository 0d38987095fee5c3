from dataclasses import dataclass, field
from enum import Enum
from time import time
from typing import Any, ClassVar

from recognize_stream.domain.errors import RecognizeStreamError


class EventKind(Enum):
    CONNECT = "connect"
    LISTENING = "listening"
    STOPPING = "stopping"
    RESULTS = "results"
    DATA = "data"
    CLOSE = "close"
    ERROR = "error"


@dataclass(frozen=True)
class FinalResult:
    value: str
    confidence: float | None = None
    channel: Any = None


@dataclass(frozen=True)
class StreamEvent:
    kind: ClassVar[EventKind]

    timestamp: float = field(default_factory=time, kw_only=True)


@dataclass(frozen=True)
class ConnectEvent(StreamEvent):
    kind: ClassVar[EventKind] = EventKind.CONNECT


@dataclass(frozen=True)
class ListeningEvent(StreamEvent):
    kind: ClassVar[EventKind] = EventKind.LISTENING


@dataclass(frozen=True)
class StoppingEvent(StreamEvent):
    kind: ClassVar[EventKind] = EventKind.STOPPING


@dataclass(frozen=True)
class ResultsEvent(StreamEvent):
    kind: ClassVar[EventKind] = EventKind.RESULTS

    transcript: str = ""
    is_final: bool = False
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DataEvent(StreamEvent):
    kind: ClassVar[EventKind] = EventKind.DATA

    # Currently always one entry, but the service may send several per final.
    results: tuple[FinalResult, ...] = ()


@dataclass(frozen=True)
class CloseEvent(StreamEvent):
    kind: ClassVar[EventKind] = EventKind.CLOSE

    code: int | None = None
    reason: str = ""


@dataclass(frozen=True)
class ErrorEvent(StreamEvent):
    kind: ClassVar[EventKind] = EventKind.ERROR

    error: RecognizeStreamError | None = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error else ""
