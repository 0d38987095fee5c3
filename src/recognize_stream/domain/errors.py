from typing import Any


class RecognizeStreamError(Exception):
    """Base for every error a session reports through its event stream.

    ``raw`` holds the offending inbound frame when there is one.
    """

    def __init__(self, message: str, raw: Any = None) -> None:
        super().__init__(message)
        self.raw = raw

    @property
    def message(self) -> str:
        return str(self)


class TransportConnectionError(RecognizeStreamError):
    pass


class ProtocolError(RecognizeStreamError):
    pass


class ServiceError(RecognizeStreamError):
    pass


class ConfigError(Exception):
    pass
