"""Decoding of frames received from the recognition service.

The service only ever sends text frames holding a JSON object, for example::

    {"type": "connected"}
    {"TRANSCRIPT": "hello", "IS_FINAL": true, "CONFIDENCE": 0.9, "CHANNEL": 0}
    {"error": "bad audio"}

``decode_frame`` turns a raw frame into an ``InboundMessage`` or raises
``ProtocolError``. Dispatching the decoded message is the stream's job.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from recognize_stream.domain.errors import ProtocolError

CONNECTED_TYPE = "connected"


class InboundMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    error: Any = None
    type: str | None = None
    transcript: str | None = Field(default=None, alias="TRANSCRIPT")
    is_final: bool | None = Field(default=None, alias="IS_FINAL")
    confidence: float | None = Field(default=None, alias="CONFIDENCE")
    channel: int | str | None = Field(default=None, alias="CHANNEL")

    @property
    def has_transcript(self) -> bool:
        return bool(self.transcript)

    @property
    def is_connected(self) -> bool:
        return self.type == CONNECTED_TYPE

    def raw_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def decode_frame(data: str | bytes) -> InboundMessage:
    if not isinstance(data, str):
        raise ProtocolError("Unexpected binary data received from server", raw=data)

    try:
        payload = json.loads(data)
    except (ValueError, RecursionError) as exc:
        raise ProtocolError(f"Invalid JSON received from service: {exc}", raw=data) from exc

    if payload is None:
        raise ProtocolError("Empty message received from service", raw=data)

    if not isinstance(payload, dict):
        raise ProtocolError("Unrecognised message from server", raw=data)

    try:
        return InboundMessage.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(
            f"Invalid message received from service: {exc.error_count()} invalid field(s)",
            raw=data,
        ) from exc
