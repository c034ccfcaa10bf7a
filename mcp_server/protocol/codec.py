"""Envelope decoding, validation, and serialization.

Inbound frames may arrive as text or bytes. Validation rules:

    - Must be valid JSON                     -> 102 invalid format
    - Must be a JSON object                  -> 102 invalid format
    - Must carry ``type``                    -> 100 invalid message
    - ``type`` must be a non-empty string    -> 101 invalid type
    - ``data``, when present, must be object -> 102 invalid format

Unknown types are accepted (plugins and handlers may claim them). A version
that differs from the server's is logged and accepted so newer clients keep
working against older servers.
"""

from __future__ import annotations

import logging
from typing import Any

import orjson

from .envelope import Envelope
from ..helpers.time import ClockFn, now_ms
from ..errors import MalformedEnvelopeError, SerializationError
from ..config.protocol import (
    SYSTEM_ERROR,
    SYSTEM_PREFIX,
    PROTOCOL_VERSION,
    ERROR_INVALID_TYPE,
    ERROR_INVALID_FORMAT,
    ERROR_INVALID_MESSAGE,
)

logger = logging.getLogger(__name__)


class ProtocolCodec:
    """Decode, validate, build and serialize envelopes.

    Attributes:
        version: Protocol version stamped on outbound envelopes.
    """

    def __init__(self, version: str = PROTOCOL_VERSION, *, now_fn: ClockFn | None = None) -> None:
        self.version = version
        self._now = now_fn or now_ms

    def decode(self, raw: bytes | bytearray | memoryview | str) -> Envelope:
        """Parse raw frame data into an Envelope.

        Raises:
            MalformedEnvelopeError: If the frame is not a valid envelope.
        """
        if isinstance(raw, str):
            text = raw.strip()
        else:
            text = bytes(raw).strip()
        if not text:
            raise MalformedEnvelopeError("Empty message.", code=ERROR_INVALID_FORMAT)

        try:
            document = orjson.loads(text)
        except orjson.JSONDecodeError as exc:
            raise MalformedEnvelopeError("Message must be valid JSON.", code=ERROR_INVALID_FORMAT) from exc

        if not isinstance(document, dict):
            raise MalformedEnvelopeError("Message must be a JSON object.", code=ERROR_INVALID_FORMAT)

        if "type" not in document or document["type"] is None:
            raise MalformedEnvelopeError("Message type is required.", code=ERROR_INVALID_MESSAGE)

        msg_type = document["type"]
        if not isinstance(msg_type, str) or not msg_type.strip():
            raise MalformedEnvelopeError("Message type must be a non-empty string.", code=ERROR_INVALID_TYPE)

        data = document.get("data")
        if data is None:
            data = {}
        elif not isinstance(data, dict):
            raise MalformedEnvelopeError("'data' must be a JSON object.", code=ERROR_INVALID_FORMAT)

        version = document.get("version")
        if version is None:
            version = self.version
        else:
            version = str(version)
            if version != self.version:
                logger.warning("protocol version mismatch: got %s, server speaks %s", version, self.version)

        timestamp = document.get("timestamp")
        if not isinstance(timestamp, int) or isinstance(timestamp, bool):
            timestamp = self._now()

        return Envelope(type=msg_type.strip(), version=version, timestamp=timestamp, data=data)

    def encode(self, envelope: Envelope) -> bytes:
        """Serialize an envelope to UTF-8 JSON bytes.

        Raises:
            SerializationError: If the payload holds values JSON cannot express.
        """
        try:
            return orjson.dumps(envelope.to_dict())
        except (orjson.JSONEncodeError, TypeError) as exc:
            raise SerializationError(f"cannot serialize {envelope.type}: {exc}") from exc

    def create_message(self, msg_type: str, data: dict[str, Any] | None = None) -> Envelope:
        """Build a fresh envelope stamped with the current time."""
        return Envelope(type=msg_type, version=self.version, timestamp=self._now(), data=dict(data or {}))

    def create_error(
        self,
        code: int,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> Envelope:
        """Build a ``system.error`` envelope."""
        return self.create_message(
            SYSTEM_ERROR,
            {"code": code, "message": message, "details": dict(details or {})},
        )


__all__ = ["ProtocolCodec"]
