"""
Framing and decoding of AzCopy's JSON output stream.

AzCopy writes one JSON envelope per line. The envelope's ``MessageContent`` is
usually itself a JSON document encoded as a string, but freeform text shows up
under the same envelope, so content that fails the second decode is kept as a
plain string. Nothing here raises: a line that cannot be decoded is surfaced
as an ``ErrorMessage`` carrying the raw text, because dropping a line could
leave the job state out of sync with the process.
"""

import asyncio
import json
from typing import Any, AsyncIterator, List, Union

import structlog
from pydantic import TypeAdapter, ValidationError

from ..models.messages import AzCopyMessage, ErrorMessage

logger = structlog.get_logger(__name__)

_message_adapter: TypeAdapter = TypeAdapter(AzCopyMessage)

READ_CHUNK_SIZE = 64 * 1024


class MessageFramer:
    """Splits a byte stream into newline-terminated records."""

    def __init__(self):
        # Pieces of the current unterminated line
        self._pending: List[bytes] = []

    def feed(self, chunk: bytes) -> List[bytes]:
        """Add a chunk and return every complete, non-blank line it finishes."""
        *lines, tail = chunk.split(b"\n")
        if lines:
            lines[0] = b"".join(self._pending) + lines[0]
            self._pending = []
        if tail:
            self._pending.append(tail)
        return [line.rstrip(b"\r") for line in lines if line.strip()]

    def flush(self) -> List[bytes]:
        """Return the trailing partial line, if any, once the stream has ended."""
        remainder = b"".join(self._pending)
        self._pending = []
        if remainder.strip():
            return [remainder.rstrip(b"\r")]
        return []


def _decode_content(content: Any) -> Any:
    if not isinstance(content, str):
        return content
    try:
        return json.loads(content)
    except ValueError:
        # Freeform content under the same envelope
        return content


def parse_message_line(line: Union[bytes, str]) -> AzCopyMessage:
    """Decode a single line of AzCopy output into a typed message."""
    text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
    text = text.strip()

    try:
        envelope = json.loads(text)
    except ValueError:
        envelope = None

    if not isinstance(envelope, dict):
        logger.warning("ProtocolDecodeAnomaly", reason="envelope is not a JSON object", line=text[:500])
        return ErrorMessage(content=text)

    raw_timestamp = envelope.get("TimeStamp")
    timestamp = raw_timestamp if isinstance(raw_timestamp, str) else None

    decoded = dict(envelope)
    decoded["MessageContent"] = _decode_content(envelope.get("MessageContent"))
    decoded["TimeStamp"] = timestamp

    try:
        return _message_adapter.validate_python(decoded)
    except ValidationError as e:
        logger.warning(
            "ProtocolDecodeAnomaly",
            reason="message did not match its type",
            message_type=envelope.get("MessageType"),
            error=str(e),
        )
        return ErrorMessage(timestamp=timestamp, content=envelope.get("MessageContent"))


async def iter_messages(stream: asyncio.StreamReader, chunk_size: int = READ_CHUNK_SIZE) -> AsyncIterator[AzCopyMessage]:
    """Yield messages from ``stream`` in order until EOF."""
    framer = MessageFramer()
    while True:
        chunk = await stream.read(chunk_size)
        if not chunk:
            break
        for line in framer.feed(chunk):
            yield parse_message_line(line)

    for line in framer.flush():
        yield parse_message_line(line)
