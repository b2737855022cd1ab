"""Syslog over UDP delivery of metric lines.

Relays forward plaintext metric lines wrapped in syslog frames. Both RFC 5424
and RFC 3164 headers are understood; frames without a ``<PRI>`` header are
taken verbatim as the message. The hostname from the header becomes the
reporter identity, the local receipt time becomes the record date.
"""

from __future__ import annotations
import asyncio
import logging
import re
from datetime import UTC, datetime
from metric_cache.models import RawRecord


logger = logging.getLogger(__name__)

_PRI_RE = re.compile(r"^<(\d{1,3})>")
_RFC3164_RE = re.compile(
    r"^(?P<timestamp>[A-Z][a-z]{2} [ \d]\d \d{2}:\d{2}:\d{2}) "
    r"(?P<hostname>\S+) ?(?P<content>.*)$",
    re.DOTALL,
)
_TAG_RE = re.compile(r"^[^\s:\[\]]+(?:\[\d+\])?: ?")
_NIL = "-"
_BOM = "\ufeff"


def _skip_structured_data(rest: str) -> str:
    """Return ``rest`` with the leading RFC 5424 structured data removed."""
    if rest.startswith(_NIL):
        return rest[1:]
    index = 0
    while index < len(rest) and rest[index] == "[":
        in_quotes = False
        index += 1
        while index < len(rest):
            char = rest[index]
            if char == "\\" and in_quotes:
                index += 2
                continue
            if char == '"':
                in_quotes = not in_quotes
            elif char == "]" and not in_quotes:
                index += 1
                break
            index += 1
    return rest[index:]


def _parse_rfc5424(body: str) -> tuple[str, str]:
    # VERSION SP TIMESTAMP SP HOSTNAME SP APP-NAME SP PROCID SP MSGID SP SD [SP MSG]
    parts = body.split(" ", 6)
    if len(parts) < 7:
        hostname = parts[2] if len(parts) > 2 else _NIL
        return ("" if hostname == _NIL else hostname), ""
    hostname = parts[2]
    message = _skip_structured_data(parts[6])
    if message.startswith(" "):
        message = message[1:]
    message = message.removeprefix(_BOM)
    return ("" if hostname == _NIL else hostname), message


def _parse_rfc3164(body: str) -> tuple[str, str]:
    match = _RFC3164_RE.match(body)
    if match is None:
        return "", body
    content = _TAG_RE.sub("", match.group("content"), count=1)
    hostname = match.group("hostname")
    return ("" if hostname == _NIL else hostname), content


def parse_syslog_frame(data: bytes | str, *, received_at: datetime) -> RawRecord:
    """Split a syslog frame into the reporter identity and the message."""
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    text = text.rstrip("\r\n\x00")
    match = _PRI_RE.match(text)
    if match is None:
        return RawRecord(message=text, reporter="", received_at=received_at)
    body = text[match.end() :]
    if body.startswith("1 "):
        reporter, message = _parse_rfc5424(body)
    else:
        reporter, message = _parse_rfc3164(body)
    return RawRecord(message=message, reporter=reporter, received_at=received_at)


class SyslogProtocol(asyncio.DatagramProtocol):
    """Datagram protocol that enqueues one raw record per received line."""

    def __init__(self, queue: asyncio.Queue[RawRecord | None]) -> None:
        """Deliver parsed frames into ``queue``."""
        self._queue = queue
        self.dropped = 0

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        """Parse every non-empty line of the datagram and enqueue it."""
        received_at = datetime.now(tz=UTC)
        for line in data.splitlines():
            if not line.strip():
                continue
            record = parse_syslog_frame(line, received_at=received_at)
            try:
                self._queue.put_nowait(record)
            except asyncio.QueueFull:
                self.dropped += 1
                logger.warning(
                    "Ingestion queue full, dropping line from %s", addr[0]
                )

    def error_received(self, exc: Exception) -> None:
        """Log socket level errors without stopping the endpoint."""
        logger.warning("Syslog endpoint error: %s", exc)


async def open_syslog_endpoint(
    queue: asyncio.Queue[RawRecord | None], host: str, port: int
) -> tuple[asyncio.DatagramTransport, SyslogProtocol]:
    """Bind a UDP syslog endpoint feeding ``queue``."""
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: SyslogProtocol(queue), local_addr=(host, port)
    )
    logger.info("Listening for syslog datagrams on %s:%d", host, port)
    return transport, protocol


__all__ = ["SyslogProtocol", "open_syslog_endpoint", "parse_syslog_frame"]
