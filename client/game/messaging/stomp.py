"""
STOMP 1.2 frame encoder/decoder for the game channel.

The server exposes its broker through a SockJS endpoint whose raw WebSocket
transport carries one STOMP frame per text message. Bodies are JSON.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

STOMP_VERSION = "1.2"

# client frames
CONNECT = "CONNECT"
SUBSCRIBE = "SUBSCRIBE"
UNSUBSCRIBE = "UNSUBSCRIBE"
SEND = "SEND"
DISCONNECT = "DISCONNECT"

# server frames
CONNECTED = "CONNECTED"
MESSAGE = "MESSAGE"
RECEIPT = "RECEIPT"
ERROR = "ERROR"

_SERVER_COMMANDS = {CONNECTED, MESSAGE, RECEIPT, ERROR}
_CLIENT_COMMANDS = {CONNECT, SUBSCRIBE, UNSUBSCRIBE, SEND, DISCONNECT}

# CONNECT and CONNECTED headers are never escaped (STOMP 1.2, "Value Encoding")
_UNESCAPED_COMMANDS = {CONNECT, CONNECTED}

_NULL = "\x00"
_HEADER_END = re.compile(r"\r?\n\r?\n")

MAX_FRAME_LEN = 256 * 1024  # snapshots carry the full table, but never this much
MAX_HEADERS = 64

_ESCAPES = (("\\", "\\\\"), ("\r", "\\r"), ("\n", "\\n"), (":", "\\c"))
_UNESCAPES = {"\\\\": "\\", "\\r": "\r", "\\n": "\n", "\\c": ":"}


class FrameError(Exception):
    """Error raised when a STOMP frame cannot be parsed."""


@dataclass(frozen=True)
class Frame:
    command: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    def json_body(self) -> Any:  # noqa: ANN401
        """Decode the body as JSON. Raises FrameError if it is not valid JSON."""
        try:
            return json.loads(self.body)
        except json.JSONDecodeError as e:
            raise FrameError(f"frame body is not valid JSON: {e}") from e


def _escape(value: str) -> str:
    for raw, escaped in _ESCAPES:
        value = value.replace(raw, escaped)
    return value


def _unescape(value: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(value):
        if value[i] == "\\":
            pair = value[i : i + 2]
            if pair not in _UNESCAPES:
                raise FrameError(f"undefined escape sequence {pair!r} in header")
            out.append(_UNESCAPES[pair])
            i += 2
        else:
            out.append(value[i])
            i += 1
    return "".join(out)


def encode_frame(frame: Frame) -> str:
    """Serialize a frame to its text form, terminated by NUL."""
    if frame.command not in _CLIENT_COMMANDS:
        raise FrameError(f"unknown client command {frame.command!r}")
    escape = frame.command not in _UNESCAPED_COMMANDS
    lines = [frame.command]
    for key, value in frame.headers.items():
        if escape:
            key, value = _escape(key), _escape(value)
        lines.append(f"{key}:{value}")
    return "\n".join(lines) + "\n\n" + frame.body + _NULL


def decode_frame(data: str) -> Frame | None:
    """
    Parse one frame. Returns None for a heart-beat (EOL only).

    Raises FrameError if the frame is oversized, truncated or malformed.
    """
    if len(data) > MAX_FRAME_LEN:
        raise FrameError(f"frame too large: {len(data)} chars (max {MAX_FRAME_LEN})")

    data = data.lstrip("\r\n")
    if not data:
        return None

    parts = _HEADER_END.split(data, maxsplit=1)
    if len(parts) != 2:  # noqa: PLR2004
        raise FrameError("frame has no header terminator")
    head, rest = parts

    head_lines = head.replace("\r\n", "\n").split("\n")
    command = head_lines[0]
    if command not in _SERVER_COMMANDS:
        raise FrameError(f"unknown server command {command!r}")
    if len(head_lines) - 1 > MAX_HEADERS:
        raise FrameError(f"too many headers: {len(head_lines) - 1}")

    headers: dict[str, str] = {}
    unescape = command not in _UNESCAPED_COMMANDS
    for line in head_lines[1:]:
        key, colon, value = line.partition(":")
        if not colon:
            raise FrameError(f"malformed header line {line!r}")
        if unescape:
            key, value = _unescape(key), _unescape(value)
        # repeated headers: the first occurrence wins
        headers.setdefault(key, value)

    if "content-length" in headers:
        # content-length counts octets, not characters
        try:
            length = int(headers["content-length"])
        except ValueError as e:
            raise FrameError(f"invalid content-length {headers['content-length']!r}") from e
        raw = rest.encode("utf-8")
        if length < 0 or len(raw) < length + 1 or raw[length : length + 1] != b"\x00":
            raise FrameError("frame body does not match content-length")
        try:
            body = raw[:length].decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrameError(f"content-length splits a character: {e}") from e
    else:
        body, null, _ = rest.partition(_NULL)
        if not null:
            raise FrameError("frame is not NUL-terminated")

    return Frame(command=command, headers=headers, body=body)


def connect_frame(host: str) -> Frame:
    return Frame(
        command=CONNECT,
        headers={"accept-version": STOMP_VERSION, "host": host, "heart-beat": "0,0"},
    )


def subscribe_frame(subscription_id: str, destination: str) -> Frame:
    return Frame(command=SUBSCRIBE, headers={"id": subscription_id, "destination": destination, "ack": "auto"})


def unsubscribe_frame(subscription_id: str) -> Frame:
    return Frame(command=UNSUBSCRIBE, headers={"id": subscription_id})


def send_frame(destination: str, payload: dict[str, Any]) -> Frame:
    return Frame(
        command=SEND,
        headers={"destination": destination, "content-type": "application/json"},
        body=json.dumps(payload, ensure_ascii=False, separators=(",", ":")),
    )


def disconnect_frame() -> Frame:
    return Frame(command=DISCONNECT)
