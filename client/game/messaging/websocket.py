import contextlib

import structlog
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from game.messaging.protocol import TransportProtocol

logger = structlog.get_logger()

_OPEN_TIMEOUT_SECONDS = 10.0


class WebSocketTransport(TransportProtocol):
    def __init__(self, url: str, open_timeout: float = _OPEN_TIMEOUT_SECONDS) -> None:
        self._url = url
        self._open_timeout = open_timeout
        self._websocket: ClientConnection | None = None

    @property
    def url(self) -> str:
        return self._url

    async def connect(self) -> None:
        try:
            self._websocket = await connect(self._url, open_timeout=self._open_timeout)
        except (OSError, TimeoutError, InvalidHandshake, InvalidURI) as e:
            raise ConnectionError(f"WebSocket connect to {self._url} failed: {e}") from e
        logger.debug("websocket opened", url=self._url)

    def _require_open(self) -> ClientConnection:
        if self._websocket is None:
            raise ConnectionError("WebSocket is not connected")
        return self._websocket

    async def send_text(self, data: str) -> None:
        websocket = self._require_open()
        try:
            await websocket.send(data)
        except ConnectionClosed:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_text(self) -> str:
        websocket = self._require_open()
        try:
            message = await websocket.recv()
        except ConnectionClosed:
            raise ConnectionError("WebSocket already disconnected") from None
        if isinstance(message, bytes):
            return message.decode("utf-8", errors="replace")
        return message

    async def close(self) -> None:
        websocket, self._websocket = self._websocket, None
        if websocket is not None:
            with contextlib.suppress(ConnectionClosed, OSError):
                await websocket.close()
