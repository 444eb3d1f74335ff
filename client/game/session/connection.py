"""
Connection manager for the game channel.

Owns one STOMP session at a time over a TransportProtocol built by an
injectable factory. On open it performs the handshake, subscribes to the
room-wide and per-player topics, and only then asks the server for a full
sync. Any drop or failed handshake leads to a retry after a fixed delay,
with no cap, until close() is called. close() is terminal.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from game.logic.enums import ConnectionState
from game.messaging.stomp import (
    CONNECTED,
    ERROR,
    MESSAGE,
    Frame,
    FrameError,
    connect_frame,
    disconnect_frame,
    send_frame,
    subscribe_frame,
    unsubscribe_frame,
)
from game.messaging.types import SyncCommand, private_topic, public_topic

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Callable

    from game.messaging.protocol import TransportProtocol

    TransportFactory = Callable[[], TransportProtocol]
    SnapshotHandler = Callable[[Any], None]
    StateListener = Callable[[ConnectionState], None]

DEFAULT_RECONNECT_DELAY = 5.0
DEFAULT_HANDSHAKE_TIMEOUT = 10.0

PUBLIC_SUBSCRIPTION_ID = "sub-public"
PRIVATE_SUBSCRIPTION_ID = "sub-private"


class ConnectionManager:
    """Keeps the local player subscribed to their room while the session lasts."""

    def __init__(  # noqa: PLR0913
        self,
        transport_factory: TransportFactory,
        *,
        on_public: SnapshotHandler,
        on_private: SnapshotHandler,
        on_state_change: StateListener | None = None,
        host: str = "/",
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT,
    ) -> None:
        self._transport_factory = transport_factory
        self._on_public = on_public
        self._on_private = on_private
        self._on_state_change = on_state_change
        self._host = host
        self._reconnect_delay = reconnect_delay
        self._handshake_timeout = handshake_timeout

        self._state = ConnectionState.DISCONNECTED
        self._closed = False
        self._target: tuple[str, str] | None = None
        self._handlers: dict[str, SnapshotHandler] = {}

        self._transport: TransportProtocol | None = None
        self._outbox: asyncio.Queue[Frame] | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._shutdown_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.info("connection state changed", state=state.value)
        if self._on_state_change is not None:
            self._on_state_change(state)

    async def open(self, room_id: str, player_id: str) -> None:
        """
        Connect, subscribe to both room topics and request a sync.

        Never raises for transport failures; a failed attempt schedules a retry.
        """
        if self._closed:
            raise RuntimeError("connection manager is closed")
        self._target = (room_id, player_id)
        self._handlers = {
            PUBLIC_SUBSCRIPTION_ID: self._on_public,
            PRIVATE_SUBSCRIPTION_ID: self._on_private,
        }
        await self._connect()

    async def _handshake(self, transport: TransportProtocol) -> None:
        await transport.connect()
        await transport.send_frame(connect_frame(self._host))
        while True:
            frame = await transport.receive_frame()
            if frame is None:
                continue
            if frame.command == CONNECTED:
                return
            if frame.command == ERROR:
                raise ConnectionError(f"broker refused connection: {frame.headers.get('message', frame.body)}")
            logger.debug("ignoring frame before handshake", command=frame.command)

    async def _connect(self) -> None:
        if self._target is None:
            return
        room_id, player_id = self._target
        self._set_state(ConnectionState.CONNECTING)
        transport = self._transport_factory()
        try:
            await asyncio.wait_for(self._handshake(transport), timeout=self._handshake_timeout)
            await transport.send_frame(subscribe_frame(PUBLIC_SUBSCRIPTION_ID, public_topic(room_id)))
            await transport.send_frame(subscribe_frame(PRIVATE_SUBSCRIPTION_ID, private_topic(room_id, player_id)))
            sync = SyncCommand(player_id=player_id)
            await transport.send_frame(send_frame(sync.destination, sync.payload()))
        except (ConnectionError, FrameError, TimeoutError) as e:
            logger.warning("connection attempt failed", room_id=room_id, error=str(e))
            await transport.close()
            self._set_state(ConnectionState.DISCONNECTED)
            self._schedule_reconnect()
            return

        if self._closed:
            await transport.close()
            return

        self._transport = transport
        self._outbox = asyncio.Queue()
        self._writer_task = asyncio.create_task(self._write_loop(transport, self._outbox))
        self._reader_task = asyncio.create_task(self._read_loop(transport))
        self._set_state(ConnectionState.CONNECTED)
        logger.info("subscribed to room", room_id=room_id, player_id=player_id)

    def publish(self, destination: str, payload: dict[str, Any]) -> bool:
        """Queue one SEND frame. Returns False (and drops it) unless connected."""
        if self._state != ConnectionState.CONNECTED or self._outbox is None:
            logger.debug("dropping publish while not connected", destination=destination, state=self._state.value)
            return False
        self._outbox.put_nowait(send_frame(destination, payload))
        return True

    async def _write_loop(self, transport: TransportProtocol, outbox: asyncio.Queue[Frame]) -> None:
        try:
            while True:
                frame = await outbox.get()
                await transport.send_frame(frame)
        except asyncio.CancelledError:
            pass
        except ConnectionError as e:
            # the reader notices the drop and reconnects
            logger.warning("send failed", error=str(e))

    def _dispatch(self, frame: Frame) -> None:
        if frame.command == ERROR:
            logger.error("broker error", message=frame.headers.get("message"), body=frame.body)
            return
        if frame.command != MESSAGE:
            return
        subscription = frame.headers.get("subscription", "")
        handler = self._handlers.get(subscription)
        if handler is None:
            logger.debug("message for unknown subscription", subscription=subscription)
            return
        try:
            payload = frame.json_body()
        except FrameError as e:
            logger.warning("skipping undecodable message", subscription=subscription, error=str(e))
            return
        try:
            handler(payload)
        except Exception:
            logger.exception("snapshot handler failed", subscription=subscription)

    async def _read_loop(self, transport: TransportProtocol) -> None:
        try:
            while True:
                try:
                    frame = await transport.receive_frame()
                except FrameError as e:
                    logger.warning("skipping malformed frame", error=str(e))
                    continue
                if frame is not None:
                    self._dispatch(frame)
        except asyncio.CancelledError:
            return
        except ConnectionError as e:
            logger.warning("connection lost", error=str(e))

        await self._drop_link(transport)
        if not self._closed:
            self._set_state(ConnectionState.DISCONNECTED)
            self._schedule_reconnect()

    async def _drop_link(self, transport: TransportProtocol) -> None:
        if self._transport is transport:
            self._transport = None
            self._outbox = None
            if self._writer_task is not None:
                self._writer_task.cancel()
                self._writer_task = None
            self._reader_task = None
        await transport.close()

    def _schedule_reconnect(self) -> None:
        if self._closed or self._target is None:
            return
        logger.info("reconnecting later", delay=self._reconnect_delay)
        self._reconnect_task = asyncio.create_task(self._reconnect_after(self._reconnect_delay))

    async def _reconnect_after(self, delay: float) -> None:
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return
        self._reconnect_task = None
        await self._connect()

    def close(self) -> None:
        """
        Stop reconnecting and tear down the current link.

        Everything that affects state happens before this returns; only the
        polite UNSUBSCRIBE/DISCONNECT exchange runs in the background
        (await wait_closed() to join it). Safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        if self._reconnect_task is not None:
            self._reconnect_task.cancel()
            self._reconnect_task = None
        for task in (self._reader_task, self._writer_task):
            if task is not None:
                task.cancel()
        self._reader_task = None
        self._writer_task = None
        self._outbox = None
        self._handlers = {}
        transport, self._transport = self._transport, None
        self._set_state(ConnectionState.DISCONNECTED)
        if transport is not None:
            self._shutdown_task = asyncio.create_task(self._shutdown(transport))

    async def wait_closed(self) -> None:
        if self._shutdown_task is not None:
            await self._shutdown_task

    async def _shutdown(self, transport: TransportProtocol) -> None:
        try:
            for subscription_id in (PUBLIC_SUBSCRIPTION_ID, PRIVATE_SUBSCRIPTION_ID):
                await transport.send_frame(unsubscribe_frame(subscription_id))
            await transport.send_frame(disconnect_frame())
        except ConnectionError:
            logger.debug("link already gone during shutdown")
        finally:
            await transport.close()
