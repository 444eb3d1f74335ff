"""
Session context for one local player.

SessionManager owns the lifecycle of everything bound to a seat: the saved
session record, the connection, the reconciled view, the action resolver and
the result overlay. It is the only object that creates or tears those down.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from game.logic.actions import ActionResolver, ExposedActions
from game.logic.exceptions import BootstrapError, JoinInFlightError
from game.messaging.websocket import WebSocketTransport
from game.session.connection import DEFAULT_RECONNECT_DELAY, ConnectionManager
from game.session.models import SessionRecord, generate_player_id
from game.session.overlay import DEFAULT_OVERLAY_SECONDS, ResultOverlay
from game.session.reconciler import ReconciledView, StateReconciler
from game.session.session_store import SessionStore
from lobby.client import BootstrapClient
from shared.logging import bind_session_context, clear_session_context, setup_logging
from shared.storage import LocalKeyValueStorage

if TYPE_CHECKING:
    from typing import Any

    from game.logic.enums import ConnectionState
    from game.logic.types import WinSummary
    from game.messaging.protocol import TransportProtocol
    from game.messaging.types import PlayerCommand
    from game.settings import ClientSettings

logger = structlog.get_logger()

ViewListener = Callable[[ReconciledView], None]


class SessionManager:
    def __init__(  # noqa: PLR0913
        self,
        bootstrap: BootstrapClient,
        store: SessionStore,
        transport_factory: Callable[[], TransportProtocol],
        *,
        host: str = "/",
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        overlay_seconds: float = DEFAULT_OVERLAY_SECONDS,
    ) -> None:
        self._bootstrap = bootstrap
        self._store = store
        self._transport_factory = transport_factory
        self._host = host
        self._reconnect_delay = reconnect_delay

        self._reconciler = StateReconciler()
        self._resolver = ActionResolver(self._reconciler, self._publish_command)
        self._overlay = ResultOverlay(overlay_seconds)
        self._connection: ConnectionManager | None = None
        self._record: SessionRecord | None = None
        self._last_win: WinSummary | None = None
        self._join_in_flight = False
        self._view_listeners: list[ViewListener] = []
        self._state_listeners: list[Callable[[ConnectionState], None]] = []

    @property
    def record(self) -> SessionRecord | None:
        return self._record

    @property
    def view(self) -> ReconciledView:
        return self._reconciler.view

    @property
    def reconciler(self) -> StateReconciler:
        return self._reconciler

    @property
    def actions(self) -> ActionResolver:
        return self._resolver

    @property
    def overlay(self) -> ResultOverlay:
        return self._overlay

    @property
    def connection(self) -> ConnectionManager | None:
        return self._connection

    @property
    def connected(self) -> bool:
        return self._connection is not None and self._connection.connected

    def exposed_actions(self) -> ExposedActions:
        return self._resolver.expose()

    def add_view_listener(self, listener: ViewListener) -> None:
        self._view_listeners.append(listener)

    def add_state_listener(self, listener: Callable[[ConnectionState], None]) -> None:
        self._state_listeners.append(listener)

    def saved_session(self) -> SessionRecord | None:
        """The session a previous run left behind, if it is complete."""
        return self._store.load()

    def clear_saved_session(self) -> None:
        self._store.clear()

    async def join(self, player_name: str, room_id: str | None = None, rejoin_player_id: str | None = None) -> bool:
        """
        Join a room, creating one first when room_id is empty.

        rejoin_player_id is reused only together with a room id; otherwise a
        fresh player id is generated. Returns False on any bootstrap failure
        or refusal, leaving the current session untouched.
        """
        if self._join_in_flight:
            raise JoinInFlightError("a join is already in progress")
        name = player_name.strip()
        if not name:
            logger.warning("join rejected: empty player name")
            return False

        room_id = (room_id or "").strip() or None
        player_id = rejoin_player_id if rejoin_player_id and room_id else generate_player_id()

        self._join_in_flight = True
        try:
            if room_id is None:
                room_id = await self._bootstrap.create_room()
            result = await self._bootstrap.join_room(room_id, player_id, name)
        except BootstrapError as e:
            logger.warning("join failed", room_id=room_id, error=str(e))
            return False
        finally:
            self._join_in_flight = False

        if not result.success:
            logger.warning("join refused by server", room_id=room_id, player_id=player_id)
            return False

        record = SessionRecord(player_id=player_id, room_id=result.room_id or room_id, player_name=name)
        await self._enter(record)
        return True

    async def restore(self) -> bool:
        """Rejoin the saved session, if any. The saved record is kept on failure."""
        saved = self.saved_session()
        if saved is None:
            return False
        logger.info("restoring saved session", room_id=saved.room_id, player_id=saved.player_id)
        return await self.join(saved.player_name, saved.room_id, saved.player_id)

    async def _enter(self, record: SessionRecord) -> None:
        previous = self._teardown()
        if previous is not None:
            await previous.wait_closed()

        try:
            self._store.save(record)
        except OSError:
            logger.warning("session not persisted, it cannot be restored after a restart", exc_info=True)
        self._record = record
        self._reconciler.reset(record.player_id)
        self._last_win = None
        bind_session_context(room_id=record.room_id, player_id=record.player_id)
        logger.info("joined room", player_name=record.player_name)

        self._connection = ConnectionManager(
            self._transport_factory,
            on_public=self._on_public,
            on_private=self._on_private,
            on_state_change=self._on_state_change,
            host=self._host,
            reconnect_delay=self._reconnect_delay,
        )
        await self._connection.open(record.room_id, record.player_id)

    def _teardown(self) -> ConnectionManager | None:
        self._overlay.dismiss()
        connection, self._connection = self._connection, None
        if connection is not None:
            connection.close()
        self._reconciler.reset()
        self._record = None
        self._last_win = None
        return connection

    async def leave(self) -> None:
        """
        Leave the room and forget the saved session.

        All local state is gone before the first await; only the polite
        disconnect from the server is waited on afterwards.
        """
        connection = self._teardown()
        self._store.clear()
        clear_session_context()
        logger.info("left room")
        self._notify_view()
        if connection is not None:
            await connection.wait_closed()

    def _publish_command(self, command: PlayerCommand) -> bool:
        if self._connection is None:
            return False
        return self._connection.publish(command.destination, command.payload())

    def _on_public(self, payload: Any) -> None:  # noqa: ANN401
        self._reconciler.on_public_snapshot(payload)
        self._after_snapshot()

    def _on_private(self, payload: Any) -> None:  # noqa: ANN401
        self._reconciler.on_private_snapshot(payload)
        self._after_snapshot()

    def _after_snapshot(self) -> None:
        win = self._reconciler.view.last_win()
        if win is not None and win != self._last_win:
            self._overlay.show(win)
        self._last_win = win
        self._notify_view()

    def _notify_view(self) -> None:
        view = self._reconciler.view
        for listener in self._view_listeners:
            listener(view)

    def _on_state_change(self, state: ConnectionState) -> None:
        for listener in self._state_listeners:
            listener(state)


def create_session_manager(settings: ClientSettings) -> SessionManager:
    """Wire a SessionManager to the real server described by settings."""
    setup_logging(log_dir=settings.log_dir)
    storage = LocalKeyValueStorage(Path(settings.session_file).expanduser())
    return SessionManager(
        bootstrap=BootstrapClient(settings.server_url, timeout=settings.http_timeout_seconds),
        store=SessionStore(storage),
        transport_factory=lambda: WebSocketTransport(settings.ws_url),
        host=settings.host,
        reconnect_delay=settings.reconnect_delay_seconds,
        overlay_seconds=settings.result_overlay_seconds,
    )
