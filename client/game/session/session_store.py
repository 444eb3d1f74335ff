import structlog

from game.session.models import SessionRecord
from shared.storage import KeyValueStorage

logger = structlog.get_logger()

PLAYER_ID_KEY = "mahjong_player_id"
ROOM_ID_KEY = "mahjong_room_id"
PLAYER_NAME_KEY = "mahjong_player_name"

_SESSION_KEYS = (PLAYER_ID_KEY, ROOM_ID_KEY, PLAYER_NAME_KEY)


class SessionStore:
    """Durable store for the local player's identity triple.

    Each field is an independent storage entry. A session is restorable only
    when all three entries are present and non-empty. The store does not
    interpret the values.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    def save(self, record: SessionRecord) -> None:
        """Write the three entries. Raise ValueError if any field is empty."""
        values = (record.player_id, record.room_id, record.player_name)
        if not all(values):
            raise ValueError("session record fields must be non-empty strings")
        for key, value in zip(_SESSION_KEYS, values, strict=True):
            self._storage.set_item(key, value)

    def load(self) -> SessionRecord | None:
        """Return the stored record, or None if any entry is missing or unreadable."""
        try:
            player_id, room_id, player_name = (self._storage.get_item(key) for key in _SESSION_KEYS)
        except (OSError, ValueError):
            logger.warning("session storage unreadable, treating as no session", exc_info=True)
            return None
        if not (player_id and room_id and player_name):
            return None
        return SessionRecord(player_id=player_id, room_id=room_id, player_name=player_name)

    def clear(self) -> None:
        """Remove all three entries. Removing absent entries is a no-op."""
        for key in _SESSION_KEYS:
            try:
                self._storage.remove_item(key)
            except OSError:
                logger.warning("failed to remove session entry", key=key, exc_info=True)
