import re
from unittest.mock import MagicMock

import pytest

from game.session.models import SessionRecord, generate_player_id
from game.session.session_store import PLAYER_ID_KEY, PLAYER_NAME_KEY, ROOM_ID_KEY, SessionStore
from shared.storage import LocalKeyValueStorage, MemoryKeyValueStorage

RECORD = SessionRecord(player_id="PLAYER_abc123xyz", room_id="42", player_name="Alice")


class TestSessionStore:
    def test_save_then_load_round_trip(self):
        store = SessionStore(MemoryKeyValueStorage())
        store.save(RECORD)
        assert store.load() == RECORD

    def test_save_clear_load_yields_nothing(self):
        store = SessionStore(MemoryKeyValueStorage())
        store.save(RECORD)
        store.clear()
        assert store.load() is None

    def test_clear_is_idempotent(self):
        store = SessionStore(MemoryKeyValueStorage())
        store.clear()
        store.clear()
        assert store.load() is None

    def test_writes_three_independent_entries(self):
        storage = MemoryKeyValueStorage()
        SessionStore(storage).save(RECORD)
        assert storage.get_item(PLAYER_ID_KEY) == "PLAYER_abc123xyz"
        assert storage.get_item(ROOM_ID_KEY) == "42"
        assert storage.get_item(PLAYER_NAME_KEY) == "Alice"

    @pytest.mark.parametrize("missing", [PLAYER_ID_KEY, ROOM_ID_KEY, PLAYER_NAME_KEY])
    def test_any_missing_entry_means_no_session(self, missing):
        storage = MemoryKeyValueStorage()
        store = SessionStore(storage)
        store.save(RECORD)
        storage.remove_item(missing)
        assert store.load() is None

    def test_empty_entry_means_no_session(self):
        storage = MemoryKeyValueStorage()
        store = SessionStore(storage)
        store.save(RECORD)
        storage.set_item(ROOM_ID_KEY, "")
        assert store.load() is None

    @pytest.mark.parametrize(
        "record",
        [
            SessionRecord(player_id="", room_id="42", player_name="Alice"),
            SessionRecord(player_id="p", room_id="", player_name="Alice"),
            SessionRecord(player_id="p", room_id="42", player_name=""),
        ],
    )
    def test_save_rejects_empty_fields(self, record):
        storage = MemoryKeyValueStorage()
        with pytest.raises(ValueError, match="non-empty"):
            SessionStore(storage).save(record)
        assert storage.get_item(PLAYER_ID_KEY) is None

    def test_load_never_raises_on_corrupt_storage(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{broken", encoding="utf-8")
        assert SessionStore(LocalKeyValueStorage(path)).load() is None

    def test_load_never_raises_on_os_error(self):
        storage = MagicMock()
        storage.get_item.side_effect = OSError("permission denied")
        assert SessionStore(storage).load() is None

    def test_persists_across_store_instances(self, tmp_path):
        path = tmp_path / "session.json"
        SessionStore(LocalKeyValueStorage(path)).save(RECORD)
        assert SessionStore(LocalKeyValueStorage(path)).load() == RECORD


class TestGeneratePlayerId:
    def test_format(self):
        assert re.fullmatch(r"PLAYER_[a-z0-9]{9}", generate_player_id())

    def test_ids_differ(self):
        assert len({generate_player_id() for _ in range(50)}) == 50
