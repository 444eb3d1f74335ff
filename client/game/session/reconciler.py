"""
Fold public and private table snapshots into one client-side view.

Public snapshots are partial: omitted keys mean "unchanged". Private
snapshots are complete for the receiving player and replace the private half
wholesale; their fields are also merged into the public half. When both halves
carry a key, the private value wins, whichever channel delivered last. The
phase is the exception: the view tracks the most recently received valid
phase tag from either channel.

Known fields are validated on arrival. A value that fails validation is
treated as absent, so the previous value for that key stays in effect.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

import structlog
from pydantic import TypeAdapter, ValidationError

from game.logic.enums import Phase
from game.logic.tiles import GoldTile, Tile
from game.logic.types import CapabilityDescriptor, PlayerInfo, WinSummary

logger = structlog.get_logger()

PHASE_KEY = "phase"
HAND_KEY = "myHandTiles"
ACTIONS_KEY = "availableActions"
PLAYERS_KEY = "players"
GOLD_KEY = "goldTile"
DECISIONS_KEY = "continueDecisions"

_INT_FIELDS = ("currentPlayerIndex", "dealerIndex", "currentFlowerPlayerIndex", "remainingTiles", "lastDrawPlayerIndex")
_BOOL_FIELDS = ("replacingFlowers", "waitingOpenGold")
_STR_FIELDS = ("roomId", "lastWinPlayerId", "lastWinType", "lastActionPlayerId", "lastActionType")

_FIELD_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    PHASE_KEY: TypeAdapter(Phase),
    HAND_KEY: TypeAdapter(tuple[Tile, ...] | None),
    "myFlowerTiles": TypeAdapter(tuple[Tile, ...] | None),
    "discardedTiles": TypeAdapter(tuple[Tile, ...] | None),
    ACTIONS_KEY: TypeAdapter(CapabilityDescriptor | None),
    PLAYERS_KEY: TypeAdapter(tuple[PlayerInfo, ...] | None),
    GOLD_KEY: TypeAdapter(GoldTile | None),
    DECISIONS_KEY: TypeAdapter(dict[str, bool | None] | None),
    **{name: TypeAdapter(int | None) for name in _INT_FIELDS},
    **{name: TypeAdapter(bool | None) for name in _BOOL_FIELDS},
    **{name: TypeAdapter(str | None) for name in _STR_FIELDS},
}

_EMPTY_CAPABILITIES = CapabilityDescriptor()


@dataclass(frozen=True)
class PublicSnapshot:
    """Room-wide partial snapshot."""

    fields: Mapping[str, Any]


@dataclass(frozen=True)
class PrivateSnapshot:
    """Complete per-player snapshot."""

    fields: Mapping[str, Any]


Snapshot = PublicSnapshot | PrivateSnapshot


def _parse(key: str, value: Any) -> Any:  # noqa: ANN401
    return _FIELD_ADAPTERS[key].validate_python(value)


@dataclass(frozen=True)
class ReconciledView:
    """Immutable union of the latest public and private snapshots."""

    public: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    private: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    phase: Phase | None = None

    def get(self, key: str, default: Any = None) -> Any:  # noqa: ANN401
        """Raw value for key, private half first."""
        if key in self.private:
            return self.private[key]
        return self.public.get(key, default)

    def merged(self) -> dict[str, Any]:
        return {**self.public, **self.private}

    def _typed(self, key: str) -> Any:  # noqa: ANN401
        value = self.get(key)
        return None if value is None else _parse(key, value)

    def capabilities(self) -> CapabilityDescriptor:
        return self._typed(ACTIONS_KEY) or _EMPTY_CAPABILITIES

    def hand(self) -> tuple[Tile, ...]:
        return self._typed(HAND_KEY) or ()

    def players(self) -> tuple[PlayerInfo, ...]:
        return self._typed(PLAYERS_KEY) or ()

    def gold_tile(self) -> GoldTile | None:
        return self._typed(GOLD_KEY)

    def int_field(self, key: str) -> int | None:
        return self._typed(key)

    def flag(self, key: str) -> bool:
        return bool(self._typed(key))

    def text_field(self, key: str) -> str | None:
        return self._typed(key)

    def player_index(self, player_id: str | None) -> int | None:
        if player_id is None:
            return None
        for index, player in enumerate(self.players()):
            if player.player_id == player_id:
                return index
        return None

    def continue_decision(self, player_id: str | None) -> bool | None:
        """The player's continue/end decision; None while undecided."""
        decisions = self._typed(DECISIONS_KEY) or {}
        return decisions.get(player_id) if player_id is not None else None

    def last_win(self) -> WinSummary | None:
        winner_id = self.text_field("lastWinPlayerId")
        win_type = self.text_field("lastWinType")
        if winner_id is None or win_type is None:
            return None
        winner = next((p for p in self.players() if p.player_id == winner_id), None)
        return WinSummary(
            player_id=winner_id,
            player_name=winner.name if winner is not None else "Unknown",
            win_type=win_type,
        )


EMPTY_VIEW = ReconciledView()


def _accepted_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Drop non-string keys and known fields whose value fails validation."""
    accepted: dict[str, Any] = {}
    for key, value in fields.items():
        if not isinstance(key, str):
            continue
        if key in _FIELD_ADAPTERS:
            try:
                _parse(key, value)
            except ValidationError as e:
                logger.warning("ignoring malformed snapshot field", field=key, errors=e.error_count())
                continue
        accepted[key] = value
    return accepted


def fold_snapshot(view: ReconciledView, snapshot: Snapshot) -> ReconciledView:
    """Return the view that results from delivering snapshot on top of view."""
    fields = _accepted_fields(snapshot.fields)
    phase = _parse(PHASE_KEY, fields[PHASE_KEY]) if PHASE_KEY in fields else view.phase
    public = MappingProxyType({**view.public, **fields})

    if isinstance(snapshot, PublicSnapshot):
        return ReconciledView(public=public, private=view.private, phase=phase)

    # a malformed field in a complete snapshot keeps the previous private value
    private = dict(fields)
    for key in snapshot.fields:
        if key in _FIELD_ADAPTERS and key not in fields and key in view.private:
            private[key] = view.private[key]
    return ReconciledView(public=public, private=MappingProxyType(private), phase=phase)


class StateReconciler:
    """
    Owns the reconciled view for one seated player.

    The view is replaced wholesale on every inbound snapshot; other components
    read it through the accessors and never mutate it.
    """

    def __init__(self, player_id: str | None = None) -> None:
        self._player_id = player_id
        self._view = EMPTY_VIEW

    @property
    def view(self) -> ReconciledView:
        return self._view

    @property
    def player_id(self) -> str | None:
        return self._player_id

    def apply(self, snapshot: Snapshot) -> ReconciledView:
        self._view = fold_snapshot(self._view, snapshot)
        return self._view

    def on_public_snapshot(self, payload: object) -> ReconciledView:
        if not isinstance(payload, Mapping):
            logger.warning("ignoring non-object public snapshot", payload_type=type(payload).__name__)
            return self._view
        return self.apply(PublicSnapshot(fields=payload))

    def on_private_snapshot(self, payload: object) -> ReconciledView:
        if not isinstance(payload, Mapping):
            logger.warning("ignoring non-object private snapshot", payload_type=type(payload).__name__)
            return self._view
        return self.apply(PrivateSnapshot(fields=payload))

    def reset(self, player_id: str | None = None) -> None:
        """Drop the view entirely, optionally rebinding to another player."""
        self._view = EMPTY_VIEW
        self._player_id = player_id

    def current_phase(self) -> Phase | None:
        return self._view.phase

    def current_capabilities(self) -> CapabilityDescriptor:
        return self._view.capabilities()

    def my_hand(self) -> tuple[Tile, ...]:
        return self._view.hand()

    def my_index_among_players(self) -> int | None:
        return self._view.player_index(self._player_id)

    def gold_tile(self) -> GoldTile | None:
        return self._view.gold_tile()

    def ting_tiles(self) -> tuple[Tile, ...]:
        return self._view.capabilities().ting_tiles or ()

    def players(self) -> tuple[PlayerInfo, ...]:
        return self._view.players()

    def continue_decision(self) -> bool | None:
        return self._view.continue_decision(self._player_id)

    def last_win(self) -> WinSummary | None:
        return self._view.last_win()
