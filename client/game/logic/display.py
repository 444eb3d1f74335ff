"""
Human-readable labels: tile names, win labels and the table status line.
"""

from collections.abc import Sequence

from game.logic.enums import Phase, TileKind
from game.logic.tiles import TileFace
from game.logic.types import PlayerInfo

_SUIT_NAMES = {TileKind.WAN: "万", TileKind.TIAO: "条", TileKind.BING: "饼"}
_WIND_NAMES = ("东", "南", "西", "北")
_DRAGON_NAMES = ("中", "白", "发")
_FLOWER_NAMES = ("春", "夏", "秋", "冬", "梅", "兰", "竹", "菊")

DEFAULT_WIN_LABEL = "胡"
SELF_DRAW_LABEL = "自摸"


def format_tile(tile: TileFace | None) -> str:
    """Return the display name of a tile, or '-' when there is none."""
    if tile is None:
        return "-"
    if tile.kind in _SUIT_NAMES:
        return f"{tile.rank}{_SUIT_NAMES[tile.kind]}"
    if tile.kind == TileKind.WIND:
        return _WIND_NAMES[tile.rank - 1]
    if tile.kind == TileKind.DRAGON:
        return _DRAGON_NAMES[tile.rank - 1]
    return _FLOWER_NAMES[tile.rank - 1]


def normalize_win_label(win_type: str | None) -> str:
    """Collapse the server's win description to the label shown in the result overlay."""
    if not win_type:
        return DEFAULT_WIN_LABEL
    if SELF_DRAW_LABEL in win_type:
        return SELF_DRAW_LABEL
    return win_type


_PHASE_STATUS = {
    Phase.WAITING: "Waiting for players to join...",
    Phase.DEALING: "Dealing...",
    Phase.REPLACING_FLOWERS: "Replacing flowers...",
    Phase.OPENING_GOLD: "Opening gold...",
    Phase.HAND_FINISHED: "Hand finished",
    Phase.FINISHED: "Game Over",
    Phase.CONFIRM_CONTINUE: "Waiting for confirmation to continue...",
}


def status_text(
    phase: Phase | None,
    players: Sequence[PlayerInfo],
    current_player_index: int | None,
    player_id: str | None,
) -> str:
    """Return the one-line table status for the given phase and turn."""
    if phase is None:
        return ""
    if phase != Phase.PLAYING:
        return _PHASE_STATUS[phase]
    if current_player_index is None or not (0 <= current_player_index < len(players)):
        return ""
    current = players[current_player_index]
    if current.player_id == player_id:
        return "It's YOUR TURN!"
    return f"It's [{current.name}] turn"
