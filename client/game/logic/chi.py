"""
Chi (run) candidate search for a tile discarded by another player.

Only the first instance of each required rank, in hand order, is ever
considered. Tiles matching the gold designation never take part in a run,
and a gold discard cannot be claimed for chi at all.
"""

from collections.abc import Sequence

from game.logic.enums import ChiPosition
from game.logic.tiles import Tile, TileFace, can_form_run, find_first, is_gold
from game.logic.types import ChiCandidate

MIN_RANK = 1
MAX_RANK = 9


def _candidate(
    hand: Sequence[Tile],
    discarded: Tile,
    gold: TileFace | None,
    offsets: tuple[int, int],
    position: ChiPosition,
) -> ChiCandidate | None:
    first = find_first(hand, discarded.kind, discarded.rank + offsets[0])
    second = find_first(hand, discarded.kind, discarded.rank + offsets[1])
    if first is None or second is None:
        return None
    if is_gold(first, gold) or is_gold(second, gold):
        return None
    return ChiCandidate(first=first, second=second, position=position)


def find_chi_candidates(
    hand: Sequence[Tile],
    discarded: Tile,
    gold: TileFace | None = None,
) -> list[ChiCandidate]:
    """
    Return every run the hand can form with the discarded tile.

    Candidates come back ordered LOW, MID, HIGH.
    """
    if not can_form_run(discarded.kind):
        return []
    if is_gold(discarded, gold):
        return []

    rank = discarded.rank
    checks: list[tuple[tuple[int, int], ChiPosition]] = []
    if rank >= MIN_RANK + 2:
        checks.append(((-2, -1), ChiPosition.LOW))
    if MIN_RANK + 1 <= rank <= MAX_RANK - 1:
        checks.append(((-1, 1), ChiPosition.MID))
    if rank <= MAX_RANK - 2:
        checks.append(((1, 2), ChiPosition.HIGH))

    return [
        candidate
        for offsets, position in checks
        if (candidate := _candidate(hand, discarded, gold, offsets, position)) is not None
    ]
