"""
Tile value types and suit helpers.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

from game.logic.enums import TileKind

NUMERIC_KINDS = frozenset({TileKind.WAN, TileKind.TIAO, TileKind.BING})

# honors and flowers never form runs
NON_RUN_KINDS = frozenset({TileKind.WIND, TileKind.DRAGON, TileKind.FLOWER})

RANK_RANGES: dict[TileKind, tuple[int, int]] = {
    TileKind.WAN: (1, 9),
    TileKind.TIAO: (1, 9),
    TileKind.BING: (1, 9),
    TileKind.WIND: (1, 4),
    TileKind.DRAGON: (1, 3),
    TileKind.FLOWER: (1, 8),
}


def validate_rank(kind: TileKind, rank: int) -> None:
    """Raise ValueError if rank lies outside the valid range for kind."""
    low, high = RANK_RANGES[kind]
    if not (low <= rank <= high):
        raise ValueError(f"rank for {kind.value} must be in [{low}, {high}], got {rank}")


class TileFace(BaseModel):
    """A tile identity without an instance: kind and rank only."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: TileKind = Field(alias="type")
    rank: int = Field(alias="value")

    @model_validator(mode="after")
    def _check_rank(self) -> "TileFace":
        validate_rank(self.kind, self.rank)
        return self

    def matches(self, other: "TileFace") -> bool:
        """Same kind and rank, ignoring any instance id."""
        return self.kind == other.kind and self.rank == other.rank


class GoldTile(TileFace):
    """The per-hand wildcard designation broadcast by the server."""


class Tile(TileFace):
    """A concrete tile instance; instance_id is unique within a hand."""

    instance_id: str = Field(alias="id", min_length=1)


def is_gold(tile: TileFace, gold: TileFace | None) -> bool:
    return gold is not None and tile.matches(gold)


def can_form_run(kind: TileKind) -> bool:
    return kind in NUMERIC_KINDS


def find_first(hand: list[Tile] | tuple[Tile, ...], kind: TileKind, rank: int) -> Tile | None:
    """Return the first instance in hand order with the given kind and rank."""
    for tile in hand:
        if tile.kind == kind and tile.rank == rank:
            return tile
    return None


def find_by_id(hand: list[Tile] | tuple[Tile, ...], instance_id: str) -> Tile | None:
    for tile in hand:
        if tile.instance_id == instance_id:
            return tile
    return None
