"""
Pydantic models for data that crosses component boundaries.

Contains the capability descriptor parsed from private snapshots, the public
player summary, chi candidates and the last-win summary used by the result
overlay.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from game.logic.enums import ChiPosition
from game.logic.tiles import Tile


class CapabilityDescriptor(BaseModel):
    """Server-declared actions currently open to the local player.

    Flags are tri-state: None means the server did not mention the
    capability, which is distinct from an explicit False.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    can_chi: bool | None = Field(default=None, alias="canChi")
    can_peng: bool | None = Field(default=None, alias="canPeng")
    can_gang: bool | None = Field(default=None, alias="canGang")
    can_an_gang: bool | None = Field(default=None, alias="canAnGang")
    can_hu: bool | None = Field(default=None, alias="canHu")
    can_san_jin_dao: bool | None = Field(default=None, alias="canSanJinDao")
    discarded_tile: Tile | None = Field(default=None, alias="discardedTile")
    an_gang_tiles: tuple[Tile, ...] | None = Field(default=None, alias="anGangTiles")
    ting_tiles: tuple[Tile, ...] | None = Field(default=None, alias="tingTiles")

    @property
    def from_discard(self) -> bool:
        return self.discarded_tile is not None

    @property
    def has_self_action(self) -> bool:
        """Hu on self-draw, concealed kong, or three-gold self-win."""
        return bool(self.can_hu or self.can_an_gang or self.can_san_jin_dao)

    @property
    def has_discard_reaction(self) -> bool:
        return bool(self.can_chi or self.can_peng or self.can_gang or self.can_hu)


class PlayerInfo(BaseModel):
    """Public summary of one seated player."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    player_id: str = Field(alias="id")
    name: str = ""
    position: int | None = None
    hand_size: int | None = Field(default=None, alias="handSize")
    score: int | None = None
    is_dealer: bool | None = Field(default=None, alias="isDealer")
    dealer_streak: int | None = Field(default=None, alias="dealerStreak")
    flower_tiles: tuple[Tile, ...] = Field(default=(), alias="flowerTiles")
    exposed_melds: tuple[tuple[Tile, ...], ...] = Field(default=(), alias="exposedMelds")

    @field_validator("flower_tiles", "exposed_melds", mode="before")
    @classmethod
    def null_as_empty(cls, v: object) -> object:
        return () if v is None else v


class ChiCandidate(BaseModel):
    """One way to absorb a discarded tile into a run."""

    model_config = ConfigDict(frozen=True)

    first: Tile
    second: Tile
    position: ChiPosition

    def run(self, discarded: Tile) -> tuple[Tile, Tile, Tile]:
        """Return the three tiles of the run in ascending rank order."""
        if self.position == ChiPosition.LOW:
            return (self.first, self.second, discarded)
        if self.position == ChiPosition.MID:
            return (self.first, discarded, self.second)
        return (discarded, self.first, self.second)


class WinSummary(BaseModel):
    """Winner and win label of the most recent hand, for the result overlay."""

    model_config = ConfigDict(frozen=True)

    player_id: str
    player_name: str
    win_type: str
