from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from game.logic.enums import CommandType

APP_DESTINATION_PREFIX = "/app/game/"
TOPIC_PREFIX = "/topic/room/"


def public_topic(room_id: str) -> str:
    """Room-wide snapshot topic."""
    return f"{TOPIC_PREFIX}{room_id}"


def private_topic(room_id: str, player_id: str) -> str:
    """Per-player snapshot topic."""
    return f"{TOPIC_PREFIX}{room_id}/player/{player_id}"


def command_destination(command_type: CommandType) -> str:
    return f"{APP_DESTINATION_PREFIX}{command_type.value}"


class PlayerCommand(BaseModel):
    """Base for every outbound command; each body carries the acting player's id."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    command_type: ClassVar[CommandType]

    player_id: str = Field(alias="playerId", min_length=1, max_length=100)

    @property
    def destination(self) -> str:
        return command_destination(self.command_type)

    def payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class SyncCommand(PlayerCommand):
    command_type = CommandType.SYNC


class DiscardCommand(PlayerCommand):
    command_type = CommandType.DISCARD
    tile_id: str = Field(alias="tileId", min_length=1, max_length=100)


class ChiCommand(PlayerCommand):
    command_type = CommandType.CHI
    tile_id1: str = Field(alias="tileId1", min_length=1, max_length=100)
    tile_id2: str = Field(alias="tileId2", min_length=1, max_length=100)


class PengCommand(PlayerCommand):
    command_type = CommandType.PENG


class GangCommand(PlayerCommand):
    command_type = CommandType.GANG


class AnGangCommand(PlayerCommand):
    command_type = CommandType.AN_GANG
    tile_id: str = Field(alias="tileId", min_length=1, max_length=100)


class HuCommand(PlayerCommand):
    command_type = CommandType.HU


class PassCommand(PlayerCommand):
    command_type = CommandType.PASS


class ReplaceFlowerCommand(PlayerCommand):
    command_type = CommandType.REPLACE_FLOWER


class OpenGoldCommand(PlayerCommand):
    command_type = CommandType.OPEN_GOLD


class ContinueCommand(PlayerCommand):
    command_type = CommandType.CONTINUE
    will_continue: bool = Field(alias="continue")


Command = (
    SyncCommand
    | DiscardCommand
    | ChiCommand
    | PengCommand
    | GangCommand
    | AnGangCommand
    | HuCommand
    | PassCommand
    | ReplaceFlowerCommand
    | OpenGoldCommand
    | ContinueCommand
)
