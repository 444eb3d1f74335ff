from pydantic import BaseModel, ConfigDict, Field


class CreateRoomResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1)


class JoinRoomRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId", min_length=1)
    player_id: str = Field(alias="playerId", min_length=1)
    player_name: str = Field(alias="playerName", min_length=1)


class JoinResult(BaseModel):
    """Outcome of a join. success=False is a refusal, not an error."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    room_id: str | None = Field(default=None, alias="roomId")
