"""
HTTP client for the room bootstrap API.

Two calls: create a room, and join one with a chosen player id. Transport
failures, unexpected status codes and malformed bodies all surface as
BootstrapError; a well-formed refusal comes back as JoinResult(success=False).
"""

from http import HTTPStatus

import httpx
import structlog
from pydantic import ValidationError

from game.logic.exceptions import BootstrapError, JoinInFlightError
from lobby.types import CreateRoomResponse, JoinResult, JoinRoomRequest

logger = structlog.get_logger()

CREATE_ROOM_PATH = "/api/room/create"
JOIN_ROOM_PATH = "/api/room/join"

_DEFAULT_TIMEOUT_SECONDS = 10.0


class BootstrapClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._join_in_flight = False

    @property
    def join_in_flight(self) -> bool:
        return self._join_in_flight

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout, transport=self._transport)

    async def _post(self, path: str, body: dict | None = None) -> dict:
        async with self._client() as client:
            try:
                response = await client.post(path, json=body)
            except httpx.RequestError as e:
                raise BootstrapError(f"Failed to reach bootstrap server: {e}") from e
        if response.status_code != HTTPStatus.OK:
            raise BootstrapError(f"Bootstrap server returned {response.status_code}: {response.text}")
        try:
            data = response.json()
        except ValueError as e:
            raise BootstrapError(f"Bootstrap server returned a non-JSON body: {e}") from e
        if not isinstance(data, dict):
            raise BootstrapError("Bootstrap server returned a non-object body")
        return data

    async def create_room(self) -> str:
        """Ask the server for a fresh room and return its id."""
        data = await self._post(CREATE_ROOM_PATH)
        try:
            room_id = CreateRoomResponse.model_validate(data).room_id
        except ValidationError as e:
            raise BootstrapError(f"Malformed create-room response: {e}") from e
        logger.info("room created", room_id=room_id)
        return room_id

    async def join_room(self, room_id: str, player_id: str, player_name: str) -> JoinResult:
        """
        Join a room as player_id.

        Only one join may be in flight; a second call while one is pending
        raises JoinInFlightError without touching the network.
        """
        if self._join_in_flight:
            raise JoinInFlightError("a join request is already in flight")
        try:
            request = JoinRoomRequest(room_id=room_id, player_id=player_id, player_name=player_name)
        except ValidationError as e:
            raise BootstrapError(f"Invalid join request: {e}") from e
        self._join_in_flight = True
        try:
            data = await self._post(JOIN_ROOM_PATH, request.model_dump(by_alias=True))
        finally:
            self._join_in_flight = False
        try:
            result = JoinResult.model_validate(data)
        except ValidationError as e:
            raise BootstrapError(f"Malformed join response: {e}") from e
        logger.info("join answered", room_id=room_id, player_id=player_id, success=result.success)
        return result
