import secrets
import string
from dataclasses import dataclass

PLAYER_ID_PREFIX = "PLAYER_"
_PLAYER_ID_ALPHABET = string.ascii_lowercase + string.digits
_PLAYER_ID_SUFFIX_LEN = 9


def generate_player_id() -> str:
    """Create a fresh player id for a first-time join."""
    suffix = "".join(secrets.choice(_PLAYER_ID_ALPHABET) for _ in range(_PLAYER_ID_SUFFIX_LEN))
    return PLAYER_ID_PREFIX + suffix


@dataclass(frozen=True)
class SessionRecord:
    """Durable identity of a seated player.

    Created on the first successful join, offered for restoration on the
    next start, and deleted on an explicit leave.
    """

    player_id: str
    room_id: str
    player_name: str
