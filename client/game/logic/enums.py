"""
String enum definitions for table-client concepts.
"""

from enum import Enum


class TileKind(str, Enum):
    """Tile families as named on the wire. WAN, TIAO and BING are the numeric suits."""

    WAN = "WAN"
    TIAO = "TIAO"
    BING = "BING"
    WIND = "WIND"
    DRAGON = "DRAGON"
    FLOWER = "FLOWER"


class Phase(str, Enum):
    """Server-authoritative stage of the hand or game."""

    WAITING = "WAITING"
    DEALING = "DEALING"
    REPLACING_FLOWERS = "REPLACING_FLOWERS"
    OPENING_GOLD = "OPENING_GOLD"
    PLAYING = "PLAYING"
    HAND_FINISHED = "HAND_FINISHED"
    FINISHED = "FINISHED"
    CONFIRM_CONTINUE = "CONFIRM_CONTINUE"


class ChiPosition(str, Enum):
    """Where the discarded tile sits in the resulting run."""

    LOW = "low"  # discard is the highest of the three
    MID = "mid"
    HIGH = "high"  # discard is the lowest of the three


class ActionKind(str, Enum):
    """User-facing actions the resolver can expose."""

    CHI = "chi"
    PENG = "peng"
    GANG = "gang"
    AN_GANG = "an_gang"
    HU = "hu"
    PASS = "pass"  # noqa: S105
    REPLACE_FLOWER = "replace_flower"
    OPEN_GOLD = "open_gold"
    CONTINUE = "continue"
    END = "end"


class CommandType(str, Enum):
    """Outbound commands; the value is the destination suffix under /app/game/."""

    SYNC = "sync"
    DISCARD = "discard"
    CHI = "chi"
    PENG = "peng"
    GANG = "gang"
    AN_GANG = "anGang"
    HU = "hu"
    PASS = "pass"  # noqa: S105
    REPLACE_FLOWER = "replaceFlower"
    OPEN_GOLD = "openGold"
    CONTINUE = "continue"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
