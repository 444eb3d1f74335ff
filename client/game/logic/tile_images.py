"""
Tile image lookup for renderers.

tile_image_path is total: any (kind, rank) pair, including unknown kinds
and out-of-range ranks, resolves to a path. Unmapped pairs get the
fallback asset.
"""

from game.logic.enums import TileKind

TILE_IMAGE_BASE_URL = "/images/tiles/"
FALLBACK_TILE_IMAGE = "default.png"

_SUIT_LETTERS: dict[TileKind, str] = {
    TileKind.WAN: "m",
    TileKind.TIAO: "s",
    TileKind.BING: "p",
}

# dragons continue the honor numbering after the four winds
_DRAGON_FILES = {1: "5z.png", 2: "6z.png", 3: "7z.png"}

_FLOWER_FILES = {
    1: "chun.png",
    2: "xia.png",
    3: "qiu.png",
    4: "dong.png",
    5: "mei.png",
    6: "lan.png",
    7: "zu.png",
    8: "ju.png",
}


def _file_name(kind: TileKind | str, rank: int) -> str | None:
    try:
        kind = TileKind(kind)
    except ValueError:
        return None
    if not isinstance(rank, int):
        return None
    if kind in _SUIT_LETTERS:
        return f"{rank}{_SUIT_LETTERS[kind]}.png" if 1 <= rank <= 9 else None  # noqa: PLR2004
    if kind == TileKind.WIND:
        return f"{rank}z.png" if 1 <= rank <= 4 else None  # noqa: PLR2004
    if kind == TileKind.DRAGON:
        return _DRAGON_FILES.get(rank)
    return _FLOWER_FILES.get(rank)


def tile_image_path(kind: TileKind | str, rank: int) -> str:
    """Return the image path for a tile face, falling back to the default asset."""
    return TILE_IMAGE_BASE_URL + (_file_name(kind, rank) or FALLBACK_TILE_IMAGE)


def all_tile_image_paths() -> list[str]:
    """Every mapped image path, for renderers that preload assets."""
    paths = [tile_image_path(kind, rank) for rank in range(1, 10) for kind in _SUIT_LETTERS]
    paths += [tile_image_path(TileKind.WIND, rank) for rank in range(1, 5)]
    paths += [tile_image_path(TileKind.DRAGON, rank) for rank in _DRAGON_FILES]
    paths += [tile_image_path(TileKind.FLOWER, rank) for rank in _FLOWER_FILES]
    return paths
