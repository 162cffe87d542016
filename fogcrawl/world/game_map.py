# fogcrawl/world/game_map.py
from enum import IntEnum
from typing import TYPE_CHECKING, Final, Iterable, NamedTuple, Set, Tuple

import numpy as np
import structlog

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from fogcrawl.world.procgen import Rect

log = structlog.get_logger()


class Tile(IntEnum):
    """Tile identifiers stored in :attr:`GameMap.tiles`."""

    FLOOR = 0
    WALL = 1


class TileType(NamedTuple):
    walkable: bool
    transparent: bool


TILE_TYPES: Final[dict[Tile, TileType]] = {
    Tile.FLOOR: TileType(walkable=True, transparent=True),
    Tile.WALL: TileType(walkable=False, transparent=False),
}


class OutOfBoundsError(IndexError):
    """Raised when a coordinate or linear index lies outside the map."""


class MapFrozenError(RuntimeError):
    """Raised when tiles are written after generation has finished."""


def get_transparency_map(tiles: np.ndarray) -> np.ndarray:
    """Creates a boolean array indicating transparency based on TILE_TYPES."""
    transparency = np.zeros_like(tiles, dtype=bool)
    for tile_id, tile_type in TILE_TYPES.items():
        transparency[tiles == tile_id] = tile_type.transparent
    return transparency


class GameMap:
    """Grid of tiles plus the player's fog-of-war state.

    ``revealed`` remembers every tile the player has ever seen while
    ``visible`` holds only the result of the most recent player recompute.
    Both are written exclusively through :meth:`update_visibility`, which keeps
    ``visible`` a subset of ``revealed``.
    """

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            log.error("Invalid map dimensions", width=width, height=height)
            raise ValueError("Map width and height must be positive integers.")
        self._width = width
        self._height = height
        log.info("Initializing GameMap", width=self._width, height=self._height)

        self.tiles: np.ndarray = np.full(
            (height, width), fill_value=Tile.WALL, dtype=np.uint8, order="C"
        )
        self.revealed: np.ndarray = np.zeros((height, width), dtype=bool, order="C")
        self.visible: np.ndarray = np.zeros((height, width), dtype=bool, order="C")
        self.transparent: np.ndarray = get_transparency_map(self.tiles)
        self.rooms: Tuple["Rect", ...] = ()
        self._frozen = False
        log.debug("GameMap arrays initialized", shape=(height, width))

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def frozen(self) -> bool:
        return self._frozen

    def dimensions(self) -> Tuple[int, int]:
        return self._width, self._height

    # --- Coordinates ---
    def in_bounds(self, x: int, y: int) -> bool:
        """Checks if the given coordinates are within the map boundaries."""
        return 0 <= x < self._width and 0 <= y < self._height

    def _check_bounds(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(
                f"({x}, {y}) is outside the {self._width}x{self._height} map"
            )

    def idx(self, x: int, y: int) -> int:
        """Linearize ``(x, y)`` as ``y * width + x``."""
        self._check_bounds(x, y)
        return y * self._width + x

    def xy(self, index: int) -> Tuple[int, int]:
        if not 0 <= index < self._width * self._height:
            raise OutOfBoundsError(f"Index {index} is outside the map")
        y, x = divmod(index, self._width)
        return x, y

    # --- Queries ---
    def tile_at(self, x: int, y: int) -> Tile:
        self._check_bounds(x, y)
        return Tile(int(self.tiles[y, x]))

    def is_revealed(self, x: int, y: int) -> bool:
        self._check_bounds(x, y)
        return bool(self.revealed[y, x])

    def is_visible(self, x: int, y: int) -> bool:
        self._check_bounds(x, y)
        return bool(self.visible[y, x])

    def is_walkable(self, x: int, y: int) -> bool:
        """Checks if the tile at (x, y) is walkable."""
        if not self.in_bounds(x, y):
            return False
        return TILE_TYPES[Tile(int(self.tiles[y, x]))].walkable

    def is_opaque(self, x: int, y: int) -> bool:
        # Treat out of bounds as opaque for FOV calculations
        if not self.in_bounds(x, y):
            return True
        return not self.transparent[y, x]

    def visible_indices(self) -> Set[int]:
        return {int(i) for i in np.flatnonzero(self.visible)}

    def revealed_indices(self) -> Set[int]:
        return {int(i) for i in np.flatnonzero(self.revealed)}

    # --- Generation-time mutation ---
    def set_tile(self, x: int, y: int, tile: Tile) -> None:
        self._check_bounds(x, y)
        if self._frozen:
            log.error("Tile write after generation", pos=(x, y), tile=tile)
            raise MapFrozenError("Map tiles are read-only after generation.")
        self.tiles[y, x] = tile
        self.transparent[y, x] = TILE_TYPES[Tile(tile)].transparent

    def fill_rect(self, x1: int, y1: int, x2: int, y2: int, tile: Tile) -> None:
        """Set every tile in the inclusive rectangle.

        Both corners must lie on the map; nothing is written otherwise.
        """
        self._check_bounds(x1, y1)
        self._check_bounds(x2, y2)
        if self._frozen:
            raise MapFrozenError("Map tiles are read-only after generation.")
        if x1 > x2 or y1 > y2:
            log.warning("Attempted to fill zero-size area", rect=(x1, y1, x2, y2))
            return
        self.tiles[y1 : y2 + 1, x1 : x2 + 1] = tile
        self.transparent[y1 : y2 + 1, x1 : x2 + 1] = TILE_TYPES[
            Tile(tile)
        ].transparent

    def update_tile_transparency(self) -> None:
        """Recalculates the transparency map based on current self.tiles."""
        self.transparent = get_transparency_map(self.tiles)
        log.debug(
            "Transparency map updated",
            transparent_count=int(np.sum(self.transparent)),
        )

    def freeze(self) -> None:
        """Make tile storage read-only; visibility flags stay writable."""
        self.update_tile_transparency()
        self.tiles.flags.writeable = False
        self.transparent.flags.writeable = False
        self._frozen = True
        log.debug("GameMap tiles frozen")

    # --- Player fog of war ---
    def update_visibility(self, coords: Iterable[Tuple[int, int]]) -> None:
        """Replace the visible set with ``coords`` and reveal each of them.

        All coordinates are validated before anything is written, so an
        out-of-bounds entry leaves both flag arrays untouched.
        """
        coords = list(coords)
        for x, y in coords:
            self._check_bounds(x, y)

        self.visible.fill(False)
        if coords:
            xs, ys = zip(*coords)
            self.visible[list(ys), list(xs)] = True
        self.revealed |= self.visible
        log.debug(
            "Player visibility updated",
            visible_count=len(coords),
            revealed_count=int(np.sum(self.revealed)),
        )
