from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Set, Tuple


@dataclass
class Position:
    """Spatial position on the map."""

    x: int
    y: int

    def __iter__(self):
        yield self.x
        yield self.y


@dataclass
class Viewshed:
    """Tiles an entity can currently see.

    A new viewshed starts dirty so the first turn computes it.  Movement marks
    it dirty again; only the visibility system stores a fresh set and clears
    the flag.
    """

    range: int
    visible_tiles: Set[Tuple[int, int]] = field(default_factory=set)
    dirty: bool = True

    def __post_init__(self) -> None:
        if self.range <= 0:
            raise ValueError("Viewshed range must be a positive integer.")

    def mark_dirty(self) -> None:
        self.dirty = True

    def store(self, tiles: Iterable[Tuple[int, int]]) -> None:
        self.visible_tiles = set(tiles)
        self.dirty = False

    def can_see(self, x: int, y: int) -> bool:
        return (x, y) in self.visible_tiles
