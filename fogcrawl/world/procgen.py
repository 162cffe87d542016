# fogcrawl/world/procgen.py
from typing import Iterator, List, NamedTuple, Tuple

import structlog

from game_rng import GameRNG
from fogcrawl.world.game_map import GameMap, Tile

log = structlog.get_logger()

# --- Configuration ---
ROOM_MIN_SIZE = 6
ROOM_MAX_SIZE = 10
ROOM_PADDING = 1
DEFAULT_MAP_WIDTH = 80
DEFAULT_MAP_HEIGHT = 50
DEFAULT_TEST_WALLS = 400


class Rect(NamedTuple):
    """A rectangular room on the map."""

    x1: int
    y1: int
    x2: int
    y2: int

    @classmethod
    def from_size(cls, x: int, y: int, w: int, h: int) -> "Rect":
        return cls(x, y, x + w, y + h)

    @property
    def center(self) -> Tuple[int, int]:
        """Center coordinates of the rectangle."""
        return (self.x1 + self.x2) // 2, (self.y1 + self.y2) // 2

    @property
    def width(self) -> int:
        return self.x2 - self.x1

    @property
    def height(self) -> int:
        return self.y2 - self.y1

    def padded(self, amount: int) -> "Rect":
        return Rect(
            self.x1 - amount, self.y1 - amount, self.x2 + amount, self.y2 + amount
        )

    def intersects(self, other: "Rect", padding: int = ROOM_PADDING) -> bool:
        """Returns True if both rectangles, grown by ``padding``, overlap."""
        a = self.padded(padding)
        b = other.padded(padding)
        return a.x1 <= b.x2 and a.x2 >= b.x1 and a.y1 <= b.y2 and a.y2 >= b.y1

    def interior(self) -> Iterator[Tuple[int, int]]:
        """Yield every tile strictly inside the room's border."""
        for y in range(self.y1 + 1, self.y2):
            for x in range(self.x1 + 1, self.x2):
                yield x, y

    def carve(self, game_map: GameMap) -> None:
        """Carves the room's interior as floor tiles onto the game map."""
        game_map.fill_rect(self.x1 + 1, self.y1 + 1, self.x2 - 1, self.y2 - 1, Tile.FLOOR)
        log.debug("Carved room", rect=self)


def _carve_horizontal_tunnel(game_map: GameMap, x1: int, x2: int, y: int) -> int:
    carved = 0
    for x in range(min(x1, x2), max(x1, x2) + 1):
        if game_map.in_bounds(x, y):
            game_map.set_tile(x, y, Tile.FLOOR)
            carved += 1
    return carved


def _carve_vertical_tunnel(game_map: GameMap, y1: int, y2: int, x: int) -> int:
    carved = 0
    for y in range(min(y1, y2), max(y1, y2) + 1):
        if game_map.in_bounds(x, y):
            game_map.set_tile(x, y, Tile.FLOOR)
            carved += 1
    return carved


def _connect_rooms(game_map: GameMap, prev_room: Rect, new_room: Rect, rng: GameRNG) -> None:
    """Carves an L-shaped corridor between two room centers."""
    prev_x, prev_y = prev_room.center
    new_x, new_y = new_room.center
    if rng.coin_flip() == "heads":
        # Horizontal first, elbow at (new_x, prev_y)
        carved = _carve_horizontal_tunnel(game_map, prev_x, new_x, prev_y)
        carved += _carve_vertical_tunnel(game_map, prev_y, new_y, new_x)
        elbow = (new_x, prev_y)
    else:
        # Vertical first, elbow at (prev_x, new_y)
        carved = _carve_vertical_tunnel(game_map, prev_y, new_y, prev_x)
        carved += _carve_horizontal_tunnel(game_map, prev_x, new_x, new_y)
        elbow = (prev_x, new_y)
    log.debug(
        "Connected rooms",
        start=(prev_x, prev_y),
        end=(new_x, new_y),
        elbow=elbow,
        tiles=carved,
    )


def generate_rooms_and_corridors(
    max_rooms: int, map_width: int, map_height: int, rng: GameRNG
) -> Tuple[GameMap, List[Rect]]:
    """Place up to ``max_rooms`` non-overlapping rooms and link them in order.

    Returns the frozen map and the accepted rooms.  The same seed always yields
    the same layout.
    """
    if max_rooms < 0:
        raise ValueError("max_rooms must not be negative")

    game_map = GameMap(map_width, map_height)
    rooms: List[Rect] = []
    rejected = 0
    skipped = 0

    for attempt in range(max_rooms):
        w = rng.get_int(ROOM_MIN_SIZE, ROOM_MAX_SIZE)
        h = rng.get_int(ROOM_MIN_SIZE, ROOM_MAX_SIZE)
        # x2 = x + w must stay at most width - 2 so the border stays intact
        max_x = map_width - w - 2
        max_y = map_height - h - 2
        if max_x < 1 or max_y < 1:
            skipped += 1
            log.debug("Room does not fit map", attempt=attempt, size=(w, h))
            continue
        new_room = Rect.from_size(rng.get_int(1, max_x), rng.get_int(1, max_y), w, h)

        if any(new_room.intersects(other) for other in rooms):
            rejected += 1
            continue

        new_room.carve(game_map)
        if rooms:
            _connect_rooms(game_map, rooms[-1], new_room, rng)
        rooms.append(new_room)

    game_map.rooms = tuple(rooms)
    game_map.freeze()
    log.info(
        "Rooms and corridors generated",
        attempts=max_rooms,
        rooms=len(rooms),
        rejected=rejected,
        skipped=skipped,
    )
    return game_map, rooms


def generate_test_map(
    map_width: int,
    map_height: int,
    rng: GameRNG,
    wall_count: int = DEFAULT_TEST_WALLS,
) -> GameMap:
    """Open floor with a solid border and randomly scattered interior walls.

    The map center is never walled so it can always be used as spawn point.
    No connectivity guarantees are made.
    """
    game_map = GameMap(map_width, map_height)

    center = (map_width // 2, map_height // 2)
    if map_width > 2 and map_height > 2:
        game_map.fill_rect(1, 1, map_width - 2, map_height - 2, Tile.FLOOR)
        for _ in range(wall_count):
            x = rng.get_int(1, map_width - 2)
            y = rng.get_int(1, map_height - 2)
            if (x, y) != center:
                game_map.set_tile(x, y, Tile.WALL)

    game_map.freeze()
    log.info("Test map generated", width=map_width, height=map_height, walls=wall_count)
    return game_map


def spawn_point(game_map: GameMap) -> Tuple[int, int]:
    """First room's center, or the map center when no room was accepted."""
    if game_map.rooms:
        return game_map.rooms[0].center
    fallback = (game_map.width // 2, game_map.height // 2)
    log.warning("No rooms generated, using fallback spawn point", pos=fallback)
    return fallback


def generate_dungeon(
    max_rooms: int,
    rng_seed: int | None = None,
    map_width: int = DEFAULT_MAP_WIDTH,
    map_height: int = DEFAULT_MAP_HEIGHT,
) -> GameMap:
    """Entry point for dungeon generation."""
    rng = GameRNG(seed=rng_seed)
    log.info(
        "Starting dungeon generation",
        width=map_width,
        height=map_height,
        max_rooms=max_rooms,
        seed=rng.initial_seed,
    )
    game_map, _ = generate_rooms_and_corridors(max_rooms, map_width, map_height, rng)
    return game_map
