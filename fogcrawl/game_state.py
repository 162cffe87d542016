# fogcrawl/game_state.py
from typing import List, Tuple

import structlog

from game_rng import GameRNG
from fogcrawl.entities.components import Position
from fogcrawl.entities.registry import EntityRegistry
from fogcrawl.systems import movement_system
from fogcrawl.systems.monster_ai_system import ReactionEvent, run_monster_ai
from fogcrawl.systems.visibility_system import run_visibility
from fogcrawl.world.game_map import GameMap, Tile
from fogcrawl.world.procgen import spawn_point

log = structlog.get_logger()

DEFAULT_FOV_RADIUS = 8
MONSTER_KINDS: Tuple[str, str] = ("Goblin", "Orc")


class GameState:
    """Central container for mutable game data.

    Owns the map, the entity registry and the random source, and runs one
    visibility pass per :meth:`advance_turn`.  The host talks to the core only
    through :meth:`request_move`, :meth:`advance_turn` and the map query
    helpers.
    """

    def __init__(
        self,
        existing_map: GameMap,
        player_start_pos: Tuple[int, int] | None = None,
        player_fov_radius: int = DEFAULT_FOV_RADIUS,
        rng_seed: int | None = None,
    ):
        log.info("Initializing GameState...")

        if not isinstance(existing_map, GameMap):
            raise TypeError("GameState requires a valid GameMap instance.")
        if player_start_pos is None:
            player_start_pos = spawn_point(existing_map)
        if len(player_start_pos) != 2:
            raise ValueError(
                "GameState requires a valid player_start_pos tuple (x, y)."
            )
        player_start_x, player_start_y = player_start_pos
        if not existing_map.in_bounds(player_start_x, player_start_y):
            raise ValueError(f"Player start {player_start_pos} is outside the map.")

        self.game_map: GameMap = existing_map
        self.rng_instance: GameRNG = GameRNG(seed=rng_seed)
        log.debug("GameRNG initialized", seed=self.rng_instance.initial_seed)

        self.entity_registry: EntityRegistry = EntityRegistry()
        self.player_id: int = self.entity_registry.create_entity(
            x=player_start_x,
            y=player_start_y,
            name="Player",
            is_player=True,
            sight_range=player_fov_radius,
        )
        log.debug(
            "Player entity created",
            player_id=self.player_id,
            pos=(player_start_x, player_start_y),
            fov_radius=player_fov_radius,
        )

        self.turn_count: int = 0
        self.message_log: List[str] = []
        self.reaction_events: List[ReactionEvent] = []

        log.info(
            "Game state initialized",
            map_size=f"{self.map_width}x{self.map_height}",
            player_id=self.player_id,
            rng_seed=self.rng_instance.initial_seed,
        )

    @property
    def map_width(self) -> int:
        return self.game_map.width

    @property
    def map_height(self) -> int:
        return self.game_map.height

    @property
    def player_position(self) -> Position | None:
        """Gets the current player position from the EntityRegistry."""
        return self.entity_registry.get_position(self.player_id)

    # --- Map query surface ---
    def tile_at(self, x: int, y: int) -> Tile:
        return self.game_map.tile_at(x, y)

    def is_revealed(self, x: int, y: int) -> bool:
        return self.game_map.is_revealed(x, y)

    def is_visible(self, x: int, y: int) -> bool:
        return self.game_map.is_visible(x, y)

    def dimensions(self) -> Tuple[int, int]:
        return self.game_map.dimensions()

    def add_message(self, text: str) -> None:
        """Adds a message to the game log."""
        self.message_log.append(text)
        log.debug("Message added", message=text)

    # --- Spawning ---
    def spawn_monster(
        self, x: int, y: int, name: str, sight_range: int = DEFAULT_FOV_RADIUS
    ) -> int:
        if not self.game_map.in_bounds(x, y):
            raise ValueError(f"Cannot spawn {name} outside the map at {(x, y)}.")
        return self.entity_registry.create_entity(
            x=x, y=y, name=name, is_hostile=True, sight_range=sight_range
        )

    def spawn_monsters(self, monster_sight_range: int = DEFAULT_FOV_RADIUS) -> List[int]:
        """Place one goblin or orc in the center of every room but the first."""
        spawned: List[int] = []
        for i, room in enumerate(self.game_map.rooms[1:]):
            heads = self.rng_instance.coin_flip() == "heads"
            kind = MONSTER_KINDS[0] if heads else MONSTER_KINDS[1]
            x, y = room.center
            spawned.append(self.spawn_monster(x, y, f"{kind} #{i}", monster_sight_range))
        log.info("Monsters spawned", count=len(spawned))
        return spawned

    # --- Turn processing ---
    def request_move(self, entity_id: int, dx: int, dy: int) -> bool:
        """Move an entity if the destination is an in-bounds, non-wall tile."""
        return movement_system.try_move(entity_id, dx, dy, self)

    def advance_turn(self) -> List[ReactionEvent]:
        """Advances the game turn counter and refreshes stale viewsheds."""
        self.turn_count += 1
        log.debug("Turn advanced", turn=self.turn_count)

        refreshed = run_visibility(self)
        events = run_monster_ai(self, refreshed)
        for event in events:
            self.add_message(f"{event.label}: Shouts insults")
        self.reaction_events.extend(events)
        return events
