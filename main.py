# main.py
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, TextIO

import structlog

from engine.input_handler import InputHandler
from engine.main_loop import MainLoop
from fogcrawl.game_state import GameState
from fogcrawl.world.game_map import GameMap, Tile
from fogcrawl.world.procgen import generate_dungeon
from utils.config import load_toml_config, load_yaml_config
from utils.logging_utils import parse_log_level, setup_logging

# --- Paths relative to this script's location ---
SCRIPT_DIR = Path(__file__).parent.resolve()
CONFIG_DIR = SCRIPT_DIR / "config"
CONFIG_FILE_NAME = "config.yaml"
KEYBINDINGS_FILE_NAME = "keybindings.toml"
# --- End Paths ---

log = structlog.get_logger()


@dataclass
class Configs:
    main: Dict[str, Any] = field(default_factory=dict)
    keybindings: Dict[str, Any] = field(default_factory=dict)


def load_configs(config_dir: Path = CONFIG_DIR) -> Configs:
    """Load the main YAML config and the TOML keybindings."""
    main_cfg = load_yaml_config(config_dir / CONFIG_FILE_NAME, "Main")
    keybindings = load_toml_config(config_dir / KEYBINDINGS_FILE_NAME, "Keybindings")
    log.info(
        "Configurations loaded",
        settings=len(main_cfg),
        binding_sets=len(keybindings.get("bindings", {})),
    )
    return Configs(main=main_cfg, keybindings=keybindings)


def init_game_state(configs: Configs) -> GameState:
    """Generate the dungeon and populate it from config values."""
    config = configs.main
    map_width: int = config.get("map_width", 80)
    map_height: int = config.get("map_height", 50)
    max_rooms: int = config.get("max_rooms", 30)
    player_fov_radius: int = config.get("player_fov_radius", 8)
    monster_sight_range: int = config.get("monster_sight_range", 8)
    dungeon_seed_cfg = config.get("dungeon_seed")
    dungeon_seed = (
        int(time.time() * 1000) if dungeon_seed_cfg is None else int(dungeon_seed_cfg)
    )
    log.info("Using dungeon seed", seed=dungeon_seed)

    game_map = generate_dungeon(
        max_rooms, rng_seed=dungeon_seed, map_width=map_width, map_height=map_height
    )
    game_state = GameState(
        existing_map=game_map,
        player_fov_radius=player_fov_radius,
        rng_seed=dungeon_seed,
    )
    game_state.spawn_monsters(monster_sight_range)
    return game_state


# --- Debug Map Printing Function ---
def print_map_section(
    game_map: GameMap,
    center_x: int,
    center_y: int,
    radius: int = 5,
    out: TextIO = sys.stdout,
) -> None:
    """Prints the revealed part of the map around (x, y); unseen tiles are blank."""
    y_min = max(0, center_y - radius)
    y_max = min(game_map.height, center_y + radius + 1)
    x_min = max(0, center_x - radius)
    x_max = min(game_map.width, center_x + radius + 1)
    for y in range(y_min, y_max):
        row = []
        for x in range(x_min, x_max):
            if x == center_x and y == center_y:
                row.append("@")
            elif not game_map.is_revealed(x, y):
                row.append(" ")
            elif game_map.tile_at(x, y) == Tile.WALL:
                row.append("#")
            else:
                row.append("." if game_map.is_visible(x, y) else ",")
        print("".join(row), file=out)
# --- End Debug Map Printing ---


def _run_turn(main_loop: MainLoop, out: TextIO) -> None:
    gs = main_loop.game_state
    for event in main_loop.tick():
        print(f"{event.label}: Shouts insults", file=out)
    pos = gs.player_position
    if pos is not None:
        print_map_section(gs.game_map, pos.x, pos.y, radius=10, out=out)


def run(main_loop: MainLoop, keys: TextIO = sys.stdin, out: TextIO = sys.stdout) -> None:
    """Feed key presses, one per line, into the loop until quit or EOF."""
    _run_turn(main_loop, out)
    for line in keys:
        key = line.rstrip("\n") or " "
        if not main_loop.handle_key(key):
            continue
        if main_loop.quit_requested:
            break
        _run_turn(main_loop, out)


def main() -> None:
    """Main entry point for the application."""
    try:
        configs = load_configs()
        setup_logging(parse_log_level(configs.main.get("log_level")))
        log.info("Application starting...", config_dir=str(CONFIG_DIR))
        game_state = init_game_state(configs)
        main_loop = MainLoop(game_state, InputHandler(configs.keybindings))
    except FileNotFoundError as e:
        log.critical("Required file not found during init", error=str(e), exc_info=True)
        sys.exit(f"Initialization failed: File not found - {e}")
    except (TypeError, ValueError) as e:
        log.critical("Invalid configuration", error=str(e), exc_info=True)
        sys.exit(f"Configuration failed: {e}")
    except Exception as e:
        log.critical("Fatal initialization error", error=str(e), exc_info=True)
        sys.exit(f"Initialization failed: {e}")

    run(main_loop)
    log.info("Application finished", turns=game_state.turn_count)


if __name__ == "__main__":
    main()
