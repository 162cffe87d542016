import io
import logging

import pytest

from engine.input_handler import InputHandler
from engine.main_loop import MainLoop
from main import Configs, init_game_state, load_configs, print_map_section, run
from fogcrawl.world.game_map import GameMap, Tile
from utils.config import load_toml_config, load_yaml_config
from utils.logging_utils import parse_log_level


def small_configs(**overrides) -> Configs:
    main = {
        "map_width": 40,
        "map_height": 30,
        "max_rooms": 10,
        "dungeon_seed": 12,
        "player_fov_radius": 6,
        "monster_sight_range": 5,
    }
    main.update(overrides)
    return Configs(main=main, keybindings=load_configs().keybindings)


def test_load_configs():
    configs = load_configs()
    assert isinstance(configs, Configs)
    assert configs.main["map_width"] == 80
    assert configs.main["map_height"] == 50
    assert "player_turn" in configs.keybindings["bindings"]


def test_init_game_state():
    configs = small_configs()
    game_state = init_game_state(configs)
    assert game_state.map_width == 40
    assert game_state.map_height == 30
    assert game_state.game_map.frozen
    viewshed = game_state.entity_registry.get_viewshed(game_state.player_id)
    assert viewshed.range == 6


def test_init_game_state_is_reproducible_with_seed():
    a = init_game_state(small_configs())
    b = init_game_state(small_configs())
    assert (a.game_map.tiles == b.game_map.tiles).all()
    assert a.player_position == b.player_position


def test_print_map_section_shows_only_revealed_tiles():
    gm = GameMap(5, 5)
    gm.fill_rect(1, 1, 3, 3, Tile.FLOOR)
    gm.update_visibility([(1, 1), (2, 1), (0, 1)])
    gm.update_visibility([(2, 1)])
    out = io.StringIO()
    print_map_section(gm, 2, 2, radius=1, out=out)
    lines = out.getvalue().splitlines()
    assert lines[0] == ",. "
    assert lines[1] == " @ "
    assert lines[2] == "   "


def test_run_processes_keys_until_quit():
    game_state = init_game_state(small_configs())
    ml = MainLoop(game_state, InputHandler(small_configs().keybindings))
    out = io.StringIO()
    run(ml, keys=io.StringIO(".\n.\nq\n.\n"), out=out)
    assert ml.quit_requested
    assert game_state.turn_count == 3
    assert "@" in out.getvalue()


def test_run_stops_at_end_of_input():
    game_state = init_game_state(small_configs())
    ml = MainLoop(game_state, InputHandler(small_configs().keybindings))
    run(ml, keys=io.StringIO("x\n\n"), out=io.StringIO())
    assert not ml.quit_requested
    assert game_state.turn_count == 1


def test_yaml_loader_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml_config(tmp_path / "missing.yaml", "Main")
    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    assert load_yaml_config(empty, "Main") == {}
    listing = tmp_path / "list.yaml"
    listing.write_text("- 1\n- 2\n")
    with pytest.raises(TypeError):
        load_yaml_config(listing, "Main")


def test_toml_loader_tolerates_missing_or_broken_files(tmp_path):
    assert load_toml_config(tmp_path / "missing.toml", "Keybindings") == {}
    broken = tmp_path / "broken.toml"
    broken.write_text("[bindings\n")
    assert load_toml_config(broken, "Keybindings") == {}


def test_parse_log_level():
    assert parse_log_level("debug") == logging.DEBUG
    assert parse_log_level("WARNING") == logging.WARNING
    assert parse_log_level(None) == logging.INFO
    assert parse_log_level("chatty") == logging.INFO
