import re

import numpy as np
import pytest

from fogcrawl.entities.components import Position
from fogcrawl.game_state import GameState
from fogcrawl.systems.monster_ai_system import ReactionEvent
from fogcrawl.world.game_map import GameMap, Tile
from fogcrawl.world.procgen import generate_dungeon


def make_open_map(width: int = 12, height: int = 12) -> GameMap:
    gm = GameMap(width, height)
    gm.fill_rect(1, 1, width - 2, height - 2, Tile.FLOOR)
    return gm


def make_gs(gm: GameMap | None = None, start=(2, 2), radius: int = 8) -> GameState:
    return GameState(
        existing_map=gm if gm is not None else make_open_map(),
        player_start_pos=start,
        player_fov_radius=radius,
        rng_seed=1,
    )


def player_viewshed(gs: GameState):
    return gs.entity_registry.get_viewshed(gs.player_id)


def test_game_state_rejects_bad_inputs():
    with pytest.raises(TypeError):
        GameState(existing_map="not a map")
    with pytest.raises(ValueError):
        make_gs(start=(12, 2))
    with pytest.raises(ValueError):
        make_gs(radius=0)


def test_start_position_defaults_to_spawn_point():
    gm = generate_dungeon(5, rng_seed=8)
    gs = GameState(existing_map=gm)
    assert gs.player_position == Position(*gm.rooms[0].center)


def test_first_turn_computes_player_view():
    gs = make_gs()
    assert player_viewshed(gs).dirty
    assert gs.game_map.visible_indices() == set()
    gs.advance_turn()
    viewshed = player_viewshed(gs)
    assert not viewshed.dirty
    assert gs.turn_count == 1
    assert gs.is_visible(2, 2)
    expected = {gs.game_map.idx(x, y) for x, y in viewshed.visible_tiles}
    assert gs.game_map.visible_indices() == expected
    assert gs.game_map.visible_indices() <= gs.game_map.revealed_indices()


def test_advance_turn_without_changes_is_idempotent():
    gs = make_gs()
    gs.advance_turn()
    visible = gs.game_map.visible.copy()
    revealed = gs.game_map.revealed.copy()
    tiles = set(player_viewshed(gs).visible_tiles)

    assert gs.advance_turn() == []
    assert np.array_equal(gs.game_map.visible, visible)
    assert np.array_equal(gs.game_map.revealed, revealed)
    assert player_viewshed(gs).visible_tiles == tiles
    assert gs.turn_count == 2


def test_blocked_move_changes_nothing():
    gm = GameMap(10, 10)
    gm.fill_rect(1, 1, 8, 8, Tile.FLOOR)
    gm.set_tile(5, 5, Tile.WALL)
    gs = make_gs(gm, start=(4, 5))
    gs.advance_turn()

    assert not gs.request_move(gs.player_id, 1, 0)
    assert gs.player_position == Position(4, 5)
    assert not player_viewshed(gs).dirty


def test_wide_map_positions_work_end_to_end():
    gm = GameMap(40000, 3)
    gm.fill_rect(34990, 1, 35010, 1, Tile.FLOOR)
    gs = make_gs(gm, start=(35000, 1), radius=3)
    assert gs.request_move(gs.player_id, 1, 0)
    assert gs.player_position == Position(35001, 1)
    gs.advance_turn()
    assert gs.is_visible(35003, 1)
    assert not gs.is_visible(34990, 1)


def test_move_out_of_bounds_is_rejected():
    gs = make_gs(start=(0, 3))
    assert not gs.request_move(gs.player_id, -1, 0)
    assert gs.player_position == Position(0, 3)


def test_move_into_border_wall_is_rejected():
    gs = make_gs(start=(1, 1))
    assert not gs.request_move(gs.player_id, 0, -1)
    assert gs.player_position == Position(1, 1)


def test_move_of_unknown_entity_fails():
    gs = make_gs()
    assert not gs.request_move(999, 1, 0)


def test_successful_move_marks_viewshed_dirty():
    gs = make_gs()
    gs.advance_turn()
    assert gs.request_move(gs.player_id, 1, 1)
    assert gs.player_position == Position(3, 3)
    assert player_viewshed(gs).dirty
    gs.advance_turn()
    assert not player_viewshed(gs).dirty
    assert gs.is_visible(3, 3)


def test_revealed_only_grows_while_walking():
    gm = make_open_map(30, 10)
    gm.fill_rect(10, 1, 10, 7, Tile.WALL)
    gs = make_gs(gm, start=(2, 8), radius=4)
    gs.advance_turn()
    previous = gs.game_map.revealed_indices()
    for _ in range(20):
        if not gs.request_move(gs.player_id, 1, 0):
            break
        gs.advance_turn()
        revealed = gs.game_map.revealed_indices()
        assert previous <= revealed
        assert gs.game_map.visible_indices() <= revealed
        previous = revealed
    assert gs.player_position.x > 10


def test_hostile_that_sees_player_reacts():
    gs = make_gs()
    goblin = gs.spawn_monster(5, 2, "Goblin #0", sight_range=8)
    events = gs.advance_turn()
    assert events == [ReactionEvent(goblin, "Goblin #0")]
    assert gs.message_log[-1] == "Goblin #0: Shouts insults"
    assert gs.reaction_events == events


def test_reaction_only_on_turns_the_hostile_recomputes():
    gs = make_gs()
    gs.spawn_monster(5, 2, "Goblin #0", sight_range=8)
    gs.advance_turn()
    assert gs.advance_turn() == []
    assert len(gs.reaction_events) == 1


def test_wall_between_hides_player_from_hostile():
    gm = make_open_map()
    for y in range(gm.height):
        gm.set_tile(6, y, Tile.WALL)
    gs = make_gs(gm, start=(2, 5))
    gs.spawn_monster(9, 5, "Orc #0", sight_range=8)
    assert gs.advance_turn() == []
    assert not gs.is_visible(9, 5)
    assert gs.message_log == []


def test_player_walking_into_view_does_not_wake_a_settled_hostile():
    gs = make_gs(start=(2, 2))
    orc = gs.spawn_monster(8, 2, "Orc #0", sight_range=3)
    assert gs.advance_turn() == []
    for _ in range(3):
        assert gs.request_move(gs.player_id, 1, 0)
    assert gs.advance_turn() == []
    # The orc sees the player as soon as its own view is refreshed
    assert gs.request_move(orc, -1, 0)
    assert gs.advance_turn() == [ReactionEvent(orc, "Orc #0")]


def test_only_hostiles_react():
    gs = make_gs()
    gs.entity_registry.create_entity(4, 2, "Shopkeeper", sight_range=8)
    assert gs.advance_turn() == []


def test_spawn_monster_outside_map_is_rejected():
    gs = make_gs()
    with pytest.raises(ValueError):
        gs.spawn_monster(40, 40, "Goblin #0")


def test_spawn_monsters_fills_rooms_after_the_first():
    gm = generate_dungeon(30, rng_seed=3)
    gs = GameState(existing_map=gm, rng_seed=3)
    ids = gs.spawn_monsters(monster_sight_range=6)
    assert len(ids) == len(gm.rooms) - 1
    reg = gs.entity_registry
    for i, (eid, room) in enumerate(zip(ids, gm.rooms[1:])):
        assert re.fullmatch(rf"(Goblin|Orc) #{i}", reg.get_name(eid))
        assert reg.get_position(eid) == Position(*room.center)
        assert reg.is_hostile(eid)
        assert reg.get_viewshed(eid).range == 6

    again = GameState(existing_map=gm, rng_seed=3)
    again_ids = again.spawn_monsters(monster_sight_range=6)
    assert [reg.get_name(e) for e in ids] == [
        again.entity_registry.get_name(e) for e in again_ids
    ]


def test_single_room_dungeon_end_to_end():
    gm = generate_dungeon(1, rng_seed=77)
    gs = GameState(existing_map=gm, player_fov_radius=8)
    room = gm.rooms[0]
    assert gs.player_position == Position(*room.center)

    gs.advance_turn()
    visible = player_viewshed(gs).visible_tiles
    assert visible
    for x, y in visible:
        assert room.x1 <= x <= room.x2 and room.y1 <= y <= room.y2
    for x, y in room.interior():
        assert gs.is_visible(x, y)
    assert gs.game_map.visible_indices() == gs.game_map.revealed_indices()
    assert gs.tile_at(*room.center) is Tile.FLOOR
    assert gs.dimensions() == (80, 50)
