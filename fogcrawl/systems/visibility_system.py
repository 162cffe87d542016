"""Viewshed recomputation for every entity that can see.

Only dirty viewsheds are recomputed.  The player's fresh set is folded into the
map's fog of war; every other entity just keeps its own set for later checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

import structlog

from fogcrawl.world.fov import clamp_to_bounds, compute_fov

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from fogcrawl.game_state import GameState

log = structlog.get_logger(__name__)


def run_visibility(gs: GameState) -> List[int]:
    """Recompute all dirty viewsheds and return the ids that were refreshed."""
    entity_reg = gs.entity_registry
    game_map = gs.game_map
    refreshed: List[int] = []

    for entity_id, viewshed in entity_reg.iter_viewsheds():
        if not viewshed.dirty:
            continue
        pos = entity_reg.get_position(entity_id)
        if pos is None:
            continue

        tiles = compute_fov((pos.x, pos.y), viewshed.range, game_map.transparent)
        viewshed.store(clamp_to_bounds(tiles, game_map.width, game_map.height))
        refreshed.append(entity_id)

        if entity_reg.is_player(entity_id):
            game_map.update_visibility(viewshed.visible_tiles)

        log.debug(
            "Viewshed recomputed",
            entity_id=entity_id,
            pos=(pos.x, pos.y),
            visible_count=len(viewshed.visible_tiles),
        )

    return refreshed
