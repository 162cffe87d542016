"""Movement helper utilities.

This module exposes the single movement rule of the game: an entity may step
onto any in-bounds tile that is not a wall.  A successful step updates the
position in the :class:`EntityRegistry` and marks the mover's viewshed dirty so
the next turn recomputes what it can see.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from fogcrawl.entities.components import Position

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from fogcrawl.game_state import GameState

log = structlog.get_logger(__name__)


def try_move(entity_id: int, dx: int, dy: int, gs: GameState) -> bool:
    """Attempt to move an entity.

    Parameters
    ----------
    entity_id:
        The identifier of the entity to move.
    dx, dy:
        Delta values to apply to the entity's current position.
    gs:
        The active :class:`~fogcrawl.game_state.GameState` instance which
        contains the map and entity registry.

    Returns
    -------
    bool
        ``True`` if the movement succeeded, ``False`` otherwise.  A rejected
        move changes nothing: the position stays put and the viewshed keeps
        its current dirty flag.
    """

    entity_reg = gs.entity_registry
    game_map = gs.game_map

    current_pos = entity_reg.get_position(entity_id)
    if current_pos is None:
        log.debug("Move rejected: entity not found", entity_id=entity_id)
        return False

    x, y = current_pos
    dest_x, dest_y = x + dx, y + dy
    log_context = {"entity_id": entity_id, "from_pos": (x, y), "to_pos": (dest_x, dest_y)}

    if not game_map.in_bounds(dest_x, dest_y):
        log.debug("Move rejected: out of bounds", **log_context)
        return False

    if not game_map.is_walkable(dest_x, dest_y):
        log.debug("Move rejected: blocked tile", **log_context)
        return False

    moved = entity_reg.set_position(entity_id, Position(dest_x, dest_y))
    if moved:
        viewshed = entity_reg.get_viewshed(entity_id)
        if viewshed is not None:
            viewshed.mark_dirty()
        log.debug("Entity moved", **log_context)
    return moved
