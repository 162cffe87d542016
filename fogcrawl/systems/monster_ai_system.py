"""Basic monster reactions.

A hostile entity whose freshly computed viewshed contains the player's tile
reacts.  The reaction is an observation only: an event is emitted and logged,
nothing else changes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, NamedTuple

import structlog

if TYPE_CHECKING:  # pragma: no cover - imported for type checking only
    from fogcrawl.game_state import GameState

log = structlog.get_logger(__name__)


class ReactionEvent(NamedTuple):
    entity_id: int
    label: str


def run_monster_ai(gs: GameState, refreshed_ids: Iterable[int]) -> List[ReactionEvent]:
    """Check the hostiles refreshed this turn against the player's position."""
    entity_reg = gs.entity_registry
    events: List[ReactionEvent] = []

    player_pos = gs.player_position
    if player_pos is None:
        log.warning("Cannot run monster AI: Player position not found.")
        return events

    for entity_id in refreshed_ids:
        if entity_id == gs.player_id or not entity_reg.is_hostile(entity_id):
            continue
        viewshed = entity_reg.get_viewshed(entity_id)
        if viewshed is None or not viewshed.can_see(player_pos.x, player_pos.y):
            continue
        label = entity_reg.get_name(entity_id) or f"Entity {entity_id}"
        events.append(ReactionEvent(entity_id, label))
        log.info(f"{label}: Shouts insults", entity_id=entity_id)

    return events
