# engine/action_handler.py
"""
Handles processing of player actions, validating them against game rules
and triggering the matching game state change.
"""
from typing import Any, Dict

import structlog

from fogcrawl.game_state import GameState

log = structlog.get_logger(__name__)


def _handle_player_move(dx: int, dy: int, gs: GameState) -> bool:
    """
    Attempts to move the player entity based on dx, dy.
    Returns True if the player moved.
    """
    player_pos = gs.player_position
    if player_pos is None:
        log.warning("Move failed: Player pos not found", player_id=gs.player_id)
        return False

    moved = gs.request_move(gs.player_id, dx, dy)
    if not moved:
        gs.add_message("That way is blocked.")
    return moved


def _handle_wait(gs: GameState) -> bool:
    log.debug("Player waits", turn=gs.turn_count)
    return True


def process_player_action(action: Dict[str, Any], gs: GameState) -> bool:
    """
    Dispatches a player action.
    Returns True if the action was carried out.
    """
    action_type = action.get("type")
    log.debug("Processing player action", action=action)

    if action_type == "move":
        return _handle_player_move(int(action.get("dx", 0)), int(action.get("dy", 0)), gs)
    if action_type == "wait":
        return _handle_wait(gs)

    log.warning("Unknown action type", action_type=action_type)
    return False
