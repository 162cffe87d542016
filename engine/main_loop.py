# engine/main_loop.py
from enum import Enum, auto
from typing import Any, Dict, List, Self

import structlog

from fogcrawl.game_state import GameState
from fogcrawl.systems.monster_ai_system import ReactionEvent

from . import action_handler
from .input_handler import InputHandler

log = structlog.get_logger()


class RunState(Enum):
    PAUSED = auto()
    RUNNING = auto()


class MainLoop:
    """
    Coordinates turn processing and action handling.

    The loop alternates between two states: while PAUSED it waits for a mapped
    key press; a processed key switches it to RUNNING, and the next tick runs
    the game systems once before pausing again.
    """

    def __init__(self: Self, game_state: GameState, input_handler: InputHandler):
        self.game_state: GameState = game_state
        self.input_handler: InputHandler = input_handler
        # The first tick computes the initial viewsheds
        self.run_state: RunState = RunState.RUNNING
        self.quit_requested: bool = False
        log.info("MainLoop initialized successfully")

    def tick(self: Self) -> List[ReactionEvent]:
        """Run the game systems if a turn is pending."""
        if self.run_state is not RunState.RUNNING:
            return []
        events = self.game_state.advance_turn()
        self.run_state = RunState.PAUSED
        return events

    def handle_key(self: Self, key: str) -> bool:
        """Process a key press while paused. Returns True if it was handled."""
        if self.run_state is not RunState.PAUSED:
            log.debug("Key ignored while running", key=key)
            return False
        action = self.input_handler.get_action_for_key(key)
        if action is None:
            return False
        if action.get("type") == "ui":
            return self._handle_ui_action(action)
        self.handle_action(action)
        self.run_state = RunState.RUNNING
        return True

    def handle_action(self: Self, action: Dict[str, Any]) -> bool:
        """
        Processes an action via the action_handler.
        Returns True if the player acted, False otherwise.
        """
        gs = self.game_state
        try:
            return action_handler.process_player_action(action, gs)
        except Exception as e:
            log.error(
                "Exception during action processing",
                action=action,
                error=str(e),
                exc_info=True,
            )
            gs.add_message("An internal error occurred.")
            return False

    def _handle_ui_action(self: Self, action: Dict[str, Any]) -> bool:
        ui_action = action.get("ui_action")
        if ui_action in ("quit_game", "quit_game_alt"):
            log.info("Quit requested")
            self.quit_requested = True
            return True
        log.warning("Unhandled UI action", ui_action=ui_action)
        return False
