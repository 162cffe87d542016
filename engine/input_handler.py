# engine/input_handler.py
"""
Maps raw key names to game actions based on the keybindings config.

Bindings are grouped in named sets (``player_turn``, ``common``); each entry
carries the bound ``key`` and an ``action_type`` of ``move`` (with ``dx`` and
``dy``), ``action`` or ``ui``.
"""
from typing import Any, Dict, List

import structlog

log = structlog.get_logger(__name__)

DEFAULT_BINDING_SETS: List[str] = ["player_turn", "common"]

KEY_ALIASES: Dict[str, str] = {
    "esc": "escape",
    "return": "enter",
    ".": "period",
}


def normalize_key(key_str: str | None) -> str | None:
    """Single characters compare case-insensitively, names by lowercase."""
    if not key_str:
        return None
    if key_str == " ":
        return "space"
    key = key_str.strip()
    if not key:
        return None
    key = key.lower()
    return KEY_ALIASES.get(key, key)


class InputHandler:
    """Translates key names into action dictionaries."""

    def __init__(self, keybindings_config: Dict[str, Any]):
        self.keybindings_config: Dict[str, Any] = keybindings_config
        log.debug(
            "InputHandler initialized.",
            binding_sets=list(keybindings_config.get("bindings", {}).keys()),
        )

    def get_action_for_key(
        self,
        key: str,
        active_keybinding_sets: List[str] | None = None,
    ) -> Dict[str, Any] | None:
        """Finds the action dictionary corresponding to a key press."""
        wanted = normalize_key(key)
        if wanted is None:
            return None
        bindings = self.keybindings_config.get("bindings", {})
        for set_name in active_keybinding_sets or DEFAULT_BINDING_SETS:
            binding_set = bindings.get(set_name)
            if not binding_set or not isinstance(binding_set, dict):
                continue
            for action_name, binding_data in binding_set.items():
                if not isinstance(binding_data, dict):
                    continue
                if normalize_key(binding_data.get("key")) != wanted:
                    continue
                action_type: str | None = binding_data.get("action_type")
                if action_type == "move":
                    return {
                        "type": "move",
                        "dx": int(binding_data.get("dx", 0)),
                        "dy": int(binding_data.get("dy", 0)),
                    }
                elif action_type == "action":
                    return {"type": action_name}
                elif action_type == "ui":
                    return {"type": "ui", "ui_action": action_name}
                else:
                    log.warning(
                        "Unknown action_type in keybinding",
                        action_name=action_name,
                        type=action_type,
                    )
                    return None
        log.debug("Unbound key", key=key)
        return None
