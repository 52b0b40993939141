"""
The seven accessibility settings stored per site, with their defaults.
"""

from typing import Any

CONFIG_DEFAULTS: dict[str, Any] = {
    "cursor_mode_enabled": False,
    "cursor_speed": 10,
    "scroll_speed": 10,
    "accessibility_profile": "standard",
    "enter_hold_ms": 1000,
    "exit_hold_ms": 800,
    "click_cooldown_ms": 300,
}

# Only these keys may be written through an update; everything else is dropped.
UPDATABLE_FIELDS: frozenset[str] = frozenset(CONFIG_DEFAULTS)


def default_config() -> dict[str, Any]:
    return dict(CONFIG_DEFAULTS)


def normalize_config(row: dict[str, Any]) -> dict[str, Any]:
    """
    Project a stored config row onto the seven fields.
    Null or missing values read as their default; False and 0 are kept.
    """
    return {
        field: row.get(field) if row.get(field) is not None else default
        for field, default in CONFIG_DEFAULTS.items()
    }


def filter_updates(updates: dict[str, Any]) -> dict[str, Any]:
    """Keep whitelisted keys only. Values pass through unchanged, None included."""
    return {key: value for key, value in updates.items() if key in UPDATABLE_FIELDS}
