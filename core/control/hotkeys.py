"""core/control/hotkeys.py — Parse hotkey strings into modifiers and a key.

Format: ``"mod+mod key"``, modifiers joined by ``+``, one space, then the
key. A single token is a key pressed without modifiers.

    "ctrl+shift a"   → (("ctrl", "shift"), "a")
    "alt f4"         → (("alt",), "f4")
    "audio_vol_up"   → ((), "audio_vol_up")
"""

from __future__ import annotations

from core.control.errors import ControlConfigError

MODIFIER_ALIASES: dict[str, str] = {
    "control": "ctrl",
    "ctrl": "ctrl",
    "shift": "shift",
    "alt": "alt",
    "option": "alt",
    "cmd": "cmd",
    "command": "cmd",
    "win": "cmd",
    "super": "cmd",
}


def parse_hotkey(keys: str) -> tuple[tuple[str, ...], str]:
    """Split a hotkey string.

    Args:
        keys: Hotkey string, e.g. ``"ctrl+shift a"``.

    Returns:
        ``(modifiers, key)`` with modifiers normalized to
        ``ctrl`` / ``shift`` / ``alt`` / ``cmd``.

    Raises:
        ControlConfigError: On empty input, unknown modifiers, or more than
            two space-separated parts.
    """
    parts = keys.split()
    if not parts:
        raise ControlConfigError("hotkey string is empty")
    if len(parts) == 1:
        return (), parts[0].lower()
    if len(parts) > 2:
        raise ControlConfigError(f"hotkey {keys!r} must look like 'mod+mod key'")

    mods_part, key = parts
    modifiers: list[str] = []
    for raw in mods_part.split("+"):
        name = MODIFIER_ALIASES.get(raw.lower())
        if name is None:
            raise ControlConfigError(f"unknown modifier {raw!r} in hotkey {keys!r}")
        modifiers.append(name)
    return tuple(modifiers), key.lower()
