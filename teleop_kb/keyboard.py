"""Held-key tracking for keyboard teleoperation.

Key events arrive on a listener thread and are folded into a ``KeyState``.
The control loop reads one ``snapshot()`` per physics step, so a step never
observes a half-applied update. Keys are identified by platform key codes
(``"KeyW"``, ``"Digit7"``, ``"Comma"``, ...).
"""

import threading
from typing import Any

from teleop_kb.config import ArmControllerConfig

_PUNCTUATION_CODES = {
    "-": "Minus",
    "=": "Equal",
    ",": "Comma",
    ".": "Period",
    ";": "Semicolon",
    "/": "Slash",
    "'": "Quote",
    "`": "Backquote",
    "[": "BracketLeft",
    "]": "BracketRight",
    "\\": "Backslash",
    " ": "Space",
}

_SPECIAL_CODES = {
    "space": "Space",
    "enter": "Enter",
    "tab": "Tab",
    "backspace": "Backspace",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "shift": "ShiftLeft",
    "shift_r": "ShiftRight",
    "ctrl": "ControlLeft",
    "ctrl_l": "ControlLeft",
    "ctrl_r": "ControlRight",
    "alt": "AltLeft",
    "alt_l": "AltLeft",
    "alt_r": "AltRight",
}


def key_to_code(key: Any) -> str | None:
    """
    Translate a pynput key object into a platform key code.

    Character keys carry ``char``; special keys carry ``name``.

    Returns:
        The key code, or None for keys without a mapping.
    """
    char = getattr(key, "char", None)
    if char:
        c = char.lower()
        if len(c) == 1 and "a" <= c <= "z":
            return f"Key{c.upper()}"
        if len(c) == 1 and c.isdigit():
            return f"Digit{c}"
        return _PUNCTUATION_CODES.get(c)
    name = getattr(key, "name", None)
    if name:
        return _SPECIAL_CODES.get(name)
    return None


class KeyState:
    """Thread-safe table of currently held keys."""

    def __init__(self) -> None:
        self._held: dict[str, bool] = {}
        self._lock = threading.Lock()

    def press(self, code: str) -> None:
        with self._lock:
            self._held[code] = True

    def release(self, code: str) -> None:
        with self._lock:
            self._held[code] = False

    def clear(self) -> None:
        """Forget every held key (focus loss, listener shutdown)."""
        with self._lock:
            self._held = {}

    def is_held(self, code: str) -> bool:
        with self._lock:
            return self._held.get(code, False)

    def snapshot(self) -> dict[str, bool]:
        """Copy of the held-key table for one control step."""
        with self._lock:
            return dict(self._held)

    def on_press(self, key: Any) -> None:
        code = key_to_code(key)
        if code is not None:
            self.press(code)

    def on_release(self, key: Any) -> None:
        code = key_to_code(key)
        if code is not None:
            self.release(code)


def describe_bindings(config: ArmControllerConfig) -> list[str]:
    """Human-readable key help for a robot configuration."""
    lines: list[str] = []
    if config.base is not None:
        b = config.base.keys
        lines.append(f"{b.forward}/{b.back}: Drive forward/back")
        lines.append(f"{b.turn_left}/{b.turn_right}: Turn left/right")
    for i, arm in enumerate(config.arms):
        k = arm.keys
        prefix = f"Arm {i}" if len(config.arms) > 1 else "Arm"
        lines.append(f"{k.rotate_pos}/{k.rotate_neg}: {prefix} shoulder rotate")
        lines.append(f"{k.ee_x_pos}/{k.ee_x_neg}: {prefix} forward/back")
        lines.append(f"{k.ee_y_pos}/{k.ee_y_neg}: {prefix} up/down")
        lines.append(f"{k.pitch_pos}/{k.pitch_neg}: {prefix} wrist pitch")
        lines.append(f"{k.roll_pos}/{k.roll_neg}: {prefix} wrist roll")
        lines.append(f"{k.gripper}: {prefix} toggle gripper")
    if config.head is not None:
        h = config.head.keys
        lines.append(f"{h.pan_pos}/{h.pan_neg}: Head pan")
        lines.append(f"{h.tilt_pos}/{h.tilt_neg}: Head tilt")
    return lines
