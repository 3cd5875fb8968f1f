"""Built-in robot teleoperation presets, keyed by name."""

from teleop_kb.config import ArmControllerConfig
from teleop_kb.robots.so101 import SO101_CONFIG
from teleop_kb.robots.xlerobot import XLEROBOT_CONFIG

PRESETS: dict[str, ArmControllerConfig] = {
    "so101": SO101_CONFIG,
    "xlerobot": XLEROBOT_CONFIG,
}

__all__ = ["PRESETS", "SO101_CONFIG", "XLEROBOT_CONFIG"]
