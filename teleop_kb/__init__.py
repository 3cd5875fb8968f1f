"""
Keyboard teleoperation for simulated robot arms.

Per physics step, turns held keys into actuator commands for one or more
planar-IK arms, a mobile base and a pan/tilt head, handing each arm back and
forth with an optional external IK component without a pose jump.
"""

from teleop_kb.config import (
    ArmConfig,
    ArmControllerConfig,
    ArmKeyBindings,
    BaseConfig,
    BaseKeyBindings,
    HeadConfig,
    HeadKeyBindings,
    LinkageParams,
    SO101_LINKAGE,
)
from teleop_kb.controller import ArmController, ArmState
from teleop_kb.keyboard import KeyState

__version__ = "0.1.0"

__all__ = [
    "ArmConfig",
    "ArmController",
    "ArmControllerConfig",
    "ArmKeyBindings",
    "ArmState",
    "BaseConfig",
    "BaseKeyBindings",
    "HeadConfig",
    "HeadKeyBindings",
    "KeyState",
    "LinkageParams",
    "SO101_LINKAGE",
]
