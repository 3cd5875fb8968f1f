import importlib
import os

from teleop_kb.config import ArmControllerConfig
from teleop_kb.robots import PRESETS


class RobotLoadError(Exception):
    """Custom exception for robot configuration loading errors."""

    pass


def load_robot_config(robot_spec: str | None = None) -> ArmControllerConfig:
    """
    Resolve a robot teleoperation configuration.

    Precedence:
    1. If robot_spec is None, return the SO101 preset.
    2. If robot_spec names a built-in preset, return it.
    3. If robot_spec ends with '.json', validate the file as an ArmControllerConfig.
    4. If robot_spec contains ':', parse as 'module:ATTRIBUTE'.
    5. Otherwise, raise RobotLoadError.

    Args:
        robot_spec: The robot specification string or None.

    Returns:
        ArmControllerConfig: The resolved configuration.

    Raises:
        RobotLoadError: If the configuration cannot be loaded or is invalid.
    """
    if robot_spec is None:
        return PRESETS["so101"]

    if robot_spec in PRESETS:
        return PRESETS[robot_spec]

    if robot_spec.endswith(".json"):
        if not os.path.exists(robot_spec):
            raise RobotLoadError(f"Robot config file not found: '{robot_spec}'")
        with open(robot_spec) as f:
            content = f.read()
        try:
            return ArmControllerConfig.model_validate_json(content)
        except ValueError as e:
            raise RobotLoadError(
                f"Invalid robot config in '{robot_spec}': {e}"
            ) from e

    if ":" in robot_spec:
        module_name, attr_name = robot_spec.split(":", 1)
        try:
            module = importlib.import_module(module_name)
            config = getattr(module, attr_name)
        except (ImportError, AttributeError) as e:
            raise RobotLoadError(
                f"Failed to load robot config from spec '{robot_spec}': {e}"
            ) from e
        if not isinstance(config, ArmControllerConfig):
            raise RobotLoadError(
                f"'{attr_name}' in module '{module_name}' is not an ArmControllerConfig"
            )
        return config

    raise RobotLoadError(
        f"Invalid robot specification: '{robot_spec}'. Must be a preset name "
        f"({', '.join(sorted(PRESETS))}), a .json file or 'module:ATTRIBUTE' format."
    )


def list_available_robots() -> list[str]:
    """Return the names of the built-in robot presets."""
    return sorted(PRESETS)
