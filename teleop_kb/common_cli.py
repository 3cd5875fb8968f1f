from dataclasses import dataclass


@dataclass
class CommonCLI:
    robot: str = "so101"
    """Robot preset name, .json config path, or 'module:ATTRIBUTE'."""
    log_level: str = "INFO"
