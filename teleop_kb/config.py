import math
from typing import Any, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Per-step increments (rad / m per physics step, not time-scaled)
JOINT_STEP = 0.01
EE_STEP = 0.001
PITCH_STEP = 0.012
HEAD_STEP = JOINT_STEP * 2

DEFAULT_TIP_LENGTH = 0.108
DEFAULT_GRIPPER_OPEN = 1.5
DEFAULT_GRIPPER_CLOSED = -0.25
DEFAULT_BASE_SPEED = 1.0
INITIAL_EE: Tuple[float, float] = (0.162, 0.118)

# Slots of an arm's actuator list
ROTATION_SLOT = 0
SHOULDER_SLOT = 1
ELBOW_SLOT = 2
WRIST_PITCH_SLOT = 3
WRIST_ROLL_SLOT = 4
MIN_ARM_ACTUATORS = 6


class LinkageParams(BaseModel):
    """Geometry of a planar upper-arm/forearm linkage.

    Attributes:
        l1: Upper arm length (m).
        l2: Forearm length (m).
        theta1_offset: Shoulder zero-position skew (rad).
        theta2_offset: Elbow zero-position skew (rad).
        joint2_range: Shoulder actuator clamp ``(min, max)``.
        joint3_range: Elbow actuator clamp ``(min, max)``.
    """

    model_config = ConfigDict(frozen=True)

    l1: float = Field(gt=0)
    l2: float = Field(gt=0)
    theta1_offset: float = 0.0
    theta2_offset: float = 0.0
    joint2_range: Tuple[float, float] = (-math.pi, math.pi)
    joint3_range: Tuple[float, float] = (-math.pi, math.pi)

    @field_validator("joint2_range", "joint3_range")
    @classmethod
    def _ordered(cls, v: Tuple[float, float]) -> Tuple[float, float]:
        if v[0] > v[1]:
            raise ValueError(f"range min must not exceed max, got {v}")
        return v

    @property
    def r_max(self) -> float:
        return self.l1 + self.l2

    @property
    def r_min(self) -> float:
        return abs(self.l1 - self.l2)


SO101_LINKAGE = LinkageParams(
    l1=0.1159,
    l2=0.1350,
    theta1_offset=math.atan2(0.028, 0.11257),
    theta2_offset=math.atan2(0.0052, 0.1349) + math.atan2(0.028, 0.11257),
    joint2_range=(-0.1, 3.45),
    joint3_range=(-0.2, math.pi),
)


def _from_code_list(data: Any, fields: List[str]) -> Any:
    """Accept an ordered list of key codes in place of named fields."""
    if isinstance(data, (list, tuple)):
        if len(data) != len(fields):
            raise ValueError(
                f"expected {len(fields)} key bindings ({', '.join(fields)}), got {len(data)}"
            )
        return dict(zip(fields, data))
    return data


class ArmKeyBindings(BaseModel):
    model_config = ConfigDict(frozen=True)

    rotate_pos: str
    rotate_neg: str
    ee_x_pos: str
    ee_x_neg: str
    ee_y_pos: str
    ee_y_neg: str
    pitch_pos: str
    pitch_neg: str
    roll_pos: str
    roll_neg: str
    gripper: str

    @model_validator(mode="before")
    @classmethod
    def _accept_list(cls, data: Any) -> Any:
        return _from_code_list(data, list(cls.model_fields))

    @property
    def motion_keys(self) -> Tuple[str, ...]:
        """Every binding except the gripper toggle."""
        return (
            self.rotate_pos,
            self.rotate_neg,
            self.ee_x_pos,
            self.ee_x_neg,
            self.ee_y_pos,
            self.ee_y_neg,
            self.pitch_pos,
            self.pitch_neg,
            self.roll_pos,
            self.roll_neg,
        )


class BaseKeyBindings(BaseModel):
    model_config = ConfigDict(frozen=True)

    forward: str
    back: str
    turn_left: str
    turn_right: str

    @model_validator(mode="before")
    @classmethod
    def _accept_list(cls, data: Any) -> Any:
        return _from_code_list(data, list(cls.model_fields))


class HeadKeyBindings(BaseModel):
    model_config = ConfigDict(frozen=True)

    pan_pos: str
    pan_neg: str
    tilt_pos: str
    tilt_neg: str

    @model_validator(mode="before")
    @classmethod
    def _accept_list(cls, data: Any) -> Any:
        return _from_code_list(data, list(cls.model_fields))


class ArmConfig(BaseModel):
    """One arm: ``[rotation, shoulder, elbow, wrist pitch, wrist roll, ..., gripper]``."""

    model_config = ConfigDict(frozen=True)

    indices: List[int] = Field(min_length=MIN_ARM_ACTUATORS)
    keys: ArmKeyBindings
    initial_joints: Optional[List[float]] = None
    initial_rotation: float = 0.0
    initial_roll: float = 0.0
    linkage: LinkageParams = SO101_LINKAGE
    tip_length: float = DEFAULT_TIP_LENGTH
    gripper_open: float = DEFAULT_GRIPPER_OPEN
    gripper_closed: float = DEFAULT_GRIPPER_CLOSED

    @property
    def gripper_slot(self) -> int:
        return len(self.indices) - 1


class BaseConfig(BaseModel):
    """Mobile base drive: ``indices = [linear, angular]``."""

    model_config = ConfigDict(frozen=True)

    indices: Tuple[int, int]
    keys: BaseKeyBindings
    speed: float = DEFAULT_BASE_SPEED


class HeadConfig(BaseModel):
    """Head: ``indices = [pan, tilt]``."""

    model_config = ConfigDict(frozen=True)

    indices: Tuple[int, int]
    keys: HeadKeyBindings


class ArmControllerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    num_actuators: int = Field(gt=0)
    base: Optional[BaseConfig] = None
    arms: List[ArmConfig] = Field(default_factory=list)
    head: Optional[HeadConfig] = None

    @model_validator(mode="after")
    def _check_indices(self) -> "ArmControllerConfig":
        claimed: List[int] = []
        if self.base is not None:
            claimed.extend(self.base.indices)
        for arm in self.arms:
            claimed.extend(arm.indices)
        if self.head is not None:
            claimed.extend(self.head.indices)

        for idx in claimed:
            if not 0 <= idx < self.num_actuators:
                raise ValueError(
                    f"actuator index {idx} outside [0, {self.num_actuators})"
                )
        duplicates = sorted({i for i in claimed if claimed.count(i) > 1})
        if duplicates:
            raise ValueError(f"actuator indices claimed more than once: {duplicates}")
        return self
