from dataclasses import dataclass, field
from typing import Mapping, Sequence

import numpy as np
from loguru import logger

from teleop_kb.config import (
    EE_STEP,
    ELBOW_SLOT,
    HEAD_STEP,
    INITIAL_EE,
    JOINT_STEP,
    PITCH_STEP,
    ROTATION_SLOT,
    SHOULDER_SLOT,
    WRIST_PITCH_SLOT,
    WRIST_ROLL_SLOT,
    ArmConfig,
    ArmControllerConfig,
    BaseConfig,
    HeadConfig,
)
from teleop_kb.ik.handle import IKHandle
from teleop_kb.ik.two_link import forward_kinematics_2link, inverse_kinematics_2link

KeySnapshot = Mapping[str, bool]
Commands = dict[int, float]


@dataclass
class ArmState:
    """Mutable per-arm teleoperation state.

    Attributes:
        target_joints: Commanded angle per actuator slot; the last slot is the gripper.
        ee_pos: End-effector cursor ``[x, y]`` in the linkage plane. May be
            unreachable; IK projects it onto the reachable annulus.
        pitch: Wrist pitch relative to the forearm (rad).
        gripper_open: Gripper latch.
        gripper_key_was_down: Gripper key state on the previous step.
        control_active: Whether the keyboard currently owns the arm pose.
        ik_was_enabled: External IK enable flag captured when the keyboard took over.
    """

    target_joints: np.ndarray
    ee_pos: np.ndarray = field(default_factory=lambda: np.array(INITIAL_EE))
    pitch: float = 0.0
    gripper_open: bool = False
    gripper_key_was_down: bool = False
    control_active: bool = False
    ik_was_enabled: bool = False

    @classmethod
    def from_config(cls, arm: ArmConfig) -> "ArmState":
        """Build the home state of an arm from its configuration."""
        target = np.zeros(len(arm.indices))
        ee_pos = np.array(INITIAL_EE)
        pitch = 0.0

        if arm.initial_joints is not None:
            joints = arm.initial_joints
            n = min(len(joints), len(target))
            target[:n] = joints[:n]
            if len(joints) >= 3:
                ee_pos = np.array(
                    forward_kinematics_2link(joints[1], joints[2], arm.linkage)
                )
            if len(joints) >= 4:
                pitch = joints[3] - joints[1] + joints[2]
        else:
            j2, j3 = inverse_kinematics_2link(INITIAL_EE[0], INITIAL_EE[1], arm.linkage)
            target[ROTATION_SLOT] = arm.initial_rotation
            target[SHOULDER_SLOT] = j2
            target[ELBOW_SLOT] = j3
            target[WRIST_PITCH_SLOT] = j2 - j3
            target[WRIST_ROLL_SLOT] = arm.initial_roll
            target[arm.gripper_slot] = arm.gripper_closed

        return cls(target_joints=target, ee_pos=ee_pos, pitch=pitch)


@dataclass
class BaseState:
    """Whether the linear / angular drive was commanded on the previous step."""

    prev_active: list[bool] = field(default_factory=lambda: [False, False])


@dataclass
class HeadState:
    """Open-loop pan/tilt accumulator."""

    angles: np.ndarray = field(default_factory=lambda: np.zeros(2))


class ArmController:
    """
    Keyboard teleoperation for arms, a mobile base and a head.

    Called once per physics step with a snapshot of held keys and the
    current actuator commands; returns the commands to write for that step.

    Each arm is either idle (an external IK component or a static hold owns
    its pose) or keyboard-active. Taking control re-reads the arm's current
    commands so there is no jump, and disables the external IK if it was
    enabled. Releasing every motion key re-syncs and re-enables it.
    """

    config: ArmControllerConfig
    ik: IKHandle | None
    arm_states: list[ArmState]
    base_state: BaseState
    head_state: HeadState

    def __init__(self, config: ArmControllerConfig, ik: IKHandle | None = None):
        """
        Initialize the controller.

        Args:
            config: Robot teleoperation configuration.
            ik: Optional external IK handle shared by the arms.
        """
        self.config = config
        self.ik = ik
        self._init_states()
        logger.info(
            f"[ArmController] {len(config.arms)} arm(s), "
            f"base={'yes' if config.base else 'no'}, "
            f"head={'yes' if config.head else 'no'}, "
            f"external IK={'yes' if ik is not None else 'no'}"
        )

    def _init_states(self) -> None:
        self.arm_states = [ArmState.from_config(arm) for arm in self.config.arms]
        self.base_state = BaseState()
        self.head_state = HeadState()

    def reset(self) -> None:
        """Restore every arm, the base and the head to their home state.

        Arms under keyboard control are released first, so an external IK
        that was switched off on takeover is re-synced and re-enabled.
        """
        for arm, state in zip(self.config.arms, self.arm_states):
            if state.control_active:
                self._release_control(arm, state)
        self._init_states()
        logger.info("[ArmController] Reset triggered")

    def initial_commands(self) -> Commands:
        """Home-pose commands for every arm actuator."""
        commands: Commands = {}
        for arm, state in zip(self.config.arms, self.arm_states):
            for slot, idx in enumerate(arm.indices):
                commands[idx] = float(state.target_joints[slot])
        return commands

    def step(self, keys: KeySnapshot, ctrl: Sequence[float]) -> Commands:
        """
        Run one control step.

        Args:
            keys: Held-key snapshot, key code to pressed flag. Missing keys are not held.
            ctrl: Current actuator commands, indexed by actuator id. Only read.

        Returns:
            Actuator commands issued this step, actuator id to value.
        """
        commands: Commands = {}
        if self.config.base is not None:
            self._step_base(self.config.base, keys, commands)
        for arm, state in zip(self.config.arms, self.arm_states):
            self._step_arm(arm, state, keys, ctrl, commands)
        if self.config.head is not None:
            self._step_head(self.config.head, keys, commands)
        return commands

    def _step_base(self, base: BaseConfig, keys: KeySnapshot, commands: Commands) -> None:
        bs = self.base_state
        b = base.keys
        linear, angular = base.indices

        if keys.get(b.forward):
            commands[linear] = -base.speed
            bs.prev_active[0] = True
        elif keys.get(b.back):
            commands[linear] = base.speed
            bs.prev_active[0] = True
        elif bs.prev_active[0]:
            commands[linear] = 0.0
            bs.prev_active[0] = False

        if keys.get(b.turn_left):
            commands[angular] = base.speed
            bs.prev_active[1] = True
        elif keys.get(b.turn_right):
            commands[angular] = -base.speed
            bs.prev_active[1] = True
        elif bs.prev_active[1]:
            commands[angular] = 0.0
            bs.prev_active[1] = False

    def _take_control(self, arm: ArmConfig, s: ArmState, ctrl: Sequence[float]) -> None:
        """Re-sync the arm state from whatever last commanded the actuators."""
        for slot, idx in enumerate(arm.indices):
            s.target_joints[slot] = ctrl[idx]
        t = s.target_joints
        s.ee_pos[:] = forward_kinematics_2link(
            t[SHOULDER_SLOT], t[ELBOW_SLOT], arm.linkage
        )
        s.pitch = float(t[WRIST_PITCH_SLOT] - t[SHOULDER_SLOT] + t[ELBOW_SLOT])

        s.ik_was_enabled = self.ik.is_enabled() if self.ik is not None else False
        if s.ik_was_enabled:
            self.ik.set_enabled(False)
        s.control_active = True
        logger.debug(
            f"[ArmController] Keyboard took arm {arm.indices}: "
            f"ee={s.ee_pos.tolist()} pitch={s.pitch:.4f} ik_was_enabled={s.ik_was_enabled}"
        )

    def _release_control(self, arm: ArmConfig, s: ArmState) -> None:
        if s.ik_was_enabled and self.ik is not None:
            self.ik.sync_target_to_site()
            self.ik.set_enabled(True)
        s.control_active = False
        logger.debug(f"[ArmController] Keyboard released arm {arm.indices}")

    def _step_arm(
        self,
        arm: ArmConfig,
        s: ArmState,
        keys: KeySnapshot,
        ctrl: Sequence[float],
        commands: Commands,
    ) -> None:
        k = arm.keys
        any_motion_key = any(keys.get(code) for code in k.motion_keys)

        if any_motion_key and not s.control_active:
            self._take_control(arm, s, ctrl)
        elif not any_motion_key and s.control_active:
            self._release_control(arm, s)

        t = s.target_joints
        if keys.get(k.rotate_pos):
            t[ROTATION_SLOT] += JOINT_STEP
        if keys.get(k.rotate_neg):
            t[ROTATION_SLOT] -= JOINT_STEP

        if keys.get(k.ee_x_pos):
            s.ee_pos[0] += EE_STEP
        if keys.get(k.ee_x_neg):
            s.ee_pos[0] -= EE_STEP
        if keys.get(k.ee_y_pos):
            s.ee_pos[1] += EE_STEP
        if keys.get(k.ee_y_neg):
            s.ee_pos[1] -= EE_STEP

        if keys.get(k.pitch_pos):
            s.pitch += PITCH_STEP
        if keys.get(k.pitch_neg):
            s.pitch -= PITCH_STEP

        if keys.get(k.roll_pos):
            t[WRIST_ROLL_SLOT] += JOINT_STEP * 3
        if keys.get(k.roll_neg):
            t[WRIST_ROLL_SLOT] -= JOINT_STEP * 3

        # Toggle on key-down only
        gripper_down = bool(keys.get(k.gripper))
        if gripper_down and not s.gripper_key_was_down:
            s.gripper_open = not s.gripper_open
            t[arm.gripper_slot] = arm.gripper_open if s.gripper_open else arm.gripper_closed
        s.gripper_key_was_down = gripper_down

        comp_y = s.ee_pos[1] + arm.tip_length * np.sin(s.pitch)
        j2, j3 = inverse_kinematics_2link(float(s.ee_pos[0]), float(comp_y), arm.linkage)
        t[SHOULDER_SLOT] = j2
        t[ELBOW_SLOT] = j3
        t[WRIST_PITCH_SLOT] = j2 - j3 + s.pitch

        if s.control_active:
            for slot, idx in enumerate(arm.indices):
                commands[idx] = float(t[slot])
        # The gripper is never driven by external IK
        commands[arm.indices[arm.gripper_slot]] = float(t[arm.gripper_slot])

    def _step_head(self, head: HeadConfig, keys: KeySnapshot, commands: Commands) -> None:
        hs = self.head_state.angles
        h = head.keys

        if keys.get(h.pan_pos):
            hs[0] += HEAD_STEP
        if keys.get(h.pan_neg):
            hs[0] -= HEAD_STEP
        if keys.get(h.tilt_pos):
            hs[1] += HEAD_STEP
        if keys.get(h.tilt_neg):
            hs[1] -= HEAD_STEP

        commands[head.indices[0]] = float(hs[0])
        commands[head.indices[1]] = float(hs[1])
