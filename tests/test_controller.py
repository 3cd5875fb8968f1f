import numpy as np
import pytest
from loguru import logger

from teleop_kb.config import (
    DEFAULT_GRIPPER_CLOSED,
    DEFAULT_GRIPPER_OPEN,
    DEFAULT_TIP_LENGTH,
    EE_STEP,
    HEAD_STEP,
    INITIAL_EE,
    JOINT_STEP,
    PITCH_STEP,
    SO101_LINKAGE,
    ArmConfig,
    ArmControllerConfig,
    ArmKeyBindings,
    BaseConfig,
    BaseKeyBindings,
    HeadConfig,
    HeadKeyBindings,
)
from teleop_kb.controller import ArmController, ArmState
from teleop_kb.ik.handle import IKHandle
from teleop_kb.ik.two_link import forward_kinematics_2link, inverse_kinematics_2link
from teleop_kb.robots import SO101_CONFIG, XLEROBOT_CONFIG

ARM_KEYS = ArmKeyBindings(
    rotate_pos="KeyD",
    rotate_neg="KeyA",
    ee_x_pos="KeyW",
    ee_x_neg="KeyS",
    ee_y_pos="KeyQ",
    ee_y_neg="KeyE",
    pitch_pos="KeyR",
    pitch_neg="KeyF",
    roll_pos="KeyZ",
    roll_neg="KeyC",
    gripper="KeyV",
)

# Pose left behind by an external IK gizmo
EXTERNAL_POSE = np.array([0.1, 1.9, 2.0, 0.2, 1.0, 0.0])


class FakeIK:
    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.calls: list[tuple] = []

    def is_enabled(self) -> bool:
        return self.enabled

    def set_enabled(self, enabled: bool) -> None:
        self.calls.append(("set_enabled", enabled))
        self.enabled = enabled

    def sync_target_to_site(self) -> None:
        self.calls.append(("sync_target_to_site",))


def single_arm_config(**arm_kwargs) -> ArmControllerConfig:
    return ArmControllerConfig(
        num_actuators=6,
        arms=[ArmConfig(indices=[0, 1, 2, 3, 4, 5], keys=ARM_KEYS, **arm_kwargs)],
    )


def mobile_config() -> ArmControllerConfig:
    return ArmControllerConfig(
        num_actuators=10,
        base=BaseConfig(
            indices=(0, 1),
            keys=BaseKeyBindings(
                forward="ArrowUp",
                back="ArrowDown",
                turn_left="ArrowLeft",
                turn_right="ArrowRight",
            ),
            speed=2.0,
        ),
        arms=[ArmConfig(indices=[2, 3, 4, 5, 6, 7], keys=ARM_KEYS)],
        head=HeadConfig(
            indices=(8, 9),
            keys=HeadKeyBindings(
                pan_pos="KeyI", pan_neg="KeyK", tilt_pos="KeyJ", tilt_neg="KeyL"
            ),
        ),
    )


def test_fake_ik_satisfies_protocol():
    assert isinstance(FakeIK(), IKHandle)


class TestInitialState:
    def test_default_pose_from_inverse_kinematics(self):
        controller = ArmController(single_arm_config(initial_rotation=0.4, initial_roll=-0.7))
        s = controller.arm_states[0]
        j2, j3 = inverse_kinematics_2link(*INITIAL_EE, SO101_LINKAGE)
        np.testing.assert_allclose(
            s.target_joints, [0.4, j2, j3, j2 - j3, -0.7, DEFAULT_GRIPPER_CLOSED]
        )
        np.testing.assert_allclose(s.ee_pos, INITIAL_EE)
        assert s.pitch == 0.0
        assert s.gripper_open is False
        assert s.control_active is False

    def test_initial_joints_back_derive_cursor(self):
        joints = [0.0158, 2.052, 2.1307, -0.0845, 1.5857, -0.3745]
        s = ArmState.from_config(single_arm_config(initial_joints=joints).arms[0])
        np.testing.assert_allclose(s.target_joints, joints)
        np.testing.assert_allclose(
            s.ee_pos, forward_kinematics_2link(2.052, 2.1307, SO101_LINKAGE)
        )
        assert s.pitch == pytest.approx(-0.0845 - 2.052 + 2.1307)

    def test_short_initial_joints(self):
        s = ArmState.from_config(single_arm_config(initial_joints=[0.3, 1.0]).arms[0])
        np.testing.assert_allclose(s.target_joints, [0.3, 1.0, 0.0, 0.0, 0.0, 0.0])
        np.testing.assert_allclose(s.ee_pos, INITIAL_EE)
        assert s.pitch == 0.0

    def test_initial_commands_cover_every_arm_slot(self):
        controller = ArmController(XLEROBOT_CONFIG)
        commands = controller.initial_commands()
        assert sorted(commands) == list(range(2, 14))
        assert commands[2] == pytest.approx(1.5708)
        assert commands[8] == pytest.approx(-1.5708)
        assert commands[7] == pytest.approx(-0.25)


class TestIdle:
    def test_only_gripper_written_while_idle(self):
        controller = ArmController(SO101_CONFIG)
        ctrl = np.zeros(6)
        for _ in range(3):
            commands = controller.step({}, ctrl)
            assert commands == {5: pytest.approx(-0.3745)}

    def test_idle_arm_still_solves_ik(self):
        controller = ArmController(single_arm_config())
        s = controller.arm_states[0]
        s.ee_pos[:] = (0.15, 0.05)
        s.pitch = 0.25
        controller.step({}, np.zeros(6))
        j2, j3 = inverse_kinematics_2link(
            0.15, 0.05 + DEFAULT_TIP_LENGTH * np.sin(0.25), SO101_LINKAGE
        )
        assert s.target_joints[1] == pytest.approx(j2)
        assert s.target_joints[2] == pytest.approx(j3)
        assert s.target_joints[3] == pytest.approx(j2 - j3 + 0.25)

    def test_unrelated_keys_do_not_activate(self):
        controller = ArmController(single_arm_config())
        controller.step({"KeyX": True, "KeyW": False}, np.zeros(6))
        assert controller.arm_states[0].control_active is False


class TestGripper:
    def test_toggles_once_per_press(self):
        controller = ArmController(single_arm_config())
        ctrl = np.zeros(6)
        s = controller.arm_states[0]

        for _ in range(4):
            commands = controller.step({"KeyV": True}, ctrl)
            assert s.gripper_open is True
            assert commands[5] == DEFAULT_GRIPPER_OPEN

        commands = controller.step({}, ctrl)
        assert s.gripper_open is True
        assert commands[5] == DEFAULT_GRIPPER_OPEN

        commands = controller.step({"KeyV": True}, ctrl)
        assert s.gripper_open is False
        assert commands[5] == DEFAULT_GRIPPER_CLOSED

    def test_custom_gripper_angles(self):
        controller = ArmController(single_arm_config(gripper_open=0.9, gripper_closed=0.1))
        commands = controller.step({"KeyV": True}, np.zeros(6))
        assert commands[5] == 0.9

    def test_gripper_alone_does_not_take_control(self):
        ik = FakeIK()
        controller = ArmController(single_arm_config(), ik=ik)
        commands = controller.step({"KeyV": True}, np.zeros(6))
        assert controller.arm_states[0].control_active is False
        assert ik.calls == []
        assert list(commands) == [5]


class TestHandoff:
    def test_take_control_resyncs_from_current_commands(self):
        ik = FakeIK(enabled=True)
        controller = ArmController(single_arm_config(), ik=ik)
        s = controller.arm_states[0]

        commands = controller.step({"KeyD": True}, EXTERNAL_POSE.copy())

        assert s.control_active is True
        assert s.ik_was_enabled is True
        assert ik.calls == [("set_enabled", False)]
        np.testing.assert_allclose(
            s.ee_pos, forward_kinematics_2link(1.9, 2.0, SO101_LINKAGE)
        )
        assert s.pitch == pytest.approx(0.2 - 1.9 + 2.0)
        assert sorted(commands) == [0, 1, 2, 3, 4, 5]
        assert commands[0] == pytest.approx(0.1 + JOINT_STEP)
        assert commands[4] == pytest.approx(1.0)
        assert commands[5] == pytest.approx(0.0)

    def test_release_restores_external_ik_once(self):
        ik = FakeIK(enabled=True)
        controller = ArmController(single_arm_config(), ik=ik)
        ctrl = EXTERNAL_POSE.copy()

        controller.step({"KeyW": True}, ctrl)
        controller.step({"KeyW": True}, ctrl)
        assert ik.calls == [("set_enabled", False)]

        commands = controller.step({}, ctrl)
        assert controller.arm_states[0].control_active is False
        assert ik.calls == [
            ("set_enabled", False),
            ("sync_target_to_site",),
            ("set_enabled", True),
        ]
        assert list(commands) == [5]

        controller.step({}, ctrl)
        controller.step({}, ctrl)
        assert len(ik.calls) == 3

    def test_disabled_ik_stays_disabled(self):
        ik = FakeIK(enabled=False)
        controller = ArmController(single_arm_config(), ik=ik)
        controller.step({"KeyQ": True}, EXTERNAL_POSE.copy())
        controller.step({}, EXTERNAL_POSE.copy())
        assert ik.calls == []
        assert ik.enabled is False

    def test_without_ik_handle(self):
        controller = ArmController(single_arm_config())
        commands = controller.step({"KeyQ": True}, EXTERNAL_POSE.copy())
        assert controller.arm_states[0].ik_was_enabled is False
        assert len(commands) == 6
        controller.step({}, EXTERNAL_POSE.copy())
        assert controller.arm_states[0].control_active is False

    def test_second_session_rereads_commands(self):
        controller = ArmController(single_arm_config())
        controller.step({"KeyD": True}, EXTERNAL_POSE.copy())
        controller.step({}, EXTERNAL_POSE.copy())

        moved = EXTERNAL_POSE.copy()
        moved[0] = -0.5
        commands = controller.step({"KeyD": True}, moved)
        assert commands[0] == pytest.approx(-0.5 + JOINT_STEP)

    def test_handoff_logged(self):
        logs = []
        handler_id = logger.add(lambda msg: logs.append(msg), level="DEBUG")
        try:
            controller = ArmController(single_arm_config())
            controller.step({"KeyD": True}, EXTERNAL_POSE.copy())
            controller.step({}, EXTERNAL_POSE.copy())
        finally:
            logger.remove(handler_id)
        assert any("Keyboard took arm" in str(m) for m in logs)
        assert any("Keyboard released arm" in str(m) for m in logs)


class TestIncrements:
    def _active(self):
        controller = ArmController(single_arm_config())
        ctrl = EXTERNAL_POSE.copy()
        controller.step({"KeyD": True}, ctrl)
        return controller, ctrl, controller.arm_states[0]

    def test_cursor_moves_fixed_step(self):
        controller, ctrl, s = self._active()
        start = s.ee_pos.copy()
        for _ in range(5):
            controller.step({"KeyW": True, "KeyE": True}, ctrl)
        assert s.ee_pos[0] == pytest.approx(start[0] + 5 * EE_STEP)
        assert s.ee_pos[1] == pytest.approx(start[1] - 5 * EE_STEP)

    def test_pitch_and_roll(self):
        controller, ctrl, s = self._active()
        pitch = s.pitch
        roll = s.target_joints[4]
        for _ in range(3):
            controller.step({"KeyR": True, "KeyC": True}, ctrl)
        assert s.pitch == pytest.approx(pitch + 3 * PITCH_STEP)
        assert s.target_joints[4] == pytest.approx(roll - 3 * 3 * JOINT_STEP)

    def test_opposing_keys_cancel(self):
        controller, ctrl, s = self._active()
        start = s.ee_pos.copy()
        controller.step({"KeyW": True, "KeyS": True}, ctrl)
        np.testing.assert_allclose(s.ee_pos, start)

    def test_wrist_pitch_relative_to_forearm(self):
        controller, ctrl, s = self._active()
        commands = controller.step({"KeyR": True}, ctrl)
        assert commands[3] == pytest.approx(commands[1] - commands[2] + s.pitch)


class TestBase:
    def test_drive_and_zero_once(self):
        controller = ArmController(mobile_config())
        ctrl = np.zeros(10)

        commands = controller.step({"ArrowUp": True}, ctrl)
        assert commands[0] == -2.0
        commands = controller.step({"ArrowDown": True}, ctrl)
        assert commands[0] == 2.0

        commands = controller.step({}, ctrl)
        assert commands[0] == 0.0
        for _ in range(3):
            commands = controller.step({}, ctrl)
            assert 0 not in commands

    def test_turn(self):
        controller = ArmController(mobile_config())
        ctrl = np.zeros(10)
        assert controller.step({"ArrowLeft": True}, ctrl)[1] == 2.0
        assert controller.step({"ArrowRight": True}, ctrl)[1] == -2.0
        assert controller.step({}, ctrl)[1] == 0.0
        assert 1 not in controller.step({}, ctrl)

    def test_forward_wins_over_back(self):
        controller = ArmController(mobile_config())
        commands = controller.step({"ArrowUp": True, "ArrowDown": True}, np.zeros(10))
        assert commands[0] == -2.0

    def test_axes_are_independent(self):
        controller = ArmController(mobile_config())
        ctrl = np.zeros(10)
        controller.step({"ArrowUp": True}, ctrl)
        commands = controller.step({"ArrowLeft": True}, ctrl)
        assert commands[0] == 0.0
        assert commands[1] == 2.0
        assert controller.base_state.prev_active == [False, True]


class TestHead:
    def test_pan_tilt_integrate_and_always_write(self):
        controller = ArmController(mobile_config())
        ctrl = np.zeros(10)
        for _ in range(3):
            controller.step({"KeyI": True, "KeyL": True}, ctrl)
        commands = controller.step({}, ctrl)
        assert commands[8] == pytest.approx(3 * HEAD_STEP)
        assert commands[9] == pytest.approx(-3 * HEAD_STEP)

    def test_head_unclamped(self):
        controller = ArmController(mobile_config())
        ctrl = np.zeros(10)
        for _ in range(500):
            commands = controller.step({"KeyI": True}, ctrl)
        assert commands[8] == pytest.approx(500 * HEAD_STEP)


class TestMultiArm:
    def test_arms_are_independent(self):
        ik = FakeIK()
        controller = ArmController(XLEROBOT_CONFIG, ik=ik)
        ctrl = np.zeros(16)
        commands = controller.step({"Digit7": True}, ctrl)
        left, right = controller.arm_states
        assert left.control_active is True
        assert right.control_active is False
        assert all(i in commands for i in range(2, 8))
        assert not any(i in commands for i in range(8, 13))
        assert 13 in commands

    def test_shared_base_keys(self):
        controller = ArmController(XLEROBOT_CONFIG)
        commands = controller.step({"KeyW": True}, np.zeros(16))
        assert commands[0] == -1.0
        assert controller.arm_states[0].control_active is False


def test_reset_restores_home():
    controller = ArmController(mobile_config())
    ctrl = np.zeros(10)
    home = controller.arm_states[0].target_joints.copy()
    for _ in range(5):
        controller.step({"KeyW": True, "KeyI": True, "ArrowUp": True}, ctrl)
    controller.reset()
    s = controller.arm_states[0]
    np.testing.assert_allclose(s.target_joints, home)
    np.testing.assert_allclose(s.ee_pos, INITIAL_EE)
    assert s.control_active is False
    assert controller.base_state.prev_active == [False, False]
    np.testing.assert_allclose(controller.head_state.angles, [0.0, 0.0])


def test_reset_while_active_hands_arm_back_to_ik():
    ik = FakeIK(enabled=True)
    controller = ArmController(single_arm_config(), ik=ik)
    ctrl = EXTERNAL_POSE.copy()

    controller.step({"KeyW": True}, ctrl)
    assert ik.enabled is False

    controller.reset()
    assert ik.calls == [
        ("set_enabled", False),
        ("sync_target_to_site",),
        ("set_enabled", True),
    ]
    for _ in range(3):
        controller.step({}, ctrl)
    assert ik.enabled is True
    assert len(ik.calls) == 3


def test_reset_while_idle_leaves_ik_alone():
    ik = FakeIK(enabled=True)
    controller = ArmController(single_arm_config(), ik=ik)
    controller.reset()
    assert ik.calls == []
