"""SO101: single fixed arm, six position actuators."""

from teleop_kb.config import ArmConfig, ArmControllerConfig, ArmKeyBindings

SO101_HOME_JOINTS = [0.0158, 2.052, 2.1307, -0.0845, 1.5857, -0.3745]

SO101_CONFIG = ArmControllerConfig(
    num_actuators=6,
    arms=[
        ArmConfig(
            indices=[0, 1, 2, 3, 4, 5],
            keys=ArmKeyBindings(
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
            ),
            initial_joints=SO101_HOME_JOINTS,
        )
    ],
)
