"""
XLeRobot: differential-drive base, two SO101-style arms and a pan/tilt head.

Actuator layout (16):
``[forward, turn, L_rot, L_pitch, L_elbow, L_wrist_pitch, L_wrist_roll, L_jaw,
R_rot, R_pitch, R_elbow, R_wrist_pitch, R_wrist_roll, R_jaw, head_pan, head_tilt]``
"""

from teleop_kb.config import (
    ArmConfig,
    ArmControllerConfig,
    BaseConfig,
    BaseKeyBindings,
    HeadConfig,
    HeadKeyBindings,
)

XLEROBOT_HOME_JOINTS = [
    0.0, 0.0,
    1.5708, 1.5785, 1.5777, 0.0008, 1.57, -0.25,
    -1.5708, 1.5785, 1.5777, 0.0008, 1.57, -0.25,
    0.0, 0.0,
]  # fmt: skip

XLEROBOT_CONFIG = ArmControllerConfig(
    num_actuators=16,
    base=BaseConfig(
        indices=(0, 1),
        keys=BaseKeyBindings(forward="KeyW", back="KeyS", turn_left="KeyA", turn_right="KeyD"),
        speed=1.0,
    ),
    arms=[
        ArmConfig(
            indices=[2, 3, 4, 5, 6, 7],
            keys=["Digit7", "KeyY", "Digit9", "KeyI", "Digit8", "KeyU",
                  "Digit0", "KeyO", "Minus", "KeyP", "KeyV"],  # fmt: skip
            initial_joints=XLEROBOT_HOME_JOINTS[2:8],
        ),
        ArmConfig(
            indices=[8, 9, 10, 11, 12, 13],
            keys=["KeyH", "KeyN", "KeyK", "Comma", "KeyJ", "KeyM",
                  "KeyL", "Period", "Semicolon", "Slash", "KeyB"],  # fmt: skip
            initial_joints=XLEROBOT_HOME_JOINTS[8:14],
        ),
    ],
    head=HeadConfig(
        indices=(14, 15),
        keys=HeadKeyBindings(pan_pos="KeyR", pan_neg="KeyT", tilt_pos="KeyF", tilt_neg="KeyG"),
    ),
)
