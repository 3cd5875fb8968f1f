import sys
import time
from dataclasses import dataclass
from typing import Optional

import mujoco
import mujoco.viewer
import tyro
from loguru import logger

from teleop_kb.common_cli import CommonCLI
from teleop_kb.config import ArmControllerConfig
from teleop_kb.controller import ArmController
from teleop_kb.ik.model_loader import load_model
from teleop_kb.keyboard import KeyState, describe_bindings
from teleop_kb.loader import list_available_robots, load_robot_config


@dataclass
class SimCLI(CommonCLI):
    model: Optional[str] = None
    """MJCF scene whose actuators match the robot configuration."""
    viewer: bool = True
    duration: Optional[float] = None
    """Simulated seconds to run; unlimited when the viewer is open."""
    ik_site: Optional[str] = None
    """Site tracked by a mink IK handle handed to the controller."""
    ik_arm: int = 0
    """Arm whose actuators the mink IK drives."""
    list_robots: bool = False


def list_robots_or_exit() -> None:
    logger.info("Available robots:")
    for name in list_available_robots():
        logger.info(f"  {name}")
    sys.exit(0)


def apply_commands(data: mujoco.MjData, commands: dict[int, float]) -> None:
    for idx, value in commands.items():
        data.ctrl[idx] = value


def seed_pose(
    model: mujoco.MjModel, data: mujoco.MjData, commands: dict[int, float]
) -> None:
    """Write home commands and place joint-driven actuators' joints at them."""
    apply_commands(data, commands)
    for idx, value in commands.items():
        if model.actuator_trntype[idx] == mujoco.mjtTrn.mjTRN_JOINT:
            joint_id = model.actuator_trnid[idx, 0]
            data.qpos[model.jnt_qposadr[joint_id]] = value
    mujoco.mj_forward(model, data)


def check_model(model: mujoco.MjModel, config: ArmControllerConfig) -> None:
    if model.nu < config.num_actuators:
        raise ValueError(
            f"Model has {model.nu} actuators but the robot config needs {config.num_actuators}"
        )


def physics_step(
    controller: ArmController,
    keys: KeyState,
    model: mujoco.MjModel,
    data: mujoco.MjData,
    ik=None,
) -> None:
    """Keyboard commands, then external IK commands, then one physics step."""
    apply_commands(data, controller.step(keys.snapshot(), data.ctrl))
    if ik is not None:
        apply_commands(data, ik.step())
    mujoco.mj_step(model, data)


def start_listener(keys: KeyState):
    try:
        from pynput import keyboard
    except ImportError as exc:
        raise ImportError(
            "pynput required for keyboard capture: pip install 'teleop-kb[sim]'"
        ) from exc
    listener = keyboard.Listener(on_press=keys.on_press, on_release=keys.on_release)
    listener.start()
    return listener


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        colorize=True,
        format="<green>{time:HH:mm:ss.SSS}</green> <level>{message}</level>",
        level=level,
    )


def main():
    cli = tyro.cli(SimCLI)
    configure_logging(cli.log_level)
    if cli.list_robots:
        list_robots_or_exit()

    if cli.model is None:
        logger.error("--model is required (an MJCF scene for the selected robot)")
        sys.exit(1)
    if not cli.viewer and cli.duration is None:
        logger.error("--duration is required with --no-viewer")
        sys.exit(1)

    config = load_robot_config(cli.robot)
    model = load_model(cli.model)
    check_model(model, config)
    data = mujoco.MjData(model)

    controller = ArmController(config)
    ik = None
    seed_pose(model, data, controller.initial_commands())

    if cli.ik_site is not None:
        from teleop_kb.ik.mink_ik import MinkSiteIK

        arm_indices = config.arms[cli.ik_arm].indices
        # The gripper stays with the keyboard controller
        ik = MinkSiteIK(
            model, data, cli.ik_site, actuator_ids=arm_indices[:-1]
        )
        controller.ik = ik

    keys = KeyState()
    listener = start_listener(keys)
    for line in describe_bindings(config):
        logger.info(line)

    viewer = None
    if cli.viewer:
        viewer = mujoco.viewer.launch_passive(model, data)

    try:
        while True:
            if viewer is not None and not viewer.is_running():
                break
            if cli.duration is not None and data.time >= cli.duration:
                break
            step_start = time.time()
            physics_step(controller, keys, model, data, ik)
            if viewer is not None:
                viewer.sync()
                remaining = model.opt.timestep - (time.time() - step_start)
                if remaining > 0:
                    time.sleep(remaining)
    except KeyboardInterrupt:
        pass
    finally:
        # Global hook: no focus events, so held keys are dropped only here
        listener.stop()
        keys.clear()
        if viewer is not None:
            viewer.close()
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
