import numpy as np
import mujoco
import mink
from loguru import logger
from typing import Sequence


class MinkSiteIK:
    """
    Differential IK that drags one site toward a target pose.

    Stands in for an interactive gizmo: the target is moved with
    :meth:`set_target`, and while enabled :meth:`step` returns position
    commands for the arm's actuators. Implements the ``IKHandle`` protocol
    so the keyboard controller can take over and hand back the arm.
    """

    def __init__(
        self,
        model: mujoco.MjModel,
        data: mujoco.MjData,
        site_name: str,
        actuator_ids: Sequence[int] | None = None,
        position_cost: float = 1.0,
        orientation_cost: float = 0.1,
        posture_weight: float = 0.01,
        enabled: bool = True,
    ):
        """
        Initialize the site IK.

        Args:
            model: The MuJoCo model.
            data: The live MuJoCo data the engine steps.
            site_name: Site to track.
            actuator_ids: Joint-driven position actuators to command. Defaults to
                every joint-transmission actuator in the model.
            position_cost: Weight of the site position error.
            orientation_cost: Weight of the site orientation error. Kept low by
                default since 5-DOF arms cannot satisfy a full 6-D pose.
            posture_weight: Weight for the posture regularization task.
            enabled: Initial enable flag.
        """
        if mujoco.mj_name2id(model, mujoco.mjtObj.mjOBJ_SITE, site_name) == -1:
            raise ValueError(f"Site '{site_name}' not found in model")

        self.model = model
        self.data = data
        self.site_name = site_name
        self.configuration = mink.Configuration(model)

        self.task = mink.FrameTask(
            frame_name=site_name,
            frame_type="site",
            position_cost=position_cost,
            orientation_cost=orientation_cost,
        )
        self.posture_task = mink.PostureTask(model, cost=posture_weight)
        self.posture_task.set_target(self.configuration.q.copy())
        self.tasks = [self.task, self.posture_task]

        self.dt = model.opt.timestep

        self._qpos_adr: dict[int, int] = {}
        for a in range(model.nu):
            if model.actuator_trntype[a] == mujoco.mjtTrn.mjTRN_JOINT:
                joint_id = model.actuator_trnid[a, 0]
                self._qpos_adr[a] = int(model.jnt_qposadr[joint_id])
        if actuator_ids is None:
            actuator_ids = list(self._qpos_adr)
        for a in actuator_ids:
            if a not in self._qpos_adr:
                raise ValueError(f"Actuator {a} is not driven by a joint transmission")
        self.actuator_ids = list(actuator_ids)

        self._enabled = enabled
        self.target: mink.SE3 = mink.SE3.identity()
        self.sync_target_to_site()

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        if enabled != self._enabled:
            logger.debug(f"[MinkSiteIK] {'Enabled' if enabled else 'Disabled'}")
        self._enabled = enabled

    def sync_target_to_site(self) -> None:
        """Move the target onto the site's current world pose."""
        self.configuration.update(self.data.qpos)
        self.target = self.configuration.get_transform_frame_to_world(
            self.site_name, "site"
        )
        self.task.set_target(self.target)

    def set_target(self, target_matrix: np.ndarray) -> None:
        """Set the target from a 4x4 homogeneous transform."""
        self.target = mink.SE3.from_matrix(target_matrix)
        self.task.set_target(self.target)

    def step(self) -> dict[int, float]:
        """
        Solve one IK increment toward the target.

        Returns:
            Position commands per actuator id, or nothing while disabled.
        """
        if not self._enabled:
            return {}

        self.configuration.update(self.data.qpos)
        try:
            velocity = mink.solve_ik(
                self.configuration,
                self.tasks,
                self.dt,
                solver="daqp",
            )
        except Exception as e:
            # Hold pose
            logger.warning(f"[MinkSiteIK] IK solve failed: {e}")
            return {}
        new_q = self.configuration.integrate(velocity, self.dt)
        return {a: float(new_q[self._qpos_adr[a]]) for a in self.actuator_ids}
