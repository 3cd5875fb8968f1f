"""
Closed-form kinematics for a planar two-link (shoulder/elbow) arm.

Both functions work in the arm's sagittal plane: ``x`` points forward from
the shoulder axis and ``y`` points up. Joint values are actuator angles,
i.e. they include the linkage's mechanical zero offsets.
"""

import math
from typing import Tuple

from teleop_kb.config import LinkageParams, SO101_LINKAGE


def _clamp(value: float, bounds: Tuple[float, float]) -> float:
    return max(bounds[0], min(bounds[1], value))


def inverse_kinematics_2link(
    x: float, y: float, params: LinkageParams = SO101_LINKAGE
) -> Tuple[float, float]:
    """
    Solve shoulder and elbow angles that place the wrist at ``(x, y)``.

    Unreachable targets are projected radially onto the reachable annulus
    before solving. A target exactly at the origin is passed through
    unscaled. The returned angles are clamped to the linkage's joint ranges,
    so the result may not reproduce the request when a limit is hit.

    Args:
        x: Forward coordinate of the target (m).
        y: Upward coordinate of the target (m).
        params: Linkage geometry.

    Returns:
        Tuple of ``(joint2, joint3)`` actuator angles in radians.
    """
    l1, l2 = params.l1, params.l2

    r = math.hypot(x, y)
    r_max = params.r_max
    r_min = params.r_min

    if r > r_max:
        s = r_max / r
        x *= s
        y *= s
        r = r_max
    elif 0 < r < r_min:
        s = r_min / r
        x *= s
        y *= s
        r = r_min

    cos_theta2 = -(r * r - l1 * l1 - l2 * l2) / (2 * l1 * l2)
    # acos is undefined outside [-1, 1]; rounding at full reach can overshoot
    theta2 = math.pi - math.acos(max(-1.0, min(1.0, cos_theta2)))

    beta = math.atan2(y, x)
    gamma = math.atan2(l2 * math.sin(theta2), l1 + l2 * math.cos(theta2))
    theta1 = beta + gamma

    joint2 = _clamp(theta1 + params.theta1_offset, params.joint2_range)
    joint3 = _clamp(theta2 + params.theta2_offset, params.joint3_range)
    return joint2, joint3


def forward_kinematics_2link(
    joint2: float, joint3: float, params: LinkageParams = SO101_LINKAGE
) -> Tuple[float, float]:
    """
    Wrist position for the given shoulder and elbow actuator angles.

    Inverse of :func:`inverse_kinematics_2link` when no clamping occurred.
    """
    l1, l2 = params.l1, params.l2

    theta1 = joint2 - params.theta1_offset
    theta2 = joint3 - params.theta2_offset

    r = math.sqrt(l1 * l1 + l2 * l2 + 2 * l1 * l2 * math.cos(theta2))
    gamma = math.atan2(l2 * math.sin(theta2), l1 + l2 * math.cos(theta2))
    beta = theta1 - gamma

    return r * math.cos(beta), r * math.sin(beta)
