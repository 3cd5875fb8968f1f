"""
Inverse Kinematics (IK) module for keyboard teleoperation.

Main components:
- inverse_kinematics_2link / forward_kinematics_2link: closed-form planar
  shoulder/elbow kinematics used by the keyboard path.
- IKHandle: protocol for an external IK component the keyboard path hands
  control to and from.
- MinkSiteIK (``teleop_kb.ik.mink_ik``): mink-based site tracking that
  implements IKHandle for MuJoCo scenes. Imported separately since it
  pulls in mink.

Example:
    ```python
    from teleop_kb.ik import inverse_kinematics_2link, forward_kinematics_2link

    joint2, joint3 = inverse_kinematics_2link(0.162, 0.118)
    x, y = forward_kinematics_2link(joint2, joint3)
    ```
"""

from teleop_kb.ik.handle import IKHandle
from teleop_kb.ik.two_link import forward_kinematics_2link, inverse_kinematics_2link

__all__ = ["IKHandle", "forward_kinematics_2link", "inverse_kinematics_2link"]
