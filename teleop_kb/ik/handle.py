from typing import Protocol, runtime_checkable


@runtime_checkable
class IKHandle(Protocol):
    """
    Capability exposed by an external IK component (e.g. a drag gizmo).

    The keyboard controller disables it while it owns an arm and hands the
    arm back by re-syncing the target to the arm's current site pose before
    re-enabling it.
    """

    def is_enabled(self) -> bool: ...
    def set_enabled(self, enabled: bool) -> None: ...
    def sync_target_to_site(self) -> None: ...
