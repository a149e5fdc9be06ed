"""
Target resolution for connect, disconnect and reconnect.

Expands the ALL_TARGETS sentinel into a concrete, sorted target list,
applying Excludefromall and the Promptforall confirmation gate. Explicit
target lists pass through untouched.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Sequence, Union

from autosshfs.config import ConfigModel
from autosshfs.errors import PolicyViolationError
from autosshfs.mounts import MountTable

log = logging.getLogger("autosshfs.targets")


class Mode(str, Enum):
    """Bulk operation being resolved for; the value is the prompt verb."""
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    RECONNECT = "reconnect"


class _AllTargets:
    """Sentinel type for "every configured target"."""

    def __repr__(self) -> str:
        return "ALL_TARGETS"


ALL_TARGETS = _AllTargets()

Requested = Union[Sequence[str], _AllTargets]
ConfirmCallback = Callable[[str], bool]


def _never_confirm(verb: str) -> bool:
    return False


def resolve_targets(
    config: ConfigModel,
    requested: Requested,
    mode: Mode,
    interactive: bool,
    mount_table: MountTable | None = None,
    confirm: ConfirmCallback | None = None,
) -> list[str]:
    """
    Resolve the targets an operation applies to.

    Args:
        config: Parsed config
        requested: Explicit target keys, or ALL_TARGETS
        mode: Operation the list is resolved for
        interactive: Whether a confirmation prompt can be shown
        mount_table: Mount table, needed for Mode.RECONNECT with ALL_TARGETS
        confirm: Called with the mode verb; returns True to proceed

    Returns:
        Target keys in processing order. An empty list means there is
        nothing to do, including when the user declined the prompt.

    Raises:
        PolicyViolationError: Promptforall is set but interactive is False
        ResourceUnavailableError: The mount table cannot be read
    """
    if not isinstance(requested, _AllTargets):
        return list(requested)

    targets = config.targets()

    if mode is Mode.RECONNECT:
        table = mount_table if mount_table is not None else MountTable()
        targets = [key for key in targets if table.is_mounted(key)]

    resolved = []
    for key in targets:
        if config.hosts[key].custom_flag("Excludefromall"):
            log.debug("Excluding %s from all-targets %s", key, mode.value)
            continue
        resolved.append(key)

    if config.generic.custom_flag("Promptforall"):
        if not interactive:
            raise PolicyViolationError(
                "all-targets operations require interactive confirmation "
                "(Promptforall is set)",
                mode=mode.value,
            )
        if not (confirm or _never_confirm)(mode.value):
            log.info("All-targets %s declined", mode.value)
            return []

    return resolved
