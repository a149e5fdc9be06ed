"""
Mount helper option composition and path derivation.

Provides:
- compose_options: Ordered sshfs option tokens for a target
- local_path / remote_path: Derived mount point and remote spec
- mount_command / unmount_command: Full helper argument vectors

Paths are always derived from the ConfigModel, never stored:

    local  = <Basedir>/<Localdir or key>
    remote = [<User>@]<key>:<Remotedir or .>
"""
from __future__ import annotations

import logging
from pathlib import Path

from autosshfs.config import ConfigModel, HostEntry

log = logging.getLogger("autosshfs.options")

MOUNT_HELPER = "sshfs"
UNMOUNT_HELPER = "fusermount"

# Always passed first: compression, follow and rewrite symlinks, reconnect
BASELINE_OPTIONS: tuple[str, ...] = (
    "-C",
    "-o", "follow_symlinks",
    "-o", "transform_symlinks",
    "-o", "reconnect",
)

# Directives that make no sense as sshfs -o options, or would break it
EXCLUDED_DIRECTIVES = frozenset({
    "autosshfs",
    "host",
    "hostname",
    "localcommand",
    "localforward",
    "remoteforward",
    "dynamicforward",
})


def _entry(config: ConfigModel, key: str) -> HostEntry:
    entry = config.get(key)
    if entry is None:
        log.debug("No Host entry for %s; no per-host options", key)
        return HostEntry(key=key)
    return entry


def compose_options(config: ConfigModel, key: str) -> list[str]:
    """
    Build the ordered sshfs option tokens for a target.

    The baseline comes first, then one "-o Name=value" pair per plain
    directive of the target, sorted by name, skipping EXCLUDED_DIRECTIVES.

    Args:
        config: Parsed config
        key: Target host key

    Returns:
        Option tokens, without the remote spec and mount point
    """
    options = list(BASELINE_OPTIONS)
    entry = _entry(config, key)

    for name in sorted(entry.directives):
        if name.lower() in EXCLUDED_DIRECTIVES:
            continue
        options += ["-o", f"{name}={entry.directives[name]}"]

    return options


def local_path(config: ConfigModel, key: str) -> Path:
    """Mount point of a target: <Basedir>/<Localdir or key>."""
    entry = config.get(key)
    localdir = entry.get_custom("Localdir") if entry else None
    return Path(config.basedir) / (localdir or key)


def remote_path(config: ConfigModel, key: str) -> str:
    """Remote spec of a target: [<User>@]<key>:<Remotedir or .>."""
    entry = config.get(key)
    user = entry.get("User") if entry else None
    remotedir = entry.get_custom("Remotedir") if entry else None

    prefix = f"{user}@" if user else ""
    return f"{prefix}{key}:{remotedir or '.'}"


def mount_command(
    config: ConfigModel,
    key: str,
    helper: str = MOUNT_HELPER,
) -> list[str]:
    """Full mount helper invocation for a target."""
    return [
        helper,
        *compose_options(config, key),
        remote_path(config, key),
        str(local_path(config, key)),
    ]


def unmount_command(
    config: ConfigModel,
    key: str,
    helper: str = UNMOUNT_HELPER,
) -> list[str]:
    """Forced (lazy) unmount of a target's mount point."""
    return [helper, "-u", "-z", str(local_path(config, key))]
