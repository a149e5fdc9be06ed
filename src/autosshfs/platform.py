"""
Path handling and environment interpolation.

Provides:
- Default locations (SSH config, base mount directory, mount table)
- Whole-segment $NAME substitution used by custom directives
"""
from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping

APP_NAME = "autosshfs"

# /proc/mounts lists every active mount, one record per line
MOUNT_TABLE_PATH = Path("/proc/mounts")

_ENV_SEGMENT_RE = re.compile(r"^\$([A-Za-z_][A-Za-z0-9_]*)$")


def get_home() -> Path:
    """Get the invoking user's home directory."""
    return Path.home()


def get_ssh_dir() -> Path:
    """
    Get the SSH directory.

    Returns:
        ~/.ssh
    """
    return get_home() / ".ssh"


def get_config_path() -> Path:
    """
    Get the default SSH config file path.

    Returns:
        Path to ~/.ssh/config
    """
    return get_ssh_dir() / "config"


def get_default_basedir() -> str:
    """Base directory used when the generic host sets no Basedir."""
    return str(get_home() / APP_NAME)


def substitute_env(value: str, environ: Mapping[str, str] | None = None) -> str:
    """
    Replace path segments of the form $NAME with environment values.

    The value is split on "/" and each segment is examined on its own. A
    segment is replaced only when it is exactly "$NAME"; "a$b" or "$A$B"
    stay untouched, as do segments naming unset variables.

    Args:
        value: Raw directive value
        environ: Environment mapping (defaults to os.environ)

    Returns:
        The substituted value
    """
    if environ is None:
        environ = os.environ

    segments = []
    for segment in value.split("/"):
        match = _ENV_SEGMENT_RE.match(segment)
        if match and match.group(1) in environ:
            segment = environ[match.group(1)]
        segments.append(segment)

    return "/".join(segments)
