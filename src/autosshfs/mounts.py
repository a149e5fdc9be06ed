"""
Mount-state oracle backed by the kernel mount table.

The mount table is the only source of truth for "is this target mounted";
autosshfs keeps no state of its own. Every query re-reads the table.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from autosshfs.errors import ResourceUnavailableError
from autosshfs.platform import MOUNT_TABLE_PATH

log = logging.getLogger("autosshfs.mounts")


def _source_of(record: str) -> str:
    """First field of a mount record: the remote spec for sshfs mounts."""
    parts = record.split(None, 1)
    return parts[0] if parts else ""


def references_target(record: str, key: str) -> bool:
    """True if a mount record's source is a user@<key>: remote spec."""
    return f"@{key}:" in _source_of(record)


class MountTable:
    """
    Read-only view of the live mount table.

    Usage:
        table = MountTable()
        if table.is_mounted("db1"):
            ...
    """

    def __init__(self, path: Path | str = MOUNT_TABLE_PATH) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def records(self) -> list[str]:
        """
        Read all records from the mount table.

        Raises:
            ResourceUnavailableError: If the table cannot be read
        """
        try:
            with open(self._path, "r", encoding="utf-8", errors="replace") as f:
                return [line.rstrip("\n") for line in f if line.strip()]
        except OSError as e:
            raise ResourceUnavailableError(
                f"Cannot read mount table {self._path}: {e.strerror or e}",
                path=str(self._path),
            ) from e

    def is_mounted(self, key: str) -> bool:
        """True iff some mount record's source contains @<key>:."""
        return any(references_target(record, key) for record in self.records())

    def list_mounted(self, keys: Iterable[str]) -> list[str]:
        """
        Records that reference any of the given target keys.

        Mount-table order is preserved.
        """
        keys = list(keys)
        return [
            record for record in self.records()
            if any(references_target(record, key) for key in keys)
        ]
