"""
Pytest fixtures for autosshfs tests.

Provides:
- Config file factory writing SSH configs into tmp_path
- Fake mount table file that tests (and fake helpers) can edit
- Recording fake launcher/runner standing in for sshfs and fusermount
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import pytest

from autosshfs.mounts import MountTable


def sshfs_record(remote: str, mountpoint: str) -> str:
    """A /proc/mounts line as written for an sshfs mount."""
    return f"{remote} {mountpoint} fuse.sshfs rw,nosuid,nodev,relatime,user_id=1000 0 0"


BASE_RECORDS = [
    "proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0",
    "/dev/sda1 / ext4 rw,relatime 0 0",
]


class FakeMountTable:
    """A mount table file under tmp_path with helpers to edit it."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.write_text("\n".join(BASE_RECORDS) + "\n")

    def add(self, remote: str, mountpoint: str | Path) -> None:
        with open(self.path, "a") as f:
            f.write(sshfs_record(remote, str(mountpoint)) + "\n")

    def remove(self, mountpoint: str | Path) -> None:
        lines = self.path.read_text().splitlines()
        kept = [line for line in lines if line.split()[1] != str(mountpoint)]
        self.path.write_text("\n".join(kept) + "\n")

    def table(self) -> MountTable:
        return MountTable(self.path)


@dataclass
class HelperRecorder:
    """
    Stands in for sshfs and fusermount.

    Records every command. When `effective` is set, mount commands add a
    record to the fake mount table and unmount commands remove it.
    """
    mounts: FakeMountTable
    effective: bool = True
    launched: list[list[str]] = field(default_factory=list)
    ran: list[list[str]] = field(default_factory=list)

    def launch(self, cmd: list[str]) -> None:
        self.launched.append(cmd)
        if self.effective:
            self.mounts.add(cmd[-2], cmd[-1])

    def run(self, cmd: list[str]) -> int:
        self.ran.append(cmd)
        if self.effective:
            self.mounts.remove(cmd[-1])
            return 0
        return 1


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Factory writing SSH config text to a file and returning its path."""

    def _write(text: str, name: str = "config") -> Path:
        path = tmp_path / name
        path.write_text(text)
        return path

    return _write


@pytest.fixture
def basedir(tmp_path: Path) -> Path:
    return tmp_path / "mnt"


@pytest.fixture
def fake_mounts(tmp_path: Path) -> FakeMountTable:
    return FakeMountTable(tmp_path / "mounts")


@pytest.fixture
def helpers(fake_mounts: FakeMountTable) -> HelperRecorder:
    return HelperRecorder(mounts=fake_mounts)
