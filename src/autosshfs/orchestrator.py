"""
Connect, disconnect and reconnect orchestration.

Provides:
- Outcome / TargetStatus / BatchReport: Per-target results of a batch
- SettleWait: Fixed-delay wait before mount states are re-checked
- Orchestrator: Idempotent per-target operations over a target list

State per target, as seen in the mount table:

    unmounted --connect--> (helper launched) --settle--> mounted | failed
    mounted --disconnect--> (unmount helper) --> unmounted | failed

Operations are best effort: a failing target is reported and the batch
carries on with the next one. Nothing is retried automatically.
"""
from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from autosshfs.config import ConfigModel
from autosshfs.errors import ResourceUnavailableError
from autosshfs.events import EventEmitter, EventType
from autosshfs.mounts import MountTable
from autosshfs.options import (
    MOUNT_HELPER,
    UNMOUNT_HELPER,
    local_path,
    mount_command,
    remote_path,
    unmount_command,
)

log = logging.getLogger("autosshfs.orchestrator")

DEFAULT_SETTLE_DELAY_SEC = 5.0


class Outcome(str, Enum):
    """Result of one action on one target."""
    ALREADY_MOUNTED = "already_mounted"
    NOT_MOUNTED = "not_mounted"
    LAUNCHED = "launched"
    DUPLICATE = "duplicate"
    MOUNTED = "mounted"
    UNMOUNTED = "unmounted"
    FAILED = "failed"


@dataclass
class TargetStatus:
    """Outcome of a connect or disconnect action for a single target."""
    target: str
    action: str
    outcome: Outcome
    detail: str | None = None

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED

    def describe(self) -> str:
        text = f"{self.action} {self.target}: {self.outcome.value.replace('_', ' ')}"
        if self.detail:
            text += f" ({self.detail})"
        return text


@dataclass
class BatchReport:
    """Statuses of a batch operation, in processing order."""
    statuses: list[TargetStatus] = field(default_factory=list)

    def add(self, status: TargetStatus) -> TargetStatus:
        self.statuses.append(status)
        return status

    def extend(self, other: "BatchReport") -> None:
        self.statuses.extend(other.statuses)

    @property
    def failures(self) -> list[TargetStatus]:
        return [s for s in self.statuses if s.failed]

    @property
    def ok(self) -> bool:
        return not self.failures


def launch_detached(cmd: list[str]) -> None:
    """
    Start a helper in its own session without waiting for it.

    The caller may be running inside an ssh LocalCommand hook, which
    blocks the ssh session until the hook returns.
    """
    subprocess.Popen(
        cmd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def run_helper(cmd: list[str]) -> int:
    """Run a helper to completion and return its exit code."""
    cp = subprocess.run(cmd, text=True, capture_output=True, check=False)
    if cp.returncode != 0:
        log.debug(
            "%s exited with %d: %s",
            cmd[0], cp.returncode, (cp.stderr or "").strip(),
        )
    return cp.returncode


@dataclass
class SettleWait:
    """
    Wait a fixed delay for launched mounts to come up.

    The mount helper gives no completion signal, so this is a heuristic:
    a slow mount can still be reported as failed. Pass a different
    readiness callable to Orchestrator to replace it with a real check.
    """
    delay_sec: float = DEFAULT_SETTLE_DELAY_SEC
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        assert self.delay_sec >= 0, \
            f"delay_sec must be non-negative, got {self.delay_sec}"

    def __call__(self, targets: Sequence[str]) -> None:
        log.debug("Waiting %.1fs for %d mount(s) to settle", self.delay_sec, len(targets))
        self.sleep(self.delay_sec)


class Orchestrator:
    """
    Mounts and unmounts targets through the external helpers.

    Usage:
        orchestrator = Orchestrator(config)
        report = orchestrator.connect(["db1", "web"], verbose=True)
        for status in report.failures:
            print(status.describe())
    """

    def __init__(
        self,
        config: ConfigModel,
        mount_table: MountTable | None = None,
        *,
        mount_helper: str = MOUNT_HELPER,
        unmount_helper: str = UNMOUNT_HELPER,
        launcher: Callable[[list[str]], None] = launch_detached,
        runner: Callable[[list[str]], int] = run_helper,
        readiness: Callable[[Sequence[str]], None] | None = None,
        emitter: EventEmitter | None = None,
    ) -> None:
        self._config = config
        self._mounts = mount_table if mount_table is not None else MountTable()
        self._mount_helper = mount_helper
        self._unmount_helper = unmount_helper
        self._launcher = launcher
        self._runner = runner
        self._readiness = readiness if readiness is not None else SettleWait()
        self._emitter = emitter if emitter is not None else EventEmitter()

    @property
    def mount_table(self) -> MountTable:
        return self._mounts

    def _warn_if_unconfigured(self, key: str) -> None:
        if key not in self._config:
            log.warning("No Host entry for %s; using default values", key)
            self._emitter.emit(
                EventType.ERROR,
                error_type="MissingTargetConfig",
                target=key,
            )

    def _fail(self, report: BatchReport, key: str, action: str, detail: str) -> TargetStatus:
        log.error("Failed to %s %s: %s", action, key, detail)
        self._emitter.emit(
            EventType.ERROR,
            error_type="PerTargetMountFailure",
            target=key,
            action=action,
            message=detail,
        )
        return report.add(TargetStatus(key, action, Outcome.FAILED, detail))

    def _check_mounted(self, key: str) -> bool:
        return self._mounts.is_mounted(key)

    def connect(self, targets: Sequence[str], verbose: bool = False) -> BatchReport:
        """
        Mount every target that is not mounted yet.

        Helpers are launched detached. With verbose set, wait for the
        readiness hook once for the whole batch, then re-check each
        launched target and record MOUNTED or FAILED.
        """
        report = BatchReport()
        launched: list[TargetStatus] = []
        launched_keys: set[str] = set()

        for key in targets:
            self._warn_if_unconfigured(key)

            # The mount table does not show a launched helper until it settles.
            if key in launched_keys:
                log.info("%s was already launched in this batch", key)
                self._emitter.emit(EventType.CONNECT, target=key, skipped=True)
                report.add(TargetStatus(key, "connect", Outcome.DUPLICATE))
                continue

            try:
                mounted = self._check_mounted(key)
            except ResourceUnavailableError as e:
                self._fail(report, key, "connect", str(e))
                continue

            if mounted:
                log.info("%s is already mounted", key)
                self._emitter.emit(EventType.CONNECT, target=key, skipped=True)
                report.add(TargetStatus(key, "connect", Outcome.ALREADY_MOUNTED))
                continue

            local = local_path(self._config, key)
            cmd = mount_command(self._config, key, helper=self._mount_helper)
            try:
                local.mkdir(parents=True, exist_ok=True)
                self._launcher(cmd)
            except OSError as e:
                self._fail(report, key, "connect", str(e))
                continue

            log.info("Mounting %s on %s", remote_path(self._config, key), local)
            self._emitter.emit(EventType.CONNECT, target=key, command=cmd)
            launched_keys.add(key)
            launched.append(report.add(TargetStatus(key, "connect", Outcome.LAUNCHED)))

        if verbose and launched:
            self._readiness([status.target for status in launched])
            for status in launched:
                self._recheck(status, expect_mounted=True)

        return report

    def disconnect(self, targets: Sequence[str], verbose: bool = False) -> BatchReport:
        """Unmount every target that is currently mounted."""
        report = BatchReport()

        for key in targets:
            self._warn_if_unconfigured(key)

            try:
                mounted = self._check_mounted(key)
            except ResourceUnavailableError as e:
                self._fail(report, key, "disconnect", str(e))
                continue

            if not mounted:
                log.info("%s is not mounted", key)
                self._emitter.emit(EventType.DISCONNECT, target=key, skipped=True)
                report.add(TargetStatus(key, "disconnect", Outcome.NOT_MOUNTED))
                continue

            cmd = unmount_command(self._config, key, helper=self._unmount_helper)
            try:
                exit_code = self._runner(cmd)
            except OSError as e:
                self._fail(report, key, "disconnect", str(e))
                continue

            log.info("Unmounting %s", local_path(self._config, key))
            self._emitter.emit(
                EventType.DISCONNECT, target=key, command=cmd, exit_code=exit_code,
            )
            status = report.add(TargetStatus(key, "disconnect", Outcome.UNMOUNTED))
            self._recheck(status, expect_mounted=False)

        return report

    def reconnect(self, targets: Sequence[str], verbose: bool = False) -> BatchReport:
        """Disconnect every target, then connect them all again."""
        report = self.disconnect(targets, verbose=verbose)
        report.extend(self.connect(targets, verbose=verbose))
        return report

    def _recheck(self, status: TargetStatus, expect_mounted: bool) -> None:
        key = status.target
        try:
            mounted = self._check_mounted(key)
        except ResourceUnavailableError as e:
            status.outcome = Outcome.FAILED
            status.detail = str(e)
        else:
            if mounted == expect_mounted:
                status.outcome = Outcome.MOUNTED if mounted else Outcome.UNMOUNTED
            else:
                status.outcome = Outcome.FAILED
                status.detail = "still mounted" if mounted else "not mounted"

        self._emitter.emit(
            EventType.STATUS,
            target=key,
            action=status.action,
            outcome=status.outcome.value,
        )
        if status.failed:
            log.error("Failed to %s %s: %s", status.action, key, status.detail)
            self._emitter.emit(
                EventType.ERROR,
                error_type="PerTargetMountFailure",
                target=key,
                action=status.action,
                message=status.detail,
            )
        else:
            log.info("%s %s: %s", status.action, key, status.outcome.value)
