"""
Tests for target resolution.

Tests cover:
- Explicit lists pass through
- ALL_TARGETS expansion, exclusion and reconnect filtering
- Promptforall confirmation gate
"""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from autosshfs.config import parse_config_text
from autosshfs.errors import PolicyViolationError, ResourceUnavailableError
from autosshfs.mounts import MountTable
from autosshfs.targets import ALL_TARGETS, Mode, resolve_targets

CONFIG = (
    "Host *\n"
    "  PermitLocalCommand yes\n"
    "  #!!!# Basedir /home/u/autosshfs\n"
    "Host web\n  User u\n"
    "Host db1\n  User u\n"
    "Host scratch\n  User u\n  #!!!# Excludefromall YeS\n"
    "Host app\n  User u\n"
)


@pytest.fixture
def config():
    return parse_config_text(CONFIG, environ={})


@pytest.fixture
def prompting_config():
    return parse_config_text(CONFIG + "Host *\n  #!!!# Promptforall yes\n", environ={})


class TestExplicitTargets:
    """Explicit target lists are returned unchanged."""

    def test_order_and_duplicates_preserved(self, config) -> None:
        requested = ["web", "db1", "web"]
        assert resolve_targets(config, requested, Mode.CONNECT, interactive=False) == requested

    def test_excluded_target_allowed_explicitly(self, config) -> None:
        assert resolve_targets(config, ["scratch"], Mode.CONNECT, interactive=False) == ["scratch"]

    def test_unknown_target_passes_through(self, config) -> None:
        assert resolve_targets(config, ["ghost"], Mode.DISCONNECT, interactive=False) == ["ghost"]

    def test_explicit_list_skips_prompt(self, prompting_config) -> None:
        confirm = MagicMock(return_value=False)
        result = resolve_targets(
            prompting_config, ["web"], Mode.CONNECT, interactive=False, confirm=confirm,
        )
        assert result == ["web"]
        confirm.assert_not_called()


class TestAllTargets:
    """ALL_TARGETS expansion."""

    @pytest.mark.parametrize("mode", [Mode.CONNECT, Mode.DISCONNECT])
    def test_sorted_without_excluded(self, config, mode: Mode) -> None:
        assert resolve_targets(config, ALL_TARGETS, mode, interactive=False) == [
            "app", "db1", "web",
        ]

    def test_reconnect_only_mounted(self, config, fake_mounts) -> None:
        fake_mounts.add("u@web:.", "/home/u/autosshfs/web")
        fake_mounts.add("u@scratch:.", "/home/u/autosshfs/scratch")
        fake_mounts.add("u@app:.", "/home/u/autosshfs/app")

        result = resolve_targets(
            config, ALL_TARGETS, Mode.RECONNECT, interactive=False,
            mount_table=fake_mounts.table(),
        )

        assert result == ["app", "web"]

    def test_reconnect_nothing_mounted(self, config, fake_mounts) -> None:
        result = resolve_targets(
            config, ALL_TARGETS, Mode.RECONNECT, interactive=False,
            mount_table=fake_mounts.table(),
        )
        assert result == []

    def test_reconnect_unreadable_table_is_fatal(self, config, tmp_path) -> None:
        with pytest.raises(ResourceUnavailableError, match="Cannot read mount table"):
            resolve_targets(
                config, ALL_TARGETS, Mode.RECONNECT, interactive=False,
                mount_table=MountTable(tmp_path / "missing"),
            )

    def test_generic_never_a_target(self) -> None:
        config = parse_config_text("Host *\n  User u\n", environ={})
        assert resolve_targets(config, ALL_TARGETS, Mode.CONNECT, interactive=False) == []


class TestPromptForAll:
    """Promptforall confirmation gate."""

    def test_non_interactive_is_policy_violation(self, prompting_config) -> None:
        with pytest.raises(PolicyViolationError, match="interactive confirmation") as exc_info:
            resolve_targets(prompting_config, ALL_TARGETS, Mode.CONNECT, interactive=False)

        assert exc_info.value.context.mode == "connect"

    def test_confirmed(self, prompting_config) -> None:
        confirm = MagicMock(return_value=True)
        result = resolve_targets(
            prompting_config, ALL_TARGETS, Mode.DISCONNECT, interactive=True, confirm=confirm,
        )

        assert result == ["app", "db1", "web"]
        confirm.assert_called_once_with("disconnect")

    def test_declined_is_silent_abort(self, prompting_config) -> None:
        confirm = MagicMock(return_value=False)
        result = resolve_targets(
            prompting_config, ALL_TARGETS, Mode.CONNECT, interactive=True, confirm=confirm,
        )

        assert result == []
        confirm.assert_called_once_with("connect")

    def test_reconnect_verb(self, prompting_config, fake_mounts) -> None:
        confirm = MagicMock(return_value=True)
        resolve_targets(
            prompting_config, ALL_TARGETS, Mode.RECONNECT, interactive=True,
            mount_table=fake_mounts.table(), confirm=confirm,
        )
        confirm.assert_called_once_with("reconnect")

    def test_prompt_not_set(self, config) -> None:
        confirm = MagicMock(return_value=False)
        result = resolve_targets(
            config, ALL_TARGETS, Mode.CONNECT, interactive=True, confirm=confirm,
        )

        assert result == ["app", "db1", "web"]
        confirm.assert_not_called()
