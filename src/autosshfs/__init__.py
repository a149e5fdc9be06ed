"""autosshfs: mount sshfs targets declared in your SSH config."""

__version__ = "0.1.0"

from autosshfs.config import (
    CUSTOM_MARKER,
    GENERIC_HOST,
    ConfigModel,
    HostEntry,
    ParserState,
    parse_config,
    parse_config_text,
)
from autosshfs.errors import (
    AutoSSHFSError,
    ErrorContext,
    FileAccessError,
    PolicyViolationError,
    ResourceUnavailableError,
)
from autosshfs.events import Event, EventCollector, EventEmitter, EventType
from autosshfs.mounts import MountTable
from autosshfs.options import (
    BASELINE_OPTIONS,
    compose_options,
    local_path,
    mount_command,
    remote_path,
    unmount_command,
)
from autosshfs.orchestrator import (
    BatchReport,
    Orchestrator,
    Outcome,
    SettleWait,
    TargetStatus,
)
from autosshfs.platform import substitute_env
from autosshfs.targets import ALL_TARGETS, Mode, resolve_targets

__all__ = [
    # Config
    "CUSTOM_MARKER",
    "GENERIC_HOST",
    "ConfigModel",
    "HostEntry",
    "ParserState",
    "parse_config",
    "parse_config_text",
    "substitute_env",
    # Errors
    "AutoSSHFSError",
    "ErrorContext",
    "FileAccessError",
    "PolicyViolationError",
    "ResourceUnavailableError",
    # Events
    "Event",
    "EventCollector",
    "EventEmitter",
    "EventType",
    # Mount table
    "MountTable",
    # Options
    "BASELINE_OPTIONS",
    "compose_options",
    "local_path",
    "mount_command",
    "remote_path",
    "unmount_command",
    # Orchestration
    "BatchReport",
    "Orchestrator",
    "Outcome",
    "SettleWait",
    "TargetStatus",
    # Targets
    "ALL_TARGETS",
    "Mode",
    "resolve_targets",
]
