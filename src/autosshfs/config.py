"""
SSH config parsing for autosshfs targets.

Provides:
- HostEntry: Plain and custom directives of one Host block
- ConfigModel: All Host entries of a config file, keyed by host pattern
- parse_config / parse_config_text: Line-oriented parser

The file is an ordinary OpenSSH client config. autosshfs settings live in
comment lines carrying the custom marker, so ssh itself ignores them:

    Host *
        PermitLocalCommand yes
        #!!!# Basedir $HOME/mnt

    Host db1
        User carol
        LocalCommand autosshfs --connect db1
        #!!!# Remotedir /var/lib
        #!!!# Excludefromall yes
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from autosshfs.errors import FileAccessError
from autosshfs.platform import get_config_path, get_default_basedir, substitute_env

log = logging.getLogger("autosshfs.config")

# Reserved key for the "Host *" block; never a valid ssh host name
GENERIC_HOST = "__generic__"

CUSTOM_MARKER = "#!!!#"

_CUSTOM_RE = re.compile(r"^\s*" + re.escape(CUSTOM_MARKER) + r"\s+(\S+)\s+(\S.*?)\s*$")
_HOST_RE = re.compile(r"^\s*Host(?:\s*=\s*|\s+)(\S+)\s*$", re.IGNORECASE)
_BLOCK_RE = re.compile(r"^\s*(?:Host|Match)\b", re.IGNORECASE)
_DIRECTIVE_RE = re.compile(r"^\s*([A-Za-z][A-Za-z0-9]*)(?:\s*=\s*|\s+)(\S.*?)\s*$")


def normalize_name(name: str) -> str:
    """Normalize a directive name: first letter upper case, rest lower case."""
    return name[:1].upper() + name[1:].lower()


def is_yes(value: str | None) -> bool:
    """True for a "yes" directive value, in any case."""
    return value is not None and value.strip().lower() == "yes"


@dataclass
class HostEntry:
    """
    Directives of a single Host block.

    Plain SSH directives and custom (marker) directives are kept apart so a
    custom name can never shadow an ssh option passed to the mount helper.
    Both maps are keyed by normalized directive name.
    """
    key: str
    directives: dict[str, str] = field(default_factory=dict)
    custom: dict[str, str] = field(default_factory=dict)

    def get(self, name: str, default: str | None = None) -> str | None:
        """Get a plain directive value by (case-insensitive) name."""
        return self.directives.get(normalize_name(name), default)

    def get_custom(self, name: str, default: str | None = None) -> str | None:
        """Get a custom directive value by (case-insensitive) name."""
        return self.custom.get(normalize_name(name), default)

    def custom_flag(self, name: str) -> bool:
        """True when the custom directive is set to yes."""
        return is_yes(self.get_custom(name))


@dataclass
class ConfigModel:
    """
    Host entries parsed from one SSH config file.

    Built once per invocation and treated as read-only afterwards. The
    generic entry holds process-wide defaults (Basedir, Promptforall) and
    is never a target.
    """
    hosts: dict[str, HostEntry] = field(default_factory=dict)
    source: Path | None = None

    def __contains__(self, key: object) -> bool:
        return key in self.hosts

    def get(self, key: str) -> HostEntry | None:
        """Get the entry for a host key, or None if not configured."""
        return self.hosts.get(key)

    def ensure(self, key: str) -> HostEntry:
        """Get the entry for a host key, creating it if absent."""
        entry = self.hosts.get(key)
        if entry is None:
            entry = HostEntry(key=key)
            self.hosts[key] = entry
        return entry

    @property
    def generic(self) -> HostEntry:
        """The entry of the "Host *" block."""
        return self.ensure(GENERIC_HOST)

    @property
    def basedir(self) -> str:
        """Directory under which local mount points are created."""
        return self.generic.get_custom("Basedir") or get_default_basedir()

    def targets(self) -> list[str]:
        """All configured target keys, sorted, without the generic entry."""
        return sorted(key for key in self.hosts if key != GENERIC_HOST)


@dataclass
class ParserState:
    """Host block that directive lines are currently attributed to."""
    current_host: str | None = None


def parse_line(
    model: ConfigModel,
    state: ParserState,
    line: str,
    environ: Mapping[str, str] | None = None,
) -> ParserState:
    """
    Apply one config line to the model.

    Args:
        model: Model being built
        state: State after the previous line
        line: Raw line (without newline)
        environ: Environment used for $NAME substitution in custom values

    Returns:
        State for the next line
    """
    stripped = line.strip()
    if not stripped:
        return state

    custom = _CUSTOM_RE.match(line)
    if custom:
        if state.current_host is not None:
            name, value = custom.groups()
            model.ensure(state.current_host).custom[normalize_name(name)] = (
                substitute_env(value, environ)
            )
        return state

    if stripped.startswith("#"):
        return state

    host = _HOST_RE.match(line)
    if host:
        pattern = host.group(1)
        key = GENERIC_HOST if pattern == "*" else pattern
        model.ensure(key)
        return ParserState(current_host=key)

    if _BLOCK_RE.match(line):
        # Multi-pattern Host and Match blocks do not name a single target
        log.debug("Ignoring block without a single host pattern: %s", stripped)
        return ParserState(current_host=None)

    directive = _DIRECTIVE_RE.match(line)
    if directive and state.current_host is not None:
        name, value = directive.groups()
        model.ensure(state.current_host).directives[normalize_name(name)] = value

    return state


def parse_config_text(
    content: str,
    environ: Mapping[str, str] | None = None,
    source: Path | None = None,
) -> ConfigModel:
    """
    Parse SSH config content into a ConfigModel.

    Args:
        content: Full text of the config file
        environ: Environment for $NAME substitution (defaults to os.environ)
        source: Path the content was read from, for diagnostics

    Returns:
        The parsed model, always containing the generic entry
    """
    model = ConfigModel(source=source)
    state = ParserState()

    for line in content.splitlines():
        state = parse_line(model, state, line, environ)

    generic = model.generic
    if generic.get_custom("Basedir") is None:
        generic.custom["Basedir"] = get_default_basedir()

    if not is_yes(generic.get("PermitLocalCommand")):
        log.warning(
            "PermitLocalCommand is not set to yes in the 'Host *' block; "
            "automatic mounting on ssh login will not work"
        )

    return model


def parse_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConfigModel:
    """
    Read and parse an SSH config file.

    Args:
        path: Config file (defaults to ~/.ssh/config)
        environ: Environment for $NAME substitution (defaults to os.environ)

    Returns:
        The parsed model

    Raises:
        FileAccessError: If the file cannot be opened or read
    """
    config_path = Path(path) if path is not None else get_config_path()

    try:
        with open(config_path, "r", encoding="utf-8", errors="replace") as f:
            content = f.read()
    except OSError as e:
        raise FileAccessError(
            f"Cannot read config file {config_path}: {e.strerror or e}",
            path=str(config_path),
        ) from e

    model = parse_config_text(content, environ, source=config_path)
    log.debug("Parsed %d target(s) from %s", len(model.targets()), config_path)
    return model
