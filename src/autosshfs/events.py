"""
Event system for autosshfs.

Records what an invocation did as structured events, one JSON object per
line when written out.

Event types:
- PARSE: Config file parsed
- CONNECT: Mount helper launched or skipped for a target
- DISCONNECT: Unmount helper run or skipped for a target
- STATUS: Mount state re-checked for a target
- ERROR: A per-target failure or a fatal error

Sinks:
- EventCollector keeps events in memory (--events prints them at exit)
- JSONLEventWriter appends them to a stream or file (--events-file)
"""
from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import IO, Any, Protocol

from autosshfs.errors import FileAccessError


class EventType(str, Enum):
    """autosshfs event types for structured logging."""
    PARSE = "PARSE"
    CONNECT = "CONNECT"
    DISCONNECT = "DISCONNECT"
    STATUS = "STATUS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class Event:
    """A single recorded event; timestamp is Unix time in milliseconds."""
    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=lambda: time.time() * 1000)

    def __post_init__(self) -> None:
        valid = {t.value for t in EventType}
        assert self.event_type in valid, \
            f"Invalid event_type {self.event_type!r}, expected one of {sorted(valid)}"
        object.__setattr__(self, "event_type", EventType(self.event_type))
        assert isinstance(self.data, dict), \
            f"data must be a dict, got {type(self.data).__name__}"

    def to_json(self) -> str:
        record = asdict(self)
        record["event_type"] = self.event_type.value
        return json.dumps(record, default=str)


class EventSink(Protocol):
    def emit(self, event: Event) -> None: ...


class EventCollector:
    """Keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self._events: list[Event] = []

    def emit(self, event: Event) -> None:
        self._events.append(event)

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    def get_by_type(self, event_type: EventType) -> list[Event]:
        return [e for e in self._events if e.event_type is event_type]


class JSONLEventWriter:
    """
    Writes each event as one JSON line to a text stream.

    Writers created with append_to() own their file and close it;
    writers wrapping an existing stream leave it open.
    """

    def __init__(self, stream: IO[str], owns_stream: bool = False) -> None:
        self._stream = stream
        self._owns_stream = owns_stream

    @classmethod
    def append_to(cls, path: Path | str) -> "JSONLEventWriter":
        """
        Open a JSONL file for appending, creating parent directories.

        Raises:
            FileAccessError: If the file cannot be opened for writing
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            stream = open(path, "a", encoding="utf-8")
        except OSError as e:
            raise FileAccessError(
                f"Cannot write events file {path}: {e.strerror or e}",
                path=str(path),
            ) from e
        return cls(stream, owns_stream=True)

    def emit(self, event: Event) -> None:
        self._stream.write(event.to_json() + "\n")
        self._stream.flush()

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()


class EventEmitter:
    """
    Builds events and dispatches them to every registered sink.

    An emitter with no sinks is valid and simply drops events.
    """

    def __init__(self, *sinks: EventSink) -> None:
        self._sinks: list[EventSink] = list(sinks)

    def add_sink(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, event_type: EventType, **data: Any) -> Event:
        """Create an event from keyword data and send it to all sinks."""
        event = Event(event_type=event_type, data=data)
        for sink in self._sinks:
            sink.emit(event)
        return event

    def close(self) -> None:
        for sink in self._sinks:
            close = getattr(sink, "close", None)
            if close is not None:
                close()
