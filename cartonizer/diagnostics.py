# cartonizer/diagnostics.py
"""
Diagnostics sinks for the cartonization core.

The packer, selector and splitter never print. They report through a sink
passed in by the caller:
- LoggingSink (default): forwards to the standard `logging` module.
- RecordingSink: keeps every event in memory, for tests and audit trails;
  it can also forward to another sink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger("cartonizer")


@dataclass
class DiagnosticEvent:
    level: int
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


class DiagnosticsSink(Protocol):
    def emit(self, level: int, message: str, **data: Any) -> None: ...


class LoggingSink:
    """Send events to a `logging.Logger` (the package logger by default)."""

    def __init__(self, target: Optional[logging.Logger] = None) -> None:
        self.logger = target or logger

    def emit(self, level: int, message: str, **data: Any) -> None:
        if data:
            self.logger.log(level, "%s %s", message, data)
        else:
            self.logger.log(level, "%s", message)


class RecordingSink:
    """Collect events in order; optionally forward them to another sink."""

    def __init__(self, forward: Optional[DiagnosticsSink] = None) -> None:
        self.events: List[DiagnosticEvent] = []
        self.forward = forward

    def emit(self, level: int, message: str, **data: Any) -> None:
        self.events.append(DiagnosticEvent(level, message, dict(data)))
        if self.forward is not None:
            self.forward.emit(level, message, **data)

    def messages(self, level: Optional[int] = None) -> List[str]:
        return [e.message for e in self.events if level is None or e.level == level]

    @property
    def warnings(self) -> List[str]:
        return self.messages(logging.WARNING)


_DEFAULT_SINK = LoggingSink()


def resolve_sink(sink: Optional[DiagnosticsSink]) -> DiagnosticsSink:
    return sink if sink is not None else _DEFAULT_SINK


__all__ = [
    "DiagnosticEvent",
    "DiagnosticsSink",
    "LoggingSink",
    "RecordingSink",
    "resolve_sink",
]
