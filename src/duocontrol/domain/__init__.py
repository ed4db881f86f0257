"""Domain models for duocontrol.

All values exchanged across the Bridge live here. They use Pydantic v2
for validation and JSON serialization and are frozen once built.
"""

from duocontrol.domain.models import (
    DialogOptions,
    DialogResult,
    ErrorKind,
    FileResult,
    LogEntry,
    Operation,
    OperationRequest,
    OperationResult,
    Severity,
    StatusSnapshot,
    brightness_percent,
)

__all__ = [
    "DialogOptions",
    "DialogResult",
    "ErrorKind",
    "FileResult",
    "LogEntry",
    "Operation",
    "OperationRequest",
    "OperationResult",
    "Severity",
    "StatusSnapshot",
    "brightness_percent",
]
