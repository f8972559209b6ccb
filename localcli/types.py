"""Shared value types for tool invocations, results and command runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from . import config


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    NO_MATCH = "no_match"
    EXECUTION = "execution"
    TIMEOUT = "timeout"
    SPAWN = "spawn"
    UNKNOWN_TOOL = "unknown_tool"


@dataclass(frozen=True)
class ToolInvocation:
    """A structured {name, arguments} request extracted from model text."""

    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, content: Optional[str] = None, **data: Any) -> "ToolResult":
        return cls(success=True, content=content, data=data)

    @classmethod
    def fail(cls, error: str, kind: ErrorKind = ErrorKind.EXECUTION, **data: Any) -> "ToolResult":
        return cls(success=False, error=error, error_kind=kind, data=data)

    @classmethod
    def cancelled(cls, error: str = "Cancelled") -> "ToolResult":
        return cls(success=False, error=error, error_kind=ErrorKind.CANCELLED)

    @property
    def is_cancelled(self) -> bool:
        return self.error_kind is ErrorKind.CANCELLED

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.content is not None:
            out["content"] = self.content
        if self.error is not None:
            out["error"] = self.error
        if self.error_kind is not None:
            out["error_kind"] = self.error_kind.value
        out.update(self.data)
        return out


@dataclass(frozen=True)
class ExecuteOptions:
    auto_approve: bool = False
    show_progress: bool = True
    command_timeout_ms: int = config.COMMAND_TIMEOUT_MS


@dataclass(frozen=True)
class CommandExecution:
    raw_command: str
    translated_command: str
    cwd: str
    timeout_ms: int
    is_retry: bool = False
