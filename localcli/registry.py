"""Tool registry: argument validation, confirmation plumbing and dispatch.

A registry is an explicit object. build_default_registry() wires the full
catalogue; tests build their own with only the handlers they need.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from . import tools as tool_catalogue
from .confirm import Confirmer, ConsoleConfirmer
from .executor import CommandExecutor
from .types import ErrorKind, ExecuteOptions, ToolResult
from .utils import dbg, tool_call_log, tool_log

_TRUE = ("true", "1", "yes", "y", "on")
_FALSE = ("false", "0", "no", "n", "off", "")


@dataclass
class ToolContext:
    """Everything a handler may touch besides its arguments."""

    cwd: str
    options: ExecuteOptions
    confirmer: Confirmer
    executor: Optional[CommandExecutor] = None

    def confirm(self, message: str, default: bool = True) -> bool:
        if self.options.auto_approve:
            return True
        return bool(self.confirmer.confirm(message, default=default))


Handler = Callable[[Dict[str, Any], ToolContext], ToolResult]


class ArgumentError(ValueError):
    pass


def _coerce(field_name: str, value: Any, kind: str) -> Any:
    if kind in ("number", "integer"):
        if isinstance(value, bool):
            raise ArgumentError(f"Invalid argument: {field_name} (expected {kind})")
        if isinstance(value, (int, float)):
            num = value
        else:
            try:
                num = float(str(value).strip())
            except ValueError:
                raise ArgumentError(f"Invalid argument: {field_name} (expected {kind})") from None
        if kind == "integer" or float(num).is_integer():
            return int(num)
        return num
    if kind == "boolean":
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ArgumentError(f"Invalid argument: {field_name} (expected boolean)")
    if kind == "string":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if not isinstance(value, str):
            raise ArgumentError(f"Invalid argument: {field_name} (expected string)")
        return value
    if kind == "array" and not isinstance(value, list):
        raise ArgumentError(f"Invalid argument: {field_name} (expected array)")
    return value


def validate_arguments(
    arguments: Mapping[str, Any],
    required: Iterable[str],
    types: Mapping[str, str],
) -> Dict[str, Any]:
    """Return a coerced copy of arguments. Raises ArgumentError on the first problem."""
    for field_name in required:
        if arguments.get(field_name) is None:
            raise ArgumentError(f"Missing required argument: {field_name}")
    out: Dict[str, Any] = {}
    for key, value in arguments.items():
        kind = types.get(key)
        out[key] = value if (kind is None or value is None) else _coerce(key, value, kind)
    return out


class ToolRegistry:
    def __init__(self, confirmer: Optional[Confirmer] = None, executor: Optional[CommandExecutor] = None):
        self.confirmer: Confirmer = confirmer or ConsoleConfirmer()
        self.executor = executor
        self._tools: Dict[str, Tuple[Handler, List[str], Dict[str, str]]] = {}

    def register(
        self,
        name: str,
        handler: Handler,
        required: Optional[Iterable[str]] = None,
        types: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Register handler under name. Schema fields default to the catalogue entry of the same name."""
        req = list(required) if required is not None else tool_catalogue.required_fields(name)
        kinds = dict(types) if types is not None else tool_catalogue.field_types(name)
        self._tools[name] = (handler, req, kinds)

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def execute(
        self,
        name: str,
        arguments: Any,
        cwd: str,
        options: Optional[ExecuteOptions] = None,
    ) -> ToolResult:
        """Validate and run one tool. Never raises."""
        options = options or ExecuteOptions()
        entry = self._tools.get(name)
        if entry is None:
            return ToolResult.fail(f"Unknown tool: {name}", ErrorKind.UNKNOWN_TOOL)
        if not isinstance(arguments, Mapping):
            return ToolResult.fail(f"Invalid arguments for {name}: expected an object", ErrorKind.VALIDATION)
        handler, required, kinds = entry
        try:
            args = validate_arguments(arguments, required, kinds)
        except ArgumentError as exc:
            tool_log(f"{name}: {exc}")
            return ToolResult.fail(str(exc), ErrorKind.VALIDATION)

        tool_call_log(name, args)
        ctx = ToolContext(cwd=cwd, options=options, confirmer=self.confirmer, executor=self.executor)
        try:
            result = handler(args, ctx)
        except Exception as exc:
            dbg(f"tool {name} raised {type(exc).__name__}: {exc}")
            return ToolResult.fail(f"{name} failed: {exc}", ErrorKind.EXECUTION)
        tool_log(f"  -> {name} success={result.success}" + ("" if result.success else f" error={result.error!r}"))
        return result


def build_default_registry(
    confirmer: Optional[Confirmer] = None,
    executor: Optional[CommandExecutor] = None,
) -> ToolRegistry:
    """Registry with every catalogue tool bound to its handler."""
    from .tool_executor import HANDLERS

    confirmer = confirmer or ConsoleConfirmer()
    registry = ToolRegistry(confirmer, executor or CommandExecutor(confirmer))
    for name in tool_catalogue.tool_names():
        registry.register(name, HANDLERS[name])
    return registry
