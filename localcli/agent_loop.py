"""Single-round agent turn.

One user message produces exactly one model call:

  IDLE -> DISPATCHING -> STREAMING -> PARSING_TOOLS
       -> IDLE                                   (no tool calls)
       -> EXECUTING_BATCH -> INJECTING_RESULTS -> IDLE

Tool calls found in the response run sequentially in discovery order, so a
later call sees the filesystem left by an earlier one. A failed call is
reported and the batch moves on. Results are appended to the history as
"[Tool Result]" user messages; the model only sees them on the next turn.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from . import config
from .console import print_error, print_progress, print_stream, print_tool_failure
from .context import build_context, format_context_for_prompt
from .model_providers.base import Message, ModelProvider
from .parsing import parse_tool_calls
from .registry import ToolRegistry
from .tools import tools_prompt_section
from .types import ExecuteOptions, ToolInvocation, ToolResult
from .utils import dbg, dbg_dump, truncate

TOOL_RESULT_PREFIX = "[Tool Result]\n"

SYSTEM_PROMPT = """You are localcli, a coding assistant working inside the user's project.
You can explain code, debug issues, edit files and run commands.

{context}"""

TOOLS_PROMPT = """
You have access to tools. To use a tool, respond with EXACTLY this JSON format:
```json
{{
  "tool": "EXACT_TOOL_NAME",
  "arguments": {{ ... }}
}}
```
You may emit several tool blocks in one reply; they run in order.
Use ONLY these tool names (? marks an optional argument):
{tools}

Examples:
- Create a file: {{"tool": "write_file", "arguments": {{"path": "index.html", "content": "..."}}}}
- Run tests: {{"tool": "run_command", "arguments": {{"command": "pytest -q"}}}}
- Edit a file: read_file first, then edit_file with old_content copied exactly.

Tool results are sent back to you as "[Tool Result]" messages with the user's next message."""


class TurnState(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    STREAMING = "streaming"
    PARSING_TOOLS = "parsing_tools"
    EXECUTING_BATCH = "executing_batch"
    INJECTING_RESULTS = "injecting_results"


@dataclass
class ToolRun:
    invocation: ToolInvocation
    result: ToolResult


@dataclass
class TurnOutcome:
    response: str = ""
    runs: List[ToolRun] = field(default_factory=list)
    error: Optional[str] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def invocations(self) -> List[ToolInvocation]:
        return [r.invocation for r in self.runs]


class TurnController:
    """Owns the conversation history; runs one request/response turn at a time."""

    def __init__(
        self,
        provider: ModelProvider,
        registry: ToolRegistry,
        cwd: str,
        options: Optional[ExecuteOptions] = None,
        enable_tools: bool = config.ENABLE_TOOLS,
        include_context: bool = True,
        timeout_s: int = config.GEN_TIMEOUT,
    ):
        self.provider = provider
        self.registry = registry
        self.cwd = cwd
        self.options = options or ExecuteOptions(auto_approve=config.AUTO_APPROVE)
        self.enable_tools = enable_tools
        self.include_context = include_context
        self.timeout_s = timeout_s
        self.history: List[Message] = []
        self.state = TurnState.IDLE
        self.transitions: List[TurnState] = []
        self._cancel_requested = False

    def _enter(self, state: TurnState) -> None:
        dbg(f"turn: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)

    def cancel(self) -> None:
        """Stop consuming the model stream at the next fragment."""
        self._cancel_requested = True

    def clear(self) -> None:
        self.history = []

    def system_prompt(self, user_text: str) -> str:
        context = f"Working directory: {self.cwd}"
        if self.include_context:
            context = format_context_for_prompt(build_context(self.cwd, user_text))
        prompt = SYSTEM_PROMPT.format(context=context)
        if self.enable_tools:
            prompt += "\n" + TOOLS_PROMPT.format(tools=tools_prompt_section())
        return prompt

    def run_turn(self, user_text: str, on_chunk: Optional[Callable[[str], None]] = None) -> TurnOutcome:
        self._cancel_requested = False
        self.transitions = []
        on_chunk = on_chunk or print_stream
        self.history.append({"role": "user", "content": user_text})

        self._enter(TurnState.DISPATCHING)
        messages: List[Message] = [{"role": "system", "content": self.system_prompt(user_text)}] + list(self.history)
        dbg_dump("turn: system prompt", messages[0]["content"])

        chunks: List[str] = []
        try:
            stream = self.provider.stream(messages, self.timeout_s)
            self._enter(TurnState.STREAMING)
            for chunk in stream:
                if self._cancel_requested:
                    break
                chunks.append(chunk)
                on_chunk(chunk)
        except Exception as exc:
            dbg(f"turn: model call failed: {type(exc).__name__}: {exc}")
            print_error(str(exc))
            self._enter(TurnState.IDLE)
            return TurnOutcome(response="".join(chunks), error=str(exc))

        response = "".join(chunks)
        dbg_dump("turn: model response", response)
        if self._cancel_requested:
            self.history.append({"role": "assistant", "content": response})
            self._enter(TurnState.IDLE)
            return TurnOutcome(response=response, cancelled=True)

        self._enter(TurnState.PARSING_TOOLS)
        invocations = parse_tool_calls(response) if self.enable_tools else []
        if not invocations:
            self.history.append({"role": "assistant", "content": response})
            self._enter(TurnState.IDLE)
            return TurnOutcome(response=response)

        self._enter(TurnState.EXECUTING_BATCH)
        runs = [ToolRun(inv, self._run_tool(inv)) for inv in invocations]

        self._enter(TurnState.INJECTING_RESULTS)
        self.history.append({"role": "assistant", "content": response})
        for run in runs:
            if run.result.success and run.result.content:
                body = truncate(run.result.content, config.TOOL_RESULT_MAX_CHARS, marker="")
                self.history.append({"role": "user", "content": TOOL_RESULT_PREFIX + body})
        self._enter(TurnState.IDLE)
        return TurnOutcome(response=response, runs=runs)

    def _run_tool(self, invocation: ToolInvocation) -> ToolResult:
        if self.options.show_progress:
            print_progress(f"\nTool: {invocation.name}", "cyan")
        result = self.registry.execute(invocation.name, invocation.arguments, self.cwd, self.options)
        if not result.success:
            print_tool_failure(result.error or "unknown error")
        return result

