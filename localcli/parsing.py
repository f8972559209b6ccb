"""Extract tool invocations from raw model output.

Model families encode "call this tool" differently. Each encoding has its own
extractor; all extractors run over the full text in a fixed order and their
results are concatenated. Extractors never raise: a candidate whose JSON does
not decode is dropped and the scan continues.

Recognised encodings:
  1. fenced block:      ```json\\n{"tool": "...", "arguments": {...}}\\n```
  2. message marker:    <|message|>{"tool": "...", "arguments": {...}}
  3. bare JSON:         {"tool": "...", "arguments": {...}}  (only when 1 and 2 found nothing)
  4. function_call tag: <function_call>{"name": "...", "arguments": {...}}</function_call>
  5. container exec:    to=container.exec ... <|message|>{"cmd": ["bash", "-lc", "ls"]}
  6. repo browser:      to=repo_browser.<tool> ... <|message|>{...}
"""

import json
import re
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .types import ToolInvocation
from .utils import dbg

SHELL_TOOL_NAME = "run_command"

_DECODER = json.JSONDecoder()

_FENCE_RE = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\n?(.*?)```", re.DOTALL)
_MESSAGE_MARKER_RE = re.compile(r"<\|message\|>")
_BARE_TOOL_RE = re.compile(r"\{\s*\"tool\"\s*:")
_FUNCTION_CALL_RE = re.compile(r"<function_call>\s*(.*?)\s*</function_call>", re.DOTALL)
_CONTAINER_EXEC_RE = re.compile(r"to=container\.exec[^{]*?\|message\|>")
_REPO_BROWSER_RE = re.compile(r"to=repo_browser\.(\w+)[^{]*?\|message\|>")
# Routing header between the previous special token and a <|message|> marker
_ROUTED_HEADER_RE = re.compile(r"to=[\w.]+[^{]*$")


def _decode_object_at(text: str, start: int) -> Optional[Dict[str, Any]]:
    """Decode the JSON object beginning at the first "{" at or after start."""
    brace = text.find("{", start)
    if brace == -1:
        return None
    # Only whitespace may separate the marker from the payload
    if text[start:brace].strip():
        return None
    try:
        obj, _end = _DECODER.raw_decode(text, brace)
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


def _tool_payload(obj: Optional[Dict[str, Any]]) -> Optional[ToolInvocation]:
    if not obj:
        return None
    name = obj.get("tool")
    args = obj.get("arguments")
    if isinstance(name, str) and name.strip() and isinstance(args, dict):
        return ToolInvocation(name=name.strip(), arguments=args)
    return None


def _extract_fenced(text: str) -> Iterator[ToolInvocation]:
    for m in _FENCE_RE.finditer(text):
        body = m.group(1) or ""
        if '"tool"' not in body:
            continue
        inv = _tool_payload(_decode_object_at(body, len(body) - len(body.lstrip())))
        if inv:
            yield inv


def _is_routed_marker(text: str, marker_start: int) -> bool:
    """True when the marker sits in a `to=...` routed header (handled by formats 5/6)."""
    header_start = text.rfind("<|start|>", 0, marker_start)
    header_start = max(header_start, text.rfind("<|end|>", 0, marker_start), text.rfind("<|call|>", 0, marker_start))
    header = text[header_start + 1 if header_start >= 0 else 0:marker_start]
    return bool(_ROUTED_HEADER_RE.search(header))


def _extract_message_marker(text: str) -> Iterator[ToolInvocation]:
    for m in _MESSAGE_MARKER_RE.finditer(text):
        if _is_routed_marker(text, m.start()):
            continue
        inv = _tool_payload(_decode_object_at(text, m.end()))
        if inv:
            yield inv


def _extract_bare_json(text: str) -> Iterator[ToolInvocation]:
    pos = 0
    while True:
        m = _BARE_TOOL_RE.search(text, pos)
        if not m:
            return
        pos = m.end()
        # Payloads right after a <|message|> marker belong to formats 2, 5 and 6
        if text[max(0, m.start() - 64) : m.start()].rstrip().endswith("<|message|>"):
            continue
        inv = _tool_payload(_decode_object_at(text, m.start()))
        if inv:
            yield inv


def _extract_function_call(text: str) -> Iterator[ToolInvocation]:
    for m in _FUNCTION_CALL_RE.finditer(text):
        obj = _decode_object_at(m.group(1), 0)
        if not obj:
            continue
        name = obj.get("name")
        args = obj.get("arguments")
        if isinstance(args, str):
            # Some servers double-encode the arguments object
            try:
                args = json.loads(args)
            except ValueError:
                continue
        if isinstance(name, str) and name.strip() and isinstance(args, dict):
            yield ToolInvocation(name=name.strip(), arguments=args)


def _extract_container_exec(text: str) -> Iterator[ToolInvocation]:
    for m in _CONTAINER_EXEC_RE.finditer(text):
        obj = _decode_object_at(text, m.end())
        if not obj:
            continue
        cmd = obj.get("cmd")
        if isinstance(cmd, list) and cmd and isinstance(cmd[-1], str):
            yield ToolInvocation(name=SHELL_TOOL_NAME, arguments={"command": cmd[-1]})


def _extract_repo_browser(text: str) -> Iterator[ToolInvocation]:
    for m in _REPO_BROWSER_RE.finditer(text):
        obj = _decode_object_at(text, m.end())
        if obj is None:
            continue
        inv = _tool_payload(obj)
        if inv:
            yield inv
        elif m.group(1):
            yield ToolInvocation(name=m.group(1), arguments=obj)


Extractor = Callable[[str], Iterator[ToolInvocation]]

# (name, extractor); bare JSON is a fallback and runs separately
TOOL_CALL_FORMATS: List[Tuple[str, Extractor]] = [
    ("fenced_json", _extract_fenced),
    ("message_marker", _extract_message_marker),
    ("function_call", _extract_function_call),
    ("container_exec", _extract_container_exec),
    ("repo_browser", _extract_repo_browser),
]
FALLBACK_FORMAT: Tuple[str, Extractor] = ("bare_json", _extract_bare_json)


def _run_extractor(name: str, extractor: Extractor, text: str) -> List[ToolInvocation]:
    found: List[ToolInvocation] = []
    try:
        for inv in extractor(text):
            found.append(inv)
    except Exception as exc:  # extractor bug must not break the scan
        dbg(f"parse_tool_calls: extractor {name} failed: {exc}")
    return found


def parse_tool_calls(text: str) -> List[ToolInvocation]:
    """Return every tool invocation found in text, in format order then discovery order."""
    if not text or not isinstance(text, str):
        return []
    calls: List[ToolInvocation] = []
    for name, extractor in TOOL_CALL_FORMATS[:2]:
        calls.extend(_run_extractor(name, extractor, text))
    tail: List[ToolInvocation] = []
    for name, extractor in TOOL_CALL_FORMATS[2:]:
        tail.extend(_run_extractor(name, extractor, text))
    if not calls:
        calls.extend(_run_extractor(FALLBACK_FORMAT[0], FALLBACK_FORMAT[1], text))
    calls.extend(tail)
    if calls:
        dbg(f"parse_tool_calls: {len(calls)} call(s): {[c.name for c in calls]}")
    return calls


def strip_tool_calls(text: str) -> str:
    """Remove fenced tool-call blocks and function_call tags for display."""
    if not text:
        return text

    def repl(m):
        return "" if '"tool"' in (m.group(1) or "") else m.group(0)

    out = _FENCE_RE.sub(repl, text)
    out = _FUNCTION_CALL_RE.sub("", out)
    return out.strip()
