import os
import sys
import time

from . import config


def _append_log(line: str) -> None:
    path = config.DEBUG_LOG_PATH
    if not path:
        return
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError:
        pass


def dbg(message: str):
    if not config.DEBUG:
        return
    ts = time.strftime("%Y-%m-%d %H:%M:%S")
    line = f"[debug] [{ts} pid={os.getpid()}] {message}"
    print(line, file=sys.stderr)
    _append_log(line)


def tool_log(msg: str) -> None:
    """Log tool activity. Echoed to stderr with LCLI_DEBUG_TOOLS=1; written to the debug log when debugging."""
    if config.DEBUG_TOOLS:
        print(f"[tool] {msg}", file=sys.stderr)
    if config.DEBUG:
        ts = time.strftime("%Y-%m-%d %H:%M:%S")
        _append_log(f"[tool] [{ts} pid={os.getpid()}] {msg}")


def tool_call_log(tool: str, args: dict):
    """Record one tool call (name + abbreviated args)."""
    max_len = 200

    def _arg_repr(v):
        s = repr(v)
        return (s[:max_len] + "...") if len(s) > max_len else s

    parts = [f"{k}={_arg_repr(v)}" for k, v in sorted((args or {}).items())]
    tool_log(f"call: {tool}({', '.join(parts)})")


def dbg_dump(label: str, text: str):
    """Dump a block of text to the debug log. Truncated unless LCLI_DEBUG_DUMP_VERBOSE=true."""
    if not config.DEBUG:
        return
    content = text or ""
    if config.DEBUG_DUMP_VERBOSE:
        _append_log(f"\n[debug_dump] {label}\n{content}")
        return
    max_lines = config.DEBUG_DUMP_MAX_LINES
    max_chars = config.DEBUG_DUMP_MAX_CHARS
    lines = [ln for ln in content.splitlines() if ln.strip()]
    preview = "\n".join(lines[:max_lines])
    if len(preview) > max_chars:
        preview = preview[:max_chars]
    truncated = len(lines) > max_lines or len(content) > max_chars
    _append_log(
        f"\n[debug_dump] {label} (len={len(content)})"
        f"{' …(truncated)' if truncated else ''}\n{preview}"
    )


def truncate(text: str, max_chars: int, marker: str = "\n...[truncated]") -> str:
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    return text[:max_chars] + marker
