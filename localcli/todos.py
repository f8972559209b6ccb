import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Tuple

from . import config

CHECKBOX = {"done": "[x]", "completed": "[x]", "in_progress": "[/]"}


def _sidecar_dir(cwd: str) -> Path:
    return Path(cwd) / config.SIDECAR_DIR


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".todos.", dir=str(path.parent), text=True)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)


def render_markdown(todos: List[Dict]) -> str:
    lines = []
    for t in todos:
        box = CHECKBOX.get(str(t.get("status") or ""), "[ ]")
        priority = f" ({t['priority']})" if t.get("priority") else ""
        lines.append(f"- {box} {t.get('content', '')}{priority}")
    return "# Task List\n\n" + "\n".join(lines) + "\n"


def summarize(todos: List[Dict]) -> Tuple[int, int, int]:
    """(pending, in_progress, done) counts."""
    statuses = [str(t.get("status") or "pending") for t in todos]
    done = sum(1 for s in statuses if s in ("done", "completed"))
    in_progress = statuses.count("in_progress")
    return len(statuses) - done - in_progress, in_progress, done


def write_todos(cwd: str, todos: List[Dict]) -> Tuple[Path, Path]:
    """Overwrite todos.json ({updated, todos}) and todos.md under the sidecar dir."""
    base = _sidecar_dir(cwd)
    json_path = base / "todos.json"
    md_path = base / "todos.md"
    payload = {
        "updated": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "todos": todos,
    }
    _write_atomic(json_path, json.dumps(payload, ensure_ascii=False, indent=2))
    _write_atomic(md_path, render_markdown(todos))
    return json_path, md_path


def load_todos(cwd: str) -> List[Dict]:
    path = _sidecar_dir(cwd) / "todos.json"
    if not path.exists():
        return []
    with open(path, "r", encoding="utf-8") as handle:
        return list((json.load(handle) or {}).get("todos") or [])
