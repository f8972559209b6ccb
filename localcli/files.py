import difflib
import os
import re
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from . import config
from .utils import dbg

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def resolve_path(cwd: str, p: str) -> Path:
    """Absolute paths pass through; relative ones are joined onto cwd. No containment check."""
    raw = (p or ".").strip()
    path = Path(os.path.expanduser(raw))
    if not path.is_absolute():
        path = Path(cwd) / path
    return path


def rel_display(path: Path, cwd: str) -> str:
    try:
        return path.resolve().relative_to(Path(cwd).resolve()).as_posix()
    except ValueError:
        return str(path)


def read_text(path: Path) -> str:
    """Read a file keeping its line endings."""
    if not path.exists():
        raise FileNotFoundError(str(path))
    if path.is_dir():
        raise IsADirectoryError(str(path))
    with open(path, "r", encoding="utf-8", errors="replace", newline="") as handle:
        return handle.read()


def write_text_atomic(target: Path, content: str) -> None:
    """Write through a temp file in the same directory, then rename over the target."""
    target.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        dir=str(target.parent),
        prefix=target.name + ".tmp.",
        encoding="utf-8",
        newline="",
    ) as tmp:
        tmp.write(content)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = Path(tmp.name)
    try:
        # mkstemp files are 0600; keep the target's own mode
        if target.exists():
            shutil.copymode(target, tmp_path)
        tmp_path.replace(target)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
    if read_text(target) != content:
        raise IOError(f"write verification failed for {target}")


def append_text(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "a", encoding="utf-8", newline="") as handle:
        handle.write(content)


def remove_path(target: Path) -> None:
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    else:
        target.unlink()


def move_path(source: Path, dest: Path) -> None:
    if not source.exists():
        raise FileNotFoundError(str(source))
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(dest))


def copy_path(source: Path, dest: Path) -> None:
    if not source.exists():
        raise FileNotFoundError(str(source))
    dest.parent.mkdir(parents=True, exist_ok=True)
    if source.is_dir():
        shutil.copytree(source, dest)
    else:
        shutil.copy2(source, dest)


def _is_ignored_name(name: str) -> bool:
    return name.startswith(".") or name in config.IGNORE_DIRS


def list_directory(dir_path: Path, recursive: bool = False, max_depth: int = 3) -> List[Dict[str, object]]:
    """Entries of dir_path as {name, path, type, size?, children?}. Hidden and build dirs are skipped."""
    budget = [config.MAX_LIST_ENTRIES]

    def walk(path: Path, depth: int) -> List[Dict[str, object]]:
        try:
            entries = sorted(path.iterdir(), key=lambda e: e.name.lower())
        except OSError as exc:
            dbg(f"list_directory: cannot read {path}: {exc}")
            return []
        items: List[Dict[str, object]] = []
        for entry in entries:
            if budget[0] <= 0:
                break
            if _is_ignored_name(entry.name):
                continue
            budget[0] -= 1
            is_dir = entry.is_dir()
            item: Dict[str, object] = {
                "name": entry.name,
                "path": str(entry),
                "type": "directory" if is_dir else "file",
            }
            if not is_dir:
                try:
                    item["size"] = entry.stat().st_size
                except OSError:
                    item["size"] = 0
            items.append(item)
            if recursive and is_dir and depth > 1:
                item["children"] = walk(entry, depth - 1)
        return items

    if not dir_path.is_dir():
        raise FileNotFoundError(str(dir_path))
    return walk(dir_path, max_depth)


def expand_braces(pattern: str) -> List[str]:
    """`*.{js,ts}` -> [`*.js`, `*.ts`]; nested groups expand left to right."""
    m = _BRACE_RE.search(pattern)
    if not m:
        return [pattern]
    head, tail = pattern[: m.start()], pattern[m.end():]
    out: List[str] = []
    for alt in m.group(1).split(","):
        out.extend(expand_braces(head + alt + tail))
    return out


def _has_ignored_part(rel: Path) -> bool:
    return any(part in config.IGNORE_DIRS for part in rel.parts[:-1])


def search_files(pattern: str, base: Path, limit: Optional[int] = None) -> List[Path]:
    """Files under base matching a glob (supports `**` and `{a,b}`), sorted, build/VCS dirs excluded."""
    cap = config.MAX_SEARCH_RESULTS if limit is None else limit
    seen = set()
    found: List[Path] = []
    if not base.is_dir():
        return found
    for pat in expand_braces((pattern or "**/*").strip()):
        try:
            matches = base.glob(pat)
            for path in matches:
                if path in seen or not path.is_file():
                    continue
                if _has_ignored_part(path.relative_to(base)):
                    continue
                seen.add(path)
                found.append(path)
        except (ValueError, OSError) as exc:
            dbg(f"search_files: bad pattern {pat!r}: {exc}")
    found.sort()
    return found[:cap] if cap > 0 else found


def build_tree(dir_path: Path, max_depth: int, depth: int = 0, prefix: str = "") -> str:
    if depth >= max_depth:
        return prefix + "...\n"
    try:
        entries = sorted(
            (e for e in dir_path.iterdir() if not _is_ignored_name(e.name)),
            key=lambda e: e.name.lower(),
        )
    except OSError:
        return ""
    shown = entries[: config.TREE_MAX_ENTRIES]
    lines: List[str] = []
    for i, entry in enumerate(shown):
        last = i == len(shown) - 1
        is_dir = entry.is_dir()
        lines.append(prefix + ("└── " if last else "├── ") + entry.name + ("/" if is_dir else "") + "\n")
        if is_dir:
            lines.append(build_tree(entry, max_depth, depth + 1, prefix + ("    " if last else "│   ")))
    return "".join(lines)


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def file_info(path: Path) -> Dict[str, object]:
    st = path.stat()
    created = getattr(st, "st_birthtime", st.st_ctime)
    return {
        "size": st.st_size,
        "size_human": format_bytes(st.st_size),
        "is_directory": path.is_dir(),
        "created": datetime.fromtimestamp(created).isoformat(timespec="seconds"),
        "modified": datetime.fromtimestamp(st.st_mtime).isoformat(timespec="seconds"),
    }


def generate_diff(old_content: str, new_content: str, filepath: str, context_lines: int = 3) -> str:
    old_lines = (old_content or "").splitlines()
    new_lines = (new_content or "").splitlines()
    diff = difflib.unified_diff(
        old_lines,
        new_lines,
        fromfile=str(filepath),
        tofile=str(filepath),
        lineterm="",
        n=context_lines,
    )
    return "\n".join(diff)
