"""Tool handlers. Each takes (validated args, ToolContext) and returns a ToolResult.

Handlers report expected failures as results; anything unexpected escapes to
ToolRegistry.execute, which turns it into a failed result.
"""

from pathlib import Path
from typing import Any, Dict, List

from rich.syntax import Syntax
from rich.text import Text

from . import config
from .console import console, print_info, print_progress, print_success, print_warning
from .edit_match import apply_edit, apply_multi_edit, normalize_line_endings
from .files import (
    append_text,
    build_tree,
    copy_path,
    file_info,
    generate_diff,
    list_directory,
    move_path,
    read_text,
    rel_display,
    remove_path,
    resolve_path,
    search_files,
    write_text_atomic,
)
from .git import GitError, git_commit, git_diff, git_info, git_log, is_git_repo
from .registry import ToolContext
from .todos import summarize, write_todos
from .types import ErrorKind, ToolResult
from .utils import tool_log
from .web import fetch_url

DEFAULT_CODE_PATTERN = "**/*.{py,js,ts,jsx,tsx,java,go,rs,c,cpp,h,vue,svelte,md}"


def _show(ctx: ToolContext, printer, message: str) -> None:
    if ctx.options.show_progress:
        printer(message)


def _show_diff(ctx: ToolContext, old: str, new: str, path: str) -> None:
    if not ctx.options.show_progress:
        return
    diff = generate_diff(normalize_line_endings(old), normalize_line_endings(new), path)
    if diff.strip():
        console.print(Syntax(diff, "diff", theme="ansi_dark", background_color="default"))


def _not_found(path: str) -> ToolResult:
    return ToolResult.fail(f"File not found: {path}", ErrorKind.NOT_FOUND)


def _read_existing(target: Path, display: str):
    """(text, None) or (None, failure result)."""
    try:
        return read_text(target), None
    except FileNotFoundError:
        return None, _not_found(display)
    except IsADirectoryError:
        return None, ToolResult.fail(f"Path is a directory: {display}", ErrorKind.VALIDATION)


def _line_count(text: str) -> int:
    return len(normalize_line_endings(text).split("\n"))


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def read_file(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    text, err = _read_existing(resolve_path(ctx.cwd, args["path"]), args["path"])
    if err:
        return err
    _show(ctx, print_info, f"Read: {args['path']}")
    return ToolResult.ok(text)


def write_file(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args["path"]
    target = resolve_path(ctx.cwd, path)
    if target.is_dir():
        return ToolResult.fail(f"Path is a directory: {path}", ErrorKind.VALIDATION)
    content = args["content"]
    overwritten = target.exists()
    lines = _line_count(content)
    if overwritten:
        _show(ctx, lambda m: print_progress(m, "yellow"), f"Modifying: {path} ({lines} lines)...")
    else:
        _show(ctx, lambda m: print_progress(m, "green"), f"Creating: {path} ({lines} lines)...")
    if not ctx.confirm("Apply?"):
        return ToolResult.cancelled()
    write_text_atomic(target, content)
    _show(ctx, print_success, f"Written: {path}")
    return ToolResult.ok(f"Wrote {lines} lines to {path}", path=path, overwritten=overwritten)


def edit_file(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args["path"]
    target = resolve_path(ctx.cwd, path)
    text, err = _read_existing(target, path)
    if err:
        return err
    outcome = apply_edit(text, args["old_content"], args["new_content"])
    if not outcome.matched:
        tool_log(f"edit_file: no match in {path}")
        return ToolResult.fail(outcome.diagnostic or "Content not found in file.", ErrorKind.NO_MATCH)
    _show(
        ctx,
        lambda m: print_progress(m, "yellow"),
        f"Editing: {path} (line {outcome.start_line}, -{outcome.old_line_count} +{outcome.new_line_count} lines, {outcome.strategy} match)",
    )
    _show_diff(ctx, text, outcome.result, path)
    if not ctx.confirm("Apply?"):
        return ToolResult.cancelled()
    write_text_atomic(target, outcome.result)
    _show(ctx, print_success, f"Edited: {path}")
    return ToolResult.ok(
        f"Edited {path} at line {outcome.start_line}",
        path=path,
        strategy=outcome.strategy,
        start_line=outcome.start_line,
    )


def multi_edit_file(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args["path"]
    target = resolve_path(ctx.cwd, path)
    text, err = _read_existing(target, path)
    if err:
        return err
    edits = args["edits"]
    outcome = apply_multi_edit(text, edits)
    if not outcome.matched:
        return ToolResult.fail(
            "No matching content found for any edits", ErrorKind.NO_MATCH, skipped=outcome.skipped
        )
    _show(ctx, lambda m: print_progress(m, "yellow"), f"Multi-edit: {path} ({outcome.applied}/{outcome.total} edits)...")
    _show_diff(ctx, text, outcome.result, path)
    if not ctx.confirm("Apply all edits?"):
        return ToolResult.cancelled()
    write_text_atomic(target, outcome.result)
    _show(ctx, print_success, f"Applied {outcome.applied} edits to: {path}")
    return ToolResult.ok(
        f"Applied {outcome.applied}/{outcome.total} edits to {path}",
        edits_applied=outcome.applied,
        skipped=outcome.skipped,
    )


def _format_items(items: List[Dict[str, Any]], indent: str = "") -> List[str]:
    lines: List[str] = []
    for item in items:
        suffix = "/" if item["type"] == "directory" else f" ({item.get('size', 0)} bytes)"
        lines.append(f"{indent}{item['name']}{suffix}")
        lines.extend(_format_items(item.get("children") or [], indent + "  "))
    return lines


def list_directory_tool(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args.get("path") or "."
    try:
        items = list_directory(resolve_path(ctx.cwd, path), recursive=bool(args.get("recursive")))
    except FileNotFoundError:
        return ToolResult.fail(f"Directory not found: {path}", ErrorKind.NOT_FOUND)
    _show(ctx, print_info, f"Listed: {path} ({len(items)} items)")
    return ToolResult.ok("\n".join(_format_items(items)), items=items)


def search_files_tool(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    found = [rel_display(p, ctx.cwd) for p in search_files(args["pattern"], Path(ctx.cwd))]
    _show(ctx, print_info, f"Found {len(found)} files")
    return ToolResult.ok("\n".join(found), files=found)


def grep(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    needle = args["pattern"]
    base = resolve_path(ctx.cwd, args.get("path") or ".")
    if base.is_file():
        candidates = [base]
    else:
        candidates = search_files(args.get("include") or "**/*", base, limit=config.GREP_MAX_FILES)
    matches: List[str] = []
    for path in candidates[: config.GREP_MAX_FILES]:
        try:
            text = read_text(path)
        except OSError:
            continue
        rel = rel_display(path, ctx.cwd)
        for i, line in enumerate(normalize_line_endings(text).split("\n"), 1):
            if needle in line:
                matches.append(f"{rel}:{i}: {line.strip()}")
    _show(ctx, print_info, f"Grep: {len(matches)} matches")
    shown = matches[: config.GREP_MAX_MATCHES]
    return ToolResult.ok("\n".join(shown), matches=shown, total_matches=len(matches))


def tree(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args.get("path") or "."
    target = resolve_path(ctx.cwd, path)
    if not target.is_dir():
        return ToolResult.fail(f"Directory not found: {path}", ErrorKind.NOT_FOUND)
    depth = int(args.get("depth") or config.TREE_MAX_DEPTH)
    _show(ctx, print_info, f"Tree: {path}")
    return ToolResult.ok(build_tree(target, max(1, depth)))


def find_replace(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    find = normalize_line_endings(args["find"])
    if not find:
        return ToolResult.fail("Invalid argument: find (must not be empty)", ErrorKind.VALIDATION)
    replace = normalize_line_endings(args["replace"])
    base = resolve_path(ctx.cwd, args.get("path") or ".")
    files = [base] if base.is_file() else search_files(args.get("include") or "**/*", base)
    _show(ctx, lambda m: print_progress(m, "yellow"), f'Find: "{args["find"]}" -> Replace: "{args["replace"]}"')
    if not ctx.confirm(f"Replace in {len(files)} files?", default=False):
        return ToolResult.cancelled()
    modified: List[str] = []
    failed: List[str] = []
    for path in files:
        try:
            text = read_text(path)
        except OSError:
            continue
        crlf = "\r\n" in text
        norm = normalize_line_endings(text)
        if find not in norm:
            continue
        updated = norm.replace(find, replace)
        shown = rel_display(path, ctx.cwd)
        try:
            write_text_atomic(path, updated.replace("\n", "\r\n") if crlf else updated)
        except OSError as exc:
            tool_log(f"find_replace: write failed for {shown}: {exc}")
            failed.append(f"{shown} ({exc})")
            continue
        modified.append(shown)
    summary = f"Replaced in {len(modified)} files"
    if modified:
        summary += ": " + ", ".join(modified)
    if failed:
        # Earlier files are already rewritten; report both sets
        _show(ctx, print_warning, f"{summary}; failed to write {len(failed)}")
        return ToolResult.fail(
            f"{summary}. Failed to write {len(failed)} files: {', '.join(failed)}",
            ErrorKind.EXECUTION,
            files_modified=len(modified),
            files=modified,
            failed=failed,
        )
    _show(ctx, print_success, f"Replaced in {len(modified)} files")
    return ToolResult.ok(summary, files_modified=len(modified), files=modified)


def create_directory(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    resolve_path(ctx.cwd, args["path"]).mkdir(parents=True, exist_ok=True)
    _show(ctx, print_success, f"Created: {args['path']}")
    return ToolResult.ok(f"Created directory {args['path']}")


def delete_file(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args["path"]
    target = resolve_path(ctx.cwd, path)
    if not target.exists() and not target.is_symlink():
        return _not_found(path)
    _show(ctx, lambda m: print_progress(m, "red"), f"Delete: {path}")
    if not ctx.confirm("Delete?", default=False):
        return ToolResult.cancelled()
    remove_path(target)
    _show(ctx, print_success, f"Deleted: {path}")
    return ToolResult.ok(f"Deleted {path}")


def move_file(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    source, dest = args["source"], args["destination"]
    src = resolve_path(ctx.cwd, source)
    if not src.exists():
        return _not_found(source)
    _show(ctx, lambda m: print_progress(m, "yellow"), f"Move: {source} -> {dest}")
    if not ctx.confirm("Move?"):
        return ToolResult.cancelled()
    move_path(src, resolve_path(ctx.cwd, dest))
    _show(ctx, print_success, f"Moved: {source} -> {dest}")
    return ToolResult.ok(f"Moved {source} to {dest}")


def copy_file(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    source, dest = args["source"], args["destination"]
    src = resolve_path(ctx.cwd, source)
    if not src.exists():
        return _not_found(source)
    _show(ctx, lambda m: print_progress(m, "yellow"), f"Copy: {source} -> {dest}")
    if not ctx.confirm("Copy?"):
        return ToolResult.cancelled()
    copy_path(src, resolve_path(ctx.cwd, dest))
    _show(ctx, print_success, f"Copied: {source} -> {dest}")
    return ToolResult.ok(f"Copied {source} to {dest}")


def file_info_tool(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args["path"]
    target = resolve_path(ctx.cwd, path)
    if not target.exists():
        return _not_found(path)
    info = file_info(target)
    _show(ctx, print_info, f"{path}: {info['size_human']}, modified {info['modified']}")
    kind = "directory" if info["is_directory"] else "file"
    summary = f"{path}: {kind}, {info['size_human']}, created {info['created']}, modified {info['modified']}"
    return ToolResult.ok(summary, path=path, **info)


def append_file(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args["path"]
    append_text(resolve_path(ctx.cwd, path), args["content"])
    _show(ctx, print_success, f"Appended to: {path}")
    return ToolResult.ok(f"Appended {len(args['content'])} chars to {path}")


def insert_at_line(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args["path"]
    target = resolve_path(ctx.cwd, path)
    text, err = _read_existing(target, path)
    if err:
        return err
    line = int(args["line"])
    lines = normalize_line_endings(text).split("\n")
    if line < 1 or line > len(lines) + 1:
        return ToolResult.fail(
            f"Invalid argument: line (must be between 1 and {len(lines) + 1})", ErrorKind.VALIDATION
        )
    lines.insert(line - 1, normalize_line_endings(args["content"]))
    if not ctx.confirm(f"Insert at line {line}?"):
        return ToolResult.cancelled()
    result = "\n".join(lines)
    if "\r\n" in text:
        result = result.replace("\n", "\r\n")
    write_text_atomic(target, result)
    _show(ctx, print_success, f"Inserted at line {line}: {path}")
    return ToolResult.ok(f"Inserted at line {line} of {path}")


def read_lines(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    path = args["path"]
    text, err = _read_existing(resolve_path(ctx.cwd, path), path)
    if err:
        return err
    start, end = int(args["start"]), int(args["end"])
    if start < 1 or end < start:
        return ToolResult.fail("Invalid argument: start/end (need 1 <= start <= end)", ErrorKind.VALIDATION)
    selected = normalize_line_endings(text).split("\n")[start - 1 : end]
    _show(ctx, print_info, f"Lines {start}-{end} of {path}")
    return ToolResult.ok("\n".join(selected), lines=selected)


# ---------------------------------------------------------------------------
# Shell / git / network
# ---------------------------------------------------------------------------


def run_command(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    if ctx.executor is None:
        return ToolResult.fail("Command execution is not available", ErrorKind.EXECUTION)
    _show(ctx, print_info, f"Running: {args['command']}")
    result = ctx.executor.execute(
        args["command"],
        ctx.cwd,
        require_confirmation=not ctx.options.auto_approve,
        timeout_ms=ctx.options.command_timeout_ms,
    )
    if not result.success:
        return result
    content = result.get("stdout") or ""
    stderr = result.get("stderr") or ""
    if stderr:
        if content and not content.endswith("\n"):
            content += "\n"
        content += stderr
    return ToolResult.ok(content, **result.data)


def git_status(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    try:
        info = git_info(ctx.cwd)
    except GitError as exc:
        return ToolResult.fail(str(exc), ErrorKind.EXECUTION)
    if info is None:
        return ToolResult.fail("Not a git repository", ErrorKind.NOT_FOUND)
    _show(ctx, print_info, f"Git: {info['branch']} ({info['changed_files']} changes)")
    content = (
        f"Branch: {info['branch'] or '(detached)'}\n"
        f"Changed files: {info['changed_files']}\n"
        f"Last commit: {info['last_commit'] or '(none)'}"
    )
    return ToolResult.ok(content, **info)


def git_diff_tool(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    if not is_git_repo(ctx.cwd):
        return ToolResult.fail("Not a git repository", ErrorKind.NOT_FOUND)
    try:
        diff = git_diff(ctx.cwd, staged=bool(args.get("staged")))
    except GitError as exc:
        return ToolResult.fail(str(exc), ErrorKind.EXECUTION)
    return ToolResult.ok(diff or "(no changes)", diff=diff)


def git_log_tool(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    if not is_git_repo(ctx.cwd):
        return ToolResult.fail("Not a git repository", ErrorKind.NOT_FOUND)
    count = int(args.get("count") or 10)
    try:
        out = git_log(ctx.cwd, count)
    except GitError as exc:
        return ToolResult.fail(str(exc), ErrorKind.EXECUTION)
    _show(ctx, print_info, f"Git log ({count} commits)")
    return ToolResult.ok(out)


def git_commit_tool(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    if not is_git_repo(ctx.cwd):
        return ToolResult.fail("Not a git repository", ErrorKind.NOT_FOUND)
    message = args["message"]
    _show(ctx, lambda m: print_progress(m, "yellow"), f'Commit: "{message}"')
    if not ctx.confirm("Commit?"):
        return ToolResult.cancelled()
    try:
        out = git_commit(ctx.cwd, message)
    except GitError as exc:
        return ToolResult.fail(str(exc), ErrorKind.EXECUTION)
    _show(ctx, print_success, f"Committed: {message}")
    return ToolResult.ok(out or f"Committed: {message}")


def web_fetch(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    url = args["url"]
    try:
        status, body, total = fetch_url(url)
    except ValueError as exc:
        return ToolResult.fail(str(exc), ErrorKind.VALIDATION)
    except OSError as exc:
        return ToolResult.fail(f"Failed to fetch {url}: {exc}", ErrorKind.NOT_FOUND)
    _show(ctx, print_info, f"Fetched: {url} ({total} chars, status {status})")
    return ToolResult.ok(body, status=status, truncated=total > len(body))


# ---------------------------------------------------------------------------
# Planning / interaction
# ---------------------------------------------------------------------------


def todo_write(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    todos = [t for t in args["todos"] if isinstance(t, dict)]
    json_path, _md_path = write_todos(ctx.cwd, todos)
    pending, in_progress, done = summarize(todos)
    summary = f"Todos: {pending} pending, {in_progress} in progress, {done} done"
    _show(ctx, print_success, summary)
    return ToolResult.ok(summary, todos=todos, path=str(json_path))


def codebase_search(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    query = args["query"].lower().strip()
    if not query:
        return ToolResult.fail("Invalid argument: query (must not be empty)", ErrorKind.VALIDATION)
    words = query.split()
    max_results = int(args.get("max_results") or 10)
    files = search_files(args.get("file_pattern") or DEFAULT_CODE_PATTERN, Path(ctx.cwd), limit=config.CODEBASE_SEARCH_MAX_FILES)
    hits: List[Dict[str, Any]] = []
    for path in files:
        try:
            text = read_text(path)
        except OSError:
            continue
        rel = rel_display(path, ctx.cwd)
        for i, line in enumerate(normalize_line_endings(text).split("\n"), 1):
            lower = line.lower()
            score = sum(1 for w in words if w in lower)
            if score or query in lower:
                hits.append({"file": rel, "line": i, "content": line.strip()[:200], "score": score})
    # stable sort keeps discovery order among equal scores
    hits.sort(key=lambda h: -h["score"])
    top = hits[:max_results]
    _show(ctx, print_info, f"Found {len(hits)} matches, showing top {len(top)}")
    content = "\n".join(f"{h['file']}:{h['line']}: {h['content']}" for h in top)
    return ToolResult.ok(content, results=top)


def ask_user(args: Dict[str, Any], ctx: ToolContext) -> ToolResult:
    question = args["question"]
    options = [str(o) for o in (args.get("options") or [])]
    console.print()
    console.print(Text(f"? {question}", style="bold cyan"))
    answer = ctx.confirmer.ask(question, options or None)
    if not answer:
        print_warning("No answer given")
    else:
        _show(ctx, print_info, f"User answered: {answer}")
    return ToolResult.ok(answer, answer=answer)


HANDLERS = {
    "read_file": read_file,
    "write_file": write_file,
    "edit_file": edit_file,
    "multi_edit_file": multi_edit_file,
    "list_directory": list_directory_tool,
    "search_files": search_files_tool,
    "grep": grep,
    "tree": tree,
    "find_replace": find_replace,
    "create_directory": create_directory,
    "delete_file": delete_file,
    "move_file": move_file,
    "copy_file": copy_file,
    "file_info": file_info_tool,
    "append_file": append_file,
    "insert_at_line": insert_at_line,
    "read_lines": read_lines,
    "run_command": run_command,
    "git_status": git_status,
    "git_diff": git_diff_tool,
    "git_log": git_log_tool,
    "git_commit": git_commit_tool,
    "web_fetch": web_fetch,
    "todo_write": todo_write,
    "codebase_search": codebase_search,
    "ask_user": ask_user,
}
