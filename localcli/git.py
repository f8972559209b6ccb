"""Thin git wrappers. Arguments are always passed as an argv list, never through a shell."""

import subprocess
from pathlib import Path
from typing import Dict, List, Optional

from .utils import dbg

GIT_TIMEOUT_S = 30


class GitError(RuntimeError):
    pass


def is_git_repo(cwd: str) -> bool:
    return (Path(cwd) / ".git").exists()


def run_git(args: List[str], cwd: str) -> str:
    """Run `git <args>` in cwd and return stdout. Raises GitError on non-zero exit or spawn failure."""
    dbg(f"run_git: {args!r} cwd={cwd!r}")
    try:
        proc = subprocess.run(
            ["git"] + list(args),
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=GIT_TIMEOUT_S,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise GitError(str(exc)) from exc
    if proc.returncode != 0:
        raise GitError((proc.stderr or "").strip() or f"Git command failed with code {proc.returncode}")
    return proc.stdout


def git_info(cwd: str) -> Optional[Dict[str, object]]:
    """Branch, change summary and last commit, or None outside a repository."""
    if not is_git_repo(cwd):
        return None
    branch = run_git(["branch", "--show-current"], cwd).strip()
    status = run_git(["status", "--porcelain"], cwd)
    try:
        last_commit = run_git(["log", "-1", "--pretty=format:%h %s"], cwd).strip()
    except GitError:
        # Fresh repository without commits
        last_commit = ""
    changed = [ln for ln in status.splitlines() if ln.strip()]
    return {
        "branch": branch,
        "has_changes": bool(changed),
        "changed_files": len(changed),
        "last_commit": last_commit,
    }


def git_diff(cwd: str, staged: bool = False) -> str:
    if not is_git_repo(cwd):
        return ""
    return run_git(["diff", "--staged"] if staged else ["diff"], cwd)


def git_log(cwd: str, count: int = 10) -> str:
    return run_git(["log", "--oneline", "-n", str(max(1, int(count)))], cwd).strip()


def git_commit(cwd: str, message: str) -> str:
    run_git(["add", "-A"], cwd)
    return run_git(["commit", "-m", message], cwd).strip()
