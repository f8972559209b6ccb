"""Heuristic risk classification for shell commands.

Two independent checks: a command is dangerous when it contains any listed
substring, and safe when it starts with any listed read-only prefix. A
command can be neither, in which case the generic confirmation applies.
"""

from typing import Tuple

# Destructive, privilege-escalating, or remote-fetching fragments (matched case-insensitively)
DANGEROUS_PATTERNS: Tuple[str, ...] = (
    "rm -rf",
    "rm -r",
    "rmdir",
    "del /s",
    "rd /s",
    "format",
    "mkfs",
    "dd if=",
    ":(){:|:&};:",
    "chmod -r 777",
    "chmod 777",
    "chown -r",
    "> /dev/sda",
    "mv /* ",
    "wget",
    "curl",
    "sudo",
    "su ",
    "runas",
    "shutdown",
    "reboot",
    "halt",
    "poweroff",
    "kill -9",
    "killall",
    "taskkill /f",
)

# Read-only / introspective prefixes
SAFE_PREFIXES: Tuple[str, ...] = (
    "ls",
    "dir",
    "pwd",
    "cd",
    "echo",
    "cat",
    "type",
    "head",
    "tail",
    "grep",
    "find",
    "which",
    "where",
    "whoami",
    "date",
    "env",
    "node --version",
    "npm --version",
    "python --version",
    "python3 --version",
    "git status",
    "git log",
    "git branch",
    "git diff",
    "npm list",
    "pip list",
)


def is_dangerous(command: str) -> bool:
    lower = (command or "").lower()
    return any(pattern in lower for pattern in DANGEROUS_PATTERNS)


def is_safe(command: str) -> bool:
    lower = (command or "").lower().strip()
    return any(lower.startswith(prefix) for prefix in SAFE_PREFIXES)


def classify(command: str) -> str:
    """Return "dangerous", "safe" or "unknown". Dangerous wins when both apply."""
    if is_dangerous(command):
        return "dangerous"
    if is_safe(command):
        return "safe"
    return "unknown"
