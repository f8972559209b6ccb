"""Static Unix <-> Windows command translation tables.

Lookup order for a command:
  1. exact match of the whole (trimmed) command string;
  2. the longest table entry that is a token prefix of the command
     (base command plus known flags), remaining arguments appended;
  3. base command only, all arguments appended unchanged.
No match returns None and the caller runs the command as-is.
"""

import re
from typing import Dict, List, Optional

UNIX_TO_WINDOWS: Dict[str, str] = {
    "ls": "dir",
    "ls -la": "dir",
    "ls -l": "dir",
    "ls -a": "dir /a",
    "ls -al": "dir /a",
    "ls -lh": "dir",
    "cat": "type",
    "rm": "del",
    "rm -f": "del /f",
    "rm -r": "rmdir /s /q",
    "rm -rf": "rmdir /s /q",
    "cp": "copy",
    "cp -r": "xcopy /s /e",
    "mv": "move",
    "mkdir -p": "mkdir",
    "touch": "type nul >",
    "pwd": "cd",
    "clear": "cls",
    "grep": "findstr",
    "find": "dir /s /b",
    "head": "more",
    "tail": "more",
    "chmod": "echo Windows does not support chmod",
    "chown": "echo Windows does not support chown",
    "which": "where",
    "man": "help",
    "uname": "ver",
    "ps": "tasklist",
    "kill": "taskkill /PID",
    "df": "wmic logicaldisk get size,freespace,caption",
    "du": "dir /s",
    "ln": "mklink",
    "tar": "tar",
    "curl": "curl",
    "wget": "curl -O",
}

WINDOWS_TO_UNIX: Dict[str, str] = {
    "dir": "ls -la",
    "type": "cat",
    "del": "rm",
    "copy": "cp",
    "move": "mv",
    "cls": "clear",
    "findstr": "grep",
    "where": "which",
    "ver": "uname -a",
    "tasklist": "ps aux",
    "taskkill": "kill",
}


def _table(to_windows: bool) -> Dict[str, str]:
    return UNIX_TO_WINDOWS if to_windows else WINDOWS_TO_UNIX


def _tokens(command: str) -> List[str]:
    return [t for t in re.split(r"\s+", command.strip()) if t]


def translate_command(command: str, to_windows: bool = True) -> Optional[str]:
    """Translate command toward Windows (to_windows=True) or toward Unix. Returns None when unknown."""
    table = _table(to_windows)
    trimmed = (command or "").strip()
    if not trimmed:
        return None
    if trimmed in table:
        return table[trimmed]

    parts = _tokens(trimmed)
    base = parts[0]
    best_len = 0
    for key in table:
        key_parts = key.split()
        if key_parts[0] != base or len(key_parts) < 2 or len(key_parts) > len(parts):
            continue
        if parts[: len(key_parts)] == key_parts and len(key_parts) > best_len:
            best_len = len(key_parts)
    if best_len:
        prefix = " ".join(parts[:best_len])
        rest = " ".join(parts[best_len:])
        return table[prefix] + (" " + rest if rest else "")

    if base in table:
        rest = " ".join(parts[1:])
        return table[base] + (" " + rest if rest else "")
    return None


def base_command(command: str) -> str:
    parts = _tokens(command or "")
    return parts[0] if parts else ""
