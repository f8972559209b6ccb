"""Find-and-replace tolerant of line-ending and whitespace drift.

Strategies, tried in order after normalising line endings to LF:
  exact       - first occurrence of the old text, replaced verbatim;
  whitespace  - line window where every line matches after collapsing runs
                of spaces/tabs and trimming; the matched line range is
                replaced by the new text.
When nothing matches, the outcome carries a diagnostic pointing at the most
similar line. The original CRLF convention is restored on output.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

_WS_RUN = re.compile(r"[ \t]+")

DIAGNOSTIC_FRAGMENT_CHARS = 20
DIAGNOSTIC_PREVIEW_CHARS = 60


@dataclass
class EditRequest:
    """One edit against one file; derived fields are computed on construction."""

    path: str
    old_content: str
    new_content: str
    file_text: str = ""
    line_ending: str = field(init=False)
    norm_file: str = field(init=False)
    norm_old: str = field(init=False)
    norm_new: str = field(init=False)

    def __post_init__(self) -> None:
        self.line_ending = detect_line_ending(self.file_text)
        self.norm_file = normalize_line_endings(self.file_text)
        self.norm_old = normalize_line_endings(self.old_content)
        self.norm_new = normalize_line_endings(self.new_content)

    def restore(self, text: str) -> str:
        if self.line_ending == "\r\n":
            return text.replace("\n", "\r\n")
        return text


@dataclass
class EditOutcome:
    matched: bool
    result: Optional[str] = None
    diagnostic: Optional[str] = None
    strategy: str = ""
    start_line: int = 0
    old_line_count: int = 0
    new_line_count: int = 0


@dataclass
class MultiEditOutcome:
    applied: int
    total: int
    result: Optional[str] = None
    skipped: List[int] = field(default_factory=list)

    @property
    def matched(self) -> bool:
        return self.applied > 0


def detect_line_ending(text: str) -> str:
    return "\r\n" if "\r\n" in (text or "") else "\n"


def normalize_line_endings(text: str) -> str:
    return (text or "").replace("\r\n", "\n")


def collapse_whitespace(line: str) -> str:
    return _WS_RUN.sub(" ", line).strip()


def _exact_replace(file_text: str, old: str, new: str) -> Optional[Tuple[str, int]]:
    """First-occurrence replacement. Returns (result, 0-based start line) or None."""
    idx = file_text.find(old)
    if idx == -1:
        return None
    return file_text[:idx] + new + file_text[idx + len(old):], file_text.count("\n", 0, idx)


def _whitespace_replace(file_text: str, old: str, new: str) -> Optional[Tuple[str, int]]:
    """Slide a window of len(old lines) over the file comparing collapsed lines."""
    lines = file_text.split("\n")
    old_lines = old.split("\n")
    new_text = new
    # A trailing newline on the old text should not demand a blank line after the match
    if len(old_lines) > 1 and old_lines[-1] == "":
        old_lines = old_lines[:-1]
        if new_text.endswith("\n"):
            new_text = new_text[:-1]
    wanted = [collapse_whitespace(ln) for ln in old_lines]
    if not any(wanted):
        return None
    span = len(wanted)
    for start in range(0, len(lines) - span + 1):
        if all(collapse_whitespace(lines[start + j]) == wanted[j] for j in range(span)):
            spliced = lines[:start] + [new_text] + lines[start + span:]
            return "\n".join(spliced), start
    return None


_MATCH_STRATEGIES: List[Tuple[str, Callable[[str, str, str], Optional[Tuple[str, int]]]]] = [
    ("exact", _exact_replace),
    ("whitespace", _whitespace_replace),
]


def _first_meaningful_line(text: str) -> str:
    for line in text.split("\n"):
        if line.strip():
            return line.strip()
    return ""


def build_diagnostic(file_text: str, old_text: str) -> str:
    """Explain a failed match and point at the most similar line, if any."""
    norm_file = normalize_line_endings(file_text)
    fragment = _first_meaningful_line(normalize_line_endings(old_text))[:DIAGNOSTIC_FRAGMENT_CHARS]
    hint = ""
    if fragment:
        needle = fragment.lower()
        for i, line in enumerate(norm_file.split("\n")):
            if needle in line.lower():
                hint = f'\nSimilar at line {i + 1}: "{line.strip()[:DIAGNOSTIC_PREVIEW_CHARS]}"'
                break
    return (
        f'Content not found in file (searched for "{fragment}").{hint}\n'
        "Tip: Use read_file first, then copy the EXACT text to edit."
    )


def apply_edit(file_text: str, old_text: str, new_text: str) -> EditOutcome:
    """Replace old_text with new_text in file_text. Never raises; the input is never mutated."""
    req = EditRequest(path="", old_content=old_text or "", new_content=new_text or "", file_text=file_text or "")
    if not req.norm_old:
        # An empty needle would "match" at offset 0
        return EditOutcome(matched=False, diagnostic=build_diagnostic(req.norm_file, req.norm_old))
    for name, strategy in _MATCH_STRATEGIES:
        hit = strategy(req.norm_file, req.norm_old, req.norm_new)
        if hit is None:
            continue
        result, start = hit
        return EditOutcome(
            matched=True,
            result=req.restore(result),
            strategy=name,
            start_line=start + 1,
            old_line_count=len(req.norm_old.split("\n")),
            new_line_count=len(req.norm_new.split("\n")),
        )
    return EditOutcome(matched=False, diagnostic=build_diagnostic(req.norm_file, req.norm_old))


def apply_multi_edit(file_text: str, edits: Sequence[Dict[str, str]]) -> MultiEditOutcome:
    """Apply each {old_content, new_content} edit with the exact strategy against a running copy.

    Edits that do not match are skipped (their indices are reported). Succeeds
    when at least one edit applied.
    """
    line_ending = detect_line_ending(file_text)
    current = normalize_line_endings(file_text)
    applied = 0
    skipped: List[int] = []
    for i, edit in enumerate(edits):
        if not isinstance(edit, dict) or edit.get("old_content") is None or edit.get("new_content") is None:
            skipped.append(i)
            continue
        old = normalize_line_endings(str(edit["old_content"]))
        new = normalize_line_endings(str(edit["new_content"]))
        hit = _exact_replace(current, old, new) if old else None
        if hit is None:
            skipped.append(i)
            continue
        current = hit[0]
        applied += 1
    if applied == 0:
        return MultiEditOutcome(applied=0, total=len(edits), skipped=skipped)
    if line_ending == "\r\n":
        current = current.replace("\n", "\r\n")
    return MultiEditOutcome(applied=applied, total=len(edits), result=current, skipped=skipped)
