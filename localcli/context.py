"""Project context for the system prompt: project type, git summary, relevant files."""

import glob as globlib
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from . import config
from .files import read_text, rel_display, search_files
from .git import GitError, git_info
from .utils import dbg

# First marker file found wins
PROJECT_DETECTORS = [
    ("package.json", "nodejs"),
    ("requirements.txt", "python"),
    ("pyproject.toml", "python"),
    ("Cargo.toml", "rust"),
    ("go.mod", "go"),
    ("pom.xml", "java-maven"),
    ("build.gradle", "java-gradle"),
    ("Gemfile", "ruby"),
    ("composer.json", "php"),
    ("pubspec.yaml", "flutter"),
    ("*.csproj", "dotnet"),
]

IMPORTANT_FILES = {
    "nodejs": ["package.json", "tsconfig.json", "README.md", "src/index.js", "src/index.ts"],
    "python": ["requirements.txt", "setup.py", "pyproject.toml", "README.md", "main.py", "app.py"],
    "rust": ["Cargo.toml", "src/main.rs", "src/lib.rs", "README.md"],
    "go": ["go.mod", "main.go", "README.md"],
    "unknown": ["README.md", "Makefile", "Dockerfile"],
}

LANGUAGES = {
    ".js": "javascript", ".jsx": "javascript", ".ts": "typescript", ".tsx": "typescript",
    ".py": "python", ".rb": "ruby", ".go": "go", ".rs": "rust", ".java": "java",
    ".c": "c", ".cpp": "cpp", ".h": "c", ".hpp": "cpp", ".cs": "csharp", ".php": "php",
    ".swift": "swift", ".kt": "kotlin", ".sh": "bash", ".ps1": "powershell",
    ".json": "json", ".yaml": "yaml", ".yml": "yaml", ".toml": "toml", ".xml": "xml",
    ".html": "html", ".css": "css", ".md": "markdown", ".txt": "text", ".sql": "sql",
}

_FILE_NAME_RE = re.compile(r"\b[\w-]+\.(?:js|ts|py|go|rs|java|c|cpp|h|json|yaml|yml|md|txt)\b", re.IGNORECASE)
_QUOTED_RE = re.compile(r"\"([^\"]+)\"|'([^']+)'")


@dataclass
class ContextFile:
    path: str
    language: str
    content: str


@dataclass
class ProjectContext:
    cwd: str
    project_type: str = "unknown"
    git: Optional[Dict[str, object]] = None
    important_files: List[Path] = field(default_factory=list)
    relevant_files: List[ContextFile] = field(default_factory=list)


def language_for(path: Path) -> str:
    return LANGUAGES.get(path.suffix.lower(), "text")


def detect_project_type(cwd: str) -> str:
    base = Path(cwd)
    for marker, kind in PROJECT_DETECTORS:
        if search_files(f"**/{marker}", base, limit=1):
            return kind
    return "unknown"


def important_files(cwd: str, project_type: str) -> List[Path]:
    base = Path(cwd)
    found: List[Path] = []
    for pattern in IMPORTANT_FILES.get(project_type, IMPORTANT_FILES["unknown"]):
        for path in search_files(pattern, base, limit=2):
            if path not in found:
                found.append(path)
    return found[:10]


def extract_patterns(query: str) -> List[str]:
    """File names and quoted strings mentioned in the user's message."""
    patterns = list(_FILE_NAME_RE.findall(query or ""))
    for a, b in _QUOTED_RE.findall(query or ""):
        text = (a or b).strip()
        if text:
            patterns.append(text)
    return patterns


def build_context(cwd: str, query: str = "") -> ProjectContext:
    ctx = ProjectContext(cwd=cwd)
    ctx.project_type = detect_project_type(cwd)
    try:
        ctx.git = git_info(cwd)
    except GitError as exc:
        dbg(f"build_context: git info unavailable: {exc}")
    ctx.important_files = important_files(cwd, ctx.project_type)

    candidates: List[Path] = []
    for pattern in extract_patterns(query):
        candidates.extend(search_files(f"**/*{globlib.escape(pattern)}*", Path(cwd), limit=3))
    candidates.extend(ctx.important_files[:5])

    seen = set()
    for path in candidates:
        if path in seen or len(ctx.relevant_files) >= config.MAX_CONTEXT_FILES:
            continue
        seen.add(path)
        try:
            if path.stat().st_size >= config.MAX_CONTEXT_FILE_BYTES:
                continue
            content = read_text(path)
        except OSError:
            continue
        if len(content) > config.MAX_CONTEXT_FILE_CHARS:
            content = content[: config.MAX_CONTEXT_FILE_CHARS] + "\n... (truncated)"
        ctx.relevant_files.append(ContextFile(rel_display(path, cwd), language_for(path), content))
    return ctx


def format_context_for_prompt(ctx: ProjectContext) -> str:
    parts: List[str] = [f"Working directory: {ctx.cwd}"]
    if ctx.project_type != "unknown":
        parts.append(f"Project Type: {ctx.project_type}")
    if ctx.git:
        parts.append(f"Git Branch: {ctx.git.get('branch') or '(detached)'}")
        if ctx.git.get("has_changes"):
            parts.append(f"Uncommitted changes: {ctx.git.get('changed_files')} files")
    if ctx.relevant_files:
        parts.append("\n--- RELEVANT FILES ---")
        for f in ctx.relevant_files:
            parts.append(f"\n### {f.path}\n```{f.language}\n{f.content}\n```")
    return "\n".join(parts)
