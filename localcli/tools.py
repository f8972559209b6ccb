"""Tool catalogue: OpenAI-style function schemas plus the required-field sets the registry validates."""

from typing import Any, Dict, List, Optional


def _tool(name: str, description: str, properties: Optional[Dict[str, Any]] = None, required: Optional[List[str]] = None) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties or {},
                "required": list(required or []),
            },
        },
    }


def _s(description: str) -> Dict[str, str]:
    return {"type": "string", "description": description}


def _n(description: str) -> Dict[str, str]:
    return {"type": "number", "description": description}


def _b(description: str) -> Dict[str, str]:
    return {"type": "boolean", "description": description}


TOOLS: List[Dict[str, Any]] = [
    _tool("read_file", "Read the contents of a file at the given path.", {"path": _s("Path to the file")}, ["path"]),
    _tool(
        "write_file",
        "Write content to a file, creating it and its parent directories if needed.",
        {"path": _s("Path to write to"), "content": _s("Content to write")},
        ["path", "content"],
    ),
    _tool(
        "edit_file",
        "Edit a file by replacing old content with new content. Copy old_content exactly from read_file output.",
        {
            "path": _s("Path to the file"),
            "old_content": _s("Content to find"),
            "new_content": _s("Content to replace with"),
        },
        ["path", "old_content", "new_content"],
    ),
    _tool(
        "multi_edit_file",
        "Make multiple edits to a file in a single operation.",
        {
            "path": _s("Path to the file"),
            "edits": {
                "type": "array",
                "description": "Array of edit operations",
                "items": {
                    "type": "object",
                    "properties": {"old_content": _s("Content to find"), "new_content": _s("Content to replace with")},
                    "required": ["old_content", "new_content"],
                },
            },
        },
        ["path", "edits"],
    ),
    _tool(
        "list_directory",
        "List files and folders in a directory.",
        {"path": _s("Directory path"), "recursive": _b("List recursively")},
        ["path"],
    ),
    _tool("search_files", "Search for files matching a glob pattern.", {"pattern": _s('Glob pattern (e.g., "**/*.py")')}, ["pattern"]),
    _tool(
        "grep",
        "Search for text in files.",
        {
            "pattern": _s("Text to search for"),
            "path": _s("File or directory to search in"),
            "include": _s('File pattern to include (e.g., "**/*.py")'),
        },
        ["pattern"],
    ),
    _tool(
        "tree",
        "Show directory structure as a tree.",
        {"path": _s("Directory path (default: current)"), "depth": _n("Max depth to show (default: 3)")},
    ),
    _tool(
        "find_replace",
        "Find and replace text across multiple files.",
        {
            "find": _s("Text to find"),
            "replace": _s("Text to replace with"),
            "path": _s("Directory or file path"),
            "include": _s('File pattern (e.g., "**/*.py")'),
        },
        ["find", "replace"],
    ),
    _tool("create_directory", "Create a new directory.", {"path": _s("Directory path to create")}, ["path"]),
    _tool("delete_file", "Delete a file or directory.", {"path": _s("Path to delete")}, ["path"]),
    _tool(
        "move_file",
        "Move or rename a file or directory.",
        {"source": _s("Source path"), "destination": _s("Destination path")},
        ["source", "destination"],
    ),
    _tool(
        "copy_file",
        "Copy a file to a new location.",
        {"source": _s("Source path"), "destination": _s("Destination path")},
        ["source", "destination"],
    ),
    _tool("file_info", "Get information about a file (size, type, modified date).", {"path": _s("File path")}, ["path"]),
    _tool(
        "append_file",
        "Append content to the end of a file.",
        {"path": _s("File path"), "content": _s("Content to append")},
        ["path", "content"],
    ),
    _tool(
        "insert_at_line",
        "Insert content at a specific line number.",
        {"path": _s("File path"), "line": _n("Line number to insert at (1-indexed)"), "content": _s("Content to insert")},
        ["path", "line", "content"],
    ),
    _tool(
        "read_lines",
        "Read specific lines from a file.",
        {"path": _s("File path"), "start": _n("Start line (1-indexed)"), "end": _n("End line (inclusive)")},
        ["path", "start", "end"],
    ),
    _tool("run_command", "Execute a shell command in the project directory.", {"command": _s("Command to run")}, ["command"]),
    _tool("git_status", "Get git repository status."),
    _tool("git_diff", "Get git diff of changes.", {"staged": _b("Show staged changes only")}),
    _tool("git_log", "Show git commit history.", {"count": _n("Number of commits to show (default: 10)")}),
    _tool("git_commit", "Stage all changes and create a git commit.", {"message": _s("Commit message")}, ["message"]),
    _tool("web_fetch", "Fetch content from a URL.", {"url": _s("URL to fetch")}, ["url"]),
    _tool(
        "todo_write",
        "Create or update the task list. The whole list is replaced on every call.",
        {
            "todos": {
                "type": "array",
                "description": "Array of todo items",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": _s("Unique ID for the todo"),
                        "content": _s("Todo description"),
                        "status": {"type": "string", "enum": ["pending", "in_progress", "done"]},
                        "priority": {"type": "string", "enum": ["low", "medium", "high"]},
                    },
                    "required": ["id", "content", "status"],
                },
            }
        },
        ["todos"],
    ),
    _tool(
        "codebase_search",
        "Search the codebase for lines matching the words of a query.",
        {
            "query": _s("Search query (function names, concepts, etc.)"),
            "file_pattern": _s('File pattern to search (e.g., "**/*.py")'),
            "max_results": _n("Maximum results to return (default: 10)"),
        },
        ["query"],
    ),
    _tool(
        "ask_user",
        "Ask the user a question and wait for their response.",
        {"question": _s("Question to ask the user"), "options": {"type": "array", "items": {"type": "string"}}},
        ["question"],
    ),
]

TOOLS_BY_NAME: Dict[str, Dict[str, Any]] = {t["function"]["name"]: t for t in TOOLS}


def tool_names() -> List[str]:
    return [t["function"]["name"] for t in TOOLS]


def required_fields(name: str) -> List[str]:
    spec = TOOLS_BY_NAME.get(name)
    if not spec:
        return []
    return list(spec["function"]["parameters"].get("required") or [])


def field_types(name: str) -> Dict[str, str]:
    spec = TOOLS_BY_NAME.get(name)
    if not spec:
        return {}
    props = spec["function"]["parameters"].get("properties") or {}
    return {k: str(v.get("type") or "") for k, v in props.items()}


def tools_prompt_section() -> str:
    """One line per tool for the system prompt: name(required, optional?) - description."""
    lines = []
    for t in TOOLS:
        fn = t["function"]
        params = fn["parameters"]
        required = params.get("required") or []
        names = [p if p in required else p + "?" for p in params.get("properties") or {}]
        lines.append(f"- {fn['name']}({', '.join(names)}): {fn['description']}")
    return "\n".join(lines)
