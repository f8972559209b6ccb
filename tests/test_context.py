from localcli.context import build_context, detect_project_type, extract_patterns, format_context_for_prompt
from localcli.todos import load_todos, render_markdown, summarize, write_todos


def test_detect_project_type(tmp_path):
    assert detect_project_type(str(tmp_path)) == "unknown"
    (tmp_path / "pyproject.toml").write_text("[project]\nname = 'x'\n", encoding="utf-8")
    assert detect_project_type(str(tmp_path)) == "python"


def test_extract_patterns():
    assert extract_patterns('fix utils.py and the "retry loop"') == ["utils.py", "retry loop"]


def test_context_picks_mentioned_files(tmp_path):
    (tmp_path / "pyproject.toml").write_text("[project]\n", encoding="utf-8")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "retry.py").write_text("def retry():\n    pass\n", encoding="utf-8")
    ctx = build_context(str(tmp_path), "why does retry.py loop?")
    assert ctx.git is None
    assert ctx.relevant_files[0].path == "pkg/retry.py"
    assert ctx.relevant_files[0].language == "python"
    prompt = format_context_for_prompt(ctx)
    assert "Project Type: python" in prompt
    assert "### pkg/retry.py\n```python\ndef retry():" in prompt


def test_todos_round_trip(tmp_path):
    todos = [
        {"id": "a", "content": "one", "status": "in_progress"},
        {"id": "b", "content": "two", "status": "completed", "priority": "low"},
        {"id": "c", "content": "three", "status": "pending"},
    ]
    write_todos(str(tmp_path), todos)
    assert load_todos(str(tmp_path)) == todos
    assert summarize(todos) == (1, 1, 1)
    assert render_markdown(todos) == "# Task List\n\n- [/] one\n- [x] two (low)\n- [ ] three\n"
    assert load_todos(str(tmp_path / "elsewhere")) == []
