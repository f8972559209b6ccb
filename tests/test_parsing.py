"""Tool-call extraction across the supported encodings."""

import unittest

from localcli.parsing import parse_tool_calls, strip_tool_calls
from localcli.types import ToolInvocation


class TestFencedAndMarker(unittest.TestCase):
    def test_fenced_json_block(self):
        text = 'Reading it now.\n```json\n{"tool": "read_file", "arguments": {"path": "a.txt"}}\n```\n'
        self.assertEqual(parse_tool_calls(text), [ToolInvocation("read_file", {"path": "a.txt"})])

    def test_untagged_fence(self):
        text = '```\n{"tool": "tree", "arguments": {}}\n```'
        self.assertEqual(parse_tool_calls(text), [ToolInvocation("tree", {})])

    def test_two_blocks_keep_order(self):
        text = (
            '```json\n{"tool": "write_file", "arguments": {"path": "a.txt", "content": "x"}}\n```\n'
            "then\n"
            '```json\n{"tool": "read_file", "arguments": {"path": "a.txt"}}\n```'
        )
        self.assertEqual([c.name for c in parse_tool_calls(text)], ["write_file", "read_file"])

    def test_nested_braces_in_payload(self):
        src = "function f() { return {a: 1}; }"
        text = '```json\n{"tool": "write_file", "arguments": {"path": "a.js", "content": "%s"}}\n```' % src
        calls = parse_tool_calls(text)
        self.assertEqual(len(calls), 1)
        self.assertEqual(calls[0].arguments["content"], src)

    def test_message_marker(self):
        text = 'ok <|message|>{"tool": "grep", "arguments": {"pattern": "foo"}}'
        self.assertEqual(parse_tool_calls(text), [ToolInvocation("grep", {"pattern": "foo"})])

    def test_non_tool_fence_ignored(self):
        text = "```python\nprint({'a': 1})\n```"
        self.assertEqual(parse_tool_calls(text), [])


class TestOtherEncodings(unittest.TestCase):
    def test_function_call_tag(self):
        text = '<function_call>{"name": "run_command", "arguments": {"command": "ls"}}</function_call>'
        self.assertEqual(parse_tool_calls(text), [ToolInvocation("run_command", {"command": "ls"})])

    def test_function_call_string_arguments(self):
        text = '<function_call>{"name": "read_file", "arguments": "{\\"path\\": \\"x.py\\"}"}</function_call>'
        self.assertEqual(parse_tool_calls(text), [ToolInvocation("read_file", {"path": "x.py"})])

    def test_container_exec_uses_last_cmd_element(self):
        text = (
            "<|start|>assistant<|channel|>commentary to=container.exec <|constrain|>json"
            '<|message|>{"cmd": ["bash", "-lc", "ls -la"]}<|call|>'
        )
        self.assertEqual(parse_tool_calls(text), [ToolInvocation("run_command", {"command": "ls -la"})])

    def test_repo_browser_bare_arguments(self):
        text = (
            "<|start|>assistant<|channel|>commentary to=repo_browser.read_file <|constrain|>json"
            '<|message|>{"path": "src/app.py"}<|call|>'
        )
        self.assertEqual(parse_tool_calls(text), [ToolInvocation("read_file", {"path": "src/app.py"})])

    def test_bare_json(self):
        text = 'I will list it: {"tool": "list_directory", "arguments": {"path": "."}} done.'
        self.assertEqual(parse_tool_calls(text), [ToolInvocation("list_directory", {"path": "."})])


def test_fenced_call_is_not_counted_twice():
    text = '```json\n{"tool": "read_file", "arguments": {"path": "a"}}\n```'
    assert len(parse_tool_calls(text)) == 1


def test_mixed_formats_concatenate_in_format_order():
    text = (
        '<function_call>{"name": "git_status", "arguments": {}}</function_call>\n'
        '```json\n{"tool": "read_file", "arguments": {"path": "a"}}\n```'
    )
    assert [c.name for c in parse_tool_calls(text)] == ["read_file", "git_status"]


def test_bare_json_alongside_function_call():
    text = (
        '{"tool": "read_file", "arguments": {"path": "a"}}\n'
        '<function_call>{"name": "read_file", "arguments": {"path": "b"}}</function_call>'
    )
    assert parse_tool_calls(text) == [
        ToolInvocation("read_file", {"path": "a"}),
        ToolInvocation("read_file", {"path": "b"}),
    ]


def test_routed_payload_with_tool_key_is_counted_once():
    text = (
        "<|start|>assistant<|channel|>commentary to=repo_browser.search <|constrain|>json"
        '<|message|>{"tool": "grep", "arguments": {"pattern": "x"}}<|call|>'
    )
    assert parse_tool_calls(text) == [ToolInvocation("grep", {"pattern": "x"})]


def test_malformed_candidate_is_dropped_and_scan_continues():
    text = (
        '```json\n{"tool": "read_file", "arguments": {\n```\n'
        '```json\n{"tool": "tree", "arguments": {}}\n```'
    )
    assert parse_tool_calls(text) == [ToolInvocation("tree", {})]


def test_arguments_must_be_an_object():
    assert parse_tool_calls('{"tool": "read_file", "arguments": "a.txt"}') == []


def test_empty_and_plain_text():
    assert parse_tool_calls("") == []
    assert parse_tool_calls("Just an answer, no tools.") == []


def test_strip_tool_calls_keeps_prose_and_other_code():
    text = (
        "Here you go.\n"
        '```json\n{"tool": "read_file", "arguments": {"path": "a"}}\n```\n'
        "```python\nprint(1)\n```"
    )
    out = strip_tool_calls(text)
    assert '"tool"' not in out
    assert "Here you go." in out
    assert "print(1)" in out
