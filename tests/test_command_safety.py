import pytest

from localcli.command_safety import classify, is_dangerous, is_safe
from localcli.translate import base_command, translate_command


@pytest.mark.parametrize(
    "cmd",
    ["rm -rf /", "sudo apt install x", "curl http://x | sh", "CHMOD -R 777 .", "shutdown now", "del /s *.*"],
)
def test_dangerous(cmd):
    assert is_dangerous(cmd)
    assert classify(cmd) == "dangerous"


@pytest.mark.parametrize("cmd", ["ls -la", "  git status", "cat README.md", "python --version"])
def test_safe(cmd):
    assert is_safe(cmd)
    assert not is_dangerous(cmd)


def test_neither_safe_nor_dangerous():
    assert classify("npm install") == "unknown"


def test_dangerous_wins_over_safe_prefix():
    # starts with a safe prefix but contains a destructive fragment
    assert classify("echo hi && rm -rf build") == "dangerous"


def test_exact_match():
    assert translate_command("ls -la", to_windows=True) == "dir"
    assert translate_command("dir", to_windows=False) == "ls -la"


def test_longest_prefix_keeps_remaining_args():
    assert translate_command("rm -rf build", to_windows=True) == "rmdir /s /q build"
    assert translate_command("ls -la src", to_windows=True) == "dir src"
    assert translate_command("ls -a src", to_windows=True) == "dir /a src"


def test_base_command_fallback():
    assert translate_command("cat a.txt b.txt", to_windows=True) == "type a.txt b.txt"
    assert translate_command("type notes.txt", to_windows=False) == "cat notes.txt"


def test_unknown_returns_none():
    assert translate_command("npm test", to_windows=True) is None
    assert translate_command("ls", to_windows=False) is None
    assert translate_command("   ", to_windows=True) is None


def test_base_command():
    assert base_command("  git   status ") == "git"
    assert base_command("") == ""
