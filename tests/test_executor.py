"""Command executor: gating, translation retry, and the real process runner."""

import sys
import time
import unittest

import pytest

from localcli.confirm import ScriptedConfirmer
from localcli.executor import CommandExecutor, is_command_not_found, run_process
from localcli.types import CommandExecution, ErrorKind, ToolResult


class FakeRunner:
    """Records executions; answers from a list of results (last one repeats)."""

    def __init__(self, *results):
        self.results = list(results) or [ToolResult.ok("", stdout="", stderr="", exit_code=0)]
        self.calls = []

    def __call__(self, execution, is_windows):
        self.calls.append(execution)
        idx = min(len(self.calls) - 1, len(self.results) - 1)
        return self.results[idx]


def _not_found(stderr="sh: 1: dir: not found\n"):
    return ToolResult.fail("Exit code: 127", ErrorKind.EXECUTION, stdout="", stderr=stderr, exit_code=127)


class TestGating(unittest.TestCase):
    def test_safe_command_skips_generic_prompt(self):
        confirmer = ScriptedConfirmer()
        ex = CommandExecutor(confirmer, is_windows=False, runner=FakeRunner(), show_progress=False)
        result = ex.execute("git status", "/tmp")
        self.assertTrue(result.success)
        self.assertEqual(confirmer.asked, [])

    def test_unknown_command_asks_once(self):
        confirmer = ScriptedConfirmer()
        ex = CommandExecutor(confirmer, is_windows=False, runner=FakeRunner(), show_progress=False)
        ex.execute("npm install", "/tmp")
        self.assertEqual(confirmer.asked, ["Run this command?"])

    def test_no_prompt_when_confirmation_not_required(self):
        confirmer = ScriptedConfirmer()
        ex = CommandExecutor(confirmer, is_windows=False, runner=FakeRunner(), show_progress=False)
        ex.execute("npm install", "/tmp", require_confirmation=False)
        self.assertEqual(confirmer.asked, [])

    def test_dangerous_prompts_even_without_confirmation(self):
        confirmer = ScriptedConfirmer(answers=[False])
        runner = FakeRunner()
        ex = CommandExecutor(confirmer, is_windows=False, runner=runner, pretranslate=True, show_progress=False)
        result = ex.execute("rm -rf build", "/tmp", require_confirmation=False)
        self.assertFalse(result.success)
        self.assertTrue(result.is_cancelled)
        self.assertEqual(result.error, "Command cancelled by user")
        self.assertEqual(runner.calls, [])
        self.assertEqual(len(confirmer.asked), 1)

    def test_empty_command_is_validation_error(self):
        ex = CommandExecutor(ScriptedConfirmer(), is_windows=False, runner=FakeRunner(), show_progress=False)
        self.assertEqual(ex.execute("  ", "/tmp").error_kind, ErrorKind.VALIDATION)


class TestRetry(unittest.TestCase):
    def test_pretranslates_toward_host(self):
        runner = FakeRunner()
        ex = CommandExecutor(ScriptedConfirmer(), is_windows=True, runner=runner, pretranslate=True, show_progress=False)
        ex.execute("ls -la", "C:\\proj", require_confirmation=False)
        self.assertEqual(runner.calls[0].raw_command, "ls -la")
        self.assertEqual(runner.calls[0].translated_command, "dir")

    def test_retry_once_with_translation(self):
        runner = FakeRunner(_not_found(), ToolResult.ok("listing", stdout="listing", stderr="", exit_code=0))
        ex = CommandExecutor(ScriptedConfirmer(), is_windows=False, runner=runner, pretranslate=False, show_progress=False)
        result = ex.execute("dir", "/tmp", require_confirmation=False)
        self.assertTrue(result.success)
        self.assertEqual([c.translated_command for c in runner.calls], ["dir", "ls -la"])
        self.assertEqual([c.is_retry for c in runner.calls], [False, True])

    def test_never_retries_twice(self):
        runner = FakeRunner(_not_found())
        ex = CommandExecutor(ScriptedConfirmer(), is_windows=False, runner=runner, pretranslate=False, show_progress=False)
        result = ex.execute("dir", "/tmp", require_confirmation=False)
        self.assertFalse(result.success)
        self.assertEqual(len(runner.calls), 2)

    def test_pretranslated_failure_is_not_rerun(self):
        runner = FakeRunner(_not_found("sh: 1: ls: not found"), ToolResult.ok("ok", stdout="ok", stderr="", exit_code=0))
        ex = CommandExecutor(ScriptedConfirmer(), is_windows=False, runner=runner, pretranslate=True, show_progress=False)
        result = ex.execute("dir", "/tmp", require_confirmation=False)
        self.assertFalse(result.success)
        self.assertEqual([c.translated_command for c in runner.calls], ["ls -la"])

    def test_missing_file_is_not_a_missing_command(self):
        missing = ToolResult.fail(
            "Exit code: 1",
            ErrorKind.EXECUTION,
            stdout="",
            stderr="mv: cannot stat 'a': No such file or directory\n",
            exit_code=1,
        )
        for pretranslate in (True, False):
            runner = FakeRunner(missing)
            ex = CommandExecutor(
                ScriptedConfirmer(), is_windows=False, runner=runner, pretranslate=pretranslate, show_progress=False
            )
            ex.execute("move a b", "/tmp", require_confirmation=False)
            self.assertEqual(len(runner.calls), 1)

    def test_no_retry_without_alternative(self):
        runner = FakeRunner(_not_found("sh: 1: frobnicate: not found"))
        ex = CommandExecutor(ScriptedConfirmer(), is_windows=False, runner=runner, pretranslate=True, show_progress=False)
        ex.execute("frobnicate", "/tmp", require_confirmation=False)
        self.assertEqual(len(runner.calls), 1)

    def test_plain_failure_is_not_retried(self):
        failed = ToolResult.fail("Exit code: 1", ErrorKind.EXECUTION, stdout="", stderr="boom", exit_code=1)
        runner = FakeRunner(failed)
        ex = CommandExecutor(ScriptedConfirmer(), is_windows=False, runner=runner, pretranslate=False, show_progress=False)
        ex.execute("dir", "/tmp", require_confirmation=False)
        self.assertEqual(len(runner.calls), 1)


def test_not_found_detection():
    assert is_command_not_found(_not_found("bash: foo: command not found"))
    assert is_command_not_found(ToolResult.fail("[Errno 2] No such file or directory: 'x'", ErrorKind.SPAWN))
    assert not is_command_not_found(ToolResult.fail("Exit code: 1", ErrorKind.EXECUTION, stderr="boom"))
    assert not is_command_not_found(ToolResult.ok("fine"))
    assert not is_command_not_found(
        ToolResult.fail("Exit code: 1", ErrorKind.EXECUTION, stderr="cat: x.txt: No such file or directory")
    )


posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="uses /bin/sh")


@posix_only
def test_run_process_success(tmp_path):
    ex = CommandExecution("echo hi", "echo hi", str(tmp_path), 10_000)
    result = run_process(ex, is_windows=False, echo=False)
    assert result.success
    assert result.content == "hi\n"
    assert result.get("exit_code") == 0


@posix_only
def test_run_process_exit_code_and_stderr(tmp_path):
    ex = CommandExecution("echo oops >&2; exit 3", "echo oops >&2; exit 3", str(tmp_path), 10_000)
    result = run_process(ex, is_windows=False, echo=False)
    assert not result.success
    assert result.error == "Exit code: 3"
    assert result.error_kind is ErrorKind.EXECUTION
    assert result.get("stderr") == "oops\n"


@posix_only
def test_run_process_timeout(tmp_path):
    ex = CommandExecution("sleep 5", "sleep 5", str(tmp_path), 200)
    result = run_process(ex, is_windows=False, echo=False)
    assert result.error == "Command timed out"
    assert result.error_kind is ErrorKind.TIMEOUT


@posix_only
def test_timeout_kills_grandchildren_holding_pipes(tmp_path):
    command = "sleep 4; echo done"
    ex = CommandExecution(command, command, str(tmp_path), 300)
    started = time.monotonic()
    result = run_process(ex, is_windows=False, echo=False)
    assert result.error_kind is ErrorKind.TIMEOUT
    assert "done" not in (result.get("stdout") or "")
    assert time.monotonic() - started < 3.0


def test_run_process_bad_cwd_is_spawn_error(tmp_path):
    missing = str(tmp_path / "nope")
    ex = CommandExecution("echo hi", "echo hi", missing, 1_000)
    result = run_process(ex, is_windows=sys.platform.startswith("win"), echo=False)
    assert result.error_kind is ErrorKind.SPAWN
