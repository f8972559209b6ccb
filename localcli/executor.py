"""Shell command execution with translation, risk gating and one retry.

Flow for one command:
  1. optionally pre-translate toward the host shell;
  2. dangerous -> explicit confirmation (default no), even under auto-approve;
     otherwise, unless safe, the generic "Run this command?" confirmation;
  3. run through the host shell, streaming output while buffering it;
  4. on a "command not found" signature during the first attempt, retry once
     with the other form of the command.
"""

import os
import signal
import subprocess
import sys
import threading
from typing import Callable, List, Optional

from . import config
from .command_safety import is_dangerous, is_safe
from .confirm import Confirmer
from .console import print_command, print_error, print_info, print_process_output, print_success, print_warning
from .translate import translate_command
from .types import CommandExecution, ErrorKind, ToolResult
from .utils import dbg, tool_log

COMMAND_CANCELLED = "Command cancelled by user"

# stderr fragments that mean "the shell does not know this command"
NOT_FOUND_SIGNATURES = (
    "is not recognized",
    "command not found",
    "not found",
)
# Only meaningful when the spawn itself failed; in stderr it usually names a missing file
SPAWN_NOT_FOUND_SIGNATURES = ("no such file or directory",)

# Reader threads get this long to drain pipes after the process group is killed
READER_JOIN_TIMEOUT_S = 2.0


def host_is_windows() -> bool:
    return sys.platform.startswith("win")


def shell_argv(command: str, is_windows: bool) -> List[str]:
    if is_windows:
        return ["cmd", "/c", command]
    return ["/bin/sh", "-c", command]


def _pump(stream, sink: List[str], is_stderr: bool, echo: bool) -> None:
    for chunk in iter(stream.readline, ""):
        sink.append(chunk)
        if echo:
            print_process_output(chunk, stderr=is_stderr)
    stream.close()


def _kill_tree(proc: subprocess.Popen, is_windows: bool) -> None:
    if is_windows:
        try:
            subprocess.run(
                ["taskkill", "/T", "/F", "/PID", str(proc.pid)],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            dbg(f"run_process: taskkill failed for pid={proc.pid}: {exc}")
    else:
        try:
            os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
        except (OSError, ProcessLookupError) as exc:
            dbg(f"run_process: killpg failed for pid={proc.pid}: {exc}")
    proc.kill()


def run_process(execution: CommandExecution, is_windows: bool, echo: bool = True) -> ToolResult:
    """Run one command through the host shell. Blocks until exit, timeout or spawn failure."""
    argv = shell_argv(execution.translated_command, is_windows)
    dbg(f"run_process: argv={argv!r} cwd={execution.cwd!r} timeout_ms={execution.timeout_ms}")
    popen_kwargs = {
        "cwd": execution.cwd,
        "env": dict(os.environ),
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.PIPE,
        "stderr": subprocess.PIPE,
        "text": True,
        "encoding": "utf-8",
        "errors": "replace",
    }
    # Own process group so a timeout takes down grandchildren holding the pipes
    if is_windows:
        popen_kwargs["creationflags"] = getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)
    else:
        popen_kwargs["start_new_session"] = True
    try:
        proc = subprocess.Popen(argv, **popen_kwargs)
    except OSError as exc:
        return ToolResult.fail(str(exc), ErrorKind.SPAWN, stdout="", stderr="")

    out: List[str] = []
    err: List[str] = []
    readers = [
        threading.Thread(target=_pump, args=(proc.stdout, out, False, echo), daemon=True),
        threading.Thread(target=_pump, args=(proc.stderr, err, True, echo), daemon=True),
    ]
    for t in readers:
        t.start()

    timed_out = False
    try:
        code = proc.wait(timeout=max(execution.timeout_ms, 1) / 1000.0)
    except subprocess.TimeoutExpired:
        timed_out = True
        _kill_tree(proc, is_windows)
        code = proc.wait()
    for t in readers:
        t.join(READER_JOIN_TIMEOUT_S if timed_out else None)

    stdout, stderr = "".join(out), "".join(err)
    if timed_out:
        return ToolResult.fail("Command timed out", ErrorKind.TIMEOUT, stdout=stdout, stderr=stderr)
    if code != 0:
        return ToolResult.fail(f"Exit code: {code}", ErrorKind.EXECUTION, stdout=stdout, stderr=stderr, exit_code=code)
    return ToolResult.ok(stdout, stdout=stdout, stderr=stderr, exit_code=code)


def is_command_not_found(result: ToolResult) -> bool:
    if result.success:
        return False
    stderr = (result.get("stderr") or "").lower()
    if any(sig in stderr for sig in NOT_FOUND_SIGNATURES):
        return True
    if result.error_kind is ErrorKind.SPAWN:
        spawn_error = (result.error or "").lower()
        return any(sig in spawn_error for sig in NOT_FOUND_SIGNATURES + SPAWN_NOT_FOUND_SIGNATURES)
    return False


Runner = Callable[[CommandExecution, bool], ToolResult]


class CommandExecutor:
    """Runs shell commands for the run_command tool."""

    def __init__(
        self,
        confirmer: Confirmer,
        is_windows: Optional[bool] = None,
        runner: Optional[Runner] = None,
        pretranslate: bool = config.PRETRANSLATE_COMMANDS,
        show_progress: bool = True,
    ):
        self.confirmer = confirmer
        self.is_windows = host_is_windows() if is_windows is None else bool(is_windows)
        self.runner = runner or run_process
        self.pretranslate = pretranslate
        self.show_progress = show_progress
        self.history: List[CommandExecution] = []

    def _host_form(self, command: str) -> Optional[str]:
        translated = translate_command(command, to_windows=self.is_windows)
        if translated and translated != command:
            return translated
        return None

    def _gate(self, command: str, require_confirmation: bool) -> bool:
        if is_dangerous(command):
            print_warning("This command appears to be potentially dangerous.")
            print_command(command)
            return self.confirmer.confirm("Are you absolutely sure you want to run this command?", default=False)
        if require_confirmation and not is_safe(command):
            print_command(command)
            return self.confirmer.confirm("Run this command?", default=True)
        return True

    def execute(
        self,
        command: str,
        cwd: str,
        require_confirmation: bool = True,
        timeout_ms: Optional[int] = None,
        is_retry: bool = False,
    ) -> ToolResult:
        command = (command or "").strip()
        if not command:
            return ToolResult.fail("Missing required argument: command", ErrorKind.VALIDATION)
        timeout_ms = int(timeout_ms or config.COMMAND_TIMEOUT_MS)

        final = command
        if self.pretranslate and not is_retry:
            host_form = self._host_form(command)
            if host_form:
                if self.show_progress:
                    print_info(f'Translating: "{command}" -> "{host_form}" ({"Windows" if self.is_windows else "Unix"})')
                final = host_form

        if not self._gate(final, require_confirmation):
            tool_log(f"run_command: declined {final!r}")
            return ToolResult.cancelled(COMMAND_CANCELLED)

        execution = CommandExecution(
            raw_command=command,
            translated_command=final,
            cwd=cwd,
            timeout_ms=timeout_ms,
            is_retry=is_retry,
        )
        self.history.append(execution)
        result = self.runner(execution, self.is_windows)
        tool_log(f"run_command: {final!r} -> success={result.success} error={result.error!r}")

        if not result.success and not is_retry and is_command_not_found(result):
            # A pre-translated attempt already ran the host form; there is nothing else to try
            retry = self._host_form(command)
            if retry and retry != final:
                print_warning(f'Command not found. Retrying with: "{retry}"')
                return self.execute(retry, cwd, require_confirmation, timeout_ms, is_retry=True)

        if self.show_progress:
            if result.success:
                print_success("Command completed successfully")
            elif result.error_kind is ErrorKind.EXECUTION:
                print_error(f"Command failed with exit code {result.get('exit_code')}")
        return result
