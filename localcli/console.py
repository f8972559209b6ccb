"""User-facing terminal output."""

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_info(message: str) -> None:
    console.print(Text(f"ℹ {message}", style="cyan"))


def print_success(message: str) -> None:
    console.print(Text(f"✔ {message}", style="green"))


def print_warning(message: str) -> None:
    console.print(Text(f"⚠ Warning: {message}", style="yellow"))


def print_error(message: str) -> None:
    console.print(Text(f"✖ Error: {message}", style="bold red"))


def print_progress(message: str, style: str = "yellow") -> None:
    console.print(Text(message, style=style))


def print_command(command: str) -> None:
    console.print(Panel(Text(command), title="Command", title_align="left", border_style="yellow", expand=False))


def print_stream(chunk: str) -> None:
    """Write a model text fragment without a trailing newline."""
    console.out(chunk, end="", highlight=False)
    console.file.flush()


def print_process_output(chunk: str, stderr: bool = False) -> None:
    if stderr:
        err_console.out(chunk, end="", style="red", highlight=False)
    else:
        console.out(chunk, end="", style="dim", highlight=False)


def print_tool_failure(message: str) -> None:
    console.print(Text(f"✖ Tool failed: {message}", style="red"))
