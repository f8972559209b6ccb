"""Interactive prompt loop: `python -m localcli`."""

import argparse
import os
from typing import Callable, Dict, List, Optional, Tuple

from rich.panel import Panel
from rich.table import Table

from . import config
from .agent_loop import TurnController
from .confirm import ConsoleConfirmer
from .console import console, print_error, print_info, print_success
from .model_providers import ModelError, create_provider
from .registry import build_default_registry
from .tools import TOOLS
from .types import ExecuteOptions

EXIT = "exit"


def _cmd_exit(controller: TurnController, args: List[str]) -> Optional[str]:
    return EXIT


def _cmd_clear(controller: TurnController, args: List[str]) -> Optional[str]:
    controller.clear()
    print_success("Conversation cleared")
    return None


def _cmd_help(controller: TurnController, args: List[str]) -> Optional[str]:
    table = Table(show_header=False, box=None)
    for name, (_handler, description) in SLASH_COMMANDS.items():
        table.add_row(f"/{name}", description)
    console.print(table)
    return None


def _cmd_tools(controller: TurnController, args: List[str]) -> Optional[str]:
    table = Table("Tool", "Description")
    for t in TOOLS:
        table.add_row(t["function"]["name"], t["function"]["description"])
    console.print(table)
    return None


def _cmd_config(controller: TurnController, args: List[str]) -> Optional[str]:
    status = controller.provider.status()
    table = Table(show_header=False, box=None)
    table.add_row("provider", str(status.get("kind", "")))
    table.add_row("model", str(status.get("name", "")))
    if status.get("base_url"):
        table.add_row("base url", str(status["base_url"]))
    table.add_row("cwd", controller.cwd)
    table.add_row("auto-approve", str(controller.options.auto_approve))
    table.add_row("tools", str(controller.enable_tools))
    table.add_row("history", f"{len(controller.history)} messages")
    console.print(table)
    return None


SLASH_COMMANDS: Dict[str, Tuple[Callable[[TurnController, List[str]], Optional[str]], str]] = {
    "help": (_cmd_help, "Show this help"),
    "tools": (_cmd_tools, "List available tools"),
    "config": (_cmd_config, "Show provider and session settings"),
    "clear": (_cmd_clear, "Clear the conversation history"),
    "exit": (_cmd_exit, "Quit"),
}
ALIASES = {"quit": "exit", "q": "exit", "h": "help"}


def handle_slash(text: str, controller: TurnController) -> Optional[str]:
    parts = text[1:].split()
    name = ALIASES.get(parts[0].lower(), parts[0].lower()) if parts else "help"
    entry = SLASH_COMMANDS.get(name)
    if entry is None:
        print_error(f"Unknown command: /{name} (try /help)")
        return None
    return entry[0](controller, parts[1:])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="localcli", description="Local coding assistant")
    parser.add_argument("--cwd", default=os.getcwd(), help="Project directory (default: current directory)")
    parser.add_argument("--yes", "-y", action="store_true", help="Auto-approve writes and commands (dangerous commands still ask)")
    parser.add_argument("--provider", default=None, help=f"Model provider (default: {config.PROVIDER})")
    parser.add_argument("--model", default=None, help="Model name")
    parser.add_argument("--base-url", default=None, help="Provider base URL")
    parser.add_argument("--no-tools", action="store_true", help="Disable tool calls")
    parser.add_argument("--prompt", "-p", default=None, help="Run one turn with this message and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    cwd = os.path.abspath(args.cwd)
    if not os.path.isdir(cwd):
        print_error(f"Not a directory: {cwd}")
        return 2
    try:
        provider = create_provider(args.provider, args.model, args.base_url)
    except ModelError as exc:
        print_error(str(exc))
        return 2

    confirmer = ConsoleConfirmer()
    controller = TurnController(
        provider,
        build_default_registry(confirmer),
        cwd,
        ExecuteOptions(auto_approve=args.yes or config.AUTO_APPROVE),
        enable_tools=config.ENABLE_TOOLS and not args.no_tools,
    )

    if args.prompt:
        outcome = controller.run_turn(args.prompt)
        console.print()
        return 0 if outcome.ok else 1

    status = provider.status()
    console.print(
        Panel(
            f"[bold]localcli[/bold]  {status.get('kind')} / {status.get('name')}\n{cwd}\nType /help for commands.",
            border_style="cyan",
            expand=False,
        )
    )
    while True:
        try:
            line = console.input("[bold green]> [/bold green]")
        except (EOFError, KeyboardInterrupt):
            console.print()
            break
        text = line.strip()
        if not text:
            continue
        if text.startswith("/"):
            if handle_slash(text, controller) == EXIT:
                break
            continue
        try:
            controller.run_turn(text)
        except KeyboardInterrupt:
            print_info("Interrupted")
        console.print()
    console.print("[dim]Goodbye![/dim]")
    return 0
