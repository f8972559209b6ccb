"""Interactive yes/no confirmation and free-form questions.

The dispatcher never talks to the terminal directly; it asks a Confirmer.
ConsoleConfirmer prompts through rich, ScriptedConfirmer replays canned
answers (tests, non-interactive runs).
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from rich.prompt import Confirm, Prompt

from .console import console
from .utils import dbg


class Confirmer(Protocol):
    def confirm(self, message: str, default: bool = True) -> bool:
        ...

    def ask(self, question: str, options: Optional[Sequence[str]] = None) -> str:
        ...


class ConsoleConfirmer:
    """Blocking prompts on the controlling terminal. Ctrl+C / EOF counts as "no"."""

    def confirm(self, message: str, default: bool = True) -> bool:
        try:
            return bool(Confirm.ask(message, default=default, console=console))
        except (KeyboardInterrupt, EOFError):
            console.print()
            return False

    def ask(self, question: str, options: Optional[Sequence[str]] = None) -> str:
        try:
            if options:
                choices = [str(o) for o in options]
                for i, choice in enumerate(choices, 1):
                    console.print(f"  {i}. {choice}")
                picked = Prompt.ask(
                    "Select an option",
                    choices=[str(i) for i in range(1, len(choices) + 1)],
                    console=console,
                )
                return choices[int(picked) - 1]
            return Prompt.ask("Your answer", console=console)
        except (KeyboardInterrupt, EOFError):
            console.print()
            return ""


class ScriptedConfirmer:
    """Answers from a queue; falls back to `default_answer` once the queue is empty."""

    def __init__(
        self,
        answers: Optional[List[bool]] = None,
        default_answer: bool = True,
        replies: Optional[List[str]] = None,
    ):
        self._answers = list(answers or [])
        self._replies = list(replies or [])
        self.default_answer = default_answer
        self.asked: List[str] = []

    def confirm(self, message: str, default: bool = True) -> bool:
        self.asked.append(message)
        answer = self._answers.pop(0) if self._answers else self.default_answer
        dbg(f"confirm (scripted): {message!r} -> {answer}")
        return answer

    def ask(self, question: str, options: Optional[Sequence[str]] = None) -> str:
        self.asked.append(question)
        if self._replies:
            return self._replies.pop(0)
        return str(options[0]) if options else ""
