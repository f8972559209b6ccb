"""Provider protocol for model runtimes."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Protocol

Message = Dict[str, str]


class ModelError(RuntimeError):
    """A model request failed (connection, HTTP status, malformed response)."""


class ModelProvider(Protocol):
    kind: str
    name: str

    def stream(self, messages: List[Message], timeout_s: int) -> Iterator[str]:
        ...

    def complete(self, messages: List[Message], timeout_s: int) -> str:
        ...

    def status(self) -> Dict[str, Any]:
        ...
