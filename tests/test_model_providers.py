import io
import json
from types import SimpleNamespace

import openai
import pytest

from localcli.model_providers import adapters
from localcli.model_providers.adapters import (
    OllamaProvider,
    OpenAIProvider,
    ServerProvider,
    create_provider,
)
from localcli.model_providers.base import ModelError


def _fake_post(lines):
    body = "".join(line + "\n" for line in lines).encode("utf-8")

    def fake(url, payload, timeout_s, headers=None):
        fake.seen = (url, payload, headers)
        return io.BytesIO(body)

    return fake


def test_ollama_streams_ndjson(monkeypatch):
    post = _fake_post(
        [
            json.dumps({"message": {"content": "Hel"}}),
            "",
            json.dumps({"message": {"content": "lo"}}),
            json.dumps({"message": {"content": ""}, "done": True}),
            json.dumps({"message": {"content": "ignored"}}),
        ]
    )
    monkeypatch.setattr(adapters, "_post_json", post)
    provider = OllamaProvider("qwen", "http://localhost:11434/")
    assert list(provider.stream([{"role": "user", "content": "hi"}], 5)) == ["Hel", "lo"]
    assert post.seen[0] == "http://localhost:11434/api/chat"


def test_ollama_error_line_raises(monkeypatch):
    monkeypatch.setattr(adapters, "_post_json", _fake_post([json.dumps({"error": "model not found"})]))
    with pytest.raises(ModelError):
        list(OllamaProvider("missing", "http://x").stream([], 5))


def test_server_provider_parses_sse(monkeypatch):
    delta = lambda s: "data: " + json.dumps({"choices": [{"delta": {"content": s}}]})
    post = _fake_post([": keep-alive", delta("a"), "data: not-json", delta("b"), "data: [DONE]", delta("c")])
    monkeypatch.setattr(adapters, "_post_json", post)
    provider = ServerProvider("local", "http://127.0.0.1:1234/v1", api_key="k")
    assert provider.complete([{"role": "user", "content": "x"}], 5) == "ab"
    assert post.seen[0] == "http://127.0.0.1:1234/v1/chat/completions"
    assert post.seen[2] == {"Authorization": "Bearer k"}


class _FakeCompletions:
    def __init__(self, events=None, error=None):
        self.events = events or []
        self.error = error
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return iter(self.events)


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def _event(text):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def test_openai_provider_streams_deltas():
    completions = _FakeCompletions([_event("x"), SimpleNamespace(choices=[]), _event(None), _event("y")])
    provider = OpenAIProvider("gpt", "https://api.example/v1", "key", client=_client(completions))
    assert list(provider.stream([{"role": "user", "content": "q"}], 9)) == ["x", "y"]
    assert completions.kwargs["stream"] is True
    assert completions.kwargs["model"] == "gpt"


def test_openai_errors_become_model_errors():
    provider = OpenAIProvider("gpt", "https://api.example/v1", "key", client=_client(_FakeCompletions(error=openai.OpenAIError("nope"))))
    with pytest.raises(ModelError):
        list(provider.stream([], 5))


def test_create_provider():
    ollama = create_provider("ollama", model="m", base_url="http://host:1/")
    assert isinstance(ollama, OllamaProvider)
    assert ollama.status() == {"name": "m", "kind": "ollama", "base_url": "http://host:1"}
    assert isinstance(create_provider("lmstudio", model="m", base_url="http://h/v1"), ServerProvider)
    with pytest.raises(ModelError):
        create_provider("teleport")
