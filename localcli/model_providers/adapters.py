"""Concrete model providers behind the ModelProvider protocol."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, List, Optional
from urllib import error as urllib_error
from urllib import request as urllib_request

import openai
from openai import OpenAI

from .. import config
from ..utils import dbg
from .base import Message, ModelError


def _post_json(url: str, payload: Dict[str, Any], timeout_s: int, headers: Optional[Dict[str, str]] = None):
    body = json.dumps(payload).encode("utf-8")
    req = urllib_request.Request(
        url,
        data=body,
        headers={"Content-Type": "application/json", **(headers or {})},
        method="POST",
    )
    try:
        return urllib_request.urlopen(req, timeout=max(1, int(timeout_s)))
    except urllib_error.HTTPError as exc:
        detail = exc.read().decode("utf-8", errors="replace") if hasattr(exc, "read") else str(exc)
        raise ModelError(f"HTTP {getattr(exc, 'code', '?')} from {url}: {detail[:300]}") from exc
    except (urllib_error.URLError, OSError) as exc:
        raise ModelError(f"request to {url} failed: {exc}") from exc


class _CompleteFromStream:
    def complete(self, messages: List[Message], timeout_s: int) -> str:
        return "".join(self.stream(messages, timeout_s))


class OllamaProvider(_CompleteFromStream):
    """Ollama /api/chat; the stream is newline-delimited JSON objects."""

    kind = "ollama"

    def __init__(self, model: str, base_url: str, temperature: float = config.TEMPERATURE):
        self.name = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature

    def stream(self, messages: List[Message], timeout_s: int) -> Iterator[str]:
        payload = {
            "model": self.name,
            "messages": messages,
            "stream": True,
            "options": {"temperature": float(self.temperature)},
        }
        with _post_json(self.base_url + "/api/chat", payload, timeout_s) as resp:
            for raw in resp:
                line = raw.decode("utf-8", errors="replace").strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    dbg(f"ollama: skipping non-JSON line {line[:80]!r}")
                    continue
                if obj.get("error"):
                    raise ModelError(f"ollama: {obj['error']}")
                chunk = (obj.get("message") or {}).get("content") or ""
                if chunk:
                    yield chunk
                if obj.get("done"):
                    return

    def status(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "base_url": self.base_url}


class ServerProvider(_CompleteFromStream):
    """OpenAI-compatible /chat/completions over SSE (LM Studio, llama-server, vLLM)."""

    kind = "server"

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str = "",
        temperature: float = config.TEMPERATURE,
        max_tokens: int = config.MAX_NEW,
    ):
        self.name = model
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens

    def stream(self, messages: List[Message], timeout_s: int) -> Iterator[str]:
        payload = {
            "model": self.name,
            "messages": messages,
            "temperature": float(self.temperature),
            "max_tokens": int(self.max_tokens),
            "stream": True,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        with _post_json(self.base_url + "/chat/completions", payload, timeout_s, headers) as resp:
            for raw in resp:
                line = raw.decode("utf-8", errors="replace").strip()
                if not line.startswith("data:"):
                    continue
                data = line[len("data:"):].strip()
                if data == "[DONE]":
                    return
                try:
                    obj = json.loads(data)
                except json.JSONDecodeError:
                    continue
                choices = obj.get("choices") or []
                if choices and isinstance(choices[0], dict):
                    chunk = (choices[0].get("delta") or {}).get("content") or ""
                    if chunk:
                        yield chunk

    def status(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "base_url": self.base_url}


class OpenAIProvider(_CompleteFromStream):
    """Hosted OpenAI-compatible APIs through the openai SDK (OpenAI, OpenRouter, Groq)."""

    kind = "openai"

    def __init__(
        self,
        model: str,
        base_url: str,
        api_key: str,
        temperature: float = config.TEMPERATURE,
        max_tokens: int = config.MAX_NEW,
        client: Any = None,
    ):
        self.name = model
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        if client is None:
            client = OpenAI(base_url=base_url, api_key=api_key or "missing")
        self.client = client

    def stream(self, messages: List[Message], timeout_s: int) -> Iterator[str]:
        try:
            resp = self.client.chat.completions.create(
                model=self.name,
                messages=messages,
                temperature=float(self.temperature),
                max_tokens=int(self.max_tokens),
                stream=True,
                timeout=timeout_s,
            )
            for event in resp:
                if not event.choices:
                    continue
                chunk = event.choices[0].delta.content or ""
                if chunk:
                    yield chunk
        except openai.OpenAIError as exc:
            raise ModelError(f"{self.base_url}: {exc}") from exc

    def status(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind, "base_url": self.base_url}


class LlamaCppProvider(_CompleteFromStream):
    """In-process GGUF model via llama-cpp-python (optional extra `llama`)."""

    kind = "llama_cpp"

    def __init__(self, model_path: str, n_ctx: int = config.GGUF_CTX, temperature: float = config.TEMPERATURE):
        try:
            from llama_cpp import Llama
        except ImportError as exc:
            raise ModelError("llama_cpp provider requires: pip install 'localcli[llama]'") from exc
        self.name = model_path
        self.temperature = temperature
        dbg(f"llama_cpp: loading {model_path} n_ctx={n_ctx}")
        self.backend = Llama(model_path=model_path, n_ctx=n_ctx, verbose=False)

    def stream(self, messages: List[Message], timeout_s: int) -> Iterator[str]:
        _ = timeout_s
        chunks = self.backend.create_chat_completion(
            messages=messages,
            temperature=float(self.temperature),
            max_tokens=config.MAX_NEW,
            stream=True,
        )
        for chunk in chunks:
            choices = chunk.get("choices") or []
            if choices and isinstance(choices[0], dict):
                text = (choices[0].get("delta") or {}).get("content") or ""
                if text:
                    yield text

    def status(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind}


OPENAI_SDK_PROVIDERS = ("openai", "openrouter", "groq")
SERVER_PROVIDERS = ("lmstudio", "server")


def create_provider(name: Optional[str] = None, model: Optional[str] = None, base_url: Optional[str] = None):
    """Build a provider from configuration. Explicit arguments override LCLI_* settings."""
    name = (name or config.PROVIDER).strip().lower()
    model = model or config.MODEL_NAME or config.DEFAULT_MODELS.get(name, "")
    base_url = base_url or config.BASE_URL or config.DEFAULT_BASE_URLS.get(name, "")
    dbg(f"create_provider: name={name} model={model} base_url={base_url}")
    if name == "ollama":
        return OllamaProvider(model, base_url)
    if name in SERVER_PROVIDERS:
        return ServerProvider(model, base_url, api_key=config.API_KEY)
    if name in OPENAI_SDK_PROVIDERS:
        return OpenAIProvider(model, base_url, api_key=config.API_KEY)
    if name == "llama_cpp":
        if not config.GGUF_PATH:
            raise ModelError("LCLI_GGUF must point at a .gguf file for the llama_cpp provider")
        return LlamaCppProvider(config.GGUF_PATH)
    raise ModelError(f"Unknown provider: {name}")
