"""Multi-provider LLM adapter supporting Ollama, Groq, Pollinations, and Anthropic.

Each provider offers a blocking ``generate`` and a streaming
``generate_stream``. Streaming sends the request eagerly, so a missing
credential, a connection failure, or an error status raises before the
first fragment. The returned iterator closes the underlying response when
it is exhausted or closed early.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Type

import anthropic
import requests

from . import config

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data: "
SSE_DONE = "data: [DONE]"
AUTH_FAILURE_STATUSES = (401, 403)

FragmentParser = Callable[[Iterable[bytes]], Iterator[str]]


class LLMError(RuntimeError):
    """Base class for provider failures surfaced to the task caller."""


class MissingCredentialError(LLMError):
    """A credential-requiring provider was selected without its key."""

    def __init__(self, provider: str, env_var: str, hint: str):
        self.provider = provider
        self.env_var = env_var
        super().__init__(f"{env_var} is not set. {hint}")


class ProviderRequestError(LLMError):
    """Transport failure or non-2xx status from a provider."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


# ---------------------------------------------------------------------------
# Incremental framing
# ---------------------------------------------------------------------------

class LineBuffer:
    """Accumulate raw bytes and hand back complete lines.

    A trailing partial line is kept until the next :meth:`feed` or
    :meth:`flush`. Splitting happens on bytes, so a multi-byte UTF-8
    character split across reads is decoded only once complete.
    """

    def __init__(self) -> None:
        self._pending = b""

    def feed(self, chunk: bytes) -> List[str]:
        self._pending += chunk
        parts = self._pending.split(b"\n")
        self._pending = parts.pop()
        return [self._decode(part) for part in parts]

    def flush(self) -> List[str]:
        if not self._pending:
            return []
        line = self._decode(self._pending)
        self._pending = b""
        return [line]

    @staticmethod
    def _decode(raw: bytes) -> str:
        return raw.decode("utf-8", errors="replace").rstrip("\r")


def iter_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    buffer = LineBuffer()
    for chunk in chunks:
        if chunk:
            yield from buffer.feed(chunk)
    yield from buffer.flush()


def parse_ndjson_fragments(chunks: Iterable[bytes]) -> Iterator[str]:
    """Yield the ``response`` field of each newline-delimited JSON object."""
    for line in iter_lines(chunks):
        if not line.strip():
            continue
        try:
            data = json.loads(line)
        except ValueError:
            logger.debug("Skipping malformed NDJSON line: %r", line[:80])
            continue
        fragment = data.get("response") if isinstance(data, dict) else None
        if fragment:
            yield fragment


def parse_sse_fragments(chunks: Iterable[bytes]) -> Iterator[str]:
    """Yield ``choices[0].delta.content`` from Server-Sent-Events lines.

    ``data: [DONE]`` ends the stream; lines that fail to parse are skipped.
    """
    for line in iter_lines(chunks):
        if line.strip() == SSE_DONE:
            return
        if not line.startswith(SSE_DATA_PREFIX):
            continue
        try:
            payload = json.loads(line[len(SSE_DATA_PREFIX):])
            fragment = payload["choices"][0]["delta"].get("content")
        except (ValueError, KeyError, IndexError, TypeError, AttributeError):
            logger.debug("Skipping malformed SSE line: %r", line[:80])
            continue
        if fragment:
            yield fragment


class FragmentStream:
    """Iterator over response fragments that owns the open connection.

    The connection is released once the fragments run out, when iteration
    raises, or on :meth:`close`, including a close before the first read.
    """

    def __init__(self, fragments: Iterator[str], resource: Any):
        self._fragments = fragments
        self._resource = resource
        self.closed = False

    def __iter__(self) -> "FragmentStream":
        return self

    def __next__(self) -> str:
        if self.closed:
            raise StopIteration
        try:
            return next(self._fragments)
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            close = getattr(self._fragments, "close", None)
            if close is not None:
                close()
        finally:
            self._resource.close()


def _read_fragments(response: requests.Response, parse: FragmentParser) -> Iterator[str]:
    try:
        yield from parse(response.iter_content(chunk_size=None))
    except requests.RequestException as exc:
        raise ProviderRequestError(f"Stream interrupted: {exc}") from exc


def _iter_response(response: requests.Response, parse: FragmentParser) -> FragmentStream:
    return FragmentStream(_read_fragments(response, parse), response)


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

class LLMProvider:
    """Base class for LLM providers."""

    name = ""
    default_model = ""

    def resolve_model(self, model: Optional[str]) -> str:
        return (model or "").strip() or self.default_model

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        """Return the complete response for *prompt*."""
        raise NotImplementedError

    def generate_stream(self, prompt: str, model: Optional[str] = None) -> Iterator[str]:
        """Return an iterator over response fragments for *prompt*."""
        raise NotImplementedError


class HTTPProvider(LLMProvider):
    """Shared JSON-over-HTTP plumbing built on ``requests``."""

    endpoint = ""

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _failure_message(self, status_code: Optional[int], body: str, model: str) -> str:
        raise NotImplementedError

    def _post(self, payload: Dict[str, Any], model: str, stream: bool = False) -> requests.Response:
        headers = self._headers()
        logger.debug("POST %s (provider=%s, model=%s, stream=%s)", self.endpoint, self.name, model, stream)
        try:
            response = requests.post(self.endpoint, json=payload, headers=headers, stream=stream)
        except requests.RequestException as exc:
            raise ProviderRequestError(self._failure_message(None, str(exc), model)) from exc

        if not 200 <= response.status_code < 300:
            body = response.text
            response.close()
            raise ProviderRequestError(
                self._failure_message(response.status_code, body, model),
                status_code=response.status_code,
                body=body,
            )
        return response

    def _read_json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderRequestError(
                f"{self.name} returned a non-JSON response: {exc}",
                status_code=response.status_code,
                body=response.text,
            ) from exc


class OllamaProvider(HTTPProvider):
    """Ollama local daemon, no API key."""

    name = "ollama"
    default_model = "llama3.2"

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or config.get_ollama_base_url()).rstrip("/")
        self.endpoint = f"{self.base_url}/api/generate"

    def _failure_message(self, status_code: Optional[int], body: str, model: str) -> str:
        status = f" ({status_code})" if status_code is not None else ""
        return (
            f"Ollama request failed{status}. Is Ollama running? "
            f"Run `ollama serve` and `ollama pull {model}`. {body}"
        ).strip()

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        model = self.resolve_model(model)
        response = self._post({"model": model, "prompt": prompt, "stream": False}, model)
        data = self._read_json(response)
        text = data.get("response") if isinstance(data, dict) else None
        return (text or "").strip()

    def generate_stream(self, prompt: str, model: Optional[str] = None) -> Iterator[str]:
        model = self.resolve_model(model)
        response = self._post({"model": model, "prompt": prompt, "stream": True}, model, stream=True)
        return _iter_response(response, parse_ndjson_fragments)


class OpenAICompatibleProvider(HTTPProvider):
    """Chat-completions request/response shape shared by the cloud gateways."""

    def _payload(self, prompt: str, model: str, stream: bool) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": config.LLM_MAX_TOKENS,
            "stream": stream,
        }

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        model = self.resolve_model(model)
        data = self._read_json(self._post(self._payload(prompt, model, False), model))
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        return (content or "").strip()

    def generate_stream(self, prompt: str, model: Optional[str] = None) -> Iterator[str]:
        model = self.resolve_model(model)
        response = self._post(self._payload(prompt, model, True), model, stream=True)
        return _iter_response(response, parse_sse_fragments)


class GroqProvider(OpenAICompatibleProvider):
    """Groq cloud API provider, free tier with a bearer key."""

    name = "groq"
    default_model = "llama-3.1-8b-instant"
    endpoint = f"{config.GROQ_BASE_URL}/chat/completions"

    def __init__(self, api_key: Optional[str] = None):
        self._api_key = api_key

    def _require_key(self) -> str:
        key = self._api_key or config.get_groq_api_key()
        if not key:
            raise MissingCredentialError(
                self.name,
                config.GROQ_API_KEY_ENV,
                "Get a free key at https://console.groq.com and add it to .env",
            )
        return key

    def _headers(self) -> Dict[str, str]:
        headers = super()._headers()
        headers["Authorization"] = f"Bearer {self._require_key()}"
        return headers

    def _failure_message(self, status_code: Optional[int], body: str, model: str) -> str:
        if status_code is None:
            return f"Groq request failed. Check your network connection. {body}".strip()
        hint = ""
        if status_code in AUTH_FAILURE_STATUSES:
            hint = " Check GROQ_API_KEY; get a free key at https://console.groq.com."
        return f"Groq API failed ({status_code}).{hint} {body}".strip()


class PollinationsProvider(OpenAICompatibleProvider):
    """Pollinations free cloud gateway, no API key."""

    name = "pollinations"
    default_model = "openai"
    endpoint = config.POLLINATIONS_URL

    def _failure_message(self, status_code: Optional[int], body: str, model: str) -> str:
        status = f" ({status_code})" if status_code is not None else ""
        return f"Pollinations API failed{status}. {body}".strip()


class AnthropicProvider(LLMProvider):
    """Anthropic Claude through the official SDK.

    The SDK client is created on first use and reused by every later call
    made through this provider instance.
    """

    name = "anthropic"
    default_model = "claude-sonnet-4-5-20250929"

    def __init__(self, api_key: Optional[str] = None, client: Optional[anthropic.Anthropic] = None):
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            key = self._api_key or config.get_anthropic_api_key()
            if not key:
                raise MissingCredentialError(
                    self.name,
                    config.ANTHROPIC_API_KEY_ENV,
                    "Use a free provider (ollama, pollinations, groq) or add your key to .env",
                )
            self._client = anthropic.Anthropic(api_key=key)
        return self._client

    def _create(self, prompt: str, model: Optional[str], stream: bool) -> Any:
        client = self.client
        try:
            return client.messages.create(
                model=self.resolve_model(model),
                max_tokens=config.LLM_MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
                stream=stream,
            )
        except anthropic.APIStatusError as exc:
            raise ProviderRequestError(
                f"Anthropic API failed ({exc.status_code}). {exc.message}",
                status_code=exc.status_code,
                body=str(exc.body or ""),
            ) from exc
        except anthropic.APIError as exc:
            raise ProviderRequestError(f"Anthropic request failed. {exc}") from exc

    def generate(self, prompt: str, model: Optional[str] = None) -> str:
        response = self._create(prompt, model, stream=False)
        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        return ""

    def generate_stream(self, prompt: str, model: Optional[str] = None) -> Iterator[str]:
        stream = self._create(prompt, model, stream=True)
        return FragmentStream(self._iter_text_deltas(stream), stream)

    @staticmethod
    def _iter_text_deltas(stream: Any) -> Iterator[str]:
        try:
            for event in stream:
                if event.type != "content_block_delta":
                    continue
                delta = event.delta
                if getattr(delta, "type", None) == "text_delta" and delta.text:
                    yield delta.text
        except anthropic.APIError as exc:
            raise ProviderRequestError(f"Anthropic stream interrupted. {exc}") from exc


PROVIDERS: Dict[str, Type[LLMProvider]] = {
    "ollama": OllamaProvider,
    "groq": GroqProvider,
    "pollinations": PollinationsProvider,
    "anthropic": AnthropicProvider,
}


def normalize_provider_name(name: Optional[str]) -> str:
    """Case-insensitive lookup key; unknown or empty names select Ollama."""
    key = (name or "").strip().lower()
    return key if key in PROVIDERS else config.FALLBACK_PROVIDER


class LLMClient:
    """Dispatch prompts to a backend by name.

    One provider instance is created per backend and kept for the lifetime
    of the client, which is how the Anthropic SDK connection gets reused.
    """

    def __init__(self, providers: Optional[Mapping[str, LLMProvider]] = None):
        self._providers: Dict[str, LLMProvider] = dict(providers or {})

    def provider(self, name: Optional[str]) -> LLMProvider:
        key = normalize_provider_name(name)
        if key not in self._providers:
            logger.debug("Creating %s provider", key)
            self._providers[key] = PROVIDERS[key]()
        return self._providers[key]

    def generate(self, prompt: str, provider: Optional[str], model: Optional[str] = None) -> str:
        return self.provider(provider).generate(prompt, model)

    def generate_stream(
        self,
        prompt: str,
        provider: Optional[str],
        model: Optional[str] = None,
    ) -> Iterator[str]:
        return self.provider(provider).generate_stream(prompt, model)
