"""Pytest configuration and fixtures for Sherlock CLI tests."""

import shutil
import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, Generator, Iterable, List, Optional

import pytest

from sherlock_cli.llm import LLMClient, LLMProvider


class FakeProvider(LLMProvider):
    """Provider double that records prompts and returns canned output."""

    name = "fake"
    default_model = "fake-model"

    def __init__(self, response: str = "Mock response.", fragments: Optional[List[str]] = None):
        self.response = response
        self.fragments = fragments if fragments is not None else ["Mock ", "response."]
        self.prompts: List[str] = []
        self.models: List[Optional[str]] = []

    def generate(self, prompt, model=None):
        self.prompts.append(prompt)
        self.models.append(model)
        return self.response

    def generate_stream(self, prompt, model=None):
        self.prompts.append(prompt)
        self.models.append(model)
        return (fragment for fragment in self.fragments)


class FakeResponse:
    """Just enough of ``requests.Response`` for the HTTP providers."""

    def __init__(
        self,
        status_code: int = 200,
        json_data=None,
        chunks: Iterable[bytes] = (),
        text: str = "",
    ):
        self.status_code = status_code
        self._json = json_data
        self._chunks = list(chunks)
        self.text = text
        self.closed = False
        self.chunks_read = 0

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json

    def iter_content(self, chunk_size=None):
        for chunk in self._chunks:
            self.chunks_read += 1
            yield chunk

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep tests offline and independent of the developer's credentials.

    Any HTTP call that a test has not explicitly stubbed fails loudly
    instead of reaching Ollama or a cloud API.
    """
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("SHERLOCK_OLLAMA_URL", raising=False)
    monkeypatch.setattr("sherlock_cli.config.load_env_file", lambda path=None: False)

    def _no_network(*args, **kwargs):
        raise AssertionError("Unexpected network call in tests")

    monkeypatch.setattr("sherlock_cli.llm.requests.post", _no_network)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp()).resolve()
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_repo_path() -> Path:
    """Path to the sample TypeScript repository."""
    return Path(__file__).parent / "fixtures" / "sample_repo"


@pytest.fixture
def write_tree():
    """Write ``{relative path: content}`` under a root directory."""

    def _write(root: Path, files: Dict[str, object]) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(str(content), encoding="utf-8")
        return root

    return _write


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def fake_llm(fake_provider: FakeProvider) -> LLMClient:
    """LLMClient whose every backend is the fake provider."""
    return LLMClient({name: fake_provider for name in ("groq", "ollama", "pollinations", "anthropic")})


@pytest.fixture
def http_post(monkeypatch):
    """Replace ``requests.post`` with a recorder serving queued responses."""
    state = SimpleNamespace(calls=[], responses=[])

    def _post(url, json=None, headers=None, stream=False, **kwargs):
        state.calls.append({"url": url, "json": json, "headers": headers or {}, "stream": stream})
        if not state.responses:
            raise AssertionError(f"No queued response for POST {url}")
        response = state.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr("sherlock_cli.llm.requests.post", _post)
    return state


@pytest.fixture
def make_response():
    return FakeResponse
