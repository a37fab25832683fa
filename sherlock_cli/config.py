"""Constants and environment-scoped settings for Sherlock."""

from __future__ import annotations

import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv

CONFIG_FILENAME = ".sherlockrc"
DOCS_FILENAME = "DOCS.md"
BUGS_FILENAME = "BUGS.md"

VALID_PROVIDERS = ("groq", "anthropic", "ollama", "pollinations")
FALLBACK_PROVIDER = "ollama"

# Context budget; the per-file share is MAX_FILE_CHARS * MAX_CONTEXT_FILES / selected.
MAX_CONTEXT_FILES = 6
MAX_FILE_CHARS = 350

LLM_MAX_TOKENS = 4096

OLLAMA_BASE_URL = "http://localhost:11434"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"
POLLINATIONS_URL = "https://text.pollinations.ai/openai"

GROQ_API_KEY_ENV = "GROQ_API_KEY"
ANTHROPIC_API_KEY_ENV = "ANTHROPIC_API_KEY"
OLLAMA_URL_ENV = "SHERLOCK_OLLAMA_URL"


def load_env_file(path: Optional[str] = None) -> bool:
    """Load a ``.env`` file without overriding variables already set.

    Without *path*, the search starts from the working directory.
    """
    return load_dotenv(dotenv_path=path or find_dotenv(usecwd=True), override=False)


def get_groq_api_key() -> Optional[str]:
    return os.environ.get(GROQ_API_KEY_ENV) or None


def get_anthropic_api_key() -> Optional[str]:
    return os.environ.get(ANTHROPIC_API_KEY_ENV) or None


def get_ollama_base_url() -> str:
    return (os.environ.get(OLLAMA_URL_ENV) or OLLAMA_BASE_URL).rstrip("/")
