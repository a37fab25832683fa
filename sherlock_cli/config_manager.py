"""Per-repository configuration loaded from a ``.sherlockrc`` JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from .config import CONFIG_FILENAME, VALID_PROVIDERS
from .models import OutputConfig, SherlockConfig, Skipped

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = SherlockConfig()


def normalize_provider(value: Any) -> str:
    """Return a recognised provider name, or the default provider."""
    if not isinstance(value, str):
        return DEFAULT_CONFIG.provider
    name = value.strip().lower()
    return name if name in VALID_PROVIDERS else DEFAULT_CONFIG.provider


def read_config_file(config_path: Path) -> Union[Dict[str, Any], Skipped]:
    """Read the raw JSON object, or describe why it was passed over."""
    if not config_path.is_file():
        return Skipped(str(config_path), "missing")
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        return Skipped(str(config_path), f"unreadable: {exc}")
    except json.JSONDecodeError as exc:
        return Skipped(str(config_path), f"invalid JSON: {exc}")
    if not isinstance(raw, dict):
        return Skipped(str(config_path), "not a JSON object")
    return raw


def load_config(root_dir: Union[str, Path]) -> SherlockConfig:
    """Load and validate ``.sherlockrc`` from the target repo root.

    Falls back to :data:`DEFAULT_CONFIG` when the file is missing or invalid,
    and field by field when individual values have the wrong type.
    """
    raw = read_config_file(Path(root_dir) / CONFIG_FILENAME)
    if isinstance(raw, Skipped):
        logger.debug("Using default config (%s: %s)", raw.path, raw.reason)
        return DEFAULT_CONFIG

    model = raw.get("model")
    if not isinstance(model, str) or not model.strip():
        model = DEFAULT_CONFIG.model

    exclude = raw.get("exclude")
    if isinstance(exclude, list):
        exclude = tuple(p for p in exclude if isinstance(p, str))
    else:
        exclude = DEFAULT_CONFIG.exclude

    output = raw.get("output")
    save_reports = output.get("save_reports") if isinstance(output, dict) else None
    if not isinstance(save_reports, bool):
        save_reports = DEFAULT_CONFIG.output.save_reports

    return SherlockConfig(
        provider=normalize_provider(raw.get("provider", DEFAULT_CONFIG.provider)),
        model=model.strip(),
        exclude=exclude,
        output=OutputConfig(save_reports=save_reports),
    )
