from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ConfigError
from .models import PackagingRequest


def load_request_file(path: str | Path) -> Dict[str, Any]:
    """Load packaging options from a JSON file, falling back to YAML."""

    path = Path(path)
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read request file {path}: {exc}") from exc

    try:
        raw_data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            raw_data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Unable to parse request file {path}: {exc}") from exc

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ConfigError(f"Request file {path} must contain a mapping of options")
    return raw_data


def request_from_file(path: str | Path, **overrides: Any) -> PackagingRequest:
    data = load_request_file(path)
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return PackagingRequest.from_dict(data)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid request file {path}: {exc}") from exc
