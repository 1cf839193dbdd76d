from __future__ import annotations

import hashlib
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .config_schema import AppConfig
from .errors import ConfigError


@dataclass(frozen=True)
class RuntimeSecrets:
    feed_token: str
    metadata_api_key: str


def _read_config_document(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML: {e}") from e

    # An empty file means "all defaults".
    if document is None:
        return {}
    if not isinstance(document, dict):
        kind = type(document).__name__
        raise ConfigError(f"Config file {path} must hold a mapping at the top level, got {kind}")
    return document


def load_config(path: str | Path) -> AppConfig:
    """
    Read the poller's YAML config and validate it into an AppConfig.

    Every failure, from a missing file to an out-of-range page size, is
    raised as ConfigError naming the file and the offending setting.
    """
    config_path = Path(path)
    document = _read_config_document(config_path)

    try:
        return AppConfig.model_validate(document)
    except ValidationError as e:
        raise ConfigError(_describe_validation_errors(e, config_path)) from e


def _env_value(env: Mapping[str, str], name: str) -> str | None:
    value = (env.get(name) or "").strip()
    return value or None


def resolve_runtime_secrets(
    config: AppConfig, *, environ: Mapping[str, str] | None = None
) -> RuntimeSecrets:
    """Read the feed token and metadata API key from the environment."""
    env = os.environ if environ is None else environ

    wanted = {
        "feed token": config.feed.token_env,
        "metadata API key": config.metadata.api_key_env,
    }
    found = {label: _env_value(env, name) for label, name in wanted.items()}

    absent = [f"{wanted[label]} ({label})" for label, value in found.items() if value is None]
    if absent:
        raise ConfigError("Missing required environment variables: " + ", ".join(absent))

    return RuntimeSecrets(
        feed_token=found["feed token"] or "",
        metadata_api_key=found["metadata API key"] or "",
    )


def config_sha256(config: AppConfig) -> str:
    """Fingerprint of the effective settings; logged with every poll."""
    canonical = json.dumps(
        config.model_dump(mode="json"),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _describe_validation_errors(err: ValidationError, path: Path) -> str:
    count = err.error_count()
    noun = "setting" if count == 1 else "settings"
    lines = [f"{path}: {count} invalid {noun}"]
    for item in err.errors():
        where = ".".join(str(part) for part in item.get("loc", ())) or "(top level)"
        lines.append(f"  {where}: {item.get('msg', 'invalid value')}")
    return "\n".join(lines)
