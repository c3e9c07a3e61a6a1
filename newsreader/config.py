from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml
from pydantic import ValidationError

from .config_schema import AppConfig
from .errors import ConfigError


@dataclass(frozen=True)
class RuntimeSecrets:
    api_key: str


def load_config(path: str | Path) -> AppConfig:
    """
    Read the newsreader YAML config into an AppConfig.

    An empty file yields the defaults. Every failure is a ConfigError naming
    the file and, for schema errors, each offending key.
    """
    p = Path(path)

    try:
        raw_text = p.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"newsreader config {p} does not exist") from e
    except OSError as e:
        raise ConfigError(f"newsreader config {p} is not readable: {e.strerror or e}") from e

    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as e:
        raise ConfigError(f"newsreader config {p} is not valid YAML:\n{e}") from e

    if data is None:
        return AppConfig()

    if not isinstance(data, dict):
        raise ConfigError(
            f"newsreader config {p} must hold sections such as `api:` or `resolver:`, "
            f"got a YAML {type(data).__name__}"
        )

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(_format_pydantic_errors(e, p)) from e


def resolve_runtime_secrets(
    config: AppConfig, *, environ: Mapping[str, str] | None = None
) -> RuntimeSecrets:
    """Read the content API key from the environment variable named by `api.api_key_env`."""
    env = os.environ if environ is None else environ

    key_env = config.api.api_key_env
    value = (env.get(key_env) or "").strip()
    if not value:
        raise ConfigError(f"Set {key_env} to the content API key for {config.api.base_url}")

    return RuntimeSecrets(api_key=value)


def config_sha256(config: AppConfig) -> str:
    """Fingerprint of the effective settings, logged with `config_loaded`."""
    return hashlib.sha256(config.model_dump_json().encode("utf-8")).hexdigest()


def _format_pydantic_errors(err: ValidationError, path: Path) -> str:
    problems = err.errors()
    noun = "setting" if len(problems) == 1 else "settings"
    lines: list[str] = [f"newsreader config {path}: {len(problems)} invalid {noun}"]
    for item in problems:
        key = ".".join(str(part) for part in item.get("loc", ())) or "(top level)"
        if item.get("type") == "extra_forbidden":
            lines.append(f"  {key}: unknown key")
            continue
        lines.append(f"  {key}: {item.get('msg', 'invalid value')} (got {item.get('input')!r})")
    return "\n".join(lines)
