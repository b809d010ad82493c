"""Configuration for httptrace.

The tracer itself only takes a :class:`TraceConfig` value. :func:`load_config`
builds one from YAML or JSON files and ``HTTPTRACE_*`` environment variables
for callers that want file or environment driven settings, such as the CLI.
"""

import json
import logging
import os
import typing as _t

from pathlib import Path

import yaml

from pydantic import BaseModel, ValidationError

__all__ = [
    "TraceConfig",
    "find_config_files",
    "load_config",
    "load_config_file",
]

logger = logging.getLogger("httptrace.config")


class TraceConfig(BaseModel):
    """Rendering options for trace blocks."""

    # Block delimiters
    request_banner: str = "=== HttpRequest ========="
    response_banner: str = "=== HttpResponse ========"
    content_banner: str = "=== HttpContent ========="
    closing_banner: str = "========================="

    # Degradation notices
    headers_unavailable_notice: str = "--- Unable to trace headers: this httpx version does not allow merging header collections. ---"
    cookies_unavailable_notice: str = "--- Unable to trace cookies: this httpx version does not expose the client transport. ---"

    # Request line
    http_version: str = "HTTP/1.1"

    # Body decoding when no charset is declared or the declared one is unknown
    fallback_encoding: str = "utf-8"

    # Include the synthesized Cookie header when a client is supplied
    trace_cookies: bool = True

    log_level: int = logging.WARNING


_CONFIG_FILENAMES = ["httptrace.yaml", "httptrace.yml", "httptrace.json"]

_ENV_OVERRIDES: dict[str, str] = {
    "HTTPTRACE_HTTP_VERSION": "http_version",
    "HTTPTRACE_FALLBACK_ENCODING": "fallback_encoding",
    "HTTPTRACE_TRACE_COOKIES": "trace_cookies",
    "HTTPTRACE_LOG_LEVEL": "log_level",
}


def load_config_file(config_path: Path) -> dict[str, _t.Any]:
    """Load configuration from a YAML or JSON file."""
    if not config_path.exists():
        return {}

    try:
        content = config_path.read_text(encoding="utf-8")

        if config_path.suffix.lower() in [".yaml", ".yml"]:
            return yaml.safe_load(content) or {}
        if config_path.suffix.lower() == ".json":
            return json.loads(content) or {}
        raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def find_config_files(config_file: Path | None = None) -> list[Path]:
    """Find configuration files in order of precedence.

    Args:
        config_file: Optional explicit config file, used instead of the defaults

    Searches ``~/.httptrace/`` then the current working directory. Later files
    override earlier ones.
    """
    if config_file:
        if not config_file.exists():
            raise ValueError(f"Specified config file not found: {config_file}")
        return [config_file]

    config_files = []
    for directory in (Path.home() / ".httptrace", Path.cwd()):
        for filename in _CONFIG_FILENAMES:
            config_path = directory / filename
            if config_path.exists():
                config_files.append(config_path)
    return config_files


def _parse_log_level(value: str) -> int:
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {value}")
    return level


def load_config(config_file: Path | str | None = None) -> TraceConfig:
    """Load configuration from files and environment variables.

    Args:
        config_file: Optional path to a specific config file to use
    """
    config_path = Path(config_file) if isinstance(config_file, str) else config_file

    config_data: dict[str, _t.Any] = {}
    for path in find_config_files(config_path):
        config_data.update(load_config_file(path))

    for env_name, key in _ENV_OVERRIDES.items():
        if env_name not in os.environ:
            continue
        value = os.environ[env_name]
        if key == "trace_cookies":
            config_data[key] = value.lower() in ("1", "true", "yes")
        else:
            config_data[key] = value

    if isinstance(config_data.get("log_level"), str):
        config_data["log_level"] = _parse_log_level(config_data["log_level"])

    known = {k: v for k, v in config_data.items() if k in TraceConfig.model_fields}
    ignored = sorted(set(config_data) - set(known))
    if ignored:
        logger.debug(f"Ignoring unknown config keys: {', '.join(ignored)}")

    try:
        return TraceConfig(**known)
    except ValidationError as e:
        raise ValueError(f"Invalid httptrace configuration: {e}") from e
