"""
Host project configuration reading.

Reads ``wrangler.toml`` / ``wrangler.json`` / ``wrangler.jsonc`` into a raw
dict, then normalizes it: the selected ``env.<name>`` section is overlaid on
the top level and every binding category is checked for the right shape.
"""
from __future__ import annotations

import json
import tomllib
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Optional

from codelaunch.packages.config import CodelaunchError

# Probe order; the first match is the one that gets parsed.
CONFIG_FILENAMES = ("wrangler.toml", "wrangler.json", "wrangler.jsonc")

LIST_BINDINGS = (
    "kv_namespaces", "r2_buckets", "d1_databases", "services",
    "analytics_engine_datasets", "vectorize", "hyperdrive", "workflows",
    "mtls_certificates", "dispatch_namespaces",
)
TABLE_BINDINGS = ("ai", "browser")


class ConfigReadError(CodelaunchError):
    """A configuration file exists but cannot be parsed or normalized."""


def find_config_files(project_root: Path) -> list[Path]:
    return [project_root / name for name in CONFIG_FILENAMES if (project_root / name).is_file()]


def strip_jsonc(text: str) -> str:
    """Remove comments and trailing commas, leaving string literals alone."""
    out: list[str] = []
    i, n = 0, len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
        elif ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
        elif text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise ConfigReadError("Unterminated block comment")
            i = end + 2
        else:
            out.append(ch)
            i += 1

    cleaned = "".join(out)
    result: list[str] = []
    in_string = False
    escaped = False
    for idx, ch in enumerate(cleaned):
        if in_string:
            result.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == ",":
            rest = cleaned[idx + 1:].lstrip()
            if rest[:1] in ("}", "]"):
                continue
        result.append(ch)
    return "".join(result)


def _isoformat_dates(value: Any) -> Any:
    """Replace TOML date/time values with ISO 8601 strings, recursively."""
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _isoformat_dates(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_isoformat_dates(v) for v in value]
    return value


def read_raw_config(path: Path) -> dict[str, Any]:
    """Parse one configuration file into a plain dict."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigReadError(f"Could not read {path}: {e}") from e

    try:
        if path.suffix == ".toml":
            data = tomllib.loads(text)
        elif path.suffix == ".jsonc":
            data = json.loads(strip_jsonc(text))
        else:
            data = json.loads(text)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigReadError(f"Could not parse {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigReadError(f"{path.name} must contain a table/object at the top level")
    return _isoformat_dates(data)


def _check_shape(config: dict[str, Any]) -> None:
    for key in LIST_BINDINGS:
        value = config.get(key)
        if value is not None and not isinstance(value, list):
            raise ConfigReadError(f"'{key}' must be a list, got {type(value).__name__}")
        for entry in value or []:
            if not isinstance(entry, dict):
                raise ConfigReadError(f"entries of '{key}' must be tables/objects")

    for key in TABLE_BINDINGS:
        value = config.get(key)
        if value is not None and not isinstance(value, dict):
            raise ConfigReadError(f"'{key}' must be a table/object")

    durable = config.get("durable_objects")
    if durable is not None:
        if not isinstance(durable, dict) or not isinstance(durable.get("bindings", []), list):
            raise ConfigReadError("'durable_objects' must be a table with a 'bindings' list")

    queues = config.get("queues")
    if queues is not None:
        if not isinstance(queues, dict):
            raise ConfigReadError("'queues' must be a table with 'producers'/'consumers' lists")
        for side in ("producers", "consumers"):
            if not isinstance(queues.get(side, []), list):
                raise ConfigReadError(f"'queues.{side}' must be a list")

    variables = config.get("vars")
    if variables is not None and not isinstance(variables, dict):
        raise ConfigReadError("'vars' must be a table/object")


def normalize_config(raw: dict[str, Any], environment: Optional[str] = None) -> dict[str, Any]:
    """Return the effective configuration for ``environment`` (top level when None)."""
    config = {k: v for k, v in raw.items() if k != "env"}
    if environment:
        envs = raw.get("env") or {}
        if not isinstance(envs, dict):
            raise ConfigReadError("'env' must be a table of named environments")
        section = envs.get(environment)
        if section is None:
            raise ConfigReadError(f"No environment named '{environment}' in configuration")
        if not isinstance(section, dict):
            raise ConfigReadError(f"env.{environment} must be a table/object")
        config.update(section)
    _check_shape(config)
    return config
