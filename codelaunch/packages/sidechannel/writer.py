"""
Side channel — hands the ProjectContext to the assistant process.

The context travels as a pretty-printed JSON file whose path is exported in
CONTEXT_FILE; an optional first instruction travels in INITIAL_PROMPT.
"""
from __future__ import annotations

import json
import os
import secrets
import tempfile
import time
from pathlib import Path
from typing import Optional

from codelaunch.packages.config import CodelaunchError
from codelaunch.packages.context import SCHEMA_VERSION, ProjectContext
from codelaunch.packages.events import emit_event

CONTEXT_FILE_VAR = "CONTEXT_FILE"
INITIAL_PROMPT_VAR = "INITIAL_PROMPT"


class ContextSchemaError(CodelaunchError):
    """A context file was written by an incompatible version."""


def context_filename(prefix: str = "wrangler-context") -> str:
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{os.getpid()}-{secrets.token_hex(4)}.json"


def write_context_file(context: ProjectContext,
                       temp_dir: Optional[str | Path] = None,
                       prefix: str = "wrangler-context") -> Path:
    """Serialize ``context`` to a fresh file under the temp dir. Write errors propagate."""
    directory = Path(temp_dir) if temp_dir is not None else Path(tempfile.gettempdir())
    directory.mkdir(parents=True, exist_ok=True)

    path = directory / context_filename(prefix)
    # "x" mode: never clobber a file another invocation just created
    with open(path, "x", encoding="utf-8") as f:
        json.dump(context.to_dict(), f, indent=2, ensure_ascii=False)

    emit_event("sidechannel.written", "sidechannel", payload={"path": str(path)})
    return path


def read_context_file(path: str | Path) -> ProjectContext:
    """Load a context file, refusing schema versions this code does not understand."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    version = data.get("schemaVersion") if isinstance(data, dict) else None
    if version is None:
        raise ContextSchemaError(f"{path} has no schemaVersion field")
    if version != SCHEMA_VERSION:
        raise ContextSchemaError(
            f"{path} uses context schema {version}, expected {SCHEMA_VERSION}"
        )
    return ProjectContext.from_dict(data)


def remove_context_file(path: Optional[str | Path]) -> None:
    """Best-effort delete; cleanup failures are never surfaced."""
    if path is None:
        return
    try:
        Path(path).unlink()
    except OSError:
        pass


def side_channel_env(context_file: str | Path, initial_prompt: Optional[str] = None) -> dict[str, str]:
    env = {CONTEXT_FILE_VAR: str(context_file)}
    if initial_prompt:
        env[INITIAL_PROMPT_VAR] = initial_prompt
    return env
