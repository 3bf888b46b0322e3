"""
Context Collector — snapshot of the host project for the assistant.

Never raises for configuration problems: a config that cannot be read or
normalized leaves ``wrangler_config``/``raw_config`` empty and the bindings
record at its defaults, and the failure goes to the event log at debug level.
"""
from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Mapping, Optional

from codelaunch.packages.events import emit_event

from .config_reader import ConfigReadError, find_config_files, normalize_config, read_raw_config
from .models import Bindings, ProjectContext

ENVIRONMENT_VAR = "WRANGLER_ENV"


def gather_project_context(project_root: Optional[str | Path] = None,
                           environ: Optional[Mapping[str, str]] = None) -> ProjectContext:
    """Collect configuration files, bindings and identity of the project at ``project_root``."""
    start = time.time()
    root = Path(project_root if project_root is not None else Path.cwd()).resolve()
    env = os.environ if environ is None else environ
    environment = env.get(ENVIRONMENT_VAR) or None

    config_files = find_config_files(root)

    raw_config = None
    config = None
    config_path = None
    if config_files:
        config_path = config_files[0]
        try:
            raw_config = read_raw_config(config_path)
            config = normalize_config(raw_config, environment)
        except ConfigReadError as e:
            config = None
            emit_event("context.config_unreadable", "context", severity="debug",
                       payload={"config_path": str(config_path)}, error=str(e))

    bindings = Bindings.from_config(config)
    normalized = config
    config = config or {}
    context = ProjectContext(
        project_root=str(root),
        config_files=[str(p) for p in config_files],
        bindings=bindings,
        wrangler_config=normalized,
        raw_config=raw_config,
        config_path=str(config_path) if raw_config is not None else None,
        workers_runtime=config.get("compatibility_date"),
        environment=environment,
        account_id=config.get("account_id"),
        worker_name=config.get("name"),
    )

    emit_event("context.gathered", "context",
               payload={"project_root": str(root),
                        "config_files": len(config_files),
                        "secrets": len(bindings.secrets)},
               duration_ms=int((time.time() - start) * 1000))
    return context
