"""
Interactive session supervision.

launch_opencode() is the boundary the host CLI calls: whatever goes wrong
below it is reported and turned into ``exit 1`` so the host's other commands
never see an exception from the assistant integration.
"""
from __future__ import annotations

import os
import sys
import time
from pathlib import Path
from typing import Mapping, Optional, Sequence

from codelaunch.packages.config import LaunchSettings
from codelaunch.packages.context import ProjectContext, gather_project_context
from codelaunch.packages.events import emit_event
from codelaunch.packages.sidechannel import (
    remove_context_file,
    side_channel_env,
    write_context_file,
)

from .process import NonZeroExit, SessionOutcome, SpawnError, Spawner, spawn_process
from .resolver import LaunchError, PackageDirStrategy, resolve_command


def raise_for_outcome(outcome: SessionOutcome, label: str) -> None:
    if isinstance(outcome, NonZeroExit):
        raise LaunchError(f"{label} exited with code {outcome.code}", exit_code=outcome.code)
    if isinstance(outcome, SpawnError):
        raise LaunchError(f"Failed to launch {label}: {outcome.message}")


def _child_env(environ: Optional[Mapping[str, str]], extra: Mapping[str, str]) -> dict[str, str]:
    env = dict(os.environ if environ is None else environ)
    env.update(extra)
    return env


def run_interactive_session(
    context: ProjectContext,
    initial_prompt: Optional[str] = None,
    *,
    settings: Optional[LaunchSettings] = None,
    cwd: Optional[str | Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    spawn: Spawner = spawn_process,
    temp_dir: Optional[str | Path] = None,
    strategies: Optional[Sequence[PackageDirStrategy]] = None,
) -> None:
    """Run the assistant against ``context`` until the user quits it.

    Raises LaunchError if the assistant cannot be found or started, or exits
    non-zero. The context file is removed on every path.
    """
    settings = settings or LaunchSettings()
    label = f"{settings.display_name} AI"

    if initial_prompt:
        print(f'Launching {label} assistant with prompt: "{initial_prompt}"')
    else:
        print(f"Launching {label} assistant...")

    context_file = write_context_file(context, temp_dir, settings.context_file_prefix)
    start = time.time()
    try:
        command = resolve_command(settings, Path(cwd or context.project_root), strategies)
        argv = command.argv(context.project_root)
        env = _child_env(environ, side_channel_env(context_file, initial_prompt))

        emit_event("supervisor.spawn", "supervisor",
                   payload={"mode": command.mode, "command": command.command,
                            "has_prompt": bool(initial_prompt)})
        outcome = spawn(argv, env)
        emit_event("supervisor.exited", "supervisor",
                   payload={"outcome": type(outcome).__name__,
                            "code": getattr(outcome, "code", 0)},
                   duration_ms=int((time.time() - start) * 1000))
        raise_for_outcome(outcome, label)
    finally:
        remove_context_file(context_file)


def _degrade(settings: LaunchSettings, error: BaseException) -> None:
    label = f"{settings.display_name} AI"
    emit_event("supervisor.failed", "supervisor", severity="error",
               payload={"error_type": type(error).__name__}, error=str(error))
    if str(error):
        print(f"{label} integration error: {error}", file=sys.stderr)
    else:
        print(f"{label} integration failed with unknown error", file=sys.stderr)
    print(f"{label} assistant is not available. "
          f"Use '{settings.host_name} --help' for available commands.")
    sys.exit(1)


def launch_opencode(
    prompt: Optional[str] = None,
    *,
    project_root: Optional[str | Path] = None,
    settings: Optional[LaunchSettings] = None,
    environ: Optional[Mapping[str, str]] = None,
    spawn: Spawner = spawn_process,
    temp_dir: Optional[str | Path] = None,
    strategies: Optional[Sequence[PackageDirStrategy]] = None,
) -> None:
    """Entry point for ``-p [prompt]``: always interactive, prompt sent if given."""
    settings = settings or LaunchSettings()
    try:
        context = gather_project_context(project_root, environ)
        initial_prompt = prompt if isinstance(prompt, str) and prompt else None
        run_interactive_session(
            context, initial_prompt,
            settings=settings, cwd=context.project_root, environ=environ,
            spawn=spawn, temp_dir=temp_dir, strategies=strategies,
        )
    except Exception as e:
        _degrade(settings, e)


def proxy_to_opencode(
    args: Sequence[str],
    *,
    cwd: Optional[str | Path] = None,
    settings: Optional[LaunchSettings] = None,
    environ: Optional[Mapping[str, str]] = None,
    spawn: Spawner = spawn_process,
    strategies: Optional[Sequence[PackageDirStrategy]] = None,
) -> None:
    """Entry point for the ``code`` subcommand: forward ``args`` untouched."""
    settings = settings or LaunchSettings()
    try:
        command = resolve_command(settings, Path(cwd or Path.cwd()), strategies)
        emit_event("supervisor.proxy", "supervisor",
                   payload={"mode": command.mode, "argc": len(args)})
        outcome = spawn(command.argv(*args), _child_env(environ, {}))
        raise_for_outcome(outcome, f"{settings.display_name} AI")
    except Exception as e:
        _degrade(settings, e)
