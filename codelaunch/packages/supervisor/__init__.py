"""codelaunch Supervisor — locates, spawns and waits for the assistant process."""
from .process import NonZeroExit, SessionOutcome, SpawnError, Success, spawn_process
from .resolver import (
    PACKAGE_DIR_STRATEGIES,
    BinaryNotFoundError,
    LaunchCommand,
    LaunchError,
    PackageNotFoundError,
    find_package_dir,
    node_resolve,
    resolve_command,
    walk_node_modules,
)
from .session import launch_opencode, proxy_to_opencode, raise_for_outcome, run_interactive_session

__all__ = [
    "NonZeroExit",
    "SessionOutcome",
    "SpawnError",
    "Success",
    "spawn_process",
    "PACKAGE_DIR_STRATEGIES",
    "BinaryNotFoundError",
    "LaunchCommand",
    "LaunchError",
    "PackageNotFoundError",
    "find_package_dir",
    "node_resolve",
    "resolve_command",
    "walk_node_modules",
    "launch_opencode",
    "proxy_to_opencode",
    "raise_for_outcome",
    "run_interactive_session",
]
