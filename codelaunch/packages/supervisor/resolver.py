"""
Executable resolution for the assistant.

First match wins:
  1. workspace checkout of the assistant source  -> ``bun run <entry>``
  2. installed wrapper package, located by each strategy in
     PACKAGE_DIR_STRATEGIES in turn              -> ``<pkg>/bin/<binary>``
"""
from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from codelaunch.packages.config import CodelaunchError, LaunchSettings
from codelaunch.packages.events import emit_event


class LaunchError(CodelaunchError):
    """The assistant could not be located, started, or ended unsuccessfully."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class PackageNotFoundError(LaunchError):
    pass


class BinaryNotFoundError(LaunchError):
    pass


@dataclass(frozen=True)
class LaunchCommand:
    command: str
    args: tuple[str, ...] = ()
    mode: str = "installed"  # "workspace" or "installed"

    def argv(self, *extra: str) -> list[str]:
        return [self.command, *self.args, *extra]


PackageDirStrategy = Callable[[str, Path], Optional[Path]]


def node_resolve(package: str, cwd: Path) -> Optional[Path]:
    """Ask Node's module resolution where ``package`` lives, as seen from ``cwd``."""
    request = json.dumps(f"{package}/package.json")
    try:
        r = subprocess.run(
            ["node", "-p", f"require.resolve({request})"],
            cwd=cwd, capture_output=True, text=True, timeout=15,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    if r.returncode != 0:
        return None
    resolved = r.stdout.strip()
    return Path(resolved).parent if resolved else None


def walk_node_modules(package: str, cwd: Path) -> Optional[Path]:
    """Look for ``node_modules/<package>`` in ``cwd`` and each of its parents."""
    current = Path(cwd).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "node_modules" / package
        if (candidate / "package.json").is_file():
            return candidate
    return None


PACKAGE_DIR_STRATEGIES: tuple[PackageDirStrategy, ...] = (node_resolve, walk_node_modules)


def find_package_dir(package: str, cwd: Path,
                     strategies: Sequence[PackageDirStrategy] = PACKAGE_DIR_STRATEGIES) -> Optional[Path]:
    for strategy in strategies:
        found = strategy(package, cwd)
        if found is not None:
            emit_event("supervisor.package_found", "supervisor", severity="debug",
                       payload={"strategy": strategy.__name__, "path": str(found)})
            return found
    return None


def resolve_command(settings: LaunchSettings, cwd: Path,
                    strategies: Optional[Sequence[PackageDirStrategy]] = None) -> LaunchCommand:
    """Work out how to start the assistant. Raises LaunchError subclasses when it can't."""
    entry = settings.workspace_entry_path
    if entry.is_file():
        return LaunchCommand(settings.script_runtime, ("run", str(entry)), mode="workspace")

    package_dir = find_package_dir(
        settings.published_package, Path(cwd),
        PACKAGE_DIR_STRATEGIES if strategies is None else strategies,
    )
    if package_dir is None:
        raise PackageNotFoundError(
            f"{settings.binary_name} package not found. Please ensure the "
            f"'{settings.workspace_package}' workspace package is available or "
            f"{settings.published_package} is installed."
        )

    binary = package_dir / "bin" / settings.binary_name
    if not binary.is_file():
        raise BinaryNotFoundError(
            f"{settings.binary_name} binary not found in {settings.published_package} "
            f"(expected {binary})"
        )
    return LaunchCommand(str(binary), mode="installed")
