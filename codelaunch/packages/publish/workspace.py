"""
Workspace dependency helpers.

switch_dependency: point the host at the workspace checkout of the assistant,
    or at a preview build published for a pull request.
rename_workspace_dependencies: rewrite unscoped workspace dependency names to
    their published (scoped) names in every package.json.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from codelaunch.packages.build import CommandRunner, run_command
from codelaunch.packages.config import CommandError, LaunchSettings
from codelaunch.packages.events import emit_event

from .coordinator import PublishError, read_package_json, write_package_json

DEPENDENCY_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")
SKIP_DIRS = {"node_modules"}


def switch_dependency(settings: LaunchSettings, mode: str, pr_number: Optional[str] = None,
                      runner: CommandRunner = run_command, install: bool = True) -> str:
    """Set the host's assistant dependency for ``mode`` ("workspace" or "published")."""
    if mode == "workspace":
        spec = "workspace:*"
    elif mode == "published":
        if not pr_number:
            raise PublishError("PR number required for published mode")
        spec = f"{settings.published_package}@pr-{pr_number}"
    else:
        raise PublishError(f"Unknown mode: {mode} (use workspace or published)")

    manifest = settings.host_path / "package.json"
    pkg = read_package_json(manifest)
    deps = pkg.setdefault("dependencies", {})
    # the dependency may still carry its unscoped workspace name
    key = settings.published_package
    if key not in deps and settings.workspace_package in deps:
        key = settings.workspace_package
    deps[key] = spec
    write_package_json(manifest, pkg)
    print(f"[Switch] {pkg.get('name')} now uses {key}: {spec}")
    emit_event("publish.dependency_switched", "publish", payload={"mode": mode, "spec": spec})

    if install:
        try:
            runner([settings.package_manager, "install"], cwd=settings.workspace_root)
        except CommandError as e:
            raise PublishError(f"install failed: {e}") from e
    return spec


def find_package_json_files(root: Path) -> list[Path]:
    found = []
    for path in sorted(Path(root).iterdir()):
        if path.is_dir():
            if path.name.startswith(".") or path.name in SKIP_DIRS:
                continue
            found.extend(find_package_json_files(path))
        elif path.name == "package.json":
            found.append(path)
    return found


def rename_in_manifest(pkg: dict, renames: dict[str, str]) -> list[str]:
    """Rename workspace-linked dependencies in ``pkg`` in place. Returns change descriptions."""
    changes = []
    for section in DEPENDENCY_SECTIONS:
        deps = pkg.get(section)
        if not isinstance(deps, dict):
            continue
        for old, new in renames.items():
            spec = deps.get(old)
            if isinstance(spec, str) and spec.startswith("workspace:"):
                del deps[old]
                deps[new] = spec
                changes.append(f"{section}: {old} -> {new} ({spec})")
    return changes


def rename_workspace_dependencies(root: Path, renames: dict[str, str]) -> list[Path]:
    """Apply ``renames`` to every package.json under ``root``. Returns the files changed.

    Unreadable manifests are reported and skipped.
    """
    updated = []
    for manifest in find_package_json_files(root):
        try:
            pkg = read_package_json(manifest)
        except PublishError as e:
            print(f"[Rename] skipping {manifest}: {e}")
            emit_event("publish.rename_skipped", "publish", severity="warning",
                       payload={"path": str(manifest)}, error=str(e))
            continue
        changes = rename_in_manifest(pkg, renames)
        if changes:
            write_package_json(manifest, pkg)
            for change in changes:
                print(f"[Rename] {manifest}: {change}")
            updated.append(manifest)
    return updated


def default_renames(settings: LaunchSettings) -> dict[str, str]:
    return {
        settings.host_name: settings.host_package,
        settings.workspace_package: settings.published_package,
    }
