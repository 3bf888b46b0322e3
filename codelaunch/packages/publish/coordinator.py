"""
Publishing Coordinator — release the assistant and the host tool together.

Steps (each one fatal):
  1. bump the assistant package version
  2. bump the host package version by the same increment
  3. point the host's dependency on the assistant at ``^<new version>``
  4. build both
  5. publish the assistant, then the host (the host depends on it)
  6. commit both package.json files
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from codelaunch.packages.build import CommandRunner, run_command
from codelaunch.packages.config import CodelaunchError, CommandError, LaunchSettings
from codelaunch.packages.events import emit_event

from .registry import RegistryClient, RegistryError

BUMP_TYPES = ("patch", "minor", "major")

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:[-+].*)?$")


class PublishError(CodelaunchError):
    pass


def bump_version(version: str, bump_type: str = "patch") -> str:
    """Semantic version bump; any prerelease/build suffix is dropped."""
    if bump_type not in BUMP_TYPES:
        raise PublishError(f"Invalid bump type: {bump_type} (valid options: {', '.join(BUMP_TYPES)})")
    match = _VERSION_RE.match(str(version).strip())
    if not match:
        raise PublishError(f"Not a semantic version: {version!r}")
    major, minor, patch = (int(part) for part in match.groups())
    if bump_type == "major":
        return f"{major + 1}.0.0"
    if bump_type == "minor":
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"


def read_package_json(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise PublishError(f"Could not read {path}: {e}") from e


def write_package_json(path: Path, data: dict) -> None:
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(json.dumps(data, indent="\t", ensure_ascii=False) + "\n")
    except OSError as e:
        raise PublishError(f"Could not write {path}: {e}") from e


@dataclass
class PublishResult:
    assistant_name: str
    assistant_version: str
    host_name: str
    host_version: str

    def commit_message(self) -> str:
        return (
            "chore: bump package versions\n\n"
            f"- {self.assistant_name}: {self.assistant_version}\n"
            f"- {self.host_name}: {self.host_version}\n"
            f"- Updated {self.host_name} dependency to match {self.assistant_name} version"
        )


class PublishCoordinator:
    """Bumps, builds, publishes and commits both packages in dependency order."""

    def __init__(self, settings: LaunchSettings, runner: CommandRunner = run_command,
                 registry: Optional[RegistryClient] = None):
        self.settings = settings
        self.runner = runner
        if registry is None and settings.check_registry:
            registry = RegistryClient(settings.registry_url)
        self.registry = registry

    @property
    def assistant_manifest(self) -> Path:
        return self.settings.assistant_path / "package.json"

    @property
    def host_manifest(self) -> Path:
        return self.settings.host_path / "package.json"

    def update_package_version(self, manifest: Path, bump_type: str) -> tuple[str, str]:
        """Bump the version in ``manifest`` in place. Returns (name, new_version)."""
        pkg = read_package_json(manifest)
        old = pkg.get("version", "")
        new = bump_version(old, bump_type)
        pkg["version"] = new
        write_package_json(manifest, pkg)
        print(f"[Publish] updated {pkg.get('name')} from {old} to {new}")
        return pkg.get("name", manifest.parent.name), new

    def update_host_dependency(self, assistant_version: str) -> bool:
        """Point the host's dependency on the assistant at ``^assistant_version``."""
        pkg = read_package_json(self.host_manifest)
        deps = pkg.get("dependencies") or {}
        name = self.settings.published_package
        if name not in deps:
            print(f"[Publish] warning: no {name} dependency found in {self.host_manifest}")
            emit_event("publish.dependency_missing", "publish", severity="warning",
                       payload={"dependency": name})
            return False
        deps[name] = f"^{assistant_version}"
        write_package_json(self.host_manifest, pkg)
        print(f"[Publish] updated host dependency to {name}@^{assistant_version}")
        return True

    def _check_unpublished(self, name: str, version: str) -> None:
        if self.registry is None:
            return
        try:
            if self.registry.is_published(name, version):
                raise PublishError(f"{name}@{version} is already on the registry")
        except RegistryError as e:
            raise PublishError(str(e)) from e

    def _run(self, step: str, argv: list[str], cwd: Path) -> None:
        try:
            self.runner(argv, cwd=cwd)
        except CommandError as e:
            emit_event("publish.step_failed", "publish", severity="error",
                       payload={"step": step}, error=str(e))
            raise PublishError(f"{step} failed: {e}") from e

    def publish(self, bump_type: str = "patch") -> PublishResult:
        if bump_type not in BUMP_TYPES:
            raise PublishError(f"Invalid bump type: {bump_type} (valid options: {', '.join(BUMP_TYPES)})")
        print(f"[Publish] starting {bump_type} version bump and publish")

        assistant_name, assistant_version = self.update_package_version(self.assistant_manifest, bump_type)
        host_name, host_version = self.update_package_version(self.host_manifest, bump_type)
        self.update_host_dependency(assistant_version)
        result = PublishResult(assistant_name, assistant_version, host_name, host_version)

        self._check_unpublished(assistant_name, assistant_version)
        self._check_unpublished(host_name, host_version)

        root = self.settings.workspace_root
        pm = self.settings.package_manager
        self._run("build", self.settings.build_command(), root)
        self._run(f"publish {assistant_name}", [pm, "publish"], self.settings.assistant_path)
        self._run(f"publish {host_name}", [pm, "publish"], self.settings.host_path)
        self._run("git add", ["git", "add", str(self.assistant_manifest), str(self.host_manifest)], root)
        self._run("git commit", ["git", "commit", "-m", result.commit_message()], root)

        emit_event("publish.completed", "publish",
                   payload={assistant_name: assistant_version, host_name: host_version})
        print(f"[Publish] published {assistant_name}@{assistant_version} and {host_name}@{host_version}")
        return result
