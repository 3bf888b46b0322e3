"""
Package Assembler — package.json manifests for the built executables.

Each target gets ``<wrapper>-<os>-<arch>`` restricted to one os/cpu. The
wrapper package has no platform restriction; it lists every target package
as an optional dependency (the package manager installs only the one whose
os/cpu match) and links the right binary in its postinstall script.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Optional

from codelaunch.packages.build import BuildTarget, CommandRunner, run_command
from codelaunch.packages.config import CodelaunchError, CommandError, LaunchSettings
from codelaunch.packages.events import emit_event

MANIFEST = "package.json"
POSTINSTALL = "postinstall.mjs"


class PackagingError(CodelaunchError):
    pass


@dataclass
class DistributionPackage:
    name: str
    version: str
    main: str
    bin: dict[str, str]
    os: Optional[list[str]] = None
    cpu: Optional[list[str]] = None
    optional_dependencies: dict[str, str] = field(default_factory=dict)
    scripts: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_manifest(self) -> dict:
        manifest: dict[str, Any] = {"name": self.name, "version": self.version}
        if self.os is not None:
            manifest["os"] = self.os
        if self.cpu is not None:
            manifest["cpu"] = self.cpu
        manifest["main"] = self.main
        manifest["bin"] = self.bin
        if self.scripts:
            manifest["scripts"] = self.scripts
        if self.optional_dependencies:
            manifest["optionalDependencies"] = self.optional_dependencies
        manifest.update(self.extra)
        manifest["publishConfig"] = {"access": "public"}
        return manifest


def platform_package(target: BuildTarget, version: str, wrapper_name: str,
                     binary_name: str = "opencode") -> DistributionPackage:
    executable = f"./bin/{target.executable_name(binary_name)}"
    return DistributionPackage(
        name=target.package_name(wrapper_name),
        version=version,
        os=[target.npm_os],
        cpu=[target.arch],
        main=executable,
        bin={binary_name: executable},
    )


def wrapper_package(version: str, targets: Iterable[BuildTarget],
                    settings: LaunchSettings) -> DistributionPackage:
    launcher = f"./bin/{settings.binary_name}"
    return DistributionPackage(
        name=settings.published_package,
        version=version,
        main=launcher,
        bin={settings.binary_name: launcher},
        scripts={"postinstall": f"node ./{POSTINSTALL}"},
        optional_dependencies={
            t.package_name(settings.published_package): version for t in targets
        },
        extra={
            "description": f"OpenCode AI assistant for {settings.display_name}",
            "keywords": ["ai", "assistant", "cli"],
            "license": "MIT",
        },
    )


def verify_versions(manifests: Iterable[dict]) -> str:
    """Check one publish cycle is internally consistent; return the shared version.

    Every manifest must carry the same version, and every wrapper's
    optionalDependencies must pin exactly that version for exactly the
    platform packages that were built.
    """
    manifests = list(manifests)
    if not manifests:
        raise PackagingError("No manifests to verify")

    versions = {m.get("version") for m in manifests}
    if len(versions) != 1:
        found = ", ".join(f"{m.get('name')}@{m.get('version')}" for m in manifests)
        raise PackagingError(f"Mixed versions in one publish cycle: {found}")
    version = versions.pop()

    names = {m.get("name") for m in manifests}
    platform_names = {m.get("name") for m in manifests if m.get("os")}
    for m in manifests:
        optional = m.get("optionalDependencies")
        if not optional:
            continue
        for dep, dep_version in optional.items():
            if dep_version != version:
                raise PackagingError(f"{m['name']} pins {dep}@{dep_version}, expected {version}")
            if dep not in names:
                raise PackagingError(f"{m['name']} depends on {dep}, which was not built")
        missing = sorted(platform_names - optional.keys())
        if missing:
            raise PackagingError(f"{m['name']} is missing optional dependencies: {', '.join(missing)}")
    return version


def _render_template(relative: str, settings: LaunchSettings) -> str:
    resource = resources.files(__package__).joinpath("templates")
    for part in relative.split("/"):
        resource = resource.joinpath(part)
    text = resource.read_text(encoding="utf-8")
    return (text.replace("__WRAPPER_PACKAGE__", settings.published_package)
                .replace("__BINARY_NAME__", settings.binary_name))


def write_manifest(directory: Path, manifest: dict) -> Path:
    path = directory / MANIFEST
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(manifest, f, indent=2)
            f.write("\n")
    except OSError as e:
        raise PackagingError(f"Could not write {path}: {e}") from e
    return path


class PackageAssembler:
    """Writes manifests (and wrapper scripts) into the build's dist directory."""

    def __init__(self, settings: LaunchSettings, dist_dir: Optional[Path] = None):
        self.settings = settings
        self.dist_dir = Path(dist_dir) if dist_dir else settings.dist_path

    def package_dir(self, name: str) -> Path:
        return self.dist_dir / name

    def write_platform(self, target: BuildTarget, version: str) -> dict:
        package = platform_package(target, version, self.settings.published_package,
                                   self.settings.binary_name)
        manifest = package.to_manifest()
        write_manifest(self.package_dir(package.name), manifest)
        return manifest

    def assemble_wrapper(self, version: str, targets: Iterable[BuildTarget]) -> dict:
        package = wrapper_package(version, targets, self.settings)
        directory = self.package_dir(package.name)

        launcher = directory / "bin" / self.settings.binary_name
        try:
            launcher.parent.mkdir(parents=True, exist_ok=True)
            launcher.write_text(_render_template("bin/launcher.js", self.settings), encoding="utf-8")
            os.chmod(launcher, 0o755)
            (directory / POSTINSTALL).write_text(_render_template(POSTINSTALL, self.settings),
                                                 encoding="utf-8")
        except OSError as e:
            raise PackagingError(f"Could not write wrapper scripts into {directory}: {e}") from e

        manifest = package.to_manifest()
        write_manifest(directory, manifest)
        return manifest

    def assemble(self, version: str, targets: Iterable[BuildTarget]) -> list[dict]:
        """Platform manifests followed by the wrapper manifest, verified together."""
        targets = tuple(targets)
        manifests = [self.write_platform(t, version) for t in targets]
        manifests.append(self.assemble_wrapper(version, targets))
        verify_versions(manifests)
        emit_event("packaging.assembled", "packaging",
                   payload={"version": version, "packages": [m["name"] for m in manifests]})
        return manifests


def publish_distribution(dist_dir: Path, manifests: list[dict], tag: str = "latest",
                         runner: CommandRunner = run_command,
                         script_runtime: str = "bun") -> None:
    """Publish platform packages first, wrappers (anything with optionalDependencies) last."""
    verify_versions(manifests)
    ordered = sorted(manifests, key=lambda m: bool(m.get("optionalDependencies")))
    for manifest in ordered:
        print(f"[Packaging] publishing {manifest['name']}@{manifest['version']}")
        try:
            runner([script_runtime, "publish", "--access", "public", "--tag", tag],
                   cwd=Path(dist_dir) / manifest["name"])
        except CommandError as e:
            raise PackagingError(f"Publishing {manifest['name']} failed: {e}") from e
        emit_event("packaging.published", "packaging",
                   payload={"name": manifest["name"], "version": manifest["version"], "tag": tag})
