"""
Build Orchestrator — one self-contained assistant executable per target.

For each target:
  1. go build the TUI (CGO off, stripped, version stamped via -ldflags)
  2. bun build --compile the script entry with the TUI binary embedded
  3. delete the intermediate TUI binary
"""
from __future__ import annotations

import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from codelaunch.packages.config import CodelaunchError, CommandError, LaunchSettings
from codelaunch.packages.events import emit_event

from .commands import CommandRunner, run_command
from .targets import BuildTarget


class BuildError(CodelaunchError):
    pass


def resolve_version(base: str, dev: bool = False, snapshot: bool = False,
                    now: Optional[datetime] = None) -> str:
    """Version stamped into this build: snapshot and dev builds get throwaway versions."""
    now = now or datetime.now(timezone.utc)
    if snapshot:
        return f"0.0.0-{now.strftime('%Y%m%d%H%M')}"
    if dev:
        return f"0.0.0-dev-{int(now.timestamp() * 1000)}"
    return base


class BuildOrchestrator:
    """Cross-compiles the assistant for a set of targets into ``settings.dist_path``."""

    def __init__(self, settings: LaunchSettings, runner: CommandRunner = run_command):
        self.settings = settings
        self.runner = runner
        self.dist_dir = settings.dist_path

    def package_dir(self, target: BuildTarget) -> Path:
        return self.dist_dir / target.package_name(self.settings.published_package)

    def executable_path(self, target: BuildTarget) -> Path:
        return self.package_dir(target) / "bin" / target.executable_name(self.settings.binary_name)

    def clean(self) -> None:
        shutil.rmtree(self.dist_dir, ignore_errors=True)

    def _check_sources(self) -> None:
        tui_main = self.settings.tui_path / self.settings.tui_main
        if not tui_main.is_file():
            raise BuildError(f"TUI main.go not found at {tui_main}")

    def go_build_command(self, target: BuildTarget, version: str, output: Path) -> tuple[list[str], dict]:
        argv = [
            self.settings.go_command, "build",
            f"-ldflags=-s -w -X main.Version={version}",
            "-o", str(output),
            f"./{self.settings.tui_main}",
        ]
        env = {"CGO_ENABLED": "0", "GOOS": target.goos, "GOARCH": target.goarch}
        return argv, env

    def bun_build_command(self, target: BuildTarget, version: str, tui_binary: Path) -> list[str]:
        return [
            self.settings.script_runtime, "build",
            "--define", f"{self.settings.version_define}='{version}'",
            "--compile", "--minify",
            f"--target={target.bun_target}",
            f"--outfile={self.executable_path(target)}",
            self.settings.script_entry,
            str(tui_binary),
        ]

    def build_target(self, target: BuildTarget, version: str) -> Path:
        print(f"[Build] building {target.key}")
        start = time.time()
        bin_dir = self.package_dir(target) / "bin"
        try:
            bin_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BuildError(f"Could not create {bin_dir}: {e}") from e
        tui_binary = bin_dir / "tui"

        go_argv, go_env = self.go_build_command(target, version, tui_binary)
        try:
            self.runner(go_argv, cwd=self.settings.tui_path, env=go_env)
            self.runner(self.bun_build_command(target, version, tui_binary),
                        cwd=self.settings.assistant_path)
        except CommandError as e:
            emit_event("build.target_failed", "build", severity="error",
                       payload={"target": target.key}, error=str(e))
            raise BuildError(f"Build for {target.key} failed: {e}") from e
        finally:
            if tui_binary.exists():
                tui_binary.unlink()

        executable = self.executable_path(target)
        emit_event("build.target_built", "build",
                   payload={"target": target.key, "version": version, "executable": str(executable)},
                   duration_ms=int((time.time() - start) * 1000))
        return executable

    def build(self, targets: Iterable[BuildTarget], version: str, clean: bool = True) -> dict[BuildTarget, Path]:
        """Build every target in order. Returns target -> executable path."""
        targets = tuple(targets)
        print(f"[Build] building {self.settings.binary_name} {version}")
        if clean:
            self.clean()
        self._check_sources()
        return {target: self.build_target(target, version) for target in targets}
