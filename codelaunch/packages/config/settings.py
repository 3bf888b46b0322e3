"""
Launch settings — every package name and workspace path in one place.

Resolution order:
  1. dataclass defaults (the wrangler + opencode monorepo layout)
  2. YAML file (``codelaunch.yaml`` in the workspace root, or an explicit path)
  3. environment overrides (CODELAUNCH_WORKSPACE_ROOT, CODELAUNCH_PACKAGE,
     CODELAUNCH_REGISTRY)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Mapping, Optional

import yaml

from .errors import SettingsError

SETTINGS_FILENAME = "codelaunch.yaml"

# codelaunch/packages/config/settings.py -> repository root
DEFAULT_WORKSPACE_ROOT = Path(__file__).resolve().parents[3]

_PATH_FIELDS = {"workspace_root"}


@dataclass
class LaunchSettings:
    host_name: str = "wrangler"
    binary_name: str = "opencode"
    workspace_package: str = "opencode"
    published_package: str = "@jahands/opencode-cf"
    host_package: str = "@jahands/wrangler"

    workspace_root: Path = field(default_factory=lambda: DEFAULT_WORKSPACE_ROOT)
    assistant_dir: str = "packages/opencode/opencode"
    host_dir: str = "packages/wrangler"
    tui_dir: str = "packages/opencode/tui"
    tui_main: str = "cmd/opencode/main.go"
    workspace_entry: str = "packages/opencode/opencode/src/index.ts"
    script_entry: str = "./src/index.ts"

    script_runtime: str = "bun"
    go_command: str = "go"
    package_manager: str = "pnpm"
    context_file_prefix: str = "wrangler-context"

    registry_url: str = "https://registry.npmjs.org"
    check_registry: bool = True
    dist_tag: str = "latest"
    version_define: str = "OPENCODE_VERSION"

    @property
    def assistant_path(self) -> Path:
        return self.workspace_root / self.assistant_dir

    @property
    def host_path(self) -> Path:
        return self.workspace_root / self.host_dir

    @property
    def tui_path(self) -> Path:
        return self.workspace_root / self.tui_dir

    @property
    def workspace_entry_path(self) -> Path:
        return self.workspace_root / self.workspace_entry

    @property
    def dist_path(self) -> Path:
        return self.assistant_path / "dist"

    @property
    def display_name(self) -> str:
        return self.host_name[:1].upper() + self.host_name[1:]

    def build_command(self) -> list[str]:
        return [self.package_manager, "turbo", "build",
                f"--filter={self.published_package}", f"--filter={self.host_package}"]

    def to_dict(self) -> dict:
        return {f.name: (str(getattr(self, f.name)) if f.name in _PATH_FIELDS else getattr(self, f.name))
                for f in fields(self)}

    @classmethod
    def from_dict(cls, d: Mapping) -> "LaunchSettings":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in d.items() if k in known}
        for key in _PATH_FIELDS & values.keys():
            values[key] = Path(values[key]).expanduser()
        return cls(**values)


def _read_yaml(path: Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Could not read settings file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(path: Optional[str | Path] = None,
                  environ: Optional[Mapping[str, str]] = None) -> LaunchSettings:
    """Build settings from defaults, an optional YAML file and the environment."""
    env = os.environ if environ is None else environ
    settings = LaunchSettings()

    root_override = env.get("CODELAUNCH_WORKSPACE_ROOT")
    if root_override:
        settings = replace(settings, workspace_root=Path(root_override).expanduser())

    settings_file = Path(path) if path else settings.workspace_root / SETTINGS_FILENAME
    if path or settings_file.exists():
        data = _read_yaml(settings_file)
        merged = settings.to_dict()
        merged.update(data)
        settings = LaunchSettings.from_dict(merged)
        if root_override:
            settings = replace(settings, workspace_root=Path(root_override).expanduser())

    if env.get("CODELAUNCH_PACKAGE"):
        settings = replace(settings, published_package=env["CODELAUNCH_PACKAGE"])
    if env.get("CODELAUNCH_REGISTRY"):
        settings = replace(settings, registry_url=env["CODELAUNCH_REGISTRY"].rstrip("/"))

    return settings
