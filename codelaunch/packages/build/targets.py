"""
The platform matrix.

TARGETS is the one list of supported (os, arch) pairs; build, packaging and
publishing all iterate it rather than keeping their own copies.
"""
from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import Optional

# package/bun arch name -> Go arch name
GOARCH = {
    "arm64": "arm64",
    "x64": "amd64",
}

# host/package OS name -> Go OS name
GOOS = {
    "darwin": "darwin",
    "linux": "linux",
    "windows": "windows",
    "win32": "windows",
}

# OS name in the package manager's "os" field
NPM_OS = {
    "windows": "win32",
}


def go_os(os_name: str) -> str:
    return GOOS.get(os_name, os_name)


def go_arch(arch: str) -> str:
    return GOARCH.get(arch, arch)


@dataclass(frozen=True)
class BuildTarget:
    os: str
    arch: str

    @property
    def key(self) -> str:
        return f"{self.os}-{self.arch}"

    @property
    def goos(self) -> str:
        return go_os(self.os)

    @property
    def goarch(self) -> str:
        return go_arch(self.arch)

    @property
    def npm_os(self) -> str:
        return NPM_OS.get(self.os, self.os)

    @property
    def bun_target(self) -> str:
        return f"bun-{self.os}-{self.arch}"

    def package_name(self, wrapper_name: str) -> str:
        return f"{wrapper_name}-{self.os}-{self.arch}"

    def executable_name(self, binary_name: str = "opencode") -> str:
        return f"{binary_name}.exe" if self.os == "windows" else binary_name


TARGETS: tuple[BuildTarget, ...] = (
    BuildTarget("linux", "arm64"),
    BuildTarget("linux", "x64"),
    BuildTarget("darwin", "x64"),
    BuildTarget("darwin", "arm64"),
    BuildTarget("windows", "x64"),
)


def host_target(system: Optional[str] = None, machine: Optional[str] = None) -> BuildTarget:
    """The target matching the machine we are running on."""
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()
    os_name = "windows" if system in ("windows", "win32") else system
    arch = "x64" if machine in ("x86_64", "amd64", "x64") else "arm64"
    return BuildTarget(os_name, arch)


def select_targets(dev: bool = False, system: Optional[str] = None,
                   machine: Optional[str] = None) -> tuple[BuildTarget, ...]:
    if dev:
        return (host_target(system, machine),)
    return TARGETS
