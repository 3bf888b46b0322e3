"""codelaunch Build — platform matrix and cross-compilation of the assistant."""
from .commands import CommandRunner, run_command
from .orchestrator import BuildError, BuildOrchestrator, resolve_version
from .targets import TARGETS, BuildTarget, go_arch, go_os, host_target, select_targets

__all__ = [
    "CommandRunner",
    "run_command",
    "BuildError",
    "BuildOrchestrator",
    "resolve_version",
    "TARGETS",
    "BuildTarget",
    "go_arch",
    "go_os",
    "host_target",
    "select_targets",
]
