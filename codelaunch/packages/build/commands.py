"""External command execution shared by build and publish steps."""
from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Callable, Mapping, Optional, Sequence

from codelaunch.packages.config import CommandError

CommandRunner = Callable[..., None]


def run_command(argv: Sequence[str], cwd: Optional[str | Path] = None,
                env: Optional[Mapping[str, str]] = None) -> None:
    """Run a build/publish command with output passed through. Raises CommandError on failure.

    ``env`` entries are added on top of the current environment.
    """
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)
    try:
        result = subprocess.run(list(argv), cwd=cwd, env=full_env)
    except OSError as e:
        raise CommandError(list(argv), None, str(e)) from e
    if result.returncode != 0:
        raise CommandError(list(argv), result.returncode)
