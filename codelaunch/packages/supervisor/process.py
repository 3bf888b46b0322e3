"""Child process spawning with a tagged outcome instead of exceptions."""
from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence, Union


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class NonZeroExit:
    code: int


@dataclass(frozen=True)
class SpawnError:
    message: str


SessionOutcome = Union[Success, NonZeroExit, SpawnError]
Spawner = Callable[[Sequence[str], Mapping[str, str]], SessionOutcome]


def spawn_process(argv: Sequence[str], env: Mapping[str, str]) -> SessionOutcome:
    """Run ``argv`` attached to our terminal and block until it exits.

    stdin/stdout/stderr are inherited so the child owns the terminal; there
    is no timeout and no signal handling here.
    """
    try:
        completed = subprocess.run(list(argv), env=dict(env))
    except OSError as e:
        return SpawnError(str(e))
    if completed.returncode == 0:
        return Success()
    return NonZeroExit(completed.returncode)
