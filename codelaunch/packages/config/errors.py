"""Base error types shared across codelaunch packages."""


class CodelaunchError(Exception):
    """Root of every error raised on purpose by codelaunch."""


class SettingsError(CodelaunchError):
    """The settings file could not be read or is malformed."""


class CommandError(CodelaunchError):
    """An external command exited non-zero or could not be started."""

    def __init__(self, argv: list[str], returncode: int | None, message: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        detail = message or f"exit code {returncode}"
        super().__init__(f"Command failed: {' '.join(self.argv)} ({detail})")
