"""codelaunch Side channel — context file plus environment variables for the child."""
from .writer import (
    CONTEXT_FILE_VAR,
    INITIAL_PROMPT_VAR,
    ContextSchemaError,
    read_context_file,
    remove_context_file,
    side_channel_env,
    write_context_file,
)

__all__ = [
    "CONTEXT_FILE_VAR",
    "INITIAL_PROMPT_VAR",
    "ContextSchemaError",
    "read_context_file",
    "remove_context_file",
    "side_channel_env",
    "write_context_file",
]
