"""codelaunch Context — reads the host project's configuration into a ProjectContext."""
from .collector import gather_project_context
from .config_reader import CONFIG_FILENAMES, ConfigReadError, normalize_config, read_raw_config
from .models import SCHEMA_VERSION, Bindings, ProjectContext, find_secret_names

__all__ = [
    "gather_project_context",
    "CONFIG_FILENAMES",
    "ConfigReadError",
    "normalize_config",
    "read_raw_config",
    "SCHEMA_VERSION",
    "Bindings",
    "ProjectContext",
    "find_secret_names",
]
