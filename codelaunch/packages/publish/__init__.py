"""codelaunch Publish — version bumps, ordered publishing and workspace switches."""
from .coordinator import BUMP_TYPES, PublishCoordinator, PublishError, PublishResult, bump_version
from .registry import RegistryClient, RegistryError
from .workspace import default_renames, rename_workspace_dependencies, switch_dependency

__all__ = [
    "BUMP_TYPES",
    "PublishCoordinator",
    "PublishError",
    "PublishResult",
    "bump_version",
    "RegistryClient",
    "RegistryError",
    "default_renames",
    "rename_workspace_dependencies",
    "switch_dependency",
]
