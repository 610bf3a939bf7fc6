# src/pmrc/__init__.py

"""pmrc: effective configuration resolver for pnpm-style package managers."""

from .config import (
    SCHEMA,
    ConfigResult,
    LayerScope,
    SchemaEntry,
    get_config,
    get_config_sync,
)
from .errors import (
    ConfigConflictError,
    GlobalBinDirError,
    ManifestError,
    ProjectManifestError,
    RcFileError,
    WorkspaceManifestError,
)


__all__ = [  # noqa: RUF022
    # config
    "SCHEMA",
    "ConfigResult",
    "LayerScope",
    "SchemaEntry",
    "get_config",
    "get_config_sync",
    # errors
    "ConfigConflictError",
    "GlobalBinDirError",
    "ManifestError",
    "ProjectManifestError",
    "RcFileError",
    "WorkspaceManifestError",
]
