# src/pmrc/errors.py
"""Exception types raised while resolving configuration.

Only conflicts and manifest problems abort a resolution. Everything else
is reported through the warnings list returned next to the config.
"""

from typing import Literal


ConflictKind = Literal[
    "CONFIG_CONFLICT_HOIST",
    "CONFIG_CONFLICT_HOIST_PATTERN_WITH_GLOBAL",
    "CONFIG_CONFLICT_LINK_WORKSPACE_PACKAGES_WITH_GLOBAL",
    "CONFIG_CONFLICT_SHARED_WORKSPACE_LOCKFILE_WITH_GLOBAL",
    "CONFIG_CONFLICT_LOCKFILE_DIR_WITH_GLOBAL",
    "CONFIG_CONFLICT_VIRTUAL_STORE_DIR_WITH_GLOBAL",
    "CONFIG_CONFLICT_PEER_CANNOT_BE_PROD_DEP",
    "CONFIG_CONFLICT_PEER_CANNOT_BE_OPTIONAL_DEP",
]


class ConfigConflictError(ValueError):
    """Two CLI options were combined that may not be used together."""

    def __init__(self, kind: ConflictKind, message: str) -> None:
        super().__init__(f"{kind}: {message}")
        self.kind: ConflictKind = kind
        self.message = message


class RcFileError(ValueError):
    """An rc file could not be parsed."""


class ManifestError(ValueError):
    """A manifest file exists but cannot be used."""


class WorkspaceManifestError(ManifestError):
    pass


class ProjectManifestError(ManifestError):
    pass


class GlobalBinDirError(RuntimeError):
    """The global bin directory cannot be written to."""
