# src/pmrc/config/__init__.py

"""Configuration resolution for pmrc.

Loads settings from every layer, normalizes and merges them, applies
workspace and global-mode rules and computes derived settings.
"""

from .config_auth import inherit_auth_config, resolve_with_auth_inheritance
from .config_derive import compute_derived_settings, get_workspace_concurrency
from .config_dirs import get_cache_dir, get_config_dir, get_data_dir, get_state_dir
from .config_global import apply_global_mode, check_global_bin_dir
from .config_loader import env_layer_data, load_layers
from .config_merge import build_raw_config, build_raw_local_config, merge_layers
from .config_normalize import coerce_value, find_unknown_settings, normalize_layer
from .config_resolve import (
    ResolveOptions,
    get_config,
    get_config_sync,
    resolve_config,
)
from .config_schema import SCHEMA, SchemaRegistry
from .config_types import (
    ConfigLayer,
    ConfigResult,
    LayerScope,
    PackageManager,
    SchemaEntry,
    ValueType,
    WorkspaceManifest,
)
from .config_validate import CONFLICT_RULES, ConflictRule, validate_conflicts
from .config_workspace import (
    parse_package_manager,
    read_project_manifest,
    read_workspace_manifest,
)


__all__ = [  # noqa: RUF022
    # config_auth
    "inherit_auth_config",
    "resolve_with_auth_inheritance",
    # config_derive
    "compute_derived_settings",
    "get_workspace_concurrency",
    # config_dirs
    "get_cache_dir",
    "get_config_dir",
    "get_data_dir",
    "get_state_dir",
    # config_global
    "apply_global_mode",
    "check_global_bin_dir",
    # config_loader
    "env_layer_data",
    "load_layers",
    # config_merge
    "build_raw_config",
    "build_raw_local_config",
    "merge_layers",
    # config_normalize
    "coerce_value",
    "find_unknown_settings",
    "normalize_layer",
    # config_resolve
    "ResolveOptions",
    "get_config",
    "get_config_sync",
    "resolve_config",
    # config_schema
    "SCHEMA",
    "SchemaRegistry",
    # config_types
    "ConfigLayer",
    "ConfigResult",
    "LayerScope",
    "PackageManager",
    "SchemaEntry",
    "ValueType",
    "WorkspaceManifest",
    # config_validate
    "CONFLICT_RULES",
    "ConflictRule",
    "validate_conflicts",
    # config_workspace
    "parse_package_manager",
    "read_project_manifest",
    "read_workspace_manifest",
]
