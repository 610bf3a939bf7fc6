# src/pmrc/config/config_types.py


from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal, TypedDict

from typing_extensions import NotRequired


class LayerScope(str, Enum):
    """Where a layer of settings came from.

    Declaration order is precedence order, lowest first.
    """

    DEFAULTS = "defaults"
    BUILTIN_FILE = "builtin-file"
    GLOBAL_FILE = "global-file"
    USER_FILE = "user-file"
    PROJECT_FILE = "project-file"
    WORKSPACE_FILE = "workspace-file"
    ENV = "env"
    CLI = "cli"


# Scopes that express project intent (raw_local_config, user-agent override)
LOCAL_SCOPES: frozenset[LayerScope] = frozenset(
    {LayerScope.PROJECT_FILE, LayerScope.WORKSPACE_FILE, LayerScope.CLI}
)

# Scopes inspected when looking for unknown settings
UNKNOWN_CHECK_SCOPES: frozenset[LayerScope] = frozenset(
    {LayerScope.PROJECT_FILE, LayerScope.WORKSPACE_FILE}
)


ValueType = Literal[
    "string",
    "boolean",
    "number",
    "string_list",
    "path",
    "bool_or_string",
    "mapping",
    "any",
]


@dataclass(frozen=True)
class SchemaEntry:
    name: str  # internal (snake_case) name
    file_key: str  # kebab-case spelling used in rc files and on the CLI
    value_type: ValueType
    default: Any = None
    deprecated_alias_of: str | None = None  # file_key of the replacement
    choices: tuple[str, ...] | None = None  # allowed string values
    separator: str = ","  # string_list separator for plain strings


@dataclass(frozen=True)
class ConfigLayer:
    """One scope's raw key/value mapping. Immutable once built."""

    scope: LayerScope
    data: Mapping[str, Any]
    source: Path | None = None

    @property
    def base_dir(self) -> Path | None:
        """Directory relative paths in this layer are anchored at."""
        return None if self.source is None else self.source.parent


def make_layer(
    scope: LayerScope,
    data: Mapping[str, Any],
    source: Path | None = None,
) -> ConfigLayer:
    return ConfigLayer(scope=scope, data=MappingProxyType(dict(data)), source=source)


@dataclass
class NormalizedLayer:
    scope: LayerScope
    values: dict[str, Any]  # internal name -> typed value
    unknown: dict[str, Any]  # raw key -> raw value, not in the schema
    warnings: list[str] = field(default_factory=list)


@dataclass
class LoadedLayers:
    layers: list[ConfigLayer]
    warnings: list[str]
    project_dir: str
    config_dir: str
    failed_to_load_builtin_config: bool = False

    def of_scope(self, scope: LayerScope) -> list[ConfigLayer]:
        return [layer for layer in self.layers if layer.scope is scope]


class PackageManager(TypedDict):
    name: str
    version: str | None


class SslConfig(TypedDict):
    cert: str
    key: str
    ca: NotRequired[str]


@dataclass
class WorkspaceManifest:
    path: Path
    packages: list[str] | None
    catalogs: dict[str, dict[str, str]]
    settings: dict[str, Any]


@dataclass
class ConfigResult:
    """Effective configuration plus non-fatal warnings."""

    config: dict[str, Any]
    warnings: list[str]
