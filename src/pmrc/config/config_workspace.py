# src/pmrc/config/config_workspace.py


import copy
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pmrc.constants import (
    DEFAULT_WORKSPACE_PATTERNS,
    PROJECT_MANIFEST_FILE_NAMES,
    WORKSPACE_MANIFEST_FILE_NAME,
)
from pmrc.errors import ProjectManifestError, WorkspaceManifestError
from pmrc.logs import getAppLogger
from pmrc.utils import load_json, load_yaml, resolve_path, to_kebab, to_snake

from .config_normalize import normalize_mapping
from .config_schema import SchemaRegistry
from .config_types import PackageManager, WorkspaceManifest


# --- constants ------------------------------------------------------

WORKSPACES_FIELD_MSG = (
    'The "workspaces" field in package.json is not supported by pnpm.'
    ' Create a "pnpm-workspace.yaml" file instead.'
)

# Keys of pnpm-workspace.yaml that are not settings
_WORKSPACE_STRUCTURE_KEYS = {"packages", "catalog", "catalogs"}

# Settings that decide which dependencies may run build scripts
DEPENDENCY_BUILD_OPTIONS: tuple[str, ...] = (
    "dangerously_allow_all_builds",
    "only_built_dependencies",
    "only_built_dependencies_file",
    "never_built_dependencies",
    "ignored_built_dependencies",
)

# Settings the "pnpm" field of the root package.json may carry
ROOT_MANIFEST_SETTINGS: frozenset[str] = frozenset(
    (
        "allow_non_applied_patches",
        "allowed_deprecated_versions",
        "ignored_optional_dependencies",
        "overrides",
        "package_extensions",
        "patched_dependencies",
        "peer_dependency_rules",
        "supported_architectures",
        *DEPENDENCY_BUILD_OPTIONS,
    )
)


def parse_package_manager(value: str) -> PackageManager:
    """Parse a ``packageManager`` field such as ``pnpm@9.5.0+sha512.abc``.

    The integrity suffix after ``+`` is dropped; references containing a
    colon (URLs, tags) are not versions and yield ``version=None``.
    """
    if "@" not in value:
        return {"name": value, "version": None}
    name, reference = value.split("@", 1)
    if ":" in reference:
        return {"name": name, "version": None}
    return {"name": name, "version": reference.split("+", 1)[0]}


def read_project_manifest(project_dir: Path | str) -> tuple[Path, dict[str, Any]] | None:
    """Read ``package.json`` (or ``package.yaml``) from ``project_dir``.

    Returns None when neither exists. A manifest that cannot be parsed,
    or whose root is not a mapping, raises ProjectManifestError.
    """
    logger = getAppLogger()
    for name in PROJECT_MANIFEST_FILE_NAMES:
        path = Path(project_dir) / name
        if not path.is_file():
            continue
        loader = load_json if path.suffix == ".json" else load_yaml
        try:
            data = loader(path)
        except (OSError, ValueError) as e:
            raise ProjectManifestError(str(e)) from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            xmsg = f"Expected an object in {path}, found {type(data).__name__}"
            raise ProjectManifestError(xmsg)
        logger.debug("Loaded project manifest %s", path)
        return path, data
    return None


def _validate_catalog(name: str, catalog: Any, path: Path) -> dict[str, str]:
    if not isinstance(catalog, dict):
        xmsg = f'Expected catalog "{name}" in {path} to be a mapping'
        raise WorkspaceManifestError(xmsg)
    for dep, spec in catalog.items():
        if not isinstance(spec, str):
            xmsg = (
                f'Invalid catalog entry for "{dep}" in catalog "{name}" of {path}:'
                " expected a version string"
            )
            raise WorkspaceManifestError(xmsg)
    return dict(catalog)


def get_catalogs(data: Mapping[str, Any], path: Path) -> dict[str, dict[str, str]]:
    """Named catalogs; the top-level ``catalog`` is the ``default`` one."""
    implicit = data.get("catalog")
    named = data.get("catalogs") or {}
    if not isinstance(named, dict):
        xmsg = f'Expected "catalogs" in {path} to be a mapping'
        raise WorkspaceManifestError(xmsg)
    if implicit is not None and "default" in named:
        xmsg = (
            "The 'default' catalog was defined multiple times. Use the 'catalog'"
            " field or 'catalogs.default', but not both."
        )
        raise WorkspaceManifestError(xmsg)

    catalogs: dict[str, dict[str, str]] = {}
    default = implicit if implicit is not None else named.get("default")
    if default is not None:
        catalogs["default"] = _validate_catalog("default", default, path)
    for name, catalog in named.items():
        if name != "default":
            catalogs[str(name)] = _validate_catalog(str(name), catalog, path)
    return catalogs


def read_workspace_manifest(workspace_dir: Path | str) -> WorkspaceManifest | None:
    """Read and validate ``pnpm-workspace.yaml``.

    Returns None when the file does not exist. Structural problems raise
    WorkspaceManifestError.
    """
    logger = getAppLogger()
    path = Path(workspace_dir) / WORKSPACE_MANIFEST_FILE_NAME
    if not path.is_file():
        return None
    try:
        data = load_yaml(path)
    except (OSError, ValueError) as e:
        raise WorkspaceManifestError(str(e)) from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        xmsg = f"Expected object but found - {type(data).__name__} in {path}"
        raise WorkspaceManifestError(xmsg)

    packages = data.get("packages")
    if packages is not None:
        if not isinstance(packages, list):
            xmsg = f'Expected "packages" in {path} to be a list of patterns'
            raise WorkspaceManifestError(xmsg)
        for pattern in packages:
            if not isinstance(pattern, str) or not pattern:
                xmsg = f"Invalid package pattern in {path}: {pattern!r}"
                raise WorkspaceManifestError(xmsg)

    manifest = WorkspaceManifest(
        path=path,
        packages=None if packages is None else list(packages),
        catalogs=get_catalogs(data, path),
        settings={
            k: v for k, v in data.items() if k not in _WORKSPACE_STRUCTURE_KEYS
        },
    )
    logger.debug("Loaded workspace manifest %s", path)
    return manifest


def _settings_from_manifest(
    data: Mapping[str, Any],
    registry: SchemaRegistry,
    *,
    manifest_dir: Path,
    home_dir: Path | str,
    where: str,
    warnings: list[str],  # modified
) -> dict[str, Any]:
    values, unknown, problems = normalize_mapping(
        data, registry, base_dir=manifest_dir, home_dir=home_dir, where=where
    )
    warnings.extend(problems)
    settings = {to_snake(k): v for k, v in unknown.items()}
    settings.update(values)

    patched = settings.get("patched_dependencies")
    if isinstance(patched, dict):
        settings["patched_dependencies"] = {
            name: resolve_path(str(patch), manifest_dir, home_dir)
            for name, patch in patched.items()
        }
    return settings


def options_from_root_manifest(
    manifest: Mapping[str, Any],
    registry: SchemaRegistry,
    *,
    manifest_dir: Path,
    home_dir: Path | str,
    warnings: list[str],  # modified
) -> dict[str, Any]:
    """Settings from the ``pnpm`` field; ``resolutions`` feed ``overrides``.

    Only manifest-level settings (ROOT_MANIFEST_SETTINGS) are taken;
    anything else in the field is ignored.
    """
    logger = getAppLogger()
    pnpm_field = manifest.get("pnpm")
    data: dict[str, Any] = dict(pnpm_field) if isinstance(pnpm_field, dict) else {}
    resolutions = manifest.get("resolutions")
    if isinstance(resolutions, dict) and resolutions:
        overrides = data.get("overrides")
        data["overrides"] = {
            **resolutions,
            **(overrides if isinstance(overrides, dict) else {}),
        }
    settings = _settings_from_manifest(
        data,
        registry,
        manifest_dir=manifest_dir,
        home_dir=home_dir,
        where=f'the "pnpm" field of {manifest_dir}',
        warnings=warnings,
    )
    ignored = sorted(k for k in settings if k not in ROOT_MANIFEST_SETTINGS)
    if ignored:
        logger.debug(
            "Ignoring %s from the pnpm field of %s", ", ".join(ignored), manifest_dir
        )
    return {k: v for k, v in settings.items() if k in ROOT_MANIFEST_SETTINGS}


def has_dependency_build_options(config: Mapping[str, Any]) -> bool:
    return any(config.get(key) is not None for key in DEPENDENCY_BUILD_OPTIONS)


def extract_dependency_build_options(config: dict[str, Any]) -> dict[str, Any]:
    """Remove build-permission settings from ``config`` and return them."""
    extracted = {key: config.get(key) for key in DEPENDENCY_BUILD_OPTIONS}
    for key in DEPENDENCY_BUILD_OPTIONS:
        config[key] = None
    return extracted


def resolve_workspace_context(
    config: dict[str, Any],  # modified
    raw_config: dict[str, Any],  # modified
    *,
    cli_values: Mapping[str, Any],
    registry: SchemaRegistry,
    home_dir: Path | str,
    warnings: list[str],  # modified
) -> None:
    """Merge root project manifest and workspace manifest settings.

    The root manifest is read from the lockfile dir, workspace root or
    project dir (first one set). Workspace manifest settings are applied
    under CLI values and mirrored into ``raw_config``.
    """
    logger = getAppLogger()
    workspace_dir = config.get("workspace_dir")
    root_dir = config.get("lockfile_dir") or workspace_dir or config["dir"]
    config["root_project_manifest_dir"] = root_dir

    root_manifest = read_project_manifest(root_dir)
    config["root_project_manifest"] = None
    if root_manifest is not None:
        _, manifest = root_manifest
        config["root_project_manifest"] = manifest
        if manifest.get("workspaces") and not workspace_dir:
            warnings.append(WORKSPACES_FIELD_MSG)
        wanted = manifest.get("packageManager")
        if isinstance(wanted, str) and wanted:
            config["wanted_package_manager"] = parse_package_manager(wanted)
        manifest_settings = options_from_root_manifest(
            manifest,
            registry,
            manifest_dir=Path(root_dir),
            home_dir=home_dir,
            warnings=warnings,
        )
        config.update(
            (k, v) for k, v in manifest_settings.items() if k not in cli_values
        )

    if workspace_dir is None:
        return

    ws_manifest = read_workspace_manifest(workspace_dir)
    cli_patterns = cli_values.get("workspace_packages")
    if cli_patterns:
        patterns = list(cli_patterns)
    elif ws_manifest is not None and ws_manifest.packages:
        patterns = list(ws_manifest.packages)
    else:
        patterns = list(DEFAULT_WORKSPACE_PATTERNS)
    config["workspace_package_patterns"] = patterns

    if ws_manifest is None:
        return

    settings = _settings_from_manifest(
        ws_manifest.settings,
        registry,
        manifest_dir=Path(workspace_dir),
        home_dir=home_dir,
        where=str(ws_manifest.path),
        warnings=warnings,
    )
    settings.update(cli_values)
    for name, value in settings.items():
        config[name] = value
        raw_config[to_kebab(name)] = copy.deepcopy(value)
    config["catalogs"] = copy.deepcopy(ws_manifest.catalogs)
    logger.trace(
        f"[resolve_workspace_context] {len(settings)} settings,"
        f" {len(ws_manifest.catalogs)} catalogs from {ws_manifest.path}"
    )


def override_supported_architectures(
    config: dict[str, Any],  # modified
    cli_values: Mapping[str, Any],
) -> None:
    """CLI ``cpu``/``os``/``libc`` replace those supportedArchitectures fields."""
    overrides = {
        field: cli_values[field]
        for field in ("cpu", "os", "libc")
        if cli_values.get(field) is not None
    }
    if not overrides:
        return
    current = config.get("supported_architectures") or {}
    config["supported_architectures"] = {**current, **overrides}
