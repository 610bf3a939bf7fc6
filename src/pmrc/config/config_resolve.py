# src/pmrc/config/config_resolve.py


import asyncio
import os
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from pmrc.constants import (
    DEFAULT_PACKAGE_MANAGER_NAME,
    DEFAULT_PACKAGE_MANAGER_VERSION,
)
from pmrc.logs import getAppLogger
from pmrc.utils import plural, realpath_missing

from .config_auth import resolve_with_auth_inheritance
from .config_derive import compute_derived_settings
from .config_dirs import get_data_dir
from .config_global import (
    GlobalBinDirCheck,
    apply_global_mode,
    check_global_bin_dir,
    get_global_pkg_dir,
)
from .config_loader import load_layers
from .config_merge import (
    build_raw_config,
    build_raw_local_config,
    build_registries,
    get_network_configs,
    merge_layers,
    resolve_user_agent,
)
from .config_normalize import (
    cli_passthrough,
    find_unknown_settings,
    layer_values,
    normalize_layer,
)
from .config_schema import SCHEMA, SchemaRegistry
from .config_types import (
    ConfigResult,
    LayerScope,
    PackageManager,
    SchemaEntry,
    ValueType,
)
from .config_validate import validate_conflicts
from .config_workspace import (
    extract_dependency_build_options,
    has_dependency_build_options,
    override_supported_architectures,
    resolve_workspace_context,
)


UNKNOWN_SETTING_MSG = "Your .npmrc file contains unknown setting: {keys}"


@dataclass(frozen=True)
class ResolveOptions:
    """Inputs of a single resolution run."""

    cli_options: Mapping[str, Any] = field(default_factory=dict)
    package_manager: PackageManager = field(
        default_factory=lambda: PackageManager(
            name=DEFAULT_PACKAGE_MANAGER_NAME,
            version=DEFAULT_PACKAGE_MANAGER_VERSION,
        )
    )
    workspace_dir: str | None = None
    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    home_dir: str = field(default_factory=lambda: str(Path.home()))
    check_unknown_setting: bool = False
    ignore_local_settings: bool = False
    global_dir_should_allow_write: bool = False
    registry: SchemaRegistry = SCHEMA
    check_global_bin_dir: GlobalBinDirCheck = check_global_bin_dir
    platform: str = sys.platform


def build_registry(
    extra_schema: Iterable[SchemaEntry] | Mapping[str, ValueType] | None,
) -> SchemaRegistry:
    return SCHEMA if not extra_schema else SCHEMA.with_entries(extra_schema)


async def resolve_config(options: ResolveOptions) -> ConfigResult:  # noqa: PLR0915
    """Run the whole pipeline once.

    loader -> normalizer -> merger -> conflict check -> global mode ->
    workspace context -> derived settings.
    """
    logger = getAppLogger()
    registry = options.registry
    env = options.env
    home_dir = options.home_dir
    warnings: list[str] = []

    cli_options = dict(options.cli_options)
    if cli_options.get("dir"):
        cli_options["dir"] = realpath_missing(cli_options["dir"])
        # the loader still knows the project dir by its legacy name
        cli_options["prefix"] = cli_options["dir"]
    project_dir = cli_options.get("dir") or realpath_missing(os.getcwd())
    workspace_dir = (
        realpath_missing(options.workspace_dir) if options.workspace_dir else None
    )
    logger.trace(f"[resolve_config] dir={project_dir} workspace={workspace_dir}")

    # --- load and normalize ---
    loaded = await load_layers(
        cli_options=cli_options,
        env=env,
        project_dir=project_dir,
        workspace_dir=workspace_dir,
        home_dir=home_dir,
        registry=registry,
        ignore_local_settings=options.ignore_local_settings,
        platform=options.platform,
    )
    warnings.extend(loaded.warnings)
    normalized = [
        normalize_layer(layer, registry, project_dir=project_dir, home_dir=home_dir)
        for layer in loaded.layers
    ]
    for layer in normalized:
        warnings.extend(layer.warnings)

    # --- merge and check ---
    config: dict[str, Any] = {entry.name: None for entry in registry.settings()}
    config.update(merge_layers(normalized))
    cli_values = layer_values(normalized, LayerScope.CLI)
    validate_conflicts(cli_values)
    for layer in normalized:
        if layer.scope is LayerScope.CLI:
            config.update(cli_passthrough(layer))

    config["config_dir"] = loaded.config_dir
    config["workspace_dir"] = workspace_dir
    config["workspace_root"] = cli_values.get("workspace_root")
    config["dir"] = project_dir

    raw_local_config = build_raw_local_config(loaded.layers)
    user_agent = resolve_user_agent(raw_local_config, options.package_manager)
    raw_config = build_raw_config(loaded.layers, user_agent=user_agent)
    config["user_agent"] = user_agent
    config["raw_local_config"] = raw_local_config
    config["raw_config"] = raw_config
    scoped_registries, ssl_configs = get_network_configs(raw_config, warnings)
    config["registries"] = build_registries(raw_config, scoped_registries)
    config["ssl_configs"] = ssl_configs

    config["tool_home_dir"] = get_data_dir(env, home_dir, options.platform)
    config["global_pkg_dir"] = get_global_pkg_dir(
        config.get("global_dir"), config["tool_home_dir"]
    )

    # --- global mode ---
    is_global = cli_values.get("global") is True
    if is_global:
        apply_global_mode(
            config,
            env=env,
            check_bin_dir=options.check_global_bin_dir,
            should_allow_write=options.global_dir_should_allow_write,
        )
    elif not config.get("bin"):
        config["bin"] = os.path.join(project_dir, "node_modules", ".bin")
    config["package_manager"] = dict(options.package_manager)

    # --- workspace context ---
    rc_build_options = extract_dependency_build_options(config)
    for key, value in rc_build_options.items():
        if key in cli_values:
            config[key] = value
    if not options.ignore_local_settings:
        resolve_workspace_context(
            config,
            raw_config,
            cli_values=cli_values,
            registry=registry,
            home_dir=home_dir,
            warnings=warnings,
        )
    override_supported_architectures(config, cli_values)
    if is_global or not has_dependency_build_options(config):
        config.update(rc_build_options)

    # --- derived ---
    user_layers = loaded.of_scope(LayerScope.USER_FILE)
    if not config.get("user_config"):
        config["user_config"] = dict(user_layers[-1].data) if user_layers else None
    await compute_derived_settings(
        config,
        env=env,
        home_dir=home_dir,
        platform=options.platform,
        warnings=warnings,
    )

    if options.check_unknown_setting:
        unknown = find_unknown_settings(loaded.layers, registry)
        if unknown:
            warnings.append(UNKNOWN_SETTING_MSG.format(keys=", ".join(unknown)))

    config["failed_to_load_builtin_config"] = loaded.failed_to_load_builtin_config
    logger.debug(
        "Resolved %d settings with %d warning%s",
        len(config),
        len(warnings),
        plural(warnings),
    )
    return ConfigResult(config=config, warnings=warnings)


async def get_config(  # noqa: PLR0913
    cli_options: Mapping[str, Any] | None = None,
    *,
    package_manager: PackageManager | None = None,
    workspace_dir: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    home_dir: str | Path | None = None,
    check_unknown_setting: bool = False,
    ignore_local_settings: bool = False,
    ignore_non_auth_settings_from_local: bool = False,
    global_dir_should_allow_write: bool = False,
    extra_schema: Iterable[SchemaEntry] | Mapping[str, ValueType] | None = None,
    check_global_bin_dir: GlobalBinDirCheck | None = None,
) -> ConfigResult:
    """Resolve the effective configuration.

    Returns a ConfigResult with the flat config mapping and the list of
    non-fatal warnings. Conflicting CLI options raise ConfigConflictError;
    broken manifests raise ManifestError subclasses.

    With ``ignore_non_auth_settings_from_local`` the pipeline runs twice
    (home-rooted without local files, and normally) and credentials from
    the home-rooted run are copied into the normal result.
    """
    defaults = ResolveOptions()
    options = ResolveOptions(
        cli_options=dict(cli_options or {}),
        package_manager=package_manager or defaults.package_manager,
        workspace_dir=None if workspace_dir is None else str(workspace_dir),
        env=dict(os.environ) if env is None else dict(env),
        home_dir=defaults.home_dir if home_dir is None else str(home_dir),
        check_unknown_setting=check_unknown_setting,
        ignore_local_settings=ignore_local_settings,
        global_dir_should_allow_write=global_dir_should_allow_write,
        registry=build_registry(extra_schema),
        check_global_bin_dir=check_global_bin_dir or defaults.check_global_bin_dir,
    )
    if not ignore_non_auth_settings_from_local:
        return await resolve_config(options)

    home_options = replace(
        options,
        ignore_local_settings=True,
        cli_options={**options.cli_options, "dir": options.home_dir},
    )
    return await resolve_with_auth_inheritance(
        lambda: resolve_config(home_options),
        lambda: resolve_config(options),
    )


def get_config_sync(
    cli_options: Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> ConfigResult:
    """Blocking wrapper around get_config() for synchronous callers."""
    return asyncio.run(get_config(cli_options, **kwargs))
