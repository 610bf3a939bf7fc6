# src/pmrc/config/config_loader.py


import copy
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pmrc.constants import (
    BUILTIN_RC_FILE_NAME,
    ENV_CONFIG_PREFIXES,
    ENV_COREPACK_STRICT,
    GLOBAL_RC_FILE_NAME,
    MAX_DEFAULT_WORKSPACE_CONCURRENCY,
    RC_FILE_NAME,
    VIRTUAL_STORE_DIR_MAX_LENGTH,
    VIRTUAL_STORE_DIR_MAX_LENGTH_WINDOWS,
)
from pmrc.errors import RcFileError
from pmrc.logs import getAppLogger
from pmrc.utils import (
    find_up,
    get_cpu_count,
    global_prefix,
    is_ci,
    is_root_user,
    is_windows,
    load_rc_file,
    plural,
    resolve_path,
    resolve_running_executable,
    substituted_executable,
)

from .config_dirs import get_config_dir
from .config_schema import SchemaRegistry
from .config_types import ConfigLayer, LayerScope, LoadedLayers, make_layer


BUILTIN_RC_PATH = Path(__file__).with_name(BUILTIN_RC_FILE_NAME)


def get_default_workspace_concurrency() -> int:
    return min(MAX_DEFAULT_WORKSPACE_CONCURRENCY, get_cpu_count())


def env_layer_data(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``npm_config_*`` / ``pnpm_config_*`` variables.

    Prefixes match case-insensitively. Setting names are lower-cased with
    ``_`` turned into ``-``; credential keys (``//...``) are kept as-is.
    ``pnpm_config_*`` wins over ``npm_config_*``. Empty values are skipped.
    """
    data: dict[str, Any] = {}
    for prefix in ENV_CONFIG_PREFIXES:
        for name in sorted(env):
            value = env[name]
            if not name.lower().startswith(prefix) or value == "":
                continue
            rest = name[len(prefix) :]
            if not rest:
                continue
            key = rest if rest.startswith("//") else rest.lower().replace("_", "-")
            data[key] = value
    return data


def build_default_options(
    registry: SchemaRegistry,
    *,
    env: Mapping[str, str],
    workspace_dir: str | None,
    home_dir: Path | str,
) -> dict[str, Any]:
    """Schema defaults plus the ones that depend on the environment.

    ``globalconfig`` is derived from ``sys.executable``; call this inside
    the executable substitution scope.
    """
    defaults = copy.deepcopy(registry.defaults())
    defaults.update(
        {
            "ci": is_ci(env),
            "package-manager-strict": env.get(ENV_COREPACK_STRICT) != "0",
            "userconfig": os.path.join(str(home_dir), RC_FILE_NAME),
            "globalconfig": os.path.join(
                global_prefix(sys.executable, env), "etc", "npmrc"
            ),
            "unsafe-perm": is_windows() or not is_root_user(),
            "workspace-concurrency": get_default_workspace_concurrency(),
            "virtual-store-dir-max-length": (
                VIRTUAL_STORE_DIR_MAX_LENGTH_WINDOWS
                if is_windows()
                else VIRTUAL_STORE_DIR_MAX_LENGTH
            ),
        }
    )
    if workspace_dir is not None:
        defaults["workspace-prefix"] = workspace_dir
    return defaults


def find_project_rc(
    project_dir: Path,
    *,
    workspace_dir: Path | None,
    user_rc: Path,
) -> Path | None:
    """Nearest rc file at or above ``project_dir``.

    A distinct workspace root bounds the search (its own rc file is a
    separate layer), and the user rc file never counts as a project file.
    """
    stop_before = None
    if workspace_dir is not None and workspace_dir != project_dir:
        stop_before = workspace_dir
    found = find_up(project_dir, RC_FILE_NAME, stop_before=stop_before)
    if found is not None and found.resolve() == user_rc.resolve():
        return None
    return found


def _load_file_layer(
    scope: LayerScope,
    path: Path,
    env: Mapping[str, str],
    warnings: list[str],  # modified
) -> ConfigLayer | None:
    """Load one rc file; missing gives None, malformed an empty layer."""
    try:
        data = load_rc_file(path, env)
    except RcFileError as e:
        warnings.append(str(e))
        return make_layer(scope, {}, source=path)
    if data is None:
        return None
    return make_layer(scope, data, source=path)


def _path_override(
    key: str,
    sources: list[Mapping[str, Any]],
    default: str,
    *,
    base_dir: str,
    home_dir: Path | str,
) -> Path:
    """Location of a config file, honouring CLI/env overrides."""
    for source in sources:
        value = source.get(key)
        if isinstance(value, str) and value:
            return Path(resolve_path(value, base_dir, home_dir))
    return Path(default)


async def load_layers(
    *,
    cli_options: Mapping[str, Any],
    env: Mapping[str, str],
    project_dir: str,
    workspace_dir: str | None,
    home_dir: Path | str,
    registry: SchemaRegistry,
    ignore_local_settings: bool = False,
    platform: str | None = None,
    builtin_rc_path: Path = BUILTIN_RC_PATH,
) -> LoadedLayers:
    """Read every source of settings, lowest precedence first.

    ``cli_options`` may carry the legacy ``prefix`` alias of ``dir``; it
    picks the project directory and is dropped from the CLI layer.
    """
    logger = getAppLogger()
    platform = platform or sys.platform
    warnings: list[str] = []
    layers: list[ConfigLayer] = []

    prefix = cli_options.get("prefix")
    if isinstance(prefix, str) and prefix:
        project_dir = prefix
    cli_data = {k: v for k, v in cli_options.items() if k != "prefix"}
    env_data = env_layer_data(env)
    overrides = [cli_data, env_data]

    config_dir = get_config_dir(env, home_dir, platform)
    executable = await resolve_running_executable(env)

    # No awaits inside: the substitution must not leak to other tasks.
    with substituted_executable(executable):
        defaults = build_default_options(
            registry, env=env, workspace_dir=workspace_dir, home_dir=home_dir
        )
        layers.append(make_layer(LayerScope.DEFAULTS, defaults))

        failed_to_load_builtin_config = False
        try:
            builtin = load_rc_file(builtin_rc_path, env)
        except RcFileError as e:
            warnings.append(str(e))
            builtin = None
        if builtin is None:
            failed_to_load_builtin_config = True
            builtin = {}
        layers.append(make_layer(LayerScope.BUILTIN_FILE, builtin, builtin_rc_path))

        globalconfig = _path_override(
            "globalconfig",
            overrides,
            defaults["globalconfig"],
            base_dir=project_dir,
            home_dir=home_dir,
        )
        for path in (globalconfig, Path(config_dir) / GLOBAL_RC_FILE_NAME):
            layer = _load_file_layer(LayerScope.GLOBAL_FILE, path, env, warnings)
            if layer is not None:
                layers.append(layer)

        user_rc = _path_override(
            "userconfig",
            overrides,
            defaults["userconfig"],
            base_dir=project_dir,
            home_dir=home_dir,
        )
        layer = _load_file_layer(LayerScope.USER_FILE, user_rc, env, warnings)
        if layer is not None:
            layers.append(layer)

    if not ignore_local_settings:
        project_path = Path(project_dir)
        ws_path = Path(workspace_dir) if workspace_dir is not None else None
        project_rc = find_project_rc(
            project_path, workspace_dir=ws_path, user_rc=user_rc
        )
        if project_rc is not None:
            layer = _load_file_layer(LayerScope.PROJECT_FILE, project_rc, env, warnings)
            if layer is not None:
                layers.append(layer)
        if ws_path is not None and ws_path != project_path:
            layer = _load_file_layer(
                LayerScope.WORKSPACE_FILE, ws_path / RC_FILE_NAME, env, warnings
            )
            if layer is not None:
                layers.append(layer)

    layers.append(make_layer(LayerScope.ENV, env_data))
    layers.append(make_layer(LayerScope.CLI, cli_data))

    logger.debug(
        "Loaded %d config layer%s for %s", len(layers), plural(layers), project_dir
    )
    return LoadedLayers(
        layers=layers,
        warnings=warnings,
        project_dir=project_dir,
        config_dir=config_dir,
        failed_to_load_builtin_config=failed_to_load_builtin_config,
    )
