# src/pmrc/config/config_derive.py
"""Settings whose value depends on other, already merged settings.

Each rule reads and writes the flat config dict in place. The rules run
in a fixed order because later ones read what earlier ones wrote.
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pmrc.constants import MATCH_ALL_PATTERN
from pmrc.logs import getAppLogger
from pmrc.utils import create_matcher, get_cpu_count, get_current_branch, is_windows

from .config_dirs import get_cache_dir, get_state_dir
from .config_loader import get_default_workspace_concurrency


# --- constants ------------------------------------------------------

SHAMEFULLY_FLATTEN_MSG = (
    'The "shamefully-flatten" setting has been renamed to "shamefully-hoist".'
    ' Also, in most cases you won\'t need "shamefully-hoist". Since v4, a'
    " semistrict node_modules structure is on by default (via hoist-pattern=[*])."
)
ALLOW_ALL_BUILDS_MSG = (
    "You have set dangerouslyAllowAllBuilds to true. The dependencies listed"
    " in neverBuiltDependencies will run their scripts."
)

_PROD_SELECTORS = {"prod", "production"}
_DEV_SELECTORS = {"dev", "development"}


def get_env_case_insensitive(env: Mapping[str, str], name: str) -> str | None:
    """Look up ``name`` as given, then upper-cased, then lower-cased."""
    for candidate in (name, name.upper(), name.lower()):
        value = env.get(candidate)
        if value is not None:
            return value
    return None


# --- lockfiles ------------------------------------------------------


def derive_use_lockfile(config: Mapping[str, Any]) -> bool:
    for key in ("lockfile", "package_lock"):
        if isinstance(config.get(key), bool):
            return config[key]
    return False


async def derive_merge_git_branch_lockfiles(config: Mapping[str, Any]) -> bool | None:
    """Explicit flag wins; otherwise match the current branch to the pattern.

    Returns None when neither is configured or the branch is unknown.
    """
    explicit = config.get("merge_git_branch_lockfiles")
    if isinstance(explicit, bool):
        return explicit
    pattern = config.get("merge_git_branch_lockfiles_branch_pattern")
    if not pattern:
        return None
    branch = await get_current_branch(config.get("dir"))
    if not branch:
        return None
    return create_matcher(pattern)(branch)


# --- hoisting -------------------------------------------------------


def apply_shamefully_flatten(config: dict[str, Any], warnings: list[str]) -> None:
    if config.get("shamefully_flatten"):
        warnings.append(SHAMEFULLY_FLATTEN_MSG)
        config["shamefully_hoist"] = True


def _is_empty_pattern(value: Any) -> bool:
    return value is None or value in ("", [], [""])


def apply_hoist_rules(config: dict[str, Any]) -> None:
    """Drop or widen hoist patterns according to hoist/symlink settings."""
    if config.get("hoist") is False:
        config.pop("hoist_pattern", None)

    shamefully_hoist = config.get("shamefully_hoist")
    if shamefully_hoist is True:
        config["public_hoist_pattern"] = [MATCH_ALL_PATTERN]
    elif shamefully_hoist is False or _is_empty_pattern(
        config.get("public_hoist_pattern")
    ):
        config.pop("public_hoist_pattern", None)

    if not config.get("symlink", True):
        config.pop("hoist_pattern", None)
        config.pop("public_hoist_pattern", None)


# --- output ---------------------------------------------------------


def derive_color(value: Any) -> Any:
    if value is True:
        return "always"
    if value is False:
        return "never"
    if value is None:
        return "auto"
    return value


# --- network --------------------------------------------------------


def apply_proxy_chain(config: dict[str, Any], env: Mapping[str, str]) -> None:
    """Fill https/http/no proxy from related settings and the environment."""
    if not config.get("https_proxy"):
        proxy = config.get("proxy")
        config["https_proxy"] = (
            proxy if proxy is not None else get_env_case_insensitive(env, "https_proxy")
        )
    if not config.get("http_proxy"):
        config["http_proxy"] = next(
            (
                v
                for v in (
                    config.get("https_proxy"),
                    get_env_case_insensitive(env, "http_proxy"),
                    get_env_case_insensitive(env, "proxy"),
                )
                if v is not None
            ),
            None,
        )
    if not config.get("no_proxy"):
        legacy = config.get("noproxy")
        config["no_proxy"] = (
            legacy if legacy is not None else get_env_case_insensitive(env, "no_proxy")
        )


# --- linking --------------------------------------------------------


def build_extra_env(config: Mapping[str, Any], platform: str) -> dict[str, str]:
    """Environment additions for child processes."""
    extra_env = {
        "npm_config_verify_deps_before_run": "false",
        "pnpm_config_verify_deps_before_run": "false",
    }
    if config.get("prefer_symlinked_executables") and not is_windows(platform):
        cwd = config.get("lockfile_dir") or config["dir"]
        virtual_store_dir = config.get("virtual_store_dir")
        if not virtual_store_dir:
            modules_dir = config.get("modules_dir")
            virtual_store_dir = (
                os.path.join(modules_dir, ".pnpm")
                if modules_dir
                else os.path.join("node_modules", ".pnpm")
            )
        extra_env["NODE_PATH"] = os.path.normpath(
            os.path.join(cwd, virtual_store_dir, "node_modules")
        )
    return extra_env


def apply_linker_implications(config: dict[str, Any]) -> None:
    linker = config.get("node_linker")
    if linker == "pnp":
        config["enable_pnp"] = True
    elif linker == "hoisted" and config.get("prefer_symlinked_executables") is None:
        config["prefer_symlinked_executables"] = True


def apply_side_effects_cache(config: dict[str, Any]) -> None:
    cache = config.get("side_effects_cache")
    config["side_effects_cache_read"] = (
        cache if cache is not None else config.get("side_effects_cache_readonly")
    )
    config["side_effects_cache_write"] = cache


# --- workspaces -----------------------------------------------------


def get_workspace_concurrency(value: Any, cpu_count: int | None = None) -> int:
    """Positive values are used as-is; ``n <= 0`` means ``cpus - |n|``."""
    if not isinstance(value, int) or isinstance(value, bool):
        return get_default_workspace_concurrency()
    if value <= 0:
        cpus = cpu_count if cpu_count is not None else get_cpu_count()
        return max(1, cpus - abs(value))
    return value


# --- dependency selection -------------------------------------------


def apply_dependency_selection(config: dict[str, Any]) -> None:
    """Settle the production/dev/optional triad."""
    only = config.get("only")
    if only in _PROD_SELECTORS or (not only and config.get("production")):
        config["production"] = True
        config["dev"] = False
    elif only in _DEV_SELECTORS or config.get("dev"):
        config["production"] = False
        config["dev"] = True
        config["optional"] = False
    else:
        config["production"] = True
        config["dev"] = True


def apply_allow_all_builds(config: dict[str, Any], warnings: list[str]) -> None:
    if not config.get("dangerously_allow_all_builds"):
        return
    if config.get("never_built_dependencies"):
        warnings.append(ALLOW_ALL_BUILDS_MSG)
    config["never_built_dependencies"] = []


# --- entry ----------------------------------------------------------


async def compute_derived_settings(
    config: dict[str, Any],  # modified
    *,
    env: Mapping[str, str],
    home_dir: Path | str,
    platform: str,
    warnings: list[str],  # modified
) -> None:
    logger = getAppLogger()
    config["use_lockfile"] = derive_use_lockfile(config)
    config["use_git_branch_lockfile"] = config.get("git_branch_lockfile") is True
    config["merge_git_branch_lockfiles"] = await derive_merge_git_branch_lockfiles(
        config
    )

    workspace_dir = config.get("workspace_dir")
    config["extra_bin_paths"] = (
        [os.path.join(workspace_dir, "node_modules", ".bin")] if workspace_dir else []
    )
    config["extra_env"] = build_extra_env(config, platform)

    apply_shamefully_flatten(config, warnings)
    if not config.get("cache_dir"):
        config["cache_dir"] = get_cache_dir(env, home_dir, platform)
    if not config.get("state_dir"):
        config["state_dir"] = get_state_dir(env, home_dir, platform)

    apply_hoist_rules(config)
    config["color"] = derive_color(config.get("color"))
    apply_proxy_chain(config, env)
    apply_linker_implications(config)
    apply_side_effects_cache(config)

    if (
        config.get("shared_workspace_lockfile")
        and not config.get("lockfile_dir")
        and workspace_dir
    ):
        config["lockfile_dir"] = workspace_dir

    config["workspace_concurrency"] = get_workspace_concurrency(
        config.get("workspace_concurrency")
    )
    apply_dependency_selection(config)
    apply_allow_all_builds(config, warnings)
    if config.get("ci"):
        # Never a warm cache in CI
        config["enable_global_virtual_store"] = False
    logger.trace(f"[compute_derived_settings] {len(config)} settings")
