# src/pmrc/utils/__init__.py

from .utils_files import load_json, load_rc_file, load_yaml, parse_rc, replace_env
from .utils_matching import create_matcher
from .utils_paths import expand_home, find_up, realpath_missing, resolve_path
from .utils_system import (
    CI_ENV_VARS,
    get_cpu_count,
    get_current_branch,
    global_prefix,
    is_ci,
    is_root_user,
    is_windows,
    resolve_running_executable,
    substituted_executable,
)
from .utils_text import is_setting_name, plural, to_kebab, to_snake


__all__ = [  # noqa: RUF022
    # utils_files
    "load_json",
    "load_rc_file",
    "load_yaml",
    "parse_rc",
    "replace_env",
    # utils_matching
    "create_matcher",
    # utils_paths
    "expand_home",
    "find_up",
    "realpath_missing",
    "resolve_path",
    # utils_system
    "CI_ENV_VARS",
    "get_cpu_count",
    "get_current_branch",
    "global_prefix",
    "is_ci",
    "is_root_user",
    "is_windows",
    "resolve_running_executable",
    "substituted_executable",
    # utils_text
    "is_setting_name",
    "plural",
    "to_kebab",
    "to_snake",
]
