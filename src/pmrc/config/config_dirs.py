# src/pmrc/config/config_dirs.py
"""Platform directory layout for config, data, cache and state.

XDG variables win everywhere; otherwise each platform gets its own
conventional location. ``platform`` takes ``sys.platform`` values.
"""

import os
from collections.abc import Mapping
from pathlib import Path

from pmrc.constants import (
    ENV_LOCALAPPDATA,
    ENV_PNPM_HOME,
    ENV_XDG_CACHE_HOME,
    ENV_XDG_CONFIG_HOME,
    ENV_XDG_DATA_HOME,
    ENV_XDG_STATE_HOME,
)


_TOOL = "pnpm"


def _join(*parts: str | Path) -> str:
    return os.path.join(*(str(p) for p in parts))


def get_config_dir(env: Mapping[str, str], home_dir: Path | str, platform: str) -> str:
    if env.get(ENV_XDG_CONFIG_HOME):
        return _join(env[ENV_XDG_CONFIG_HOME], _TOOL)
    if platform == "darwin":
        return _join(home_dir, "Library", "Preferences", _TOOL)
    if platform != "win32":
        return _join(home_dir, ".config", _TOOL)
    if env.get(ENV_LOCALAPPDATA):
        return _join(env[ENV_LOCALAPPDATA], _TOOL, "config")
    return _join(home_dir, ".config", _TOOL)


def get_data_dir(env: Mapping[str, str], home_dir: Path | str, platform: str) -> str:
    """Tool home directory; ``PNPM_HOME`` overrides everything."""
    if env.get(ENV_PNPM_HOME):
        return env[ENV_PNPM_HOME]
    if env.get(ENV_XDG_DATA_HOME):
        return _join(env[ENV_XDG_DATA_HOME], _TOOL)
    if platform == "darwin":
        return _join(home_dir, "Library", _TOOL)
    if platform != "win32":
        return _join(home_dir, ".local", "share", _TOOL)
    if env.get(ENV_LOCALAPPDATA):
        return _join(env[ENV_LOCALAPPDATA], _TOOL)
    return _join(home_dir, f".{_TOOL}")


def get_cache_dir(env: Mapping[str, str], home_dir: Path | str, platform: str) -> str:
    if env.get(ENV_XDG_CACHE_HOME):
        return _join(env[ENV_XDG_CACHE_HOME], _TOOL)
    if platform == "darwin":
        return _join(home_dir, "Library", "Caches", _TOOL)
    if platform != "win32":
        return _join(home_dir, ".cache", _TOOL)
    if env.get(ENV_LOCALAPPDATA):
        return _join(env[ENV_LOCALAPPDATA], f"{_TOOL}-cache")
    return _join(home_dir, f".{_TOOL}-cache")


def get_state_dir(env: Mapping[str, str], home_dir: Path | str, platform: str) -> str:
    if env.get(ENV_XDG_STATE_HOME):
        return _join(env[ENV_XDG_STATE_HOME], _TOOL)
    if platform not in {"win32", "darwin"}:
        return _join(home_dir, ".local", "state", _TOOL)
    if env.get(ENV_LOCALAPPDATA):
        return _join(env[ENV_LOCALAPPDATA], f"{_TOOL}-state")
    return _join(home_dir, f".{_TOOL}-state")
