# src/pmrc/config/config_auth.py
"""Credential inheritance between two resolutions.

In credential-inheritance mode the pipeline runs twice: once rooted at
the home directory with local files suppressed, once normally. Only
authentication settings are then copied from the home-rooted result into
the normal one.
"""

import asyncio
import copy
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pmrc.logs import getAppLogger

from .config_types import ConfigResult


# --- constants ------------------------------------------------------

# Typed settings that carry credentials or transport material
AUTH_CFG_KEYS: frozenset[str] = frozenset(
    {
        "ca",
        "cafile",
        "cert",
        "key",
        "local_address",
        "git_shallow_hosts",
        "https_proxy",
        "http_proxy",
        "no_proxy",
        "strict_ssl",
        "registries",
        "ssl_configs",
        "user_config",
    }
)

# Raw rc keys with the same meaning
RAW_AUTH_CFG_KEYS: frozenset[str] = frozenset(
    {
        "ca",
        "cafile",
        "cert",
        "key",
        "local-address",
        "git-shallow-hosts",
        "https-proxy",
        "proxy",
        "no-proxy",
        "registry",
        "strict-ssl",
    }
)

# Per-registry raw keys end with one of these
RAW_AUTH_CFG_KEY_SUFFIXES: tuple[str, ...] = (
    ":cafile",
    ":certfile",
    ":keyfile",
    ":registry",
    ":tokenHelper",
    ":_auth",
    ":_authToken",
)


def is_auth_setting(key: str) -> bool:
    return key in AUTH_CFG_KEYS


def is_raw_auth_cfg_key(key: str) -> bool:
    return key in RAW_AUTH_CFG_KEYS or key.endswith(RAW_AUTH_CFG_KEY_SUFFIXES)


def _inherit_picked(
    target: dict[str, Any],  # modified
    source: Mapping[str, Any],
    pick: Callable[[str], bool],
) -> None:
    for key, value in source.items():
        if pick(key) and value is not None:
            target[key] = copy.deepcopy(value)


def inherit_auth_config(
    target: dict[str, Any],  # modified
    source: Mapping[str, Any],
) -> None:
    """Copy authentication settings from ``source`` into ``target``.

    Applies to the typed settings and to both raw views.
    """
    _inherit_picked(target, source, is_auth_setting)
    for raw_key in ("raw_config", "raw_local_config"):
        source_raw = source.get(raw_key)
        if not isinstance(source_raw, Mapping):
            continue
        target_raw = target.setdefault(raw_key, {})
        _inherit_picked(target_raw, source_raw, is_raw_auth_cfg_key)


async def resolve_with_auth_inheritance(
    resolve_home: Callable[[], Awaitable[ConfigResult]],
    resolve_normal: Callable[[], Awaitable[ConfigResult]],
) -> ConfigResult:
    """Run both resolutions concurrently and splice credentials.

    If either run fails, the other is cancelled and the error propagates.
    Warnings of the normal run come first.
    """
    logger = getAppLogger()
    home_task = asyncio.ensure_future(resolve_home())
    normal_task = asyncio.ensure_future(resolve_normal())
    try:
        home, normal = await asyncio.gather(home_task, normal_task)
    except BaseException:
        for task in (home_task, normal_task):
            task.cancel()
        await asyncio.gather(home_task, normal_task, return_exceptions=True)
        raise

    inherit_auth_config(normal.config, home.config)
    logger.trace("[resolve_with_auth_inheritance] credentials spliced from home")
    return ConfigResult(config=normal.config, warnings=normal.warnings + home.warnings)
