# src/pmrc/config/config_merge.py


import platform
import re
import sys
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pmrc.constants import DEFAULT_RAW_REGISTRIES, SCOPED_REGISTRY_SUFFIX
from pmrc.logs import getAppLogger

from .config_types import (
    LOCAL_SCOPES,
    ConfigLayer,
    LayerScope,
    NormalizedLayer,
    PackageManager,
    SslConfig,
)


# //host/path/:cert, :key, :ca and the file-based :certfile, :keyfile, :cafile
_SSL_KEY_RE = re.compile(r"^(//.+?):(certfile|keyfile|cafile|cert|key|ca)$")
_SSL_FILE_FIELDS = {"certfile": "cert", "keyfile": "key", "cafile": "ca"}


def merge_layers(normalized: Iterable[NormalizedLayer]) -> dict[str, Any]:
    """Left-fold typed layers; later layers replace values wholesale."""
    merged: dict[str, Any] = {}
    for layer in normalized:
        merged.update(layer.values)
    return merged


def _fold_raw(
    layers: Iterable[ConfigLayer],
    include: frozenset[LayerScope] | None = None,
) -> dict[str, Any]:
    raw: dict[str, Any] = {}
    for layer in layers:
        if include is None or layer.scope in include:
            raw.update(layer.data)
    return raw


def build_raw_local_config(layers: Iterable[ConfigLayer]) -> dict[str, Any]:
    """Raw settings the project itself declares (files next to it and CLI)."""
    return _fold_raw(layers, LOCAL_SCOPES)


def build_raw_config(
    layers: Iterable[ConfigLayer],
    *,
    user_agent: str,
) -> dict[str, Any]:
    """Raw settings from every layer, on top of the default registries."""
    raw: dict[str, Any] = dict(DEFAULT_RAW_REGISTRIES)
    raw.update(_fold_raw(layers))
    raw["user-agent"] = user_agent
    return raw


def default_user_agent(package_manager: PackageManager) -> str:
    return (
        f"{package_manager['name']}/{package_manager['version']} npm/?"
        f" python/{platform.python_version()} {sys.platform} {platform.machine()}"
    )


def resolve_user_agent(
    raw_local_config: Mapping[str, Any],
    package_manager: PackageManager,
) -> str:
    """A project-declared user agent wins over the generated one."""
    declared = raw_local_config.get("user-agent")
    if isinstance(declared, str) and declared:
        return declared
    return default_user_agent(package_manager)


def normalize_registry_url(url: str) -> str:
    return url if url.endswith("/") else f"{url}/"


def get_network_configs(
    raw_config: Mapping[str, Any],
    warnings: list[str],  # modified
) -> tuple[dict[str, str], dict[str, SslConfig]]:
    """Extract scoped registries and per-registry TLS material.

    Returns ``(registries, ssl_configs)``. Registries are keyed by scope
    (``@scope``). Certificate files that cannot be read are reported in
    ``warnings`` and skipped.
    """
    logger = getAppLogger()
    registries: dict[str, str] = {}
    ssl_configs: dict[str, SslConfig] = {}
    for key, value in raw_config.items():
        if not isinstance(value, str):
            continue
        if key.startswith("@") and key.endswith(SCOPED_REGISTRY_SUFFIX):
            registries[key[: key.index(":")]] = normalize_registry_url(value)
            continue
        match = _SSL_KEY_RE.match(key)
        if match is None:
            continue
        registry, field = match.group(1), match.group(2)
        if field in _SSL_FILE_FIELDS:
            try:
                content = Path(value).read_text(encoding="utf-8")
            except OSError as e:
                warnings.append(f"Failed to read {field} {value} for {registry}: {e}")
                continue
            field = _SSL_FILE_FIELDS[field]
        else:
            content = value.replace("\\n", "\n")
        ssl = ssl_configs.setdefault(registry, {"cert": "", "key": ""})
        ssl[field] = content  # type: ignore[literal-required]
    logger.trace(
        f"[get_network_configs] {len(registries)} scoped registries,"
        f" {len(ssl_configs)} TLS configs"
    )
    return registries, ssl_configs


def build_registries(
    raw_config: Mapping[str, Any],
    scoped: Mapping[str, str],
) -> dict[str, str]:
    """Default registry plus per-scope overrides."""
    default = raw_config.get("registry") or DEFAULT_RAW_REGISTRIES["registry"]
    return {"default": normalize_registry_url(str(default)), **scoped}
