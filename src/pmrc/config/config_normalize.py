# src/pmrc/config/config_normalize.py


import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pmrc.constants import CREDENTIAL_KEY_PREFIX, SCOPED_REGISTRY_SUFFIX
from pmrc.logs import getAppLogger
from pmrc.utils import resolve_path, to_snake

from .config_schema import SchemaRegistry
from .config_types import (
    UNKNOWN_CHECK_SCOPES,
    ConfigLayer,
    LayerScope,
    NormalizedLayer,
    SchemaEntry,
)


_TRUE_STRINGS = {"true"}
_FALSE_STRINGS = {"false"}


class CoercionError(ValueError):
    """A raw value does not fit the declared setting type."""


# --- value coercion ----------------------------------------------------------


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    xmsg = f"expected true or false, got {value!r}"
    raise CoercionError(xmsg)


def _coerce_number(value: Any) -> int | float:
    if isinstance(value, bool):
        xmsg = f"expected a number, got {value!r}"
        raise CoercionError(xmsg)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            pass
    xmsg = f"expected a number, got {value!r}"
    raise CoercionError(xmsg)


def _coerce_list(value: Any, separator: str) -> list[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(separator) if part.strip()]
    if isinstance(value, (list, tuple)):
        items: list[str] = []
        for item in value:
            if not isinstance(item, (str, int, float)) or isinstance(item, bool):
                xmsg = f"expected a list of strings, got item {item!r}"
                raise CoercionError(xmsg)
            items.append(str(item))
        return items
    xmsg = f"expected a list of strings, got {value!r}"
    raise CoercionError(xmsg)


def _coerce_mapping(value: Any) -> dict[str, Any]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            xmsg = f"expected a JSON object: {e.msg}"
            raise CoercionError(xmsg) from e
    if isinstance(value, dict):
        return dict(value)
    xmsg = f"expected a mapping, got {value!r}"
    raise CoercionError(xmsg)


def _check_choice(entry: SchemaEntry, value: str) -> str:
    if entry.choices is not None and value not in entry.choices:
        allowed = ", ".join(entry.choices)
        xmsg = f"expected one of {allowed}, got {value!r}"
        raise CoercionError(xmsg)
    return value


def coerce_value(
    entry: SchemaEntry,
    value: Any,
    *,
    base_dir: Path | str,
    home_dir: Path | str,
) -> Any:
    """Convert a raw value to the type declared by ``entry``.

    Raises CoercionError when the value does not fit.
    """
    vtype = entry.value_type
    if value is None or vtype == "any":
        return value
    if vtype == "boolean":
        return _coerce_bool(value)
    if vtype == "number":
        return _coerce_number(value)
    if vtype == "string_list":
        return _coerce_list(value, entry.separator)
    if vtype == "mapping":
        return _coerce_mapping(value)
    if vtype == "bool_or_string":
        try:
            return _coerce_bool(value)
        except CoercionError:
            if not isinstance(value, str):
                raise
            return _check_choice(entry, value)
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        xmsg = f"expected a string, got {value!r}"
        raise CoercionError(xmsg)
    text = str(value)
    if vtype == "path":
        return resolve_path(text, base_dir, home_dir)
    return _check_choice(entry, text)


# --- layer normalization -------------------------------------------------------


def normalize_mapping(
    data: Mapping[str, Any],
    registry: SchemaRegistry,
    *,
    base_dir: Path | str,
    home_dir: Path | str,
    where: str,
) -> tuple[dict[str, Any], dict[str, Any], list[str]]:
    """Map raw keys onto internal setting names with typed values.

    Returns ``(values, unknown, warnings)``. Keys the registry does not
    know are kept aside in ``unknown``. Deprecated spellings are applied
    before their replacements, so the current spelling wins when both
    are present.
    """
    values: dict[str, Any] = {}
    unknown: dict[str, Any] = {}
    warnings: list[str] = []
    items = sorted(data.items(), key=lambda kv: not registry.is_alias(kv[0]))
    for key, raw in items:
        resolution = registry.resolve(key)
        if resolution is None:
            unknown[key] = raw
            continue
        entry, alias = resolution
        if alias is not None:
            warnings.append(
                f'The "{alias}" setting is deprecated. Use "{entry.file_key}" instead.'
            )
        try:
            values[entry.name] = coerce_value(
                entry, raw, base_dir=base_dir, home_dir=home_dir
            )
        except CoercionError as e:
            warnings.append(
                f'Ignoring invalid value for "{entry.file_key}" in {where}: {e}'
            )
    return values, unknown, warnings


def normalize_layer(
    layer: ConfigLayer,
    registry: SchemaRegistry,
    *,
    project_dir: Path | str,
    home_dir: Path | str,
) -> NormalizedLayer:
    """Normalize one layer. Relative paths anchor at the file that set them."""
    logger = getAppLogger()
    values, unknown, warnings = normalize_mapping(
        layer.data,
        registry,
        base_dir=layer.base_dir or project_dir,
        home_dir=home_dir,
        where=str(layer.source or layer.scope.value),
    )
    result = NormalizedLayer(
        scope=layer.scope, values=values, unknown=unknown, warnings=warnings
    )
    logger.trace(
        f"[normalize_layer] {layer.scope.value}: {len(result.values)} known,"
        f" {len(result.unknown)} unknown"
    )
    return result


def cli_passthrough(normalized: NormalizedLayer) -> dict[str, Any]:
    """CLI options outside the schema, keyed by internal spelling."""
    return {to_snake(key): value for key, value in normalized.unknown.items()}


def find_unknown_settings(
    layers: Iterable[ConfigLayer],
    registry: SchemaRegistry,
) -> list[str]:
    """List keys from project/workspace files that no setting claims.

    Credential keys (``//host/:_authToken``) and scoped registry keys
    (``@scope:registry``) are never reported. Only the exact rc spelling
    counts as known.
    """
    seen: dict[str, None] = {}
    for layer in layers:
        if layer.scope not in UNKNOWN_CHECK_SCOPES:
            continue
        for key in layer.data:
            if not key.strip() or key in registry:
                continue
            if key.startswith(CREDENTIAL_KEY_PREFIX):
                continue
            if key.startswith("@") and key.endswith(SCOPED_REGISTRY_SUFFIX):
                continue
            seen.setdefault(key)
    return list(seen)


def layer_values(
    normalized: Iterable[NormalizedLayer],
    scope: LayerScope,
) -> dict[str, Any]:
    """Merged typed values of every layer with the given scope."""
    values: dict[str, Any] = {}
    for layer in normalized:
        if layer.scope is scope:
            values.update(layer.values)
    return values
