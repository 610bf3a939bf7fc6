# src/pmrc/utils/utils_text.py


import re
from typing import Any


_SETTING_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def is_setting_name(key: str) -> bool:
    """True for plain setting names, False for registry and credential keys."""
    return bool(_SETTING_NAME_RE.match(key))


def to_kebab(name: str) -> str:
    """Convert camelCase or snake_case to kebab-case.

    Keys that are not plain setting names (``//host/:_authToken``,
    ``@scope:registry``) are returned unchanged.
    """
    if not is_setting_name(name):
        return name
    return _CAMEL_BOUNDARY_RE.sub("-", name).replace("_", "-").lower()


def to_snake(name: str) -> str:
    if not is_setting_name(name):
        return name
    return to_kebab(name).replace("-", "_")


def plural(obj: Any) -> str:
    """Return 's' if obj represents a plural count.

    Accepts ints, floats, and any object implementing __len__().
    """
    count: int | float
    try:
        count = len(obj)
    except TypeError:
        count = obj if isinstance(obj, (int, float)) else 0
    return "s" if count != 1 else ""
