# src/pmrc/utils/utils_paths.py


import os
from pathlib import Path


def expand_home(value: str, home_dir: Path | str) -> str:
    """Expand a leading ``~`` against an explicit home directory."""
    if value == "~":
        return str(home_dir)
    if value.startswith(("~/", "~\\")):
        return os.path.join(str(home_dir), value[2:])
    return value


def resolve_path(value: str, base_dir: Path | str, home_dir: Path | str) -> str:
    """Return ``value`` as an absolute path string.

    ``~`` is expanded against ``home_dir``; relative paths are anchored at
    ``base_dir`` (usually the directory of the file that set them).
    """
    expanded = expand_home(value, home_dir)
    if os.path.isabs(expanded):
        return os.path.normpath(expanded)
    return os.path.normpath(os.path.join(str(base_dir), expanded))


def realpath_missing(value: Path | str) -> str:
    """Resolve symlinks, tolerating paths that do not exist (yet)."""
    return os.path.realpath(os.path.abspath(str(value)))


def find_up(
    start: Path,
    name: str,
    *,
    stop_before: Path | None = None,
) -> Path | None:
    """Find the nearest ``name`` file in ``start`` or its parents.

    The search ends at the filesystem root, or just below ``stop_before``
    when given (``stop_before`` itself is not searched).
    """
    current = start
    while True:
        if stop_before is not None and current == stop_before:
            return None
        candidate = current / name
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent
