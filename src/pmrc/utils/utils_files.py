# src/pmrc/utils/utils_files.py
"""Readers for rc, JSON and YAML files.

rc files use the ``key=value`` format shared by npm-style tools:

- ``;`` and ``#`` start comment lines
- ``[section]`` prefixes the following keys with ``section.``
- ``key[]=value`` appends to a list
- a bare ``key`` means ``true``
- quoted values are unquoted (double quotes are JSON-decoded)
- ``${VAR}`` and ``${VAR:-fallback}`` are substituted from the environment
"""

import json
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from pmrc.errors import RcFileError
from pmrc.logs import getAppLogger


_ENV_REF_RE = re.compile(r"(\\*)\$\{([^${}:]+?)(?::-([^}]*))?\}")


def replace_env(text: str, env: Mapping[str, str]) -> str:
    """Substitute ``${VAR}`` references.

    A backslash before ``$`` keeps the reference literal. A missing
    variable without a fallback raises RcFileError.
    """

    def _sub(match: re.Match[str]) -> str:
        escapes, name, fallback = match.group(1), match.group(2), match.group(3)
        if len(escapes) % 2 == 1:
            return escapes[:-1] + match.group(0)[len(escapes) :]
        value = env.get(name)
        if value is None or (value == "" and fallback is not None):
            if fallback is None:
                xmsg = f"Failed to replace env in config: ${{{name}}}"
                raise RcFileError(xmsg)
            value = fallback
        return escapes + value

    return _ENV_REF_RE.sub(_sub, text)


def _unquote(value: str, lineno: int) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':  # noqa: PLR2004
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as e:
            xmsg = f"Invalid quoted value on line {lineno}: {e.msg}"
            raise RcFileError(xmsg) from e
        return decoded if isinstance(decoded, str) else value
    if len(value) >= 2 and value[0] == value[-1] == "'":  # noqa: PLR2004
        return value[1:-1]
    return value


def parse_rc(text: str, env: Mapping[str, str]) -> dict[str, Any]:
    """Parse rc text into a flat mapping of raw string (or list) values."""
    data: dict[str, Any] = {}
    section = ""
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith((";", "#")):
            continue
        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1].strip()
            continue

        key, sep, value = line.partition("=")
        key = replace_env(key.strip(), env)
        if not key:
            xmsg = f"Missing key on line {lineno}"
            raise RcFileError(xmsg)
        value = replace_env(_unquote(value.strip(), lineno), env) if sep else "true"
        if section:
            key = f"{section}.{key}"

        if key.endswith("[]"):
            key = key[:-2]
            existing = data.get(key)
            if not isinstance(existing, list):
                existing = [] if existing is None else [existing]
            existing.append(value)
            data[key] = existing
        else:
            data[key] = value
    return data


def load_rc_file(path: Path, env: Mapping[str, str]) -> dict[str, Any] | None:
    """Load an rc file.

    Returns None when the file does not exist. Unreadable or malformed
    files raise RcFileError with the path in the message.
    """
    logger = getAppLogger()
    if not path.is_file():
        logger.trace(f"[load_rc_file] Not found: {path}")
        return None
    try:
        text = path.read_text(encoding="utf-8")
        data = parse_rc(text, env)
    except (OSError, UnicodeDecodeError) as e:
        xmsg = f"Cannot read {path}: {e}"
        raise RcFileError(xmsg) from e
    except RcFileError as e:
        xmsg = f"Invalid rc syntax in {path}: {e}"
        raise RcFileError(xmsg) from e
    logger.debug("Loaded %s (%d keys)", path, len(data))
    return data


def load_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        xmsg = f"Cannot decode {path}: {e}"
        raise ValueError(xmsg) from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        xmsg = (
            f"Invalid JSON syntax in {path}:"
            f" {e.msg} (line {e.lineno}, column {e.colno})"
        )
        raise ValueError(xmsg) from e


def load_yaml(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        xmsg = f"Invalid YAML syntax in {path}: {e}"
        raise ValueError(xmsg) from e
