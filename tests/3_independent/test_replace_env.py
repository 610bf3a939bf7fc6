# tests/3_independent/test_replace_env.py

import pytest

import pmrc.errors as mod_errors
import pmrc.utils.utils_files as mod_utils_files


def test_replace_env_plain_reference() -> None:
    """${VAR} is replaced with its value."""
    result = mod_utils_files.replace_env("${HOME}/.cache", {"HOME": "/home/u"})
    assert result == "/home/u/.cache"


def test_replace_env_uses_fallback_for_missing_or_empty() -> None:
    """${VAR:-fallback} falls back when VAR is unset or empty."""
    assert mod_utils_files.replace_env("${NOPE:-dflt}", {}) == "dflt"
    assert mod_utils_files.replace_env("${EMPTY:-dflt}", {"EMPTY": ""}) == "dflt"
    assert mod_utils_files.replace_env("${SET:-dflt}", {"SET": "v"}) == "v"


def test_replace_env_missing_without_fallback_raises() -> None:
    """An unknown variable with no fallback is an error."""
    with pytest.raises(
        mod_errors.RcFileError,
        match=r"Failed to replace env in config: \$\{TOKEN\}",
    ):
        mod_utils_files.replace_env("${TOKEN}", {})


def test_replace_env_escaped_reference_stays_literal() -> None:
    """A backslash before '$' keeps the reference and drops the backslash."""
    assert mod_utils_files.replace_env("\\${TOKEN}", {}) == "${TOKEN}"


def test_replace_env_double_backslash_still_substitutes() -> None:
    """An escaped backslash does not escape the reference."""
    result = mod_utils_files.replace_env("\\\\${A}", {"A": "x"})
    assert result == "\\\\x"
