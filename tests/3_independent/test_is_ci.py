# tests/3_independent/test_is_ci.py

import pytest

import pmrc.utils.utils_system as mod_utils_system


@pytest.mark.parametrize(
    ("env", "expected"),
    [
        ({}, False),
        ({"CI": "true"}, True),
        ({"GITHUB_ACTIONS": "true"}, True),
        ({"BUILD_NUMBER": "42"}, True),
        ({"CI": ""}, False),
        ({"CI": "false"}, False),
        ({"CI": "0", "GITHUB_ACTIONS": "true"}, False),
    ],
)
def test_is_ci(env: dict[str, str], expected: bool) -> None:
    """CI detection reads the given env; CI=false/0 opts out."""
    assert mod_utils_system.is_ci(env) is expected
