# tests/9_integration/test_cli.py
"""Tests for the pmrc command-line entry point."""

import json
import os
from pathlib import Path

import pytest

import pmrc.cli as mod_cli
import pmrc.meta as mod_meta
from tests.utils import Sandbox, make_sandbox


@pytest.fixture
def box(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Sandbox:
    """Sandbox whose env is also the process environment."""
    sandbox = make_sandbox(tmp_path)
    for key in list(os.environ):
        if key.lower().startswith(("npm_config_", "pnpm_config_")):
            monkeypatch.delenv(key)
    for key, value in sandbox.env.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("HOME", str(sandbox.home))
    return sandbox


def test_prints_selected_keys_as_json(
    box: Sandbox,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Positional keys limit the output; settings come from --key=value."""
    # --- execute ---
    code = mod_cli.main(
        [
            "-q",
            "--dir",
            str(box.project),
            "--fetch-retries=5",
            "--no-hoist",
            "fetch-retries",
            "hoist",
            "use_lockfile",
        ]
    )

    # --- verify ---
    out = capsys.readouterr().out
    assert code == 0
    assert json.loads(out) == {
        "fetch-retries": 5,
        "hoist": False,
        "use_lockfile": False,
    }


def test_prints_full_config(
    box: Sandbox,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Without keys the whole config is printed."""
    # --- setup ---
    box.write_rc(box.project, "save-exact=true\n")

    # --- execute ---
    code = mod_cli.main(["-q", "--dir", str(box.project)])

    # --- verify ---
    data = json.loads(capsys.readouterr().out)
    assert code == 0
    assert data["save_exact"] is True
    assert data["dir"] == str(box.project)


def test_conflict_exits_with_error(
    box: Sandbox,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Conflicting options end with exit code 1 and a message."""
    # --- execute ---
    code = mod_cli.main(
        ["-q", "--dir", str(box.project), "--no-hoist", "--shamefully-hoist"]
    )

    # --- verify ---
    captured = capsys.readouterr()
    assert code == 1
    assert captured.out == ""
    assert "CONFIG_CONFLICT_HOIST" in captured.err


def test_unknown_setting_gets_a_hint(
    box: Sandbox,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """A near-miss setting name suggests the real one."""
    # --- execute ---
    code = mod_cli.main(["--dir", str(box.project), "--fetch-retrys=5", "dir"])

    # --- verify ---
    captured = capsys.readouterr()
    assert code == 0
    assert "Did you mean --fetch-retries?" in captured.err


def test_resolution_warnings_reach_stderr(
    box: Sandbox,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Warnings collected during resolution are logged, not printed as JSON."""
    # --- setup ---
    box.write_rc(box.project, "store=~/my-store\n")

    # --- execute ---
    code = mod_cli.main(["--dir", str(box.project), "store-dir"])

    # --- verify ---
    captured = capsys.readouterr()
    assert code == 0
    assert 'The "store" setting is deprecated' in captured.err
    assert json.loads(captured.out) == {"store-dir": str(box.home / "my-store")}


def test_version_flag(
    box: Sandbox,  # noqa: ARG001
    capsys: pytest.CaptureFixture[str],
) -> None:
    """--version prints the program name and exits cleanly."""
    # --- execute ---
    code = mod_cli.main(["--version"])

    # --- verify ---
    captured = capsys.readouterr()
    assert code == 0
    assert mod_meta.PROGRAM_DISPLAY in captured.out + captured.err
