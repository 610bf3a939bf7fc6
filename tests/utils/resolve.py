# tests/utils/resolve.py
"""Helpers for driving a full resolution inside a temporary sandbox."""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pmrc.config as mod_config


@dataclass
class Sandbox:
    """Isolated home, project and tool directories under tmp_path."""

    root: Path
    home: Path
    project: Path
    env: dict[str, str]

    def write_rc(self, directory: Path, content: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / ".npmrc"
        path.write_text(content, encoding="utf-8")
        return path

    def resolve(
        self,
        cli_options: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> mod_config.ConfigResult:
        """Run get_config() with the sandbox env/home and the project as dir."""
        cli = {"dir": str(self.project), **(cli_options or {})}
        kwargs.setdefault("env", self.env)
        kwargs.setdefault("home_dir", self.home)
        return asyncio.run(mod_config.get_config(cli, **kwargs))


def make_sandbox(tmp_path: Path, **extra_env: str) -> Sandbox:
    """Create a sandbox whose env points every tool dir into tmp_path."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    env = {
        "PATH": str(tmp_path / "bin"),
        "PREFIX": str(tmp_path / "prefix"),
        "PNPM_HOME": str(tmp_path / "pnpm-home"),
        "XDG_CONFIG_HOME": str(tmp_path / "xdg-config"),
        "XDG_CACHE_HOME": str(tmp_path / "xdg-cache"),
        "XDG_STATE_HOME": str(tmp_path / "xdg-state"),
        **extra_env,
    }
    return Sandbox(root=tmp_path, home=home, project=project.resolve(), env=env)


def run(coro: Any) -> Any:
    return asyncio.run(coro)
