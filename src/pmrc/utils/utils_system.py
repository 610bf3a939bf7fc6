# src/pmrc/utils/utils_system.py


import asyncio
import os
import shutil
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager, suppress
from pathlib import Path

from pmrc.constants import ENV_PREFIX
from pmrc.logs import getAppLogger


# Environment variables that indicate a CI environment
CI_ENV_VARS = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "BUILD_NUMBER",
    "RUN_ID",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "CIRCLECI",
    "TRAVIS",
    "BUILDKITE",
    "TF_BUILD",
    "JENKINS_URL",
    "TEAMCITY_VERSION",
)


def is_ci(env: Mapping[str, str]) -> bool:
    """Check whether ``env`` looks like a CI environment.

    ``CI=false`` (or ``0``) explicitly opts out.
    """
    if env.get("CI", "").lower() in {"false", "0"}:
        return False
    return any(env.get(var) for var in CI_ENV_VARS)


def is_windows(platform: str | None = None) -> bool:
    return (platform or sys.platform).startswith(("win", "cygwin"))


def get_cpu_count() -> int:
    return os.cpu_count() or 1


def is_root_user() -> bool:
    getuid = getattr(os, "getuid", None)
    return getuid is not None and getuid() == 0


def global_prefix(executable: str, env: Mapping[str, str]) -> str:
    """Install prefix of the running tool.

    ``PREFIX`` wins; otherwise it is derived from the executable location
    (``<prefix>/bin/python`` on POSIX, ``<prefix>\\python.exe`` on Windows).
    """
    if env.get(ENV_PREFIX):
        return env[ENV_PREFIX]
    exe_dir = os.path.dirname(executable)
    if is_windows():
        return exe_dir
    return os.path.dirname(exe_dir)


@contextmanager
def substituted_executable(path: str | None) -> Iterator[str]:
    """Temporarily point ``sys.executable`` at ``path``.

    The previous value is restored on every exit path. ``None`` or an
    identical path (case-insensitive) leaves ``sys.executable`` alone.
    """
    original = sys.executable
    if path and path.upper() != original.upper():
        sys.executable = path
    try:
        yield sys.executable
    finally:
        sys.executable = original


async def resolve_running_executable(env: Mapping[str, str]) -> str | None:
    """Look up the real location of the running interpreter.

    Lookup failures are not errors: ``None`` means keep the current value.
    """
    logger = getAppLogger()

    def _lookup() -> str | None:
        found = shutil.which(sys.executable, path=env.get("PATH"))
        if found is None:
            return None
        return os.path.realpath(found)

    resolved: str | None = None
    with suppress(OSError):
        resolved = await asyncio.to_thread(_lookup)
    logger.trace(f"[resolve_running_executable] {sys.executable} -> {resolved}")
    return resolved


async def get_current_branch(cwd: Path | str | None = None) -> str | None:
    """Return the checked-out git branch, or None when it cannot be told."""
    logger = getAppLogger()
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "symbolic-ref",
            "--short",
            "HEAD",
            cwd=None if cwd is None else str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        stdout, _ = await proc.communicate()
    except OSError as e:
        logger.trace(f"[get_current_branch] git unavailable: {e}")
        return None
    if proc.returncode != 0:
        return None
    branch = stdout.decode("utf-8", "replace").strip()
    return branch or None
