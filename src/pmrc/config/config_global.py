# src/pmrc/config/config_global.py


import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from pmrc.constants import (
    ENV_PNPM_HOME,
    GLOBAL_DIR_NAME,
    GLOBAL_VIRTUAL_STORE_DIR,
    LAYOUT_VERSION,
)
from pmrc.errors import GlobalBinDirError
from pmrc.logs import getAppLogger


# Values global mode always forces, whatever the layers said
GLOBAL_FORCED_SETTINGS: dict[str, Any] = {
    "save": True,
    "allow_new": True,
    "ignore_current_specifiers": True,
    "save_prod": True,
    "save_dev": False,
    "save_optional": False,
    "virtual_store_dir": GLOBAL_VIRTUAL_STORE_DIR,
}


class GlobalBinDirCheck(Protocol):
    def __call__(
        self,
        bin_dir: str,
        *,
        env: Mapping[str, str],
        should_allow_write: bool,
    ) -> None: ...


def get_global_pkg_dir(global_dir: str | None, tool_home_dir: str) -> str:
    """Layout-versioned directory global packages are installed into."""
    root = global_dir or os.path.join(tool_home_dir, GLOBAL_DIR_NAME)
    return os.path.join(root, str(LAYOUT_VERSION))


def _same_dir(a: str, b: str) -> bool:
    return os.path.normcase(os.path.normpath(a)) == os.path.normcase(
        os.path.normpath(b)
    )


def check_global_bin_dir(
    bin_dir: str,
    *,
    env: Mapping[str, str],
    should_allow_write: bool,
) -> None:
    """Make sure executables installed into ``bin_dir`` are usable.

    The directory must be listed in ``PATH`` and, when requested, be
    writable. Raises GlobalBinDirError otherwise.
    """
    search_path = env.get("PATH")
    if not search_path:
        xmsg = (
            "Couldn't find a global directory for executables because"
            ' the "PATH" environment variable is not set.'
        )
        raise GlobalBinDirError(xmsg)
    if not any(_same_dir(bin_dir, d) for d in search_path.split(os.pathsep) if d):
        xmsg = f'The configured global bin directory "{bin_dir}" is not in PATH'
        raise GlobalBinDirError(xmsg)
    if should_allow_write and not os.access(bin_dir, os.W_OK):
        xmsg = f"No write access to the global bin directory: {bin_dir}"
        raise GlobalBinDirError(xmsg)


def apply_global_mode(
    config: dict[str, Any],  # modified
    *,
    env: Mapping[str, str],
    check_bin_dir: GlobalBinDirCheck = check_global_bin_dir,
    should_allow_write: bool = False,
) -> None:
    """Retarget ``config`` at the shared global package directory.

    The workspace root and lockfile directory are dropped, workspace
    linking and shared lockfiles are switched off, and the values in
    GLOBAL_FORCED_SETTINGS are applied last.
    """
    logger = getAppLogger()
    config["workspace_dir"] = None
    config["dir"] = config["global_pkg_dir"]

    bin_dir = config.get("global_bin_dir") or env.get(ENV_PNPM_HOME)
    config["bin"] = bin_dir
    if bin_dir:
        Path(bin_dir).mkdir(parents=True, exist_ok=True)
        check_bin_dir(bin_dir, env=env, should_allow_write=should_allow_write)

    if config.get("link_workspace_packages"):
        config["link_workspace_packages"] = False
    if config.get("shared_workspace_lockfile"):
        config["shared_workspace_lockfile"] = False
    config["lockfile_dir"] = None

    config.update(GLOBAL_FORCED_SETTINGS)
    logger.trace(f"[apply_global_mode] dir={config['dir']} bin={bin_dir}")
