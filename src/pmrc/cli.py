# src/pmrc/cli.py

import argparse
import asyncio
import json
import platform
import sys
from difflib import get_close_matches
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from .config import SCHEMA, get_config
from .constants import (
    DEFAULT_PACKAGE_MANAGER_NAME,
    DEFAULT_PACKAGE_MANAGER_VERSION,
    LOG_LEVELS,
)
from .logs import getAppLogger
from .meta import PROGRAM_DISPLAY, PROGRAM_PACKAGE, PROGRAM_SCRIPT


# --------------------------------------------------------------------------- #
# CLI setup and helpers
# --------------------------------------------------------------------------- #


def _setup_parser() -> argparse.ArgumentParser:
    """Define and return the CLI argument parser.

    Options the parser does not know are collected separately and become
    package-manager settings (``--key=value``, ``--key``, ``--no-key``).
    """
    parser = argparse.ArgumentParser(
        prog=PROGRAM_SCRIPT,
        allow_abbrev=False,
        description="Print the effective package-manager configuration.",
        epilog=(
            "Any other --<setting>[=value] or --no-<setting> option is passed"
            " through as a command-line setting."
        ),
    )
    parser.add_argument(
        "keys",
        nargs="*",
        metavar="KEY",
        help="Only print these settings (internal or kebab-case names).",
    )

    parser.add_argument("--dir", help="Project directory (default: cwd).")
    parser.add_argument("--workspace-dir", help="Workspace root directory.")
    parser.add_argument(
        "-g",
        "--global",
        dest="global_mode",
        action="store_true",
        help="Resolve for global installation mode.",
    )
    parser.add_argument(
        "--check-unknown",
        action="store_true",
        help="Warn about unknown settings in project and workspace rc files.",
    )
    parser.add_argument(
        "--auth-from-home",
        action="store_true",
        help=(
            "Resolve twice and take credentials from the home-directory"
            " configuration."
        ),
    )
    parser.add_argument(
        "--pm-name",
        default=DEFAULT_PACKAGE_MANAGER_NAME,
        help="Package manager name used in the user agent.",
    )
    parser.add_argument(
        "--pm-version",
        default=DEFAULT_PACKAGE_MANAGER_VERSION,
        help="Package manager version used in the user agent.",
    )

    # --- Version and verbosity ---
    parser.add_argument("--version", action="store_true", help="Show version info.")

    log_level = parser.add_mutually_exclusive_group()
    log_level.add_argument(
        "-q",
        "--quiet",
        action="store_const",
        const="warning",
        dest="log_level",
        help="Suppress non-critical output (same as --log-level warning).",
    )
    log_level.add_argument(
        "-v",
        "--verbose",
        action="store_const",
        const="debug",
        dest="log_level",
        help="Verbose output (same as --log-level debug).",
    )
    log_level.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        dest="log_level",
        help="Set log verbosity level.",
    )
    return parser


def _add_setting(options: dict[str, Any], key: str, value: Any) -> None:
    """Repeated settings accumulate into a list."""
    if key not in options:
        options[key] = value
        return
    existing = options[key]
    if not isinstance(existing, list):
        existing = [existing]
    existing.append(value)
    options[key] = existing


def parse_setting_args(extras: list[str]) -> tuple[dict[str, Any], list[str]]:
    """Turn leftover arguments into CLI settings.

    Returns ``(cli_options, positionals)``; bare words are positionals.
    """
    options: dict[str, Any] = {}
    positionals: list[str] = []
    for arg in extras:
        if not arg.startswith("--") or arg == "--":
            positionals.append(arg)
            continue
        key, sep, value = arg[2:].partition("=")
        if sep:
            _add_setting(options, key, value)
        elif key.startswith("no-"):
            _add_setting(options, key[3:], False)
        else:
            _add_setting(options, key, True)
    return options, positionals


def _hint_unknown_settings(cli_options: dict[str, Any]) -> None:
    logger = getAppLogger()
    known = [entry.file_key for entry in SCHEMA]
    for key in cli_options:
        if key in SCHEMA:
            continue
        close = get_close_matches(key, known, n=1, cutoff=0.8)
        if close:
            logger.warning("Unknown setting --%s. Did you mean --%s?", key, close[0])


def _initialize_logger(args: argparse.Namespace) -> None:
    """Apply the CLI log level on top of env vars and defaults."""
    logger = getAppLogger()
    logger.setLevel(logger.determineLogLevel(args=args))
    logger.trace(f"[BOOT] log-level initialized: {logger.levelName}")
    logger.debug(
        "Runtime: Python %s (%s)",
        platform.python_version(),
        platform.python_implementation(),
    )


def _get_version() -> str:
    try:
        return version(PROGRAM_PACKAGE)
    except PackageNotFoundError:
        return "0.0.0+unknown"


def _select_keys(config: dict[str, Any], keys: list[str]) -> dict[str, Any]:
    selected: dict[str, Any] = {}
    for key in keys:
        name = key.replace("-", "_")
        selected[key] = config.get(name, config.get(key))
    return selected


# --------------------------------------------------------------------------- #
# Main entry
# --------------------------------------------------------------------------- #


def main(argv: list[str] | None = None) -> int:
    logger = getAppLogger()  # init (use env + defaults)

    try:
        parser = _setup_parser()
        args, extras = parser.parse_known_args(argv)
        _initialize_logger(args)

        if args.version:
            logger.info("%s %s", PROGRAM_DISPLAY, _get_version())
            return 0

        cli_options, positionals = parse_setting_args(extras)
        _hint_unknown_settings(cli_options)
        if args.dir:
            cli_options["dir"] = args.dir
        if args.global_mode:
            cli_options["global"] = True

        result = asyncio.run(
            get_config(
                cli_options,
                package_manager={"name": args.pm_name, "version": args.pm_version},
                workspace_dir=args.workspace_dir,
                check_unknown_setting=args.check_unknown,
                ignore_non_auth_settings_from_local=args.auth_from_home,
            )
        )
        logger.reportWarnings(
            result.warnings, source=str(cli_options.get("dir", "."))
        )

        keys = [*args.keys, *positionals]
        output = _select_keys(result.config, keys) if keys else result.config
        sys.stdout.write(json.dumps(output, indent=2, sort_keys=True, default=str))
        sys.stdout.write("\n")

    except (FileNotFoundError, ValueError, TypeError, RuntimeError) as e:
        # controlled termination
        logger.errorIfNotDebug(str(e))
        return getattr(e, "code", 1)

    else:
        return 0
