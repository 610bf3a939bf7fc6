# src/pmrc/config/config_validate.py


from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pmrc.constants import MATCH_ALL_PATTERN
from pmrc.errors import ConfigConflictError, ConflictKind
from pmrc.logs import getAppLogger


CliValues = Mapping[str, Any]


@dataclass(frozen=True)
class ConflictRule:
    """Two CLI conditions that may not hold together."""

    trigger: Callable[[CliValues], bool]
    conflicting: Callable[[CliValues], bool]
    kind: ConflictKind
    message: str


def _is(name: str, value: Any) -> Callable[[CliValues], bool]:
    return lambda cli: cli.get(name) is value


def _truthy(name: str) -> Callable[[CliValues], bool]:
    return lambda cli: bool(cli.get(name))


def _is_set(name: str) -> Callable[[CliValues], bool]:
    return lambda cli: cli.get(name) not in (None, "", [])


def _hoist_pattern_not_match_all(cli: CliValues) -> bool:
    pattern = cli.get("hoist_pattern")
    return pattern not in (None, "", []) and pattern != [MATCH_ALL_PATTERN]


_NO_HOIST = _is("hoist", False)
_GLOBAL = _is("global", True)


# --- constants ------------------------------------------------------

CONFLICT_RULES: tuple[ConflictRule, ...] = (
    ConflictRule(
        _NO_HOIST,
        _is("shamefully_hoist", True),
        "CONFIG_CONFLICT_HOIST",
        "--shamefully-hoist cannot be used with --no-hoist",
    ),
    ConflictRule(
        _NO_HOIST,
        _is("shamefully_flatten", True),
        "CONFIG_CONFLICT_HOIST",
        "--shamefully-flatten cannot be used with --no-hoist",
    ),
    ConflictRule(
        _NO_HOIST,
        _is_set("hoist_pattern"),
        "CONFIG_CONFLICT_HOIST",
        "--hoist-pattern cannot be used with --no-hoist",
    ),
    ConflictRule(
        _GLOBAL,
        _hoist_pattern_not_match_all,
        "CONFIG_CONFLICT_HOIST_PATTERN_WITH_GLOBAL",
        'Configuration conflict. "hoist-pattern" may not be used with "global"',
    ),
    ConflictRule(
        _GLOBAL,
        _truthy("link_workspace_packages"),
        "CONFIG_CONFLICT_LINK_WORKSPACE_PACKAGES_WITH_GLOBAL",
        'Configuration conflict. "link-workspace-packages" may not be used'
        ' with "global"',
    ),
    ConflictRule(
        _GLOBAL,
        _is("shared_workspace_lockfile", True),
        "CONFIG_CONFLICT_SHARED_WORKSPACE_LOCKFILE_WITH_GLOBAL",
        'Configuration conflict. "shared-workspace-lockfile" may not be used'
        ' with "global"',
    ),
    ConflictRule(
        _GLOBAL,
        _is_set("lockfile_dir"),
        "CONFIG_CONFLICT_LOCKFILE_DIR_WITH_GLOBAL",
        'Configuration conflict. "lockfile-dir" may not be used with "global"',
    ),
    ConflictRule(
        _GLOBAL,
        _is_set("virtual_store_dir"),
        "CONFIG_CONFLICT_VIRTUAL_STORE_DIR_WITH_GLOBAL",
        'Configuration conflict. "virtual-store-dir" may not be used with "global"',
    ),
    ConflictRule(
        _is("save_peer", True),
        _is("save_prod", True),
        "CONFIG_CONFLICT_PEER_CANNOT_BE_PROD_DEP",
        "A package cannot be a peer dependency and a prod dependency"
        " at the same time",
    ),
    ConflictRule(
        _is("save_peer", True),
        _is("save_optional", True),
        "CONFIG_CONFLICT_PEER_CANNOT_BE_OPTIONAL_DEP",
        "A package cannot be a peer dependency and an optional dependency"
        " at the same time",
    ),
)


def validate_conflicts(
    cli_values: CliValues,
    rules: tuple[ConflictRule, ...] = CONFLICT_RULES,
) -> None:
    """Raise ConfigConflictError for the first rule ``cli_values`` breaks.

    Only CLI-supplied values are checked, so a file that happens to set
    the same options never trips a rule.
    """
    logger = getAppLogger()
    for rule in rules:
        if rule.trigger(cli_values) and rule.conflicting(cli_values):
            logger.trace(f"[validate_conflicts] {rule.kind}")
            raise ConfigConflictError(rule.kind, rule.message)
