# src/pmrc/config/config_schema.py
"""Registry of every known setting.

Each entry names the setting's rc/CLI spelling, internal name, value type
and default. Deprecated spellings are entries of their own that point at
their replacement; the registry refuses alias chains longer than one hop.
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, NamedTuple

from pmrc.constants import DEFAULT_REGISTRY, MATCH_ALL_PATTERN
from pmrc.utils import to_kebab

from .config_types import SchemaEntry, ValueType


# --- entry helpers ------------------------------------------------------------


def _entry(
    file_key: str,
    value_type: ValueType,
    default: Any = None,
    *,
    name: str | None = None,
    choices: tuple[str, ...] | None = None,
    separator: str = ",",
) -> SchemaEntry:
    return SchemaEntry(
        name=name or file_key.replace("-", "_"),
        file_key=file_key,
        value_type=value_type,
        default=default,
        choices=choices,
        separator=separator,
    )


def _alias(file_key: str, replacement: str) -> SchemaEntry:
    return SchemaEntry(
        name=file_key.replace("-", "_"),
        file_key=file_key,
        value_type="any",
        deprecated_alias_of=replacement,
    )


# --- the table ------------------------------------------------------------------

# Only static defaults live here; environment-dependent defaults are
# computed by the loader.
BUILTIN_ENTRIES: tuple[SchemaEntry, ...] = (
    # install behaviour
    _entry("auto-install-peers", "boolean", True),
    _entry("bail", "boolean", True),
    _entry("catalog-mode", "string", "manual", choices=("manual", "strict", "prefer")),
    _entry("child-concurrency", "number"),
    _entry("dangerously-allow-all-builds", "boolean", False),
    _entry("dedupe-direct-deps", "boolean", False),
    _entry("dedupe-injected-deps", "boolean", True),
    _entry("dedupe-peer-dependents", "boolean", True),
    _entry("deploy-all-files", "boolean", False),
    _entry("embed-readme", "boolean", False),
    _entry("enable-global-virtual-store", "boolean"),
    _entry("enable-modules-dir", "boolean", True),
    _entry("enable-pre-post-scripts", "boolean", True),
    _entry("engine-strict", "boolean"),
    _entry("exclude-links-from-lockfile", "boolean", False),
    _entry("extend-node-path", "boolean", True),
    _entry("fail-if-no-match", "boolean", False),
    _entry("force-legacy-deploy", "boolean", False),
    _entry("frozen-lockfile", "boolean"),
    _entry("git-checks", "boolean"),
    _entry("ignore-compatibility-db", "boolean"),
    _entry("ignore-dep-scripts", "boolean"),
    _entry("ignore-pnpmfile", "boolean"),
    _entry("ignore-scripts", "boolean"),
    _entry("init-package-manager", "boolean", True),
    _entry("init-type", "string", "commonjs", choices=("commonjs", "module")),
    _entry("lockfile-include-tarball-url", "boolean", False),
    _entry("lockfile-only", "boolean"),
    _entry("manage-package-manager-versions", "boolean", True),
    _entry("modules-cache-max-age", "number", 7 * 24 * 60),
    _entry("dlx-cache-max-age", "number", 24 * 60),
    _entry("offline", "boolean"),
    _entry("optimistic-repeat-install", "boolean", False),
    _entry(
        "package-import-method",
        "string",
        choices=("auto", "hardlink", "clone", "clone-or-copy", "copy"),
    ),
    _entry("package-manager-strict-version", "boolean", False),
    _entry("peers-suffix-max-length", "number", 1000),
    _entry("pending", "boolean", False),
    _entry("prefer-frozen-lockfile", "boolean"),
    _entry("prefer-offline", "boolean"),
    _entry("prefer-symlinked-executables", "boolean"),
    _entry(
        "resolution-mode",
        "string",
        "highest",
        choices=("highest", "time-based", "lowest-direct"),
    ),
    _entry("reverse", "boolean", False),
    _entry("scripts-prepend-node-path", "bool_or_string", False),
    _entry("shell-emulator", "boolean", False),
    _entry("side-effects-cache", "boolean", True),
    _entry("side-effects-cache-readonly", "boolean"),
    _entry("sort", "boolean", True),
    _entry("strict-dep-builds", "boolean", False),
    _entry("strict-peer-dependencies", "boolean", False),
    _entry("strict-store-pkg-content-check", "boolean", True),
    _entry("unsafe-perm", "boolean"),
    _entry("use-beta-cli", "boolean", False),
    _entry("verify-deps-before-run", "bool_or_string", False),
    _entry("verify-store-integrity", "boolean", True),
    # dependency selection
    _entry("dev", "boolean"),
    _entry("only", "string", choices=("prod", "production", "dev", "development")),
    _entry("optional", "boolean"),
    _entry("production", "boolean"),
    # saving
    _entry("save", "boolean"),
    _entry("save-catalog-name", "string"),
    _entry("save-dev", "boolean"),
    _entry("save-exact", "boolean"),
    _entry("save-optional", "boolean"),
    _entry("save-peer", "boolean", False),
    _entry("save-prefix", "string"),
    _entry("save-prod", "boolean"),
    _entry("save-workspace-protocol", "bool_or_string", "rolling"),
    _entry("global", "boolean"),
    # hoisting and linking
    _entry("hoist", "boolean", True),
    _entry("hoist-pattern", "string_list", [MATCH_ALL_PATTERN]),
    _entry("hoist-workspace-packages", "boolean", True),
    _entry("public-hoist-pattern", "string_list", []),
    _entry("shamefully-flatten", "boolean"),
    _entry("shamefully-hoist", "boolean"),
    _entry("symlink", "boolean", True),
    _entry(
        "node-linker",
        "string",
        "isolated",
        choices=("isolated", "hoisted", "pnp"),
    ),
    _entry("virtual-store-dir", "string"),
    _entry("virtual-store-dir-max-length", "number"),
    # lockfiles
    _entry("lockfile", "boolean"),
    _entry("package-lock", "boolean"),
    _entry("lockfile-dir", "path"),
    _entry("git-branch-lockfile", "boolean", False),
    _entry("merge-git-branch-lockfiles", "boolean"),
    _entry("merge-git-branch-lockfiles-branch-pattern", "string_list"),
    # workspaces
    _entry("disallow-workspace-cycles", "boolean", False),
    _entry("filter", "string_list", separator=" "),
    _entry("filter-prod", "string_list", separator=" "),
    _entry("ignore-workspace", "boolean"),
    _entry("ignore-workspace-cycles", "boolean", False),
    _entry("ignore-workspace-root-check", "boolean", False),
    _entry("include-workspace-root", "boolean"),
    _entry("inject-workspace-packages", "boolean", False),
    _entry("link-workspace-packages", "bool_or_string", False, choices=("deep",)),
    _entry("prefer-workspace-packages", "boolean", False),
    _entry("recursive-install", "boolean", True),
    _entry("resolve-peers-from-workspace-root", "boolean", True),
    _entry("shared-workspace-lockfile", "boolean", True),
    _entry("test-pattern", "string_list"),
    _entry("changed-files-ignore-pattern", "string_list"),
    _entry("workspace-concurrency", "number"),
    _entry("workspace-packages", "string_list"),
    _entry("workspace-prefix", "path"),
    _entry("workspace-root", "boolean"),
    # build permissions
    _entry("never-built-dependencies", "string_list"),
    _entry("only-built-dependencies", "string_list"),
    _entry("only-built-dependencies-file", "path"),
    _entry("ignored-built-dependencies", "string_list"),
    # directories and files
    _entry("bin", "path"),
    _entry("cache-dir", "path"),
    _entry("config-dir", "path"),
    _entry("dir", "path"),
    _entry("global-bin-dir", "path"),
    _entry("global-dir", "path"),
    _entry("global-pnpmfile", "path"),
    _entry("globalconfig", "path"),
    _entry("modules-dir", "string"),
    _entry("patches-dir", "string"),
    _entry("pnpmfile", "string"),
    _entry("prefix", "path"),
    _entry("state-dir", "path"),
    _entry("store-dir", "path"),
    _entry("userconfig", "path"),
    # package manager identity
    _entry("package-manager-strict", "boolean"),
    _entry("npm-path", "path"),
    _entry("use-node-version", "string"),
    _entry("node-version", "string"),
    # network
    _entry("ca", "string_list"),
    _entry("cafile", "path"),
    _entry("cert", "string"),
    _entry("key", "string"),
    _entry("fetch-retries", "number", 2),
    _entry("fetch-retry-factor", "number", 10),
    _entry("fetch-retry-maxtimeout", "number", 60000),
    _entry("fetch-retry-mintimeout", "number", 10000),
    _entry("fetch-timeout", "number", 60000),
    _entry("fetching-concurrency", "number"),
    _entry("git-shallow-hosts", "string_list", [
        "github.com",
        "gist.github.com",
        "gitlab.com",
        "bitbucket.com",
        "bitbucket.org",
    ]),
    _entry("https-proxy", "string"),
    _entry("local-address", "string"),
    _entry("maxsockets", "number", name="max_sockets"),
    _entry("network-concurrency", "number"),
    _entry("no-proxy", "string"),
    _entry("noproxy", "string"),
    _entry("proxy", "string"),
    _entry("http-proxy", "string"),
    _entry("registry", "string", DEFAULT_REGISTRY),
    _entry("registry-supports-time-field", "boolean", False),
    _entry("strict-ssl", "boolean"),
    _entry("user-agent", "string"),
    # output
    _entry("aggregate-output", "boolean"),
    _entry("color", "bool_or_string", "auto", choices=("always", "auto", "never")),
    _entry(
        "loglevel",
        "string",
        choices=("silent", "error", "warn", "info", "debug"),
    ),
    _entry("reporter", "string"),
    _entry("reporter-hide-prefix", "boolean"),
    _entry("stream", "boolean"),
    _entry("update-notifier", "boolean"),
    _entry("use-stderr", "boolean"),
    # platform selection
    _entry("cpu", "string_list"),
    _entry("libc", "string_list"),
    _entry("os", "string_list"),
    _entry("supported-architectures", "mapping"),
    # manifest-level settings
    _entry("allowed-deprecated-versions", "mapping"),
    _entry("allow-non-applied-patches", "boolean"),
    _entry("ignored-optional-dependencies", "string_list"),
    _entry("overrides", "mapping"),
    _entry("package-extensions", "mapping"),
    _entry("patched-dependencies", "mapping"),
    _entry("peer-dependency-rules", "mapping"),
    # CI
    _entry("ci", "boolean"),
    # deprecated spellings
    _alias("store", "store-dir"),
    _alias("lockfile-directory", "lockfile-dir"),
    _alias("frozen-shrinkwrap", "frozen-lockfile"),
    _alias("prefer-frozen-shrinkwrap", "prefer-frozen-lockfile"),
    _alias("shrinkwrap-only", "lockfile-only"),
)


class Resolution(NamedTuple):
    entry: SchemaEntry
    alias: str | None  # deprecated spelling that was used, if any


class SchemaRegistry:
    """Lookup table over SchemaEntry objects, keyed by rc spelling."""

    def __init__(self, entries: Iterable[SchemaEntry]) -> None:
        self._by_key: dict[str, SchemaEntry] = {}
        for entry in entries:
            if entry.file_key in self._by_key:
                xmsg = f"Duplicate setting in schema: {entry.file_key}"
                raise ValueError(xmsg)
            self._by_key[entry.file_key] = entry

        for entry in self._by_key.values():
            if entry.deprecated_alias_of is None:
                continue
            target = self._by_key.get(entry.deprecated_alias_of)
            if target is None:
                xmsg = (
                    f"Deprecated setting {entry.file_key!r} points at unknown"
                    f" setting {entry.deprecated_alias_of!r}"
                )
                raise ValueError(xmsg)
            if target.deprecated_alias_of is not None:
                xmsg = f"Alias chain too long: {entry.file_key} -> {target.file_key}"
                raise ValueError(xmsg)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __iter__(self) -> Iterator[SchemaEntry]:
        return iter(self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)

    def settings(self) -> Iterator[SchemaEntry]:
        """Iterate entries that are not deprecated aliases."""
        return (e for e in self._by_key.values() if e.deprecated_alias_of is None)

    def is_alias(self, key: str) -> bool:
        entry = self._by_key.get(key)
        return entry is not None and entry.deprecated_alias_of is not None

    def resolve(self, key: str) -> Resolution | None:
        """Find the entry for ``key`` in any supported spelling.

        Tries the rc spelling first, then the kebab-case form of a
        camelCase or snake_case key. Deprecated aliases resolve to their
        replacement.
        """
        entry = self._by_key.get(key)
        if entry is None:
            entry = self._by_key.get(to_kebab(key))
        if entry is None:
            return None
        if entry.deprecated_alias_of is not None:
            return Resolution(self._by_key[entry.deprecated_alias_of], entry.file_key)
        return Resolution(entry, None)

    def defaults(self) -> dict[str, Any]:
        """Static defaults keyed by rc spelling (unset entries skipped)."""
        return {
            e.file_key: e.default for e in self.settings() if e.default is not None
        }

    def with_entries(
        self,
        extra: Iterable[SchemaEntry] | Mapping[str, ValueType],
    ) -> "SchemaRegistry":
        """Return a new registry extended (or overridden) by ``extra``."""
        if isinstance(extra, Mapping):
            extra = [_entry(key, value_type) for key, value_type in extra.items()]
        merged = dict(self._by_key)
        for entry in extra:
            merged[entry.file_key] = entry
        return SchemaRegistry(merged.values())


SCHEMA = SchemaRegistry(BUILTIN_ENTRIES)
