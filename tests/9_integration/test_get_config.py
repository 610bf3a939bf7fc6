# tests/9_integration/test_get_config.py
"""End-to-end resolution over a sandboxed home, project and environment."""

import json
import os
from collections.abc import Mapping
from pathlib import Path

import pytest

import pmrc.config as mod_config
import pmrc.errors as mod_errors
from tests.utils import Sandbox, make_sandbox


class NoopBinCheck:
    def __init__(self) -> None:
        self.checked: list[str] = []

    def __call__(
        self,
        bin_dir: str,
        *,
        env: Mapping[str, str],  # noqa: ARG002
        should_allow_write: bool,  # noqa: ARG002
    ) -> None:
        self.checked.append(bin_dir)


def test_defaults_without_any_files(tmp_path: Path) -> None:
    """An empty sandbox resolves to the built-in defaults."""
    # --- setup ---
    box = make_sandbox(tmp_path)

    # --- execute ---
    result = box.resolve()
    config = result.config

    # --- verify ---
    assert result.warnings == []
    assert config["dir"] == str(box.project)
    assert config["hoist_pattern"] == ["*"]
    assert config["hoist"] is True
    assert "public_hoist_pattern" not in config
    assert config["node_linker"] == "isolated"
    assert config["registry"] == "https://registry.npmjs.org/"
    assert config["registries"]["default"] == "https://registry.npmjs.org/"
    assert config["raw_config"]["@jsr:registry"] == "https://npm.jsr.io/"
    assert config["use_lockfile"] is False
    assert config["color"] == "auto"
    assert config["bin"] == os.path.join(str(box.project), "node_modules", ".bin")
    assert config["workspace_dir"] is None
    assert config["package_manager"] == {"name": "pnpm", "version": "undefined"}
    assert config["user_agent"].startswith("pnpm/undefined npm/? python/")
    assert config["production"] is True
    assert config["dev"] is True
    assert config["failed_to_load_builtin_config"] is False
    assert config["tool_home_dir"] == str(tmp_path / "pnpm-home")
    assert config["cache_dir"] == str(tmp_path / "xdg-cache" / "pnpm")
    assert config["user_config"] is None


# Lowest first; each entry writes fetch-retries=<value> into one source.
_RETRY_SOURCES = (
    "global-prefix-file",
    "global-config-dir-file",
    "user-file",
    "project-file",
    "workspace-file",
    "env",
    "workspace-manifest",
)


def _workspace_box(tmp_path: Path, sources: dict[str, int]) -> tuple[Sandbox, Path]:
    """Sandbox whose project is a package inside a workspace root."""
    extra_env = {}
    if "env" in sources:
        extra_env["npm_config_fetch_retries"] = str(sources["env"])
    box = make_sandbox(tmp_path, **extra_env)
    ws = box.project
    pkg = ws / "packages" / "a"
    pkg.mkdir(parents=True)
    rc_dirs = {
        "global-prefix-file": tmp_path / "prefix" / "etc",
        "global-config-dir-file": tmp_path / "xdg-config" / "pnpm",
        "user-file": box.home,
        "project-file": pkg,
        "workspace-file": ws,
    }
    for source, value in sources.items():
        line = f"fetch-retries={value}\n"
        if source == "global-prefix-file":
            rc_dirs[source].mkdir(parents=True)
            (rc_dirs[source] / "npmrc").write_text(line)
        elif source == "global-config-dir-file":
            rc_dirs[source].mkdir(parents=True)
            (rc_dirs[source] / "rc").write_text(line)
        elif source in rc_dirs:
            box.write_rc(rc_dirs[source], line)
        elif source == "workspace-manifest":
            (ws / "pnpm-workspace.yaml").write_text(f"fetchRetries: {value}\n")
    return box, pkg


@pytest.mark.parametrize("top", range(len(_RETRY_SOURCES)))
def test_precedence_of_layers(tmp_path: Path, top: int) -> None:
    """With every source up to `top` set, the highest one wins."""
    # --- setup ---
    sources = {name: i + 1 for i, name in enumerate(_RETRY_SOURCES[: top + 1])}
    box, pkg = _workspace_box(tmp_path, sources)

    # --- execute ---
    config = box.resolve({"dir": str(pkg)}, workspace_dir=box.project).config

    # --- verify ---
    assert config["fetch_retries"] == top + 1


@pytest.mark.parametrize("source", _RETRY_SOURCES)
def test_cli_beats_every_source(tmp_path: Path, source: str) -> None:
    """A CLI value wins over the same key from any file, env or manifest."""
    # --- setup ---
    box, pkg = _workspace_box(tmp_path, {source: 3})

    # --- execute ---
    alone = box.resolve({"dir": str(pkg)}, workspace_dir=box.project).config
    with_cli = box.resolve(
        {"dir": str(pkg), "fetch-retries": 9}, workspace_dir=box.project
    ).config

    # --- verify ---
    assert alone["fetch_retries"] == 3  # noqa: PLR2004
    assert with_cli["fetch_retries"] == 9  # noqa: PLR2004
    assert with_cli["raw_config"]["fetch-retries"] == 9  # noqa: PLR2004


def test_root_manifest_only_sets_manifest_level_settings(tmp_path: Path) -> None:
    """The pnpm field of package.json cannot override rc files or the CLI."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    good_store = tmp_path / "good-store"
    (box.project / "package.json").write_text(
        json.dumps(
            {
                "name": "root",
                "pnpm": {
                    "nodeLinker": "pnp",
                    "hoist": False,
                    "storeDir": str(tmp_path / "evil-store"),
                    "ignoredOptionalDependencies": ["from-manifest"],
                    "overrides": {"lodash": "4.17.21"},
                },
            }
        )
    )
    box.write_rc(box.project, f"store-dir={good_store}\n")

    # --- execute ---
    plain = box.resolve().config
    with_cli = box.resolve(
        {
            "node-linker": "hoisted",
            "hoist": True,
            "ignored-optional-dependencies": "from-cli",
        }
    ).config

    # --- verify ---
    assert plain["store_dir"] == str(good_store)
    assert plain["node_linker"] == "isolated"
    assert plain["hoist"] is True
    assert plain["ignored_optional_dependencies"] == ["from-manifest"]
    assert plain["overrides"] == {"lodash": "4.17.21"}
    assert with_cli["node_linker"] == "hoisted"
    assert with_cli["hoist"] is True
    assert with_cli["enable_pnp"] is False
    assert with_cli["store_dir"] == str(good_store)
    assert with_cli["ignored_optional_dependencies"] == ["from-cli"]


def test_resolution_is_deterministic(tmp_path: Path) -> None:
    """Identical inputs give identical results."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    box.write_rc(box.project, "save-exact=true\n@acme:registry=https://a.example.com\n")

    # --- execute ---
    first = box.resolve({"offline": True})
    second = box.resolve({"offline": True})

    # --- verify ---
    assert first.config == second.config
    assert first.warnings == second.warnings
    assert first.config["registries"]["@acme"] == "https://a.example.com/"


def test_unknown_setting_warning(tmp_path: Path) -> None:
    """Unknown project settings are reported only when asked."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    box.write_rc(box.project, "frobnicate=1\nsave-exact=true\n")

    # --- execute ---
    checked = box.resolve(check_unknown_setting=True)
    unchecked = box.resolve()

    # --- verify ---
    assert checked.warnings == [
        "Your .npmrc file contains unknown setting: frobnicate"
    ]
    assert unchecked.warnings == []


def test_https_proxy_from_environment(tmp_path: Path) -> None:
    """HTTPS_PROXY fills https-proxy and, through it, http-proxy."""
    # --- setup ---
    box = make_sandbox(tmp_path, HTTPS_PROXY="http://proxy.example.com:8080")

    # --- execute ---
    config = box.resolve().config

    # --- verify ---
    assert config["https_proxy"] == "http://proxy.example.com:8080"
    assert config["http_proxy"] == "http://proxy.example.com:8080"


def test_cli_conflict_aborts(tmp_path: Path) -> None:
    """Conflicting CLI options raise before anything else happens."""
    box = make_sandbox(tmp_path)
    with pytest.raises(mod_errors.ConfigConflictError) as exc_info:
        box.resolve({"hoist": False, "shamefully-hoist": True})
    assert exc_info.value.kind == "CONFIG_CONFLICT_HOIST"


def test_file_values_never_conflict(tmp_path: Path) -> None:
    """The same combination in an rc file is accepted."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    box.write_rc(box.project, "hoist=false\nshamefully-hoist=true\n")

    # --- execute ---
    config = box.resolve().config

    # --- verify ---
    assert "hoist_pattern" not in config
    assert config["public_hoist_pattern"] == ["*"]


def test_deprecated_spelling_warns_and_applies(tmp_path: Path) -> None:
    """Old setting names still work but produce a warning."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    box.write_rc(box.project, "store=~/my-store\n")

    # --- execute ---
    result = box.resolve()

    # --- verify ---
    assert result.config["store_dir"] == str(box.home / "my-store")
    assert result.warnings == [
        'The "store" setting is deprecated. Use "store-dir" instead.'
    ]


def test_global_mode(tmp_path: Path) -> None:
    """Global mode targets the shared package dir and forces save flags."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    check = NoopBinCheck()

    # --- execute ---
    config = box.resolve(
        {"global": True, "save-dev": True},
        workspace_dir=box.project,
        check_global_bin_dir=check,
    ).config

    # --- verify ---
    pnpm_home = str(tmp_path / "pnpm-home")
    assert config["dir"] == os.path.join(pnpm_home, "global", "5")
    assert config["bin"] == pnpm_home
    assert check.checked == [pnpm_home]
    assert config["workspace_dir"] is None
    assert config["save_prod"] is True
    assert config["save_dev"] is False
    assert config["virtual_store_dir"] == ".pnpm"
    assert config["lockfile_dir"] is None


def test_global_mode_conflict(tmp_path: Path) -> None:
    """A custom hoist pattern cannot be combined with global mode."""
    box = make_sandbox(tmp_path)
    with pytest.raises(
        mod_errors.ConfigConflictError, match='"hoist-pattern" may not be used'
    ):
        box.resolve(
            {"global": True, "hoist-pattern": "eslint*"},
            check_global_bin_dir=NoopBinCheck(),
        )


def test_workspace_resolution(tmp_path: Path) -> None:
    """A package inside a workspace picks up workspace files and manifest."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    ws = box.project
    pkg = ws / "packages" / "a"
    pkg.mkdir(parents=True)
    (ws / "package.json").write_text(
        json.dumps({"name": "root", "packageManager": "pnpm@9.4.0"})
    )
    (ws / "pnpm-workspace.yaml").write_text(
        "packages:\n  - packages/*\ncatalog:\n  zod: ^3.0.0\nsaveExact: true\n"
    )
    box.write_rc(ws, "fetch-retries=7\n")

    # --- execute ---
    config = box.resolve({"dir": str(pkg)}, workspace_dir=ws).config

    # --- verify ---
    assert config["dir"] == str(pkg)
    assert config["workspace_dir"] == str(ws)
    assert config["fetch_retries"] == 7
    assert config["save_exact"] is True
    assert config["raw_config"]["save-exact"] is True
    assert config["workspace_package_patterns"] == ["packages/*"]
    assert config["catalogs"] == {"default": {"zod": "^3.0.0"}}
    assert config["wanted_package_manager"] == {"name": "pnpm", "version": "9.4.0"}
    assert config["lockfile_dir"] == str(ws)
    assert config["extra_bin_paths"] == [
        os.path.join(str(ws), "node_modules", ".bin")
    ]


def test_broken_workspace_manifest_raises(tmp_path: Path) -> None:
    """Manifest problems are fatal, unlike rc file problems."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    (box.project / "pnpm-workspace.yaml").write_text("packages: nope\n")

    # --- execute and verify ---
    with pytest.raises(mod_errors.WorkspaceManifestError):
        box.resolve(workspace_dir=box.project)


def test_auth_settings_inherited_from_home(tmp_path: Path) -> None:
    """Credentials come from the home-rooted run, everything else stays local."""
    # --- setup ---
    box = make_sandbox(tmp_path)
    box.write_rc(box.home, "//r.example.com/:_authToken=home-token\n")
    box.write_rc(
        box.project,
        "registry=https://project.example.com/\nsave-exact=true\n",
    )

    # --- execute ---
    result = box.resolve(ignore_non_auth_settings_from_local=True)
    config = result.config

    # --- verify ---
    assert config["dir"] == str(box.project)
    assert config["save_exact"] is True
    assert config["raw_config"]["//r.example.com/:_authToken"] == "home-token"
    assert config["raw_config"]["registry"] == "https://registry.npmjs.org/"
    assert config["registries"]["default"] == "https://registry.npmjs.org/"


def test_extra_schema_and_passthrough(tmp_path: Path) -> None:
    """Caller-declared settings are typed; unknown CLI options pass through."""
    # --- setup ---
    box = make_sandbox(tmp_path)

    # --- execute ---
    config = box.resolve(
        {"my-flag": "true", "report-summary": True},
        extra_schema={"my-flag": "boolean"},
    ).config

    # --- verify ---
    assert config["my_flag"] is True
    assert config["report_summary"] is True


def test_user_config_is_exposed(tmp_path: Path) -> None:
    """The raw contents of the user rc file are available as user_config."""
    box = make_sandbox(tmp_path)
    box.write_rc(box.home, "save-prefix=~\n")
    assert box.resolve().config["user_config"] == {"save-prefix": "~"}


def test_get_config_sync(tmp_path: Path) -> None:
    """The blocking wrapper gives the same answer as the coroutine."""
    # --- setup ---
    box = make_sandbox(tmp_path)

    # --- execute ---
    result = mod_config.get_config_sync(
        {"dir": str(box.project)}, env=box.env, home_dir=box.home
    )

    # --- verify ---
    assert result.config == box.resolve().config
