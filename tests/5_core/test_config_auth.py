# tests/5_core/test_config_auth.py
"""Tests for credential inheritance between two resolutions."""

import asyncio
from typing import Any

import pytest

import pmrc.config.config_auth as mod_config_auth
import pmrc.config.config_types as mod_config_types
from tests.utils import run


def _result(config: dict[str, Any], *warnings: str) -> mod_config_types.ConfigResult:
    return mod_config_types.ConfigResult(config=config, warnings=list(warnings))


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("registry", True),
        ("//npm.example.com/:_authToken", True),
        ("//npm.example.com/:_auth", True),
        ("@acme:registry", True),
        ("//npm.example.com/:certfile", True),
        ("https-proxy", True),
        ("save-exact", False),
        ("//npm.example.com/:always-auth", False),
    ],
)
def test_is_raw_auth_cfg_key(key: str, expected: bool) -> None:
    """Only credential and transport keys are inherited."""
    assert mod_config_auth.is_raw_auth_cfg_key(key) is expected


def test_inherit_auth_config_copies_only_credentials() -> None:
    """Non-auth settings in the target survive the splice."""
    # --- setup ---
    target: dict[str, Any] = {
        "save_exact": True,
        "https_proxy": None,
        "ca": ["keep"],
        "raw_config": {"registry": "https://a.example.com/", "save-exact": "true"},
    }
    source: dict[str, Any] = {
        "save_exact": False,
        "https_proxy": "http://proxy.example.com",
        "ca": None,
        "registries": {"default": "https://b.example.com/"},
        "raw_config": {
            "registry": "https://b.example.com/",
            "//b.example.com/:_authToken": "t0k3n",
            "save-exact": "false",
        },
        "raw_local_config": {"//b.example.com/:_authToken": "t0k3n"},
    }

    # --- execute ---
    mod_config_auth.inherit_auth_config(target, source)

    # --- verify ---
    assert target["save_exact"] is True
    assert target["https_proxy"] == "http://proxy.example.com"
    assert target["ca"] == ["keep"]
    assert target["registries"] == {"default": "https://b.example.com/"}
    assert target["raw_config"] == {
        "registry": "https://b.example.com/",
        "save-exact": "true",
        "//b.example.com/:_authToken": "t0k3n",
    }
    assert target["raw_local_config"] == {"//b.example.com/:_authToken": "t0k3n"}


def test_inherited_values_are_copies() -> None:
    """Mutating the result must not reach back into the home run."""
    # --- setup ---
    source: dict[str, Any] = {"registries": {"default": "https://b.example.com/"}}
    target: dict[str, Any] = {}

    # --- execute ---
    mod_config_auth.inherit_auth_config(target, source)
    target["registries"]["default"] = "changed"

    # --- verify ---
    assert source["registries"]["default"] == "https://b.example.com/"


def test_orchestrator_splices_home_into_normal() -> None:
    """Credentials flow from the home run; warnings of the normal run come first."""

    # --- setup ---
    async def resolve_home() -> mod_config_types.ConfigResult:
        return _result({"registries": {"default": "https://home/"}}, "home-w")

    async def resolve_normal() -> mod_config_types.ConfigResult:
        return _result(
            {"registries": {"default": "https://proj/"}, "dir": "/p"}, "normal-w"
        )

    # --- execute ---
    result = run(
        mod_config_auth.resolve_with_auth_inheritance(resolve_home, resolve_normal)
    )

    # --- verify ---
    assert result.config == {"registries": {"default": "https://home/"}, "dir": "/p"}
    assert result.warnings == ["normal-w", "home-w"]


def test_orchestrator_failure_cancels_sibling() -> None:
    """When one run fails the other is cancelled and the error propagates."""
    # --- setup ---
    state: dict[str, bool] = {"cancelled": False}

    async def resolve_home() -> mod_config_types.ConfigResult:
        xmsg = "home failed"
        raise ValueError(xmsg)

    async def resolve_normal() -> mod_config_types.ConfigResult:
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            state["cancelled"] = True
            raise
        return _result({})

    # --- execute and verify ---
    with pytest.raises(ValueError, match="home failed"):
        run(
            mod_config_auth.resolve_with_auth_inheritance(
                resolve_home, resolve_normal
            )
        )
    assert state["cancelled"] is True
