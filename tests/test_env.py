from __future__ import annotations

import os
from pathlib import Path

import pytest

from nodeformula.env import prepend_path, reset_npm_environment, setup_npm_environment
from nodeformula.formula import Formula, FormulaRegistry


@pytest.fixture(autouse=True)
def _fresh_latch():
    reset_npm_environment()
    yield
    reset_npm_environment()


def test_prepend_path_dedupes_and_drops_empty() -> None:
    env = {"PATH": os.pathsep.join(["/usr/bin", "", "/opt/node/libexec/bin", "/bin"])}
    prepend_path(env, "PATH", Path("/opt/node/libexec/bin"))
    assert env["PATH"] == os.pathsep.join(
        ["/opt/node/libexec/bin", "/usr/bin", "/bin"]
    )


def test_prepend_path_on_unset_key() -> None:
    env: dict[str, str] = {}
    prepend_path(env, "PATH", "/a")
    assert env["PATH"] == "/a"


def test_setup_prepends_node_libexec_bin_once() -> None:
    reg = FormulaRegistry(formulae=[Formula(name="node", prefix=Path("/opt/node"))])
    env = {"PATH": "/usr/bin"}

    assert setup_npm_environment(reg, env) is True
    expected = os.pathsep.join([str(Path("/opt/node/libexec/bin")), "/usr/bin"])
    assert env["PATH"] == expected

    env["PATH"] = "/usr/bin"
    assert setup_npm_environment(reg, env) is False
    assert env["PATH"] == "/usr/bin"


def test_setup_ignores_unavailable_node_and_does_not_retry() -> None:
    env = {"PATH": "/usr/bin"}
    assert setup_npm_environment(FormulaRegistry(), env) is True
    assert env["PATH"] == "/usr/bin"

    reg = FormulaRegistry(formulae=[Formula(name="node", prefix=Path("/opt/node"))])
    assert setup_npm_environment(reg, env) is False
    assert env["PATH"] == "/usr/bin"


def test_setup_uses_configured_node_formula() -> None:
    reg = FormulaRegistry(
        formulae=[Formula(name="node@20", prefix=Path("/opt/node@20"))]
    )
    env = {"PATH": ""}
    setup_npm_environment(reg, env, node_formula="node@20")
    assert env["PATH"] == str(Path("/opt/node@20/libexec/bin"))
