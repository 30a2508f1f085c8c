from __future__ import annotations

import os
import threading
from collections.abc import MutableMapping
from pathlib import Path

from .errors import FormulaUnavailableError
from .formula import FormulaRegistry

_ENV_SET = False
_ENV_SET_LOCK = threading.Lock()


def prepend_path(environ: MutableMapping[str, str], key: str, path: Path | str) -> None:
    entries = [str(path)]
    entries.extend(environ.get(key, "").split(os.pathsep))
    seen: set[str] = set()
    out: list[str] = []
    for e in entries:
        if not e or e in seen:
            continue
        seen.add(e)
        out.append(e)
    environ[key] = os.pathsep.join(out)


def setup_npm_environment(
    registry: FormulaRegistry,
    environ: MutableMapping[str, str] | None = None,
    *,
    node_formula: str = "node",
) -> bool:
    """Put the managed npm/node-gyp ahead of user-installed copies on PATH.

    Runs at most once per process. A missing node formula is ignored: the
    latch is still set and PATH is left unchanged.
    """
    global _ENV_SET
    with _ENV_SET_LOCK:
        if _ENV_SET:
            return False
        _ENV_SET = True

    env = os.environ if environ is None else environ
    try:
        node = registry[node_formula]
    except FormulaUnavailableError:
        return True
    prepend_path(env, "PATH", node.opt_libexec / "bin")
    return True


def reset_npm_environment() -> None:
    global _ENV_SET
    with _ENV_SET_LOCK:
        _ENV_SET = False
