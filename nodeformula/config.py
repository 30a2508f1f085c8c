from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .shebang import DEFAULT_SCRIPT_INCLUDES

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # pyright: ignore[reportMissingImports]

CONFIG_FILENAMES: tuple[str, ...] = (".nodeformula.toml", "nodeformula.toml")
PYPROJECT_FILENAME = "pyproject.toml"


@dataclass
class Config:
    # Packing tool executable; resolved through PATH unless absolute.
    npm: str = "npm"
    # Formula providing npm/node-gyp for PATH setup.
    node_formula: str = "node"
    # Directory holding installed formulae as <opt_root>/<name>; None disables lookup.
    opt_root: str | None = None
    script_include: list[str] = field(
        default_factory=lambda: list(DEFAULT_SCRIPT_INCLUDES)
    )
    script_exclude: list[str] = field(default_factory=list)


def _find_config_path(root: Path) -> Path | None:
    root = root.resolve()
    for name in CONFIG_FILENAMES:
        p = root / name
        if p.exists():
            return p
    pyproject = root / PYPROJECT_FILENAME
    if pyproject.exists():
        return pyproject
    return None


def _extract_section(data: Any, *, from_pyproject: bool) -> dict[str, Any]:
    section: dict[str, Any] = {}
    if not isinstance(data, dict):
        return section

    if not from_pyproject:
        nf = data.get("nodeformula")
        if isinstance(nf, dict):
            return nf

    tool = data.get("tool")
    if isinstance(tool, dict):
        nf2 = tool.get("nodeformula")
        if isinstance(nf2, dict):
            return nf2

    return section


def _str_list(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [str(x) for x in value]


def load_config(root: Path) -> Config:
    cfg_path = _find_config_path(root)
    if cfg_path is None:
        return Config()

    data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    section = _extract_section(data, from_pyproject=cfg_path.name == PYPROJECT_FILENAME)
    cfg = Config()

    npm = section.get("npm", cfg.npm)
    if isinstance(npm, str) and npm.strip():
        cfg.npm = npm.strip()

    node_formula = section.get("node_formula", cfg.node_formula)
    if isinstance(node_formula, str) and node_formula.strip():
        cfg.node_formula = node_formula.strip()

    opt_root = section.get("opt_root", cfg.opt_root)
    if isinstance(opt_root, str) and opt_root.strip():
        cfg.opt_root = opt_root.strip()

    inc = _str_list(section.get("script_include"))
    if inc:
        cfg.script_include = inc

    exc = _str_list(section.get("script_exclude"))
    if exc is not None:
        cfg.script_exclude = exc

    return cfg
