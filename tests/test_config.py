from __future__ import annotations

from pathlib import Path

from nodeformula.config import Config, load_config
from nodeformula.shebang import DEFAULT_SCRIPT_INCLUDES


def test_config_defaults() -> None:
    """Test that Config has correct default values."""
    cfg = Config()
    assert cfg.npm == "npm"
    assert cfg.node_formula == "node"
    assert cfg.opt_root is None
    assert cfg.script_include == list(DEFAULT_SCRIPT_INCLUDES)
    assert cfg.script_exclude == []


def test_load_config_missing_file(tmp_path: Path) -> None:
    assert load_config(tmp_path) == Config()


def test_load_config_custom_values(tmp_path: Path) -> None:
    (tmp_path / "nodeformula.toml").write_text(
        """[nodeformula]
npm = "/opt/node/bin/npm"
node_formula = "node@20"
opt_root = "/opt/homebrew/opt"
script_include = ["bin/*"]
script_exclude = ["*.map"]
""",
        encoding="utf-8",
    )
    cfg = load_config(tmp_path)
    assert cfg.npm == "/opt/node/bin/npm"
    assert cfg.node_formula == "node@20"
    assert cfg.opt_root == "/opt/homebrew/opt"
    assert cfg.script_include == ["bin/*"]
    assert cfg.script_exclude == ["*.map"]


def test_dotfile_takes_precedence(tmp_path: Path) -> None:
    (tmp_path / ".nodeformula.toml").write_text(
        '[nodeformula]\nnpm = "dot-npm"\n', encoding="utf-8"
    )
    (tmp_path / "nodeformula.toml").write_text(
        '[nodeformula]\nnpm = "plain-npm"\n', encoding="utf-8"
    )
    assert load_config(tmp_path).npm == "dot-npm"


def test_load_config_from_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """[tool.nodeformula]
node_formula = "node@18"
""",
        encoding="utf-8",
    )
    assert load_config(tmp_path).node_formula == "node@18"


def test_pyproject_ignores_top_level_section(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[nodeformula]\nnpm = "nope"\n', encoding="utf-8"
    )
    assert load_config(tmp_path).npm == "npm"


def test_invalid_values_fall_back_to_defaults(tmp_path: Path) -> None:
    (tmp_path / "nodeformula.toml").write_text(
        """[nodeformula]
npm = "   "
node_formula = 3
opt_root = false
script_include = []
script_exclude = "*.map"
""",
        encoding="utf-8",
    )
    assert load_config(tmp_path) == Config()
