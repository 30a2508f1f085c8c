from __future__ import annotations

import argparse
import importlib.metadata as importlib_metadata
import json
import sys
from pathlib import Path

from .config import Config, load_config
from .env import setup_npm_environment
from .errors import NodeFormulaError
from .formula import Dependency, Formula, FormulaRegistry
from .packer import pack_for_installation
from .shebang import (
    RewriteInfo,
    detected_node_shebang,
    discover_scripts,
    node_shebang_rewrite_info,
    rewrite_shebang,
)


def _nodeformula_version() -> str:
    try:
        return importlib_metadata.version("nodeformula")
    except importlib_metadata.PackageNotFoundError:
        return "0+unknown"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="nodeformula",
        description="Pack npm projects and rewrite Node shebangs for build recipes.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"nodeformula {_nodeformula_version()}",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # pack
    pack = sub.add_parser(
        "pack",
        help="Strip pack lifecycle scripts from package.json and run `npm pack`.",
    )
    pack.add_argument(
        "root",
        type=Path,
        nargs="?",
        default=Path("."),
        help="Project directory containing package.json (default: .)",
    )
    pack.add_argument(
        "--npm",
        default=None,
        help="npm executable (default: config 'npm' or npm)",
    )

    # shebang
    sb = sub.add_parser(
        "shebang",
        help="Point Node shebangs of installed scripts at a managed interpreter.",
    )
    sb.add_argument(
        "paths",
        type=Path,
        nargs="+",
        help="Script files, or install prefixes to scan for bin/ scripts",
    )
    target = sb.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--node",
        type=Path,
        default=None,
        help="Interpreter to use, e.g. /opt/homebrew/opt/node/bin/node",
    )
    target.add_argument(
        "--deps",
        nargs="+",
        default=None,
        metavar="NAME",
        help="Formula dependency names; the single node/node@X one is used",
    )
    sb.add_argument(
        "--opt-root",
        type=Path,
        default=None,
        help="Directory of installed formulae (default: config 'opt_root')",
    )
    sb.add_argument(
        "--config-root",
        type=Path,
        default=Path("."),
        help="Directory to load nodeformula config from (default: .)",
    )
    return p


def _expand_script_paths(paths: list[Path], cfg: Config) -> list[Path]:
    out: list[Path] = []
    for p in paths:
        if p.is_dir():
            out.extend(
                discover_scripts(
                    p, include=cfg.script_include, exclude=cfg.script_exclude
                )
            )
        else:
            out.append(p)
    return out


def _resolve_rewrite_info(
    parser: argparse.ArgumentParser, args: argparse.Namespace, cfg: Config
) -> RewriteInfo:
    if args.node is not None:
        return node_shebang_rewrite_info(args.node)

    opt_root = args.opt_root
    if opt_root is None and cfg.opt_root:
        opt_root = Path(cfg.opt_root)
    if opt_root is None:
        parser.error("shebang: --deps requires --opt-root or config 'opt_root'")

    registry = FormulaRegistry(opt_root=opt_root)
    formula = Formula(
        name="<cli>",
        prefix=Path("."),
        deps=tuple(Dependency(name=n) for n in args.deps),
    )
    try:
        return detected_node_shebang(formula, registry)
    except NodeFormulaError as e:
        parser.error(f"shebang: {e}")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "pack":
        root = args.root.resolve()
        cfg = load_config(root)
        npm = args.npm or cfg.npm
        if cfg.opt_root:
            setup_npm_environment(
                FormulaRegistry(opt_root=Path(cfg.opt_root)),
                node_formula=cfg.node_formula,
            )
        try:
            filename = pack_for_installation(root, npm=npm)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            parser.error(f"pack: invalid package.json: {e}")
        except NodeFormulaError as e:
            parser.error(f"pack: {e}")
        if filename is None:
            print(f"No package.json in {root.as_posix()}; nothing to pack.", file=sys.stderr)
            return
        print(filename)

    elif args.cmd == "shebang":
        cfg = load_config(args.config_root)
        info = _resolve_rewrite_info(parser, args, cfg)
        scripts = _expand_script_paths(list(args.paths), cfg)
        changed = rewrite_shebang(info, *scripts)
        for p in changed:
            print(f"  - {p.as_posix()}", file=sys.stderr)
        print(f"Rewrote shebang in {len(changed)} file(s).")


if __name__ == "__main__":
    main()
