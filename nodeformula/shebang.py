from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import pathspec

from .errors import ShebangDetectionError
from .formula import Formula, FormulaRegistry

# Matches the shebang permutations npm packages ship with.
NODE_SHEBANG_REGEX = re.compile(r"^#! ?/usr/bin/(?:env )?node( |$)", re.MULTILINE)

# Length of the longest shebang matched by NODE_SHEBANG_REGEX.
NODE_SHEBANG_MAX_LENGTH = len("#! /usr/bin/env node ")

NODE_DEPENDENCY_REGEX = re.compile(r"^node(@.+)?$")

DEFAULT_SCRIPT_INCLUDES: tuple[str, ...] = ("bin/*", "libexec/bin/*")


@dataclass(frozen=True)
class RewriteInfo:
    """A first-line rewrite rule.

    ``max_length`` bounds how many leading bytes of a file are inspected; it
    must be at least the length of the longest string ``regex`` can match.
    ``repl`` is an ``re`` replacement template.
    """

    regex: re.Pattern[str]
    max_length: int
    repl: str


def node_shebang_rewrite_info(node_path: Path | str) -> RewriteInfo:
    escaped = str(node_path).replace("\\", "\\\\")
    return RewriteInfo(
        regex=NODE_SHEBANG_REGEX,
        max_length=NODE_SHEBANG_MAX_LENGTH,
        repl=f"{escaped}\\1",
    )


def node_dependency_names(formula: Formula) -> list[str]:
    return [n for n in formula.dep_names() if NODE_DEPENDENCY_REGEX.match(n)]


def detected_node_shebang(formula: Formula, registry: FormulaRegistry) -> RewriteInfo:
    node_deps = node_dependency_names(formula)
    if not node_deps:
        raise ShebangDetectionError(
            "Node", "formula does not depend on Node (no dependency)"
        )
    if len(node_deps) > 1:
        raise ShebangDetectionError(
            "Node", "formula has multiple Node dependencies (ambiguous dependency)"
        )

    return node_shebang_rewrite_info(registry[node_deps[0]].opt_bin / "node")


def _rewrite_first_line(text: str, info: RewriteInfo) -> str:
    head, sep, rest = text.partition("\n")
    return info.regex.sub(f"#!{info.repl}", head, count=1) + sep + rest


def rewrite_shebang(info: RewriteInfo, *paths: Path | str) -> list[Path]:
    """Rewrite the shebang of every file in ``paths`` that ``info`` matches.

    Returns the paths that were modified.
    """
    changed: list[Path] = []
    for raw in paths:
        p = Path(raw)
        if not p.is_file():
            continue
        with p.open("rb") as fh:
            prefix = fh.read(info.max_length)
        if not info.regex.match(prefix.decode("utf-8", errors="surrogateescape")):
            continue

        text = p.read_bytes().decode("utf-8", errors="surrogateescape")
        new_text = _rewrite_first_line(text, info)
        if new_text == text:
            continue
        p.write_bytes(new_text.encode("utf-8", errors="surrogateescape"))
        changed.append(p)
    return changed


def discover_scripts(
    root: Path,
    include: Sequence[str] = DEFAULT_SCRIPT_INCLUDES,
    exclude: Sequence[str] = (),
) -> list[Path]:
    """Find installed executables under ``root`` that may need a new shebang."""
    root = root.resolve()
    inc = pathspec.PathSpec.from_lines("gitwildmatch", include)
    exc = pathspec.PathSpec.from_lines("gitwildmatch", exclude)

    out: list[Path] = []
    seen: set[str] = set()
    for p in sorted(root.rglob("*")):
        rel = p.relative_to(root).as_posix()
        if not inc.match_file(rel) or exc.match_file(rel):
            continue
        if not p.is_file():
            continue
        target = p.resolve()
        key = target.as_posix()
        if key in seen:
            continue
        seen.add(key)
        out.append(target)
    return sorted(out)
