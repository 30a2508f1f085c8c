from __future__ import annotations

import json
import os
import stat
import tempfile
import warnings
from collections.abc import Sequence
from pathlib import Path
from typing import Any

MANIFEST_FILENAME = "package.json"

# `npm pack --ignore-scripts` still runs these, so they are removed from the
# manifest before packing.
LIFECYCLE_SCRIPTS: tuple[str, ...] = ("prepare", "prepack", "postpack")


def read_manifest(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        warnings.warn(
            f"Could not parse {path.name}!", RuntimeWarning, stacklevel=2
        )
        raise


def strip_lifecycle_scripts(
    manifest: dict[str, Any],
    names: Sequence[str] = LIFECYCLE_SCRIPTS,
) -> list[str]:
    """Remove lifecycle hooks from ``manifest["scripts"]`` in place.

    Returns the names that were actually removed, in removal order.
    """
    if not isinstance(manifest, dict):
        return []
    scripts = manifest.get("scripts")
    if not isinstance(scripts, dict):
        return []
    removed: list[str] = []
    for name in names:
        if name in scripts:
            del scripts[name]
            removed.append(name)
    return removed


def render_manifest(manifest: dict[str, Any]) -> str:
    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"


def atomic_write(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` so readers never see a partial file."""
    try:
        mode: int | None = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        mode = None

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        if mode is not None:
            os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
