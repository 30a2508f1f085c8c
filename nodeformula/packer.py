from __future__ import annotations

import os
import subprocess
from collections.abc import MutableMapping
from pathlib import Path

from .env import setup_npm_environment
from .errors import PackagingError
from .formula import FormulaRegistry
from .manifest import (
    MANIFEST_FILENAME,
    atomic_write,
    read_manifest,
    render_manifest,
    strip_lifecycle_scripts,
)


def _last_nonempty_line(text: str) -> str | None:
    lines = [line for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else None


def pack_for_installation(
    cwd: Path | None = None,
    *,
    npm: str = "npm",
) -> str | None:
    """Pack the project in ``cwd`` into a tarball with ``npm pack``.

    ``npm install`` of a directory only symlinks back into it, while the build
    directory is disposable; installing from a tarball gives a real copy.

    Returns the tarball filename relative to ``cwd``, or ``None`` when the
    directory has no package.json.
    """
    root = Path.cwd() if cwd is None else cwd
    package = root / MANIFEST_FILENAME
    if not package.exists():
        return None

    pkg_json = read_manifest(package)
    if strip_lifecycle_scripts(pkg_json):
        atomic_write(package, render_manifest(pkg_json))

    try:
        proc = subprocess.run(
            [npm, "pack", "--ignore-scripts"],
            cwd=root,
            stdout=subprocess.PIPE,
            text=True,
            check=False,
        )
    except OSError as e:
        raise PackagingError(f"npm failed to pack {root}: {e}") from e

    filename = _last_nonempty_line(proc.stdout or "")
    if proc.returncode != 0 or filename is None:
        raise PackagingError(f"npm failed to pack {root}")
    return filename


def std_npm_install_args(
    libexec: Path,
    *,
    cwd: Path | None = None,
    npm: str = "npm",
    registry: FormulaRegistry | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> list[str]:
    """Arguments for a global-style ``npm install`` into ``libexec``."""
    setup_npm_environment(registry or FormulaRegistry(), environ)

    root = Path.cwd() if cwd is None else cwd
    pack = pack_for_installation(root, npm=npm)

    # npm 7 requires that these dirs exist before install
    (libexec / "lib").mkdir(parents=True, exist_ok=True)

    target = root.as_posix() if pack is None else f"{root.as_posix()}/{pack}"
    args = [
        "-ddd",
        "--global",
        "--build-from-source",
        f"--prefix={libexec}",
        target,
    ]
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        args.append("--unsafe-perm")
    return args


def local_npm_install_args(
    *,
    registry: FormulaRegistry | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> list[str]:
    setup_npm_environment(registry or FormulaRegistry(), environ)
    return ["-ddd", "--build-from-source"]


def std_npm_args(
    libexec: Path | None = None,
    *,
    cwd: Path | None = None,
    npm: str = "npm",
    registry: FormulaRegistry | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> list[str]:
    if libexec is not None:
        return std_npm_install_args(
            libexec, cwd=cwd, npm=npm, registry=registry, environ=environ
        )
    return local_npm_install_args(registry=registry, environ=environ)
