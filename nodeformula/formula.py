from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from .errors import FormulaUnavailableError


@dataclass(frozen=True)
class Dependency:
    name: str  # e.g. "node" or "node@18"


@dataclass(frozen=True)
class Formula:
    """An installed formula, addressed through its stable opt prefix."""

    name: str
    prefix: Path  # e.g. /opt/homebrew/opt/node
    deps: tuple[Dependency, ...] = ()

    @property
    def opt_bin(self) -> Path:
        return self.prefix / "bin"

    @property
    def opt_libexec(self) -> Path:
        return self.prefix / "libexec"

    def dep_names(self) -> list[str]:
        return [d.name for d in self.deps]


class FormulaRegistry:
    """Resolve formula names to installed formulae.

    Explicitly registered formulae win; otherwise a name resolves to
    ``opt_root/<name>`` when that directory exists.
    """

    def __init__(
        self,
        opt_root: Path | None = None,
        formulae: Iterable[Formula] = (),
    ) -> None:
        self.opt_root = opt_root
        self._formulae: dict[str, Formula] = {}
        for f in formulae:
            self.register(f)

    def register(self, formula: Formula) -> None:
        self._formulae[formula.name] = formula

    def get(self, name: str) -> Formula | None:
        f = self._formulae.get(name)
        if f is not None:
            return f
        if self.opt_root is None:
            return None
        prefix = self.opt_root / name
        if not prefix.is_dir():
            return None
        return Formula(name=name, prefix=prefix)

    def __getitem__(self, name: str) -> Formula:
        f = self.get(name)
        if f is None:
            raise FormulaUnavailableError(name)
        return f

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None
