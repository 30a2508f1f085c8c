from __future__ import annotations


class NodeFormulaError(Exception):
    """Base class for errors raised by nodeformula."""


class PackagingError(NodeFormulaError):
    """Raised when npm did not produce a tarball for a project."""


class FormulaUnavailableError(NodeFormulaError):
    def __init__(self, name: str) -> None:
        super().__init__(f"No available formula with the name {name!r}.")
        self.name = name


class ShebangDetectionError(NodeFormulaError):
    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(f"Cannot detect {kind} shebang: {reason}.")
        self.kind = kind
        self.reason = reason
