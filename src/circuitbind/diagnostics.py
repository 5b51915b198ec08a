"""Diagnostic records produced by resolution and validation.

A diagnostic describes one defect found in a resolution request: what kind of
defect it is, where in the design hierarchy it was found, which binding rule
was involved (if any), and a human-readable explanation. Diagnostics are plain
immutable values so they can be collected across a whole traversal and
presented to the user without further interpretation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

__all__ = ["DiagnosticKind", "Diagnostic", "format_report"]


class DiagnosticKind(Enum):
    """Categories of defect reported by the resolver and validator."""

    UNKNOWN_DESIGN_UNIT = "UnknownDesignUnit"
    UNKNOWN_VARIANT = "UnknownVariant"
    CONFLICTING_RULE = "ConflictingRule"
    UNRESOLVED_INSTANCE = "UnresolvedInstance"
    CYCLIC_DESIGN_HIERARCHY = "CyclicDesignHierarchy"
    DANGLING_PORT_MAP = "DanglingPortMap"
    UNCONNECTED_POINT = "UnconnectedPoint"
    DUPLICATE_CONNECTION = "DuplicateConnection"
    EXTRANEOUS_CONNECTION = "ExtraneousConnection"
    UNKNOWN_GENERIC = "UnknownGeneric"
    DUPLICATE_GENERIC = "DuplicateGeneric"


@dataclass(frozen=True)
class Diagnostic:
    """A single defect found while resolving or validating a design.

    Attributes:
        kind: The category of defect.
        detail: Human-readable description of the defect.
        path: Hierarchical instance path, outermost label first. Empty when the
            defect is not tied to an instance (e.g. a conflicting rule set).
        rule: Description of the binding rule involved, if any.
    """

    kind: DiagnosticKind
    detail: str
    path: tuple[str, ...] = ()
    rule: Optional[str] = None

    @property
    def instance(self) -> Optional[str]:
        """Slash-separated instance path, or None for body-level defects."""
        return "/".join(self.path) if self.path else None

    def __str__(self) -> str:
        location = f" at {self.instance}" if self.path else ""
        rule = f" (rule: {self.rule})" if self.rule else ""
        return f"{self.kind.value}{location}: {self.detail}{rule}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "instance": self.instance,
            "rule": self.rule,
            "detail": self.detail,
        }


def format_report(diagnostics: Iterable[Diagnostic]) -> str:
    """Render a batch of diagnostics as a numbered, multi-line report.

    Example:
        >>> print(format_report(error.diagnostics))
        2 problems found:
          1. UnresolvedInstance at m1: no binding rule matches ...
          2. UnconnectedPoint at m2: ...
    """
    diagnostics = list(diagnostics)
    if not diagnostics:
        return "No problems found."
    noun = "problem" if len(diagnostics) == 1 else "problems"
    lines = [f"{len(diagnostics)} {noun} found:"]
    lines.extend(
        f"  {index}. {diagnostic}"
        for index, diagnostic in enumerate(diagnostics, start=1)
    )
    return "\n".join(lines)
