"""Exceptions raised when a design cannot be resolved or fails validation."""

from typing import TYPE_CHECKING, Iterable, Optional

from circuitbind.diagnostics import Diagnostic, DiagnosticKind, format_report

if TYPE_CHECKING:
    from circuitbind.resolved import ResolvedGraph

__all__ = [
    "ResolutionError",
    "UnknownDesignUnit",
    "UnknownVariant",
    "ConflictingRule",
    "CyclicDesignHierarchy",
    "UnresolvedInstanceError",
    "ValidationError",
    "ElaborationError",
]


class ResolutionError(Exception):
    """Base class for every error raised by the resolution engine.

    Attributes:
        diagnostics: The defects that caused the error, in discovery order.
    """

    kind: Optional[DiagnosticKind] = None

    def __init__(self, diagnostics: Iterable[Diagnostic]):
        self.diagnostics = list(diagnostics)
        super().__init__(
            str(self.diagnostics[0])
            if len(self.diagnostics) == 1
            else format_report(self.diagnostics)
        )

    @classmethod
    def single(
        cls, detail: str, path: tuple[str, ...] = (), rule: Optional[str] = None
    ) -> "ResolutionError":
        """Build an error carrying one diagnostic of this class's kind."""
        return cls([Diagnostic(cls.kind, detail, path, rule)])


class UnknownDesignUnit(ResolutionError):
    """Raised when a rule targets a design unit missing from the library."""

    kind = DiagnosticKind.UNKNOWN_DESIGN_UNIT


class UnknownVariant(ResolutionError):
    """Raised when a rule targets a variant its design unit does not have."""

    kind = DiagnosticKind.UNKNOWN_VARIANT


class ConflictingRule(ResolutionError):
    """Raised when a rule set binds some instance, or some shape, ambiguously."""

    kind = DiagnosticKind.CONFLICTING_RULE


class CyclicDesignHierarchy(ResolutionError):
    """Raised when a structural variant instantiates its own enclosing design unit."""

    kind = DiagnosticKind.CYCLIC_DESIGN_HIERARCHY


class _BatchError(ResolutionError):
    """A batch of per-instance defects, with whatever part of the graph did resolve."""

    def __init__(self, diagnostics: Iterable[Diagnostic], graph: "ResolvedGraph"):
        super().__init__(diagnostics)
        self.graph = graph


class UnresolvedInstanceError(_BatchError):
    """Raised after resolution when one or more instances matched no rule."""

    kind = DiagnosticKind.UNRESOLVED_INSTANCE


class ValidationError(_BatchError):
    """Raised when a resolved graph has dangling, missing or duplicate connections."""


class ElaborationError(_BatchError):
    """Raised by top-level elaboration with every resolution and validation defect."""
