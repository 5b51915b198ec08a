"""High level entry points for elaborating designs."""

import logging
from typing import Optional

from circuitbind.configuration import DEFAULT_OPTIONS, Configuration, ResolutionOptions
from circuitbind.errors import ElaborationError
from circuitbind.library import DesignLibrary
from circuitbind.resolved import ResolvedGraph
from circuitbind.resolver import Resolver
from circuitbind.validator import validate

__all__ = ["elaborate"]

logger = logging.getLogger(__name__)


def elaborate(
    library: DesignLibrary,
    design_unit: str,
    variant: Optional[str] = None,
    configuration: Optional[Configuration] = None,
    options: Optional[ResolutionOptions] = None,
) -> ResolvedGraph:
    """Resolve and validate the body of a top-level structural variant.

    Args:
        library: Catalog holding the top-level unit and every unit bound below it.
        design_unit: Name of the top-level design unit.
        variant: Name of its structural variant. If None, the unit must have
            exactly one variant.
        configuration: Rules for the top-level body and its nested bodies.
            If None, every instance is unresolved.
        options: Resolution policy; defaults to :class:`ResolutionOptions`.

    Returns:
        The validated resolved graph.

    Raises:
        UnknownDesignUnit: If the top-level unit, or a unit a rule targets,
            is not in the library.
        UnknownVariant: If a named variant does not exist.
        ConflictingRule: If any rule set reached is ambiguous.
        CyclicDesignHierarchy: If the hierarchy instantiates itself.
        ValueError: If the top-level variant is primitive.
        ElaborationError: Listing every unresolved instance and, when
            validation is enabled, every validation defect, with the partial
            graph attached.

    Example:
        >>> graph = elaborate(library, "FullAdder", "Structural", configure([...]))
        >>> graph["m1"].variant.qualified_name
        'HA1/RTL'
    """
    options = options or DEFAULT_OPTIONS
    top = library.lookup_variant(design_unit, variant)
    if not top.is_structural:
        raise ValueError(f"{top.qualified_name} is primitive and cannot be elaborated")

    resolver = Resolver(library, options)
    graph, diagnostics = resolver.resolve_partial(
        top.body, configuration or Configuration(), top.design_unit
    )
    if options.validate:
        diagnostics = diagnostics + validate(graph)

    if diagnostics:
        logger.info(
            "Elaboration of %s failed with %d problems", top.qualified_name, len(diagnostics)
        )
        raise ElaborationError(diagnostics, graph)
    return graph
