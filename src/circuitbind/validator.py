"""Validation of resolved instances against their chosen variants.

Resolution only carries wiring through port maps; it does not check that the
result fits the variant. The validator does, for every resolved instance in
a graph:

- every port map entry names a declared point and a variant point
  (``DanglingPortMap``);
- no variant point is fed by more than one declared point
  (``DuplicateConnection``);
- every variant point receives a signal (``UnconnectedPoint``);
- the instance wires only points its declaration has
  (``ExtraneousConnection``);
- every generic value and generic map entry names a generic the
  declaration and the variant declare (``UnknownGeneric``);
- no variant generic receives more than one value (``DuplicateGeneric``).

Violations are aggregated across the whole graph, deepest first, so a single
pass reports every defect.
"""

from collections import Counter

from circuitbind.diagnostics import Diagnostic, DiagnosticKind
from circuitbind.errors import ValidationError
from circuitbind.resolved import ResolvedGraph, ResolvedInstance

__all__ = ["validate_instance", "validate", "check"]


def validate_instance(resolved: ResolvedInstance) -> list[Diagnostic]:
    """Check one resolved instance, ignoring its subgraph.

    Returns:
        The defects found; an empty list means the instance is valid.
    """
    variant = resolved.variant
    declaration = resolved.declaration
    rule = resolved.rule.describe()
    diagnostics = []

    def report(kind: DiagnosticKind, detail: str):
        diagnostics.append(Diagnostic(kind, detail, resolved.path, rule))

    for declared_point, variant_point in resolved.rule.port_map.items():
        if declared_point not in declaration.points:
            report(
                DiagnosticKind.DANGLING_PORT_MAP,
                f"port map entry '{declared_point}' => '{variant_point}' names no "
                f"connection point of component '{declaration.name}'",
            )
        elif variant_point not in variant.points:
            report(
                DiagnosticKind.DANGLING_PORT_MAP,
                f"port map entry '{declared_point}' => '{variant_point}' names no "
                f"connection point of {variant.qualified_name}",
            )

    unmapped = [
        binding
        for binding in resolved.bindings
        if binding.declared_point not in resolved.rule.port_map
        and binding.variant_point not in variant.points
    ]
    for binding in unmapped:
        report(
            DiagnosticKind.DANGLING_PORT_MAP,
            f"connection point '{binding.declared_point}' (signal '{binding.signal}') "
            f"has no counterpart in {variant.qualified_name}",
        )

    fed = Counter(binding.variant_point for binding in resolved.bindings)
    for variant_point in variant.points:
        if fed[variant_point] > 1:
            sources = [
                f"{b.declared_point} ({b.signal})"
                for b in resolved.bindings
                if b.variant_point == variant_point
            ]
            report(
                DiagnosticKind.DUPLICATE_CONNECTION,
                f"connection point '{variant_point}' of {variant.qualified_name} "
                f"is fed by {len(sources)} points: {', '.join(sources)}",
            )
        elif fed[variant_point] == 0:
            report(
                DiagnosticKind.UNCONNECTED_POINT,
                f"connection point '{variant_point}' of {variant.qualified_name} "
                f"is not connected",
            )

    for point, signal in resolved.extraneous:
        report(
            DiagnosticKind.EXTRANEOUS_CONNECTION,
            f"connection point '{point}' (signal '{signal}') is not declared by "
            f"component '{declaration.name}'",
        )

    for declared_generic, variant_generic in resolved.rule.generic_map.items():
        if declared_generic not in declaration.generics:
            report(
                DiagnosticKind.UNKNOWN_GENERIC,
                f"generic map entry '{declared_generic}' => '{variant_generic}' names no "
                f"generic of component '{declaration.name}'",
            )
        elif variant_generic not in variant.generics:
            report(
                DiagnosticKind.UNKNOWN_GENERIC,
                f"generic map entry '{declared_generic}' => '{variant_generic}' names no "
                f"generic of {variant.qualified_name}",
            )

    for binding in resolved.generic_bindings:
        if binding.declared_generic not in declaration.generics:
            report(
                DiagnosticKind.UNKNOWN_GENERIC,
                f"generic '{binding.declared_generic}' (value '{binding.value}') is not "
                f"declared by component '{declaration.name}'",
            )
        elif (
            binding.declared_generic not in resolved.rule.generic_map
            and binding.variant_generic not in variant.generics
        ):
            report(
                DiagnosticKind.UNKNOWN_GENERIC,
                f"generic '{binding.variant_generic}' is not declared by {variant.qualified_name}",
            )

    given = Counter(binding.variant_generic for binding in resolved.generic_bindings)
    for variant_generic, count in given.items():
        if count > 1:
            sources = [
                f"{b.declared_generic} ({b.value})"
                for b in resolved.generic_bindings
                if b.variant_generic == variant_generic
            ]
            report(
                DiagnosticKind.DUPLICATE_GENERIC,
                f"generic '{variant_generic}' of {variant.qualified_name} "
                f"is given {count} values: {', '.join(sources)}",
            )

    return diagnostics


def validate(graph: ResolvedGraph) -> list[Diagnostic]:
    """Check every resolved instance in a graph, bottom-up.

    Nested graphs are checked before the instance that owns them, so defects
    are reported deepest first, then in declaration order.
    """
    diagnostics: list[Diagnostic] = []
    for resolved in graph:
        if resolved.subgraph is not None:
            diagnostics.extend(validate(resolved.subgraph))
        diagnostics.extend(validate_instance(resolved))
    return diagnostics


def check(graph: ResolvedGraph) -> ResolvedGraph:
    """Validate a graph, returning it unchanged if it has no defects.

    Raises:
        ValidationError: Listing every defect found in the graph.
    """
    diagnostics = validate(graph)
    if diagnostics:
        raise ValidationError(diagnostics, graph)
    return graph
