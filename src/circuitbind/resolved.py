"""The output of resolution: a fully elaborated instance graph.

A :class:`ResolvedGraph` records, for every instance of a structural body,
the variant it was bound to and the final connection mapping, recursively
for instances bound to structural variants. Graphs are immutable and compare
by value, so resolving the same inputs twice yields equal graphs.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Optional

from circuitbind.domain import ComponentDeclaration, Variant
from circuitbind.rules import BindingRule

__all__ = ["PointBinding", "GenericBinding", "ResolvedInstance", "ResolvedGraph"]


@dataclass(frozen=True)
class PointBinding:
    """One declared connection point carried through a rule's port map.

    Attributes:
        declared_point: Connection point of the component declaration.
        variant_point: Connection point of the variant it maps to.
        signal: External signal wired to the declared point.
    """

    declared_point: str
    variant_point: str
    signal: str


@dataclass(frozen=True)
class GenericBinding:
    """One generic value carried through a rule's generic map."""

    declared_generic: str
    variant_generic: str
    value: str


@dataclass(frozen=True)
class ResolvedInstance:
    """An instance bound to a concrete variant.

    Attributes:
        label: The instance label.
        path: Hierarchical path of the instance, outermost label first.
        declaration: The component declaration the instance was declared against.
        variant: The variant chosen by the matching rule.
        rule: The rule that matched the instance.
        bindings: Declared points, in declaration order, with the variant
            point and signal each was mapped to. Declared points the
            instance leaves unwired have no binding.
        generic_bindings: Generic values, in the order the instance gives
            them, with the variant generic each was mapped to.
        subgraph: The resolved body of a structural variant, or None for
            primitives and unelaborated structural stubs.
        extraneous: Wiring entries, as (point, signal) pairs, naming points
            the declaration does not have. They are never bound.
    """

    label: str
    path: tuple[str, ...]
    declaration: ComponentDeclaration
    variant: Variant
    rule: BindingRule
    bindings: tuple[PointBinding, ...]
    generic_bindings: tuple[GenericBinding, ...] = ()
    subgraph: Optional["ResolvedGraph"] = None
    extraneous: tuple[tuple[str, str], ...] = ()

    @property
    def connections(self) -> dict[str, str]:
        """External signal keyed by variant connection point.

        If several declared points map onto one variant point, the first in
        declaration order is kept here; the validator reports the duplicate.
        """
        connections: dict[str, str] = {}
        for binding in self.bindings:
            connections.setdefault(binding.variant_point, binding.signal)
        return connections

    @property
    def generics(self) -> dict[str, str]:
        """Generic values keyed by variant generic; the first value wins on collision."""
        generics: dict[str, str] = {}
        for binding in self.generic_bindings:
            generics.setdefault(binding.variant_generic, binding.value)
        return generics

    @property
    def is_stub(self) -> bool:
        """True for a structural variant that was not elaborated."""
        return self.variant.is_structural and self.subgraph is None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "label": self.label,
            "design_unit": self.variant.design_unit,
            "variant": self.variant.name,
            "connections": self.connections,
            "generics": self.generics,
        }
        if self.subgraph is not None:
            result["subgraph"] = self.subgraph.to_dict()
        return result


@dataclass(frozen=True)
class ResolvedGraph:
    """The resolved instances of one structural body.

    Attributes:
        body: Name of the structural body that was resolved.
        path: Hierarchical path of the instance whose variant owns the body;
            empty for the top level.
        instances: Resolved instances in the body's declaration order.
        unresolved: Labels of instances no rule matched. Only non-empty in
            the partial graph attached to a batch error.
    """

    body: str
    path: tuple[str, ...]
    instances: tuple[ResolvedInstance, ...]
    unresolved: tuple[str, ...] = ()

    def __iter__(self) -> Iterator[ResolvedInstance]:
        return iter(self.instances)

    def __len__(self) -> int:
        return len(self.instances)

    def __contains__(self, label: str) -> bool:
        return any(instance.label == label for instance in self.instances)

    def __getitem__(self, label: str) -> ResolvedInstance:
        for instance in self.instances:
            if instance.label == label:
                return instance
        raise KeyError(label)

    def walk(self) -> Iterator[ResolvedInstance]:
        """Yield every resolved instance in the hierarchy, depth first."""
        for instance in self.instances:
            yield instance
            if instance.subgraph is not None:
                yield from instance.subgraph.walk()

    def to_dict(self) -> dict[str, Any]:
        result = {
            "body": self.body,
            "instances": [instance.to_dict() for instance in self.instances],
        }
        if self.unresolved:
            result["unresolved"] = list(self.unresolved)
        return result
