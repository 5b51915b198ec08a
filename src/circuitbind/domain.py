"""Domain models describing a structural hardware design.

These are the immutable inputs to resolution: component declarations (the
interface shapes instances are declared against), instances and the
structural bodies that contain them, and the design units and variants held
by a :class:`~circuitbind.library.DesignLibrary`.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional

__all__ = [
    "ComponentDeclaration",
    "Instance",
    "StructuralBody",
    "Variant",
    "DesignUnit",
    "primitive",
    "structural",
    "design_unit",
]


@dataclass(frozen=True)
class ComponentDeclaration:
    """The interface shape an instance is declared against before binding.

    Attributes:
        name: Name of the declaration; catch-all rules select on this.
        points: Ordered connection point names.
        generics: Ordered generic parameter names.
    """

    name: str
    points: tuple[str, ...]
    generics: tuple[str, ...] = ()


@dataclass(frozen=True)
class Instance:
    """A placement of a component declaration inside a structural body.

    Attributes:
        label: Name of the instance, unique within its enclosing body.
        declaration: The interface this instance is declared against.
        wiring: Mapping from declared connection point to the external signal
            it is wired to in the enclosing body.
        generics: Mapping from declared generic name to its actual value.
    """

    label: str
    declaration: ComponentDeclaration
    wiring: dict[str, str] = field(hash=False)
    generics: dict[str, str] = field(default_factory=dict, hash=False)

    def signal_for(self, point: str) -> Optional[str]:
        """Return the external signal wired to a declared point, if any."""
        return self.wiring.get(point)


@dataclass(frozen=True)
class StructuralBody:
    """One design unit's internal wiring: an ordered set of instances.

    Attributes:
        name: Identity of the body, used in diagnostics and resolved graphs.
        points: The body's own external connection points.
        instances: Instances in declaration order.
    """

    name: str
    points: tuple[str, ...]
    instances: tuple[Instance, ...]

    def __iter__(self) -> Iterator[Instance]:
        return iter(self.instances)

    def __len__(self) -> int:
        return len(self.instances)

    def __contains__(self, label: str) -> bool:
        return any(instance.label == label for instance in self.instances)

    def __getitem__(self, label: str) -> Instance:
        for instance in self.instances:
            if instance.label == label:
                return instance
        raise KeyError(label)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(instance.label for instance in self.instances)


@dataclass(frozen=True)
class Variant:
    """One concrete implementation of a design unit.

    A variant is structural when it has an internal body, otherwise it is a
    primitive (opaque leaf).

    Attributes:
        design_unit: Name of the design unit this variant belongs to.
        name: Name of the variant within its design unit.
        points: Ordered connection point names.
        body: Internal structure, for structural variants.
        generics: Ordered generic parameter names.
    """

    design_unit: str
    name: str
    points: tuple[str, ...]
    body: Optional[StructuralBody] = None
    generics: tuple[str, ...] = ()

    @property
    def is_structural(self) -> bool:
        return self.body is not None

    @property
    def qualified_name(self) -> str:
        return f"{self.design_unit}/{self.name}"


@dataclass(frozen=True)
class DesignUnit:
    """A named component type with one or more alternative variants."""

    name: str
    variants: dict[str, Variant] = field(hash=False)

    def __contains__(self, variant_name: str) -> bool:
        return variant_name in self.variants


def primitive(
    design_unit: str,
    name: str,
    points: tuple[str, ...],
    generics: tuple[str, ...] = (),
) -> Variant:
    """Create an opaque leaf variant."""
    return Variant(design_unit, name, tuple(points), None, tuple(generics))


def structural(
    design_unit: str,
    name: str,
    points: tuple[str, ...],
    instances: tuple[Instance, ...],
    generics: tuple[str, ...] = (),
) -> Variant:
    """Create a structural variant whose body is named after the variant.

    Example:
        >>> structural("FullAdder", "Structural", ("a", "b", "cin", "s", "cout"), (m1, m2))
    """
    body = StructuralBody(f"{design_unit}/{name}", tuple(points), tuple(instances))
    return Variant(design_unit, name, tuple(points), body, tuple(generics))


def design_unit(name: str, *variants: Variant) -> DesignUnit:
    """Group variants into a design unit.

    Raises:
        ValueError: If a variant belongs to another unit or a variant name repeats.
    """
    by_name: dict[str, Variant] = {}
    for variant in variants:
        if variant.design_unit != name:
            raise ValueError(
                f"Variant {variant.qualified_name} does not belong to design unit '{name}'"
            )
        if variant.name in by_name:
            raise ValueError(f"Duplicate variant name '{variant.name}' in design unit '{name}'")
        by_name[variant.name] = variant
    return DesignUnit(name, by_name)
