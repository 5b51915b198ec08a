"""Read-only catalog of design units and their variants."""

from typing import Iterable, Iterator, Optional

from circuitbind.domain import DesignUnit, Variant
from circuitbind.errors import UnknownDesignUnit, UnknownVariant

__all__ = ["DesignLibrary"]


class DesignLibrary:
    """Catalog mapping design unit names to their variants.

    A library is populated once, by a loader, and then shared by reference
    across resolution requests. Nothing in the resolution engine mutates it.

    Example:
        >>> library = DesignLibrary([
        ...     design_unit("HA1", primitive("HA1", "RTL", ("u", "v", "x", "y"))),
        ... ])
        >>> library.lookup_variant("HA1", "RTL").points
        ('u', 'v', 'x', 'y')
    """

    def __init__(self, units: Iterable[DesignUnit] = ()):
        self._units: dict[str, DesignUnit] = {}
        for unit in units:
            self.register(unit)

    def register(self, unit: DesignUnit):
        """Add a design unit to the catalog.

        Args:
            unit: The design unit to add.

        Raises:
            ValueError: If a unit with the same name is already registered.
        """
        if unit.name in self._units:
            raise ValueError(f"Duplicate design unit name '{unit.name}'")
        self._units[unit.name] = unit

    def lookup(self, design_unit_name: str) -> DesignUnit:
        """Return the design unit with the given name.

        Raises:
            UnknownDesignUnit: If no such unit is registered.
        """
        try:
            return self._units[design_unit_name]
        except KeyError:
            raise UnknownDesignUnit.single(
                f"design unit '{design_unit_name}' is not in the library"
            ) from None

    def lookup_variant(
        self, design_unit_name: str, variant_name: Optional[str]
    ) -> Variant:
        """Return a variant of a design unit.

        Args:
            design_unit_name: Name of the design unit.
            variant_name: Name of the variant. If None, the unit must have
                exactly one variant, which is returned.

        Raises:
            UnknownDesignUnit: If no such unit is registered.
            UnknownVariant: If the unit has no such variant, or no variant was
                named and the unit's variant is not unique.
        """
        unit = self.lookup(design_unit_name)
        if variant_name is None:
            if len(unit.variants) != 1:
                raise UnknownVariant.single(
                    f"no variant named for design unit '{design_unit_name}', "
                    f"which has {len(unit.variants)} variants: {sorted(unit.variants)}"
                )
            return next(iter(unit.variants.values()))
        try:
            return unit.variants[variant_name]
        except KeyError:
            raise UnknownVariant.single(
                f"design unit '{design_unit_name}' has no variant '{variant_name}'"
            ) from None

    def __contains__(self, design_unit_name: str) -> bool:
        return design_unit_name in self._units

    def __iter__(self) -> Iterator[DesignUnit]:
        return iter(self._units.values())

    def __len__(self) -> int:
        return len(self._units)
