"""Resolution of structural bodies against binding rule sets.

This module holds the core of the engine. For every instance of a structural
body it selects the applicable binding rule, looks up the rule's target
variant in the design library, carries the instance's wiring through the
rule's port map, and, for structural variants, recurses into the variant's
own body with the caller's sub-configuration for that instance.

Errors that make the request itself ill-formed (unknown design units or
variants, ambiguous rule sets, cyclic hierarchies) abort resolution at once.
Instances that no rule matches are collected across the whole hierarchy and
reported together once traversal is complete.
"""

import logging
from dataclasses import replace
from typing import Optional

from circuitbind.configuration import DEFAULT_OPTIONS, Configuration, ResolutionOptions
from circuitbind.diagnostics import Diagnostic, DiagnosticKind
from circuitbind.domain import Instance, StructuralBody, Variant
from circuitbind.errors import (
    CyclicDesignHierarchy,
    UnknownDesignUnit,
    UnknownVariant,
    UnresolvedInstanceError,
)
from circuitbind.library import DesignLibrary
from circuitbind.resolved import GenericBinding, PointBinding, ResolvedGraph, ResolvedInstance
from circuitbind.rules import BindingRule, BindingRuleSet

__all__ = ["Resolver", "resolve"]

logger = logging.getLogger(__name__)


class _Elaboration:
    """
    Internal helper carrying the state of a single resolution request.

    Holds the unresolved-instance diagnostics collected so far. The chain of
    design units being elaborated is passed down the recursion rather than
    stored, so each branch of the hierarchy sees only its own ancestors.
    """

    def __init__(self, library: DesignLibrary, options: ResolutionOptions):
        self._library = library
        self._options = options
        self.unresolved: list[Diagnostic] = []

    def body(
        self,
        body: StructuralBody,
        configuration: Configuration,
        path: tuple[str, ...],
        units: tuple[str, ...],
    ) -> ResolvedGraph:
        """
        Resolve every instance of a body.

        The rule set is expected to have been checked for conflicts already,
        either by :meth:`Configuration.check` or as the catch-alls of a
        checked parent.

        Args:
            body: The structural body to resolve.
            configuration: Rules for this body and configurations for nested bodies.
            path: Hierarchical path of the instance owning the body.
            units: Names of the design units being elaborated on this branch,
                outermost first.
        """
        configuration.rules.warn_on_missing_labels(body)
        self._warn_on_unknown_sub_configurations(body, configuration, path)

        resolved: list[ResolvedInstance] = []
        unresolved: list[str] = []
        for instance in body:
            instance_path = path + (instance.label,)
            rule = configuration.rules.match(instance.label, instance.declaration)
            if rule is None:
                unresolved.append(instance.label)
                self.unresolved.append(
                    Diagnostic(
                        DiagnosticKind.UNRESOLVED_INSTANCE,
                        f"no binding rule matches instance '{instance.label}' "
                        f"of component '{instance.declaration.name}'",
                        instance_path,
                    )
                )
                continue

            logger.debug("Instance %s matched rule '%s'", "/".join(instance_path), rule.describe())
            resolved.append(
                self._instance(instance, rule, configuration, instance_path, units)
            )

        return ResolvedGraph(body.name, path, tuple(resolved), tuple(unresolved))

    def _instance(
        self,
        instance: Instance,
        rule: BindingRule,
        configuration: Configuration,
        path: tuple[str, ...],
        units: tuple[str, ...],
    ) -> ResolvedInstance:
        variant = self._lookup(rule, path)

        bindings = []
        for point in instance.declaration.points:
            signal = instance.signal_for(point)
            if signal is not None:
                bindings.append(PointBinding(point, rule.variant_point(point), signal))

        extraneous = tuple(
            (point, signal)
            for point, signal in instance.wiring.items()
            if point not in instance.declaration.points
        )
        generic_bindings = tuple(
            GenericBinding(name, rule.variant_generic(name), value)
            for name, value in instance.generics.items()
        )

        sub_configuration = configuration.for_instance(instance.label)
        subgraph = None
        if variant.is_structural:
            if sub_configuration is None and self._options.elaborate_unconfigured:
                sub_configuration = configuration.defaults(self._options)
            if sub_configuration is not None:
                subgraph = self._nested(variant, sub_configuration, rule, path, units)
        elif sub_configuration is not None:
            logger.warning(
                "Sub-configuration for %s is unused: %s is primitive",
                "/".join(path),
                variant.qualified_name,
            )

        return ResolvedInstance(
            instance.label,
            path,
            instance.declaration,
            variant,
            rule,
            tuple(bindings),
            generic_bindings,
            subgraph,
            extraneous,
        )

    def _nested(
        self,
        variant: Variant,
        configuration: Configuration,
        rule: BindingRule,
        path: tuple[str, ...],
        units: tuple[str, ...],
    ) -> ResolvedGraph:
        if variant.design_unit in units:
            chain = " -> ".join(units + (variant.design_unit,))
            raise CyclicDesignHierarchy.single(
                f"design unit '{variant.design_unit}' instantiates itself: {chain}",
                path,
                rule.describe(),
            )
        logger.debug("Elaborating %s for %s", variant.qualified_name, "/".join(path))
        return self.body(variant.body, configuration, path, units + (variant.design_unit,))

    def _lookup(self, rule: BindingRule, path: tuple[str, ...]) -> Variant:
        try:
            return self._library.lookup_variant(rule.design_unit, rule.variant)
        except (UnknownDesignUnit, UnknownVariant) as error:
            raise type(error)(
                replace(diagnostic, path=path, rule=rule.describe())
                for diagnostic in error.diagnostics
            ) from error

    def _warn_on_unknown_sub_configurations(
        self, body: StructuralBody, configuration: Configuration, path: tuple[str, ...]
    ):
        for label in configuration.sub_configurations:
            if label not in body:
                logger.warning(
                    "Sub-configuration for '%s' names no instance of body %s%s",
                    label,
                    body.name,
                    f" at {'/'.join(path)}" if path else "",
                )


class Resolver:
    """Resolve structural bodies against configurations using a design library.

    A resolver holds no per-request state; one instance may serve any number
    of requests, including concurrent ones, as long as the library is not
    modified meanwhile.
    """

    def __init__(self, library: DesignLibrary, options: Optional[ResolutionOptions] = None):
        self._library = library
        self._options = options or DEFAULT_OPTIONS

    @property
    def options(self) -> ResolutionOptions:
        return self._options

    def resolve_partial(
        self,
        body: StructuralBody,
        configuration: Configuration,
        design_unit: Optional[str] = None,
    ) -> tuple[ResolvedGraph, list[Diagnostic]]:
        """Resolve a body, returning the graph together with unresolved instances.

        Args:
            body: The structural body to resolve.
            configuration: The rule set for the body and nested configurations.
            design_unit: Name of the design unit owning the body, if any. It
                is treated as already being elaborated for cycle detection.

        Returns:
            The (possibly partial) resolved graph and an `UnresolvedInstance`
            diagnostic for every instance, at any depth, that no rule matched.

        Raises:
            UnknownDesignUnit: If a matching rule targets a unit not in the library.
            UnknownVariant: If a matching rule targets a variant its unit lacks.
            ConflictingRule: If any rule set reached is ambiguous.
            CyclicDesignHierarchy: If a structural variant instantiates a
                design unit already being elaborated on the same branch.
        """
        configuration.check()
        elaboration = _Elaboration(self._library, self._options)
        units = (design_unit,) if design_unit is not None else ()
        graph = elaboration.body(body, configuration, (), units)
        logger.info(
            "Resolved body %s: %d instances bound, %d unresolved",
            body.name,
            sum(1 for _ in graph.walk()),
            len(elaboration.unresolved),
        )
        return graph, elaboration.unresolved

    def resolve(
        self,
        body: StructuralBody,
        configuration: Configuration,
        design_unit: Optional[str] = None,
    ) -> ResolvedGraph:
        """Resolve a body, failing if any instance is left unresolved.

        Raises:
            UnresolvedInstanceError: If any instance matched no rule. The error
                lists every such instance and carries the partial graph.

        See :meth:`resolve_partial` for the errors that abort resolution.
        """
        graph, unresolved = self.resolve_partial(body, configuration, design_unit)
        if unresolved:
            raise UnresolvedInstanceError(unresolved, graph)
        return graph


def resolve(
    body: StructuralBody,
    rule_set: BindingRuleSet,
    library: DesignLibrary,
    sub_configurations: Optional[dict[str, Configuration]] = None,
    *,
    options: Optional[ResolutionOptions] = None,
    design_unit: Optional[str] = None,
) -> ResolvedGraph:
    """Resolve every instance of a structural body.

    Args:
        body: The structural body to resolve.
        rule_set: Rules binding the body's instances.
        library: Catalog of design units the rules may target.
        sub_configurations: Configurations for the bodies of structural
            variants, keyed by the instance label they are chosen for.
        options: Resolution policy; defaults to :class:`ResolutionOptions`.
        design_unit: Name of the design unit owning the body, if any.

    Returns:
        The resolved graph.

    Raises:
        ResolutionError: See :meth:`Resolver.resolve`.

    Example:
        >>> graph = resolve(full_adder.body, BindingRuleSet([...]), library)
        >>> graph["m2"].connections
        {'a': 'a_in', 'b': 'b_in', 'sum': 's1', 'carry': 'c1'}
    """
    configuration = Configuration(rule_set, dict(sub_configurations or {}))
    return Resolver(library, options).resolve(body, configuration, design_unit)