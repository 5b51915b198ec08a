"""Binding rules and rule sets.

A binding rule selects which variant an instance, or a class of instances,
resolves to. Rules come in two flavours, distinguished by their selector:

- :class:`ExplicitLabels` names one or more instances of a body directly;
- :class:`CatchAllForShape` applies to every instance of a component
  declaration that no explicit rule names.

An explicit rule always takes precedence over a catch-all. Within a
:class:`BindingRuleSet` no instance may be named by two explicit rules, and
no declaration may have two catch-alls; either is reported as a
:class:`~circuitbind.errors.ConflictingRule` before any instance is resolved.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Union

from circuitbind.diagnostics import Diagnostic, DiagnosticKind
from circuitbind.domain import ComponentDeclaration, StructuralBody
from circuitbind.errors import ConflictingRule

__all__ = [
    "ExplicitLabels",
    "CatchAllForShape",
    "Selector",
    "BindingRule",
    "BindingRuleSet",
    "for_instances",
    "for_all",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExplicitLabels:
    """Selects the instances with the given labels."""

    labels: frozenset[str]

    def __post_init__(self):
        if not self.labels:
            raise ValueError("An explicit-label selector must name at least one instance")

    def __str__(self) -> str:
        return ", ".join(sorted(self.labels))


@dataclass(frozen=True)
class CatchAllForShape:
    """Selects every otherwise unmatched instance of a component declaration."""

    declaration: str

    def __str__(self) -> str:
        return f"all : {self.declaration}"


Selector = Union[ExplicitLabels, CatchAllForShape]


@dataclass(frozen=True)
class BindingRule:
    """A directive binding selected instances to a variant.

    Attributes:
        selector: Which instances the rule applies to.
        design_unit: Name of the target design unit.
        variant: Name of the target variant. If None, the design unit must
            have exactly one variant.
        port_map: Mapping from declared connection point to variant
            connection point. Unmapped points map to themselves.
        generic_map: Mapping from declared generic to variant generic.
            Unmapped generics map to themselves.
    """

    selector: Selector
    design_unit: str
    variant: Optional[str] = None
    port_map: dict[str, str] = field(default_factory=dict, hash=False)
    generic_map: dict[str, str] = field(default_factory=dict, hash=False)

    @property
    def is_catch_all(self) -> bool:
        return isinstance(self.selector, CatchAllForShape)

    @property
    def target(self) -> str:
        return f"{self.design_unit}/{self.variant}" if self.variant else self.design_unit

    def variant_point(self, declared_point: str) -> str:
        return self.port_map.get(declared_point, declared_point)

    def variant_generic(self, declared_generic: str) -> str:
        return self.generic_map.get(declared_generic, declared_generic)

    def describe(self) -> str:
        """Describe the rule for diagnostics, e.g. ``for m2 use HA2/Gate``."""
        return f"for {self.selector} use {self.target}"


def for_instances(
    *labels: str,
    design_unit: str,
    variant: Optional[str] = None,
    port_map: Optional[dict[str, str]] = None,
    generic_map: Optional[dict[str, str]] = None,
) -> BindingRule:
    """Create a rule binding the named instances.

    Example:
        >>> for_instances("m2", design_unit="HA2", variant="Gate",
        ...               port_map={"u": "a", "v": "b", "x": "sum", "y": "carry"})
    """
    return BindingRule(
        ExplicitLabels(frozenset(labels)),
        design_unit,
        variant,
        dict(port_map or {}),
        dict(generic_map or {}),
    )


def for_all(
    declaration: Union[str, ComponentDeclaration],
    *,
    design_unit: str,
    variant: Optional[str] = None,
    port_map: Optional[dict[str, str]] = None,
    generic_map: Optional[dict[str, str]] = None,
) -> BindingRule:
    """Create a catch-all rule for every otherwise unmatched instance of a declaration."""
    if isinstance(declaration, ComponentDeclaration):
        declaration = declaration.name
    return BindingRule(
        CatchAllForShape(declaration),
        design_unit,
        variant,
        dict(port_map or {}),
        dict(generic_map or {}),
    )


class BindingRuleSet:
    """An ordered collection of binding rules scoped to one structural body."""

    def __init__(self, rules: Iterable[BindingRule] = ()):
        self._rules: tuple[BindingRule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[BindingRule, ...]:
        return self._rules

    def __iter__(self) -> Iterator[BindingRule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __eq__(self, other) -> bool:
        return isinstance(other, BindingRuleSet) and self._rules == other._rules

    def __hash__(self) -> int:
        return hash(self._rules)

    def __repr__(self) -> str:
        return f"BindingRuleSet({list(self._rules)!r})"

    def match(
        self, instance_label: str, declaration: ComponentDeclaration
    ) -> Optional[BindingRule]:
        """Find the rule that applies to an instance.

        Explicit-label rules are consulted first, in declaration order; if
        none names the instance, the first catch-all for its declaration
        applies. Returns None when the instance is unresolved.
        """
        explicit = next(
            (
                rule
                for rule in self._rules
                if isinstance(rule.selector, ExplicitLabels)
                and instance_label in rule.selector.labels
            ),
            None,
        )
        if explicit is not None:
            return explicit
        return next(
            (
                rule
                for rule in self._rules
                if isinstance(rule.selector, CatchAllForShape)
                and rule.selector.declaration == declaration.name
            ),
            None,
        )

    def catch_alls(self) -> "BindingRuleSet":
        """Return a rule set holding only this set's catch-all rules."""
        return BindingRuleSet(rule for rule in self._rules if rule.is_catch_all)

    def conflicts(self) -> list[Diagnostic]:
        """Report every instance label or declaration bound by more than one rule."""
        rules_by_label: dict[str, list[BindingRule]] = defaultdict(list)
        rules_by_shape: dict[str, list[BindingRule]] = defaultdict(list)
        for rule in self._rules:
            if isinstance(rule.selector, ExplicitLabels):
                for label in sorted(rule.selector.labels):
                    rules_by_label[label].append(rule)
            else:
                rules_by_shape[rule.selector.declaration].append(rule)

        diagnostics = [
            Diagnostic(
                DiagnosticKind.CONFLICTING_RULE,
                f"instance '{label}' is named by {len(rules)} rules: "
                + "; ".join(rule.describe() for rule in rules),
                rule=rules[1].describe(),
            )
            for label, rules in rules_by_label.items()
            if len(rules) > 1
        ]
        diagnostics.extend(
            Diagnostic(
                DiagnosticKind.CONFLICTING_RULE,
                f"component '{shape}' has {len(rules)} catch-all rules: "
                + "; ".join(rule.describe() for rule in rules),
                rule=rules[1].describe(),
            )
            for shape, rules in rules_by_shape.items()
            if len(rules) > 1
        )
        return diagnostics

    def check(self, body: Optional[StructuralBody] = None, path: tuple[str, ...] = ()):
        """Ensure the rule set is unambiguous.

        Args:
            body: The body the rule set configures. If given, explicit rules
                naming labels absent from the body are logged as warnings.
            path: Hierarchical path of the body, for diagnostics.

        Raises:
            ConflictingRule: If any instance or declaration is bound ambiguously.
        """
        conflicts = self.conflicts()
        if conflicts:
            raise ConflictingRule(
                Diagnostic(c.kind, c.detail, path, c.rule) for c in conflicts
            )
        if body is not None:
            self.warn_on_missing_labels(body)

    def warn_on_missing_labels(self, body: StructuralBody):
        """Log explicit rules naming labels that ``body`` does not contain."""
        for rule in self._rules:
            if isinstance(rule.selector, ExplicitLabels):
                missing = sorted(rule.selector.labels - set(body.labels))
                if missing:
                    logger.warning(
                        "Rule '%s' names instances %s not present in body %s",
                        rule.describe(),
                        missing,
                        body.name,
                    )
