"""Per-request configuration: rule sets, nested sub-configurations and options.

A :class:`Configuration` mirrors the design hierarchy it configures. Its rule
set binds the instances of one structural body, and its sub-configurations,
keyed by instance label, configure the bodies of structural variants chosen
for those instances.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from circuitbind.rules import BindingRule, BindingRuleSet

__all__ = ["Configuration", "ResolutionOptions", "configure"]


@dataclass(frozen=True)
class ResolutionOptions:
    """Policy switches for a resolution request.

    Attributes:
        elaborate_unconfigured: If True, structural variants chosen for an
            instance that has no sub-configuration are elaborated with the
            default rule set. If False they are left as unelaborated stubs.
        inherit_catch_alls: If True, the default rule set for an unconfigured
            structural variant holds the enclosing rule set's catch-all rules.
            If False it is empty, so every nested instance is unresolved.
        validate: If True, :func:`~circuitbind.builders.elaborate` validates
            the resolved graph and reports validation defects alongside
            resolution defects.
    """

    elaborate_unconfigured: bool = True
    inherit_catch_alls: bool = True
    validate: bool = True


DEFAULT_OPTIONS = ResolutionOptions()


@dataclass(frozen=True)
class Configuration:
    """A rule set for one structural body plus configurations for nested bodies.

    Attributes:
        rules: Rules binding the instances of the configured body.
        sub_configurations: Configurations for the bodies of structural
            variants, keyed by the label of the instance they were chosen for.
    """

    rules: BindingRuleSet = field(default_factory=BindingRuleSet)
    sub_configurations: dict[str, "Configuration"] = field(default_factory=dict, hash=False)

    def for_instance(self, label: str) -> Optional["Configuration"]:
        return self.sub_configurations.get(label)

    def check(self, path: tuple[str, ...] = ()):
        """Ensure this rule set and every nested one is unambiguous.

        Raises:
            ConflictingRule: For the first ambiguous rule set found, outermost first.
        """
        self.rules.check(path=path)
        for label, sub_configuration in self.sub_configurations.items():
            sub_configuration.check(path + (label,))

    def defaults(self, options: ResolutionOptions) -> "Configuration":
        """The configuration applied to a nested body nobody configured."""
        if options.inherit_catch_alls:
            return Configuration(self.rules.catch_alls())
        return Configuration()


def configure(
    rules: Iterable[BindingRule] = (),
    sub_configurations: Optional[dict[str, "Configuration"]] = None,
) -> Configuration:
    """Build a configuration from a sequence of rules.

    Example:
        >>> configure(
        ...     [for_all("HalfAdder", design_unit="HA1", variant="RTL")],
        ...     {"m1": configure([for_all("XorGate", design_unit="XOR", variant="CMOS")])},
        ... )
    """
    return Configuration(BindingRuleSet(rules), dict(sub_configurations or {}))
