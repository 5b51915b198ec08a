"""Hierarchical binding resolution for structural hardware designs.

Circuitbind decides which concrete implementation (variant) each component
instance in a structural design uses, and how that implementation's
connection points line up with the instance's declared ones. It plays the
role of the configuration/elaboration step of a hardware design flow: it
reads a design library and a set of binding rules, and produces an immutable,
fully elaborated instance graph or a complete list of diagnostics.

Key Features:
    - Instance-specific rules that override catch-all defaults per component shape
    - Port and generic maps with identity defaults
    - Recursive elaboration of structural variants with nested configurations
    - Cycle detection across the design hierarchy
    - Aggregated diagnostics: one pass reports every defect

Basic Usage:
    >>> from circuitbind.builders import elaborate
    >>> from circuitbind.configuration import configure
    >>> from circuitbind.rules import for_all, for_instances
    >>>
    >>> graph = elaborate(library, "FullAdder", "Structural", configure([
    ...     for_instances("m2", design_unit="HA2", variant="Gate",
    ...                   port_map={"u": "a", "v": "b", "x": "sum", "y": "carry"}),
    ...     for_all("HalfAdder", design_unit="HA1", variant="RTL"),
    ... ]))
    >>> graph["m2"].connections

The package consists of several modules:
    - domain: Design model (declarations, instances, bodies, variants, units)
    - library: The design unit catalog
    - rules: Binding rules, selectors and rule sets
    - configuration: Nested configurations and resolution options
    - resolver: Rule matching and recursive elaboration
    - resolved: The resolved instance graph
    - validator: Connection checks over a resolved graph
    - builders: Top-level elaboration entry point
    - diagnostics, errors: Defect records and exceptions
"""
