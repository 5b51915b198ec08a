import pytest

from circuitbind.configuration import Configuration
from circuitbind.diagnostics import DiagnosticKind
from circuitbind.domain import ComponentDeclaration, Instance, design_unit, primitive, structural
from circuitbind.errors import ValidationError
from circuitbind.library import DesignLibrary
from circuitbind.resolver import resolve
from circuitbind.rules import BindingRuleSet, for_all, for_instances
from circuitbind.validator import check, validate, validate_instance


def kinds_of(diagnostics):
    return [diagnostic.kind for diagnostic in diagnostics]


def test_scenario_graph_is_valid(full_adder, scenario_rules, library):
    graph = resolve(full_adder.body, scenario_rules, library)

    assert validate(graph) == []
    assert check(graph) is graph


def test_identity_binding_onto_renamed_points_is_dangling(full_adder, library):
    rules = BindingRuleSet([for_all("HalfAdder", design_unit="HA2", variant="Gate")])
    graph = resolve(full_adder.body, rules, library)

    diagnostics = validate_instance(graph["m1"])

    assert kinds_of(diagnostics) == [DiagnosticKind.DANGLING_PORT_MAP] * 4 + [
        DiagnosticKind.UNCONNECTED_POINT
    ] * 4
    assert "connection point 'u' (signal 'a') has no counterpart in HA2/Gate" in diagnostics[0].detail
    assert diagnostics[0].path == ("m1",)
    assert diagnostics[0].rule == "for all : HalfAdder use HA2/Gate"


def test_port_map_to_missing_variant_point_is_dangling(full_adder, library):
    rules = BindingRuleSet(
        [
            for_instances(
                "m1", "m2",
                design_unit="HA2",
                variant="Gate",
                port_map={"u": "a", "v": "b", "x": "sum", "y": "cout"},
            )
        ]
    )
    graph = resolve(full_adder.body, rules, library)

    diagnostics = validate_instance(graph["m2"])

    assert kinds_of(diagnostics) == [
        DiagnosticKind.DANGLING_PORT_MAP,
        DiagnosticKind.UNCONNECTED_POINT,
    ]
    assert "'y' => 'cout' names no connection point of HA2/Gate" in diagnostics[0].detail
    assert "connection point 'carry' of HA2/Gate is not connected" in diagnostics[1].detail


def test_port_map_key_missing_from_declaration_is_dangling(full_adder, library):
    rules = BindingRuleSet(
        [for_all("HalfAdder", design_unit="HA1", variant="RTL", port_map={"w": "u"})]
    )
    graph = resolve(full_adder.body, rules, library)

    diagnostics = validate_instance(graph["m1"])

    assert kinds_of(diagnostics) == [DiagnosticKind.DANGLING_PORT_MAP]
    assert "names no connection point of component 'HalfAdder'" in diagnostics[0].detail


def test_two_points_onto_one_variant_point_is_a_duplicate(full_adder, library):
    rules = BindingRuleSet(
        [for_all("HalfAdder", design_unit="HA1", variant="RTL", port_map={"v": "u"})]
    )
    graph = resolve(full_adder.body, rules, library)

    diagnostics = validate_instance(graph["m1"])

    assert kinds_of(diagnostics) == [
        DiagnosticKind.DUPLICATE_CONNECTION,
        DiagnosticKind.UNCONNECTED_POINT,
    ]
    assert "fed by 2 points: u (a), v (b)" in diagnostics[0].detail
    assert graph["m1"].connections["u"] == "a"


def test_unwired_point_leaves_variant_point_unconnected(library, half_adder):
    body = structural(
        "Top", "Partial", ("a",), (Instance("m1", half_adder, {"u": "a", "v": "b", "x": "s"}),)
    ).body
    graph = resolve(body, BindingRuleSet([for_all("HalfAdder", design_unit="HA1")]), library)

    diagnostics = validate(graph)

    assert kinds_of(diagnostics) == [DiagnosticKind.UNCONNECTED_POINT]
    assert diagnostics[0].instance == "m1"


def test_variant_point_with_no_declared_counterpart_is_unconnected():
    narrow = ComponentDeclaration("Buffer", ("i", "o"))
    library = DesignLibrary([design_unit("BUF", primitive("BUF", "Tri", ("i", "o", "en")))])
    body = structural("Top", "S", (), (Instance("b1", narrow, {"i": "x", "o": "y"}),)).body
    graph = resolve(body, BindingRuleSet([for_all("Buffer", design_unit="BUF")]), library)

    diagnostics = validate(graph)

    assert kinds_of(diagnostics) == [DiagnosticKind.UNCONNECTED_POINT]
    assert "'en' of BUF/Tri is not connected" in diagnostics[0].detail


def test_undeclared_generic_is_reported():
    declaration = ComponentDeclaration("Buffer", ("i", "o"), ("delay",))
    library = DesignLibrary(
        [design_unit("BUF", primitive("BUF", "Fast", ("i", "o"), ("tpd",)))]
    )
    body = structural(
        "Top", "S", (), (Instance("b1", declaration, {"i": "x", "o": "y"}, {"delay": "1 ns"}),)
    ).body

    unmapped = resolve(body, BindingRuleSet([for_all("Buffer", design_unit="BUF")]), library)
    mapped = resolve(
        body,
        BindingRuleSet([for_all("Buffer", design_unit="BUF", generic_map={"delay": "tpd"})]),
        library,
    )

    assert kinds_of(validate(unmapped)) == [DiagnosticKind.UNKNOWN_GENERIC]
    assert validate(mapped) == []


def test_defects_are_aggregated_bottom_up_across_the_graph(full_adder, library):
    rules = BindingRuleSet(
        [
            for_instances("m1", design_unit="HA3", variant="Netlist"),
            for_all("HalfAdder", design_unit="HA2", variant="Gate", port_map={"u": "a"}),
        ]
    )
    nested = BindingRuleSet(
        [
            for_instances("g1", design_unit="AND", variant="CMOS", port_map={"r": "z"}),
            for_all("AndGate", design_unit="AND", variant="CMOS"),
        ]
    )
    graph = resolve(full_adder.body, rules, library, {"m1": Configuration(nested)})

    diagnostics = validate(graph)

    assert [d.instance for d in diagnostics] == ["m1/g1", "m1/g1"] + ["m2"] * 6
    with pytest.raises(ValidationError) as info:
        check(graph)
    assert info.value.diagnostics == diagnostics
    assert info.value.graph is graph


def test_wiring_of_undeclared_point_is_extraneous():
    declaration = ComponentDeclaration("Buffer", ("i", "o"))
    library = DesignLibrary([design_unit("BUF", primitive("BUF", "X", ("i", "o")))])
    body = structural(
        "Top", "S", (), (Instance("b1", declaration, {"i": "x", "o": "y", "en": "e"}),)
    ).body
    graph = resolve(body, BindingRuleSet([for_all("Buffer", design_unit="BUF")]), library)

    diagnostics = validate(graph)

    assert graph["b1"].connections == {"i": "x", "o": "y"}
    assert kinds_of(diagnostics) == [DiagnosticKind.EXTRANEOUS_CONNECTION]
    assert (
        "connection point 'en' (signal 'e') is not declared by component 'Buffer'"
        in diagnostics[0].detail
    )
    assert diagnostics[0].instance == "b1"


@pytest.fixture
def timed_buffer_library():
    return DesignLibrary(
        [design_unit("BUF", primitive("BUF", "Fast", ("i", "o"), ("tpd",)))]
    )


def timed_buffer(generics):
    declaration = ComponentDeclaration("Buffer", ("i", "o"), ("rise", "fall"))
    return structural(
        "Top", "S", (), (Instance("b1", declaration, {"i": "x", "o": "y"}, generics),)
    ).body


def test_two_generics_onto_one_variant_generic_is_a_duplicate(timed_buffer_library):
    rules = BindingRuleSet(
        [for_all("Buffer", design_unit="BUF", generic_map={"rise": "tpd", "fall": "tpd"})]
    )
    graph = resolve(timed_buffer({"rise": "1 ns", "fall": "2 ns"}), rules, timed_buffer_library)

    diagnostics = validate(graph)

    assert graph["b1"].generics == {"tpd": "1 ns"}
    assert kinds_of(diagnostics) == [DiagnosticKind.DUPLICATE_GENERIC]
    assert "'tpd' of BUF/Fast is given 2 values: rise (1 ns), fall (2 ns)" in diagnostics[0].detail


def test_generic_value_missing_from_declaration_is_unknown(timed_buffer_library):
    rules = BindingRuleSet([for_all("Buffer", design_unit="BUF", generic_map={"rise": "tpd"})])
    graph = resolve(timed_buffer({"rise": "1 ns", "hold": "3 ns"}), rules, timed_buffer_library)

    diagnostics = validate(graph)

    assert kinds_of(diagnostics) == [DiagnosticKind.UNKNOWN_GENERIC]
    assert (
        "generic 'hold' (value '3 ns') is not declared by component 'Buffer'"
        in diagnostics[0].detail
    )


def test_generic_map_entries_must_name_declared_generics(timed_buffer_library):
    rules = BindingRuleSet(
        [for_all("Buffer", design_unit="BUF", generic_map={"delay": "tpd", "fall": "tf"})]
    )
    graph = resolve(timed_buffer({}), rules, timed_buffer_library)

    diagnostics = validate(graph)

    assert kinds_of(diagnostics) == [DiagnosticKind.UNKNOWN_GENERIC] * 2
    assert "'delay' => 'tpd' names no generic of component 'Buffer'" in diagnostics[0].detail
    assert "'fall' => 'tf' names no generic of BUF/Fast" in diagnostics[1].detail
