import pytest

from circuitbind.domain import (
    ComponentDeclaration,
    Instance,
    design_unit,
    primitive,
    structural,
)
from circuitbind.library import DesignLibrary
from circuitbind.rules import BindingRuleSet, for_all, for_instances

HALF_ADDER = ComponentDeclaration("HalfAdder", ("u", "v", "x", "y"))
OR_GATE = ComponentDeclaration("OrGate", ("i0", "i1", "o"))
XOR_GATE = ComponentDeclaration("XorGate", ("p", "q", "r"))
AND_GATE = ComponentDeclaration("AndGate", ("p", "q", "r"))


@pytest.fixture
def half_adder() -> ComponentDeclaration:
    return HALF_ADDER


@pytest.fixture
def full_adder():
    """A full adder built from two half adders, labelled m1 and m2."""
    return structural(
        "FullAdder",
        "Structural",
        ("a", "b", "cin", "s", "cout"),
        (
            Instance("m1", HALF_ADDER, {"u": "a", "v": "b", "x": "s1", "y": "c1"}),
            Instance("m2", HALF_ADDER, {"u": "s1", "v": "cin", "x": "s", "y": "c2"}),
        ),
    )


@pytest.fixture
def gate_level_half_adder():
    """A half adder variant built from an xor and an and gate."""
    return structural(
        "HA3",
        "Netlist",
        ("u", "v", "x", "y"),
        (
            Instance("g1", XOR_GATE, {"p": "u", "q": "v", "r": "x"}),
            Instance("g2", AND_GATE, {"p": "u", "q": "v", "r": "y"}),
        ),
    )


@pytest.fixture
def library(full_adder, gate_level_half_adder) -> DesignLibrary:
    return DesignLibrary(
        [
            design_unit("HA1", primitive("HA1", "RTL", ("u", "v", "x", "y"))),
            design_unit(
                "HA2",
                primitive("HA2", "Gate", ("a", "b", "sum", "carry")),
                primitive("HA2", "Behavioural", ("a", "b", "sum", "carry")),
            ),
            design_unit("HA3", gate_level_half_adder),
            design_unit("XOR", primitive("XOR", "CMOS", ("p", "q", "r"))),
            design_unit("AND", primitive("AND", "CMOS", ("p", "q", "r"))),
            design_unit("FullAdder", full_adder),
        ]
    )


@pytest.fixture
def m2_rule():
    return for_instances(
        "m2",
        design_unit="HA2",
        variant="Gate",
        port_map={"u": "a", "v": "b", "x": "sum", "y": "carry"},
    )


@pytest.fixture
def catch_all_rule():
    return for_all("HalfAdder", design_unit="HA1", variant="RTL")


@pytest.fixture
def scenario_rules(m2_rule, catch_all_rule) -> BindingRuleSet:
    return BindingRuleSet([m2_rule, catch_all_rule])
