import logging

from taleflow.domain.conditions import Comparison, evaluate_condition, parse_condition
from taleflow.domain.values import ArrayValue, ObjectEntry, ObjectValue, Variable


def _make_variables() -> list[Variable]:
    return [
        Variable(id="v1", name="gold", type="number", value=100),
        Variable(id="v2", name="golden", type="number", value=1),
        Variable(id="v3", name="hasKey", type="boolean", value=True),
        Variable(id="v4", name="name", type="string", value="Ava"),
        Variable(
            id="v5",
            name="inventory",
            type="array",
            value=ArrayValue(element_type="string", elements=("sword", "shield")),
        ),
        Variable(
            id="v6",
            name="stats",
            type="object",
            value=ObjectValue(keys={"hp": ObjectEntry(type="number", value=3)}),
        ),
    ]


def test_numeric_comparisons() -> None:
    variables = [Variable(id="v", name="v", type="number", value=100)]

    assert evaluate_condition("v > 50", variables) is True
    assert evaluate_condition("v < 50", variables) is False
    assert evaluate_condition("v >= 100", variables) is True
    assert evaluate_condition("v <= 99", variables) is False
    assert evaluate_condition("v == 100", variables) is True
    assert evaluate_condition("v != 100", variables) is False


def test_empty_and_true_conditions_always_pass() -> None:
    assert evaluate_condition("", []) is True
    assert evaluate_condition("   ", []) is True
    assert evaluate_condition(None, []) is True
    assert evaluate_condition("true", []) is True


def test_unknown_variable_is_false(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="taleflow.domain.conditions")

    assert evaluate_condition("missingVar == 1", []) is False
    assert "missingVar" in caplog.text


def test_boolean_and_string_literals() -> None:
    variables = _make_variables()

    assert evaluate_condition("hasKey == true", variables) is True
    assert evaluate_condition("hasKey == false", variables) is False
    assert evaluate_condition('name == "Ava"', variables) is True
    assert evaluate_condition("name != 'Bob'", variables) is True
    assert evaluate_condition("name === Ava", variables) is True


def test_overlapping_variable_names_resolve_exactly() -> None:
    variables = _make_variables()

    assert evaluate_condition("golden == 1", variables) is True
    assert evaluate_condition("gold == 1", variables) is False


def test_array_and_object_access() -> None:
    variables = _make_variables()

    assert evaluate_condition('inventory[0] == "sword"', variables) is True
    assert evaluate_condition('inventory[1] == "sword"', variables) is False
    assert evaluate_condition('inventory[5] == "sword"', variables) is False
    assert evaluate_condition("inventory.length > 1", variables) is True
    assert evaluate_condition("stats.hp < 5", variables) is True
    assert evaluate_condition("stats.mp < 5", variables) is False


def test_collection_without_accessor_is_false() -> None:
    assert evaluate_condition('inventory == "sword"', _make_variables()) is False


def test_unparseable_conditions_are_false() -> None:
    variables = _make_variables()

    assert evaluate_condition("gold", variables) is False
    assert evaluate_condition("gold ==", variables) is False
    assert evaluate_condition("gold == lots", variables) is False
    assert evaluate_condition("gold != lots", variables) is False
    assert evaluate_condition("gold == #", variables) is False
    assert evaluate_condition("== 5", variables) is False


def test_parse_condition_structure() -> None:
    assert parse_condition("stats.hp >= 10") == Comparison(
        name="stats", accessor="key", key="hp", operator=">=", literal="10"
    )
    assert parse_condition("inventory[2] !== 'axe'") == Comparison(
        name="inventory", accessor="index", key="2", operator="!=", literal="'axe'"
    )
    assert parse_condition("just words here") is None
