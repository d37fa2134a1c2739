import math

from taleflow.domain.values import (
    ArrayValue,
    ObjectEntry,
    ObjectValue,
    Variable,
    coerce_value,
    format_value,
    parse_literal,
    runtime_equal,
    to_boolean,
    to_display_string,
    to_number,
)


def _make_variable(name: str, var_type: str, value: object) -> Variable:
    return Variable(id=f"var-{name}", name=name, type=var_type, value=value)


def test_to_number_parses_script_style_text() -> None:
    assert to_number("") == 0
    assert to_number(" 12 ") == 12
    assert to_number("1.5") == 1.5
    assert to_number("0x1F") == 31
    assert to_number("-Infinity") == -math.inf
    assert to_number(True) == 1
    assert math.isnan(to_number("abc"))
    assert math.isnan(to_number(None))


def test_to_number_keeps_integral_values_as_int() -> None:
    value = to_number("15.0")
    assert value == 15
    assert isinstance(value, int)


def test_to_boolean_only_accepts_true_text() -> None:
    assert to_boolean("true") is True
    assert to_boolean(" TRUE ") is True
    assert to_boolean("yes") is False
    assert to_boolean(1) is True
    assert to_boolean(0) is False
    assert to_boolean(math.nan) is False


def test_to_display_string_formats_like_script_runtime() -> None:
    assert to_display_string(None) == "null"
    assert to_display_string(False) == "false"
    assert to_display_string(15.0) == "15"
    assert to_display_string(math.nan) == "NaN"
    assert to_display_string(["a", 1]) == '["a",1]'


def test_coerce_value_array_converts_elements() -> None:
    variable = _make_variable("rolls", "array", ArrayValue(element_type="number"))

    updated = coerce_value(variable, ["1", 2, "x"])

    assert updated.value.element_type == "number"
    assert updated.value.elements[:2] == (1, 2)
    assert math.isnan(updated.value.elements[2])
    assert variable.value.elements == ()


def test_coerce_value_collection_rejects_scalars() -> None:
    array_var = _make_variable("items", "array", ArrayValue(element_type="string"))
    object_var = _make_variable("stats", "object", ObjectValue())

    assert coerce_value(array_var, "sword") is array_var
    assert coerce_value(object_var, [1, 2]) is object_var


def test_coerce_value_object_infers_entry_types() -> None:
    variable = _make_variable("stats", "object", ObjectValue())

    updated = coerce_value(variable, {"hp": 7, "name": "Ava", "alive": True})

    assert updated.value.keys == {
        "hp": ObjectEntry(type="number", value=7),
        "name": ObjectEntry(type="string", value="Ava"),
        "alive": ObjectEntry(type="boolean", value=True),
    }


def test_coerce_value_primitives() -> None:
    assert coerce_value(_make_variable("gold", "number", 0), "42").value == 42
    assert coerce_value(_make_variable("flag", "boolean", False), "true").value is True
    assert coerce_value(_make_variable("name", "string", ""), 3).value == "3"


def test_format_value_renders_collections_as_json() -> None:
    array_value = ArrayValue(element_type="number", elements=(1, 2.5))
    object_value = ObjectValue(keys={"hp": ObjectEntry(type="number", value=7)})

    assert format_value(array_value) == "[1,2.5]"
    assert format_value(object_value) == '{"hp":7}'
    assert format_value(True) == "true"


def test_parse_literal_by_type() -> None:
    assert parse_literal('"Bob"', "string") == "Bob"
    assert parse_literal("'Bob'", "string") == "Bob"
    assert parse_literal("Bob", "string") == "Bob"
    assert parse_literal("true", "boolean") is True
    assert parse_literal("yes", "boolean") is False
    assert parse_literal("10", "number") == 10
    assert math.isnan(parse_literal("ten", "number"))


def test_runtime_equal_compares_values_not_identity() -> None:
    assert runtime_equal(1, 1.0)
    assert runtime_equal([1, "a"], [1, "a"])
    assert runtime_equal({"a": [1]}, {"a": [1]})
    assert runtime_equal(math.nan, math.nan)
    assert not runtime_equal(True, 1)
    assert not runtime_equal("1", 1)
    assert not runtime_equal([1], [1, 2])
