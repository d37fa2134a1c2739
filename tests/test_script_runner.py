import logging

from taleflow.core.rng import RNG
from taleflow.domain.script import extract_script, run_script
from taleflow.domain.values import ArrayValue, ObjectEntry, ObjectValue, Variable, find_variable


def _make_variables() -> tuple[Variable, ...]:
    return (
        Variable(id="v1", name="score", type="number", value=0),
        Variable(id="v2", name="name", type="string", value="Ava"),
        Variable(
            id="v3",
            name="inventory",
            type="array",
            value=ArrayValue(element_type="string", elements=("torch",)),
        ),
        Variable(
            id="v4",
            name="stats",
            type="object",
            value=ObjectValue(keys={"hp": ObjectEntry(type="number", value=10)}),
        ),
    )


def test_extract_script_reads_pre_blocks() -> None:
    content = "<p>Intro</p><pre>score = 5<br>score += 10</pre><p>More</p><pre><div>name = &quot;Bo&quot;</div></pre>"

    assert extract_script(content) == 'score = 5\nscore += 10\nname = "Bo"\n'


def test_extract_script_without_pre_is_empty() -> None:
    assert extract_script("<p>score = 5</p>") == ""
    assert extract_script("") == ""


def test_run_script_accumulates() -> None:
    variables = _make_variables()

    updated = run_script("score = 5\nscore += 10", variables)

    assert find_variable(updated, "score").value == 15
    assert find_variable(variables, "score").value == 0


def test_run_script_untouched_variables_are_same_objects() -> None:
    variables = _make_variables()

    updated = run_script("score = 1", variables)

    assert updated[0] is not variables[0]
    assert all(after is before for after, before in zip(updated[1:], variables[1:]))


def test_run_script_without_changes_returns_input() -> None:
    variables = _make_variables()

    assert run_script("let x = score + 1", variables) is variables
    assert run_script("   ", variables) is variables


def test_run_script_failure_leaves_variables(caplog) -> None:
    variables = _make_variables()
    caplog.set_level(logging.WARNING, logger="taleflow.domain.script.runner")

    updated = run_script("score = 5\nscore = missing + 1", variables)

    assert updated is variables
    assert find_variable(updated, "score").value == 0
    assert "missing is not defined" in caplog.text


def test_run_script_syntax_error_leaves_variables(caplog) -> None:
    variables = _make_variables()
    caplog.set_level(logging.WARNING, logger="taleflow.domain.script.runner")

    assert run_script("score = = 1", variables) is variables
    assert "Script failed" in caplog.text


def test_run_script_detects_in_place_collection_changes() -> None:
    updated = run_script("inventory.push('key')\nstats.hp -= 3", _make_variables())

    assert find_variable(updated, "inventory").value == ArrayValue(element_type="string", elements=("torch", "key"))
    assert find_variable(updated, "stats").value.keys["hp"] == ObjectEntry(type="number", value=7)


def test_run_script_coerces_back_to_declared_type() -> None:
    updated = run_script("score = '12'\nname = 42", _make_variables())

    assert find_variable(updated, "score").value == 12
    assert find_variable(updated, "name").value == "42"


def test_run_script_ignores_nan_for_numbers() -> None:
    variables = _make_variables()

    updated = run_script("score = 'lots'", variables)

    assert find_variable(updated, "score").value == 0


def test_run_script_uses_rng() -> None:
    variables = (Variable(id="v", name="roll", type="number", value=0),)
    code = "roll = Math.floor(Math.random() * 6) + 1"

    first = run_script(code, variables, rng=RNG(3))
    second = run_script(code, variables, rng=RNG(3))

    assert first[0].value == second[0].value
    assert 1 <= first[0].value <= 6


def test_run_script_too_deeply_nested_leaves_variables(caplog) -> None:
    variables = _make_variables()
    caplog.set_level(logging.WARNING, logger="taleflow.domain.script.runner")

    assert run_script("score = " + "(" * 3000 + "2" + ")" * 3000, variables) is variables
    assert run_script("score = " + "- " * 3000 + "2", variables) is variables
    assert "nested too deeply" in caplog.text


def test_run_script_sparse_array_write_leaves_variables(caplog) -> None:
    variables = _make_variables()
    caplog.set_level(logging.WARNING, logger="taleflow.domain.script.runner")

    assert run_script("inventory.push('key')\ninventory[2000000] = 'x'", variables) is variables
    assert "past the end" in caplog.text
    assert find_variable(variables, "inventory").value.elements == ("torch",)
