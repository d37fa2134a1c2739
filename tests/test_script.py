import math

import pytest

from taleflow.core.rng import RNG
from taleflow.domain.script import Interpreter, ScriptRuntimeError, ScriptSyntaxError, parse_script, tokenize
from taleflow.domain.script.nodes import Assign, Binary, If, Literal, Name


def _run(code: str, **scope: object) -> dict:
    Interpreter(scope, rng=RNG(7)).execute(parse_script(code))
    return scope


def test_tokenize_kinds_and_comments() -> None:
    tokens = tokenize("gold += 1 // reward")

    assert [(token.kind, token.value) for token in tokens] == [
        ("ID", "gold"),
        ("OP", "+="),
        ("NUMBER", "1"),
        ("EOF", ""),
    ]


def test_tokenize_drops_newlines_inside_brackets() -> None:
    kinds = [token.kind for token in tokenize("f(1,\n2)\nx = [\n3]")]

    assert kinds.count("NEWLINE") == 1


def test_tokenize_unescapes_strings() -> None:
    token = tokenize(r'"line\nnext A"')[0]

    assert token.kind == "STRING"
    assert token.value == "line\nnext A"


def test_tokenize_rejects_unknown_characters() -> None:
    with pytest.raises(ScriptSyntaxError):
        tokenize("gold = 1 @ 2")


def test_parse_assignments() -> None:
    program = parse_script("x = 1; y += 2 * 3")

    assert program == [
        Assign(Name("x"), "=", Literal(1)),
        Assign(Name("y"), "+=", Binary(Literal(2), "*", Literal(3))),
    ]


def test_parse_if_else_without_braces() -> None:
    program = parse_script("if (x > 1)\n  y = 2\nelse y = 3")

    assert len(program) == 1
    statement = program[0]
    assert isinstance(statement, If)
    assert statement.body == [Assign(Name("y"), "=", Literal(2))]
    assert statement.orelse == [Assign(Name("y"), "=", Literal(3))]


def test_parse_rejects_invalid_targets() -> None:
    with pytest.raises(ScriptSyntaxError):
        parse_script("1 = x")
    with pytest.raises(ScriptSyntaxError):
        parse_script("x = (1 + 2")
    with pytest.raises(ScriptSyntaxError):
        parse_script("if (x) { y = 1")


def test_interpreter_arithmetic_and_precedence() -> None:
    scope = _run("a = 1 + 2 * 3\nb = (1 + 2) * 3\nc = 7 / 2\nd = 7 % 3\ne = -a + 1", a=0, b=0, c=0, d=0, e=0)

    assert scope == {"a": 7, "b": 9, "c": 3.5, "d": 1, "e": -6}


def test_interpreter_division_by_zero() -> None:
    scope = _run("a = 1 / 0\nb = -1 / 0\nc = 0 / 0", a=0, b=0, c=0)

    assert scope["a"] == math.inf
    assert scope["b"] == -math.inf
    assert math.isnan(scope["c"])


def test_interpreter_string_concatenation() -> None:
    scope = _run("label = 'HP: ' + hp\nname += '!'", label="", hp=7, name="Ava")

    assert scope["label"] == "HP: 7"
    assert scope["name"] == "Ava!"


def test_interpreter_equality() -> None:
    scope = _run("a = 1 == '1'\nb = 1 === '1'\nc = null == undefined\nd = 2 !== 2", a=None, b=None, c=None, d=None)

    assert scope == {"a": True, "b": False, "c": True, "d": False}


def test_interpreter_control_flow() -> None:
    code = """
    if (!flag) {
        state = 'off'
    } else {
        state = 'on'
    }
    size = gold > 50 ? 'rich' : 'poor'
    picked = flag || 'fallback'
    """
    scope = _run(code, flag=False, state="", size="", gold=60, picked=None)

    assert scope["state"] == "off"
    assert scope["size"] == "rich"
    assert scope["picked"] == "fallback"


def test_interpreter_updates() -> None:
    scope = _run("x++\n++x\ny = x--", x=0, y=0)

    assert scope == {"x": 1, "y": 2}


def test_interpreter_collections() -> None:
    code = """
    items.push('axe', 'rope')
    first = items.shift()
    count = items.length
    stats.hp -= 2
    stats['mp'] = 5
    items[2] = 'gem'
    """
    scope = _run(code, items=["torch"], first=None, count=0, stats={"hp": 10})

    assert scope["first"] == "torch"
    assert scope["count"] == 2
    assert scope["stats"] == {"hp": 8, "mp": 5}
    assert scope["items"] == ["axe", "rope", "gem"]


def test_interpreter_collection_methods() -> None:
    code = """
    has = items.includes('rope')
    where = items.indexOf('axe')
    text = items.join(', ')
    upper = name.toUpperCase()
    keys = Object.keys(stats)
    """
    scope = _run(
        code,
        items=["axe", "rope"],
        has=None,
        where=None,
        text="",
        upper="",
        name="ava",
        keys=None,
        stats={"hp": 1, "mp": 2},
    )

    assert scope["has"] is True
    assert scope["where"] == 0
    assert scope["text"] == "axe, rope"
    assert scope["upper"] == "AVA"
    assert scope["keys"] == ["hp", "mp"]


def test_interpreter_builtins() -> None:
    scope = _run(
        "a = Math.max(1, 5, 3)\nb = Math.floor(2.7)\nc = Math.round(2.5)\nd = parseInt('42px')\ne = Math.random()",
        a=0,
        b=0,
        c=0,
        d=0,
        e=0,
    )

    assert scope["a"] == 5
    assert scope["b"] == 2
    assert scope["c"] == 3
    assert scope["d"] == 42
    assert 0 <= scope["e"] < 1


def test_math_random_follows_seed() -> None:
    first = _run("r = Math.random()", r=0)["r"]
    second = _run("r = Math.random()", r=0)["r"]

    assert first == second


def test_declarations_and_undeclared_names_stay_local() -> None:
    scope = _run("let t = 2\nx = t * 3\ntemp = 9", x=0)

    assert scope == {"x": 6}


def test_interpreter_undefined_name_raises() -> None:
    with pytest.raises(ScriptRuntimeError, match="missing is not defined"):
        _run("score = missing + 1", score=0)


def test_interpreter_null_member_access_raises() -> None:
    with pytest.raises(ScriptRuntimeError):
        _run("x = nothing.length", x=0, nothing=None)


def test_interpreter_calling_non_function_raises() -> None:
    with pytest.raises(ScriptRuntimeError, match="gold is not a function"):
        _run("gold()", gold=1)


def test_parse_rejects_excessive_nesting() -> None:
    with pytest.raises(ScriptSyntaxError, match="nested too deeply"):
        parse_script("score = " + "(" * 3000 + "2" + ")" * 3000)
    with pytest.raises(ScriptSyntaxError, match="nested too deeply"):
        parse_script("score = " + "- " * 3000 + "2")


def test_interpreter_array_writes_replace_or_append() -> None:
    scope = _run("items[0] = 'axe'\nitems[1] = 'rope'", items=["torch"])

    assert scope["items"] == ["axe", "rope"]


def test_interpreter_rejects_array_write_past_end() -> None:
    with pytest.raises(ScriptRuntimeError, match="past the end"):
        _run("items[5] = 'x'", items=[])
    with pytest.raises(ScriptRuntimeError, match="past the end"):
        _run("items[1e9] = 'x'", items=["torch"])
