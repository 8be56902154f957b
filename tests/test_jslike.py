"""Tests for control-flow lowering."""

import pytest

from irbuild import COIN, assign, cmd, context, lower, pop, ret, set_var, u64, unit, var

from movets.backend.jslike import JsLikeBackend, is_empty_block, is_empty_lvalue_list
from movets.diagnostics import Diagnostic
from movets.ir import (
    BOOL,
    U64,
    Abort,
    Borrow,
    Break,
    Continue,
    IfElse,
    Jump,
    LIgnore,
    LUnpack,
    LVar,
    Loc,
    Loop,
    ModuleCall,
    Multiple,
    Mutate,
    Ref,
    StructType,
    While,
)

COND = var("c", BOOL)


def call(name: str, typ=U64) -> ModuleCall:
    return ModuleCall(COIN, name, typ=typ)


def test_empty_block_predicates():
    assert is_empty_block([])
    assert is_empty_block([pop(unit())])
    assert not is_empty_block([pop(call("f"))])
    assert is_empty_lvalue_list([LIgnore(), LIgnore()])
    assert not is_empty_lvalue_list([LIgnore(), LVar("x")])


def test_if_else():
    out = lower([IfElse(COND, [set_var("x", u64(1))], [set_var("x", u64(2))])])
    assert out == 'if (c) {\n  x = u64("1");\n}\nelse {\n  x = u64("2");\n}'


def test_if_without_else():
    out = lower([IfElse(COND, [set_var("x", u64(1))])])
    assert out == 'if (c) {\n  x = u64("1");\n}'


@pytest.mark.parametrize("if_block", [[], [pop(unit())]])
def test_empty_if_block_is_negated(if_block):
    out = lower([IfElse(COND, if_block, [set_var("x", u64(2))])])
    assert out == 'if (!(c)) {\n  x = u64("2");\n}'


def test_both_blocks_empty():
    assert lower([IfElse(COND, [], [])]) == "if (!(c)) {\n}"


def test_while_with_pre_block():
    stmt = While([set_var("c", call("check", BOOL))], COND, [set_var("x", u64(1))])
    assert lower([stmt]) == (
        "while (true) {\n"
        "  c = check$($c);\n"
        "  if (!(c)) break;\n"
        '  x = u64("1");\n'
        "}"
    )


def test_while_without_pre_block():
    assert lower([While([], COND, [pop(call("tick"))])]) == "while (c) {\n  tick$($c);\n}"


def test_loop():
    assert lower([Loop([cmd(Continue()), cmd(Break())], has_break=True)]) == (
        "while (true) {\n  continue;\n  break;\n}"
    )


def test_assign_all_ignored():
    assert lower([assign([LIgnore()], call("f"))]) == "f$($c);"


def test_assign_single_unpack_declares():
    coin = StructType(COIN, "Coin")
    lv = LUnpack(COIN, "Coin", fields=[("value", LVar("v")), ("extra", LIgnore())])
    assert lower([assign([lv], var("coin", coin))]) == "let { value: v } = coin;"


def test_assign_unpack_of_hoisted_names():
    backend = JsLikeBackend(context())
    backend.hoisted = {"v"}
    lv = LUnpack(COIN, "Coin", fields=[("value", LVar("v"))])
    backend.write_stmts([assign([lv], var("coin", StructType(COIN, "Coin")))])
    assert backend.w.output() == "({ value: v } = coin);"


def test_assign_unpack_of_ignored_fields():
    lv = LUnpack(COIN, "Marker", fields=[("dummy_field", LIgnore())])
    assert lower([assign([lv], var("m", StructType(COIN, "Marker")))]) == "let {} = m;"


def test_assign_tuple():
    rhs = call("pair", Multiple((U64, U64)))
    assert lower([assign([LVar("a"), LVar("b#1")], rhs)]) == "[a, b__1] = pair$($c);"


def test_mutate_field_borrow():
    target = Borrow(var("s", Ref(StructType(COIN, "Coin"), True)), "value", mutable=True, typ=Ref(U64, True))
    assert lower([cmd(Mutate(target, u64(5)))]) == 's.value = u64("5");'


def test_mutate_reference():
    assert lower([cmd(Mutate(var("r", Ref(U64, True)), u64(5)))]) == 'r.$set(u64("5"));'


def test_abort_and_return():
    assert lower([cmd(Abort(u64(3)))]) == 'throw $.abortCode(u64("3"));'
    assert lower([ret()]) == "return;"
    assert lower([ret(var("x"))]) == "return x;"


def test_pop():
    assert lower([pop(unit())]) == ""
    assert lower([pop(call("f"))]) == "f$($c);"


def test_jump_is_rejected():
    with pytest.raises(Diagnostic) as exc:
        lower([cmd(Jump(3, loc=Loc("coin.move", 40, 44)))])
    assert exc.value.msg == "Unsupported Command (Jump)"
    assert str(exc.value) == "error:coin.move:40: Unsupported Command (Jump)"


def test_pluggable_term_evaluator():
    seen = []

    def term(exp):
        seen.append(exp)
        return "EXPR"

    backend = JsLikeBackend(context(), term=term)
    backend.write_stmts([IfElse(COND, [ret(var("x"))])])
    assert backend.w.output() == "if (EXPR) {\n  return EXPR;\n}"
    assert len(seen) == 2
