"""Declaration analysis: compute locals needing a forward declaration.

The IR lists every local in one flat, function-scoped map. TypeScript needs
each plain-assigned local declared once, before any branch assigns it, while
a destructuring `let { f: x } = ...` declares its own names at the point of
use. So the locals to hoist are all locals minus those bound only by
self-declaring destructuring assignments.

A destructuring assignment self-declares only when its unpack is the sole
l-value and none of its names is also assigned some other way. Unpacks inside
a multi-l-value list, and sole unpacks sharing a name with a plain
assignment, are emitted as plain destructuring assignments and their names
are hoisted like any other.
"""

from __future__ import annotations

from ..ir import (
    Assign,
    CommandStmt,
    IfElse,
    LUnpack,
    LValue,
    LVar,
    Loop,
    Stmt,
    While,
)


def is_self_declaring(lvalues: list[LValue]) -> bool:
    """True if these l-values have the shape of a `let` destructuring."""
    return len(lvalues) == 1 and isinstance(lvalues[0], LUnpack)


def lvalue_names(lv: LValue) -> set[str]:
    """Variable names bound by an l-value."""
    result: set[str] = set()
    _collect_lvalue(lv, result)
    return result


def destructured_vars(block: list[Stmt]) -> set[str]:
    """Names bound only by self-declaring destructuring in block."""
    unpacks, plain = _assignments(block)
    return set().union(*unpacks) - _hoisted_unpack_names(unpacks, plain)


def compute_undeclared(block: list[Stmt], locals_: list[str]) -> list[str]:
    """Locals needing a hoisted declaration, in the order of locals_."""
    declared = destructured_vars(block)
    return [name for name in locals_ if name not in declared]


def _hoisted_unpack_names(unpacks: list[set[str]], plain: set[str]) -> set[str]:
    # an unpack sharing any name with a hoisted one is emitted without `let`,
    # which hoists all of its names
    hoisted = set(plain)
    changed = True
    while changed:
        changed = False
        for names in unpacks:
            if names & hoisted and not names <= hoisted:
                hoisted |= names
                changed = True
    return hoisted


def _assignments(block: list[Stmt]) -> tuple[list[set[str]], set[str]]:
    """Name sets of sole unpacks, and names bound by every other assignment."""
    unpacks: list[set[str]] = []
    plain: set[str] = set()
    for stmt in block:
        _collect_stmt(stmt, unpacks, plain)
    return (unpacks, plain)


def _collect_stmt(stmt: Stmt, unpacks: list[set[str]], plain: set[str]) -> None:
    if isinstance(stmt, CommandStmt):
        cmd = stmt.cmd
        if isinstance(cmd, Assign):
            if is_self_declaring(cmd.lvalues):
                unpacks.append(lvalue_names(cmd.lvalues[0]))
            else:
                for lv in cmd.lvalues:
                    _collect_lvalue(lv, plain)
    elif isinstance(stmt, IfElse):
        for s in stmt.if_block:
            _collect_stmt(s, unpacks, plain)
        for s in stmt.else_block:
            _collect_stmt(s, unpacks, plain)
    elif isinstance(stmt, While):
        for s in stmt.pre_block:
            _collect_stmt(s, unpacks, plain)
        for s in stmt.block:
            _collect_stmt(s, unpacks, plain)
    elif isinstance(stmt, Loop):
        for s in stmt.block:
            _collect_stmt(s, unpacks, plain)


def _collect_lvalue(lv: LValue, result: set[str]) -> None:
    if isinstance(lv, LVar):
        result.add(lv.name)
    elif isinstance(lv, LUnpack):
        for _, inner in lv.fields:
            _collect_lvalue(inner, result)
