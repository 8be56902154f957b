"""Control-flow lowering for JavaScript-like targets.

Translates IR blocks, statements and commands into structured JS control
flow. Expression positions are delegated to the term evaluator; text goes
through TsWriter. Subclasses add declaration-level emission.

| IR construct                          | Emitted                                      |
|---------------------------------------|----------------------------------------------|
| if/else, if-block non-empty           | if (c) {...} else {...}                      |
| if/else, if-block empty               | if (!(c)) {else-block}                       |
| while, pre-block non-empty            | while (true) { pre; if (!(c)) break; body }  |
| while, pre-block empty                | while (c) { body }                           |
| loop                                  | while (true) { body }                        |
| assign, all l-values ignored          | e;                                           |
| assign, single unpack                 | let { f: x } = e;                            |
| assign, unpack of hoisted names       | ({ f: x } = e);                              |
| assign, otherwise                     | x = e; / [x, y] = e;                         |
| mutate through a field borrow         | e.f = v;                                     |
| mutate through any other reference    | r.$set(v);                                   |
| return () / return e                  | return; / return e;                          |
| abort e                               | throw $.abortCode(e);                        |
| ignore-and-pop () / ignore-and-pop e  | (nothing) / e;                               |
| jump                                  | diagnostic                                   |
"""

from __future__ import annotations

from typing import Callable

from ..diagnostics import Diagnostic
from ..ir import (
    Abort,
    Assign,
    Borrow,
    Break,
    Command,
    CommandStmt,
    Continue,
    Exp,
    IfElse,
    IgnoreAndPop,
    Jump,
    LIgnore,
    LUnpack,
    LValue,
    LVar,
    Loop,
    Mutate,
    Return,
    Stmt,
    While,
)
from ..middleend.declarations import is_self_declaring, lvalue_names
from .context import Context
from .terms import TermEvaluator, is_unit
from .util import TsWriter, rename


def is_empty_block(block: list[Stmt]) -> bool:
    """True for a block that does nothing: empty, or a lone pop of ()."""
    if len(block) == 0:
        return True
    if len(block) == 1:
        stmt = block[0]
        if isinstance(stmt, CommandStmt) and isinstance(stmt.cmd, IgnoreAndPop):
            return is_unit(stmt.cmd.exp)
    return False


def is_empty_lvalue_list(lvalues: list[LValue]) -> bool:
    """True if every l-value discards its value."""
    return all(isinstance(lv, LIgnore) for lv in lvalues)


class JsLikeBackend:
    """Base class for JavaScript-like code generators."""

    def __init__(
        self,
        c: Context,
        w: TsWriter | None = None,
        term: Callable[[Exp], str] | None = None,
    ) -> None:
        self.c = c
        self.w = w if w is not None else TsWriter()
        self.term: Callable[[Exp], str] = term if term is not None else TermEvaluator(c)
        # locals declared at the top of the current function
        self.hoisted: set[str] = set()

    # --- Blocks ---

    def write_block(self, block: list[Stmt], header: str = "") -> None:
        """Emit `header { ... }`."""
        self.w.open_block(header)
        self.write_stmts(block)
        self.w.close_block()

    def write_stmts(self, block: list[Stmt]) -> None:
        for stmt in block:
            self.write_statement(stmt)

    # --- Statements ---

    def write_statement(self, stmt: Stmt) -> None:
        match stmt:
            case CommandStmt(cmd=cmd):
                self.write_command(cmd)
            case IfElse(cond=cond, if_block=if_block, else_block=else_block):
                if not is_empty_block(if_block):
                    self.write_block(if_block, "if (" + self.term(cond) + ") ")
                    if len(else_block) > 0:
                        self.write_block(else_block, "else ")
                else:
                    self.write_block(else_block, "if (!(" + self.term(cond) + ")) ")
            case While(pre_block=pre_block, cond=cond, block=block):
                if len(pre_block) > 0:
                    self.w.open_block("while (true) ")
                    self.write_stmts(pre_block)
                    self.w.writeln("if (!(" + self.term(cond) + ")) break;")
                    self.write_stmts(block)
                    self.w.close_block()
                else:
                    self.write_block(block, "while (" + self.term(cond) + ") ")
            case Loop(block=block):
                self.write_block(block, "while (true) ")
            case _:
                raise NotImplementedError("Unknown statement")

    # --- Commands ---

    def write_command(self, cmd: Command) -> None:
        match cmd:
            case Assign(lvalues=lvalues, rhs=rhs):
                if is_empty_lvalue_list(lvalues):
                    self.w.writeln(self.term(rhs) + ";")
                elif is_self_declaring(lvalues) and not lvalue_names(lvalues[0]) & self.hoisted:
                    self.w.writeln("let " + self._lvalues(lvalues) + " = " + self.term(rhs) + ";")
                elif is_self_declaring(lvalues):
                    self.w.writeln("(" + self._lvalues(lvalues) + " = " + self.term(rhs) + ");")
                else:
                    self.w.writeln(self._lvalues(lvalues) + " = " + self.term(rhs) + ";")
            case Mutate(lhs=lhs, rhs=rhs):
                if isinstance(lhs, Borrow):
                    self.w.writeln(self.term(lhs) + " = " + self.term(rhs) + ";")
                else:
                    self.w.writeln(self.term(lhs) + ".$set(" + self.term(rhs) + ");")
            case Abort(code=code):
                self.w.writeln("throw $.abortCode(" + self.term(code) + ");")
            case Return(exp=exp):
                if is_unit(exp):
                    self.w.writeln("return;")
                else:
                    self.w.writeln("return " + self.term(exp) + ";")
            case Break():
                self.w.writeln("break;")
            case Continue():
                self.w.writeln("continue;")
            case IgnoreAndPop(exp=exp):
                if not is_unit(exp):
                    self.w.writeln(self.term(exp) + ";")
            case Jump():
                raise Diagnostic("Unsupported Command (Jump)", cmd.loc)
            case _:
                raise NotImplementedError("Unknown command")

    # --- L-values ---

    def _lvalues(self, lvalues: list[LValue]) -> str:
        if len(lvalues) == 1:
            return self._lvalue(lvalues[0])
        return "[" + ", ".join(self._lvalue(lv) for lv in lvalues) + "]"

    def _lvalue(self, lv: LValue) -> str:
        match lv:
            case LIgnore():
                return ""
            case LVar(name=name):
                return rename(name)
            case LUnpack(fields=fields):
                parts = [
                    rename(f) + ": " + self._lvalue(inner)
                    for f, inner in fields
                    if not isinstance(inner, LIgnore)
                ]
                if not parts:
                    return "{}"
                return "{ " + ", ".join(parts) + " }"
            case _:
                raise NotImplementedError("Unknown lvalue")
