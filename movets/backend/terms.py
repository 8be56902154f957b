"""Term evaluator: IR expressions to inline TypeScript expressions.

Control-flow lowering treats this as an opaque service with the contract
term(expr) -> str, raising Diagnostic for shapes it cannot render. Integers
are runtime objects (U8, U64, U128), so arithmetic and comparison become
method calls.
"""

from __future__ import annotations

from ..diagnostics import Diagnostic
from ..ir import (
    BinaryExp,
    Borrow,
    BorrowLocal,
    Builtin,
    Cast,
    ConstantRef,
    Dereference,
    Exp,
    ExpList,
    Freeze,
    Loc,
    ModuleCall,
    Pack,
    Ref,
    StructType,
    UnaryExp,
    UnitExp,
    Value,
    VarExp,
    VectorLit,
)
from .context import Context
from .types import function_type_tag, render_tag
from .util import format_address, quote, rename

_METHOD_OPS = {
    "+": "add",
    "-": "sub",
    "*": "mul",
    "/": "div",
    "%": "mod",
    "&": "and",
    "|": "or",
    "^": "xor",
    "<<": "shl",
    ">>": "shr",
    "<": "lt",
    "<=": "le",
    ">": "gt",
    ">=": "ge",
}


def is_unit(exp: Exp) -> bool:
    """True for the unit value ()."""
    return isinstance(exp, UnitExp)


class TermEvaluator:
    """Render expressions against a module translation context."""

    def __init__(self, c: Context) -> None:
        self.c = c

    def __call__(self, exp: Exp) -> str:
        return self.term(exp)

    def term(self, exp: Exp) -> str:
        match exp:
            case UnitExp():
                return "undefined"
            case Value(kind=kind, value=value):
                return _value(kind, value, exp.loc)
            case VarExp(name=name, copy=copy):
                if copy and not _is_primitive(exp):
                    return "$.copy(" + rename(name) + ")"
                return rename(name)
            case ConstantRef(module=module, name=name):
                return self.c.qualify(module, rename(name))
            case ModuleCall(module=module, name=name, type_args=type_args, args=args):
                args_str = [self.term(a) for a in args]
                args_str.append("$c")
                if type_args:
                    tags = [render_tag(function_type_tag(t, self.c, exp.loc), self.c) for t in type_args]
                    args_str.append("[" + ", ".join(tags) + "]")
                func = self.c.qualify(module, rename(name) + "$")
                return func + "(" + ", ".join(args_str) + ")"
            case Pack(module=module, name=name, type_args=type_args, fields=fields):
                struct = self.c.qualify(module, rename(name))
                entries = ", ".join(f + ": " + self.term(v) for f, v in fields)
                tag = render_tag(
                    function_type_tag(StructType(module, name, type_args), self.c, exp.loc),
                    self.c,
                )
                return "new " + struct + "({ " + entries + " }, " + tag + ")"
            case ExpList(items=items):
                return "[" + ", ".join(self.term(i) for i in items) + "]"
            case VectorLit(items=items):
                return "[" + ", ".join(self.term(i) for i in items) + "]"
            case Borrow(exp=inner, field_name=field_name):
                return self.term(inner) + "." + rename(field_name)
            case BorrowLocal(name=name):
                return rename(name)
            case Dereference(exp=inner):
                if _is_primitive(exp):
                    return self.term(inner)
                return "$.copy(" + self.term(inner) + ")"
            case Freeze(exp=inner):
                return self.term(inner)
            case UnaryExp(op="!", exp=inner):
                return "!" + self._operand(inner)
            case BinaryExp(left=left, op=op, right=right):
                return self._binary(op, left, right)
            case Cast(exp=inner, to=to):
                return to.kind + "(" + self.term(inner) + ")"
            case _:
                raise Diagnostic("Unsupported expression " + type(exp).__name__, exp.loc)

    def _binary(self, op: str, left: Exp, right: Exp) -> str:
        if op in _METHOD_OPS:
            return self._operand(left) + "." + _METHOD_OPS[op] + "(" + self.term(right) + ")"
        if op == "==":
            return "$.deep_eq(" + self.term(left) + ", " + self.term(right) + ")"
        if op == "!=":
            return "!$.deep_eq(" + self.term(left) + ", " + self.term(right) + ")"
        if op in ("&&", "||"):
            return self._operand(left) + " " + op + " " + self._operand(right)
        raise Diagnostic("Unsupported binary operator " + op, left.loc)

    def _operand(self, exp: Exp) -> str:
        """Term, parenthesized when it is itself an infix expression."""
        text = self.term(exp)
        if isinstance(exp, BinaryExp) and exp.op in ("&&", "||"):
            return "(" + text + ")"
        return text


def _value(kind: str, value: object, loc: Loc) -> str:
    if kind == "bool":
        return "true" if value else "false"
    if kind == "address":
        return "new HexString(" + quote(format_address(str(value))) + ")"
    if kind == "bytes":
        if not isinstance(value, list):
            raise Diagnostic("Byte string literal must be a list of integers", loc)
        return "[" + ", ".join('u8("' + str(b) + '")' for b in value) + "]"
    return kind + '("' + str(value) + '")'


def _is_primitive(exp: Exp) -> bool:
    """Values of these types are immutable at run time and need no copy."""
    ty = exp.typ
    if isinstance(ty, Ref):
        ty = ty.inner
    return isinstance(ty, Builtin) and ty.kind != "vector"
