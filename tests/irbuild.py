"""Small IR factories and output helpers shared by the tests."""

from __future__ import annotations

from movets.backend.context import Config, Context
from movets.backend.typescript import TsBackend
from movets.ir import (
    U64,
    Assign,
    BaseType,
    CommandStmt,
    Exp,
    Function,
    FunctionBody,
    FunctionSignature,
    IgnoreAndPop,
    LValue,
    LVar,
    ModuleIdent,
    Return,
    Stmt,
    StructDef,
    UnitExp,
    Value,
    VarExp,
)

COIN = ModuleIdent("0x1", "coin", "AptosFramework", "aptos_framework")


def contains_normalized(haystack: str, needle: str) -> bool:
    """Check if needle appears in haystack, normalizing line-by-line whitespace."""
    needle_lines = [line.strip() for line in needle.strip().split("\n") if line.strip()]
    haystack_lines = [line.strip() for line in haystack.split("\n") if line.strip()]
    if not needle_lines:
        return True
    for i in range(len(haystack_lines)):
        if haystack_lines[i] == needle_lines[0]:
            match = True
            for j in range(1, len(needle_lines)):
                if i + j >= len(haystack_lines) or haystack_lines[i + j] != needle_lines[j]:
                    match = False
                    break
            if match:
                return True
    return False


def context(module: ModuleIdent = COIN, config: Config | None = None) -> Context:
    return Context(module, config if config is not None else Config())


# --- Expressions ---


def u64(n: int) -> Value:
    return Value("u64", n, typ=U64)


def var(name: str, typ: BaseType = U64, copy: bool = False) -> VarExp:
    return VarExp(name, copy, typ=typ)


def unit() -> UnitExp:
    return UnitExp()


# --- Statements ---


def cmd(command) -> CommandStmt:
    return CommandStmt(command)


def assign(lvalues: list[LValue], rhs: Exp) -> CommandStmt:
    return CommandStmt(Assign(lvalues, rhs))


def set_var(name: str, rhs: Exp) -> CommandStmt:
    return assign([LVar(name)], rhs)


def ret(exp: Exp | None = None) -> CommandStmt:
    return CommandStmt(Return(exp if exp is not None else UnitExp()))


def pop(exp: Exp) -> CommandStmt:
    return CommandStmt(IgnoreAndPop(exp))


# --- Declarations ---


def function(
    parameters: list[tuple[str, BaseType]] | None = None,
    block: list[Stmt] | None = None,
    locals_: dict[str, BaseType] | None = None,
    type_parameters: list[str] | None = None,
    return_type=None,
    visibility: str = "public",
    attributes: list[str] | None = None,
    native: bool = False,
) -> Function:
    params = parameters if parameters is not None else []
    sig = FunctionSignature(
        type_parameters=type_parameters if type_parameters is not None else [],
        parameters=params,
    )
    if return_type is not None:
        sig.return_type = return_type
    body = None
    if not native:
        all_locals = dict(params)
        if locals_ is not None:
            all_locals.update(locals_)
        body = FunctionBody(all_locals, block if block is not None else [])
    return Function(
        signature=sig,
        body=body,
        visibility=visibility,  # type: ignore[arg-type]
        attributes=attributes if attributes is not None else [],
    )


# --- Emission ---


def emit_function(name: str, fdef: Function, module: ModuleIdent = COIN, config: Config | None = None) -> str:
    backend = TsBackend(context(module, config))
    backend.emit_function(name, fdef)
    return backend.w.output()


def emit_struct(name: str, sdef: StructDef, module: ModuleIdent = COIN) -> str:
    backend = TsBackend(context(module))
    backend.emit_struct(name, sdef)
    return backend.w.output()


def lower(block: list[Stmt], module: ModuleIdent = COIN) -> str:
    backend = TsBackend(context(module))
    backend.write_stmts(block)
    return backend.w.output()
