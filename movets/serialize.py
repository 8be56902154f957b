"""Conversion between IR objects and JSON-compatible dicts.

Every IR node is an object whose "_type" names its class and whose other keys
are the dataclass fields. Atomic builtin types may be written as plain
strings ("u64"), and "loc" may be omitted anywhere.
"""

from __future__ import annotations

import dataclasses

from .diagnostics import Diagnostic
from .ir import (
    Abort,
    Assign,
    BaseType,
    BinaryExp,
    Borrow,
    BorrowLocal,
    Break,
    Builtin,
    Cast,
    Command,
    CommandStmt,
    Constant,
    ConstantRef,
    Continue,
    Dereference,
    Exp,
    ExpList,
    Freeze,
    Function,
    FunctionBody,
    FunctionSignature,
    IfElse,
    IgnoreAndPop,
    Jump,
    LIgnore,
    LUnpack,
    LValue,
    LVar,
    Loc,
    Loop,
    Module,
    ModuleCall,
    ModuleIdent,
    Multiple,
    Mutate,
    Pack,
    Ref,
    ResultType,
    Return,
    Stmt,
    StructDef,
    StructType,
    StructTypeParameter,
    TypeParam,
    UnaryExp,
    Unit,
    UnitExp,
    Value,
    VarExp,
    VectorLit,
    While,
    loc_unknown,
)

Json = dict[str, object]

_BUILTIN_KINDS = ("bool", "address", "u8", "u64", "u128", "signer", "vector")


# ============================================================
# IR -> JSON
# ============================================================


def serialize(obj: object) -> object:
    """Recursively serialize an object to a JSON-compatible structure."""
    if obj is None:
        return None
    if isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [serialize(x) for x in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(serialize(x) for x in obj)
    if isinstance(obj, dict):
        return {str(k): serialize(v) for k, v in obj.items()}
    if isinstance(obj, Builtin) and obj.kind != "vector":
        return obj.kind
    if dataclasses.is_dataclass(obj):
        result: Json = {"_type": type(obj).__name__}
        for f in dataclasses.fields(obj):
            value = getattr(obj, f.name)
            if f.name == "loc" and value == loc_unknown():
                continue
            result[f.name] = serialize(value)
        return result
    raise TypeError("cannot serialize " + type(obj).__name__)


# ============================================================
# JSON -> IR
# ============================================================


def module_entries(data: object) -> list[object]:
    """Unloaded module objects of {"modules": [...]}, a list of modules, or one module."""
    if isinstance(data, dict) and "modules" in data:
        data = data["modules"]
    if isinstance(data, list):
        return data
    return [data]


def load_modules(data: object) -> list[Module]:
    return [load_module(m) for m in module_entries(data)]


def load_module(obj: object) -> Module:
    d = _expect_dict(obj, "module")
    return Module(
        ident=load_ident(d["ident"]),
        package_name=_opt_str(d.get("package_name")),
        constants={name: _load_constant(c) for name, c in _expect_dict(d.get("constants", {}), "constants").items()},
        structs={name: _load_struct(s) for name, s in _expect_dict(d.get("structs", {}), "structs").items()},
        functions={name: _load_function(f) for name, f in _expect_dict(d.get("functions", {}), "functions").items()},
    )


def load_ident(obj: object) -> ModuleIdent:
    d = _expect_dict(obj, "module ident")
    return ModuleIdent(
        address=str(d["address"]),
        name=str(d["name"]),
        package=str(d.get("package", "")),
        address_name=_opt_str(d.get("address_name")),
    )


def load_loc(obj: object) -> Loc:
    if obj is None:
        return loc_unknown()
    d = _expect_dict(obj, "loc")
    return Loc(str(d.get("file", "")), int(d.get("start", 0)), int(d.get("end", 0)))


def _load_constant(obj: object) -> Constant:
    d = _expect_dict(obj, "constant")
    return Constant(
        signature=load_type(d["signature"]),
        block=load_block(d["block"]),
        loc=load_loc(d.get("loc")),
    )


def _load_struct(obj: object) -> StructDef:
    d = _expect_dict(obj, "struct")
    fields = d.get("fields", [])
    return StructDef(
        abilities=frozenset(str(a) for a in _expect_list(d.get("abilities", []), "abilities")),
        type_parameters=[
            StructTypeParameter(str(tp["name"]), bool(tp.get("is_phantom", False)))
            for tp in _expect_list(d.get("type_parameters", []), "type parameters")
        ],
        fields=None if fields is None else [(str(n), load_type(t)) for n, t in _expect_list(fields, "fields")],
        loc=load_loc(d.get("loc")),
    )


def _load_function(obj: object) -> Function:
    d = _expect_dict(obj, "function")
    sig = _expect_dict(d["signature"], "signature")
    signature = FunctionSignature(
        type_parameters=[str(t) for t in _expect_list(sig.get("type_parameters", []), "type parameters")],
        parameters=[(str(n), load_type(t)) for n, t in _expect_list(sig.get("parameters", []), "parameters")],
        return_type=load_type(sig.get("return_type", "unit")),
    )
    body: FunctionBody | None = None
    if d.get("body") is not None:
        b = _expect_dict(d["body"], "body")
        body = FunctionBody(
            locals={str(n): load_type(t) for n, t in _expect_dict(b.get("locals", {}), "locals").items()},
            block=load_block(b["block"]),
        )
    visibility = str(d.get("visibility", "internal"))
    if visibility not in ("public", "friend", "internal", "script"):
        raise Diagnostic("unknown visibility '" + visibility + "'", load_loc(d.get("loc")))
    return Function(
        signature=signature,
        body=body,
        visibility=visibility,  # type: ignore[arg-type]
        attributes=[str(a) for a in _expect_list(d.get("attributes", []), "attributes")],
        loc=load_loc(d.get("loc")),
    )


def load_type(obj: object) -> ResultType:
    """Load a type; atomic builtins and "unit" may be plain strings."""
    if isinstance(obj, str):
        if obj == "unit":
            return Unit()
        if obj not in _BUILTIN_KINDS or obj == "vector":
            raise Diagnostic("unknown type '" + obj + "'")
        return Builtin(obj)  # type: ignore[arg-type]
    d = _expect_dict(obj, "type")
    match d.get("_type"):
        case "Builtin":
            kind = d["kind"]
            if kind not in _BUILTIN_KINDS:
                raise Diagnostic("unknown type '" + str(kind) + "'")
            args = _load_base_types(d.get("args", []))
            if len(args) != (1 if kind == "vector" else 0):
                raise Diagnostic("wrong number of type arguments for " + str(kind))
            return Builtin(kind, args)  # type: ignore[arg-type]
        case "StructType":
            return StructType(load_ident(d["module"]), str(d["name"]), _load_base_types(d.get("args", [])))
        case "TypeParam":
            return TypeParam(str(d["name"]))
        case "Ref":
            return Ref(_load_base_type(d["inner"]), bool(d.get("mutable", False)))
        case "Unit":
            return Unit()
        case "Multiple":
            return Multiple(_load_base_types(d["types"]))
        case other:
            raise Diagnostic("unknown type node '" + str(other) + "'")


def _load_base_type(obj: object) -> BaseType:
    ty = load_type(obj)
    if isinstance(ty, (Unit, Multiple)):
        raise Diagnostic("expected a single type")
    return ty


def _load_base_types(obj: object) -> tuple[BaseType, ...]:
    return tuple(_load_base_type(t) for t in _expect_list(obj, "types"))


def load_block(obj: object) -> list[Stmt]:
    return [load_stmt(s) for s in _expect_list(obj, "block")]


def load_stmt(obj: object) -> Stmt:
    d = _expect_dict(obj, "statement")
    loc = load_loc(d.get("loc"))
    match d.get("_type"):
        case "CommandStmt":
            return CommandStmt(load_command(d["cmd"]), loc=loc)
        case "IfElse":
            return IfElse(
                load_exp(d["cond"]),
                load_block(d["if_block"]),
                load_block(d.get("else_block", [])),
                loc=loc,
            )
        case "While":
            return While(
                load_block(d.get("pre_block", [])),
                load_exp(d["cond"]),
                load_block(d["block"]),
                loc=loc,
            )
        case "Loop":
            return Loop(load_block(d["block"]), bool(d.get("has_break", False)), loc=loc)
        case other:
            raise Diagnostic("unknown statement '" + str(other) + "'", loc)


def load_command(obj: object) -> Command:
    d = _expect_dict(obj, "command")
    loc = load_loc(d.get("loc"))
    match d.get("_type"):
        case "Assign":
            lvalues = [load_lvalue(lv) for lv in _expect_list(d["lvalues"], "lvalues")]
            return Assign(lvalues, load_exp(d["rhs"]), loc=loc)
        case "Mutate":
            return Mutate(load_exp(d["lhs"]), load_exp(d["rhs"]), loc=loc)
        case "Abort":
            return Abort(load_exp(d["code"]), loc=loc)
        case "Return":
            return Return(load_exp(d.get("exp", {"_type": "UnitExp"})), loc=loc)
        case "Break":
            return Break(loc=loc)
        case "Continue":
            return Continue(loc=loc)
        case "IgnoreAndPop":
            return IgnoreAndPop(load_exp(d["exp"]), int(d.get("pop_num", 0)), loc=loc)
        case "Jump":
            return Jump(int(d.get("target", 0)), bool(d.get("from_user", False)), loc=loc)
        case other:
            raise Diagnostic("unknown command '" + str(other) + "'", loc)


def load_lvalue(obj: object) -> LValue:
    d = _expect_dict(obj, "lvalue")
    loc = load_loc(d.get("loc"))
    match d.get("_type"):
        case "LIgnore":
            return LIgnore(loc=loc)
        case "LVar":
            typ = d.get("typ")
            return LVar(str(d["name"]), None if typ is None else _load_base_type(typ), loc=loc)
        case "LUnpack":
            return LUnpack(
                load_ident(d["module"]),
                str(d["name"]),
                _load_base_types(d.get("type_args", [])),
                [(str(f), load_lvalue(lv)) for f, lv in _expect_list(d.get("fields", []), "fields")],
                loc=loc,
            )
        case other:
            raise Diagnostic("unknown lvalue '" + str(other) + "'", loc)


def load_exp(obj: object) -> Exp:
    d = _expect_dict(obj, "expression")
    loc = load_loc(d.get("loc"))
    typ = load_type(d["typ"]) if d.get("typ") is not None else Unit()
    match d.get("_type"):
        case "UnitExp":
            return UnitExp(typ=typ, loc=loc)
        case "Value":
            return Value(str(d["kind"]), d["value"], typ=typ, loc=loc)  # type: ignore[arg-type]
        case "VarExp":
            return VarExp(str(d["name"]), bool(d.get("copy", False)), typ=typ, loc=loc)
        case "ConstantRef":
            return ConstantRef(load_ident(d["module"]), str(d["name"]), typ=typ, loc=loc)
        case "ModuleCall":
            return ModuleCall(
                load_ident(d["module"]),
                str(d["name"]),
                _load_base_types(d.get("type_args", [])),
                _load_exps(d.get("args", [])),
                typ=typ,
                loc=loc,
            )
        case "Pack":
            return Pack(
                load_ident(d["module"]),
                str(d["name"]),
                _load_base_types(d.get("type_args", [])),
                [(str(f), load_exp(e)) for f, e in _expect_list(d.get("fields", []), "fields")],
                typ=typ,
                loc=loc,
            )
        case "ExpList":
            return ExpList(_load_exps(d.get("items", [])), typ=typ, loc=loc)
        case "Borrow":
            return Borrow(load_exp(d["exp"]), str(d["field_name"]), bool(d.get("mutable", False)), typ=typ, loc=loc)
        case "BorrowLocal":
            return BorrowLocal(str(d["name"]), bool(d.get("mutable", False)), typ=typ, loc=loc)
        case "Dereference":
            return Dereference(load_exp(d["exp"]), typ=typ, loc=loc)
        case "Freeze":
            return Freeze(load_exp(d["exp"]), typ=typ, loc=loc)
        case "UnaryExp":
            return UnaryExp(str(d["op"]), load_exp(d["exp"]), typ=typ, loc=loc)
        case "BinaryExp":
            return BinaryExp(load_exp(d["left"]), str(d["op"]), load_exp(d["right"]), typ=typ, loc=loc)
        case "Cast":
            to = load_type(d["to"])
            if not isinstance(to, Builtin):
                raise Diagnostic("cast target must be a builtin type", loc)
            return Cast(load_exp(d["exp"]), to, typ=typ, loc=loc)
        case "VectorLit":
            return VectorLit(_load_base_type(d["element"]), _load_exps(d.get("items", [])), typ=typ, loc=loc)
        case other:
            raise Diagnostic("unknown expression '" + str(other) + "'", loc)


def _load_exps(obj: object) -> list[Exp]:
    return [load_exp(e) for e in _expect_list(obj, "expressions")]


# --- Shape checks ---


def _expect_dict(obj: object, what: str) -> Json:
    if not isinstance(obj, dict):
        raise Diagnostic("expected an object for " + what)
    return obj


def _expect_list(obj: object, what: str) -> list:
    if not isinstance(obj, list):
        raise Diagnostic("expected a list for " + what)
    return obj


def _opt_str(obj: object) -> str | None:
    return None if obj is None else str(obj)
