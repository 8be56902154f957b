"""Type mapper: IR types to TypeScript types and runtime type tags.

TypeScript erases generics, so besides the static type name every type also
has a runtime type tag: a value built at run time that describes the type's
shape. The two mappings are independent functions over the same IR types.

| IR type            | ts_type         | runtime tag expression                         |
|--------------------|-----------------|------------------------------------------------|
| bool               | boolean         | AtomicTypeTag.Bool                             |
| address            | HexString       | AtomicTypeTag.Address                          |
| u8 / u64 / u128    | U8 / U64 / U128 | AtomicTypeTag.U8 / .U64 / .U128                |
| signer             | HexString       | (none)                                         |
| vector<T>          | T[]             | new VectorTag(T)                               |
| 0x1::m::S<T>       | m.S<T>          | new StructTag(new HexString("0x1"), "m", "S", [T]) |
| T (struct param i) | T               | new $.TypeParamIdx(i)                          |
| T (function param) | any             | $p[i]                                          |
"""

from __future__ import annotations

from dataclasses import dataclass

from ..diagnostics import Diagnostic
from ..ir import (
    ATOMIC_KINDS,
    BaseType,
    Builtin,
    Loc,
    ModuleIdent,
    Multiple,
    Ref,
    ResultType,
    StructType,
    TypeParam,
    Unit,
)
from .context import Context
from .util import format_address, quote, rename

_ATOMIC_TS = {
    "bool": "boolean",
    "address": "HexString",
    "u8": "U8",
    "u64": "U64",
    "u128": "U128",
    "signer": "HexString",
}

_ATOMIC_TAG = {
    "bool": "AtomicTypeTag.Bool",
    "address": "AtomicTypeTag.Address",
    "u8": "AtomicTypeTag.U8",
    "u64": "AtomicTypeTag.U64",
    "u128": "AtomicTypeTag.U128",
}


# ============================================================
# STATIC TYPES
# ============================================================


def ts_type(ty: BaseType, c: Context) -> str:
    """TypeScript type of a base or reference type."""
    match ty:
        case Ref(inner=inner):
            return ts_type(inner, c)
        case Builtin(kind="vector", args=args):
            return _array_of(ts_type(args[0], c))
        case Builtin(kind=kind):
            return _ATOMIC_TS[kind]
        case StructType(module=module, name=name, args=args):
            qualified = c.qualify(module, rename(name))
            if args:
                return qualified + "<" + ", ".join(ts_type(a, c) for a in args) + ">"
            return qualified
        case TypeParam(name=name):
            if c.struct_type_params is not None and name in c.struct_type_params:
                return rename(name)
            return "any"
        case _:
            raise NotImplementedError("Unknown type")


def ts_return_type(ty: ResultType, c: Context) -> str:
    """TypeScript return type of a function."""
    match ty:
        case Unit():
            return "void"
        case Multiple(types=types):
            return "[" + ", ".join(ts_type(t, c) for t in types) + "]"
        case _:
            return ts_type(ty, c)


def _array_of(element: str) -> str:
    return element + "[]"


def constant_type(ty: BaseType, c: Context, loc: Loc | None = None) -> str:
    """TypeScript type of a module constant.

    Constants are emitted at module scope where no type-tag arguments exist,
    so only atomics and (nested) vectors of atomics are accepted.
    """
    match ty:
        case Builtin(kind="vector", args=args):
            return _array_of(constant_type(args[0], c, loc))
        case Builtin(kind=kind) if kind in ATOMIC_KINDS:
            return _ATOMIC_TS[kind]
        case _:
            raise Diagnostic("Unsupported constant type: only builtin types are supported", loc)


# ============================================================
# RUNTIME TYPE TAGS
# ============================================================


@dataclass(frozen=True)
class TypeTag:
    """Runtime type tag built at translation time. Abstract."""


@dataclass(frozen=True)
class AtomicTag(TypeTag):
    kind: str


@dataclass(frozen=True)
class VectorTag(TypeTag):
    inner: TypeTag


@dataclass(frozen=True)
class StructTag(TypeTag):
    module: ModuleIdent
    name: str
    args: tuple[TypeTag, ...] = ()


@dataclass(frozen=True)
class ParamTag(TypeTag):
    """Type parameter resolved to its position.

    positional: refers to the caller-supplied `$p` array (function bodies);
    otherwise to the struct's own parameter list (field descriptors).
    """

    index: int
    positional: bool


def type_tag(ty: BaseType, tparams: list[str] | None, loc: Loc | None = None) -> TypeTag:
    """Build the runtime tag of a type.

    tparams is the struct's own parameter list when describing struct fields,
    or None inside a function; see Context.current_function.
    """
    match ty:
        case Builtin(kind="vector", args=args):
            return VectorTag(type_tag(args[0], tparams, loc))
        case Builtin(kind="signer"):
            raise Diagnostic("signer has no runtime type tag", loc)
        case Builtin(kind=kind):
            return AtomicTag(kind)
        case StructType(module=module, name=name, args=args):
            return StructTag(module, name, tuple(type_tag(a, tparams, loc) for a in args))
        case TypeParam(name=name):
            if tparams is None or name not in tparams:
                raise Diagnostic("Unresolved type parameter " + name, loc)
            return ParamTag(tparams.index(name), positional=False)
        case Ref():
            raise Diagnostic("References have no runtime type tag", loc)
        case _:
            raise NotImplementedError("Unknown type")


def function_type_tag(ty: BaseType, c: Context, loc: Loc | None = None) -> TypeTag:
    """Runtime tag of a type used inside the current function body."""
    tparams = c.current_function.type_parameters if c.current_function is not None else []
    tag = type_tag(ty, tparams, loc)
    return _positional(tag)


def _positional(tag: TypeTag) -> TypeTag:
    match tag:
        case ParamTag(index=index):
            return ParamTag(index, positional=True)
        case VectorTag(inner=inner):
            return VectorTag(_positional(inner))
        case StructTag(module=module, name=name, args=args):
            return StructTag(module, name, tuple(_positional(a) for a in args))
        case _:
            return tag


def render_tag(tag: TypeTag, c: Context) -> str:
    """TypeScript expression constructing a runtime tag."""
    match tag:
        case AtomicTag(kind=kind):
            return _ATOMIC_TAG[kind]
        case VectorTag(inner=inner):
            return "new VectorTag(" + render_tag(inner, c) + ")"
        case StructTag(module=module, name=name, args=args):
            address = "new HexString(" + quote(format_address(module.address)) + ")"
            rendered = ", ".join(render_tag(a, c) for a in args)
            return (
                "new StructTag("
                + address
                + ", "
                + quote(module.name)
                + ", "
                + quote(name)
                + ", ["
                + rendered
                + "])"
            )
        case ParamTag(index=index, positional=True):
            return "$p[" + str(index) + "]"
        case ParamTag(index=index):
            return "new $.TypeParamIdx(" + str(index) + ")"
        case _:
            raise NotImplementedError("Unknown type tag")


def typetag_builder(ty: BaseType, tparams: list[str] | None, c: Context, loc: Loc | None = None) -> str:
    """Runtime tag expression of a struct field type."""
    return render_tag(type_tag(ty, tparams, loc), c)


def tag_to_type(tag: TypeTag, tparams: list[str]) -> BaseType:
    """Inverse of type_tag: recover the IR type a tag describes."""
    match tag:
        case AtomicTag(kind=kind):
            return Builtin(kind)
        case VectorTag(inner=inner):
            return Builtin("vector", (tag_to_type(inner, tparams),))
        case StructTag(module=module, name=name, args=args):
            return StructType(module, name, tuple(tag_to_type(a, tparams) for a in args))
        case ParamTag(index=index):
            return TypeParam(tparams[index])
        case _:
            raise NotImplementedError("Unknown type tag")


# ============================================================
# TYPE INSPECTION
# ============================================================


def extract_builtin(ty: BaseType) -> Builtin | None:
    """The builtin behind a base or reference type, if any."""
    if isinstance(ty, Ref):
        ty = ty.inner
    if isinstance(ty, Builtin):
        return ty
    return None


def is_signer(ty: BaseType) -> bool:
    """True for signer and &signer."""
    builtin = extract_builtin(ty)
    return builtin is not None and builtin.kind == "signer"
