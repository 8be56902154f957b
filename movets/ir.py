"""Movets IR - typed, lowered representation of a Move module.

This module defines the IR consumed by the TypeScript backend. Each node's
docstring documents its semantics and invariants.

Architecture:
    Move source -> Front-end (external) -> [IR] -> Middleend -> Backend -> TypeScript

The front-end produces fully name-resolved, type-checked IR. The middleend
only reads it. The backend emits code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union


# ============================================================
# SOURCE LOCATIONS
# ============================================================


@dataclass(unsafe_hash=True)
class Loc:
    """Source location for diagnostics.

    Invariants:
    - start >= 0 and end >= start (byte offsets into file)
    - file == "" indicates unknown
    """

    file: str
    start: int
    end: int

    def __str__(self) -> str:
        if self.file == "":
            return "<unknown>"
        return f"{self.file}:{self.start}"


def loc_unknown() -> Loc:
    """Factory for unknown source location."""
    return Loc("", 0, 0)


# ============================================================
# MODULE IDENTITY
# ============================================================


@dataclass(unsafe_hash=True)
class ModuleIdent:
    """Fully qualified module name.

    Invariants:
    - address is a 0x-prefixed hex string
    - package is the Move package declaring the module ("" if unknown)
    - address_name is the named address used in source (e.g. "std"), if any
    """

    address: str
    name: str
    package: str = ""
    address_name: str | None = None


# ============================================================
# TYPES
#
# All types are frozen (immutable, hashable). The front-end resolves
# every type to one of these shapes.
# ============================================================


Ability = Literal["copy", "drop", "store", "key"]

BuiltinKind = Literal["bool", "address", "u8", "u64", "u128", "signer", "vector"]


@dataclass(unsafe_hash=True)
class BaseType:
    """Base for all value types. Abstract."""


@dataclass(unsafe_hash=True)
class Builtin(BaseType):
    """Builtin type, possibly applied to arguments.

    | Kind    | TypeScript | Runtime tag                  |
    |---------|------------|------------------------------|
    | bool    | boolean    | AtomicTypeTag.Bool           |
    | address | HexString  | AtomicTypeTag.Address        |
    | u8      | U8         | AtomicTypeTag.U8             |
    | u64     | U64        | AtomicTypeTag.U64            |
    | u128    | U128       | AtomicTypeTag.U128           |
    | signer  | HexString  | (none, never serialized)     |
    | vector  | T[]        | new VectorTag(T)             |

    Invariants:
    - len(args) == 1 if kind == "vector", else 0
    """

    kind: BuiltinKind
    args: tuple[BaseType, ...] = ()


@dataclass(unsafe_hash=True)
class StructType(BaseType):
    """Reference to a struct declared in some module, with generic arguments.

    Invariants:
    - len(args) matches the struct's type parameter count
    """

    module: ModuleIdent
    name: str
    args: tuple[BaseType, ...] = ()


@dataclass(unsafe_hash=True)
class TypeParam(BaseType):
    """Use of a type parameter of the enclosing struct or function."""

    name: str


@dataclass(unsafe_hash=True)
class Ref(BaseType):
    """Reference (&T or &mut T) to a base type.

    Only valid as a single type (parameter, local, expression type), never as
    a field, vector element or generic argument.
    """

    inner: BaseType
    mutable: bool = False


SingleType = Union[Builtin, StructType, TypeParam, Ref]


@dataclass(unsafe_hash=True)
class Unit:
    """Result type of functions returning nothing."""


@dataclass(unsafe_hash=True)
class Multiple:
    """Result type of functions returning a tuple.

    Invariants:
    - len(types) >= 2
    """

    types: tuple[BaseType, ...]


ResultType = Union[Unit, Multiple, Builtin, StructType, TypeParam, Ref]

BOOL = Builtin("bool")
ADDRESS = Builtin("address")
U8 = Builtin("u8")
U64 = Builtin("u64")
U128 = Builtin("u128")
SIGNER = Builtin("signer")
UNIT = Unit()

INTEGER_KINDS = ("u8", "u64", "u128")
ATOMIC_KINDS = ("bool", "address", "u8", "u64", "u128")


def vector(element: BaseType) -> Builtin:
    """Construct vector<element>."""
    return Builtin("vector", (element,))


# ============================================================
# TOP-LEVEL DECLARATIONS
# ============================================================


@dataclass
class StructTypeParameter:
    """Type parameter of a struct. Phantom parameters do not appear in fields."""

    name: str
    is_phantom: bool = False


@dataclass
class StructDef:
    """Struct definition.

    Invariants:
    - fields is None for native structs (no visible layout)
    - Field names are unique; field order is the on-chain layout order
    - abilities is never modified by the backend
    """

    abilities: frozenset[str] = frozenset()
    type_parameters: list[StructTypeParameter] = field(default_factory=list)
    fields: list[tuple[str, BaseType]] | None = field(default_factory=list)
    loc: Loc = field(default_factory=loc_unknown)

    @property
    def is_native(self) -> bool:
        return self.fields is None

    def has_ability(self, ability: Ability) -> bool:
        return ability in self.abilities


@dataclass
class FunctionSignature:
    """Function signature.

    Invariants:
    - Parameter names are unique
    - Parameter types are single types (base or reference)
    """

    type_parameters: list[str] = field(default_factory=list)
    parameters: list[tuple[str, BaseType]] = field(default_factory=list)
    return_type: ResultType = field(default_factory=Unit)


@dataclass
class FunctionBody:
    """Defined function body.

    locals is the flat, function-scoped map of every local (parameters
    included) to its type. The front-end does not say where a local is first
    bound; see middleend.declarations.
    """

    locals: dict[str, BaseType]
    block: list[Stmt]


Visibility = Literal["public", "friend", "internal", "script"]


@dataclass
class Function:
    """Function definition.

    Semantics:
    - body is None for native functions (implemented by the runtime)
    - visibility == "script" marks an entry point callable as a transaction
    """

    signature: FunctionSignature
    body: FunctionBody | None = None
    visibility: Visibility = "internal"
    attributes: list[str] = field(default_factory=list)
    loc: Loc = field(default_factory=loc_unknown)

    @property
    def is_native(self) -> bool:
        return self.body is None

    @property
    def is_entry(self) -> bool:
        return self.visibility == "script"


@dataclass
class Constant:
    """Module-level constant; the value is computed by a block."""

    signature: BaseType
    block: list[Stmt]
    loc: Loc = field(default_factory=loc_unknown)


@dataclass
class Module:
    """A complete translation unit.

    Invariants (post-front-end):
    - Names are unique within constants, structs and functions
    - Dict order is declaration order
    """

    ident: ModuleIdent
    package_name: str | None = None
    constants: dict[str, Constant] = field(default_factory=dict)
    structs: dict[str, StructDef] = field(default_factory=dict)
    functions: dict[str, Function] = field(default_factory=dict)


# ============================================================
# STATEMENTS
# ============================================================


@dataclass(kw_only=True)
class Stmt:
    """Base for all statements. Abstract."""

    loc: Loc = field(default_factory=loc_unknown)


Block = list[Stmt]


@dataclass
class CommandStmt(Stmt):
    """A single command."""

    cmd: Command


@dataclass
class IfElse(Stmt):
    """Conditional statement.

    Invariants:
    - cond.typ is BOOL
    """

    cond: Exp
    if_block: list[Stmt]
    else_block: list[Stmt] = field(default_factory=list)


@dataclass
class While(Stmt):
    """Conditional loop.

    Semantics:
    - Each iteration runs pre_block, then evaluates cond; the loop ends when
      cond is false, otherwise block runs
    - pre_block holds the side-effecting setup the condition depends on
    """

    pre_block: list[Stmt]
    cond: Exp
    block: list[Stmt]


@dataclass
class Loop(Stmt):
    """Unconditional loop. has_break is informational."""

    block: list[Stmt]
    has_break: bool = False


# ============================================================
# COMMANDS
# ============================================================


@dataclass(kw_only=True)
class Command:
    """Base for all commands. Abstract."""

    loc: Loc = field(default_factory=loc_unknown)


@dataclass
class Assign(Command):
    """Bind the value of rhs to lvalues.

    Invariants:
    - len(lvalues) == 1 unless rhs produces a tuple
    """

    lvalues: list[LValue]
    rhs: Exp


@dataclass
class Mutate(Command):
    """Write rhs through the reference lhs: *lhs = rhs."""

    lhs: Exp
    rhs: Exp


@dataclass
class Abort(Command):
    """Abort the transaction with an error code."""

    code: Exp


@dataclass
class Return(Command):
    """Return from function. exp is UnitExp for functions returning nothing."""

    exp: Exp


@dataclass
class Break(Command):
    pass


@dataclass
class Continue(Command):
    pass


@dataclass
class IgnoreAndPop(Command):
    """Evaluate exp for its effects and discard pop_num values."""

    exp: Exp
    pop_num: int = 0


@dataclass
class Jump(Command):
    """Raw control transfer to a labeled block. Has no TypeScript equivalent."""

    target: int
    from_user: bool = False


# ============================================================
# LVALUES
# ============================================================


@dataclass(kw_only=True)
class LValue:
    """Base for assignment targets. Abstract."""

    loc: Loc = field(default_factory=loc_unknown)


@dataclass
class LIgnore(LValue):
    """Discard the value (Move `_`)."""


@dataclass
class LVar(LValue):
    """Bind the value to a local."""

    name: str
    typ: BaseType | None = None


@dataclass
class LUnpack(LValue):
    """Destructure a struct value into its fields.

    Invariants:
    - fields lists (field_name, lvalue) pairs in declaration order
    """

    module: ModuleIdent
    name: str
    type_args: tuple[BaseType, ...] = ()
    fields: list[tuple[str, LValue]] = field(default_factory=list)


# ============================================================
# EXPRESSIONS
#
# Expressions are opaque to control-flow lowering: they are handed to the
# term evaluator which renders each one as an inline TypeScript expression.
# ============================================================


@dataclass(kw_only=True)
class Exp:
    """Base for all expressions. Abstract.

    Invariants (post-front-end):
    - typ is fully resolved (a single type, Unit or Multiple)
    """

    typ: ResultType = field(default_factory=Unit)
    loc: Loc = field(default_factory=loc_unknown)


@dataclass
class UnitExp(Exp):
    """The unit value ()."""


@dataclass
class Value(Exp):
    """Literal value.

    Invariants:
    - kind "bytes" has a list[int] value, "address" a hex string,
      "bool" a bool, integer kinds an int
    """

    kind: Literal["bool", "address", "u8", "u64", "u128", "bytes"]
    value: object


@dataclass
class VarExp(Exp):
    """Read of a local: move or copy."""

    name: str
    copy: bool = False


@dataclass
class ConstantRef(Exp):
    """Reference to a module constant."""

    module: ModuleIdent
    name: str


@dataclass
class ModuleCall(Exp):
    """Call of a module function."""

    module: ModuleIdent
    name: str
    type_args: tuple[BaseType, ...] = ()
    args: list[Exp] = field(default_factory=list)


@dataclass
class Pack(Exp):
    """Struct construction.

    Invariants:
    - fields lists (field_name, value) pairs in declaration order
    """

    module: ModuleIdent
    name: str
    type_args: tuple[BaseType, ...] = ()
    fields: list[tuple[str, Exp]] = field(default_factory=list)


@dataclass
class ExpList(Exp):
    """Tuple of values."""

    items: list[Exp] = field(default_factory=list)


@dataclass
class Borrow(Exp):
    """Borrow of a field: &e.field or &mut e.field."""

    exp: Exp
    field_name: str
    mutable: bool = False


@dataclass
class BorrowLocal(Exp):
    """Borrow of a local: &x or &mut x."""

    name: str
    mutable: bool = False


@dataclass
class Dereference(Exp):
    """Read through a reference: *e."""

    exp: Exp


@dataclass
class Freeze(Exp):
    """Convert &mut T to &T."""

    exp: Exp


@dataclass
class UnaryExp(Exp):
    """Unary operation. op is "!"."""

    op: str
    exp: Exp


@dataclass
class BinaryExp(Exp):
    """Binary operation.

    Invariants:
    - op is one of: + - * / % & | ^ << >> < <= > >= == != && ||
    """

    left: Exp
    op: str
    right: Exp


@dataclass
class Cast(Exp):
    """Integer cast: (e as u64)."""

    exp: Exp
    to: Builtin


@dataclass
class VectorLit(Exp):
    """Vector literal: vector[a, b]."""

    element: BaseType
    items: list[Exp] = field(default_factory=list)
