"""TypeScript backend: Move IR → TypeScript code.

Every module becomes one file. Structs become classes carrying a runtime
descriptor (type parameters, field tags, parser, resource loader); functions
become exported functions taking the data cache `$c` and, when generic, the
positional type-tag array `$p`. Entry functions also get a payload builder.
"""

from __future__ import annotations

from typing import Callable

from ..diagnostics import Diagnostic, InternalError
from ..ir import (
    INTEGER_KINDS,
    BaseType,
    Builtin,
    CommandStmt,
    Constant,
    Exp,
    Function,
    Loc,
    Module,
    ModuleIdent,
    Return,
    Stmt,
    StructDef,
)
from ..middleend.declarations import compute_undeclared
from .context import Config, Context
from .jslike import JsLikeBackend
from .types import (
    constant_type,
    extract_builtin,
    is_signer,
    ts_return_type,
    ts_type,
    typetag_builder,
)
from .util import (
    format_address,
    module_file_path,
    native_function_name,
    qualified_function_name,
    quote,
    rename,
)

RUNTIME_IMPORTS: list[str] = [
    'import * as $ from "@manahippo/move-to-ts";',
    'import {AptosDataCache, AptosParserRepo} from "@manahippo/move-to-ts";',
    'import {U8, U64, U128} from "@manahippo/move-to-ts";',
    'import {u8, u64, u128} from "@manahippo/move-to-ts";',
    'import {TypeParamDeclType, FieldDeclType} from "@manahippo/move-to-ts";',
    'import {AtomicTypeTag, StructTag, TypeTag, VectorTag} from "@manahippo/move-to-ts";',
    'import {HexString, AptosClient} from "aptos";',
]


class TsBackend(JsLikeBackend):
    """Emit TypeScript code for one module."""

    # --- Module structure ---

    def emit_module(self, module: Module) -> None:
        package_name = module.package_name if module.package_name is not None else ""
        self.w.writeln("export const packageName = " + quote(package_name) + ";")
        self.w.writeln(
            "export const moduleAddress = new HexString("
            + quote(format_address(module.ident.address))
            + ");"
        )
        self.w.writeln("export const moduleName = " + quote(module.ident.name) + ";")
        self.w.new_line()
        for name, const in module.constants.items():
            self.emit_constant(name, const)
        self.w.new_line()
        for name, sdef in module.structs.items():
            self.emit_struct(name, sdef)
        for name, fdef in module.functions.items():
            self.emit_function(name, fdef)

    # --- Constants ---

    def emit_constant(self, name: str, const: Constant) -> None:
        typ = constant_type(const.signature, self.c, const.loc)
        self.w.write("export const " + rename(name) + " : " + typ + " = ")
        value = _single_return_value(const.block)
        if value is not None:
            self.w.writeln(self.term(value) + ";")
        else:
            self.w.open_block("( () => ")
            self.write_stmts(const.block)
            self.w.close_block(")();")

    # --- Structs ---

    def emit_struct(self, name: str, sdef: StructDef) -> None:
        sname = rename(name)
        tparam_names = [tp.name for tp in sdef.type_parameters]
        self.c.struct_type_params = tparam_names
        generics = ""
        if tparam_names:
            generics = "<" + ", ".join(rename(tp) + " = any" for tp in tparam_names) + ">"
        self.w.new_line()
        self.w.open_block("export class " + sname + generics + " ")
        self.w.writeln("static moduleAddress = moduleAddress;")
        self.w.writeln("static moduleName = moduleName;")
        self.w.writeln("static structName: string = " + quote(name) + ";")
        self._emit_static_list(
            "static typeParameters: TypeParamDeclType[] = ",
            [
                "{ name: " + quote(tp.name) + ", isPhantom: " + ("true" if tp.is_phantom else "false") + " }"
                for tp in sdef.type_parameters
            ],
        )
        if sdef.fields is not None:
            fields = sdef.fields
            self._emit_static_list(
                "static fields: FieldDeclType[] = ",
                [
                    "{ name: "
                    + quote(fname)
                    + ", typeTag: "
                    + typetag_builder(fty, tparam_names, self.c, sdef.loc)
                    + " }"
                    for fname, fty in fields
                ],
            )
            self.w.new_line()
            if fields:
                for fname, fty in fields:
                    self.w.writeln(rename(fname) + ": " + ts_type(fty, self.c) + ";")
                self.w.new_line()
            self.w.open_block("constructor(proto: any, public typeTag: TypeTag) ")
            for fname, fty in fields:
                self.w.writeln(
                    "this."
                    + rename(fname)
                    + " = proto['"
                    + fname
                    + "'] as "
                    + ts_type(fty, self.c)
                    + ";"
                )
            self.w.close_block()
            self.w.new_line()
            self.w.open_block(
                "static "
                + sname
                + "Parser(data:any, typeTag: TypeTag, repo: AptosParserRepo) : "
                + sname
                + " "
            )
            self.w.writeln("const proto = $.parseStructProto(data, typeTag, repo, " + sname + ");")
            self.w.writeln("return new " + sname + "(proto, typeTag);")
            self.w.close_block()
            if sdef.has_ability("key"):
                self.w.new_line()
                self.w.open_block(
                    "static async load(repo: AptosParserRepo, client: AptosClient, "
                    "address: HexString, typeParams: TypeTag[]) "
                )
                self.w.writeln(
                    "const result = await repo.loadResource(client, address, "
                    + sname
                    + ", typeParams);"
                )
                self.w.writeln("return result as unknown as " + sname + ";")
                self.w.close_block()
        self.w.close_block()
        self.c.struct_type_params = None

    def _emit_static_list(self, header: str, items: list[str]) -> None:
        if not items:
            self.w.writeln(header + "[];")
            return
        self.w.writeln(header + "[")
        self.w.indent()
        self.w.write_list(items, ",", lambda item: item)
        self.w.dedent()
        self.w.writeln("];")

    # --- Functions ---

    def emit_function(self, name: str, fdef: Function) -> None:
        sig = fdef.signature
        self.c.current_function = sig
        if self.c.config.test and "test" in fdef.attributes:
            self.w.writeln("// test func")
        # every function is exported; visibility is not enforced in TypeScript
        self.w.writeln("export function " + rename(name) + "$ (")
        self._write_parameters(sig.parameters, cache=True, type_params=sig.type_parameters)
        header = "): " + ts_return_type(sig.return_type, self.c) + " "
        if fdef.body is None:
            self.w.open_block(header)
            self.w.writeln("return " + self._native_call(name, fdef) + ";")
            self.w.close_block()
        else:
            param_names = {pname for pname, _ in sig.parameters}
            new_vars = [v for v in fdef.body.locals if v not in param_names]
            self.w.open_block(header)
            undeclared = compute_undeclared(fdef.body.block, new_vars)
            if undeclared:
                self.w.writeln("let " + ", ".join(rename(v) for v in undeclared) + ";")
            self.hoisted = set(undeclared)
            self.write_stmts(fdef.body.block)
            self.hoisted = set()
            self.w.close_block()
        self.w.new_line()
        if fdef.is_entry:
            self.emit_payload_builder(name, fdef)
        self.c.current_function = None

    def _write_parameters(
        self, parameters: list[tuple[str, BaseType]], cache: bool, type_params: list[str]
    ) -> None:
        self.w.indent()
        for pname, pty in parameters:
            self.w.writeln(rename(pname) + ": " + ts_type(pty, self.c) + ",")
        if cache:
            self.w.writeln("$c: AptosDataCache,")
        if type_params:
            self.w.writeln("$p: TypeTag[], /* <" + ", ".join(type_params) + ">*/")
        self.w.dedent()

    def _native_call(self, name: str, fdef: Function) -> str:
        sig = fdef.signature
        args = [rename(pname) for pname, _ in sig.parameters]
        args.append("$c")
        if sig.type_parameters:
            tags = ", ".join("$p[" + str(i) + "]" for i in range(len(sig.type_parameters)))
            args.append("[" + tags + "]")
        return native_function_name(self.c.module, name) + "(" + ", ".join(args) + ")"

    def emit_payload_builder(self, name: str, fdef: Function) -> None:
        """Emit buildPayload_<name>, turning arguments into a transaction payload.

        Signers are supplied by the executing account, so they are neither
        parameters of the builder nor payload arguments.
        """
        sig = fdef.signature
        params = [(pname, pty) for pname, pty in sig.parameters if not is_signer(pty)]
        self.w.new_line()
        self.w.writeln("export function buildPayload_" + name + " (")
        self._write_parameters(params, cache=False, type_params=sig.type_parameters)
        self.w.open_block(") ")
        if sig.type_parameters:
            self.w.writeln("const typeParamStrings = $p.map(t=>$.getTypeTagFullname(t));")
        else:
            self.w.writeln("const typeParamStrings = [] as string[];")
        self.w.writeln("return $.buildPayload(")
        self.w.writeln("  " + quote(qualified_function_name(self.c.module, name)) + ",")
        self.w.writeln("  typeParamStrings,")
        if not params:
            self.w.writeln("  []")
        else:
            self.w.writeln("  [")
            for pname, pty in params:
                self.w.writeln("    " + payload_arg(rename(pname), pty, fdef.loc) + ",")
            self.w.writeln("  ]")
        self.w.writeln(");")
        self.w.close_block()
        self.w.new_line()


# ============================================================
# ENTRY FUNCTION ARGUMENTS
# ============================================================


def payload_arg(name: str, ty: BaseType, loc: Loc | None = None) -> str:
    """Expression converting parameter `name` of type ty into a payload argument.

    bool and address pass through; integers use toPayloadArg(); vectors map
    the element conversion at every nesting level.
    """
    builtin = extract_builtin(ty)
    if builtin is None:
        raise Diagnostic("This type is not supported as parameter of script function", loc)
    if builtin.kind == "signer":
        raise InternalError("signer parameter reached payload conversion")
    if builtin.kind in ("bool", "address"):
        return name
    if builtin.kind in INTEGER_KINDS:
        return name + ".toPayloadArg()"
    mapper = _element_mapper(
        builtin.args[0], loc, "This vector type is not supported as parameter of a script function"
    )
    if mapper is None:
        return name
    return name + ".map(" + mapper + ")"


def _element_mapper(ty: BaseType, loc: Loc | None, unsupported: str) -> str | None:
    """Arrow function converting one vector element, or None if none is needed."""
    if not isinstance(ty, Builtin):
        raise Diagnostic(unsupported, loc)
    if ty.kind == "signer":
        raise InternalError("signer element reached payload conversion")
    if ty.kind in ("bool", "address"):
        return None
    if ty.kind in INTEGER_KINDS:
        return "u => u.toPayloadArg()"
    inner = _element_mapper(ty.args[0], loc, "Unsupported vector-in-vector type")
    if inner is None:
        return None
    return "array => array.map(" + inner + ")"


# ============================================================
# MODULE TRANSLATION
# ============================================================


def _single_return_value(block: list[Stmt]) -> Exp | None:
    if len(block) == 1:
        stmt = block[0]
        if isinstance(stmt, CommandStmt) and isinstance(stmt.cmd, Return):
            return stmt.cmd.exp
    return None


def translate_module(
    module: Module,
    config: Config | None = None,
    term: Callable[[Exp], str] | None = None,
) -> tuple[str, str]:
    """Translate one module. Returns (file path, file content).

    Raises Diagnostic on the first unsupported construct.
    """
    mident = module.ident
    if mident.package == "" and module.package_name:
        mident = ModuleIdent(mident.address, mident.name, module.package_name, mident.address_name)
    c = Context(mident, config if config is not None else Config())
    backend = TsBackend(c, term=term)
    backend.emit_module(module)
    lines = list(RUNTIME_IMPORTS)
    for package in sorted(c.package_imports):
        lines.append("import * as " + package + ' from "../' + package + '";')
    for module_name in sorted(c.same_package_imports):
        lines.append("import * as " + module_name + ' from "./' + module_name + '";')
    lines.append(backend.w.output())
    return (module_file_path(mident), "\n".join(lines) + "\n")


def translate_modules(
    modules: list[Module], config: Config | None = None
) -> tuple[dict[str, str], list[Diagnostic]]:
    """Translate modules independently; a failing module does not stop the others."""
    files: dict[str, str] = {}
    errors: list[Diagnostic] = []
    for module in modules:
        try:
            path, content = translate_module(module, config)
        except Diagnostic as e:
            errors.append(e)
            continue
        files[path] = content
    return (files, errors)
