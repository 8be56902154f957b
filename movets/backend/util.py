"""Shared utilities for the TypeScript emitters."""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

from ..ir import ModuleIdent

T = TypeVar("T")

# TypeScript reserved words and runtime globals that need renaming
TS_RESERVED = frozenset(
    {
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "import",
        "in",
        "instanceof",
        "new",
        "null",
        "return",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
        "let",
        "static",
        "yield",
        "await",
        "implements",
        "interface",
        "package",
        "private",
        "protected",
        "public",
        "any",
        "boolean",
        "number",
        "string",
        "symbol",
        "type",
        "Array",
        "Object",
        "String",
        "Number",
        "Boolean",
        "Map",
        "Set",
        "Promise",
        "Error",
        "HexString",
        "TypeTag",
        "VectorTag",
        "StructTag",
        "AtomicTypeTag",
        "U8",
        "U64",
        "U128",
        "u8",
        "u64",
        "u128",
    }
)


def rename(name: str) -> str:
    """Turn a Move identifier into a safe TypeScript identifier.

    Compiler temporaries (`%#3`) and SSA suffixes (`x#2`) are not valid
    TypeScript, reserved words get a trailing underscore.
    """
    if name.startswith("%#"):
        return "temp$" + name[2:]
    name = name.replace("#", "__").replace("%", "$")
    if name in TS_RESERVED:
        return name + "_"
    return name


def escape_string(value: str) -> str:
    """Escape a string for use in a string literal (without quotes)."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
        .replace("\x00", "\\x00")
    )


def quote(value: str) -> str:
    """Render a double-quoted TypeScript string literal."""
    return '"' + escape_string(value) + '"'


def format_address(address: str) -> str:
    """Shortest 0x-prefixed hex form of an address: 0x0001 -> 0x1."""
    digits = address.lower()
    if digits.startswith("0x"):
        digits = digits[2:]
    digits = digits.lstrip("0")
    return "0x" + (digits or "0")


def module_file_path(mident: ModuleIdent) -> str:
    """Output path of the generated file for a module."""
    return format_address(mident.address) + "/" + mident.name + ".ts"


def native_function_name(mident: ModuleIdent, name: str) -> str:
    """Runtime builtin implementing a native function, e.g. $.std_vector_length."""
    if mident.address_name:
        prefix = mident.address_name
    else:
        prefix = "x" + format_address(mident.address)[2:]
    return "$." + prefix + "_" + mident.name + "_" + name


def qualified_function_name(mident: ModuleIdent, name: str) -> str:
    """On-chain name of a function: 0x1::coin::transfer."""
    return format_address(mident.address) + "::" + mident.name + "::" + name


class TsWriter:
    """Structured output buffer with indentation tracking.

    Text written with write() accumulates on the current line; the indent in
    effect when a line starts is the one applied to it.
    """

    def __init__(self, indent_str: str = "  ") -> None:
        self.indent_level: int = 0
        self.lines: list[str] = []
        self._indent_str = indent_str
        self._current: str | None = None

    def write(self, text: str) -> None:
        """Append text to the current line."""
        if self._current is None:
            self._current = self._indent_str * self.indent_level
        self._current += text

    def writeln(self, text: str = "") -> None:
        """Append text and end the current line."""
        self.write(text)
        self.new_line()

    def new_line(self) -> None:
        """End the current line; emits a blank line if nothing was written."""
        if self._current is None or self._current.strip() == "":
            self.lines.append("")
        else:
            self.lines.append(self._current)
        self._current = None

    def indent(self) -> None:
        self.indent_level += 1

    def dedent(self) -> None:
        if self.indent_level == 0:
            raise ValueError("unbalanced dedent")
        self.indent_level -= 1

    def open_block(self, header: str = "") -> None:
        """Write `header {`, end the line and indent."""
        self.writeln(header + "{")
        self.indent()

    def close_block(self, suffix: str = "") -> None:
        """Dedent and write the closing brace followed by suffix."""
        if self._current is not None:
            self.new_line()
        self.dedent()
        self.writeln("}" + suffix)

    def write_list(self, items: Iterable[T], sep: str, fn: Callable[[T], str]) -> None:
        """Write one item per line, separated by sep."""
        rendered = [fn(item) for item in items]
        for i, text in enumerate(rendered):
            if i < len(rendered) - 1:
                self.writeln(text + sep)
            else:
                self.writeln(text)

    def output(self) -> str:
        """Return the accumulated output as a string."""
        lines = list(self.lines)
        if self._current is not None:
            lines.append(self._current)
        return "\n".join(lines)
