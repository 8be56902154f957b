"""Tests for naming helpers and the output buffer."""

import pytest

from movets.backend.util import (
    TsWriter,
    format_address,
    module_file_path,
    native_function_name,
    qualified_function_name,
    quote,
    rename,
)
from movets.ir import ModuleIdent


@pytest.mark.parametrize(
    "name,expected",
    [
        ("amount", "amount"),
        ("%#3", "temp$3"),
        ("x#2", "x__2"),
        ("new", "new_"),
        ("default", "default_"),
        ("u64", "u64_"),
    ],
)
def test_rename(name, expected):
    assert rename(name) == expected


def test_quote_escapes():
    assert quote('a"b\\c\n') == '"a\\"b\\\\c\\n"'


@pytest.mark.parametrize(
    "address,expected",
    [("0x1", "0x1"), ("0x0001", "0x1"), ("0x0", "0x0"), ("0xABc", "0xabc"), ("cafe", "0xcafe")],
)
def test_format_address(address, expected):
    assert format_address(address) == expected


def test_module_paths_and_names():
    std_vector = ModuleIdent("0x00000001", "vector", "MoveStdlib", "std")
    anon = ModuleIdent("0xbeef", "vault")
    assert module_file_path(std_vector) == "0x1/vector.ts"
    assert native_function_name(std_vector, "length") == "$.std_vector_length"
    assert native_function_name(anon, "open") == "$.xbeef_vault_open"
    assert qualified_function_name(std_vector, "push_back") == "0x1::vector::push_back"


def test_writer_blocks():
    w = TsWriter()
    w.open_block("if (x) ")
    w.writeln("y;")
    w.open_block("while (true) ")
    w.writeln("break;")
    w.close_block()
    w.close_block(";")
    assert w.output() == "if (x) {\n  y;\n  while (true) {\n    break;\n  }\n};"


def test_writer_partial_line_and_blank_lines():
    w = TsWriter()
    w.write("const a = ")
    w.write("1;")
    w.new_line()
    w.new_line()
    w.indent()
    w.writeln("   ")
    w.dedent()
    w.write("tail")
    assert w.output() == "const a = 1;\n\n\ntail"


def test_writer_list():
    w = TsWriter()
    w.write_list([1, 2, 3], ",", lambda n: "n" + str(n))
    assert w.output() == "n1,\nn2,\nn3"


def test_writer_unbalanced_dedent():
    with pytest.raises(ValueError):
        TsWriter().dedent()
