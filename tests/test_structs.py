"""Tests for struct class emission and runtime descriptors."""

import re

from irbuild import COIN, contains_normalized, context, emit_struct

from movets.backend.typescript import TsBackend
from movets.backend.types import AtomicTag, ParamTag, StructTag, VectorTag, tag_to_type, type_tag
from movets.ir import (
    ADDRESS,
    BOOL,
    U8,
    U64,
    ModuleIdent,
    StructDef,
    StructType,
    StructTypeParameter,
    TypeParam,
    vector,
)

COIN_DEF = StructDef(
    abilities=frozenset({"store"}),
    type_parameters=[StructTypeParameter("CoinType", is_phantom=True)],
    fields=[("value", U64)],
)


def test_coin_struct():
    out = emit_struct("Coin", COIN_DEF)
    expected = """
export class Coin<CoinType = any> {
  static moduleAddress = moduleAddress;
  static moduleName = moduleName;
  static structName: string = "Coin";
  static typeParameters: TypeParamDeclType[] = [
    { name: "CoinType", isPhantom: true }
  ];
  static fields: FieldDeclType[] = [
    { name: "value", typeTag: AtomicTypeTag.U64 }
  ];

  value: U64;

  constructor(proto: any, public typeTag: TypeTag) {
    this.value = proto['value'] as U64;
  }

  static CoinParser(data:any, typeTag: TypeTag, repo: AptosParserRepo) : Coin {
    const proto = $.parseStructProto(data, typeTag, repo, Coin);
    return new Coin(proto, typeTag);
  }
}
"""
    assert contains_normalized(out, expected), out
    assert "static async load" not in out


def test_key_struct_gets_loader():
    sdef = StructDef(abilities=frozenset({"key"}), fields=[("owner", ADDRESS)])
    out = emit_struct("Vault", sdef)
    expected = """
static async load(repo: AptosParserRepo, client: AptosClient, address: HexString, typeParams: TypeTag[]) {
  const result = await repo.loadResource(client, address, Vault, typeParams);
  return result as unknown as Vault;
}
"""
    assert contains_normalized(out, expected), out
    assert contains_normalized(out, "static typeParameters: TypeParamDeclType[] = [];")
    assert out.startswith("\nexport class Vault {")


def test_native_struct_has_no_layout():
    sdef = StructDef(type_parameters=[StructTypeParameter("T")], fields=None)
    out = emit_struct("Table", sdef)
    assert contains_normalized(out, '{ name: "T", isPhantom: false }')
    assert "static fields" not in out
    assert "constructor" not in out
    assert "Parser" not in out
    assert out.rstrip().endswith("}")


def test_empty_struct():
    out = emit_struct("Marker", StructDef(abilities=frozenset({"drop"}), fields=[]))
    assert contains_normalized(out, "static fields: FieldDeclType[] = [];")
    assert contains_normalized(out, "constructor(proto: any, public typeTag: TypeTag) {\n}")


def test_generic_field_types():
    other = ModuleIdent("0x1", "option", "MoveStdlib", "std")
    sdef = StructDef(
        type_parameters=[StructTypeParameter("K"), StructTypeParameter("V")],
        fields=[("keys", vector(TypeParam("K"))), ("slot", StructType(other, "Option", (TypeParam("V"),)))],
    )
    out = emit_struct("Map", sdef)
    assert "export class Map_<K = any, V = any> {" in out
    assert contains_normalized(out, "keys: K[];\nslot: MoveStdlib.option.Option<V>;")
    assert contains_normalized(out, "this.keys = proto['keys'] as K[];")
    assert contains_normalized(
        out,
        '{ name: "slot", typeTag: new StructTag(new HexString("0x1"), "option", "Option", [new $.TypeParamIdx(1)]) }',
    )


def test_descriptor_matches_declared_fields():
    inner = StructType(COIN, "Coin", (TypeParam("T"),))
    fields = [("a", U8), ("b", vector(TypeParam("T"))), ("c", inner), ("d", vector(vector(ADDRESS)))]
    sdef = StructDef(type_parameters=[StructTypeParameter("T")], fields=fields)
    out = emit_struct("Holder", sdef)
    start = out.index("static fields: FieldDeclType[] = [")
    end = out.index("];", start)
    entries = re.findall(r'\{ name: "(\w+)", typeTag: ', out[start:end])
    assert entries == ["a", "b", "c", "d"]
    tags = [type_tag(ty, ["T"]) for _, ty in fields]
    assert tags[1] == VectorTag(ParamTag(0, positional=False))
    assert tags[2] == StructTag(COIN, "Coin", (ParamTag(0, positional=False),))
    assert tags[3] == VectorTag(VectorTag(AtomicTag("address")))
    assert [tag_to_type(t, ["T"]) for t in tags] == [ty for _, ty in fields]


def test_struct_params_do_not_leak():
    sdef = StructDef(type_parameters=[StructTypeParameter("T")], fields=[("x", TypeParam("T"))])
    backend = TsBackend(context())
    backend.emit_struct("Box", sdef)
    assert backend.c.struct_type_params is None


def test_value_flag_struct():
    sdef = StructDef(abilities=frozenset({"copy", "drop"}), fields=[("value", U64), ("flag", BOOL)])
    out = emit_struct("Entry", sdef)
    expected = """
static fields: FieldDeclType[] = [
  { name: "value", typeTag: AtomicTypeTag.U64 },
  { name: "flag", typeTag: AtomicTypeTag.Bool }
];

value: U64;
flag: boolean;

constructor(proto: any, public typeTag: TypeTag) {
  this.value = proto['value'] as U64;
  this.flag = proto['flag'] as boolean;
}
"""
    assert contains_normalized(out, expected), out
    assert "static async load" not in out


def test_runtime_names_keep_move_spelling():
    sdef = StructDef(abilities=frozenset({"key"}), fields=[("type", U64), ("bytes", vector(U8))])
    out = emit_struct("String", sdef, module=ModuleIdent("0x1", "string", "MoveStdlib", "std"))
    assert "export class String_ {" in out
    assert contains_normalized(out, 'static structName: string = "String";')
    assert contains_normalized(out, '{ name: "type", typeTag: AtomicTypeTag.U64 },')
    assert contains_normalized(out, "type_: U64;")
    assert contains_normalized(out, "this.type_ = proto['type'] as U64;")
    assert contains_normalized(out, "const result = await repo.loadResource(client, address, String_, typeParams);")
