import logging

from protoc_twirp_ts.config import DEFAULT_BUILTIN_TYPES, GeneratorConfig
from protoc_twirp_ts.generator.assembler import assemble, output_file_name
from protoc_twirp_ts.generator.binding_generator import BindingGenerator
from protoc_twirp_ts.generator.declaration_generator import (
    DeclarationCollector,
    EnumDeclaration,
    InterfaceDeclaration,
)
from protoc_twirp_ts.models import Field, FieldType, Message, Method, ProtoEnum, ProtoFile, Service
from protoc_twirp_ts.schema_index import SchemaIndex

TIMESTAMP = Message(
    name="Timestamp",
    full_name=".google.protobuf.Timestamp",
    fields=[Field("seconds", FieldType.INT64), Field("nanos", FieldType.INT32)],
)
WKT_FILE = ProtoFile(name="google/protobuf/timestamp.proto", package="google.protobuf", messages=[TIMESTAMP])

COORD = Message(name="Coord", full_name=".common.Coord", fields=[Field("lat", FieldType.DOUBLE)])
UNUSED = Message(name="Unused", full_name=".common.Unused", fields=[Field("x", FieldType.INT32)])
COMMON_FILE = ProtoFile(name="common.proto", package="common", messages=[COORD, UNUSED])


def _geo_file():
    labels_entry = Message(
        name="LabelsEntry",
        full_name=".geo.Place.LabelsEntry",
        fields=[Field("key", FieldType.STRING), Field("value", FieldType.STRING)],
        map_entry=True,
    )
    kind = ProtoEnum(name="Kind", full_name=".geo.Place.Kind", values=["CITY", "TOWN"])
    place = Message(
        name="Place",
        full_name=".geo.Place",
        fields=[
            Field("name", FieldType.STRING),
            Field("at", FieldType.MESSAGE, ".common.Coord"),
            Field("labels", FieldType.MESSAGE, ".geo.Place.LabelsEntry", is_repeated=True),
            Field("kind", FieldType.ENUM, ".geo.Place.Kind"),
            Field("seen", FieldType.MESSAGE, ".google.protobuf.Timestamp"),
        ],
        nested_messages=[labels_entry],
        nested_enums=[kind],
    )
    request = Message(name="LocateRequest", full_name=".geo.LocateRequest", fields=[Field("query", FieldType.STRING)])
    service = Service(
        name="Geo",
        full_name="geo.Geo",
        methods=[Method("Locate", ".geo.LocateRequest", ".geo.Place")],
    )
    return ProtoFile(
        name="api/geo.proto",
        package="geo",
        messages=[place, request],
        services=[service],
        dependencies=["common.proto", "google/protobuf/timestamp.proto"],
    )


def _collect(proto_file, files):
    index = SchemaIndex.build(files)
    return index, DeclarationCollector(index, DEFAULT_BUILTIN_TYPES).collect(proto_file)


class TestOutputFileName:
    def test_replaces_extension(self):
        assert output_file_name("api/geo.proto") == "api/geo.ts"

    def test_only_suffix_is_replaced(self):
        assert output_file_name("protos.proto/x.proto") == "protos.proto/x.ts"

    def test_missing_extension_appends(self):
        assert output_file_name("schema") == "schema.ts"


class TestDeclarationCollector:
    def test_file_types_then_reachable_types(self):
        geo = _geo_file()
        _, declarations = _collect(geo, [WKT_FILE, COMMON_FILE, geo])

        assert [d.name for d in declarations] == ["Place", "Coord", "Kind", "LocateRequest"]

    def test_interface_fields_match_message_fields(self):
        geo = _geo_file()
        _, declarations = _collect(geo, [WKT_FILE, COMMON_FILE, geo])
        place = declarations[0]

        assert isinstance(place, InterfaceDeclaration)
        assert [f["name"] for f in place.fields] == [f.name for f in geo.messages[0].fields]
        assert [f["type"] for f in place.fields] == [
            "string",
            "Coord",
            "{ [key: string]: string }",
            "Kind",
            "string",
        ]

    def test_builtins_and_map_entries_are_skipped(self):
        geo = _geo_file()
        _, declarations = _collect(geo, [WKT_FILE, COMMON_FILE, geo])
        names = {d.name for d in declarations}

        assert "Timestamp" not in names
        assert "LabelsEntry" not in names
        assert "Unused" not in names

    def test_package_local_empty_is_declared(self):
        wkt_empty = Message(name="Empty", full_name=".google.protobuf.Empty", fields=[])
        wkt = ProtoFile(name="google/protobuf/empty.proto", package="google.protobuf", messages=[wkt_empty])
        empty = Message(name="Empty", full_name=".app.Empty", fields=[])
        service = Service(
            name="Health",
            full_name="app.Health",
            methods=[Method("Ping", ".app.Empty", ".app.Empty")],
        )
        app = ProtoFile(name="app.proto", package="app", messages=[empty], services=[service])
        _, declarations = _collect(app, [wkt, app])

        assert [d.full_name for d in declarations] == [".app.Empty"]

    def test_well_known_empty_is_skipped(self):
        wkt_empty = Message(name="Empty", full_name=".google.protobuf.Empty", fields=[])
        wkt = ProtoFile(name="google/protobuf/empty.proto", package="google.protobuf", messages=[wkt_empty])
        service = Service(
            name="Health",
            full_name="app.Health",
            methods=[Method("Ping", ".google.protobuf.Empty", ".google.protobuf.Empty")],
        )
        app = ProtoFile(name="app.proto", package="app", services=[service])
        _, declarations = _collect(app, [wkt, app])

        assert declarations == []

    def test_enum_declaration(self):
        geo = _geo_file()
        _, declarations = _collect(geo, [WKT_FILE, COMMON_FILE, geo])
        kind = next(d for d in declarations if d.name == "Kind")

        assert isinstance(kind, EnumDeclaration)
        assert kind.values == ["CITY", "TOWN"]

    def test_name_collision_keeps_first(self, caplog):
        other = Message(name="Coord", full_name=".geo.Coord", fields=[Field("x", FieldType.INT32)])
        holder = Message(
            name="Holder",
            full_name=".geo.Holder",
            fields=[
                Field("a", FieldType.MESSAGE, ".geo.Coord"),
                Field("b", FieldType.MESSAGE, ".common.Coord"),
            ],
        )
        geo = ProtoFile(name="geo.proto", package="geo", messages=[holder, other])
        with caplog.at_level(logging.WARNING):
            _, declarations = _collect(geo, [COMMON_FILE, geo])

        assert [d.full_name for d in declarations] == [".geo.Holder", ".geo.Coord"]
        assert "already declared" in caplog.text

    def test_self_reference_declared_once(self):
        tree = Message(
            name="Tree",
            full_name=".t.Tree",
            fields=[Field("children", FieldType.MESSAGE, ".t.Tree", is_repeated=True)],
        )
        t = ProtoFile(name="t.proto", package="t", messages=[tree])
        _, declarations = _collect(t, [t])

        assert len(declarations) == 1
        assert declarations[0].fields == [{"name": "children", "type": "Tree[]"}]


class TestAssemble:
    def _artifact(self, config=None):
        geo = _geo_file()
        index, declarations = _collect(geo, [WKT_FILE, COMMON_FILE, geo])
        bindings = BindingGenerator(index, config or GeneratorConfig()).bind_services(geo.services)
        return assemble(declarations, bindings, geo.name)

    def test_artifact_name(self):
        assert self._artifact().name == "api/geo.ts"

    def test_declarations_come_first(self):
        content = self._artifact().content

        assert content.startswith("// Code generated by protoc-gen-twirp-ts. DO NOT EDIT.\n// source: api/geo.proto\n")
        assert content.index("export interface Place {") < content.index("const Locate = async")
        assert (
            "export interface Place {\n"
            "  name: string\n"
            "  at: Coord\n"
            "  labels: { [key: string]: string }\n"
            "  kind: Kind\n"
            "  seen: string\n"
            "}\n"
        ) in content
        assert 'export type Kind = "CITY" | "TOWN"\n' in content

    def test_manifest_is_last(self):
        content = self._artifact().content

        assert content.endswith("\nexport { Locate }\n")
        assert content.index("const Locate = async") < content.index("export { Locate }")

    def test_map_entry_never_named(self):
        assert "LabelsEntry" not in self._artifact().content

    def test_empty_enum_is_string(self):
        empty = EnumDeclaration(name="Nothing", full_name=".x.Nothing")
        artifact = assemble([empty], [], "x.proto")

        assert "export type Nothing = string\n" in artifact.content
        assert artifact.content.endswith("export {}\n")

    def test_deterministic(self):
        assert self._artifact().content == self._artifact().content
