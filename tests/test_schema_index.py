import pytest

from protoc_twirp_ts.errors import SchemaResolutionError
from protoc_twirp_ts.models import Field, FieldType, Message, ProtoEnum, ProtoFile
from protoc_twirp_ts.schema_index import SchemaIndex


def _make_message(name, full_name, fields=None, nested=None, enums=None):
    return Message(
        name=name,
        full_name=full_name,
        fields=fields or [],
        nested_messages=nested or [],
        nested_enums=enums or [],
    )


class TestBuild:
    def test_registers_top_level_messages(self):
        index = SchemaIndex.build([
            ProtoFile(name="a.proto", package="trpc", messages=[_make_message("Hat", ".trpc.Hat")]),
            ProtoFile(name="b.proto", package="other", messages=[_make_message("Size", ".other.Size")]),
        ])

        assert index.message(".trpc.Hat").name == "Hat"
        assert index.message(".other.Size").name == "Size"

    def test_registers_nested_messages_recursively(self):
        inner = _make_message("Inner", ".trpc.Outer.Middle.Inner")
        middle = _make_message("Middle", ".trpc.Outer.Middle", nested=[inner])
        outer = _make_message("Outer", ".trpc.Outer", nested=[middle])
        index = SchemaIndex.build([ProtoFile(name="a.proto", package="trpc", messages=[outer])])

        assert index.message(".trpc.Outer.Middle") is middle
        assert index.message(".trpc.Outer.Middle.Inner") is inner

    def test_registers_enums(self):
        color = ProtoEnum("Color", ".trpc.Color", ["RED"])
        shade = ProtoEnum("Shade", ".trpc.Hat.Shade", ["DARK"])
        hat = _make_message("Hat", ".trpc.Hat", enums=[shade])
        index = SchemaIndex.build([ProtoFile(name="a.proto", package="trpc", messages=[hat], enums=[color])])

        assert index.enum(".trpc.Color") is color
        assert index.enum(".trpc.Hat.Shade") is shade

    def test_duplicate_message_raises(self):
        files = [
            ProtoFile(name="a.proto", package="trpc", messages=[_make_message("Hat", ".trpc.Hat")]),
            ProtoFile(name="b.proto", package="trpc", messages=[_make_message("Hat", ".trpc.Hat")]),
        ]
        with pytest.raises(SchemaResolutionError, match="Duplicate"):
            SchemaIndex.build(files)


class TestLookup:
    def test_unknown_message_raises(self):
        index = SchemaIndex.build([])
        with pytest.raises(SchemaResolutionError, match=r"\.trpc\.Nope"):
            index.message(".trpc.Nope")

    def test_unknown_enum_raises(self):
        index = SchemaIndex.build([])
        with pytest.raises(SchemaResolutionError):
            index.enum(".trpc.Nope")

    def test_is_map_entry_for_unknown_name_is_false(self):
        assert SchemaIndex.build([]).is_map_entry(".trpc.NopeEntry") is False

    def test_is_map_entry_by_option(self):
        entry = Message(
            name="MetaEntry",
            full_name=".trpc.Hat.MetaEntry",
            fields=[Field("key", FieldType.STRING), Field("value", FieldType.STRING)],
            map_entry=True,
        )
        hat = _make_message("Hat", ".trpc.Hat", nested=[entry])
        index = SchemaIndex.build([ProtoFile(name="a.proto", package="trpc", messages=[hat])])

        assert index.is_map_entry(".trpc.Hat.MetaEntry") is True
        assert index.is_map_entry(".trpc.Hat") is False
