"""Map protobuf descriptors onto the generator's ProtoFile/Message models."""

from __future__ import annotations

from typing import Dict, Iterable, List

from google.protobuf import descriptor_pb2 as d2
from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from protoc_twirp_ts.errors import MalformedInputError
from protoc_twirp_ts.models import (
    Field,
    FieldType,
    Message,
    Method,
    ProtoEnum,
    ProtoFile,
    Service,
    qualify,
)

FIELD_TYPE_MAP: Dict[int, FieldType] = {
    d2.FieldDescriptorProto.TYPE_DOUBLE: FieldType.DOUBLE,
    d2.FieldDescriptorProto.TYPE_FLOAT: FieldType.FLOAT,
    d2.FieldDescriptorProto.TYPE_INT64: FieldType.INT64,
    d2.FieldDescriptorProto.TYPE_UINT64: FieldType.UINT64,
    d2.FieldDescriptorProto.TYPE_INT32: FieldType.INT32,
    d2.FieldDescriptorProto.TYPE_FIXED64: FieldType.FIXED64,
    d2.FieldDescriptorProto.TYPE_FIXED32: FieldType.FIXED32,
    d2.FieldDescriptorProto.TYPE_BOOL: FieldType.BOOL,
    d2.FieldDescriptorProto.TYPE_STRING: FieldType.STRING,
    d2.FieldDescriptorProto.TYPE_GROUP: FieldType.GROUP,
    d2.FieldDescriptorProto.TYPE_MESSAGE: FieldType.MESSAGE,
    d2.FieldDescriptorProto.TYPE_BYTES: FieldType.BYTES,
    d2.FieldDescriptorProto.TYPE_UINT32: FieldType.UINT32,
    d2.FieldDescriptorProto.TYPE_ENUM: FieldType.ENUM,
    d2.FieldDescriptorProto.TYPE_SFIXED32: FieldType.SFIXED32,
    d2.FieldDescriptorProto.TYPE_SFIXED64: FieldType.SFIXED64,
    d2.FieldDescriptorProto.TYPE_SINT32: FieldType.SINT32,
    d2.FieldDescriptorProto.TYPE_SINT64: FieldType.SINT64,
}


def decode_request(data: bytes) -> plugin_pb2.CodeGeneratorRequest:
    request = plugin_pb2.CodeGeneratorRequest()
    try:
        request.ParseFromString(data)
    except DecodeError as e:
        raise MalformedInputError(f"Cannot decode CodeGeneratorRequest: {e}") from e
    return request


def _build_field(fd: d2.FieldDescriptorProto) -> Field:
    try:
        field_type = FIELD_TYPE_MAP[fd.type]
    except KeyError:
        raise MalformedInputError(
            f"Field '{fd.name}' has unknown type tag {fd.type}"
        ) from None
    return Field(
        name=fd.name,
        type=field_type,
        type_name=fd.type_name if fd.type_name else "",
        is_repeated=fd.label == d2.FieldDescriptorProto.LABEL_REPEATED,
    )


def _build_enum(desc: d2.EnumDescriptorProto, scope: str) -> ProtoEnum:
    return ProtoEnum(
        name=desc.name,
        full_name=qualify(scope, desc.name),
        values=[v.name for v in desc.value],
    )


def _build_message(desc: d2.DescriptorProto, scope: str) -> Message:
    full_name = qualify(scope, desc.name)
    return Message(
        name=desc.name,
        full_name=full_name,
        fields=[_build_field(f) for f in desc.field],
        nested_messages=[_build_message(n, full_name) for n in desc.nested_type],
        nested_enums=[_build_enum(e, full_name) for e in desc.enum_type],
        map_entry=desc.options.map_entry,
    )


def build_file(fdp: d2.FileDescriptorProto) -> ProtoFile:
    """Transform one FileDescriptorProto into a ProtoFile."""
    package = fdp.package
    services: List[Service] = []
    for svc in fdp.service:
        methods = [
            Method(
                name=m.name,
                input_type=m.input_type,
                output_type=m.output_type,
                client_streaming=m.client_streaming,
                server_streaming=m.server_streaming,
            )
            for m in svc.method
        ]
        services.append(Service(
            name=svc.name,
            full_name=f"{package}.{svc.name}" if package else svc.name,
            methods=methods,
        ))

    return ProtoFile(
        name=fdp.name,
        package=package,
        messages=[_build_message(m, package) for m in fdp.message_type],
        enums=[_build_enum(e, package) for e in fdp.enum_type],
        services=services,
        dependencies=list(fdp.dependency),
    )


def build_files(fdps: Iterable[d2.FileDescriptorProto]) -> List[ProtoFile]:
    return [build_file(f) for f in fdps]
