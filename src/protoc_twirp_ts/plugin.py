"""protoc plugin entry point: CodeGeneratorRequest on stdin, response on stdout.

    protoc --plugin=protoc-gen-twirp-ts --twirp-ts_out=csrf=false:web/src api/user.proto
"""

from __future__ import annotations

import logging
import sys

from google.protobuf.compiler import plugin_pb2

from protoc_twirp_ts.config import parse_parameter
from protoc_twirp_ts.errors import GeneratorError, MalformedInputError
from protoc_twirp_ts.main import configure_logging, generate_artifacts
from protoc_twirp_ts.parser.descriptor_parser import build_files, decode_request

logger = logging.getLogger(__name__)


def run_plugin(data: bytes) -> plugin_pb2.CodeGeneratorResponse:
    """Turn a serialized request into a response.

    Schema and option errors are reported through ``response.error`` with no
    files attached, which is how protoc expects plugins to fail.
    MalformedInputError propagates to the caller.
    """
    request = decode_request(data)
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    try:
        config = parse_parameter(request.parameter)
        if config.verbose:
            logging.getLogger("protoc_twirp_ts").setLevel(logging.DEBUG)
        artifacts = generate_artifacts(
            build_files(request.proto_file), list(request.file_to_generate), config
        )
    except MalformedInputError:
        raise
    except GeneratorError as e:
        logger.error("%s", e)
        response.error = str(e)
        return response

    for artifact in artifacts:
        out = response.file.add()
        out.name = artifact.name
        out.content = artifact.content
    return response


def main() -> None:
    configure_logging(verbose=False)
    try:
        response = run_plugin(sys.stdin.buffer.read())
    except MalformedInputError as e:
        logger.error("FATAL: %s", e)
        sys.exit(1)
    sys.stdout.buffer.write(response.SerializeToString())


if __name__ == "__main__":
    main()
