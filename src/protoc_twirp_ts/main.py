from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from google.protobuf import descriptor_pb2 as d2

from protoc_twirp_ts.config import GeneratorConfig
from protoc_twirp_ts.errors import GeneratorError, SchemaResolutionError
from protoc_twirp_ts.generator.assembler import assemble
from protoc_twirp_ts.generator.binding_generator import BindingGenerator
from protoc_twirp_ts.generator.declaration_generator import DeclarationCollector
from protoc_twirp_ts.models import GeneratedArtifact, ProtoFile
from protoc_twirp_ts.parser.descriptor_parser import build_files
from protoc_twirp_ts.schema_index import SchemaIndex

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    # stdout carries the plugin response, so everything goes to stderr.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def generate_artifacts(
    files: Sequence[ProtoFile],
    files_to_generate: Sequence[str],
    config: GeneratorConfig,
) -> List[GeneratedArtifact]:
    """Main pipeline: index, collect declarations, bind methods, assemble.

    Raises GeneratorError on the first unresolved type; nothing is returned
    for any file in that case.
    """
    index = SchemaIndex.build(files)
    by_name = {f.name: f for f in files}
    collector = DeclarationCollector(index, config.builtin_types)
    binder = BindingGenerator(index, config)

    artifacts: List[GeneratedArtifact] = []
    for name in files_to_generate:
        proto_file = by_name.get(name)
        if proto_file is None:
            raise GeneratorError(f"File to generate '{name}' is not part of the request")
        missing = [d for d in proto_file.dependencies if d not in by_name]
        if missing:
            raise SchemaResolutionError(
                f"File '{name}' imports {', '.join(missing)}, which the request does not include"
            )
        declarations = collector.collect(proto_file)
        bindings = binder.bind_services(proto_file.services)
        artifacts.append(assemble(declarations, bindings, proto_file.name))
        logger.debug(
            "Generated %s: %d declaration(s), %d binding(s)",
            name, len(declarations), len(bindings),
        )
    return artifacts


def load_descriptor_set(
    proto_path: str, include_dirs: Sequence[str] = ()
) -> Tuple[List[ProtoFile], str]:
    """Compile a .proto with protoc and return (files, name of the target file)."""
    file_dir = os.path.dirname(os.path.abspath(proto_path))
    includes = [file_dir] + [os.path.abspath(d) for d in include_dirs]

    # de-dup while preserving order
    seen = set()
    inc_args: List[str] = []
    for inc in includes:
        if inc and inc not in seen:
            seen.add(inc)
            inc_args.extend(["-I", inc])

    with tempfile.TemporaryDirectory() as td:
        desc_path = os.path.join(td, "descriptor_set.pb")
        cmd = ["protoc", "--include_imports", f"--descriptor_set_out={desc_path}"] + inc_args + [proto_path]
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except FileNotFoundError as e:
            raise GeneratorError("'protoc' not found. Please install Protocol Buffers compiler and ensure it is in PATH.") from e
        except subprocess.CalledProcessError as e:
            raise GeneratorError(f"protoc failed: {e.stderr.decode('utf-8', errors='ignore')}") from e

        fds = d2.FileDescriptorSet()
        with open(desc_path, "rb") as f:
            fds.ParseFromString(f.read())

    # the file directory is the first include path, so protoc names the file by its basename
    return build_files(fds.file), os.path.basename(proto_path)


def generate(proto_path: str, out_dir: str, config: GeneratorConfig, include_dirs: Sequence[str] = ()) -> str:
    files, target = load_descriptor_set(proto_path, include_dirs)
    artifact = generate_artifacts(files, [target], config)[0]
    out_path = Path(out_dir) / artifact.name
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(artifact.content, encoding="utf-8")
    return str(out_path)


def _find_proto_files(root: str) -> List[str]:
    """Recursively find .proto files under root, sorted for deterministic output."""
    return sorted(str(p) for p in Path(root).rglob("*.proto"))


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Generate a TypeScript Twirp client (interfaces and fetch wrappers) from .proto files (unary RPCs only)",
    )
    parser.add_argument("--proto", required=True, help="Path to a .proto file or a directory containing .proto files (recursively)")
    parser.add_argument("--out", required=True, help="Output directory for generated .ts file(s)")
    parser.add_argument("-I", "--include", action="append", default=[], help="Additional import path for protoc (repeatable)")
    parser.add_argument("--prefix", default=None, help="Transport path prefix (default: twirp)")
    parser.add_argument("--no-csrf", action="store_true", help="Do not read a CSRF token from the page or send X-CSRF-Token")
    parser.add_argument("--verbose", action="store_true", help="Log debug output to stderr")
    args = parser.parse_args(argv)

    config = GeneratorConfig(csrf=not args.no_csrf, verbose=args.verbose)
    if args.prefix:
        config = replace(config, prefix=args.prefix.strip("/"))
    configure_logging(config.verbose)

    if os.path.isdir(args.proto):
        inputs = _find_proto_files(args.proto)
        if not inputs:
            print(f"No .proto files found under directory: {args.proto}")
            return
    else:
        inputs = [args.proto]

    generated: List[str] = []
    try:
        for p in inputs:
            generated.append(generate(p, args.out, config, args.include))
    except GeneratorError as e:
        logger.error("FATAL: %s", e)
        sys.exit(1)
    print("Generated:\n" + "\n".join(generated))


if __name__ == "__main__":
    main()
