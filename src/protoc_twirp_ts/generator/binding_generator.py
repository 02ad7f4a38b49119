from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader

from protoc_twirp_ts.config import GeneratorConfig
from protoc_twirp_ts.models import Binding, Method, Service, short_name
from protoc_twirp_ts.renderer import render_fields
from protoc_twirp_ts.schema_index import SchemaIndex
from protoc_twirp_ts.synthesizer import Synthesizer

logger = logging.getLogger(__name__)

# Indent level of the reconstructed fields inside ``const output = {``.
FIELDS_LEVEL = 2


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def endpoint_path(prefix: str, service: Service, method: Method) -> str:
    """Request path of a method, e.g. /twirp/trpc.Haberdasher/MakeHat"""
    return f"/{prefix}/{service.full_name}/{method.name}"


class BindingGenerator:
    """Generates one async fetch wrapper per unary service method."""

    def __init__(self, index: SchemaIndex, config: GeneratorConfig) -> None:
        self.index = index
        self.config = config
        self.synthesizer = Synthesizer(index)
        self.template = _get_template_env().get_template("binding.ts.j2")

    def bind(self, service: Service, method: Method) -> Binding:
        input_message = self.index.message(method.input_type)
        output_message = self.index.message(method.output_type)
        path = endpoint_path(self.config.prefix, service, method)
        passthrough = output_message.full_name in self.config.passthrough_types

        fields = ""
        if not passthrough:
            nodes = self.synthesizer.synthesize_message(output_message)
            fields = render_fields(nodes, FIELDS_LEVEL)

        logger.debug("Binding %s -> %s", method.name, path)
        body = self.template.render(
            name=method.name,
            input_type=short_name(input_message.full_name),
            output_type=short_name(output_message.full_name),
            path=path,
            csrf=self.config.csrf,
            passthrough=passthrough,
            fields=fields,
        )
        return Binding(
            name=method.name,
            input_type=short_name(input_message.full_name),
            output_type=short_name(output_message.full_name),
            path=path,
            body=body.rstrip("\n"),
        )

    def bind_services(self, services: List[Service]) -> List[Binding]:
        bindings: List[Binding] = []
        for service in services:
            for method in service.methods:
                if method.client_streaming or method.server_streaming:
                    logger.warning(
                        "Skipping streaming method %s.%s", service.full_name, method.name
                    )
                    continue
                bindings.append(self.bind(service, method))
        return bindings
