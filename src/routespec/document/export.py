from __future__ import annotations

import json
from typing import Any, Optional

import yaml

from routespec.config import CompilerConfig
from routespec.document.model import Document
from routespec.domain.models import Operation, Parameter, Response, Schema

DEFINITIONS_PREFIX = "#/definitions/"


def schema_to_dict(schema: Schema) -> dict[str, Any]:
    if schema.kind == "ref":
        out: dict[str, Any] = {"$ref": DEFINITIONS_PREFIX + (schema.ref or "")}
    elif schema.kind == "array":
        out = {"type": "array", "items": schema_to_dict(schema.items) if schema.items else {}}
    elif schema.kind == "map":
        out = {
            "type": "object",
            "additionalProperties": schema_to_dict(schema.values) if schema.values else {},
        }
    elif schema.kind == "object":
        out = {"type": "object"}
        if schema.properties:
            out["properties"] = {k: schema_to_dict(v) for k, v in schema.properties.items()}
        if schema.required:
            out["required"] = list(schema.required)
    else:
        out = {"type": schema.kind}
        if schema.format:
            out["format"] = schema.format

    if schema.enum:
        out["enum"] = list(schema.enum)
    if schema.description:
        out["description"] = schema.description
    if schema.default is not None:
        out["default"] = schema.default
    if schema.access:
        out["x-access"] = schema.access
    return out


def _parameter_to_dict(p: Parameter) -> dict[str, Any]:
    out: dict[str, Any] = {"name": p.name, "in": p.location, "required": p.required}
    if p.description:
        out["description"] = p.description

    if p.location == "body":
        out["schema"] = schema_to_dict(p.shape)
        return out

    shape = schema_to_dict(p.shape)
    # non-body parameters carry the schema fields inline
    for key in ("type", "format", "items", "enum"):
        if key in shape:
            out[key] = shape[key]
    if p.shape.kind in ("ref", "object", "map"):
        out["type"] = "string"
    if p.enum:
        out["enum"] = list(p.enum)
    if p.default is not None:
        out["default"] = p.default
    if p.pattern:
        out["pattern"] = p.pattern
    if p.access:
        out["x-access"] = p.access
    return out


def _response_to_dict(r: Response) -> dict[str, Any]:
    out: dict[str, Any] = {"description": r.description}
    if r.shape is not None:
        out["schema"] = schema_to_dict(r.shape)
    if r.headers:
        out["headers"] = {k: schema_to_dict(v) for k, v in r.headers.items()}
    return out


def operation_to_dict(op: Operation) -> dict[str, Any]:
    out: dict[str, Any] = {"operationId": op.operation_id}
    if op.tags:
        out["tags"] = list(op.tags)
    if op.summary:
        out["summary"] = op.summary
    if op.description:
        out["description"] = op.description
    out["consumes"] = list(op.consumes)
    out["produces"] = list(op.produces)
    out["parameters"] = [_parameter_to_dict(p) for p in op.parameters]
    out["responses"] = {code: _response_to_dict(r) for code, r in op.responses.items()}
    if op.schemes:
        out["schemes"] = list(op.schemes)
    if op.security:
        out["security"] = [{name: []} for name in op.security]
    if op.deprecated:
        out["deprecated"] = True
    return out


def render_swagger(document: Document, config: Optional[CompilerConfig] = None) -> dict[str, Any]:
    """Swagger 2.0 mapping. Paths and definitions are sorted for stable output."""
    config = config or CompilerConfig()

    info: dict[str, Any] = {"title": config.title, "version": config.version}
    if config.description:
        info["description"] = config.description

    payload: dict[str, Any] = {"swagger": "2.0", "info": info}
    if config.host:
        payload["host"] = config.host
    payload["basePath"] = config.base_path
    if config.schemes:
        payload["schemes"] = list(config.schemes)
    if config.consumes:
        payload["consumes"] = list(config.consumes)
    if config.produces:
        payload["produces"] = list(config.produces)

    if document.tags:
        payload["tags"] = [{"name": t} for t in document.tags]

    payload["paths"] = {
        path: {verb: operation_to_dict(op) for verb, op in sorted(document.paths[path].items())}
        for path in sorted(document.paths)
    }
    payload["definitions"] = {
        name: schema_to_dict(document.definitions[name]) for name in sorted(document.definitions)
    }

    security = {
        name: config.security_definitions[name]
        for name in document.security_schemes
        if name in config.security_definitions
    }
    if security:
        payload["securityDefinitions"] = security
    return payload


def dump_document(payload: dict[str, Any], fmt: str = "json") -> str:
    fmt = fmt.lower().strip()
    if fmt == "json":
        return json.dumps(payload, indent=2, default=str)
    if fmt == "yaml":
        return yaml.safe_dump(payload, sort_keys=False)
    raise ValueError(f"unknown format: {fmt!r} (expected json or yaml)")
