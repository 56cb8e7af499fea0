import json

import pytest
import yaml

from routespec.compiler.scanner import RouteScanner
from routespec.config import CompilerConfig
from routespec.document.export import dump_document, render_swagger, schema_to_dict
from routespec.domain.models import Schema
from sample_services import OrderService, UserService

SECURITY = {
    "api_key": {"type": "apiKey", "name": "X-Api-Key", "in": "header"},
    "oauth": {"type": "oauth2", "flow": "implicit", "authorizationUrl": "https://auth.example.com"},
}


def _swagger(*classes, **config):
    scanner = RouteScanner()
    for cls in classes:
        scanner.read(cls)
    return render_swagger(scanner.document, CompilerConfig(**config))


def test_document_header():
    doc = _swagger(UserService, title="Users", version="2.1", host="api.example.com", schemes=["https"])

    assert doc["swagger"] == "2.0"
    assert doc["info"] == {"title": "Users", "version": "2.1"}
    assert doc["host"] == "api.example.com"
    assert doc["basePath"] == "/"
    assert doc["schemes"] == ["https"]
    assert {"name": "users"} in doc["tags"]


def test_paths_and_definitions_are_sorted():
    doc = _swagger(UserService, OrderService)
    assert list(doc["paths"]) == sorted(doc["paths"])
    assert list(doc["definitions"]) == sorted(doc["definitions"])
    assert list(doc["paths"]["/users/{id}"]) == ["delete", "get", "post"]


def test_path_parameter_and_response():
    op = _swagger(UserService)["paths"]["/users/{id}"]["get"]

    assert op["operationId"] == "get"
    assert op["parameters"] == [
        {"name": "id", "in": "path", "required": True, "type": "integer", "format": "int64", "pattern": "[0-9]+"},
    ]
    ok = op["responses"]["200"]
    assert ok["description"] == "successful operation"
    assert ok["schema"] == {"$ref": "#/definitions/sample_services.User"}
    assert ok["headers"]["X-Rate-Limit"] == {"type": "integer", "format": "int64", "description": "calls left"}
    assert op["security"] == [{"api_key": []}]


def test_body_and_form_parameters():
    paths = _swagger(UserService)["paths"]

    assert paths["/users"]["post"]["parameters"] == [
        {"name": "CreateUser", "in": "body", "required": True, "schema": {"$ref": "#/definitions/CreateUser"}},
    ]

    search = {p["name"]: p for p in paths["/users/search"]["post"]["parameters"]}
    assert search["active"] == {
        "name": "active",
        "in": "formData",
        "required": False,
        "type": "boolean",
        "enum": ["true", "false"],
    }
    assert search["limit"]["default"] == "20"
    assert search["name"]["description"] == "name prefix"


def test_definitions_shape():
    definitions = _swagger(UserService)["definitions"]

    user = definitions["sample_services.User"]
    assert user["type"] == "object"
    assert user["required"] == ["id", "name", "address"]
    assert user["properties"]["address"] == {"$ref": "#/definitions/sample_services.Address"}
    assert user["properties"]["status"] == {"type": "string", "enum": ["active", "disabled"]}

    report = definitions["sample_services.Report"]
    assert report["properties"]["rows"]["items"] == {
        "type": "object",
        "additionalProperties": {"type": "number", "format": "double"},
    }

    bulk = definitions["sample_services.UserService_bulk"]
    assert bulk == {"type": "array", "items": {"$ref": "#/definitions/sample_services.User"}}


def test_deprecated_and_default_response():
    op = _swagger(UserService)["paths"]["/users/{id}"]["delete"]
    assert op["deprecated"] is True
    assert op["responses"]["default"]["schema"] == {"$ref": "#/definitions/sample_services.ErrorBody"}
    assert op["responses"]["404"] == {"description": "not found"}


def test_security_definitions_limited_to_used_schemes():
    doc = _swagger(UserService, security_definitions=SECURITY)
    assert doc["securityDefinitions"] == {"api_key": SECURITY["api_key"]}

    assert "securityDefinitions" not in _swagger(OrderService, security_definitions=SECURITY)


def test_schema_to_dict_map_and_access():
    assert schema_to_dict(Schema.map_of(Schema.primitive("integer"))) == {
        "type": "object",
        "additionalProperties": {"type": "integer"},
    }
    s = Schema.primitive("string").model_copy(update={"access": "internal"})
    assert schema_to_dict(s) == {"type": "string", "x-access": "internal"}


def test_dump_document_formats():
    doc = _swagger(UserService)

    assert json.loads(dump_document(doc, "json")) == doc
    assert yaml.safe_load(dump_document(doc, "YAML")) == doc

    with pytest.raises(ValueError):
        dump_document(doc, "xml")


def test_document_media_types():
    doc = _swagger(UserService)
    assert doc["consumes"] == ["application/json"]
    assert doc["produces"] == ["application/json"]

    doc = _swagger(UserService, consumes=["application/xml"], produces=[])
    assert doc["consumes"] == ["application/xml"]
    assert "produces" not in doc
