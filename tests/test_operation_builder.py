from routespec.compiler.operations import SUCCESS, OperationBuilder, is_no_content, wrap_container
from routespec.compiler.schema import SchemaResolver
from routespec.declarations.loader import load_service
from routespec.document.model import Document
from routespec.domain.models import Schema
from sample_services import UserService, VerbService


def _build(cls, name):
    document = Document()
    method = next(m for m in load_service(cls).operations if m.name == name)
    op = OperationBuilder(SchemaResolver(), document).build(method)
    return op, document


def test_hidden_operation_is_not_built():
    op, _ = _build(UserService, "internal")
    assert op is None


def test_operation_id_defaults_to_method_name():
    op, _ = _build(UserService, "search")
    assert op.operation_id == "search"
    assert op.summary == "Search users"


def test_nickname_and_primitive_response():
    op, _ = _build(VerbService, "media")
    assert op.operation_id == "fetchMedia"
    assert op.responses["200"].shape.kind == "string"
    assert op.consumes == ["text/plain"]
    assert op.produces == ["text/csv", "application/json"]


def test_future_payload_matches_direct_payload():
    direct, _ = _build(UserService, "report")
    wrapped, _ = _build(UserService, "report_future")

    assert direct.responses == wrapped.responses
    assert direct.responses["200"].shape.ref == "sample_services.Report"


def test_response_container_wraps_payload():
    op, doc = _build(UserService, "search")

    shape = op.responses["200"].shape
    assert shape.kind == "array"
    assert shape.items.ref == "sample_services.User"
    assert {"sample_services.User", "sample_services.Address"} <= set(doc.definitions)


def test_declared_responses_and_deprecation():
    op, doc = _build(UserService, "remove")

    assert set(op.responses) == {"default", "404"}
    assert op.responses["default"].description == "unexpected error"
    assert op.responses["default"].shape.ref == "sample_services.ErrorBody"
    assert op.responses["404"].shape is None
    assert op.deprecated is True
    assert "sample_services.ErrorBody" in doc.definitions


def test_default_response_when_nothing_declared():
    op, _ = _build(UserService, "create")
    assert list(op.responses) == ["default"]
    assert op.responses["default"].description == SUCCESS
    assert op.responses["default"].shape is None


def test_response_headers_skip_no_content():
    op, _ = _build(UserService, "get")
    headers = op.responses["200"].headers
    assert list(headers) == ["X-Rate-Limit"]
    assert headers["X-Rate-Limit"].kind == "integer"
    assert headers["X-Rate-Limit"].description == "calls left"


def test_wrap_container_and_no_content():
    s = Schema.primitive("string")
    assert wrap_container(s, "list").kind == "array"
    assert wrap_container(s, "SET").kind == "array"
    assert wrap_container(s, "map").values.kind == "string"
    assert wrap_container(s, "") is s

    assert is_no_content(None)
    assert is_no_content(type(None))
    assert not is_no_content(int)
