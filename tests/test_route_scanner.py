import pytest

from routespec.compiler.scanner import RouteScanner
from routespec.errors import CyclicSubResource, InvalidDeclaration
from sample_services import (
    BareArgsService,
    CatalogService,
    ClashService,
    CycleA,
    EventService,
    HiddenService,
    NoCreatorService,
    OrderService,
    PostResource,
    SelfLoop,
    TwoCreatorService,
    UserService,
    VerbService,
)


def _read(*classes, include_hidden=False):
    scanner = RouteScanner()
    for cls in classes:
        scanner.read(cls, include_hidden=include_hidden)
    return scanner.document


def _routes(doc):
    return sorted((path, verb) for path, verb, _ in doc.operations())


def test_user_service_routes():
    doc = _read(UserService)

    assert _routes(doc) == [
        ("/users", "post"),
        ("/users/bulk", "put"),
        ("/users/report", "post"),
        ("/users/report-future", "post"),
        ("/users/search", "post"),
        ("/users/{id}", "delete"),
        ("/users/{id}", "get"),
        ("/users/{id}", "post"),
        ("/users/{id}/posts", "get"),
    ]


def test_every_operation_has_a_response():
    doc = _read(UserService, VerbService, EventService, OrderService)
    for _, _, op in doc.operations():
        assert op.responses


def test_path_regex_moves_to_parameter_pattern():
    doc = _read(UserService)
    op = doc.operation("/users/{id}", "get")

    assert [(p.name, p.location, p.required, p.pattern) for p in op.parameters] == [
        ("id", "path", True, "[0-9]+"),
    ]


def test_form_parameter_named_after_placeholder_becomes_path_parameter():
    doc = _read(OrderService)
    op = doc.operation("/orders/{orderId}/cancel", "post")

    locations = {p.name: (p.location, p.required) for p in op.parameters}
    assert locations == {"orderId": ("path", True), "reason": ("formData", False)}


def test_sub_resource_inherits_path_parameters_and_tags():
    doc = _read(UserService)
    op = doc.operation("/users/{id}/posts", "get")

    assert op.operation_id == "list_posts"
    assert [(p.name, p.location, p.required) for p in op.parameters] == [("id", "path", True)]
    assert op.tags == ["users", "posts"]
    assert op.responses["200"].shape.items.ref == "sample_services.Post"
    assert "posts" in doc.tags
    assert "sample_services.Post" in doc.definitions


def test_sub_resource_locator_is_written_too():
    doc = _read(UserService)
    locator = doc.operation("/users/{id}", "post")
    assert locator.operation_id == "posts"


def test_hidden_operations_and_declarations_are_skipped():
    doc = _read(UserService)
    assert doc.operation("/users/internal", "post") is None

    assert _routes(_read(HiddenService)) == []
    assert _routes(_read(PostResource)) == []
    assert _routes(_read(HiddenService, include_hidden=True)) == [("/secret", "get")]


def test_verb_precedence():
    doc = _read(VerbService)
    assert _routes(doc) == [
        ("/verbs/custom", "purge"),
        ("/verbs/default", "post"),
        ("/verbs/explicit", "patch"),
        ("/verbs/media", "get"),
    ]


def test_media_types_default_to_json():
    doc = _read(VerbService)

    default = doc.operation("/verbs/default", "post")
    assert default.consumes == ["application/json"]
    assert default.produces == ["application/json"]

    media = doc.operation("/verbs/media", "get")
    assert media.consumes == ["text/plain"]
    assert media.produces == ["text/csv", "application/json"]
    assert media.schemes == ["http", "https"]


def test_tags_derived_from_api_value():
    doc = _read(VerbService)
    assert doc.tags == ["verbs"]
    assert all(op.tags == ["verbs"] for _, _, op in doc.operations())


def test_operation_tags_come_first():
    doc = _read(UserService)
    assert doc.operation("/users/report", "post").tags == ["reports", "users"]
    assert doc.tags[:2] == ["users", "reports"]


def test_service_authorizations_become_security():
    doc = _read(UserService)
    assert doc.operation("/users/search", "post").security == ["api_key"]
    assert doc.security_schemes == ["api_key"]


def test_cycle_is_reported_with_chain():
    with pytest.raises(CyclicSubResource) as exc:
        _read(CycleA)
    assert exc.value.chain == (
        "sample_services.CycleA",
        "sample_services.CycleB",
        "sample_services.CycleA",
    )


def test_self_referencing_sub_resource_is_a_cycle():
    with pytest.raises(CyclicSubResource) as exc:
        _read(SelfLoop)
    assert exc.value.chain == ("sample_services.SelfLoop", "sample_services.SelfLoop")


def test_rescanning_into_the_same_document_is_stable():
    scanner = RouteScanner()
    scanner.read(UserService)
    definitions = {k: v.model_copy(deep=True) for k, v in scanner.document.definitions.items()}
    tags = list(scanner.document.tags)

    scanner.read(UserService)

    assert scanner.document.definitions == definitions
    assert scanner.document.tags == tags
    assert len(list(scanner.document.operations())) == 9
    assert scanner.document.unresolved_references() == []


def test_request_name_clash_across_services():
    scanner = RouteScanner()
    scanner.read(UserService)
    with pytest.raises(InvalidDeclaration):
        scanner.read(ClashService)


def test_structural_errors_propagate():
    with pytest.raises(InvalidDeclaration):
        _read(BareArgsService)
    with pytest.raises(InvalidDeclaration, match="@json_creator"):
        _read(NoCreatorService)
    with pytest.raises(InvalidDeclaration, match="more than one"):
        _read(TwoCreatorService)


def test_sub_resource_own_placeholder_parameter_is_not_duplicated():
    doc = _read(CatalogService)
    op = doc.operation("/catalogs/{id}/items", "get")

    assert [(p.name, p.location, p.required, p.pattern) for p in op.parameters] == [
        ("id", "path", True, "[0-9]+"),
    ]
    assert op.parameters[0].description == "catalog id"
