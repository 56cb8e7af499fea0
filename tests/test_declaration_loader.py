from typing import Annotated

import pytest

from routespec.declarations.decorators import GET, api, json_creator, operation, path
from routespec.declarations.loader import creator_arguments, is_service, load_service
from routespec.declarations.metadata import ApiParam
from routespec.declarations.types import type_token_element, unwrap_async
from routespec.errors import InvalidDeclaration
from sample_services import (
    CreateUser,
    NoCreator,
    PostResource,
    Report,
    TwoCreators,
    User,
    UserList,
    UserService,
    VerbService,
)


def test_load_service_reads_class_metadata():
    decl = load_service(UserService)

    assert decl.name == "sample_services.UserService"
    assert decl.path == "/users"
    assert decl.tags() == ["users"]
    assert decl.authorizations() == ["api_key"]
    assert not decl.hidden


def test_methods_in_definition_order_unmarked_skipped():
    decl = load_service(UserService)
    assert [m.name for m in decl.operations] == [
        "get",
        "create",
        "search",
        "bulk",
        "remove",
        "report",
        "report_future",
        "internal",
        "posts",
    ]


def test_tags_fall_back_to_api_value():
    assert load_service(VerbService).tags() == ["verbs"]


def test_method_declarations():
    methods = {m.name: m for m in load_service(UserService).operations}

    get = methods["get"]
    assert get.path == "/{id:[0-9]+}"
    assert get.verb == "GET"
    assert get.identifier == "sample_services.UserService_get"
    assert get.arguments[0].param == ApiParam(name="id", required=True)
    assert get.arguments[0].annotation is int

    assert methods["create"].request_body.name == "CreateUser"
    assert methods["create"].request_body.reference == "sample_services.CreateUser"
    assert methods["create"].arguments[0].request_handle is True

    assert methods["bulk"].request_element == list[User]
    assert methods["remove"].deprecated is True
    assert methods["report"].json_request is True
    assert methods["posts"].sub_resource is PostResource
    assert methods["get"].sub_resource is None


def test_class_without_api_is_rejected():
    with pytest.raises(InvalidDeclaration):
        load_service(CreateUser)


def test_service_metadata_is_not_inherited():
    class Extended(UserService):
        pass

    assert is_service(UserService)
    assert not is_service(Extended)


def test_inherited_methods_come_first():
    @api("/more")
    class More(VerbService):
        @GET
        @path("/extra")
        @operation("Extra")
        def extra(self) -> None: ...

    names = [m.name for m in load_service(More).operations]
    assert names == ["default", "explicit", "custom", "media", "extra"]


def test_deprecated_attribute_marks_method():
    @api()
    class Old:
        @operation("Old")
        def go(self) -> None: ...

    Old.go.__deprecated__ = "use something else"
    assert load_service(Old).operations[0].deprecated is True


def test_unresolvable_annotation_is_an_invalid_declaration():
    @api()
    class Broken:
        @operation("Broken")
        def go(self, x: "DoesNotExist") -> None: ...  # noqa: F821

    with pytest.raises(InvalidDeclaration):
        load_service(Broken)


def test_creator_arguments():
    args = creator_arguments(CreateUser)
    assert [a.name for a in args] == ["name", "address"]
    assert args[0].param.required is True

    with pytest.raises(InvalidDeclaration, match="doesn't have any constructor"):
        creator_arguments(NoCreator)
    with pytest.raises(InvalidDeclaration, match="more than one"):
        creator_arguments(TwoCreators)


def test_creator_first_argument_needs_metadata():
    class Partial:
        @json_creator
        def __init__(self, name: str, age: Annotated[int, ApiParam(name="age")]) -> None: ...

    with pytest.raises(InvalidDeclaration, match="ApiParam"):
        creator_arguments(Partial)


def test_type_helpers():
    import asyncio
    from collections.abc import Awaitable, Coroutine

    assert type_token_element(UserList) == list[User]
    assert type_token_element(User) is None

    assert unwrap_async(asyncio.Future[Report]) is Report
    assert unwrap_async(Awaitable[Report]) is Report
    assert unwrap_async(Coroutine[None, None, Report]) is Report
    assert unwrap_async(Report) is Report
