"""
Tests validating requests & responses of matched Operations
"""
import json

import httpx
import pytest
import yarl

from aiocommittee import SpecDocument, SchemaValidator, ErrorKind
from aiocommittee.request import coerce, validate_request, validate_response
from aiocommittee.v3 import Schema

CITY = {
    "name": "Berlin",
    "latitude": 52.52,
    "longitude": 13.405,
    "demonym": "Berliner",
    "website": "https://berlin.de",
}

JSON = {"content-type": "application/json"}


@pytest.fixture
def validator(cities_document):
    return SchemaValidator(cities_document)


def request(document, validator, method, url, headers=None, body=b"", **kwargs):
    url = yarl.URL(url)
    match = document.match(method, url.raw_path)
    assert match.operation is not None
    return validate_request(document, validator, match, url.query, httpx.Headers(headers or {}), body, **kwargs)


def response(document, validator, method, path, status_code, headers=None, body=b""):
    match = document.match(method, path)
    assert match.operation is not None
    return validate_response(document, validator, match, method, status_code, httpx.Headers(headers or {}), body)


@pytest.mark.parametrize(
    "schema, value, result",
    [
        ({"type": "integer"}, "5", 5),
        ({"type": "integer"}, "5.5", "5.5"),
        ({"type": "number"}, "5", 5),
        ({"type": "number"}, "5.5", 5.5),
        ({"type": "number"}, "nan", "nan"),
        ({"type": "boolean"}, "true", True),
        ({"type": "boolean"}, "false", False),
        ({"type": "boolean"}, "yes", "yes"),
        ({"type": "string"}, "5", "5"),
        ({"type": ["integer", "string"]}, "x", "x"),
        ({"type": "integer", "nullable": True}, "null", None),
        ({}, "5", "5"),
    ],
)
def test_coerce(cities_document, schema, value, result):
    r = coerce(cities_document, Schema.model_validate(schema), value)
    assert r == result and type(r) is type(result)


def test_request_valid(cities_document, validator):
    assert request(cities_document, validator, "get", "/cities?limit=10&tags=capital&tags=coastal") == []
    assert request(cities_document, validator, "get", "/cities", {"X-Request-Id": "c0ffee"}) == []
    assert request(cities_document, validator, "get", "/cities/7") == []


def test_request_query(cities_document, validator):
    errors = request(cities_document, validator, "get", "/cities?limit=0")
    assert len(errors) == 1
    assert errors[0].kind == ErrorKind.INVALID_VALUE
    assert errors[0].path == "#/query/limit"
    assert errors[0].message == "0 is less than minimum 1.0"

    errors = request(cities_document, validator, "get", "/cities?limit=ten")
    assert errors[0].kind == ErrorKind.TYPE_MISMATCH
    assert errors[0].message == 'expected integer, but received string: "ten"'


def test_request_query_array(cities_document, validator):
    errors = request(cities_document, validator, "get", "/cities?tags=capital&tags=inland")
    assert [e.path for e in errors] == ["#/query/tags/1"]

    # yes is a string in YAML 1.2
    assert request(cities_document, validator, "get", "/cities?tags=yes") == []


def test_request_query_no_coercion(cities_document, validator):
    errors = request(cities_document, validator, "get", "/cities?limit=5", coerce_query_params=False)
    assert errors[0].kind == ErrorKind.TYPE_MISMATCH


def test_request_path(cities_document, validator):
    errors = request(cities_document, validator, "get", "/cities/-1")
    assert [e.path for e in errors] == ["#/path/id"]
    assert errors[0].pointer == "#/components/parameters/id/schema"

    errors = request(cities_document, validator, "get", "/cities/abc")
    assert errors[0].kind == ErrorKind.TYPE_MISMATCH

    errors = request(cities_document, validator, "get", "/cities/5", coerce_path_params=False)
    assert errors[0].kind == ErrorKind.TYPE_MISMATCH

    # the Operation parameter overrides the PathItem parameter
    assert request(cities_document, validator, "put", "/cities/abc") == []


def test_request_header(cities_document, validator):
    errors = request(cities_document, validator, "get", "/cities", {"X-Request-Id": "nope"})
    assert [e.path for e in errors] == ["#/header/X-Request-Id"]


def test_request_cookie(cities_document, validator):
    assert request(cities_document, validator, "get", "/cities/1", {"Cookie": "session=abc; theme=dark"}) == []
    assert request(cities_document, validator, "get", "/cities/1", {"Cookie": "invalid;;;=="}) == []


def test_request_missing_required_parameter(cities_document, validator):
    cities_document.paths["/cities"].get.parameters[0].required = True
    try:
        errors = request(cities_document, validator, "get", "/cities")
    finally:
        cities_document.paths["/cities"].get.parameters[0].required = None
    assert len(errors) == 1
    assert errors[0].kind == ErrorKind.MISSING_REQUIRED
    assert str(errors[0]) == "#/paths/~1cities/get/parameters/0 missing required parameters: limit"


def test_request_body(cities_document, validator):
    body = json.dumps({"city": CITY}).encode()
    assert request(cities_document, validator, "post", "/cities", JSON, body) == []

    city = dict(CITY)
    del city["name"]
    errors = request(cities_document, validator, "post", "/cities", JSON, json.dumps({"city": city}).encode())
    assert [str(e) for e in errors] == ["#/components/schemas/city missing required parameters: name"]


def test_request_body_missing(cities_document, validator):
    errors = request(cities_document, validator, "post", "/cities", JSON)
    assert errors[0].kind == ErrorKind.MISSING_REQUIRED
    assert str(errors[0]) == "#/paths/~1cities/post/requestBody missing required request body"

    # optional
    assert request(cities_document, validator, "put", "/cities/1") == []


def test_request_body_invalid_json(cities_document, validator):
    errors = request(cities_document, validator, "post", "/cities", JSON, b"{'city':")
    assert errors[0].kind == ErrorKind.INVALID_BODY
    assert errors[0].message.startswith("request body is not valid JSON")


def test_request_body_content_type(cities_document, validator):
    body = json.dumps({"city": CITY}).encode()
    errors = request(cities_document, validator, "post", "/cities", {"content-type": "text/plain"}, body)
    assert errors[0].kind == ErrorKind.CONTENT_TYPE
    assert errors[0].message == "expected Content-Type application/json, but received text/plain"

    errors = request(cities_document, validator, "post", "/cities", {}, body)
    assert errors[0].kind == ErrorKind.CONTENT_TYPE

    # not checked - a body without Content-Type is validated as json
    assert request(cities_document, validator, "post", "/cities", {}, body, check_content_type=False) == []
    headers = {"content-type": "text/plain"}
    assert request(cities_document, validator, "post", "/cities", headers, body, check_content_type=False) == []

    # parameters
    headers = {"content-type": "application/json; charset=utf-8"}
    assert request(cities_document, validator, "post", "/cities", headers, body) == []

    # declared media types which are not json are accepted as is
    headers = {"content-type": "application/xml"}
    assert request(cities_document, validator, "put", "/cities/1", headers, b"<city/>") == []


def test_request_body_too_deep(with_schema_recursive):
    document = SpecDocument("/", with_schema_recursive)
    validator = SchemaValidator(document, max_depth=4)

    tree = {"name": "leaf"}
    for i in range(3):
        tree = {"name": str(i), "children": [tree]}
    assert request(document, validator, "post", "/tree", JSON, json.dumps(tree).encode()) == []

    tree = {"name": "root", "children": [tree]}
    errors = request(document, validator, "post", "/tree", JSON, json.dumps(tree).encode())
    assert [(e.kind, e.pointer, e.path) for e in errors] == [(ErrorKind.TOO_DEEP, "#/components/schemas/node", "#")]
    assert errors[0].message == "exceeds the maximum depth 4"


def test_response_valid(cities_document, validator):
    body = json.dumps({"cities": [CITY]}).encode()
    assert response(cities_document, validator, "get", "/cities", 200, {**JSON, "X-Total-Count": "1"}, body) == []


def test_response_bare_array(cities_document, validator):
    body = json.dumps([CITY]).encode()
    errors = response(cities_document, validator, "get", "/cities", 200, {**JSON, "X-Total-Count": "1"}, body)
    assert len(errors) == 1
    assert errors[0].path == "#"
    assert errors[0].message.startswith("expected object, but received array")


def test_response_headers(cities_document, validator):
    body = json.dumps({"cities": []}).encode()
    errors = response(cities_document, validator, "get", "/cities", 200, JSON, body)
    assert [str(e) for e in errors] == [
        "#/paths/~1cities/get/responses/200/headers/X-Total-Count missing required headers: X-Total-Count"
    ]

    errors = response(cities_document, validator, "get", "/cities", 200, {**JSON, "X-Total-Count": "many"}, body)
    assert errors[0].kind == ErrorKind.TYPE_MISMATCH
    assert errors[0].path == "#/header/X-Total-Count"


def test_response_status(cities_document, validator):
    errors = response(cities_document, validator, "post", "/cities", 500, JSON, b"{}")
    assert len(errors) == 1
    assert errors[0].kind == ErrorKind.UNKNOWN_STATUS
    assert errors[0].pointer == "#/paths/~1cities/post/responses"

    # range
    body = json.dumps({"id": "conflict", "message": "exists"}).encode()
    assert response(cities_document, validator, "post", "/cities", 409, JSON, body) == []
    errors = response(cities_document, validator, "post", "/cities", 409, JSON, b"{}")
    assert {e.pointer for e in errors} == {"#/components/schemas/error"}

    # default
    assert response(cities_document, validator, "get", "/cities", 503, JSON, body) == []


def test_response_not_json(cities_document, validator):
    headers = {"content-type": "text/html"}
    assert response(cities_document, validator, "get", "/cities/new", 200, headers, b"<form/>") == []
    assert response(cities_document, validator, "get", "/cities/1", 404, {}, b"") == []


def test_response_invalid_json(cities_document, validator):
    errors = response(cities_document, validator, "get", "/cities/1", 200, JSON, b"{")
    assert errors[0].kind == ErrorKind.INVALID_BODY
    assert errors[0].pointer == "#/paths/~1cities~1{id}/get/responses/200"
