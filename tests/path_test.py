"""
Tests matching requests to the path templates of the description document
"""
import pytest

from aiocommittee import PathAmbiguityError
from aiocommittee.matcher import PathMatcher, split
from aiocommittee.v3 import PathItem


@pytest.mark.parametrize(
    "path, segments",
    [("/", []), ("", []), ("/cities", ["cities"]), ("/cities/", ["cities"]), ("/cities/{id}/", ["cities", "{id}"])],
)
def test_split(path, segments):
    assert split(path) == segments


def test_match_literal(cities_document):
    m = cities_document.match("GET", "/cities")
    assert m.matched
    assert m.path == "/cities"
    assert m.operation.operationId == "listCities"
    assert m.parameters == {}


def test_match_root(cities_document):
    m = cities_document.match("get", "/")
    assert m.matched and m.operation.operationId == "index"
    assert cities_document.match("get", "").operation.operationId == "index"


def test_match_trailing_slash(cities_document):
    assert cities_document.match("post", "/cities/").operation.operationId == "createCity"


def test_match_parameter(cities_document):
    m = cities_document.match("get", "/cities/42")
    assert m.operation.operationId == "getCity"
    assert m.path == "/cities/{id}"
    assert m.parameters == {"id": "42"}
    assert m.pathitem is cities_document.paths["/cities/{id}"]


def test_match_prefers_literal(cities_document):
    """
    /cities/new and /cities/{id} match /cities/new, less parameter segments wins
    """
    m = cities_document.match("get", "/cities/new")
    assert m.operation.operationId == "newCity"
    assert m.parameters == {}


def test_match_percent_decoded(cities_document):
    m = cities_document.match("put", "/cities/S%C3%A3o%20Paulo")
    assert m.parameters == {"id": "São Paulo"}

    # an encoded / does not split the segment
    m = cities_document.match("put", "/cities/a%2Fb")
    assert m.path == "/cities/{id}"
    assert m.parameters == {"id": "a/b"}


def test_match_not_encoded(cities_document):
    m = cities_document.match("put", "/cities/a%2Fb", encoded=False)
    assert m.parameters == {"id": "a%2Fb"}


def test_match_mixed_segment(cities_document):
    m = cities_document.match("get", "/files/report.json")
    assert m.operation.operationId == "getFile"
    assert m.parameters == {"name": "report"}

    assert not cities_document.match("get", "/files/report.yaml").matched


def test_match_not_documented(cities_document):
    m = cities_document.match("get", "/towns")
    assert not m.matched
    assert m.operation is None and m.path is None

    # segment count has to match exactly
    assert not cities_document.match("get", "/cities/1/name").matched


def test_match_method_not_documented(cities_document):
    m = cities_document.match("delete", "/cities")
    assert m.matched
    assert m.operation is None
    assert m.path == "/cities"

    m = cities_document.match("connect", "/cities")
    assert m.matched and m.operation is None


def test_operations(cities_document):
    operations = [(path, method, op.operationId) for path, method, op in cities_document.matcher.operations()]
    assert operations == [
        ("/", "get", "index"),
        ("/cities", "get", "listCities"),
        ("/cities", "post", "createCity"),
        ("/cities/new", "get", "newCity"),
        ("/cities/{id}", "get", "getCity"),
        ("/cities/{id}", "put", "updateCity"),
        ("/files/{name}.json", "get", "getFile"),
    ]


@pytest.mark.parametrize(
    "paths",
    [
        ["/cities/{id}", "/cities/{name}"],
        ["/{a}/b", "/a/{b}"],
        ["/files/{name}", "/files/{name}.json"],
        ["/cities", "/cities/"],
    ],
)
def test_ambiguous(paths):
    with pytest.raises(PathAmbiguityError) as e:
        PathMatcher({p: PathItem() for p in paths})
    assert sorted(e.value.paths) == sorted(paths)


@pytest.mark.parametrize(
    "paths",
    [
        ["/cities/{id}", "/towns/{id}"],
        ["/files/{name}.json", "/files/{name}.yaml"],
        ["/cities/{id}", "/cities/{id}/name"],
        ["/cities/new", "/cities/{id}"],
    ],
)
def test_not_ambiguous(paths):
    matcher = PathMatcher({p: PathItem() for p in paths})
    assert matcher.paths == sorted(paths)
