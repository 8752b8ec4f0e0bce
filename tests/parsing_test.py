"""
Tests parsing description documents
"""
import json

import pytest

import aiocommittee
from aiocommittee import (
    SpecDocument,
    SpecError,
    ParseError,
    SchemaRefError,
    UnsupportedVersionError,
    PathAmbiguityError,
)
from aiocommittee import v3

URLBASE = "/"


def test_parse_from_yaml(cities):
    """
    Tests that we can parse a valid yaml file
    """
    spec = SpecDocument(URLBASE, cities)
    assert sorted(spec.paths.keys()) == ["/", "/cities", "/cities/new", "/cities/{id}", "/files/{name}.json"]
    assert spec.info.title == "Cities"
    assert spec.openapi == cities["openapi"]
    assert set(spec.schemas.keys()) == {"city", "cities", "error"}


def test_parse_yaml12():
    """
    dates and yes/no are strings in YAML 1.2
    """
    spec = SpecDocument.load_file("tests/fixtures/cities.yaml")
    assert spec.info.version == "2024-05-01"
    tags = spec.resolve(spec.paths["/cities"].get.parameters[1]).schema_.items
    assert tags.enum == ["capital", "coastal", "yes", "no"]


def test_load_file():
    spec = aiocommittee.load("tests/fixtures/cities.yaml")
    assert str(spec.url) == "cities.yaml"
    assert isinstance(spec.loader, aiocommittee.FileSystemLoader)


def test_loads_json(cities):
    spec = SpecDocument.loads("cities.json", json.dumps(cities))
    assert "/cities/{id}" in spec.paths


def test_loads_without_suffix(cities):
    """
    without a suffix json & yaml are tried
    """
    spec = SpecDocument.loads("https://example.org/openapi", json.dumps(cities))
    assert "/cities" in spec.paths


def test_loads_malformed():
    with pytest.raises(ParseError, match="is not valid yaml"):
        SpecDocument.loads("openapi.yaml", "openapi: [3.0.3\ninfo: {")


def test_loads_not_a_mapping():
    with pytest.raises(ParseError, match="not a mapping"):
        SpecDocument.loads("openapi.yaml", "- openapi\n- info\n")


@pytest.mark.parametrize(
    "document, message",
    [
        ({"swagger": "2.0", "info": {"title": "", "version": ""}}, "swagger version 2.0 not supported"),
        ({"info": {"title": "", "version": ""}}, "missing openapi field"),
        ({"openapi": "4.0.0", "info": {"title": "", "version": ""}}, "openapi major version 4.0.0 not supported"),
    ],
)
def test_unsupported_version(document, message):
    with pytest.raises(UnsupportedVersionError, match=message):
        SpecDocument(URLBASE, document)


def test_openapi_version_float():
    """
    openapi: 3.1 is a float in YAML
    """
    spec = SpecDocument.loads("openapi.yaml", "openapi: 3.1\ninfo:\n  title: t\n  version: v\n")
    assert spec.openapi == "3.1"


def test_parsing_paths_invalid():
    """
    Tests that broken documents fail to parse
    """
    with pytest.raises(ParseError):
        SpecDocument(URLBASE, {"openapi": "3.0.3", "info": {"title": "", "version": ""}, "paths": {"cities": {}}})


def test_parsing_status_invalid(with_paths_status_invalid):
    with pytest.raises(ParseError, match="invalid status code 600"):
        SpecDocument(URLBASE, with_paths_status_invalid)


def test_parsing_path_parameter_not_required(cities):
    cities["components"]["parameters"]["id"]["required"] = False
    with pytest.raises(ParseError, match="path parameter id is not required"):
        SpecDocument(URLBASE, cities)


def test_parsing_ref_broken(with_schema_ref_broken):
    """
    Tests that parsing fails correctly when a reference is broken
    """
    with pytest.raises(SchemaRefError, match="#/components/schemas/missing") as e:
        SpecDocument(URLBASE, with_schema_ref_broken)
    assert e.value.element == "#/paths/~1cities/get/responses/200/content/application~1json/schema"


def test_parsing_ref_external(with_schema_ref_external):
    with pytest.raises(SchemaRefError, match="external references are not supported"):
        SpecDocument(URLBASE, with_schema_ref_external)


def test_parsing_ref_not_a_schema(cities):
    cities["components"]["schemas"]["city"]["properties"]["name"] = {"$ref": "#/components/responses/error"}
    with pytest.raises(SchemaRefError, match="target is not a Schema"):
        SpecDocument(URLBASE, cities)


def test_parsing_pattern_invalid(cities):
    cities["components"]["schemas"]["city"]["properties"]["name"]["pattern"] = "[unclosed"
    with pytest.raises(ParseError, match="invalid pattern"):
        SpecDocument(URLBASE, cities)


def test_parsing_servers(cities):
    cities["servers"] = [{"url": "https://{region}.example.com/v1", "variables": {"region": {"default": "eu"}}}]
    spec = SpecDocument(URLBASE, cities)
    assert spec._root.servers[0].variables["region"].default == "eu"
    # requests are matched against the paths alone, the server url is not a prefix
    assert spec.match("get", "/cities").path == "/cities"

    del cities["servers"][0]["variables"]
    with pytest.raises(ParseError, match="Missing Server Variables"):
        SpecDocument(URLBASE, cities)


def test_parsing_paths_ambiguous(with_paths_ambiguous):
    with pytest.raises(PathAmbiguityError) as e:
        SpecDocument(URLBASE, with_paths_ambiguous)
    assert e.value.paths == ["/cities/{id}", "/cities/{name}"]
    assert isinstance(e.value, SpecError)


def test_parsing_extensions(cities):
    cities["x-owner"] = "cities team"
    cities["paths"]["x-internal"] = True
    cities["paths"]["/cities"]["get"]["x-rate-limit"] = 5
    spec = SpecDocument(URLBASE, cities)
    assert spec._root.extensions == {"owner": "cities team"}
    assert "x-internal" not in spec.paths
    assert spec.paths["/cities"].get.extensions == {"rate-limit": 5}


def test_schema_pointer(cities_document):
    spec = cities_document
    assert spec.schemas["city"].pointer == "#/components/schemas/city"
    assert spec.schemas["city"].properties["name"].pointer == "#/components/schemas/city/properties/name"
    body = spec.request_body(spec.paths["/cities"].post)
    assert body.pointer == "#/paths/~1cities/post/requestBody"


def test_references(cities_document):
    spec = cities_document
    assert spec.references["#/components/schemas/city"] is spec.schemas["city"]
    assert "#/components/schemas/missing" not in spec.references
    with pytest.raises(TypeError):
        spec.references["#/components/schemas/missing"] = spec.schemas["city"]


def test_dump(cities_document):
    data = cities_document.dump()
    assert data["components"]["schemas"]["city"]["properties"]["population"] == {"type": "integer", "nullable": True}
    assert data["paths"]["/cities"]["get"]["parameters"][0]["in"] == "query"


def test_resolve(cities_document):
    spec = cities_document
    operation = spec.paths["/cities"].get

    r = operation.responses["default"]
    assert isinstance(r, v3.Reference)
    assert spec.resolve(r) is spec.components.responses["error"]
    assert spec.resolve("#/components/schemas/city") is spec.schemas["city"]

    schema = spec.resolve(spec.components.responses["error"].content["application/json"].schema_)
    assert schema is spec.schemas["error"]

    with pytest.raises(SchemaRefError):
        spec.resolve("#/components/schemas/missing")


def test_parameters(cities_document):
    """
    Operation parameters override PathItem parameters of the same name & location
    """
    spec = cities_document
    pathitem = spec.paths["/cities/{id}"]

    parameters = spec.parameters(pathitem, pathitem.get)
    assert [(p.name, p.in_) for p in parameters] == [("id", "path"), ("session", "cookie")]
    assert spec.resolve(parameters[0].schema_).type == "integer"

    parameters = spec.parameters(pathitem, pathitem.put)
    assert [(p.name, p.in_) for p in parameters] == [("id", "path")]
    assert parameters[0].schema_.type == "string"


def test_response(cities_document):
    spec = cities_document
    get = spec.paths["/cities"].get
    post = spec.paths["/cities"].post

    assert spec.response(get, 200) is get.responses["200"]
    assert spec.response(get, 503) is spec.components.responses["error"]
    assert spec.response(post, 409) is spec.components.responses["error"]
    assert spec.response(post, 500) is None


def test_cyclic_path_item_ref(cities):
    cities["components"]["pathItems"] = {
        "a": {"$ref": "#/components/pathItems/b"},
        "b": {"$ref": "#/components/pathItems/a"},
    }
    cities["paths"]["/loop"] = {"$ref": "#/components/pathItems/a"}
    with pytest.raises(SchemaRefError, match="reference cycle"):
        SpecDocument(URLBASE, cities)


def test_path_item_ref(cities):
    cities["components"]["pathItems"] = {"health": {"get": {"responses": {"204": {"description": "healthy"}}}}}
    cities["paths"]["/health"] = {"$ref": "#/components/pathItems/health"}
    spec = SpecDocument(URLBASE, cities)
    m = spec.match("get", "/health")
    assert m.matched and m.operation is spec.components.pathItems["health"].get


def test_repr(cities_document):
    assert repr(cities_document) == "<SpecDocument / Cities 2024-05-01>"
