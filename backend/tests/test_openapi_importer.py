import json

import pytest

from posterboy.config import settings
from posterboy.errors import MalformedInput, MissingRequiredField
from posterboy.schemas.collection import JsonBody, NoBody
from posterboy.services.importers.openapi import (
    DEFAULT_BASE_URL,
    decode_openapi,
    example_from_schema,
)


def _spec(paths, **extra):
    return {"openapi": "3.0.0", "info": {"title": "Users API"}, "paths": paths, **extra}


def test_path_becomes_templated_request(ids):
    spec = _spec({"/users/{id}": {"get": {"summary": "Get user"}}}, servers=[{"url": "https://api"}])

    (collection,) = decode_openapi(spec, ids).collections

    (request,) = collection.requests
    assert request.url == "{{baseUrl}}/users/{id}"
    assert request.method == "GET"
    assert request.name == "Get user"
    assert collection.variables == {"baseUrl": "https://api"}
    assert collection.name == "Users API"


def test_base_url_fallbacks(ids):
    (collection,) = decode_openapi(_spec({}), ids).collections
    assert collection.variables["baseUrl"] == DEFAULT_BASE_URL

    swagger = {"swagger": "2.0", "host": "petstore.io", "basePath": "/v2", "schemes": ["http"], "paths": {}}
    (collection,) = decode_openapi(swagger, ids).collections
    assert collection.variables["baseUrl"] == "http://petstore.io/v2"
    assert collection.name == "OpenAPI Collection"


def test_swagger_schemes_must_be_a_list(ids):
    swagger = {"swagger": "2.0", "host": "h", "schemes": {"a": 1}, "paths": {"/a": {"get": {}}}}

    (collection,) = decode_openapi(swagger, ids).collections

    assert collection.variables["baseUrl"] == "https://h"
    assert len(collection.requests) == 1


def test_request_names_fall_back(ids):
    spec = _spec({"/items": {"get": {"operationId": "listItems"}, "delete": {}}})
    names = [r.name for r in decode_openapi(spec, ids).collections[0].requests]
    assert names == ["listItems", "DELETE /items"]


def test_query_params_use_example_then_default(ids):
    spec = _spec({
        "/search": {
            "parameters": [{"name": "lang", "in": "query", "schema": {"default": "en"}}],
            "get": {
                "parameters": [
                    {"name": "q", "in": "query", "example": "cats"},
                    {"name": "page", "in": "query", "default": 1},
                    {"name": "raw", "in": "query"},
                    {"name": "X-Id", "in": "header"},
                    {"$ref": "#/components/parameters/Limit"},
                ],
            },
        },
    }, components={"parameters": {"Limit": {"name": "limit", "in": "query", "example": 10}}})

    (request,) = decode_openapi(spec, ids).collections[0].requests
    assert [(p.key, p.value) for p in request.params] == [
        ("lang", "en"), ("q", "cats"), ("page", "1"), ("raw", ""), ("limit", "10"),
    ]


def test_json_body_synthesized_from_schema(ids):
    spec = _spec(
        {"/users": {"post": {"requestBody": {"content": {
            "application/json": {"schema": {"$ref": "#/components/schemas/User"}},
            "application/xml": {},
        }}}}},
        components={"schemas": {"User": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "age": {"type": "integer"},
                "score": {"type": "number"},
                "tags": {"type": "array"},
                "meta": {"type": "object"},
                "active": {"type": "boolean", "example": False},
                "odd": {},
            },
        }}},
    )

    (request,) = decode_openapi(spec, ids).collections[0].requests
    assert isinstance(request.body, JsonBody)
    assert json.loads(request.body.data) == {
        "name": "string", "age": 0, "score": 0, "tags": [], "meta": {}, "active": False, "odd": None,
    }


def test_media_example_wins(ids):
    spec = _spec({"/a": {"put": {"requestBody": {"content": {
        "application/json": {"example": {"x": 1}, "schema": {"type": "object", "properties": {"y": {"type": "string"}}}},
    }}}}})
    (request,) = decode_openapi(spec, ids).collections[0].requests
    assert json.loads(request.body.data) == {"x": 1}


def test_non_json_first_content_type_has_no_body(ids):
    spec = _spec({"/upload": {"post": {"requestBody": {"content": {
        "multipart/form-data": {},
        "application/json": {"example": {"x": 1}},
    }}}}})
    (request,) = decode_openapi(spec, ids).collections[0].requests
    assert isinstance(request.body, NoBody)


def test_swagger_body_parameter(ids):
    spec = {
        "swagger": "2.0",
        "paths": {"/pets": {"post": {"parameters": [
            {"in": "body", "name": "pet", "schema": {"example": {"name": "Rex"}}},
        ]}}},
    }
    (request,) = decode_openapi(spec, ids).collections[0].requests
    assert json.loads(request.body.data) == {"name": "Rex"}


def test_string_example_used_verbatim():
    assert example_from_schema({}, {"example": "plain"}) == "plain"
    assert example_from_schema({}, {"$ref": "#/missing"}) == {}


def test_yaml_text_is_accepted(ids):
    text = """
openapi: 3.0.0
info:
  title: Pets
servers:
  - url: https://pets.example
paths:
  /pets:
    get:
      summary: List pets
"""
    (collection,) = decode_openapi(text, ids).collections
    assert collection.name == "Pets"
    assert [r.url for r in collection.requests] == ["{{baseUrl}}/pets"]


def test_unparseable_text(ids):
    with pytest.raises(MalformedInput):
        decode_openapi("openapi: [unclosed", ids)


def test_version_marker_required(ids):
    with pytest.raises(MissingRequiredField):
        decode_openapi({"paths": {}}, ids)


def test_bad_path_item_is_skipped(ids):
    spec = _spec({"/bad": "nope", "/worse": {"get": "nope"}, "/ok": {"get": {}}})
    bundle = decode_openapi(spec, ids)
    assert bundle.skipped == 2
    assert [r.url for r in bundle.collections[0].requests] == ["{{baseUrl}}/ok"]


def test_group_by_tag(ids, monkeypatch):
    monkeypatch.setattr(settings, "OPENAPI_GROUP_BY_TAG", True)
    spec = _spec({
        "/users": {"get": {"tags": ["users"]}, "post": {"tags": ["users"]}},
        "/health": {"get": {}},
    })

    (collection,) = decode_openapi(spec, ids).collections

    (folder,) = collection.folders
    assert folder.name == "users"
    assert len(collection.requests_in(folder.id)) == 2
    assert len(collection.requests_in(None)) == 1


def test_group_by_tag_ignores_non_list_tags(ids, monkeypatch):
    monkeypatch.setattr(settings, "OPENAPI_GROUP_BY_TAG", True)
    spec = _spec({"/users": {"get": {"tags": "users"}, "post": {"tags": {"0": "users"}}}})

    bundle = decode_openapi(spec, ids)

    (collection,) = bundle.collections
    assert collection.folders == []
    assert len(collection.requests_in(None)) == 2
    assert bundle.skipped == 0
