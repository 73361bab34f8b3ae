"""
OpenAPI 3 / Swagger 2 decoder (paths, operations and servers subset).
"""
import json
from typing import Any

import yaml  # type: ignore

from posterboy.config import settings
from posterboy.errors import ItemConversionFailure, MalformedInput, MissingRequiredField
from posterboy.schemas.collection import stringify
from posterboy.services.importers.base import (
    ImportBundle,
    convert_item,
    require_dict,
    skip_item,
    text_of,
)
from posterboy.services.model_builder import CollectionBuilder, IdAllocator

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options")
DEFAULT_BASE_URL = "https://api.example.com"

_TYPE_DEFAULTS: dict[str, Any] = {
    "string": "string",
    "number": 0,
    "integer": 0,
    "boolean": True,
    "array": [],
    "object": {},
}


def load_openapi_text(raw_content: str) -> Any:
    """Parse an OpenAPI document from JSON or YAML text."""
    try:
        return json.loads(raw_content)
    except json.JSONDecodeError:
        try:
            return yaml.safe_load(raw_content)
        except yaml.YAMLError as exc:
            raise MalformedInput("Could not parse OpenAPI document as JSON or YAML") from exc


def _resolve_ref(spec: dict, node: Any) -> Any:
    """Follow a local ``$ref`` pointer; unresolvable pointers yield an empty object."""
    seen: set[str] = set()
    while isinstance(node, dict) and isinstance(node.get("$ref"), str):
        ref = node["$ref"]
        if ref in seen or not ref.startswith("#/"):
            return {}
        seen.add(ref)
        current: Any = spec
        for part in ref[2:].split("/"):
            current = current.get(part, {}) if isinstance(current, dict) else {}
        node = current
    return node


def default_for_type(schema_type: Any) -> Any:
    default = _TYPE_DEFAULTS.get(schema_type) if isinstance(schema_type, str) else None
    # Fresh containers per call
    return type(default)() if isinstance(default, (list, dict)) else default


def example_from_schema(spec: dict, schema: Any) -> Any:
    """Synthesize an example: ``schema.example``, else one value per property."""
    schema = _resolve_ref(spec, schema)
    if not isinstance(schema, dict):
        return {}
    if "example" in schema:
        return schema["example"]

    properties = schema.get("properties")
    if isinstance(properties, dict):
        example = {}
        for key, prop in properties.items():
            prop = _resolve_ref(spec, prop)
            if isinstance(prop, dict) and "example" in prop:
                example[key] = prop["example"]
            else:
                example[key] = default_for_type(prop.get("type") if isinstance(prop, dict) else None)
        return example
    return {}


def _body_text(example: Any) -> str:
    return example if isinstance(example, str) else json.dumps(example, indent=2)


def _extract_body(spec: dict, operation: dict, parameters: list) -> dict:
    request_body = _resolve_ref(spec, operation.get("requestBody"))
    if isinstance(request_body, dict) and isinstance(request_body.get("content"), dict) and request_body["content"]:
        content = request_body["content"]
        first_type = next(iter(content))
        if "json" not in first_type:
            return {"type": "none"}
        media = content[first_type] or {}
        example = media.get("example")
        if example is None:
            example = example_from_schema(spec, media.get("schema"))
        return {"type": "json", "data": _body_text(example)}

    # Swagger 2 carries the body as an ``in: body`` parameter
    for param in parameters:
        if param.get("in") == "body":
            return {"type": "json", "data": _body_text(example_from_schema(spec, param.get("schema")))}
    return {"type": "none"}


def _query_params(parameters: list) -> list[dict[str, str]]:
    params = []
    for param in parameters:
        if param.get("in") != "query" or not param.get("name"):
            continue
        value = param.get("example")
        if value is None:
            value = param.get("default")
        if value is None and isinstance(param.get("schema"), dict):
            value = param["schema"].get("example", param["schema"].get("default"))
        params.append({"key": stringify(param["name"]), "value": stringify(value)})
    return params


def _convert_operation(spec: dict, path: str, method: str, operation: dict, path_params: list) -> dict[str, Any]:
    parameters = [
        p for p in (_resolve_ref(spec, p) for p in path_params + list(operation.get("parameters") or []))
        if isinstance(p, dict)
    ]
    name = operation.get("summary") or operation.get("operationId") or f"{method.upper()} {path}"
    return {
        "name": text_of(name),
        "description": text_of(operation.get("description")),
        "method": method.upper(),
        "url": "{{baseUrl}}" + path,
        "headers": [],
        "params": _query_params(parameters),
        "cookies": [],
        "auth": {"type": "none"},
        "body": _extract_body(spec, operation, parameters),
    }


def determine_base_url(spec: dict) -> str:
    servers = spec.get("servers")
    if isinstance(servers, list) and servers and isinstance(servers[0], dict) and servers[0].get("url"):
        return stringify(servers[0]["url"])
    if spec.get("swagger") and spec.get("host"):
        schemes = spec.get("schemes")
        scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
        return f"{scheme}://{spec['host']}{spec.get('basePath', '')}"
    return DEFAULT_BASE_URL


def decode_openapi(data: Any, ids: IdAllocator) -> ImportBundle:
    """Decode an OpenAPI/Swagger document (parsed, or as JSON/YAML text)."""
    if isinstance(data, str):
        data = load_openapi_text(data)
    spec = require_dict(data, "OpenAPI specification")
    if not (spec.get("openapi") or spec.get("swagger")):
        raise MissingRequiredField("openapi", "OpenAPI specification")

    info = spec.get("info") if isinstance(spec.get("info"), dict) else {}
    builder = CollectionBuilder(
        ids,
        name=text_of(info.get("title")) or "OpenAPI Collection",
        description=text_of(info.get("description")) or "Imported from OpenAPI specification",
        variables={"baseUrl": determine_base_url(spec)},
    )
    bundle = ImportBundle()
    tag_folders: dict[str, str] = {}

    paths = spec.get("paths") if isinstance(spec.get("paths"), dict) else {}
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            skip_item(bundle, "OpenAPI", ItemConversionFailure(f"{path}: path item is not an object"))
            continue
        path_params = path_item.get("parameters") if isinstance(path_item.get("parameters"), list) else []

        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if operation is None:
                continue
            label = f"{method.upper()} {path}"
            try:
                if not isinstance(operation, dict):
                    raise ItemConversionFailure(f"{label}: operation is not an object")
                fields = convert_item(label, _convert_operation, spec, str(path), method, operation, path_params)
                folder_id = None
                if settings.OPENAPI_GROUP_BY_TAG:
                    tags = operation.get("tags")
                    if isinstance(tags, list) and tags:
                        tag = stringify(tags[0])
                        if tag not in tag_folders:
                            tag_folders[tag] = builder.add_folder(tag).id
                        folder_id = tag_folders[tag]
                convert_item(label, builder.add_request, fields, folder_id)
            except ItemConversionFailure as exc:
                skip_item(bundle, "OpenAPI", exc)

    bundle.collections.append(builder.build())
    return bundle
