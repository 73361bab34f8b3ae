"""
Postman Collection v2 / v2.1 and Postman Environment decoders.
"""
from typing import Any
from urllib.parse import quote

from posterboy.errors import ItemConversionFailure, MissingRequiredField
from posterboy.schemas.collection import ApiKeyLocation, stringify
from posterboy.services.importers.base import (
    ImportBundle,
    convert_item,
    is_json_text,
    require_dict,
    require_list,
    skip_item,
    text_of,
)
from posterboy.services.model_builder import CollectionBuilder, IdAllocator

_URI_SAFE = "-_.!~*'()"


# ────────────────────────────────────────────────────────────
# Request parts
# ────────────────────────────────────────────────────────────

def _auth_value(auth_object: Any, key: str) -> str:
    """Postman stores auth attributes as ``[{key, value}]`` or as a plain object."""
    if isinstance(auth_object, list):
        for item in auth_object:
            if isinstance(item, dict) and item.get("key") == key:
                return stringify(item.get("value"))
        return ""
    if isinstance(auth_object, dict):
        return stringify(auth_object.get(key))
    return ""


def parse_postman_auth(auth_data: dict | None) -> dict:
    if not isinstance(auth_data, dict) or not auth_data.get("type"):
        return {"type": "none"}

    auth_type = auth_data["type"]

    if auth_type == "bearer":
        return {"type": "bearer", "token": _auth_value(auth_data.get("bearer"), "token")}

    if auth_type == "basic":
        basic = auth_data.get("basic")
        return {
            "type": "basic",
            "username": _auth_value(basic, "username"),
            "password": _auth_value(basic, "password"),
        }

    if auth_type == "apikey":
        apikey = auth_data.get("apikey")
        placement = _auth_value(apikey, "in")
        return {
            "type": "apikey",
            "key": _auth_value(apikey, "key"),
            "value": _auth_value(apikey, "value"),
            "location": ApiKeyLocation.QUERY if placement == "query" else ApiKeyLocation.HEADER,
        }

    return {"type": "none"}


def _form_fields(entries: Any) -> list[dict[str, str]]:
    fields = []
    for item in entries or []:
        if not item.get("key") or item.get("disabled") or item.get("type") == "file":
            continue
        fields.append({"key": item["key"], "value": stringify(item.get("value"))})
    return fields


def parse_postman_body(body_data: dict | None) -> dict:
    if not isinstance(body_data, dict) or not body_data.get("mode"):
        return {"type": "none"}

    mode = body_data["mode"]

    if mode == "raw":
        raw = stringify(body_data.get("raw"))
        options = body_data.get("options") or {}
        language = (options.get("raw") or {}).get("language")
        if language == "json" or is_json_text(raw):
            return {"type": "json", "data": raw}
        return {"type": "raw", "data": raw}

    if mode in ("formdata", "urlencoded"):
        return {"type": "form", "data": _form_fields(body_data.get(mode))}

    return {"type": "none"}


def _enabled_pairs(entries: Any) -> list[dict[str, str]]:
    return [
        {"key": e["key"], "value": stringify(e.get("value"))}
        for e in entries or []
        if e.get("key") and not e.get("disabled", False)
    ]


def extract_postman_url(url_data: Any) -> str:
    """Return the request URL from a raw string, ``{raw}`` or structured Postman URL."""
    if isinstance(url_data, str):
        return url_data
    if not isinstance(url_data, dict):
        return ""
    if url_data.get("raw"):
        return stringify(url_data["raw"])

    protocol = url_data.get("protocol") or "https"
    host = url_data.get("host") or ""
    if isinstance(host, list):
        host = ".".join(stringify(h) for h in host)
    path = url_data.get("path") or ""
    if isinstance(path, list):
        path = "/" + "/".join(stringify(p) for p in path) if path else ""
    elif path and not path.startswith("/"):
        path = "/" + path

    url = f"{protocol}://{host}{path}"
    query = _enabled_pairs(url_data.get("query"))
    if query:
        url += "?" + "&".join(
            f"{quote(q['key'], safe=_URI_SAFE)}={quote(q['value'], safe=_URI_SAFE)}" for q in query
        )
    return url


def _convert_request(item: dict) -> dict[str, Any]:
    req_data = item["request"]
    name = text_of(item.get("name")) or "Untitled Request"

    if isinstance(req_data, str):
        return {"name": name, "method": "GET", "url": req_data, "description": text_of(item.get("description"))}

    url_data = req_data.get("url")
    params = _enabled_pairs(url_data.get("query")) if isinstance(url_data, dict) else []

    return {
        "name": name,
        "description": text_of(item.get("description") or req_data.get("description")),
        "method": req_data.get("method") or "GET",
        "url": extract_postman_url(url_data),
        "headers": _enabled_pairs(req_data.get("header") if isinstance(req_data.get("header"), list) else []),
        "params": params,
        "cookies": [],
        "auth": parse_postman_auth(req_data.get("auth")),
        "body": parse_postman_body(req_data.get("body")),
    }


# ────────────────────────────────────────────────────────────
# Collection walk
# ────────────────────────────────────────────────────────────

def _walk_items(
    items: list,
    builder: CollectionBuilder,
    bundle: ImportBundle,
    parent_id: str | None = None,
) -> None:
    """Pre-order walk: a folder exists before any of its children are converted."""
    for node in items:
        try:
            if not isinstance(node, dict):
                raise ItemConversionFailure("item is not an object")
            label = text_of(node.get("name")) or "item"

            if "item" in node:
                children = node["item"]
                if not isinstance(children, list):
                    raise ItemConversionFailure(f"{label}: folder 'item' is not a list")
                folder = convert_item(
                    label,
                    builder.add_folder,
                    text_of(node.get("name")) or "Folder",
                    text_of(node.get("description")),
                    parent_id,
                )
            elif "request" in node:
                convert_item(label, lambda: builder.add_request(_convert_request(node), parent_id))
                continue
            else:
                continue
        except ItemConversionFailure as exc:
            skip_item(bundle, "Postman", exc)
            continue

        _walk_items(children, builder, bundle, folder.id)


def extract_postman_variables(data: dict) -> dict[str, str]:
    variables: dict[str, str] = {}
    entries = data.get("variable")
    for v in entries if isinstance(entries, list) else []:
        if isinstance(v, dict) and v.get("key"):
            variables[stringify(v["key"])] = stringify(v.get("value"))
    return variables


def decode_postman_collection(data: Any, ids: IdAllocator) -> ImportBundle:
    """Decode a Postman v2 collection into one canonical Collection."""
    data = require_dict(data, "Postman collection")
    info = data.get("info")
    if not isinstance(info, dict):
        raise MissingRequiredField("info", "Postman collection")
    items = require_list(data, "item", "Postman collection")

    bundle = ImportBundle()
    builder = CollectionBuilder(
        ids,
        name=text_of(info.get("name")) or "Imported Collection",
        description=text_of(info.get("description")) or "Imported from Postman",
        variables=extract_postman_variables(data),
    )
    _walk_items(items, builder, bundle)
    bundle.collections.append(builder.build())
    return bundle


# ────────────────────────────────────────────────────────────
# Postman Environment
# ────────────────────────────────────────────────────────────

def environment_key(name: str) -> str:
    """Environments are keyed by their lower-cased alphanumeric name."""
    key = "".join(ch for ch in name.lower() if ch.isascii() and ch.isalnum())
    return key or "imported"


def decode_postman_environment(data: Any, ids: IdAllocator) -> ImportBundle:
    data = require_dict(data, "Postman environment")
    if not data.get("name"):
        raise MissingRequiredField("name", "Postman environment")
    values = require_list(data, "values", "Postman environment")

    bundle = ImportBundle()
    variables: dict[str, str] = {}
    for entry in values:
        if not isinstance(entry, dict):
            skip_item(bundle, "Postman environment", ItemConversionFailure("variable is not an object"))
            continue
        if entry.get("key") and entry.get("enabled", True) is not False:
            variables[stringify(entry["key"])] = stringify(entry.get("value"))

    bundle.environments[environment_key(stringify(data["name"]))] = variables
    return bundle
