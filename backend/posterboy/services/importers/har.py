"""
HAR 1.2 decoder: one request per ``log.entries[i].request``.
"""
from typing import Any
from urllib.parse import urlparse

from posterboy.errors import ItemConversionFailure, MissingRequiredField
from posterboy.schemas.collection import stringify
from posterboy.services.importers.base import ImportBundle, convert_item, require_dict, skip_item
from posterboy.services.model_builder import CollectionBuilder, IdAllocator


def _pairs(entries: Any) -> list[dict[str, str]]:
    return [
        {"key": stringify(e["name"]), "value": stringify(e.get("value"))}
        for e in entries or []
        if e.get("name")
    ]


def _convert_body(post_data: Any) -> dict:
    if not isinstance(post_data, dict):
        return {"type": "none"}
    if "json" in stringify(post_data.get("mimeType")):
        return {"type": "json", "data": stringify(post_data.get("text"))}
    if isinstance(post_data.get("params"), list):
        return {"type": "form", "data": _pairs(post_data["params"])}
    return {"type": "raw", "data": stringify(post_data.get("text"))}


def _convert_entry(har_request: dict, index: int) -> dict[str, Any]:
    url = stringify(har_request["url"])
    method = stringify(har_request.get("method")) or "GET"
    parsed = urlparse(url)
    return {
        "name": f"HAR Request {index + 1} - {method.upper()} {parsed.path or '/'}",
        "description": f"Imported from HAR - {parsed.hostname or ''}",
        "method": method,
        "url": url,
        "headers": _pairs(har_request.get("headers")),
        "params": _pairs(har_request.get("queryString")),
        "cookies": _pairs(har_request.get("cookies")),
        "auth": {"type": "none"},
        "body": _convert_body(har_request.get("postData")),
    }


def decode_har(data: Any, ids: IdAllocator) -> ImportBundle:
    data = require_dict(data, "HAR file")
    log = data.get("log")
    if not isinstance(log, dict) or not isinstance(log.get("entries"), list):
        raise MissingRequiredField("log.entries", "HAR file")

    bundle = ImportBundle()
    builder = CollectionBuilder(ids, name="HAR Import", description="Imported from HAR file")

    for index, entry in enumerate(log["entries"]):
        har_request = entry.get("request") if isinstance(entry, dict) else None
        # Entries without a URL are not requests we can replay
        if not isinstance(har_request, dict) or not har_request.get("url"):
            continue
        try:
            convert_item(f"entry {index + 1}", lambda: builder.add_request(_convert_entry(har_request, index)))
        except ItemConversionFailure as exc:
            skip_item(bundle, "HAR", exc)

    if builder.request_count:
        bundle.collections.append(builder.build())
    return bundle
