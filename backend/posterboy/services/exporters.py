"""
Encoders from the canonical model back to Postman v2.1 and the native archive.

All functions are pure: they never touch IDs or the repositories.
"""
import uuid
from typing import Any, Iterable
from urllib.parse import parse_qsl, urlparse

from posterboy.config import settings
from posterboy.schemas.collection import (
    ApiKeyAuth,
    BasicAuth,
    BearerAuth,
    Collection,
    FormBody,
    JsonBody,
    RawBody,
    Request,
    utcnow,
)

POSTMAN_SCHEMA = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"


# ────────────────────────────────────────────────────────────
# Postman Export
# ────────────────────────────────────────────────────────────

def _build_postman_auth(request: Request) -> dict | None:
    """Build Postman auth object."""
    auth = request.auth

    if isinstance(auth, BearerAuth):
        return {
            "type": "bearer",
            "bearer": [{"key": "token", "value": auth.token, "type": "string"}],
        }

    if isinstance(auth, BasicAuth):
        return {
            "type": "basic",
            "basic": [
                {"key": "username", "value": auth.username, "type": "string"},
                {"key": "password", "value": auth.password, "type": "string"},
            ],
        }

    if isinstance(auth, ApiKeyAuth):
        return {
            "type": "apikey",
            "apikey": [
                {"key": "key", "value": auth.key, "type": "string"},
                {"key": "value", "value": auth.value, "type": "string"},
                {"key": "in", "value": auth.location.value, "type": "string"},
            ],
        }

    return None


def _build_postman_body(request: Request) -> dict | None:
    body = request.body
    if isinstance(body, JsonBody):
        return {"mode": "raw", "raw": body.data, "options": {"raw": {"language": "json"}}}
    if isinstance(body, RawBody):
        return {"mode": "raw", "raw": body.data, "options": {"raw": {"language": "text"}}}
    if isinstance(body, FormBody):
        return {
            "mode": "formdata",
            "formdata": [{"key": kv.key, "value": kv.value, "type": "text"} for kv in body.data],
        }
    return None


def _build_postman_url(request: Request) -> dict[str, Any]:
    url = request.url
    postman_url: dict[str, Any] = {"raw": url}

    # Parse URL into Postman components (helps Postman UI populate fields)
    parsed = urlparse(url)
    if parsed.scheme and parsed.netloc:
        postman_url["protocol"] = parsed.scheme
        postman_url["host"] = parsed.netloc.split(".")
        if parsed.path:
            postman_url["path"] = [p for p in parsed.path.split("/") if p]
    elif parsed.path:
        # Relative or templated URL such as {{baseUrl}}/users
        postman_url["host"] = [parsed.path.split("/")[0]] if not parsed.path.startswith("/") else []
        postman_url["path"] = [p for p in parsed.path.split("/")[1:] if p]

    # Prefer explicit query params; fall back to URL query if needed
    if request.params:
        postman_url["query"] = [{"key": kv.key, "value": kv.value} for kv in request.params]
    elif parsed.query:
        postman_url["query"] = [{"key": k, "value": v} for k, v in parse_qsl(parsed.query, keep_blank_values=True)]
    return postman_url


def _build_request_item(request: Request) -> dict[str, Any]:
    postman_request: dict[str, Any] = {
        "method": request.method,
        "header": [{"key": kv.key, "value": kv.value} for kv in request.headers],
        "url": _build_postman_url(request),
    }
    if request.description:
        postman_request["description"] = request.description

    body = _build_postman_body(request)
    if body:
        postman_request["body"] = body

    auth = _build_postman_auth(request)
    if auth:
        postman_request["auth"] = auth

    return {"name": request.name, "request": postman_request, "response": []}


def _build_items(collection: Collection, folder_id: str | None) -> list[dict]:
    items: list[dict] = []
    for folder in collection.child_folders(folder_id):
        items.append({
            "name": folder.name,
            "description": folder.description,
            "item": _build_items(collection, folder.id),
        })
    items.extend(_build_request_item(r) for r in collection.requests_in(folder_id))
    return items


def export_to_postman(collection: Collection) -> dict:
    """Export a collection to Postman Collection v2.1 format."""
    postman: dict[str, Any] = {
        "info": {
            "_postman_id": str(uuid.uuid4()),
            "name": collection.name,
            "description": collection.description or "",
            "version": settings.EXPORT_VERSION,
            "schema": POSTMAN_SCHEMA,
        },
        "item": _build_items(collection, None),
    }
    postman["variable"] = [
        {"key": k, "value": v, "type": "string"}
        for k, v in collection.variables.items()
        if k
    ]
    return postman


def export_postman_environment(name: str, variables: dict[str, str]) -> dict:
    return {
        "name": name,
        "values": [
            {"key": key, "value": value, "enabled": True, "type": "text"}
            for key, value in variables.items()
        ],
    }


# ────────────────────────────────────────────────────────────
# Native Archive Export
# ────────────────────────────────────────────────────────────

def export_native(collections: Iterable[Collection], environments: dict[str, dict[str, str]]) -> dict:
    return {
        f"{settings.NATIVE_EXPORT_MARKER}_export": True,
        "version": settings.EXPORT_VERSION,
        "collections": [c.to_json() for c in collections],
        "environments": {name: dict(variables) for name, variables in environments.items()},
        "exported_at": utcnow().isoformat(),
    }


def export_native_environments(environments: dict[str, dict[str, str]]) -> dict:
    return {
        f"{settings.NATIVE_EXPORT_MARKER}_environments": True,
        "version": settings.EXPORT_VERSION,
        "environments": {name: dict(variables) for name, variables in environments.items()},
        "exported_at": utcnow().isoformat(),
    }
