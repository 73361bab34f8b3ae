"""
Insomnia export (v4) decoder.

Resources form a flat list linked by ``parentId``; workspaces become
collections, request groups become folders and environments are kept by name.
"""
from typing import Any

from posterboy.errors import ItemConversionFailure
from posterboy.schemas.collection import ApiKeyLocation, stringify
from posterboy.services.importers.base import (
    EnvironmentPolicy,
    ImportBundle,
    convert_item,
    require_dict,
    require_list,
    skip_item,
    text_of,
)
from posterboy.services.model_builder import CollectionBuilder, IdAllocator

_FORM_MIME_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _pairs(entries: Any) -> list[dict[str, str]]:
    return [
        {"key": stringify(e["name"]), "value": stringify(e.get("value"))}
        for e in entries or []
        if e.get("name") and not e.get("disabled", False) and e.get("type") != "file"
    ]


def _convert_auth(auth: Any) -> dict:
    if not isinstance(auth, dict) or auth.get("disabled"):
        return {"type": "none"}

    auth_type = auth.get("type")
    if auth_type == "bearer":
        return {"type": "bearer", "token": stringify(auth.get("token"))}
    if auth_type == "basic":
        return {
            "type": "basic",
            "username": stringify(auth.get("username")),
            "password": stringify(auth.get("password")),
        }
    if auth_type == "apikey":
        return {
            "type": "apikey",
            "key": stringify(auth.get("key")),
            "value": stringify(auth.get("value")),
            "location": ApiKeyLocation.QUERY if auth.get("addTo") == "queryParams" else ApiKeyLocation.HEADER,
        }
    return {"type": "none"}


def _convert_body(body: Any) -> dict:
    if not isinstance(body, dict) or not body:
        return {"type": "none"}

    mime_type = stringify(body.get("mimeType"))
    if "json" in mime_type:
        return {"type": "json", "data": stringify(body.get("text"))}
    if mime_type in _FORM_MIME_TYPES:
        return {"type": "form", "data": _pairs(body.get("params"))}
    if "text" not in body:
        return {"type": "none"}
    return {"type": "raw", "data": stringify(body.get("text"))}


def _convert_request(resource: dict) -> dict[str, Any]:
    return {
        "name": text_of(resource.get("name")) or "Untitled Request",
        "description": text_of(resource.get("description")),
        "method": resource.get("method") or "GET",
        "url": stringify(resource.get("url")),
        "headers": _pairs(resource.get("headers")),
        "params": _pairs(resource.get("parameters")),
        "cookies": [],
        "auth": _convert_auth(resource.get("authentication")),
        "body": _convert_body(resource.get("body")),
    }


def _environment_variables(data: Any) -> dict[str, str]:
    if not isinstance(data, dict):
        return {}
    return {str(k): stringify(v) for k, v in data.items() if k}


def decode_insomnia_export(data: Any, ids: IdAllocator) -> ImportBundle:
    data = require_dict(data, "Insomnia export")
    resources = [r for r in require_list(data, "resources", "Insomnia export") if isinstance(r, dict)]

    bundle = ImportBundle(environment_policy=EnvironmentPolicy.REPLACE)
    builders: dict[str, CollectionBuilder] = {}
    groups_by_parent: dict[str, list[dict]] = {}

    for resource in resources:
        if resource.get("_type") == "workspace" and isinstance(resource.get("_id"), str):
            builders[resource["_id"]] = CollectionBuilder(
                ids,
                name=text_of(resource.get("name")) or "Imported Insomnia Workspace",
                description="Imported from Insomnia",
            )
        elif resource.get("_type") == "request_group" and isinstance(resource.get("parentId"), str):
            groups_by_parent.setdefault(resource.get("parentId"), []).append(resource)

    # request_group _id -> (workspace _id, folder id)
    folder_index: dict[str, tuple[str, str]] = {}

    def add_groups(workspace_id: str, container_id: str, parent_folder: str | None) -> None:
        builder = builders[workspace_id]
        for group in groups_by_parent.get(container_id, []):
            group_id = group.get("_id")
            if not isinstance(group_id, str) or group_id in folder_index:
                continue
            folder = builder.add_folder(
                text_of(group.get("name")) or "Folder",
                text_of(group.get("description")),
                parent_folder,
            )
            folder_index[group_id] = (workspace_id, folder.id)
            add_groups(workspace_id, group_id, folder.id)

    for workspace_id in builders:
        add_groups(workspace_id, workspace_id, None)

    for resource in resources:
        kind = resource.get("_type")
        if kind == "request":
            parent = stringify(resource.get("parentId"))
            if parent in builders:
                builder, folder_id = builders[parent], None
            elif parent in folder_index:
                workspace_id, folder_id = folder_index[parent]
                builder = builders[workspace_id]
            else:
                continue
            label = text_of(resource.get("name")) or "request"
            try:
                convert_item(label, lambda: builder.add_request(_convert_request(resource), folder_id))
            except ItemConversionFailure as exc:
                skip_item(bundle, "Insomnia", exc)
        elif kind == "environment":
            name = text_of(resource.get("name")) or "Imported Environment"
            bundle.environments.setdefault(name, {}).update(_environment_variables(resource.get("data")))

    for builder in builders.values():
        if builder.request_count:
            bundle.collections.append(builder.build())
    return bundle
