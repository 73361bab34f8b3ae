"""
Native archive decoder.

Archived collections are re-validated and re-issued with fresh IDs; folder
and request links are remapped onto the new folder IDs.
"""
from typing import Any

from posterboy.errors import ItemConversionFailure
from posterboy.schemas.collection import Collection, stringify
from posterboy.services.importers.base import (
    EnvironmentPolicy,
    ImportBundle,
    convert_item,
    require_dict,
    skip_item,
    text_of,
)
from posterboy.services.importers.postman import decode_postman_collection
from posterboy.services.model_builder import CollectionBuilder, IdAllocator


def _add_folders(builder: CollectionBuilder, folders: list[dict]) -> dict[Any, str]:
    """Create folders parents-first and return the old -> new folder ID map."""
    id_map: dict[Any, str] = {}
    archived_ids = {f.get("id") for f in folders if f.get("id")}
    pending = list(folders)

    while pending:
        ready = [
            f for f in pending
            if f.get("parentId") not in archived_ids or f.get("parentId") in id_map
        ]
        if not ready:
            # Parent cycle in the archive; break it at the first pending folder
            ready = pending[:1]
        for folder in ready:
            pending.remove(folder)
            new = builder.add_folder(
                text_of(folder.get("name")) or "Folder",
                text_of(folder.get("description")),
                id_map.get(folder.get("parentId")),
            )
            if folder.get("id"):
                id_map[folder["id"]] = new.id
    return id_map


def _archived_requests(raw: dict, folders: list[dict]) -> list[dict]:
    """Collect root requests plus requests nested in legacy ``folders[].requests``."""
    requests: list[dict] = []
    seen: set[str] = set()

    def take(entry: Any, folder_id: Any = None) -> None:
        if not isinstance(entry, dict):
            requests.append({"__invalid__": entry})
            return
        old_id = entry.get("id")
        if isinstance(old_id, str):
            if old_id in seen:
                return
            seen.add(old_id)
        if folder_id is not None and not entry.get("folderId"):
            entry = {**entry, "folderId": folder_id}
        requests.append(entry)

    for entry in raw.get("requests") or []:
        take(entry)
    for folder in folders:
        for entry in folder.get("requests") or []:
            take(entry, folder.get("id"))
    return requests


def reissue_collection(raw: Any, ids: IdAllocator, bundle: ImportBundle) -> Collection:
    if not isinstance(raw, dict):
        raise ItemConversionFailure("archived collection is not an object")

    variables = raw.get("variables") if isinstance(raw.get("variables"), dict) else {}
    builder = CollectionBuilder(
        ids,
        name=text_of(raw.get("name")) or "Imported Collection",
        description=text_of(raw.get("description")),
        variables={str(k): stringify(v) for k, v in variables.items() if k},
    )
    folders = [f for f in raw.get("folders") or [] if isinstance(f, dict)]
    folder_map = _add_folders(builder, folders)

    for entry in _archived_requests(raw, folders):
        label = text_of(entry.get("name")) or "request"
        try:
            if "__invalid__" in entry:
                raise ItemConversionFailure("archived request is not an object")
            # Links to folders missing from the archive fall back to the root
            folder_id = folder_map.get(entry.get("folderId"))
            convert_item(label, builder.add_request, entry, folder_id)
        except ItemConversionFailure as exc:
            skip_item(bundle, "native archive", exc)

    return builder.build()


def decode_native_export(data: Any, ids: IdAllocator) -> ImportBundle:
    data = require_dict(data, "native archive")
    bundle = ImportBundle(environment_policy=EnvironmentPolicy.REPLACE)

    collections = data.get("collections")
    if not isinstance(collections, list) and isinstance(data.get("requests"), list):
        # A single archived collection at the top level
        collections = [data]
    for index, raw in enumerate(collections if isinstance(collections, list) else []):
        try:
            bundle.collections.append(
                convert_item(f"collection {index + 1}", reissue_collection, raw, ids, bundle)
            )
        except ItemConversionFailure as exc:
            skip_item(bundle, "native archive", exc)

    environments = data.get("environments")
    if isinstance(environments, dict):
        for name, variables in environments.items():
            if name and isinstance(variables, dict):
                bundle.environments[str(name)] = {str(k): stringify(v) for k, v in variables.items() if k}

    if isinstance(data.get("info"), dict) and isinstance(data.get("item"), list):
        bundle.merge(decode_postman_collection(data, ids))

    return bundle
