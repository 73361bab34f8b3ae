from posterboy.services.exporters import export_native
from posterboy.services.importers.base import EnvironmentPolicy
from posterboy.services.importers.native import decode_native_export
from posterboy.services.model_builder import CollectionBuilder, IdAllocator


def _archived_collection():
    builder = CollectionBuilder(IdAllocator(), name="Shop", variables={"host": "h"})
    users = builder.add_folder("Users")
    admins = builder.add_folder("Admins", parent_id=users.id)
    builder.add_request({"name": "List", "url": "{{host}}/users"}, users.id)
    builder.add_request({"name": "Audit", "url": "{{host}}/audit", "method": "delete"}, admins.id)
    builder.add_request({"name": "Ping", "url": "{{host}}/ping"})
    return builder.build()


def test_archive_is_reissued_with_fresh_ids(ids):
    original = _archived_collection()
    archive = export_native([original], {"dev": {"host": "localhost"}})

    bundle = decode_native_export(archive, ids)

    (collection,) = bundle.collections
    assert collection.id != original.id
    assert collection.name == "Shop"
    assert collection.variables == {"host": "h"}
    old_ids = {f.id for f in original.folders} | {r.id for r in original.requests}
    new_ids = {f.id for f in collection.folders} | {r.id for r in collection.requests}
    assert not old_ids & new_ids

    users = next(f for f in collection.folders if f.name == "Users")
    admins = next(f for f in collection.folders if f.name == "Admins")
    assert admins.parent_id == users.id
    requests = {r.name: r for r in collection.requests}
    assert requests["List"].folder_id == users.id
    assert requests["Audit"].folder_id == admins.id
    assert requests["Audit"].method == "DELETE"
    assert requests["Ping"].folder_id is None
    assert bundle.environments == {"dev": {"host": "localhost"}}


def test_child_folder_listed_before_parent(ids):
    archive = {
        "posterboy_export": True,
        "collections": [{
            "name": "C",
            "folders": [
                {"id": "child", "name": "Child", "parentId": "parent"},
                {"id": "parent", "name": "Parent"},
            ],
            "requests": [{"id": "r", "name": "R", "url": "u", "folderId": "child"}],
        }],
    }
    (collection,) = decode_native_export(archive, ids).collections
    parent = next(f for f in collection.folders if f.name == "Parent")
    child = next(f for f in collection.folders if f.name == "Child")
    assert child.parent_id == parent.id
    assert collection.requests[0].folder_id == child.id


def test_legacy_folder_requests_are_flattened(ids):
    archive = {
        "postwoman_export": True,
        "version": "1.0.0",
        "collections": [{
            "id": "old",
            "name": "Legacy",
            "folders": [{"id": "f1", "name": "F", "requests": [
                {"id": "r1", "name": "Inside", "method": "get", "url": "https://x", "headers": {"Accept": "*/*"}},
            ]}],
            "requests": [{"id": "r2", "name": "Root", "url": "https://y", "folderId": "gone"}],
        }],
    }

    (collection,) = decode_native_export(archive, ids).collections

    (folder,) = collection.folders
    requests = {r.name: r for r in collection.requests}
    assert requests["Inside"].folder_id == folder.id
    assert [(h.key, h.value) for h in requests["Inside"].headers] == [("Accept", "*/*")]
    # Links to folders missing from the archive fall back to the root
    assert requests["Root"].folder_id is None


def test_bad_entries_are_skipped(ids):
    archive = {
        "posterboy_export": True,
        "collections": [
            "not a collection",
            {"name": "Ok", "requests": [{"name": "bad", "auth": {"type": "kerberos"}}, {"name": "good", "url": "u"}]},
        ],
    }
    bundle = decode_native_export(archive, ids)
    assert bundle.skipped == 2
    assert [r.name for r in bundle.collections[0].requests] == ["good"]


def test_environments_only_archive(ids):
    archive = {"posterboy_environments": True, "environments": {"prod": {"host": "p", "tls": True}}}
    bundle = decode_native_export(archive, ids)
    assert bundle.collections == []
    assert bundle.environments == {"prod": {"host": "p", "tls": "true"}}


def test_embedded_postman_collection(ids):
    archive = {
        "posterboy_collection": True,
        "info": {"name": "Embedded"},
        "item": [{"name": "Ping", "request": "https://x"}],
    }
    bundle = decode_native_export(archive, ids)
    (collection,) = bundle.collections
    assert collection.name == "Embedded"
    assert bundle.environment_policy is EnvironmentPolicy.REPLACE
    assert collection.requests[0].url == "https://x"


def test_archive_environments_replace_existing(ids):
    archive = {"posterboy_export": True, "collections": [], "environments": {"dev": {"host": "new"}}}
    bundle = decode_native_export(archive, ids)
    assert bundle.environment_policy is EnvironmentPolicy.REPLACE
