from datetime import datetime

from posterboy.services.exporters import (
    POSTMAN_SCHEMA,
    export_native,
    export_native_environments,
    export_postman_environment,
    export_to_postman,
)
from posterboy.services.importers.postman import decode_postman_collection
from posterboy.services.model_builder import CollectionBuilder


def _sample(ids):
    builder = CollectionBuilder(ids, name="Shop", description="Store API", variables={"baseUrl": "https://shop"})
    users = builder.add_folder("Users")
    builder.add_folder("Admins", parent_id=users.id)
    builder.add_request({
        "name": "Create",
        "method": "POST",
        "url": "https://shop.example.com/users?notify=1",
        "headers": [{"key": "Content-Type", "value": "application/json"}],
        "params": [{"key": "notify", "value": "1"}],
        "auth": {"type": "apikey", "key": "X-Key", "value": "s", "location": "query"},
        "body": {"type": "json", "data": '{"a": 1}'},
    }, users.id)
    builder.add_request({
        "name": "Login",
        "method": "POST",
        "url": "{{baseUrl}}/login",
        "auth": {"type": "basic", "username": "u", "password": "p"},
        "body": {"type": "form", "data": [{"key": "user", "value": "ann"}]},
    })
    builder.add_request({"name": "Note", "method": "PUT", "url": "/notes", "body": {"type": "raw", "data": "hi"}})
    return builder.build()


def test_postman_export_shape(ids):
    exported = export_to_postman(_sample(ids))

    assert exported["info"]["name"] == "Shop"
    assert exported["info"]["schema"] == POSTMAN_SCHEMA
    assert exported["variable"] == [{"key": "baseUrl", "value": "https://shop", "type": "string"}]

    users, login, note = exported["item"]
    # Child folders come before requests
    assert [child["name"] for child in users["item"]] == ["Admins", "Create"]
    create = users["item"][1]["request"]
    assert create["url"]["protocol"] == "https"
    assert create["url"]["host"] == ["shop", "example", "com"]
    assert create["url"]["path"] == ["users"]
    assert create["url"]["query"] == [{"key": "notify", "value": "1"}]
    assert create["body"]["options"]["raw"]["language"] == "json"
    assert {a["key"]: a["value"] for a in create["auth"]["apikey"]}["in"] == "query"

    assert login["request"]["body"] == {"mode": "formdata", "formdata": [{"key": "user", "value": "ann", "type": "text"}]}
    assert login["request"]["url"]["host"] == ["{{baseUrl}}"]
    assert note["request"]["body"]["options"]["raw"]["language"] == "text"
    assert "auth" not in note["request"]


def test_postman_round_trip_is_stable(ids, postman_collection):
    first = decode_postman_collection(postman_collection, ids).collections[0]
    second = decode_postman_collection(export_to_postman(first), ids).collections[0]

    def shape(collection):
        return sorted(
            (r.name, r.method, r.url, [(h.key, h.value) for h in r.headers], r.auth.type)
            for r in collection.requests
        )

    assert shape(first) == shape(second)
    assert [f.name for f in second.folders] == [f.name for f in first.folders]
    assert second.variables == first.variables


def test_export_does_not_touch_the_collection(ids):
    collection = _sample(ids)
    before = collection.to_json()
    export_to_postman(collection)
    export_native([collection], {})
    assert collection.to_json() == before


def test_environment_export():
    assert export_postman_environment("dev", {"host": "h"}) == {
        "name": "dev",
        "values": [{"key": "host", "value": "h", "enabled": True, "type": "text"}],
    }


def test_native_archive(ids):
    collection = _sample(ids)

    archive = export_native([collection], {"dev": {"host": "h"}})

    assert archive["posterboy_export"] is True
    assert archive["version"] == "1.0.0"
    assert archive["environments"] == {"dev": {"host": "h"}}
    (stored,) = archive["collections"]
    assert stored["id"] == collection.id
    assert stored["folders"][1]["parentId"] == collection.folders[0].id
    assert stored["requests"][0]["folderId"] == collection.folders[0].id
    datetime.fromisoformat(archive["exported_at"])


def test_native_environment_archive():
    archive = export_native_environments({"dev": {"a": "1"}})
    assert archive["posterboy_environments"] is True
    assert archive["environments"] == {"dev": {"a": "1"}}
