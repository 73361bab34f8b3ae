import itertools
import os

# Point the app at a private in-memory database before posterboy is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("POSTERBOY_DB_PATH", None)
os.environ.pop("POSTERBOY_DATA_DIR", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from posterboy.services.import_service import ImportService  # noqa: E402
from posterboy.services.model_builder import IdAllocator  # noqa: E402
from posterboy.services.repository import CollectionRepository, EnvironmentRepository  # noqa: E402
from posterboy.services.store import MemoryStore  # noqa: E402

POSTMAN_SCHEMA = "https://schema.getpostman.com/json/collection/v2.1.0/collection.json"


class CollectingNotifier:
    """Notifier that keeps every notification for assertions."""

    def __init__(self):
        self.sent = []

    def notify(self, title, message, severity):
        self.sent.append((title, message, severity))


@pytest.fixture
def ids():
    """IdAllocator with predictable tokens: 0001, 0002, ..."""
    counter = itertools.count(1)
    return IdAllocator(lambda: f"{next(counter):04d}")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def collections(store):
    return CollectionRepository(store)


@pytest.fixture
def environments(store):
    return EnvironmentRepository(store)


@pytest.fixture
def notifier():
    return CollectingNotifier()


@pytest.fixture
def service(collections, environments, notifier, ids):
    return ImportService(collections, environments, notifier=notifier, ids=ids)


@pytest.fixture
def postman_collection():
    return {
        "info": {"name": "Demo API", "schema": POSTMAN_SCHEMA},
        "item": [
            {"name": "Ping", "request": {"method": "GET", "url": "https://x/{{id}}"}},
            {
                "name": "Users",
                "item": [
                    {
                        "name": "Create user",
                        "request": {
                            "method": "post",
                            "header": [
                                {"key": "Content-Type", "value": "application/json"},
                                {"key": "X-Debug", "value": "1", "disabled": True},
                            ],
                            "url": {"raw": "{{baseUrl}}/users"},
                            "auth": {
                                "type": "bearer",
                                "bearer": [{"key": "token", "value": "{{token}}", "type": "string"}],
                            },
                            "body": {
                                "mode": "raw",
                                "raw": '{"name": "Ann"}',
                                "options": {"raw": {"language": "json"}},
                            },
                        },
                    },
                ],
            },
        ],
        "variable": [{"key": "baseUrl", "value": "https://api.example.com"}],
    }


@pytest.fixture
def client():
    from posterboy.database import Base, engine
    from posterboy.main import app

    with TestClient(app) as test_client:
        yield test_client
    Base.metadata.drop_all(bind=engine)
