"""
Canonical model construction: ID allocation, name collisions and folder linkage.
"""
import uuid
from enum import Enum as PyEnum
from typing import Any, Callable, Iterable

from posterboy.config import settings
from posterboy.errors import DanglingReference
from posterboy.schemas.collection import Collection, Folder, Request, utcnow


class EntityKind(str, PyEnum):
    COLLECTION = "col"
    FOLDER = "folder"
    REQUEST = "req"
    HISTORY = "hist"


class IdAllocator:
    """Issues ``<prefix>_<token>`` IDs; the default token source is uuid4."""

    def __init__(self, token_factory: Callable[[], str] | None = None):
        self._token_factory = token_factory or (lambda: uuid.uuid4().hex)

    def next(self, kind: EntityKind) -> str:
        return f"{kind.value}_{self._token_factory()}"


def unique_collection_name(name: str, existing: Iterable[str]) -> str:
    """Append the imported suffix once when ``name`` exactly matches an existing collection."""
    if name in set(existing):
        return f"{name}{settings.IMPORTED_SUFFIX}"
    return name


class CollectionBuilder:
    """Assembles one Collection, rejecting references to folders it has not created."""

    def __init__(
        self,
        ids: IdAllocator,
        name: str,
        description: str = "",
        variables: dict[str, str] | None = None,
    ):
        self.ids = ids
        self.name = name
        self.description = description
        self.variables: dict[str, str] = dict(variables or {})
        self.folders: list[Folder] = []
        self.requests: list[Request] = []
        self._folder_ids: set[str] = set()

    def _check_parent(self, kind: str, folder_id: str | None) -> None:
        if folder_id is not None and folder_id not in self._folder_ids:
            raise DanglingReference(kind, folder_id)

    def add_folder(self, name: str, description: str = "", parent_id: str | None = None) -> Folder:
        self._check_parent("Folder", parent_id)
        folder = Folder(
            id=self.ids.next(EntityKind.FOLDER),
            name=name or "Folder",
            description=description or "",
            parent_id=parent_id,
        )
        self.folders.append(folder)
        self._folder_ids.add(folder.id)
        return folder

    def add_request(self, fields: dict[str, Any], folder_id: str | None = None) -> Request:
        """Validate ``fields`` into a Request with a fresh ID under ``folder_id``."""
        self._check_parent("Request", folder_id)
        data = {k: v for k, v in fields.items() if k not in ("id", "folder_id", "folderId")}
        request = Request.model_validate({**data, "id": self.ids.next(EntityKind.REQUEST), "folder_id": folder_id})
        self.requests.append(request)
        return request

    @property
    def request_count(self) -> int:
        return len(self.requests)

    def build(self) -> Collection:
        now = utcnow()
        return Collection(
            id=self.ids.next(EntityKind.COLLECTION),
            name=self.name,
            description=self.description,
            folders=list(self.folders),
            requests=list(self.requests),
            variables=self.variables,
            created_at=now,
            updated_at=now,
        )
