"""
Collection and environment repositories over a KeyValueStore.

Every mutation writes the full collection list (or environment map) back to
the store immediately.
"""
import logging
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError

from posterboy.config import settings
from posterboy.schemas.collection import Collection, stringify
from posterboy.schemas.environment import EnvironmentValidation
from posterboy.services.store import KeyValueStore

logger = logging.getLogger(__name__)


class CollectionRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load_raw(self) -> list:
        raw = self.store.get(settings.COLLECTIONS_KEY)
        if raw is None:
            # Data saved before the rename lives under the legacy key
            for marker in settings.LEGACY_EXPORT_MARKERS:
                raw = self.store.get(f"{marker}_collections")
                if raw is not None:
                    break
        return raw if isinstance(raw, list) else []

    def all(self) -> list[Collection]:
        collections = []
        for entry in self._load_raw():
            try:
                collections.append(Collection.model_validate(entry))
            except ValidationError as exc:
                logger.warning("Ignoring unreadable stored collection: %s", exc.errors()[:1])
        return collections

    def _save(self, collections: list[Collection]) -> None:
        self.store.set(settings.COLLECTIONS_KEY, [c.to_json() for c in collections])

    def find(self, collection_id: str) -> Collection | None:
        return next((c for c in self.all() if c.id == collection_id), None)

    def find_by_name(self, name: str) -> Collection | None:
        return next((c for c in self.all() if c.name == name), None)

    def names(self) -> list[str]:
        return [c.name for c in self.all()]

    def add(self, collection: Collection) -> Collection:
        collections = self.all()
        collections.append(collection)
        self._save(collections)
        logger.info("Stored collection %s (%s)", collection.name, collection.id)
        return collection

    def remove(self, collection_id: str) -> bool:
        collections = self.all()
        remaining = [c for c in collections if c.id != collection_id]
        if len(remaining) == len(collections):
            return False
        self._save(remaining)
        return True


class EnvironmentRepository:
    """Named variable maps plus the active environment name."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def all(self) -> dict[str, dict[str, str]]:
        raw = self.store.get(settings.ENVIRONMENTS_KEY)
        if not isinstance(raw, dict):
            return {}
        return {
            str(name): {str(k): stringify(v) for k, v in variables.items()}
            for name, variables in raw.items()
            if isinstance(variables, dict)
        }

    def _save(self, environments: dict[str, dict[str, str]]) -> None:
        self.store.set(settings.ENVIRONMENTS_KEY, environments)

    def names(self) -> list[str]:
        return list(self.all())

    def get(self, name: str) -> dict[str, str]:
        """Variables of ``name``; an unknown environment is empty."""
        return self.all().get(name, {})

    def exists(self, name: str) -> bool:
        return name in self.all()

    def put(self, name: str, variables: dict[str, Any]) -> dict[str, str]:
        environments = self.all()
        environments[name] = {str(k): stringify(v) for k, v in variables.items() if k}
        self._save(environments)
        return environments[name]

    def merge(self, name: str, variables: dict[str, Any]) -> dict[str, str]:
        """Overlay ``variables`` onto the existing environment (created when missing)."""
        environments = self.all()
        merged = environments.setdefault(name, {})
        merged.update({str(k): stringify(v) for k, v in variables.items() if k})
        self._save(environments)
        return merged

    def remove(self, name: str) -> bool:
        environments = self.all()
        if environments.pop(name, None) is None:
            return False
        self._save(environments)
        return True

    def active_name(self) -> str:
        name = self.store.get(settings.ACTIVE_ENVIRONMENT_KEY)
        return name if isinstance(name, str) and name else settings.DEFAULT_ENVIRONMENT

    def set_active(self, name: str) -> None:
        self.store.set(settings.ACTIVE_ENVIRONMENT_KEY, name)

    def active_variables(self) -> dict[str, str]:
        return self.get(self.active_name())

    def validate(self, name: str) -> EnvironmentValidation:
        """Check required variables are set and every ``*url*`` variable parses as a URL."""
        if not self.exists(name):
            return EnvironmentValidation(valid=False, errors=["Environment not found"])

        variables = self.get(name)
        errors = [
            f"Missing required variable: {key}"
            for key in settings.REQUIRED_ENVIRONMENT_VARIABLES
            if not variables.get(key)
        ]
        warnings = []
        for key, value in variables.items():
            if "url" in key.lower() and value:
                parsed = urlparse(value)
                if not (parsed.scheme and parsed.netloc):
                    warnings.append(f"Invalid URL in {key}: {value}")
        return EnvironmentValidation(valid=not errors, errors=errors, warnings=warnings)
