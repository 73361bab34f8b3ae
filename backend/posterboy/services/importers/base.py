import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TypeVar

from posterboy.errors import ItemConversionFailure, MissingRequiredField
from posterboy.schemas.collection import Collection
from posterboy.services.model_builder import IdAllocator

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Raised by structurally wrong but JSON-valid items (wrong types, missing keys)
CONVERSION_ERRORS = (AttributeError, KeyError, TypeError, ValueError)


class EnvironmentPolicy(str, Enum):
    """How decoded environments land on environments that already exist."""

    MERGE = "merge"
    REPLACE = "replace"


@dataclass
class ImportBundle:
    """Canonical fragments produced by one decoder run."""

    collections: list[Collection] = field(default_factory=list)
    environments: dict[str, dict[str, str]] = field(default_factory=dict)
    skipped: int = 0
    environment_policy: EnvironmentPolicy = EnvironmentPolicy.MERGE

    @property
    def request_count(self) -> int:
        return sum(len(c.requests) for c in self.collections)

    @property
    def folder_count(self) -> int:
        return sum(len(c.folders) for c in self.collections)

    @property
    def is_empty(self) -> bool:
        return not self.collections and not self.environments

    def merge(self, other: "ImportBundle") -> None:
        self.collections.extend(other.collections)
        for name, variables in other.environments.items():
            self.environments.setdefault(name, {}).update(variables)
        self.skipped += other.skipped


Decoder = Callable[[Any, IdAllocator], ImportBundle]


def convert_item(label: str, fn: Callable[..., T], *args: Any) -> T:
    """Run one item conversion, normalizing any structural error to ItemConversionFailure."""
    try:
        return fn(*args)
    except ItemConversionFailure:
        raise
    except CONVERSION_ERRORS as exc:
        raise ItemConversionFailure(f"{label}: {exc}") from exc


def skip_item(bundle: ImportBundle, source: str, exc: ItemConversionFailure) -> None:
    logger.warning("Skipping %s item: %s", source, exc)
    bundle.skipped += 1


def require_dict(data: Any, source: str) -> dict:
    if not isinstance(data, dict):
        raise MissingRequiredField("root object", source)
    return data


def require_list(data: dict, key: str, source: str) -> list:
    value = data.get(key)
    if not isinstance(value, list):
        raise MissingRequiredField(key, source)
    return value


def text_of(value: Any) -> str:
    """Descriptions appear as plain strings or ``{"content": ...}`` objects."""
    if isinstance(value, dict):
        value = value.get("content", "")
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def is_json_text(text: str) -> bool:
    try:
        json.loads(text)
    except (TypeError, ValueError):
        return False
    return True
