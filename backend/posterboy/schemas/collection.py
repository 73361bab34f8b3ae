"""
Canonical collection model shared by every importer and exporter.

Attributes are snake_case; JSON uses camelCase aliases (``folderId``,
``createdAt``) so stored and archived collections keep the native shape.
"""
import json
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def stringify(value: Any) -> str:
    """Coerce a JSON value to the string form stored in variables and KV pairs."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class KeyValue(CamelModel):
    key: str
    value: str = ""

    @field_validator("key", "value", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> str:
        return stringify(v)


def _kv_list(v: Any) -> Any:
    # Legacy data stores pairs as {"key": "value"} objects
    if isinstance(v, dict):
        return [{"key": k, "value": val} for k, val in v.items()]
    return v


# ── Auth ──

class ApiKeyLocation(str, PyEnum):
    HEADER = "header"
    QUERY = "query"


class NoAuth(CamelModel):
    type: Literal["none"] = "none"


class BearerAuth(CamelModel):
    type: Literal["bearer"] = "bearer"
    token: str = ""


class BasicAuth(CamelModel):
    type: Literal["basic"] = "basic"
    username: str = ""
    password: str = ""


class ApiKeyAuth(CamelModel):
    type: Literal["apikey"] = "apikey"
    key: str = ""
    value: str = ""
    location: ApiKeyLocation = ApiKeyLocation.HEADER


Auth = Annotated[Union[NoAuth, BearerAuth, BasicAuth, ApiKeyAuth], Field(discriminator="type")]


# ── Body ──

class NoBody(CamelModel):
    type: Literal["none"] = "none"


class JsonBody(CamelModel):
    type: Literal["json"] = "json"
    data: str = ""


class FormBody(CamelModel):
    type: Literal["form"] = "form"
    data: list[KeyValue] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _from_mapping(cls, v: Any) -> Any:
        return _kv_list(v)

    @field_validator("data")
    @classmethod
    def _drop_empty_keys(cls, v: list[KeyValue]) -> list[KeyValue]:
        return [kv for kv in v if kv.key]


class RawBody(CamelModel):
    type: Literal["raw"] = "raw"
    data: str = ""


Body = Annotated[Union[NoBody, JsonBody, FormBody, RawBody], Field(discriminator="type")]


# ── Collection tree ──

class Folder(CamelModel):
    id: str
    name: str = "Folder"
    description: str = ""
    parent_id: str | None = None


class Request(CamelModel):
    id: str
    name: str = "Untitled Request"
    description: str = ""
    method: str = "GET"
    url: str = ""
    headers: list[KeyValue] = Field(default_factory=list)
    params: list[KeyValue] = Field(default_factory=list)
    cookies: list[KeyValue] = Field(default_factory=list)
    auth: Auth = Field(default_factory=NoAuth)
    body: Body = Field(default_factory=NoBody)
    folder_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: Any) -> str:
        return (stringify(v) or "GET").upper()

    @field_validator("headers", "params", "cookies", mode="before")
    @classmethod
    def _from_mapping(cls, v: Any) -> Any:
        return _kv_list(v)

    @field_validator("headers", "params", "cookies")
    @classmethod
    def _drop_empty_keys(cls, v: list[KeyValue]) -> list[KeyValue]:
        return [kv for kv in v if kv.key]


class Collection(CamelModel):
    id: str
    name: str
    description: str = ""
    folders: list[Folder] = Field(default_factory=list)
    requests: list[Request] = Field(default_factory=list)
    variables: dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("variables", mode="before")
    @classmethod
    def _stringify_variables(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {str(k): stringify(val) for k, val in v.items() if k}
        return v

    def find_folder(self, folder_id: str) -> Folder | None:
        return next((f for f in self.folders if f.id == folder_id), None)

    def find_request(self, request_id: str) -> Request | None:
        return next((r for r in self.requests if r.id == request_id), None)

    def child_folders(self, parent_id: str | None) -> list[Folder]:
        return [f for f in self.folders if f.parent_id == parent_id]

    def requests_in(self, folder_id: str | None) -> list[Request]:
        return [r for r in self.requests if r.folder_id == folder_id]


class CollectionSummary(CamelModel):
    id: str
    name: str
    description: str = ""
    folder_count: int
    request_count: int
    updated_at: datetime

    @classmethod
    def of(cls, collection: Collection) -> "CollectionSummary":
        return cls(
            id=collection.id,
            name=collection.name,
            description=collection.description,
            folder_count=len(collection.folders),
            request_count=len(collection.requests),
            updated_at=collection.updated_at,
        )
