from pydantic import BaseModel, Field

from posterboy.schemas.collection import CamelModel
from posterboy.services.format_detector import FormatTag


class ImportResult(CamelModel):
    success: bool
    format: FormatTag
    message: str
    error: str | None = None
    collection_ids: list[str] = Field(default_factory=list)
    collections_imported: int = 0
    folders_imported: int = 0
    requests_imported: int = 0
    environments_imported: int = 0
    skipped: int = 0


class TextImportRequest(BaseModel):
    content: str
    filename: str | None = None
