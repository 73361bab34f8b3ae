"""
API endpoints for import (every supported format) and export (Postman, native archive).
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File

from posterboy.api.deps import get_collections, get_environments, get_import_service
from posterboy.schemas.import_export import ImportResult, TextImportRequest
from posterboy.services.exporters import (
    export_native,
    export_native_environments,
    export_postman_environment,
    export_to_postman,
)
from posterboy.services.import_service import ImportService
from posterboy.services.repository import CollectionRepository, EnvironmentRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _checked(result: ImportResult) -> ImportResult:
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return result


# ── Import ──

@router.post("/import", response_model=ImportResult)
async def import_file(
    file: UploadFile = File(...),
    service: ImportService = Depends(get_import_service),
):
    """Import any supported file; the format is detected from its content."""
    content = await file.read()
    logger.info("Received upload %s (%d bytes)", file.filename, len(content))
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File is not UTF-8 text")
    return _checked(service.import_text(text, file.filename))


@router.post("/import/text", response_model=ImportResult)
def import_text(
    payload: TextImportRequest,
    service: ImportService = Depends(get_import_service),
):
    """Import pasted content (JSON, YAML or cURL commands)."""
    return _checked(service.import_text(payload.content, payload.filename))


# ── Export ──

@router.get("/export/postman/{collection_id}")
def export_postman(
    collection_id: str,
    collections: CollectionRepository = Depends(get_collections),
):
    """Export a collection as Postman Collection v2.1 JSON."""
    col = collections.find(collection_id)
    if not col:
        raise HTTPException(status_code=404, detail="Collection not found")
    return export_to_postman(col)


@router.get("/export/native")
def export_archive(
    collections: CollectionRepository = Depends(get_collections),
    environments: EnvironmentRepository = Depends(get_environments),
):
    return export_native(collections.all(), environments.all())


@router.get("/export/environments")
def export_environment_archive(environments: EnvironmentRepository = Depends(get_environments)):
    return export_native_environments(environments.all())


@router.get("/export/environment/{name}")
def export_environment(
    name: str,
    environments: EnvironmentRepository = Depends(get_environments),
):
    """Export one environment as a Postman environment file."""
    if not environments.exists(name):
        raise HTTPException(status_code=404, detail="Environment not found")
    return export_postman_environment(name, environments.get(name))
