from fastapi import APIRouter, Depends, HTTPException, status

from posterboy.api.deps import get_collections, get_template_engine
from posterboy.schemas.collection import Collection, CollectionSummary, Request
from posterboy.services.repository import CollectionRepository
from posterboy.services.variables import TemplateEngine

router = APIRouter()


def _get_collection(collection_id: str, collections: CollectionRepository) -> Collection:
    col = collections.find(collection_id)
    if not col:
        raise HTTPException(status_code=404, detail="Collection not found")
    return col


@router.get("/", response_model=list[CollectionSummary])
def list_collections(collections: CollectionRepository = Depends(get_collections)):
    return [CollectionSummary.of(c) for c in collections.all()]


@router.get("/{collection_id}", response_model=Collection)
def get_collection(
    collection_id: str,
    collections: CollectionRepository = Depends(get_collections),
):
    return _get_collection(collection_id, collections)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_collection(
    collection_id: str,
    collections: CollectionRepository = Depends(get_collections),
):
    if not collections.remove(collection_id):
        raise HTTPException(status_code=404, detail="Collection not found")


@router.post("/{collection_id}/requests/{request_id}/resolve", response_model=Request)
def resolve_request(
    collection_id: str,
    request_id: str,
    environment: str | None = None,
    collections: CollectionRepository = Depends(get_collections),
    engine: TemplateEngine = Depends(get_template_engine),
):
    """Return the request with ``{{variables}}`` resolved against the active (or given) environment."""
    col = _get_collection(collection_id, collections)
    req = col.find_request(request_id)
    if not req:
        raise HTTPException(status_code=404, detail="Request not found")
    return engine.resolve_request(req, environment)
