from fastapi import APIRouter

from posterboy.api.v1 import collections, environments, import_export

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(collections.router, prefix="/collections", tags=["Collections"])
api_router.include_router(environments.router, prefix="/environments", tags=["Environments"])
api_router.include_router(import_export.router, prefix="/import-export", tags=["Import/Export"])
