from fastapi import Depends
from sqlalchemy.orm import Session

from posterboy.database import get_db
from posterboy.services.import_service import ImportService
from posterboy.services.repository import CollectionRepository, EnvironmentRepository
from posterboy.services.store import SqlStore
from posterboy.services.variables import TemplateEngine


def get_store(db: Session = Depends(get_db)) -> SqlStore:
    return SqlStore(db)


def get_collections(store: SqlStore = Depends(get_store)) -> CollectionRepository:
    return CollectionRepository(store)


def get_environments(store: SqlStore = Depends(get_store)) -> EnvironmentRepository:
    return EnvironmentRepository(store)


def get_template_engine(environments: EnvironmentRepository = Depends(get_environments)) -> TemplateEngine:
    return TemplateEngine(environments)


def get_import_service(
    collections: CollectionRepository = Depends(get_collections),
    environments: EnvironmentRepository = Depends(get_environments),
) -> ImportService:
    return ImportService(collections, environments)
