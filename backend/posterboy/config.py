import os
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "PosterBoy"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    DATABASE_URL: str = "sqlite:///./data/posterboy.db"

    # Native archive envelope: "<marker>_export", "<marker>_collection", "<marker>_environments"
    NATIVE_EXPORT_MARKER: str = "posterboy"
    LEGACY_EXPORT_MARKERS: list[str] = ["postwoman"]
    EXPORT_VERSION: str = "1.0.0"

    COLLECTIONS_KEY: str = "posterboy_collections"
    ENVIRONMENTS_KEY: str = "posterboy_environments"
    ACTIVE_ENVIRONMENT_KEY: str = "posterboy_active_environment"
    DEFAULT_ENVIRONMENT: str = "development"
    REQUIRED_ENVIRONMENT_VARIABLES: list[str] = ["baseUrl"]

    IMPORTED_SUFFIX: str = " (Imported)"
    OPENAPI_GROUP_BY_TAG: bool = False

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def export_markers(self) -> list[str]:
        return [self.NATIVE_EXPORT_MARKER, *self.LEGACY_EXPORT_MARKERS]


settings = Settings()

_db_path = os.getenv("POSTERBOY_DB_PATH")
if _db_path:
    db_path = Path(_db_path).expanduser().resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.DATABASE_URL = f"sqlite:///{db_path.as_posix()}"
else:
    _data_dir = os.getenv("POSTERBOY_DATA_DIR")
    if _data_dir:
        data_dir = Path(_data_dir).expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        settings.DATABASE_URL = f"sqlite:///{(data_dir / 'posterboy.db').as_posix()}"
