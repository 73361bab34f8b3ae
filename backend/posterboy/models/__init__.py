from posterboy.models.store import StoreEntry

__all__ = [
    "StoreEntry",
]
