"""Entity store adapters."""
import logging

from app.core.config import settings
from app.core.errors import ValidationError
from app.stores.base import EntityStore
from app.stores.memory import InMemoryStore

logger = logging.getLogger(__name__)


def build_store(backend: str = None) -> EntityStore:
    """Create the store configured by STORE_BACKEND."""
    backend = (backend or settings.STORE_BACKEND).lower()
    logger.info(f"Using {backend} entity store")

    if backend == "memory":
        return InMemoryStore()
    if backend == "sql":
        from app.core.database import AsyncSessionLocal
        from app.stores.sql import SqlStore

        return SqlStore(AsyncSessionLocal)
    if backend == "remote":
        from app.stores.remote import RemoteStore

        return RemoteStore()

    raise ValidationError(f"Unknown STORE_BACKEND {backend!r}")


__all__ = ["EntityStore", "InMemoryStore", "build_store"]
