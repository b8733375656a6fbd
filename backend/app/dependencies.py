"""Process-wide service instances for route dependencies."""
from functools import lru_cache

from app.config import settings
from app.database import async_session
from app.services.storage_service import StorageService


@lru_cache()
def get_storage_service() -> StorageService:
    """The storage service, built once from settings."""
    return StorageService(settings.storage_config(), async_session)
