import logging

from voltbill.settings import settings
from voltbill.storage.base import StorageBackend

logger = logging.getLogger(__name__)


def get_storage() -> StorageBackend:
    backend = settings.storage_backend

    if backend == "local":
        from voltbill.storage.local import LocalStorage

        logger.info("Using storage backend: local path=%s", settings.export_local_path)
        return LocalStorage(settings.export_local_path)

    raise ValueError(f"Unsupported storage backend: {backend}")
