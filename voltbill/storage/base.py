from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Where exported bill documents are kept for the user to open or print."""

    @abstractmethod
    def save(self, key: str, data: bytes) -> str:
        """Save data under key and return the path the platform can open."""
        ...

    @abstractmethod
    def get_url(self, key: str) -> str: ...
