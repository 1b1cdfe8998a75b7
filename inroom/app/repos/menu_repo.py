"""Repository interface for menu operations."""

from abc import ABC, abstractmethod


class MenuRepo(ABC):
    """Contract for the versioned menu catalog."""

    @abstractmethod
    async def list_items(self, version):
        """Return the items of ``version`` in display order."""
        raise NotImplementedError

    @abstractmethod
    async def get_item(self, version, item_key):
        """Return one item of ``version`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def list_versions(self):
        """Return all published version tags."""
        raise NotImplementedError

    @abstractmethod
    async def publish_version(self, version, items):
        """Append ``items`` as a new menu ``version``."""
        raise NotImplementedError

    @abstractmethod
    async def seed_default(self, version):
        """Populate ``version`` with sample items when the catalog is empty."""
        raise NotImplementedError
