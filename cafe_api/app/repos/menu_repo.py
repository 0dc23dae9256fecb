"""Repository interface for the menu catalog."""

from abc import ABC, abstractmethod


class MenuRepo(ABC):
    """Contract for menu catalog lookups."""

    @abstractmethod
    async def get_item(self, item_id):
        """Return the menu item ``item_id`` or ``None``."""
        raise NotImplementedError
