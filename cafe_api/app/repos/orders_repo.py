"""Repository interface for order operations."""

from abc import ABC, abstractmethod


class OrdersRepo(ABC):
    """Contract for order header and line item persistence."""

    @abstractmethod
    async def insert_header(self, values):
        """Insert an order header and return its identifier."""
        raise NotImplementedError

    @abstractmethod
    async def set_session_id(self, order_id, session_id):
        """Store the table session identifier on the order."""
        raise NotImplementedError

    @abstractmethod
    async def insert_items(self, order_id, items):
        """Insert all ``items`` for ``order_id`` as one batch."""
        raise NotImplementedError

    @abstractmethod
    async def delete_order(self, order_id):
        """Delete the order header and any items it owns."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, order_id, values):
        """Write ``values`` onto the order header."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, order_id):
        """Return the order with its items or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def get_item(self, item_id):
        """Return a single order item or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def update_item(self, item_id, values):
        """Write ``values`` onto an order item."""
        raise NotImplementedError

    @abstractmethod
    async def list_by_status(self, statuses, limit=100):
        """Return orders whose status is in ``statuses``, oldest first."""
        raise NotImplementedError
