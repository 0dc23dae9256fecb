"""Repository interface for payment records."""

from abc import ABC, abstractmethod


class PaymentsRepo(ABC):
    """Contract for payment attempt persistence."""

    @abstractmethod
    async def create(self, values):
        """Insert a payment and return it."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, payment_id):
        """Return the payment ``payment_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def list_for_order(self, order_id):
        """Return all payment attempts for ``order_id``, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, payment_id, values):
        """Write ``values`` onto the payment."""
        raise NotImplementedError
