"""Repository interface for the promo registry."""

from abc import ABC, abstractmethod


class PromosRepo(ABC):
    """Contract for promo lookups and usage accounting."""

    @abstractmethod
    async def find_by_code(self, code):
        """Return the promo whose normalized code equals ``code`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def increment_usage(self, promo_id):
        """Atomically add one use unless the cap is reached.

        Returns the number of affected rows: ``1`` on success, ``0`` when the
        cap was already reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def record_usage(self, promo_id, order_id, discount_amount):
        """Append a redemption to the usage ledger."""
        raise NotImplementedError
