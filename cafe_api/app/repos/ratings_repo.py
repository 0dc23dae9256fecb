"""Repository interface for order ratings."""

from abc import ABC, abstractmethod


class RatingsRepo(ABC):
    """Contract for rating persistence."""

    @abstractmethod
    async def get_for_order(self, order_id):
        """Return the rating for ``order_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def create(self, values):
        """Insert a rating.

        Raises :class:`~cafe_api.app.domain.errors.DuplicateRating` when the
        order already has one.
        """
        raise NotImplementedError
