"""Repository interface for the table registry."""

from abc import ABC, abstractmethod


class TablesRepo(ABC):
    """Contract for table lookups and occupancy updates."""

    @abstractmethod
    async def get(self, table_id):
        """Return the table with identifier ``table_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    async def get_by_number(self, table_number):
        """Return the table whose display number is ``table_number`` or ``None``."""
        raise NotImplementedError

    async def find_by_id_or_number(self, ref):
        """Resolve ``ref`` as an identifier first, then as a display number.

        Client UIs sometimes send the number printed on the table instead of
        its identifier.
        """
        table = await self.get(ref)
        if table is None:
            table = await self.get_by_number(ref)
        return table

    @abstractmethod
    async def set_occupied(self, table_id, session_id, now):
        """Attach ``session_id`` to the table unless another session holds it.

        Returns ``True`` when the table was updated and ``False`` when it is
        held by a different session or is reserved or being cleaned.
        """
        raise NotImplementedError

    @abstractmethod
    async def release(self, table_id, session_id):
        """Free the table if ``session_id`` is still its active session.

        Returns ``True`` when the table was released.
        """
        raise NotImplementedError
