import logging
from typing import List, Optional
from uuid import UUID

from .errors import Error
from .events import Event
from .models import Category
from .result import Result, Success
from .service import SupabaseService

logger = logging.getLogger(__name__)


class CategoryStateService:
    """
    In-memory mirror of the user's categories.

    Mutations go to the backend first; the cache is then rebuilt from a fresh
    ``get_categories()`` so that server-side fields (ids, ``is_referenced``)
    are what subscribers see. The list is replaced wholesale, never edited.
    Failures from the data-access layer are returned as-is.
    """

    def __init__(self, service: SupabaseService):
        self._service = service
        self._categories: Optional[List[Category]] = None
        self.category_state_changed = Event("category_state_changed")

    @property
    def categories(self) -> Optional[List[Category]]:
        """Last loaded snapshot, ``None`` until the first successful load."""
        return self._categories

    async def load_categories(self) -> Result[bool, Error]:
        result = await self._service.get_categories()
        if result.is_failure():
            return result
        self._categories = result.get_success()
        logger.debug("category cache replaced (%d items)", len(self._categories))
        self.category_state_changed.emit()
        return Success(True)

    async def add_category(self, category: Category) -> Result[bool, Error]:
        created = await self._service.create_category(category)
        if created.is_failure():
            return created
        return await self.load_categories()

    async def update_category(self, category: Category) -> Result[bool, Error]:
        """``Success(False)`` when no row matched; the cache is left alone."""
        updated = await self._service.update_category(category)
        if updated.is_failure():
            return updated
        if updated.get_success() is None:
            return Success(False)
        return await self.load_categories()

    async def delete_category(self, category_id: UUID) -> Result[bool, Error]:
        deleted = await self._service.delete_category(category_id)
        if deleted.is_failure():
            return deleted
        return await self.load_categories()
