"""
Repository shared by every reference data table.
"""
import uuid
from typing import Optional, List

from sqlmodel import select

from institute_crm.repositories.base import BaseRepository, ModelType


class ReferenceRepository(BaseRepository[ModelType]):
    """Branch, Course, EnquirySource and RequiredService all go through here."""

    async def list_all(self, active_only: bool = False) -> List[ModelType]:
        query = select(self.model)
        if active_only:
            query = query.where(self.model.is_active == True)  # noqa: E712
        query = query.order_by(self.model.created_at.desc())
        result = await self.session.exec(query)
        return list(result.all())

    async def get_by_name(
        self,
        name: str,
        exclude_id: Optional[uuid.UUID] = None
    ) -> Optional[ModelType]:
        """Find a row by name, optionally ignoring one id (for updates)."""
        query = select(self.model).where(self.model.name == name)
        if exclude_id:
            query = query.where(self.model.id != exclude_id)
        result = await self.session.exec(query)
        return result.first()
