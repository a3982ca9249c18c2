"""
Reference data service - branches, courses, enquiry sources and required
services behind one set of operations.
"""
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Type, List

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.core.context import ActorContext
from institute_crm.core.exceptions import (
    NotFoundError,
    AlreadyExistsError,
    ValidationError,
    StoreFailureError
)
from institute_crm.models.reference import Branch, Course, EnquirySource, RequiredService
from institute_crm.repositories.reference_repo import ReferenceRepository
from institute_crm.schemas.reference import (
    BranchCreate,
    BranchUpdate,
    CourseCreate,
    CourseUpdate,
    NamedCreate,
    NamedUpdate
)

logger = logging.getLogger(__name__)


class ReferenceKind(str, Enum):
    BRANCH = "branch"
    COURSE = "course"
    ENQUIRY_SOURCE = "enquiry_source"
    REQUIRED_SERVICE = "required_service"


@dataclass(frozen=True)
class ReferenceEntry:
    label: str
    model: Type[SQLModel]
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    unique_name: bool = True


REFERENCE_REGISTRY = {
    ReferenceKind.BRANCH: ReferenceEntry("Branch", Branch, BranchCreate, BranchUpdate),
    ReferenceKind.COURSE: ReferenceEntry(
        "Course", Course, CourseCreate, CourseUpdate, unique_name=False
    ),
    ReferenceKind.ENQUIRY_SOURCE: ReferenceEntry(
        "Enquiry source", EnquirySource, NamedCreate, NamedUpdate
    ),
    ReferenceKind.REQUIRED_SERVICE: ReferenceEntry(
        "Required service", RequiredService, NamedCreate, NamedUpdate
    ),
}


class ReferenceService:
    """Service for reference data. Reads are open, writes are admin only."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _entry(self, kind) -> ReferenceEntry:
        try:
            return REFERENCE_REGISTRY[ReferenceKind(kind)]
        except ValueError:
            raise NotFoundError("Reference data kind", str(kind))

    def _repo(self, entry: ReferenceEntry) -> ReferenceRepository:
        return ReferenceRepository(entry.model, self.session)

    async def list(self, kind: ReferenceKind, active_only: bool = False) -> List[SQLModel]:
        entry = self._entry(kind)
        return await self._repo(entry).list_all(active_only=active_only)

    async def get(self, kind: ReferenceKind, item_id: uuid.UUID) -> SQLModel:
        entry = self._entry(kind)
        item = await self._repo(entry).get(item_id)
        if not item:
            raise NotFoundError(entry.label, str(item_id))
        return item

    async def create(self, actor: ActorContext, kind: ReferenceKind, payload: dict) -> SQLModel:
        actor.require_admin()
        entry = self._entry(kind)
        data = _validate(entry.create_schema, payload)
        data["name"] = data["name"].strip()

        repo = self._repo(entry)
        if entry.unique_name and await repo.get_by_name(data["name"]):
            raise AlreadyExistsError(entry.label, "name", data["name"])

        try:
            item = await repo.create(data)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create {kind}: {e}")
            raise StoreFailureError(f"Failed to create {entry.label.lower()}") from e

        logger.info(f"{entry.label} '{item.name}' created by {actor.user_id}")
        return item

    async def update(
        self,
        actor: ActorContext,
        kind: ReferenceKind,
        item_id: uuid.UUID,
        payload: dict
    ) -> SQLModel:
        actor.require_admin()
        entry = self._entry(kind)
        data = _validate(entry.update_schema, payload, exclude_unset=True)

        repo = self._repo(entry)
        if not await repo.get(item_id):
            raise NotFoundError(entry.label, str(item_id))

        if data.get("name"):
            data["name"] = data["name"].strip()
            if entry.unique_name and await repo.get_by_name(data["name"], exclude_id=item_id):
                raise AlreadyExistsError(entry.label, "name", data["name"])

        try:
            return await repo.update(item_id, data)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update {kind} {item_id}: {e}")
            raise StoreFailureError(f"Failed to update {entry.label.lower()}") from e

    async def delete(self, actor: ActorContext, kind: ReferenceKind, item_id: uuid.UUID) -> bool:
        """Delete a row. Fails with a store error while anything still references it."""
        actor.require_admin()
        entry = self._entry(kind)
        repo = self._repo(entry)

        try:
            deleted = await repo.delete(item_id)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete {kind} {item_id}: {e}")
            raise StoreFailureError(f"Failed to delete {entry.label.lower()}") from e

        if not deleted:
            raise NotFoundError(entry.label, str(item_id))
        logger.info(f"{entry.label} {item_id} deleted by {actor.user_id}")
        return True

    async def toggle_active(
        self,
        actor: ActorContext,
        kind: ReferenceKind,
        item_id: uuid.UUID
    ) -> SQLModel:
        """Flip is_active so a row can be hidden from pickers without deleting it."""
        actor.require_admin()
        item = await self.get(kind, item_id)

        try:
            item.is_active = not item.is_active
            self.session.add(item)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to toggle {kind} {item_id}: {e}")
            raise StoreFailureError("Failed to update status") from e

        await self.session.refresh(item)
        return item


def _validate(schema: Type[BaseModel], payload: dict, exclude_unset: bool = False) -> dict:
    try:
        return schema.model_validate(payload).model_dump(exclude_unset=exclude_unset)
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise ValidationError(error["msg"], field)
