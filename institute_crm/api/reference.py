"""
Reference data API routes.

One set of routes for every kind; the kind in the path picks the table.
"""
import uuid
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.database import get_session
from institute_crm.core.context import ActorContext
from institute_crm.api.deps import get_actor
from institute_crm.schemas.common import ActionResponse
from institute_crm.services.reference_service import ReferenceService, ReferenceKind

router = APIRouter(prefix="/api/reference", tags=["reference"])


@router.get("/{kind}", response_model=ActionResponse)
async def list_reference_data(
    kind: ReferenceKind,
    active_only: bool = False,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """List branches, courses, enquiry sources or required services."""
    items = await ReferenceService(session).list(kind, active_only=active_only)
    return ActionResponse(
        data=[item.model_dump() for item in items],
        message="Fetched successfully"
    )


@router.post("/{kind}", response_model=ActionResponse, status_code=201)
async def create_reference_data(
    kind: ReferenceKind,
    payload: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    item = await ReferenceService(session).create(actor, kind, payload)
    return ActionResponse(data=item.model_dump(), message="Created successfully")


@router.patch("/{kind}/{item_id}", response_model=ActionResponse)
async def update_reference_data(
    kind: ReferenceKind,
    item_id: uuid.UUID,
    payload: Dict[str, Any] = Body(...),
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    item = await ReferenceService(session).update(actor, kind, item_id, payload)
    return ActionResponse(data=item.model_dump(), message="Updated successfully")


@router.post("/{kind}/{item_id}/toggle", response_model=ActionResponse)
async def toggle_reference_data(
    kind: ReferenceKind,
    item_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    """Activate or deactivate a row."""
    item = await ReferenceService(session).toggle_active(actor, kind, item_id)
    return ActionResponse(data=item.model_dump(), message="Status updated successfully")


@router.delete("/{kind}/{item_id}", response_model=ActionResponse)
async def delete_reference_data(
    kind: ReferenceKind,
    item_id: uuid.UUID,
    actor: ActorContext = Depends(get_actor),
    session: AsyncSession = Depends(get_session)
):
    await ReferenceService(session).delete(actor, kind, item_id)
    return ActionResponse(message="Deleted successfully")
