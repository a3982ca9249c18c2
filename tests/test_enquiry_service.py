from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from conftest import _make_user, actor_for
from institute_crm.core.context import Role
from institute_crm.core.exceptions import ForbiddenError, NotFoundError
from institute_crm.models.activity import EnquiryActivity
from institute_crm.models.enquiry import CallLog, Enquiry, EnquiryStatus, FollowUp
from institute_crm.schemas.enquiry import EnquiryCreate, EnquiryFilter, EnquiryUpdate
from institute_crm.schemas.follow_up import CallLogCreate, FollowUpCreate
from institute_crm.services.call_log_service import CallLogService
from institute_crm.services.enquiry_service import EnquiryService
from institute_crm.services.follow_up_service import FollowUpService
from institute_crm.services.status_service import StatusService


async def test_create_assigns_to_creator(session, telecaller):
    enquiry = await EnquiryService(session).create(
        actor_for(telecaller),
        EnquiryCreate(candidate_name="Anjali Menon", phone="+91 9876543210", email="anjali@example.com"),
    )

    assert enquiry.status == EnquiryStatus.NEW
    assert enquiry.assigned_to_user_id == telecaller.id
    assert enquiry.created_by_user_id == telecaller.id
    assert enquiry.branch_id == telecaller.branch_id
    assert enquiry.last_contact_date is not None


async def test_list_scoping_by_role(
    session, admin, executive, telecaller, other_telecaller, branch, other_branch, make_enquiry
):
    mine = await make_enquiry(assigned_to=telecaller, branch_id=branch.id)
    await make_enquiry(assigned_to=other_telecaller, branch_id=branch.id)
    await make_enquiry(branch_id=other_branch.id)
    service = EnquiryService(session)

    _, total = await service.list(actor_for(admin))
    assert total == 3

    _, total = await service.list(actor_for(executive))
    assert total == 2

    # Telecallers with a branch see the branch list; access to a record is checked separately
    _, total = await service.list(actor_for(telecaller))
    assert total == 2

    with pytest.raises(ForbiddenError):
        await service.get(actor_for(other_telecaller), mine.id)


async def test_user_without_branch_sees_own_enquiries(session, admin, make_enquiry):
    loner = await _make_user(session, "loner@test.com", Role.TELECALLER)
    await make_enquiry(assigned_to=loner)
    await make_enquiry()

    items, total = await EnquiryService(session).list(actor_for(loner))
    assert total == 1
    assert items[0].assigned_to_user_id == loner.id


async def test_list_filters(session, admin, make_enquiry):
    await make_enquiry(candidate_name="Rahul Nair", status=EnquiryStatus.INTERESTED)
    await make_enquiry(candidate_name="Priya Das", status=EnquiryStatus.NEW)
    await make_enquiry(candidate_name="Rahul Varma", status=EnquiryStatus.DROPPED)
    service = EnquiryService(session)

    items, total = await service.list(actor_for(admin), EnquiryFilter(search="rahul"))
    assert total == 2

    items, total = await service.list(
        actor_for(admin),
        EnquiryFilter(search="rahul", status=[EnquiryStatus.INTERESTED, EnquiryStatus.NEW]),
    )
    assert [e.candidate_name for e in items] == ["Rahul Nair"]

    _, total = await service.list(actor_for(admin), EnquiryFilter(is_assigned=True))
    assert total == 0


async def test_list_newest_first_and_paginated(session, admin, make_enquiry):
    now = datetime.utcnow()
    for days in (3, 1, 2):
        await make_enquiry(candidate_name=f"day-{days}", created_at=now - timedelta(days=days))

    items, total = await EnquiryService(session).list(actor_for(admin), page=1, limit=2)
    assert total == 3
    assert [e.candidate_name for e in items] == ["day-1", "day-2"]


async def test_update_does_not_touch_status(session, admin, make_enquiry):
    enquiry = await make_enquiry(status=EnquiryStatus.INTERESTED)

    updated = await EnquiryService(session).update(
        actor_for(admin), enquiry.id, EnquiryUpdate(notes="Prefers mornings", address="MG Road")
    )
    assert updated.notes == "Prefers mornings"
    assert updated.status == EnquiryStatus.INTERESTED


async def test_get_detail_includes_history(session, telecaller, make_enquiry):
    enquiry = await make_enquiry(assigned_to=telecaller)
    actor = actor_for(telecaller)
    await FollowUpService(session).create(actor, FollowUpCreate(
        enquiry_id=enquiry.id, scheduled_at=datetime.utcnow() + timedelta(days=1)
    ))
    await CallLogService(session).create(actor, CallLogCreate(enquiry_id=enquiry.id, outcome="ANSWERED"))

    detail = await EnquiryService(session).get_detail(actor, enquiry.id)
    assert detail.id == enquiry.id
    assert len(detail.follow_ups) == 1
    assert len(detail.call_logs) == 1


async def test_delete_is_admin_only_and_cascades(session, admin, executive, make_enquiry):
    enquiry = await make_enquiry()
    enquiry_id = enquiry.id
    actor = actor_for(admin)
    await FollowUpService(session).create(actor, FollowUpCreate(
        enquiry_id=enquiry_id, scheduled_at=datetime.utcnow()
    ))
    await CallLogService(session).create(actor, CallLogCreate(enquiry_id=enquiry_id))
    await StatusService(session).update_status(actor, enquiry_id, EnquiryStatus.CONTACTED)

    with pytest.raises(ForbiddenError):
        await EnquiryService(session).delete(actor_for(executive), enquiry_id)

    assert await EnquiryService(session).delete(actor, enquiry_id) is True

    for model in (Enquiry, FollowUp, CallLog, EnquiryActivity):
        assert (await session.exec(select(model))).all() == []

    with pytest.raises(NotFoundError):
        await EnquiryService(session).get(actor, enquiry_id)


async def test_timestamps_round_trip_as_naive_utc(session, admin, make_enquiry):
    enquiry = await make_enquiry()
    enquiry_id = enquiry.id
    session.expunge(enquiry)

    stored = await session.get(Enquiry, enquiry_id)
    assert stored.created_at.tzinfo is None
    assert stored.updated_at.tzinfo is None
