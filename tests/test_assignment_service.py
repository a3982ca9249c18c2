import logging
import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from conftest import actor_for
from institute_crm.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from institute_crm.models.activity import EnquiryActivity
from institute_crm.models.job_order import JobLead, JobLeadStatus, JobOrder
from institute_crm.models.notification import Notification, NotificationType
from institute_crm.repositories.notification_repo import NotificationRepository
from institute_crm.schemas.job_order import AssignmentRequest, BulkAssignmentRequest, JobOrderFilter
from institute_crm.services.assignment_service import AssignmentService


def _today():
    return datetime.utcnow().date()


def _request(assignee, branch, **overrides):
    data = dict(
        assigned_to_user_id=assignee.id,
        branch_id=branch.id,
        name="October calling drive",
        start_date=_today() + timedelta(days=1),
        end_date=_today() + timedelta(days=7),
    )
    data.update(overrides)
    return data


async def _count(session, model):
    result = await session.exec(select(func.count()).select_from(model))
    return result.one()


async def _snapshot(session):
    return (
        await _count(session, JobOrder),
        await _count(session, JobLead),
        await _count(session, Notification),
    )


async def test_bulk_assign_starting_yesterday_rejected_without_writes(
    session, executive, telecaller, branch, make_enquiry
):
    first = await make_enquiry()
    second = await make_enquiry()
    before = await _snapshot(session)

    request = BulkAssignmentRequest(
        enquiry_ids=[first.id, second.id],
        **_request(telecaller, branch, start_date=_today() - timedelta(days=1)),
    )
    with pytest.raises(ValidationError) as exc_info:
        await AssignmentService(session).bulk_assign(actor_for(executive), request)

    assert "Start date cannot be in the past" in exc_info.value.message
    assert await _snapshot(session) == before
    await session.refresh(first)
    await session.refresh(second)
    assert first.assigned_to_user_id is None
    assert second.assigned_to_user_id is None


async def test_bulk_assign_creates_job_order_and_leads(
    session, executive, telecaller, branch, make_enquiry
):
    enquiries = [await make_enquiry() for _ in range(3)]

    job_order = await AssignmentService(session).bulk_assign(
        actor_for(executive),
        BulkAssignmentRequest(enquiry_ids=[e.id for e in enquiries], **_request(telecaller, branch)),
    )

    assert job_order.manager_id == telecaller.id
    assert job_order.assigner_id == executive.id
    assert job_order.branch_id == branch.id

    leads = (await session.exec(select(JobLead).where(JobLead.job_id == job_order.id))).all()
    assert len(leads) == 3
    assert all(lead.status == JobLeadStatus.PENDING for lead in leads)
    assert all(lead.assignee_id == telecaller.id for lead in leads)

    for enquiry in enquiries:
        await session.refresh(enquiry)
        assert enquiry.assigned_to_user_id == telecaller.id

    [notification] = (await session.exec(select(Notification))).all()
    assert notification.user_id == telecaller.id
    assert notification.type == NotificationType.ENQUIRY_ASSIGNED
    assert notification.message == "You have been assigned 3 new enquiries."

    # Assignment is not part of the enquiry's activity history
    assert await _count(session, EnquiryActivity) == 0


async def test_bulk_assign_rejects_already_assigned(
    session, executive, telecaller, other_telecaller, branch, make_enquiry
):
    free = await make_enquiry()
    owned = await make_enquiry(assigned_to=other_telecaller)
    before = await _snapshot(session)

    with pytest.raises(ValidationError):
        await AssignmentService(session).bulk_assign(
            actor_for(executive),
            BulkAssignmentRequest(enquiry_ids=[free.id, owned.id], **_request(telecaller, branch)),
        )
    assert await _snapshot(session) == before


async def test_bulk_assign_rejects_missing_enquiry(session, executive, telecaller, branch, make_enquiry):
    existing = await make_enquiry()

    with pytest.raises(NotFoundError):
        await AssignmentService(session).bulk_assign(
            actor_for(executive),
            BulkAssignmentRequest(enquiry_ids=[existing.id, uuid.uuid4()], **_request(telecaller, branch)),
        )


async def test_bulk_assign_requires_ids(session, executive, telecaller, branch):
    with pytest.raises(ValidationError):
        await AssignmentService(session).bulk_assign(
            actor_for(executive),
            BulkAssignmentRequest(enquiry_ids=[], **_request(telecaller, branch)),
        )


async def test_telecaller_cannot_assign(session, telecaller, other_telecaller, branch, make_enquiry):
    enquiry = await make_enquiry()

    with pytest.raises(ForbiddenError):
        await AssignmentService(session).assign(
            actor_for(telecaller), enquiry.id, AssignmentRequest(**_request(other_telecaller, branch))
        )


async def test_blank_job_name_rejected(session, admin, telecaller, branch, make_enquiry):
    enquiry = await make_enquiry()

    with pytest.raises(ValidationError) as exc_info:
        await AssignmentService(session).assign(
            actor_for(admin), enquiry.id, AssignmentRequest(**_request(telecaller, branch, name="   "))
        )
    assert "Job name is required" in exc_info.value.message
    assert await _count(session, JobOrder) == 0


async def test_start_after_end_rejected(session, admin, telecaller, branch, make_enquiry):
    enquiry = await make_enquiry()
    request = AssignmentRequest(**_request(
        telecaller, branch,
        start_date=_today() + timedelta(days=5),
        end_date=_today() + timedelta(days=2),
    ))

    with pytest.raises(ValidationError) as exc_info:
        await AssignmentService(session).assign(actor_for(admin), enquiry.id, request)
    assert "Start date cannot be after end date" in exc_info.value.message
    assert await _count(session, JobOrder) == 0


async def test_assignee_must_belong_to_branch(
    session, admin, telecaller, other_branch, make_enquiry
):
    enquiry = await make_enquiry()

    with pytest.raises(ValidationError) as exc_info:
        await AssignmentService(session).assign(
            actor_for(admin), enquiry.id, AssignmentRequest(**_request(telecaller, other_branch))
        )
    assert "does not belong to the chosen branch" in exc_info.value.message


async def test_assignee_without_branch_rejected(session, admin, branch, make_enquiry):
    enquiry = await make_enquiry()

    # Admin fixture has no branch
    with pytest.raises(ValidationError) as exc_info:
        await AssignmentService(session).assign(
            actor_for(admin), enquiry.id, AssignmentRequest(**_request(admin, branch))
        )
    assert "must have a branch" in exc_info.value.message


async def test_unknown_branch(session, admin, telecaller, branch, make_enquiry):
    enquiry = await make_enquiry()

    with pytest.raises(NotFoundError):
        await AssignmentService(session).assign(
            actor_for(admin),
            enquiry.id,
            AssignmentRequest(**_request(telecaller, branch, branch_id=uuid.uuid4())),
        )


async def test_reassigning_replaces_existing_job_leads(
    session, admin, telecaller, other_telecaller, branch, make_enquiry
):
    enquiry = await make_enquiry()
    service = AssignmentService(session)

    await service.assign(actor_for(admin), enquiry.id, AssignmentRequest(**_request(telecaller, branch)))
    updated = await service.assign(
        actor_for(admin), enquiry.id, AssignmentRequest(**_request(other_telecaller, branch, name="Second"))
    )

    assert updated.assigned_to_user_id == other_telecaller.id
    leads = (await session.exec(select(JobLead).where(JobLead.lead_id == enquiry.id))).all()
    assert len(leads) == 1
    assert leads[0].assignee_id == other_telecaller.id
    assert await _count(session, JobOrder) == 2


async def test_no_notification_when_assigning_to_self(session, executive, branch, make_enquiry):
    enquiry = await make_enquiry()

    await AssignmentService(session).assign(
        actor_for(executive), enquiry.id, AssignmentRequest(**_request(executive, branch))
    )
    assert await _count(session, Notification) == 0


async def test_job_order_progress_and_lead_status(
    session, executive, telecaller, branch, make_enquiry
):
    enquiries = [await make_enquiry() for _ in range(4)]
    service = AssignmentService(session)
    job_order = await service.bulk_assign(
        actor_for(executive),
        BulkAssignmentRequest(enquiry_ids=[e.id for e in enquiries], **_request(telecaller, branch)),
    )
    job_id = job_order.id

    detail = await service.get_job_order(actor_for(telecaller), job_id)
    await service.update_lead_status(actor_for(telecaller), detail.job_leads[0].id, JobLeadStatus.CLOSED)

    progress = await service.progress(actor_for(executive), job_id)
    assert (progress.closed, progress.total, progress.percentage) == (1, 4, 25)

    items, total = await service.list_job_orders(actor_for(telecaller), JobOrderFilter(pending_only=True))
    assert total == 1
    assert items[0].progress == 25
    assert items[0].total_leads == 4


async def test_job_order_hidden_from_other_telecaller(
    session, executive, telecaller, other_telecaller, branch, make_enquiry
):
    enquiry = await make_enquiry()
    job_order = await AssignmentService(session).bulk_assign(
        actor_for(executive),
        BulkAssignmentRequest(enquiry_ids=[enquiry.id], **_request(telecaller, branch)),
    )

    with pytest.raises(ForbiddenError):
        await AssignmentService(session).get_job_order(actor_for(other_telecaller), job_order.id)


async def test_delete_job_order_admin_only(session, admin, executive, telecaller, branch, make_enquiry):
    enquiry = await make_enquiry()
    service = AssignmentService(session)
    job_order = await service.bulk_assign(
        actor_for(executive),
        BulkAssignmentRequest(enquiry_ids=[enquiry.id], **_request(telecaller, branch)),
    )
    job_id = job_order.id

    with pytest.raises(ForbiddenError):
        await service.delete_job_order(actor_for(executive), job_id)

    assert await service.delete_job_order(actor_for(admin), job_id) is True
    assert await _count(session, JobOrder) == 0
    assert await _count(session, JobLead) == 0


async def test_reassign_notifies_new_manager(
    session, executive, telecaller, other_telecaller, branch, make_enquiry
):
    enquiry = await make_enquiry()
    service = AssignmentService(session)
    job_order = await service.bulk_assign(
        actor_for(executive),
        BulkAssignmentRequest(enquiry_ids=[enquiry.id], **_request(telecaller, branch)),
    )

    updated = await service.reassign(actor_for(executive), job_order.id, other_telecaller.id)

    assert updated.manager_id == other_telecaller.id
    result = await session.exec(
        select(Notification).where(Notification.user_id == other_telecaller.id)
    )
    [notification] = result.all()
    assert notification.type == NotificationType.JOB_ORDER_ASSIGNED


@pytest.fixture
def failing_notifications(monkeypatch):
    async def failing_add(self, *args, **kwargs):
        raise OperationalError("INSERT INTO notification", {}, Exception("database is locked"))

    monkeypatch.setattr(NotificationRepository, "add", failing_add)


async def test_assign_survives_notification_failure(
    session, executive, telecaller, branch, make_enquiry, failing_notifications, caplog
):
    enquiry = await make_enquiry()

    with caplog.at_level(logging.ERROR):
        assigned = await AssignmentService(session).assign(
            actor_for(executive), enquiry.id, AssignmentRequest(**_request(telecaller, branch))
        )

    # Still loaded after the failed notification
    assert assigned.assigned_to_user_id == telecaller.id
    assert await _count(session, JobLead) == 1
    assert await _count(session, Notification) == 0
    assert "Failed to create notification" in caplog.text


async def test_bulk_assign_survives_notification_failure(
    session, executive, telecaller, branch, make_enquiry, failing_notifications
):
    enquiries = [await make_enquiry() for _ in range(2)]

    job_order = await AssignmentService(session).bulk_assign(
        actor_for(executive),
        BulkAssignmentRequest(enquiry_ids=[e.id for e in enquiries], **_request(telecaller, branch)),
    )

    assert job_order.manager_id == telecaller.id
    assert await _count(session, JobLead) == 2
    assert await _count(session, Notification) == 0


async def test_reassign_survives_notification_failure(
    session, executive, telecaller, other_telecaller, branch, make_enquiry, monkeypatch
):
    enquiry = await make_enquiry()
    service = AssignmentService(session)
    job_order = await service.bulk_assign(
        actor_for(executive),
        BulkAssignmentRequest(enquiry_ids=[enquiry.id], **_request(telecaller, branch)),
    )

    async def failing_add(self, *args, **kwargs):
        raise OperationalError("INSERT INTO notification", {}, Exception("database is locked"))

    monkeypatch.setattr(NotificationRepository, "add", failing_add)

    updated = await service.reassign(actor_for(executive), job_order.id, other_telecaller.id)

    assert updated.manager_id == other_telecaller.id
    assert updated.name == "October calling drive"
    result = await session.exec(
        select(Notification).where(Notification.user_id == other_telecaller.id)
    )
    assert result.all() == []
