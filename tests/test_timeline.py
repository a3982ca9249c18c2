import uuid
from datetime import datetime, timedelta

import pytest

from conftest import actor_for
from institute_crm.core.exceptions import ForbiddenError, NotFoundError
from institute_crm.models.activity import ActivityType, EnquiryActivity
from institute_crm.models.enquiry import CallLog, FollowUp, FollowUpStatus
from institute_crm.schemas.follow_up import CallLogCreate, FollowUpCreate
from institute_crm.services.call_log_service import CallLogService
from institute_crm.services.follow_up_service import FollowUpService
from institute_crm.services.timeline_service import TimelineService, build_timeline

BASE = datetime(2026, 3, 1, 9, 0, 0)
ENQUIRY_ID = uuid.uuid4()
USER_ID = uuid.uuid4()


def _activity(minutes, follow_up_id=None, call_log_id=None, activity_type=ActivityType.STATUS_CHANGE):
    return EnquiryActivity(
        id=uuid.uuid4(),
        enquiry_id=ENQUIRY_ID,
        type=activity_type,
        title="entry",
        follow_up_id=follow_up_id,
        call_log_id=call_log_id,
        created_by_user_id=USER_ID,
        created_at=BASE + timedelta(minutes=minutes),
    )


def _follow_up(minutes):
    created = BASE + timedelta(minutes=minutes)
    return FollowUp(
        id=uuid.uuid4(),
        enquiry_id=ENQUIRY_ID,
        scheduled_at=created + timedelta(days=2),
        status=FollowUpStatus.PENDING,
        created_by_user_id=USER_ID,
        created_at=created,
        updated_at=created,
    )


def _call_log(minutes):
    created = BASE + timedelta(minutes=minutes)
    return CallLog(
        id=uuid.uuid4(),
        enquiry_id=ENQUIRY_ID,
        call_date=created,
        outcome="ANSWERED",
        created_by_user_id=USER_ID,
        created_at=created,
        updated_at=created,
    )


def test_linked_follow_up_appears_only_as_activity():
    follow_up = _follow_up(10)
    activity = _activity(10, follow_up_id=follow_up.id, activity_type=ActivityType.FOLLOW_UP)

    items = build_timeline([activity], [follow_up], [])

    assert [item.id for item in items] == [f"activity-{activity.id}"]
    assert items[0].kind == "activity"


def test_linked_call_log_appears_only_as_activity():
    call_log = _call_log(5)
    activity = _activity(5, call_log_id=call_log.id, activity_type=ActivityType.CALL_LOG)

    items = build_timeline([activity], [], [call_log])

    assert [item.id for item in items] == [f"activity-{activity.id}"]


def test_unlinked_records_are_listed_with_prefixed_ids():
    follow_up = _follow_up(20)
    call_log = _call_log(30)

    items = build_timeline([], [follow_up], [call_log])

    assert [(item.kind, item.id) for item in items] == [
        ("calllog", f"calllog-{call_log.id}"),
        ("followup", f"followup-{follow_up.id}"),
    ]


def test_items_ordered_newest_first():
    older_activity = _activity(1)
    follow_up = _follow_up(50)
    call_log = _call_log(25)
    newer_activity = _activity(100)

    items = build_timeline([older_activity, newer_activity], [follow_up], [call_log])

    timestamps = [item.created_at for item in items]
    assert timestamps == sorted(timestamps, reverse=True)
    assert items[0].id == f"activity-{newer_activity.id}"
    assert items[-1].id == f"activity-{older_activity.id}"


def test_rebuilding_gives_same_order():
    activities = [_activity(m) for m in (3, 7, 7, 12)]
    follow_ups = [_follow_up(7), _follow_up(1)]
    call_logs = [_call_log(12)]

    first = [item.id for item in build_timeline(activities, follow_ups, call_logs)]
    second = [item.id for item in build_timeline(activities, follow_ups, call_logs)]

    assert first == second


def test_ties_keep_input_order():
    first = _activity(5)
    second = _activity(5)

    items = build_timeline([first, second], [], [])

    assert [item.id for item in items] == [f"activity-{first.id}", f"activity-{second.id}"]


def test_activity_pointing_at_deleted_follow_up_is_kept():
    orphan = _activity(8, follow_up_id=uuid.uuid4(), activity_type=ActivityType.FOLLOW_UP)

    items = build_timeline([orphan], [], [])

    assert [item.id for item in items] == [f"activity-{orphan.id}"]


def test_empty_history():
    assert build_timeline([], [], []) == []


async def test_service_merges_real_records(session, telecaller, make_enquiry):
    enquiry = await make_enquiry(assigned_to=telecaller)
    actor = actor_for(telecaller)

    follow_up = await FollowUpService(session).create(actor, FollowUpCreate(
        enquiry_id=enquiry.id,
        scheduled_at=datetime.utcnow() + timedelta(days=1),
    ))
    call_log = await CallLogService(session).create(actor, CallLogCreate(
        enquiry_id=enquiry.id,
        outcome="BUSY",
    ))

    items = await TimelineService(session).build(actor, enquiry.id)

    # Both records were logged as activities, so only the activities show
    assert len(items) == 2
    assert {item.kind for item in items} == {"activity"}
    linked = {item.data.follow_up_id for item in items} | {item.data.call_log_id for item in items}
    assert follow_up.id in linked
    assert call_log.id in linked


async def test_service_checks_access(session, telecaller, other_telecaller, make_enquiry):
    enquiry = await make_enquiry(assigned_to=other_telecaller)

    with pytest.raises(ForbiddenError):
        await TimelineService(session).build(actor_for(telecaller), enquiry.id)

    with pytest.raises(NotFoundError):
        await TimelineService(session).build(actor_for(telecaller), uuid.uuid4())
