# tests/test_internal_processing_api.py
from datetime import datetime, timedelta, timezone
from http import HTTPStatus

from app.schemas.meeting import MeetingPlatform, MeetingSyncData


def _create_account(client, email: str, is_active: bool = True) -> int:
    resp = client.post(
        "/accounts",
        json={
            "user_id": "user-1",
            "email": email,
            "access_token": "token",
            "is_active": is_active,
        },
    )
    assert resp.status_code == HTTPStatus.CREATED
    return resp.json()["id"]


def _standup(event_id: str) -> MeetingSyncData:
    start = datetime(2025, 11, 14, 10, 30, tzinfo=timezone.utc)
    return MeetingSyncData(
        external_event_id=event_id,
        title="Daily Standup",
        start_time=start,
        end_time=start + timedelta(minutes=30),
        attendees=["a@example.com", "b@example.com", "c@example.com"],
        platform=MeetingPlatform.ZOOM,
    )


def test_run_meeting_processing_with_global_rule(client, fake_calendar, fake_notifier):
    """
    A global rule applies to every active account; inactive accounts are ignored.
    """
    first = _create_account(client, "one@example.com")
    second = _create_account(client, "two@example.com")
    inactive = _create_account(client, "off@example.com", is_active=False)

    rule = client.post(
        "/rules",
        json={
            "name": "Record all standups",
            "is_global": True,
            "conditions": {
                "min_duration": 15,
                "title_keywords": ["standup"],
                "required_platforms": ["zoom"],
            },
            "actions": {"invite_bot": True, "notify_user": True},
            "priority": 5,
        },
    ).json()

    for account_id in (first, second, inactive):
        fake_calendar.events[account_id] = [_standup(f"evt-{account_id}")]

    resp = client.post("/internal/run-meeting-processing")

    assert resp.status_code == HTTPStatus.OK
    data = resp.json()
    assert data["accounts_total"] == 2
    assert data["accounts_processed"] == 2
    assert data["accounts_failed"] == []
    assert [r["account_id"] for r in data["results"]] == [first, second]
    assert all(r["bots_invited"] == 1 for r in data["results"])

    assert sorted(invite[0] for invite in fake_calendar.invites) == [first, second]
    assert len(fake_notifier.sent) == 2

    meetings = client.get("/meetings", params={"account_id": first}).json()
    assert meetings[0]["status"] == "bot_invited"
    assert meetings[0]["applied_rules"] == [rule["id"]]


def test_run_meeting_processing_isolates_failing_account(client, fake_calendar):
    good = _create_account(client, "good@example.com")
    bad = _create_account(client, "bad@example.com")
    client.post("/rules", json={"name": "All", "is_global": True, "priority": 1})

    fake_calendar.events[good] = [_standup("evt-good")]
    fake_calendar.events[bad] = [_standup("evt-bad")]

    recording_invite = fake_calendar.invite_bot

    async def flaky_invite(account_id, meeting_id, bot_identity):
        if account_id == bad:
            raise RuntimeError("calendar rejected the patch")
        await recording_invite(account_id, meeting_id, bot_identity)

    fake_calendar.invite_bot = flaky_invite

    resp = client.post("/internal/run-meeting-processing")

    assert resp.status_code == HTTPStatus.OK
    data = resp.json()
    assert data["accounts_total"] == 2
    assert data["accounts_processed"] == 1
    assert data["accounts_failed"] == [bad]
    assert data["results"][0]["account_id"] == good
    assert data["results"][1] is None
