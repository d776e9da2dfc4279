# tests/test_accounts_api.py
from datetime import datetime, timedelta, timezone
from http import HTTPStatus

from app.schemas.meeting import MeetingPlatform, MeetingSyncData


def _build_account_payload(
    user_id: str = "user-1",
    email: str = "owner@example.com",
    is_active: bool = True,
) -> dict:
    return {
        "user_id": user_id,
        "email": email,
        "access_token": "token-1",
        "is_active": is_active,
    }


def _sync_data(event_id: str, title: str, minutes: int = 30) -> MeetingSyncData:
    start = datetime(2025, 11, 14, 10, 30, tzinfo=timezone.utc)
    return MeetingSyncData(
        external_event_id=event_id,
        title=title,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        attendees=["a@example.com", "b@example.com", "c@example.com"],
        platform=MeetingPlatform.ZOOM,
    )


def test_create_account_success_hides_token(client):
    resp = client.post("/accounts", json=_build_account_payload())

    assert resp.status_code == HTTPStatus.CREATED
    data = resp.json()
    assert isinstance(data["id"], int)
    assert data["email"] == "owner@example.com"
    assert data["provider"] == "google"
    assert data["calendar_id"] == "primary"
    assert "access_token" not in data


def test_create_account_duplicate_email_rejected(client):
    assert client.post("/accounts", json=_build_account_payload()).status_code == HTTPStatus.CREATED

    second = client.post("/accounts", json=_build_account_payload(user_id="user-2"))
    assert second.status_code == HTTPStatus.BAD_REQUEST
    assert "already exists" in second.json()["detail"]


def test_list_accounts_filters_by_user(client):
    client.post("/accounts", json=_build_account_payload(email="a@example.com"))
    client.post("/accounts", json=_build_account_payload(user_id="user-2", email="b@example.com"))

    all_accounts = client.get("/accounts").json()
    assert len(all_accounts) == 2

    mine = client.get("/accounts", params={"user_id": "user-2"}).json()
    assert [a["email"] for a in mine] == ["b@example.com"]


def test_toggle_account(client):
    account = client.post("/accounts", json=_build_account_payload()).json()

    resp = client.patch(f"/accounts/{account['id']}/toggle", json={"is_active": False})
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["is_active"] is False

    missing = client.patch("/accounts/999/toggle", json={"is_active": True})
    assert missing.status_code == HTTPStatus.NOT_FOUND


def test_sync_account_runs_rules_and_invites_bot(client, fake_calendar):
    account = client.post("/accounts", json=_build_account_payload()).json()
    client.post(
        "/rules",
        json={
            "name": "Record standups",
            "account_id": account["id"],
            "conditions": {"min_duration": 15, "title_keywords": ["standup"]},
            "actions": {"invite_bot": True},
            "priority": 5,
        },
    )
    fake_calendar.events[account["id"]] = [
        _sync_data("evt-1", "Daily Standup"),
        _sync_data("evt-2", "Lunch"),
    ]

    resp = client.post(f"/accounts/{account['id']}/sync")

    assert resp.status_code == HTTPStatus.OK
    data = resp.json()
    assert data["meetings_total"] == 2
    assert data["meetings_matched"] == 1
    assert data["bots_invited"] == 1
    assert len(fake_calendar.invites) == 1

    # Second pass: the invited meeting is settled and skipped.
    again = client.post(f"/accounts/{account['id']}/sync").json()
    assert again["meetings_skipped"] == 1
    assert again["bots_invited"] == 0
    assert len(fake_calendar.invites) == 1


def test_sync_account_reports_invite_failure(client, fake_calendar):
    account = client.post("/accounts", json=_build_account_payload()).json()
    client.post(
        "/rules",
        json={"name": "Everything", "account_id": account["id"], "priority": 1},
    )
    fake_calendar.events[account["id"]] = [_sync_data("evt-1", "Daily Standup")]
    fake_calendar.fail_invite = True

    resp = client.post(f"/accounts/{account['id']}/sync")

    assert resp.status_code == HTTPStatus.BAD_GATEWAY
    meetings = client.get("/meetings", params={"account_id": account["id"]}).json()
    assert meetings[0]["status"] == "failed"
    assert meetings[0]["bot_invited"] is False


def test_sync_unknown_account_is_404(client):
    assert client.post("/accounts/999/sync").status_code == HTTPStatus.NOT_FOUND
