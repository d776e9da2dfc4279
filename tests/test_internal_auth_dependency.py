# tests/test_internal_auth_dependency.py
from http import HTTPStatus

from app.api.dependencies import internal_auth as auth_module


class DummySettingsProd:
    APP_ENV = "prod"
    INTERNAL_API_KEY = "supersecret"


class DummySettingsProdNoKey:
    APP_ENV = "prod"
    INTERNAL_API_KEY = None


class DummySettingsLocalWithKey:
    APP_ENV = "local"
    INTERNAL_API_KEY = "localsecret"


def test_internal_endpoint_401_when_key_missing_in_prod(monkeypatch, client):
    """
    In prod with INTERNAL_API_KEY set, a request without the header is rejected.
    """
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post("/internal/run-meeting-processing")
    assert resp.status_code == HTTPStatus.UNAUTHORIZED
    assert "invalid or missing" in resp.json()["detail"].lower()


def test_internal_endpoint_401_when_key_wrong_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post(
        "/internal/run-meeting-processing",
        headers={"X-Internal-Api-Key": "wrong-key"},
    )
    assert resp.status_code == HTTPStatus.UNAUTHORIZED


def test_internal_endpoint_200_when_key_correct_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProd())

    resp = client.post(
        "/internal/run-meeting-processing",
        headers={"X-Internal-Api-Key": "supersecret"},
    )
    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["accounts_total"] == 0


def test_internal_endpoint_500_when_key_not_configured_in_prod(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsProdNoKey())

    resp = client.post("/internal/run-meeting-processing")
    assert resp.status_code == HTTPStatus.INTERNAL_SERVER_ERROR


def test_internal_endpoint_open_locally_without_key(client):
    resp = client.post("/internal/run-meeting-processing")
    assert resp.status_code == HTTPStatus.OK


def test_internal_endpoint_checks_key_locally_when_configured(monkeypatch, client):
    monkeypatch.setattr(auth_module, "get_settings", lambda: DummySettingsLocalWithKey())

    assert client.post("/internal/run-meeting-processing").status_code == HTTPStatus.UNAUTHORIZED
    resp = client.post(
        "/internal/run-meeting-processing",
        headers={"X-Internal-Api-Key": "localsecret"},
    )
    assert resp.status_code == HTTPStatus.OK
