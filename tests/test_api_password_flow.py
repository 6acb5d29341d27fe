from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from channel_gate.main import create_app

from .conftest import FakeClock

ACCESS_CODE = "correct-horse-battery"


@pytest.fixture
def password_client(make_settings, clock: FakeClock) -> Iterator[TestClient]:
    app = create_app(make_settings(AUTH_MODE="password", ACCESS_CODE=ACCESS_CODE), clock=clock)
    with TestClient(app) as c:
        yield c


def test_form_login_with_access_code(password_client: TestClient) -> None:
    r = password_client.post("/login", data={"access_code": ACCESS_CODE}, follow_redirects=False)

    assert r.status_code == 302
    assert r.headers["location"] == "/iptv"
    assert r.headers["set-cookie"].startswith("sessionId=")
    assert password_client.get("/channels").status_code == 200


def test_json_login_with_access_code(password_client: TestClient) -> None:
    r = password_client.post("/login", json={"access_code": ACCESS_CODE})

    assert r.status_code == 200
    assert r.json()["success"] is True
    assert password_client.get("/check-session").status_code == 200


def test_access_code_is_reusable(password_client: TestClient) -> None:
    for _ in range(3):
        r = password_client.post("/login", json={"access_code": ACCESS_CODE})
        assert r.status_code == 200


def test_wrong_access_code(password_client: TestClient) -> None:
    form = password_client.post("/login", data={"access_code": "nope"}, follow_redirects=False)
    assert form.status_code == 302
    assert form.headers["location"] == "/?error=invalid"
    assert "set-cookie" not in form.headers

    as_json = password_client.post("/login", json={"access_code": "nope"})
    assert as_json.status_code == 400
    assert password_client.get("/channels").status_code == 401


def test_token_endpoints_are_absent_in_password_mode(password_client: TestClient) -> None:
    assert password_client.get("/generate-token").status_code == 404
    assert password_client.post("/validate-token", json={"token": "x"}).status_code == 404


def test_landing_page_shows_access_code_form(password_client: TestClient) -> None:
    r = password_client.get("/")
    assert r.status_code == 200
    assert 'name="access_code"' in r.text
