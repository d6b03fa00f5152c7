"""
tests/test_api_routes.py -- Integration tests for the JSON endpoints.

These tests exercise the full stack: FastAPI routing -> body parsing ->
AuthService / TTLCache -> exception handlers -> response serialization.

Coverage:
  - POST /register: JSON and form bodies, 400 on missing/empty fields,
    409 on duplicate login, 500 with a generic body on hashing failure
  - POST /login: 200 + httpOnly/SameSite cookie, identical 401 for unknown
    login and wrong password, no-store caching
  - GET /data: cached flag and payload across the TTL window

Fixtures used (from conftest.py):
  - harness: TestClient with isolated stores and a FakeClock driving the cache
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import bcrypt
import pytest

if TYPE_CHECKING:
    from conftest import Harness


def _set_cookie_headers(resp) -> list[str]:
    return [v for k, v in resp.headers.multi_items() if k.lower() == "set-cookie"]


class TestRegister:
    def test_register_json_body(self, harness: Harness) -> None:
        resp = harness.client.post("/register", json={"login": "alice", "password": "pw123"})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Registration successful."}
        assert harness.user_store.find_by_login("alice") is not None

    def test_register_form_body(self, harness: Harness) -> None:
        """The entry page posts plain HTML forms."""
        resp = harness.client.post("/register", data={"login": "bob", "password": "pw123"})
        assert resp.status_code == 200
        assert harness.user_store.find_by_login("bob") is not None

    def test_register_response_never_contains_hash(self, harness: Harness) -> None:
        resp = harness.client.post("/register", json={"login": "carol", "password": "pw123"})
        stored = harness.user_store.find_by_login("carol")
        assert stored.password_hash not in resp.text
        assert "pw123" not in resp.text

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"login": "dave"},
            {"password": "pw123"},
            {"login": "", "password": "pw123"},
            {"login": "dave", "password": ""},
            {"login": 42, "password": "pw123"},
        ],
    )
    def test_register_missing_fields_is_400(self, harness: Harness, body: dict) -> None:
        resp = harness.client.post("/register", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "invalid_input"

    def test_register_malformed_json_is_400(self, harness: Harness) -> None:
        resp = harness.client.post(
            "/register", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400

    def test_register_non_object_json_is_400(self, harness: Harness) -> None:
        resp = harness.client.post("/register", json=["alice", "pw123"])
        assert resp.status_code == 400

    def test_register_duplicate_is_409(self, harness: Harness) -> None:
        harness.client.post("/register", json={"login": "erin", "password": "pw123"})
        resp = harness.client.post("/register", json={"login": "erin", "password": "other"})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "duplicate_login"

    def test_register_hashing_failure_is_generic_500(self, harness: Harness, monkeypatch) -> None:
        """A hasher failure must not leak exception text to the client."""

        def boom(*args, **kwargs):
            raise ValueError("secret internal detail")

        monkeypatch.setattr(bcrypt, "hashpw", boom)
        resp = harness.client.post("/register", json={"login": "frank", "password": "pw123"})
        assert resp.status_code == 500
        assert resp.json() == {"error": {"code": "server_error", "message": "Internal server error."}}
        assert "secret internal detail" not in resp.text
        assert harness.user_store.find_by_login("frank") is None


class TestLogin:
    @pytest.fixture(autouse=True)
    def _registered(self, harness: Harness) -> None:
        harness.client.post("/register", json={"login": "alice", "password": "pw123"})

    def test_login_success_sets_session_cookie(self, harness: Harness) -> None:
        resp = harness.client.post("/login", json={"login": "alice", "password": "pw123"})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Login successful."}
        token = resp.cookies.get("session_id")
        assert token
        user = harness.user_store.find_by_login("alice")
        assert harness.sessions.validate(token) == user.id

    def test_login_cookie_is_httponly_and_samesite(self, harness: Harness) -> None:
        resp = harness.client.post("/login", json={"login": "alice", "password": "pw123"})
        headers = [h.lower() for h in _set_cookie_headers(resp)]
        session_cookie = next(h for h in headers if h.startswith("session_id="))
        assert "httponly" in session_cookie
        assert "samesite=lax" in session_cookie

    def test_login_response_not_cached(self, harness: Harness) -> None:
        resp = harness.client.post("/login", json={"login": "alice", "password": "pw123"})
        assert resp.headers["Cache-Control"] == "no-store"

    def test_login_form_body(self, harness: Harness) -> None:
        resp = harness.client.post("/login", data={"login": "alice", "password": "pw123"})
        assert resp.status_code == 200

    def test_unknown_login_and_wrong_password_are_indistinguishable(self, harness: Harness) -> None:
        wrong_pw = harness.client.post("/login", json={"login": "alice", "password": "wrong"})
        unknown = harness.client.post("/login", json={"login": "nobody", "password": "pw123"})
        assert wrong_pw.status_code == unknown.status_code == 401
        assert wrong_pw.json() == unknown.json()
        assert wrong_pw.json()["error"]["message"] == "Invalid login or password."
        assert "session_id" not in wrong_pw.cookies

    def test_login_missing_fields_is_401(self, harness: Harness) -> None:
        resp = harness.client.post("/login", json={"login": "alice"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_credentials"

    @pytest.mark.parametrize(
        "body",
        [
            {"login": 42, "password": "pw123"},
            {"login": "alice", "password": ["pw123"]},
            ["alice", "pw123"],
        ],
    )
    def test_login_ill_typed_body_is_401(self, harness: Harness, body) -> None:
        resp = harness.client.post("/login", json=body)
        assert resp.status_code == 401
        assert resp.json() == {"error": {"code": "invalid_credentials", "message": "Invalid login or password."}}
        assert "session_id" not in resp.cookies

    def test_login_malformed_json_is_401(self, harness: Harness) -> None:
        resp = harness.client.post("/login", content=b"{not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_credentials"

    def test_login_ill_typed_body_still_runs_one_verification(self, harness: Harness, monkeypatch) -> None:
        calls = []
        real_checkpw = bcrypt.checkpw

        def counting_checkpw(*args, **kwargs):
            calls.append(args)
            return real_checkpw(*args, **kwargs)

        monkeypatch.setattr(bcrypt, "checkpw", counting_checkpw)
        harness.client.post("/login", json={"login": 42, "password": "pw123"})
        assert len(calls) == 1

    def test_login_content_type_is_case_insensitive(self, harness: Harness) -> None:
        resp = harness.client.post(
            "/login",
            content=b"login=alice&password=pw123",
            headers={"Content-Type": "Application/X-WWW-Form-Urlencoded"},
        )
        assert resp.status_code == 200
        assert resp.cookies.get("session_id")

    def test_relogin_replaces_presented_session(self, harness: Harness) -> None:
        first = harness.client.post("/login", json={"login": "alice", "password": "pw123"})
        old_token = first.cookies.get("session_id")
        second = harness.client.post("/login", json={"login": "alice", "password": "pw123"})
        new_token = second.cookies.get("session_id")
        assert new_token and new_token != old_token
        assert len(harness.sessions) == 1


class TestData:
    def test_first_request_generates(self, harness: Harness) -> None:
        resp = harness.client.get("/data")
        assert resp.status_code == 200
        body = resp.json()
        assert body["cached"] is False
        assert 0 <= body["data"]["random"] <= 999
        assert body["data"]["date"].endswith("Z")

    def test_second_request_within_ttl_is_cached(self, harness: Harness) -> None:
        first = harness.client.get("/data").json()
        harness.clock.advance(59)
        second = harness.client.get("/data").json()
        assert second["cached"] is True
        assert second["data"] == first["data"]

    def test_request_after_ttl_regenerates(self, harness: Harness) -> None:
        first = harness.client.get("/data").json()
        harness.clock.advance(60)
        second = harness.client.get("/data").json()
        assert second["cached"] is False
        third = harness.client.get("/data").json()
        assert third["cached"] is True
        assert third["data"] == second["data"]
        assert first["cached"] is False

    def test_data_requires_no_session(self, harness: Harness) -> None:
        harness.client.cookies.clear()
        assert harness.client.get("/data").status_code == 200
