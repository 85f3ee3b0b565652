import unittest
from datetime import timedelta
from unittest.mock import patch

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select
from starlette.exceptions import HTTPException as StarletteHTTPException

from crm_server.main import app
from crm_server.core.database import get_session
from crm_server.core.errors import http_exception_handler
from crm_server.core.settings import settings
from crm_server.auth.dependencies import get_current_identity
from crm_server.auth.service import get_password_hash
from crm_server.auth.sessions import create_session, hash_token, validate_session
from crm_server.auth.tokens import create_access_token, decode_access_token
from crm_server.core.errors import Unauthorized
from crm_server.models.AuthSession import AuthIdentity, AuthSession
from crm_server.models.SuperAdmin import SuperAdmin


def make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


class ServerTestCase(unittest.TestCase):
    """
    Runs the app against a fresh in-memory database with one super admin.
    """

    def setUp(self):
        self.engine = make_engine()

        def override_session():
            with Session(self.engine) as session:
                yield session

        app.dependency_overrides[get_session] = override_session
        self.client = TestClient(app)

        with Session(self.engine) as session:
            admin = SuperAdmin(username="root", email="root@crm.local", password_hash=get_password_hash("s3cret"))
            session.add(admin)
            session.commit()
            session.refresh(admin)
            self.admin_id = admin.id

    def tearDown(self):
        app.dependency_overrides.clear()

    def login(self, username="root", password="s3cret"):
        resp = self.client.post("/api/auth/login", json={"username": username, "password": password})
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["token"]

    def auth(self, token):
        return {"Authorization": f"Bearer {token}"}


class TestTokenCodec(unittest.TestCase):

    def test_roundtrip_carries_identity(self):
        token, _ = create_access_token(AuthIdentity(id=7, username="alice"))
        identity = decode_access_token(token)
        self.assertEqual(identity.id, 7)
        self.assertEqual(identity.username, "alice")

    def test_tampered_token_is_rejected(self):
        token, _ = create_access_token(AuthIdentity(id=7, username="alice"))
        other, _ = create_access_token(AuthIdentity(id=8, username="mallory"))
        header, _, signature = token.split(".")
        forged = ".".join([header, other.split(".")[1], signature])
        with self.assertRaises(Unauthorized):
            decode_access_token(forged)

    def test_expired_token_is_rejected(self):
        token, _ = create_access_token(AuthIdentity(id=7, username="alice"), expires_delta=timedelta(seconds=-30))
        with self.assertRaises(Unauthorized):
            decode_access_token(token)

    def test_expiry_can_be_disabled(self):
        token, _ = create_access_token(AuthIdentity(id=7, username="alice"), expires_delta=timedelta(seconds=-30))
        with patch.object(settings, "ENFORCE_TOKEN_EXPIRY", False):
            self.assertEqual(decode_access_token(token).id, 7)

    def test_tokens_are_unique_per_login(self):
        first, _ = create_access_token(AuthIdentity(id=1, username="root"))
        second, _ = create_access_token(AuthIdentity(id=1, username="root"))
        self.assertNotEqual(first, second)


class TestSessionStore(unittest.TestCase):

    def setUp(self):
        self.engine = make_engine()

    def test_new_session_invalidates_previous_ones(self):
        with Session(self.engine) as session:
            first, exp = create_access_token(AuthIdentity(id=1, username="root"))
            create_session(session, 1, "super_admin", first, exp)
            second, exp = create_access_token(AuthIdentity(id=1, username="root"))
            create_session(session, 1, "super_admin", second, exp)

            self.assertFalse(validate_session(session, first))
            self.assertTrue(validate_session(session, second))

            old = session.exec(select(AuthSession).where(AuthSession.token_hash == hash_token(first))).one()
            self.assertIsNotNone(old.invalidated_at)

    def test_sessions_of_other_users_survive(self):
        with Session(self.engine) as session:
            a, exp = create_access_token(AuthIdentity(id=1, username="a"))
            create_session(session, 1, "super_admin", a, exp)
            b, exp = create_access_token(AuthIdentity(id=2, username="b"))
            create_session(session, 2, "super_admin", b, exp)
            self.assertTrue(validate_session(session, a))

    def test_unknown_token_is_not_active(self):
        with Session(self.engine) as session:
            self.assertFalse(validate_session(session, "never-issued"))


class TestAuthMiddleware(ServerTestCase):

    def test_missing_header_is_rejected_before_session_lookup(self):
        with patch("crm_server.auth.dependencies.validate_session") as mock_validate:
            resp = self.client.get("/api/auth/me")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Missing or invalid authorization header"})
        mock_validate.assert_not_called()

    def test_malformed_headers_are_rejected_before_session_lookup(self):
        for value in ["Basic abc", "bearer abc", "Token abc", "Bearer"]:
            with patch("crm_server.auth.dependencies.validate_session") as mock_validate:
                resp = self.client.get("/api/auth/me", headers={"Authorization": value})
            self.assertEqual(resp.status_code, 401, value)
            self.assertEqual(resp.json()["error"], "Missing or invalid authorization header")
            mock_validate.assert_not_called()

    def test_undecodable_token_is_rejected_before_session_lookup(self):
        with patch("crm_server.auth.dependencies.validate_session") as mock_validate:
            resp = self.client.get("/api/auth/me", headers=self.auth("not.a.jwt"))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Invalid or expired token"})
        mock_validate.assert_not_called()

    def test_revoked_session_reports_distinct_code(self):
        token = self.login()
        self.client.post("/api/auth/logout", headers=self.auth(token))

        resp = self.client.get("/api/auth/me", headers=self.auth(token))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Session invalidated", "code": "SESSION_INVALIDATED"})

    def test_second_login_invalidates_first_token(self):
        first = self.login()
        second = self.login()

        resp = self.client.get("/api/auth/session-valid", headers=self.auth(first))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "SESSION_INVALIDATED")

        resp = self.client.get("/api/auth/session-valid", headers=self.auth(second))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"valid": True})

    def test_identity_is_attached_once_per_request(self):
        probe = FastAPI()
        probe.add_exception_handler(StarletteHTTPException, http_exception_handler)
        probe.dependency_overrides = app.dependency_overrides
        calls = []

        @probe.get("/probe")
        async def probe_route(request: Request, identity: AuthIdentity = Depends(get_current_identity)):
            calls.append(identity)
            return {"state": request.state.user.model_dump(), "identity": identity.model_dump()}

        token = self.login()
        resp = TestClient(probe).get("/probe", headers=self.auth(token))

        self.assertEqual(resp.status_code, 200)
        expected = {"id": self.admin_id, "username": "root"}
        self.assertEqual(resp.json(), {"state": expected, "identity": expected})
        self.assertEqual(len(calls), 1)


class TestAuthRoutes(ServerTestCase):

    def test_login_returns_token_and_profile(self):
        resp = self.client.post("/api/auth/login", json={"username": "root", "password": "s3cret"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["token"])
        self.assertEqual(body["profile"], {
            "id": self.admin_id,
            "username": "root",
            "email": "root@crm.local",
            "role": "super_admin",
        })

    def test_login_with_wrong_password(self):
        resp = self.client.post("/api/auth/login", json={"username": "root", "password": "nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Invalid credentials"})

    def test_login_with_unknown_user(self):
        resp = self.client.post("/api/auth/login", json={"username": "ghost", "password": "s3cret"})
        self.assertEqual(resp.status_code, 401)

    def test_me_returns_profile(self):
        token = self.login()
        resp = self.client.get("/api/auth/me", headers=self.auth(token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["username"], "root")

    def test_logout(self):
        token = self.login()
        resp = self.client.post("/api/auth/logout", headers=self.auth(token))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "Logged out successfully"})

    def test_health(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "ok")
        self.assertIn("T", body["timestamp"])


if __name__ == "__main__":
    unittest.main()
