from __future__ import annotations

import unittest
from collections.abc import Generator
from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient
from jose import jwt

from teamclock.db import get_db
from teamclock.errors import ApiError
from teamclock.main import app
from teamclock.models import User, UserRole
from teamclock.security import create_access_token, decode_token
from teamclock.settings import get_settings


class _ScalarResult:
    def __init__(self, rows):
        self._rows = rows

    def all(self):  # type: ignore[no-untyped-def]
        return self._rows


class _FakeAuthDB:
    def __init__(self, users: list[User]):
        self.users = users

    def get(self, model, pk):  # type: ignore[no-untyped-def]
        if model is User:
            return next((user for user in self.users if user.id == pk), None)
        return None

    def scalars(self, _statement):  # type: ignore[no-untyped-def]
        return _ScalarResult([])


def _override_get_db(fake_db):
    def _override() -> Generator[object, None, None]:
        yield fake_db

    return _override


class AccessTokenTests(unittest.TestCase):
    def test_round_trip(self) -> None:
        token, expires_in = create_access_token(42)

        payload = decode_token(token)

        self.assertEqual(payload["sub"], "42")
        self.assertEqual(payload["typ"], "access")
        self.assertEqual(expires_in, get_settings().access_token_minutes * 60)

    def test_garbage_token_is_rejected(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            decode_token("not-a-token")

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.code, "INVALID_TOKEN")

    def test_expired_token_is_rejected(self) -> None:
        settings = get_settings()
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": "1",
                "iss": settings.jwt_issuer,
                "aud": settings.jwt_audience,
                "iat": int(issued.timestamp()),
                "exp": int((issued + timedelta(minutes=5)).timestamp()),
                "typ": "access",
            },
            settings.jwt_secret,
            algorithm="HS256",
        )

        with self.assertRaises(ApiError):
            decode_token(token)

    def test_wrong_token_type_is_rejected(self) -> None:
        settings = get_settings()
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": "1",
                "iss": settings.jwt_issuer,
                "aud": settings.jwt_audience,
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(minutes=5)).timestamp()),
                "typ": "refresh",
            },
            settings.jwt_secret,
            algorithm="HS256",
        )

        with self.assertRaises(ApiError) as ctx:
            decode_token(token)

        self.assertEqual(ctx.exception.message, "Token type is invalid.")


class BearerAuthEndpointTests(unittest.TestCase):
    def setUp(self) -> None:
        self.user = User(id=7, email="solo@example.com", role=UserRole.EMPLOYEE, project_id=None)
        app.dependency_overrides[get_db] = _override_get_db(_FakeAuthDB([self.user]))
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_missing_token_is_unauthorized(self) -> None:
        response = self.client.get("/api/team/hierarchy")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["error"]["code"], "INVALID_TOKEN")

    def test_token_for_deleted_user_is_unauthorized(self) -> None:
        token, _ = create_access_token(999)

        response = self.client.get("/api/team/hierarchy", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 401)

    def test_valid_token_reaches_endpoint(self) -> None:
        token, _ = create_access_token(self.user.id)

        response = self.client.get("/api/team/hierarchy", headers={"Authorization": f"Bearer {token}"})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertIsNone(payload["project_id"])
        self.assertEqual([node["user"]["id"] for node in payload["roots"]], [7])


if __name__ == "__main__":
    unittest.main()
