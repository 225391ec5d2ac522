"""Unit tests for storefront.core.security: password hashing and token issue/verify."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt
from pydantic import SecretStr

from storefront.core.config import Settings
from storefront.core.errors import AuthenticationError, TokenExpiredError, TokenInvalidError
from storefront.core.security import hash_password, issue_token, verify_password, verify_token

SECRET = "unit-test-secret-that-is-at-least-32-bytes"


def _settings(**overrides: object) -> Settings:
    values = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": SecretStr(SECRET),
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestPasswordHashing(unittest.TestCase):
    """hash_password produces a salted bcrypt hash that verify_password accepts."""

    def test_round_trip(self) -> None:
        hashed = hash_password("correct horse", rounds=4)
        self.assertNotEqual(hashed, "correct horse")
        self.assertTrue(verify_password("correct horse", hashed))

    def test_wrong_password(self) -> None:
        hashed = hash_password("correct horse", rounds=4)
        self.assertFalse(verify_password("battery staple", hashed))

    def test_same_password_gets_different_salts(self) -> None:
        self.assertNotEqual(hash_password("samesame1", rounds=4), hash_password("samesame1", rounds=4))

    def test_malformed_hash_is_rejected(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))


class TestTokens(unittest.TestCase):
    """issue_token / verify_token: signature, expiry and subject checks."""

    def setUp(self) -> None:
        self.settings = _settings()

    def test_issued_token_verifies_to_user_id(self) -> None:
        token = issue_token(42, self.settings)
        self.assertEqual(verify_token(token, self.settings), 42)

    def test_default_lifetime_is_one_hour(self) -> None:
        token = issue_token(1, self.settings)
        payload = jwt.decode(token, SECRET, algorithms=["HS256"])
        self.assertEqual(payload["exp"] - payload["iat"], 3600)

    def test_expired_token(self) -> None:
        token = issue_token(7, self.settings, expires_delta=timedelta(seconds=-5))
        with self.assertRaises(TokenExpiredError):
            verify_token(token, self.settings)

    def test_wrong_secret_is_invalid(self) -> None:
        other = _settings(JWT_SECRET=SecretStr("another-secret-that-is-at-least-32-bytes"))
        token = issue_token(7, other)
        with self.assertRaises(TokenInvalidError):
            verify_token(token, self.settings)

    def test_garbage_is_invalid(self) -> None:
        with self.assertRaises(TokenInvalidError):
            verify_token("not.a.jwt", self.settings)

    def test_non_numeric_subject_is_invalid(self) -> None:
        exp = datetime.now(UTC) + timedelta(minutes=5)
        token = jwt.encode({"sub": "alice", "exp": exp}, SECRET, algorithm="HS256")
        with self.assertRaises(TokenInvalidError):
            verify_token(token, self.settings)

    def test_token_without_expiry_is_invalid(self) -> None:
        token = jwt.encode({"sub": "1"}, SECRET, algorithm="HS256")
        with self.assertRaises(TokenInvalidError):
            verify_token(token, self.settings)

    def test_errors_are_authentication_errors(self) -> None:
        self.assertTrue(issubclass(TokenExpiredError, AuthenticationError))
        self.assertEqual(TokenInvalidError("x").status_code, 401)


class TestSettingsValidation(unittest.TestCase):
    """Settings reject unsafe or malformed values."""

    def test_default_secret_rejected_in_prod(self) -> None:
        with self.assertRaises(ValueError):
            Settings(_env_file=None, APP_ENV="prod", DATABASE_URL="sqlite://")

    def test_unsupported_database_url(self) -> None:
        with self.assertRaises(ValueError):
            _settings(DATABASE_URL="mysql://localhost/db")

    def test_upload_prefix_normalized(self) -> None:
        self.assertEqual(_settings(UPLOAD_URL_PREFIX="/media/").UPLOAD_URL_PREFIX, "/media")


if __name__ == "__main__":
    unittest.main()
