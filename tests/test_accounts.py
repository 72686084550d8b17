"""Tests for app.services.accounts and app.core.security against an in-memory database."""

import unittest

from app.core.errors import ValidationFailed
from app.core.security import hash_password, is_valid_email, normalize_email, verify_password
from app.models import RoleName, UserSession
from app.services import accounts
from tests.helpers import PASSWORD, DatabaseTestCase


class TestEmailHelpers(unittest.TestCase):
    def test_normalize(self) -> None:
        self.assertEqual(normalize_email("  Jo@Example.COM "), "jo@example.com")
        self.assertIsNone(normalize_email(None))
        self.assertEqual(normalize_email("   "), "   ")

    def test_is_valid_email(self) -> None:
        for good in ("jo@example.com", "first.last+tag@sub.example.co", "a@b"):
            self.assertTrue(is_valid_email(good), good)
        for bad in ("jo", "jo@", "@example.com", "jo doe@example.com", "jo@-example.com"):
            self.assertFalse(is_valid_email(bad), bad)


class TestPasswordHashing(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("password123", rounds=4)
        self.assertNotEqual(hashed, "password123")
        self.assertTrue(verify_password("password123", hashed))
        self.assertFalse(verify_password("password124", hashed))

    def test_garbage_hash_does_not_raise(self) -> None:
        self.assertFalse(verify_password("password123", "not-a-bcrypt-hash"))

    def test_input_past_72_bytes_never_matches(self) -> None:
        stored = "p" * 72
        hashed = hash_password(stored, rounds=4)
        self.assertTrue(verify_password(stored, hashed))
        self.assertFalse(verify_password(stored + "extra", hashed))

    def test_hashing_refuses_over_72_bytes(self) -> None:
        with self.assertRaises(ValueError):
            hash_password("\u00e9" * 37, rounds=4)


class TestValidateUserFields(DatabaseTestCase):
    def _validate(self, **overrides):
        values = {
            "name": "Jo Doe",
            "email": "jo@example.com",
            "password": "password123",
            "password_confirmation": None,
            "password_required": True,
        }
        values.update(overrides)
        return accounts.validate_user_fields(self.db, **values)

    def test_valid(self) -> None:
        self.assertEqual(self._validate(), {})

    def test_name_length(self) -> None:
        self.assertEqual(self._validate(name="J")["name"], ["is too short (minimum is 2 characters)"])
        self.assertEqual(
            self._validate(name="J" * 51)["name"], ["is too long (maximum is 50 characters)"]
        )

    def test_password_limit_is_in_bytes(self) -> None:
        self.assertEqual(self._validate(password="p" * 72), {})
        self.assertEqual(
            self._validate(password="p" * 73)["password"], ["is too long (maximum is 72 bytes)"]
        )
        # 37 two-byte characters: short in characters, over the limit in bytes.
        self.assertIn("password", self._validate(password="\u00e9" * 37))

    def test_password_only_checked_when_supplied_on_update(self) -> None:
        self.assertEqual(self._validate(password=None, password_required=False), {})
        self.assertIn("password", self._validate(password=None, password_required=True))
        self.assertIn("password", self._validate(password="1234567", password_required=False))

    def test_eight_character_password_is_enough(self) -> None:
        self.assertEqual(self._validate(password="12345678"), {})

    def test_uniqueness_excludes_own_record(self) -> None:
        user = self.create_user(email="jo@example.com")
        self.assertEqual(self._validate()["email"], ["has already been taken"])
        self.assertEqual(self._validate(user_id=user.id), {})


class TestRegisterAndAuthenticate(DatabaseTestCase):
    def test_register_assigns_default_role_unverified(self) -> None:
        user = accounts.register_user(
            self.db, name="Jo Doe", email="Jo@Example.com", password="password123"
        )
        self.assertEqual(user.email, "jo@example.com")
        self.assertFalse(user.verified)
        self.assertIs(user.role_name, RoleName.USER)
        self.assertTrue(verify_password("password123", user.password_hash))

    def test_register_raises_with_field_errors(self) -> None:
        with self.assertRaises(ValidationFailed) as ctx:
            accounts.register_user(self.db, name="", email="bad", password="short")
        self.assertEqual(ctx.exception.status_code, 422)
        self.assertEqual(ctx.exception.message, "Registration failed")
        self.assertEqual(set(ctx.exception.errors), {"name", "email", "password"})

    def test_names_are_trimmed_before_length_checks(self) -> None:
        with self.assertRaises(ValidationFailed) as ctx:
            accounts.register_user(
                self.db, name=" J ", email="j@example.com", password="password123"
            )
        self.assertEqual(ctx.exception.errors["name"], ["is too short (minimum is 2 characters)"])

        user = self.create_user()
        with self.assertRaises(ValidationFailed) as ctx:
            accounts.update_user(self.db, user, {"name": "  J  "})
        self.assertEqual(ctx.exception.errors["name"], ["is too short (minimum is 2 characters)"])
        self.assertEqual(accounts.update_user(self.db, user, {"name": "  Jo  "}).name, "Jo")

    def test_authenticate(self) -> None:
        user = self.create_user(email="jo@example.com")
        self.assertEqual(accounts.authenticate(self.db, "JO@example.com", PASSWORD).id, user.id)
        self.assertIsNone(accounts.authenticate(self.db, "jo@example.com", "wrong"))
        self.assertIsNone(accounts.authenticate(self.db, "nobody@example.com", PASSWORD))
        self.assertIsNone(accounts.authenticate(self.db, "", ""))


class TestSessionsRows(DatabaseTestCase):
    def test_record_and_end_sessions(self) -> None:
        user = self.create_user()
        accounts.record_session(self.db, user, "Agent", "1.2.3.4")
        accounts.record_session(self.db, user, "Agent", "5.6.7.8")
        self.assertEqual(accounts.end_sessions(self.db, user, "Agent", "1.2.3.4"), 1)
        self.assertEqual([s.ip_address for s in self.db.query(UserSession).all()], ["5.6.7.8"])

    def test_delete_user_cascades_sessions(self) -> None:
        user = self.create_user()
        accounts.record_session(self.db, user, "Agent", "1.2.3.4")
        accounts.delete_user(self.db, user)
        self.assertEqual(self.db.query(UserSession).count(), 0)


if __name__ == "__main__":
    unittest.main()
