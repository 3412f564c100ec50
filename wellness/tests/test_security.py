import unittest
from datetime import datetime, timedelta, timezone

from wellness.config import Settings
from wellness.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)


class PasswordTests(unittest.TestCase):
    def test_hash_is_salted_and_verifies(self):
        first = hash_password("correct-horse")
        second = hash_password("correct-horse")
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("correct-horse", first))
        self.assertFalse(verify_password("wrong-horse", first))

    def test_missing_hash_never_verifies(self):
        self.assertFalse(verify_password("anything", None))


class AccessTokenTests(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(_env_file=None, secret_key="test-secret")

    def test_round_trip(self):
        token = create_access_token("ada@example.com", self.settings)
        self.assertEqual(decode_access_token(token, self.settings), "ada@example.com")

    def test_token_older_than_thirty_minutes_is_rejected(self):
        issued = datetime.now(timezone.utc) - timedelta(minutes=31)
        token = create_access_token("ada@example.com", self.settings, now=issued)
        self.assertIsNone(decode_access_token(token, self.settings))

    def test_token_within_lifetime_is_accepted(self):
        issued = datetime.now(timezone.utc) - timedelta(minutes=29)
        token = create_access_token("ada@example.com", self.settings, now=issued)
        self.assertEqual(decode_access_token(token, self.settings), "ada@example.com")

    def test_wrong_secret_and_garbage_rejected(self):
        other = Settings(_env_file=None, secret_key="other-secret")
        token = create_access_token("ada@example.com", other)
        self.assertIsNone(decode_access_token(token, self.settings))
        self.assertIsNone(decode_access_token("not-a-token", self.settings))


if __name__ == "__main__":
    unittest.main()
