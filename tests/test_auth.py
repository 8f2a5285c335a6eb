"""
Tests for registration, login and token verification.
"""
import unittest
from datetime import timedelta

from api_testcase import APITestCase

from movieshelf.api.security import create_access_token, decode_token, hash_password, verify_password


class TestPasswordHashing(unittest.TestCase):

    def test_hash_is_salted_and_verifies(self):
        first = hash_password("secret1")
        second = hash_password("secret1")
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("secret1", first))
        self.assertFalse(verify_password("secret2", first))

    def test_token_round_trip_keeps_identity(self):
        identity = decode_token(create_access_token(user_id=7, email="bob@example.com"))
        self.assertEqual(identity.user_id, 7)
        self.assertEqual(identity.email, "bob@example.com")


class TestRegister(APITestCase):

    def test_register_returns_token_and_public_user(self):
        resp = self.register(email="Alice@Example.com")
        self.assertEqual(resp.status_code, 201)

        body = resp.json()
        self.assertTrue(body["success"])
        self.assertTrue(body["token"])
        self.assertEqual(body["user"]["email"], "alice@example.com")
        self.assertEqual(body["user"]["name"], "Alice")
        self.assertNotIn("password_hash", body["user"])

    def test_missing_field_is_rejected(self):
        resp = self.client.post("/api/auth/register", json={"email": "a@b.com", "password": "secret1"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "All fields are required")

    def test_email_without_at_is_rejected(self):
        resp = self.register(email="alice.example.com")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Invalid email format")

    def test_short_password_is_rejected(self):
        resp = self.register(password="12345")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("at least 6", resp.json()["detail"])

    def test_duplicate_email_is_conflict_case_insensitive(self):
        self.assertEqual(self.register(email="alice@example.com").status_code, 201)

        resp = self.register(name="Other", email="ALICE@example.COM")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["detail"], "Email already registered")


class TestLogin(APITestCase):

    def test_login_then_me_returns_registered_user(self):
        _, user = self.register_user()

        resp = self.client.post("/api/auth/login", json={"email": "ALICE@example.com", "password": "secret1"})
        self.assertEqual(resp.status_code, 200)
        token = resp.json()["token"]

        me = self.client.get("/api/auth/me", headers=self.auth_headers(token))
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["user"]["id"], user["id"])

    def test_wrong_password_and_unknown_email_look_the_same(self):
        self.register_user()

        wrong_pwd = self.client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope123"})
        unknown = self.client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "secret1"})

        self.assertEqual(wrong_pwd.status_code, 401)
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong_pwd.json(), unknown.json())

    def test_login_requires_both_fields(self):
        resp = self.client.post("/api/auth/login", json={"email": "alice@example.com"})
        self.assertEqual(resp.status_code, 400)


class TestTokenVerification(APITestCase):

    def test_missing_token_is_401(self):
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_garbage_token_is_403(self):
        resp = self.client.get("/api/auth/me", headers=self.auth_headers("not-a-jwt"))
        self.assertEqual(resp.status_code, 403)

    def test_expired_token_is_403(self):
        _, user = self.register_user()
        token = create_access_token(user_id=user["id"], email=user["email"], expires_delta=timedelta(seconds=-5))

        resp = self.client.get("/api/auth/me", headers=self.auth_headers(token))
        self.assertEqual(resp.status_code, 403)

    def test_token_of_deleted_user_is_404_on_me(self):
        token = create_access_token(user_id=999, email="ghost@example.com")
        resp = self.client.get("/api/auth/me", headers=self.auth_headers(token))
        self.assertEqual(resp.status_code, 404)


if __name__ == "__main__":
    unittest.main()
