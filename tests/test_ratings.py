"""
Tests for the rating endpoints and the cascade of user deletes.
"""
import unittest
from unittest.mock import patch

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from api_testcase import APITestCase

from movieshelf.api.main import app
from movieshelf.api.security import create_access_token, get_current_identity
from movieshelf.db.database_session import get_db

from movieshelf.db.models.collections import Collection
from movieshelf.db.models.ratings import Rating
from movieshelf.db.models.users import User


class TestRatings(APITestCase):

    def setUp(self):
        super().setUp()
        self.alice, self.alice_user = self.register_user()
        self.bob, _ = self.register_user(name="Bob", email="bob@example.com")

    def rate(self, headers, **payload):
        return self.client.post("/api/ratings", json=payload, headers=headers)

    def test_rating_same_movie_twice_updates_in_place(self):
        first = self.rate(self.alice, tmdb_id=603, rating=3, review="ok", title="The Matrix", poster_path="/m.jpg")
        self.assertEqual(first.status_code, 200, first.text)

        second = self.rate(self.alice, tmdb_id=603, rating=5)
        self.assertEqual(second.status_code, 200)

        ratings = self.client.get("/api/ratings", headers=self.alice).json()["ratings"]
        self.assertEqual(len(ratings), 1)
        self.assertEqual(ratings[0]["rating"], 5)
        self.assertEqual(ratings[0]["id"], first.json()["rating"]["id"])

    def test_update_keeps_title_and_poster_when_absent(self):
        self.rate(self.alice, tmdb_id=603, rating=3, review="ok", title="The Matrix", poster_path="/m.jpg")
        resp = self.rate(self.alice, tmdb_id=603, rating=4, review="")

        rating = resp.json()["rating"]
        self.assertEqual(rating["title"], "The Matrix")
        self.assertEqual(rating["poster_path"], "/m.jpg")
        self.assertIsNone(rating["review"])

    def test_rating_out_of_range_is_400(self):
        self.assertEqual(self.rate(self.alice, tmdb_id=603, rating=6).status_code, 400)
        self.assertEqual(self.rate(self.alice, tmdb_id=603, rating=0).status_code, 400)

    def test_non_integer_values_are_400(self):
        self.assertEqual(self.rate(self.alice, tmdb_id=603, rating=True).status_code, 400)
        self.assertEqual(self.rate(self.alice, tmdb_id=603, rating="5").status_code, 400)
        self.assertEqual(self.rate(self.alice, tmdb_id=603, rating=4.0).status_code, 400)
        self.assertEqual(self.rate(self.alice, tmdb_id=True, rating=4).status_code, 400)
        self.assertEqual(self.rate(self.alice, tmdb_id=0, rating=4).status_code, 400)
        self.assertEqual(self.client.get("/api/ratings", headers=self.alice).json()["ratings"], [])

    def test_missing_movie_id_is_400(self):
        self.assertEqual(self.rate(self.alice, rating=4).status_code, 400)

    def test_get_single_rating(self):
        self.assertIsNone(self.client.get("/api/ratings/603", headers=self.alice).json()["rating"])

        self.rate(self.alice, tmdb_id=603, rating=4)
        rating = self.client.get("/api/ratings/603", headers=self.alice).json()["rating"]
        self.assertEqual(rating["rating"], 4)

    def test_ratings_are_scoped_to_the_caller(self):
        self.rate(self.alice, tmdb_id=603, rating=4)
        self.rate(self.bob, tmdb_id=603, rating=1)

        self.assertEqual(self.client.get("/api/ratings/603", headers=self.alice).json()["rating"]["rating"], 4)
        self.assertEqual(self.client.get("/api/ratings/603", headers=self.bob).json()["rating"]["rating"], 1)
        self.assertEqual(len(self.client.get("/api/ratings", headers=self.bob).json()["ratings"]), 1)

    def test_deleting_user_cascades_to_owned_rows(self):
        self.rate(self.alice, tmdb_id=603, rating=4)
        self.client.post("/api/collections", json={"name": "Favorites"}, headers=self.alice)

        with self.SessionTesting() as db:
            db.query(User).filter(User.id == self.alice_user["id"]).delete()
            db.commit()

            self.assertEqual(db.query(Rating).filter(Rating.user_id == self.alice_user["id"]).count(), 0)
            self.assertEqual(db.query(Collection).filter(Collection.user_id == self.alice_user["id"]).count(), 0)


class TestSystemEndpoints(APITestCase):

    def test_metrics_are_exposed(self):
        self.register_user()
        resp = self.client.get("/metrics")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("auth_requests_total", resp.text)

    def test_health_reports_reachable_database(self):
        with patch("movieshelf.api.main.engine", self.engine):
            resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["database"], "reachable")

    def test_unexpected_error_is_generic_500(self):
        headers, _ = self.register_user()

        def broken_db():
            raise RuntimeError("database exploded")

        app.dependency_overrides[get_db] = broken_db
        client = TestClient(app, raise_server_exceptions=False)

        resp = client.get("/api/collections", headers=headers)
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"detail": "Internal server error."})

    def test_identity_is_attached_to_request_state(self):
        identity_app = FastAPI()

        @identity_app.get("/whoami")
        def whoami(request: Request, _=Depends(get_current_identity)):
            identity = request.state.identity
            return {"user_id": identity.user_id, "email": identity.email}

        token = create_access_token(user_id=12, email="carol@example.com")
        resp = TestClient(identity_app).get("/whoami", headers=self.auth_headers(token))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"user_id": 12, "email": "carol@example.com"})

    def test_token_of_deleted_user_cannot_create_rows(self):
        headers = self.auth_headers(create_access_token(user_id=999, email="ghost@example.com"))

        collection = self.client.post("/api/collections", json={"name": "Ghost list"}, headers=headers)
        rating = self.client.post("/api/ratings", json={"tmdb_id": 603, "rating": 4}, headers=headers)

        self.assertEqual(collection.status_code, 400)
        self.assertEqual(rating.status_code, 400)


if __name__ == "__main__":
    unittest.main()
