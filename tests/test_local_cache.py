"""
Tests for the local SQLite cache of the app.
"""
import unittest

from movieshelf.client.local_cache import LocalCache


class TestLocalCollections(unittest.TestCase):

    def setUp(self):
        self.cache = LocalCache("sqlite://")
        self.cache.init_db()

    def tearDown(self):
        self.cache.close()

    def test_create_and_list_newest_first(self):
        self.cache.create_collection("First")
        self.cache.create_collection("Second")
        self.assertEqual([c.name for c in self.cache.get_collections()], ["Second", "First"])

    def test_blank_name_is_rejected(self):
        with self.assertRaises(ValueError):
            self.cache.create_collection("   ")

    def test_duplicate_movie_is_not_added_twice(self):
        collection = self.cache.create_collection("Favorites")
        self.assertTrue(self.cache.add_to_collection(collection.id, 603, "The Matrix"))
        self.assertFalse(self.cache.add_to_collection(collection.id, 603, "The Matrix"))
        self.assertTrue(self.cache.is_in_collection(collection.id, 603))
        self.assertEqual(len(self.cache.get_collection_items(collection.id)), 1)

    def test_add_to_unknown_collection_raises(self):
        with self.assertRaises(LookupError):
            self.cache.add_to_collection(42, 603, "The Matrix")

    def test_delete_collection_removes_items(self):
        collection = self.cache.create_collection("Favorites")
        self.cache.add_to_collection(collection.id, 603, "The Matrix")
        self.cache.add_to_collection(collection.id, 604, "The Matrix Reloaded")

        self.assertTrue(self.cache.delete_collection(collection.id))
        self.assertEqual(self.cache.get_collection_items(collection.id), [])
        self.assertFalse(self.cache.delete_collection(collection.id))

    def test_remove_from_collection(self):
        collection = self.cache.create_collection("Favorites")
        self.cache.add_to_collection(collection.id, 603, "The Matrix")
        item = self.cache.get_collection_items(collection.id)[0]

        self.assertTrue(self.cache.remove_from_collection(collection.id, item.id))
        self.assertFalse(self.cache.remove_from_collection(collection.id, item.id))


class TestLocalRatings(unittest.TestCase):

    def setUp(self):
        self.cache = LocalCache("sqlite://")
        self.cache.init_db()

    def tearDown(self):
        self.cache.close()

    def test_save_rating_upserts(self):
        self.cache.save_rating(603, 3, review="fine", title="The Matrix", poster_path="/m.jpg")
        self.cache.save_rating(603, 5)

        ratings = self.cache.get_all_ratings()
        self.assertEqual(len(ratings), 1)
        self.assertEqual(ratings[0].rating, 5)
        self.assertEqual(ratings[0].title, "The Matrix")
        self.assertEqual(ratings[0].poster_path, "/m.jpg")
        self.assertIsNone(ratings[0].review)

    def test_invalid_rating_is_rejected(self):
        for value in (0, 6, 3.5):
            with self.assertRaises(ValueError):
                self.cache.save_rating(603, value)
        self.assertIsNone(self.cache.get_rating(603))

    def test_last_high_rated_is_most_recent_save(self):
        self.assertIsNone(self.cache.get_last_high_rated_movie())

        self.cache.save_rating(1, 5, title="One")
        self.cache.save_rating(2, 4, title="Two")
        self.cache.save_rating(3, 2, title="Three")
        self.assertEqual(self.cache.get_last_high_rated_movie().tmdb_id, 2)

        # Re-rating moves a movie to the front
        self.cache.save_rating(1, 4)
        self.assertEqual(self.cache.get_last_high_rated_movie().tmdb_id, 1)

    def test_low_ratings_only_give_none(self):
        self.cache.save_rating(1, 3)
        self.cache.save_rating(2, 1)
        self.assertIsNone(self.cache.get_last_high_rated_movie())

    def test_delete_rating(self):
        self.cache.save_rating(1, 5)
        self.assertTrue(self.cache.delete_rating(1))
        self.assertFalse(self.cache.delete_rating(1))
        self.assertIsNone(self.cache.get_last_high_rated_movie())


if __name__ == "__main__":
    unittest.main()
