import logging
from typing import Optional

import requests

from movieshelf.client.api_client import MovieShelfAPIClient
from movieshelf.client.local_cache import LocalCache, LocalRating


logger = logging.getLogger(__name__)


class RatingSync:
    """
    Writes ratings to the local cache and mirrors them to the server.

    The local cache is the source of truth for the app; the server copy is best effort.
    """

    def __init__(self, cache: LocalCache, api: Optional[MovieShelfAPIClient] = None):
        self.cache = cache
        self.api = api

    def rate_movie(
        self,
        tmdb_id: int,
        rating: int,
        review: Optional[str] = None,
        title: Optional[str] = None,
        poster_path: Optional[str] = None,
    ) -> LocalRating:
        '''
        Saves a rating locally, then uploads it if a user is logged in.

        Returns
        -------
        LocalRating
            The locally stored rating, whether or not the upload succeeded.

        Raises
        ------
        ValueError
            If the rating is out of range. Nothing is written in that case.
        '''
        saved = self.cache.save_rating(tmdb_id, rating, review=review, title=title, poster_path=poster_path)
        self.push(saved)
        return saved

    def push(self, local: LocalRating) -> bool:
        '''
        Uploads one local rating. Returns True if the server accepted it; failures are
        logged and reported as False.
        '''
        if self.api is None or not self.api.is_authenticated:
            return False

        try:
            self.api.save_rating(
                local.tmdb_id,
                local.rating,
                review=local.review,
                title=local.title,
                poster_path=local.poster_path,
            )
        except (requests.RequestException, ValueError, PermissionError) as e:
            logger.warning("Could not sync rating for movie %s: %s", local.tmdb_id, e)
            return False
        return True

    def push_all(self) -> int:
        '''
        Uploads every locally stored rating, e.g. right after login.
        Returns the number of ratings the server accepted.
        '''
        if self.api is None or not self.api.is_authenticated:
            return 0
        return sum(1 for local in self.cache.get_all_ratings() if self.push(local))
