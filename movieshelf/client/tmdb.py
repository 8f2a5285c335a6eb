"""
movieshelf/client/tmdb.py

Thin client for the TMDB movie catalog. Every public method degrades to an empty
list (or None for single records) when the catalog cannot be reached or answers
with something unexpected, so callers never have to handle catalog errors.
"""
import logging
import os
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv
from pydantic import ValidationError

from movieshelf.client.models import Credits, Movie, MovieDetails


DEFAULT_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_TIMEOUT = 10

# FilterOptions.sortBy of the app -> TMDB discover sort keys
SORT_FIELDS = {
    "popularity": "popularity.desc",
    "vote_average": "vote_average.desc",
    "release_date": "primary_release_date.desc",
}

logger = logging.getLogger(__name__)


def transform_movie(raw: Dict[str, Any]) -> Movie:
    '''
    Maps a catalog movie record onto a Movie. The catalog id is exposed both as id
    and tmdb_id, since local rows use tmdb_id for the same value.
    '''
    return Movie(
        id=raw["id"],
        tmdb_id=raw["id"],
        title=raw.get("title") or raw.get("original_title") or "",
        poster_path=raw.get("poster_path"),
        overview=raw.get("overview"),
        release_date=raw.get("release_date"),
        vote_average=raw.get("vote_average"),
        vote_count=raw.get("vote_count"),
        backdrop_path=raw.get("backdrop_path"),
        genre_ids=raw.get("genre_ids") or [],
    )


class TMDBClient:
    """
    Client for the TMDB v3 API.

    Parameters
    ----------
    api_key : str
        TMDB API key, sent as query parameter with every request.
    base_url : str
        API root, defaults to the public v3 endpoint.
    language : str
        Response language.
    session : requests.Session, optional
        Session to reuse, mainly for tests.
    timeout : float
        Per request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        language: str = "en-US",
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.language = language
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "TMDBClient":
        load_dotenv()
        api_key = os.getenv("TMDB_API_KEY", "")
        if not api_key:
            logger.warning("TMDB_API_KEY is not set, catalog requests will fail.")
        return cls(api_key=api_key, base_url=os.getenv("TMDB_BASE_URL", DEFAULT_BASE_URL))

    # _____________________________________________________________________________________________
    # Request helpers
    # _____________________________________________________________________________________________

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        params = dict(params or {})
        params["api_key"] = self.api_key
        params["language"] = self.language
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("TMDB request to %s failed: %s", endpoint, e)
            return None

        if not isinstance(data, dict):
            logger.warning("TMDB returned unexpected payload for %s", endpoint)
            return None
        return data

    def _movie_list(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Movie]:
        data = self._get(endpoint, params)
        if not data:
            return []

        results = data.get("results")
        if not isinstance(results, list):
            logger.warning("TMDB returned no result list for %s", endpoint)
            return []

        movies = []
        for raw in results:
            try:
                movies.append(transform_movie(raw))
            except (KeyError, TypeError, ValidationError) as e:
                logger.debug("Skipping malformed movie in %s: %s", endpoint, e)
        return movies

    # _____________________________________________________________________________________________
    # Lists
    # _____________________________________________________________________________________________

    def search_movies(self, query: str, page: int = 1) -> List[Movie]:
        if not query or not query.strip():
            return []
        return self._movie_list(
            "/search/movie",
            {"query": query.strip(), "page": page, "include_adult": "false"},
        )

    def get_trending(self, time_window: str = "week") -> List[Movie]:
        return self._movie_list(f"/trending/movie/{time_window}")

    def get_now_playing(self, page: int = 1) -> List[Movie]:
        return self._movie_list("/movie/now_playing", {"page": page})

    def get_popular(self, page: int = 1) -> List[Movie]:
        return self._movie_list("/movie/popular", {"page": page})

    def discover_movies(
        self,
        genre: Optional[int] = None,
        year: Optional[int] = None,
        sort_by: str = "popularity",
        page: int = 1,
    ) -> List[Movie]:
        '''
        Browses the catalog with optional genre / release year filters.

        Parameters
        ----------
        genre : int, optional
            TMDB genre id.
        year : int, optional
            Primary release year.
        sort_by : str
            One of popularity, vote_average or release_date (always descending).
        '''
        if sort_by not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field '{sort_by}', expected one of {sorted(SORT_FIELDS)}")

        params: Dict[str, Any] = {"sort_by": SORT_FIELDS[sort_by], "page": page}
        if genre is not None:
            params["with_genres"] = genre
        if year is not None:
            params["primary_release_year"] = year
        return self._movie_list("/discover/movie", params)

    def get_recommendations(self, movie_id: int) -> List[Movie]:
        return self._movie_list(f"/movie/{movie_id}/recommendations")

    # _____________________________________________________________________________________________
    # Single records
    # _____________________________________________________________________________________________

    def get_movie_details(self, movie_id: int) -> Optional[MovieDetails]:
        data = self._get(f"/movie/{movie_id}")
        if not data:
            return None
        try:
            movie = transform_movie(data)
            return MovieDetails(
                **movie.model_dump(),
                genres=data.get("genres") or [],
                runtime=data.get("runtime"),
                tagline=data.get("tagline"),
                budget=data.get("budget"),
                revenue=data.get("revenue"),
                production_companies=data.get("production_companies") or [],
            )
        except (KeyError, TypeError, ValidationError) as e:
            logger.warning("Could not map details of movie %s: %s", movie_id, e)
            return None

    def get_movie_credits(self, movie_id: int) -> Optional[Credits]:
        data = self._get(f"/movie/{movie_id}/credits")
        if not data:
            return None
        try:
            return Credits(cast=data.get("cast") or [], crew=data.get("crew") or [])
        except ValidationError as e:
            logger.warning("Could not map credits of movie %s: %s", movie_id, e)
            return None
