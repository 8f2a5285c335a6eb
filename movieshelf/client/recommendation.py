import logging

from movieshelf.client.local_cache import HIGH_RATING, LocalCache
from movieshelf.client.models import RecommendationResult
from movieshelf.client.tmdb import TMDBClient


TRENDING_TITLE = "Trending This Week"

logger = logging.getLogger(__name__)


class RecommendationSelector:
    """
    Picks the "for you" list: recommendations for the most recently saved movie rated
    with at least HIGH_RATING stars, else the trending list of the week.
    """

    def __init__(self, cache: LocalCache, catalog: TMDBClient, min_rating: int = HIGH_RATING):
        self.cache = cache
        self.catalog = catalog
        self.min_rating = min_rating

    def get_recommendations(self) -> RecommendationResult:
        '''
        Returns
        -------
        RecommendationResult
            Recommendations titled after the liked movie, or the trending fallback when
            nothing is rated high enough or the catalog returned no recommendations.
        '''
        liked = self.cache.get_last_high_rated_movie(self.min_rating)

        if liked is not None:
            movies = self.catalog.get_recommendations(liked.tmdb_id)
            if movies:
                label = liked.title or "a movie you rated"
                return RecommendationResult(
                    title=f"Because you liked {label}",
                    movies=movies,
                    source_tmdb_id=liked.tmdb_id,
                )
            logger.info("No recommendations for movie %s, falling back to trending", liked.tmdb_id)

        return RecommendationResult(title=TRENDING_TITLE, movies=self.catalog.get_trending("week"))
