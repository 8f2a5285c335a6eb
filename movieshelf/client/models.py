from typing import List, Optional

from pydantic import BaseModel, Field


class Movie(BaseModel):
    """Movie as listed by the catalog (search, trending, recommendations)."""
    id: int
    tmdb_id: int
    title: str
    poster_path: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    backdrop_path: Optional[str] = None
    genre_ids: List[int] = Field(default_factory=list)


class Genre(BaseModel):
    id: int
    name: str


class ProductionCompany(BaseModel):
    id: int
    name: str
    logo_path: Optional[str] = None
    origin_country: Optional[str] = None


class MovieDetails(Movie):
    """Full movie record of the details endpoint."""
    genres: List[Genre] = Field(default_factory=list)
    runtime: Optional[int] = None
    tagline: Optional[str] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    production_companies: List[ProductionCompany] = Field(default_factory=list)


class CastMember(BaseModel):
    id: int
    name: str
    character: Optional[str] = None
    profile_path: Optional[str] = None
    order: Optional[int] = None


class CrewMember(BaseModel):
    id: int
    name: str
    job: Optional[str] = None
    department: Optional[str] = None
    profile_path: Optional[str] = None


class Credits(BaseModel):
    cast: List[CastMember] = Field(default_factory=list)
    crew: List[CrewMember] = Field(default_factory=list)


class RecommendationResult(BaseModel):
    """A titled list of movies for the "for you" section.

    Fields:
    - title: heading shown above the list
    - movies: the movies in catalog order
    - source_tmdb_id: the rated movie the list is based on, None for the trending fallback
    """
    title: str
    movies: List[Movie] = Field(default_factory=list)
    source_tmdb_id: Optional[int] = None
