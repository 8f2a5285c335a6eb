import logging

from fastapi import APIRouter, HTTPException, status, Depends

from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from movieshelf.db.database_session import get_db, utcnow
from movieshelf.db.models.ratings import Rating
from movieshelf.api.schemas import (
    RateMovieRequest,
    RateMovieResponse,
    RatingEnvelope,
    RatingListResponse,
    RatingResponse,
)
from movieshelf.api.security import TokenIdentity, get_current_identity
from movieshelf.observability.metrics import RATING_UPSERTS


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ratings", tags=["ratings"])


def _dialect_insert(db: Session):
    '''
    Returns the insert construct of the session's dialect. Both supported dialects
    provide on_conflict_do_update.
    '''
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Rating upsert is not supported on dialect '{dialect}'.")


def _find_rating(db: Session, user_id: int, tmdb_id: int):
    return (
        db.query(Rating)
        .filter(Rating.user_id == user_id, Rating.tmdb_id == tmdb_id)
        .first()
    )


@router.get("", response_model=RatingListResponse)
def list_ratings(
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    Returns all ratings of the current user, newest first.
    """
    ratings = (
        db.query(Rating)
        .filter(Rating.user_id == identity.user_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .all()
    )
    return RatingListResponse(ratings=[RatingResponse.model_validate(r) for r in ratings])


@router.post("", response_model=RateMovieResponse)
def rate_movie(
    request: RateMovieRequest,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    '''
    Saves the rating of the current user for a movie. A user has at most one rating
    per movie: rating it again replaces star value and review, while title and poster
    path keep their stored values when the request leaves them out.

    Parameters
    ----------
    request : RateMovieRequest
        Movie id, star rating (1-5) and optional review / metadata.

    Returns
    -------
    RateMovieResponse
        The stored rating row.
    '''
    existed = _find_rating(db, identity.user_id, request.tmdb_id) is not None
    review = request.review or None

    # Create movie rating row and create if not existing, else update row
    insert = _dialect_insert(db)
    stmt = insert(Rating).values(
        user_id=identity.user_id,
        tmdb_id=request.tmdb_id,
        rating=request.rating,
        review=review,
        title=request.title,
        poster_path=request.poster_path,
        created_at=utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "tmdb_id"],
        set_={
            "rating": stmt.excluded.rating,
            "review": stmt.excluded.review,
            "title": func.coalesce(stmt.excluded.title, Rating.title),
            "poster_path": func.coalesce(stmt.excluded.poster_path, Rating.poster_path),
        },
    )

    try:
        # Send command to sql
        db.execute(stmt)
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.exception("Failed to save rating of user %s for movie %s", identity.user_id, request.tmdb_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to save rating due to a database constraint violation.",
        )

    RATING_UPSERTS.labels(result="updated" if existed else "created").inc()

    # Identity map may still hold the pre-update row
    db.expire_all()
    rating = _find_rating(db, identity.user_id, request.tmdb_id)
    return RateMovieResponse(rating=RatingResponse.model_validate(rating))


@router.get("/{tmdb_id}", response_model=RatingEnvelope)
def get_rating(
    tmdb_id: int,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    Returns the current user's rating for a movie, or null if it was never rated.
    """
    rating = _find_rating(db, identity.user_id, tmdb_id)
    if rating is None:
        return RatingEnvelope(rating=None)
    return RatingEnvelope(rating=RatingResponse.model_validate(rating))
