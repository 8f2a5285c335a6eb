from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import (
    Mapped,
    mapped_column,
    relationship
)

from movieshelf.db.database_session import Base, utcnow


class Rating(Base):
    """
    ORM model for 'ratings' table.

    Columns
    -------
    user_id : int
        ID of the user who rated the movie.
    tmdb_id : int
        ID of the movie in the external catalog.
    rating : int
        Star value between 1 and 5.
    review : str, optional
        Free text review.
    title, poster_path : str, optional
        Movie metadata cached at rating time.
    created_at : datetime
        Time of the first rating of this movie by the user.
    """

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "tmdb_id", name="uq_ratings_user_movie"),
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_ratings_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False
    )
    tmdb_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False
    )
    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False
    )
    review: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    poster_path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )

    owner: Mapped["User"] = relationship(back_populates="ratings")
