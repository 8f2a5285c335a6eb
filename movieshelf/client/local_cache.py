"""
movieshelf/client/local_cache.py

Embedded SQLite store of the app. It mirrors collections, collection items and ratings
for offline reads and is the first place ratings are written to. The cache belongs to a
single profile: rows carry no server-verified owner.
"""
import logging
import os
from datetime import datetime
from typing import List, Optional

from dotenv import load_dotenv
from sqlalchemy import Integer, String, Text, DateTime, ForeignKey, func, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, sessionmaker

from movieshelf.db.database_session import make_engine, utcnow


DEFAULT_LOCAL_DB_URL = "sqlite:///./movieshelf_local.db"
HIGH_RATING = 4

logger = logging.getLogger(__name__)


class LocalBase(DeclarativeBase):
    pass


class LocalCollection(LocalBase):
    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(primary_key=True)
    # Kept for schema parity with the server, never filled in
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    items: Mapped[List["LocalCollectionItem"]] = relationship(
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class LocalCollectionItem(LocalBase):
    __tablename__ = "collection_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    collection_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("collections.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    tmdb_id: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    poster_path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    collection: Mapped["LocalCollection"] = relationship(back_populates="items")


class LocalRating(LocalBase):
    """
    One rating per movie. saved_seq grows with every save and orders ratings by
    recency, independent of clock resolution.
    """
    __tablename__ = "ratings"

    tmdb_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    title: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    poster_path: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    rated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    saved_seq: Mapped[int] = mapped_column(Integer, nullable=False, index=True)


class LocalCache:
    """
    Handle on the local store. Construct one per database and pass it to the services
    that need it.

    Parameters
    ----------
    db_url : str
        SQLAlchemy url of the local SQLite database.
    """

    def __init__(self, db_url: str = DEFAULT_LOCAL_DB_URL):
        self.engine = make_engine(db_url)
        # Rows are handed out after the session closed
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)

    @classmethod
    def from_env(cls) -> "LocalCache":
        load_dotenv()
        cache = cls(os.getenv("LOCAL_DB_URL", DEFAULT_LOCAL_DB_URL))
        cache.init_db()
        return cache

    def init_db(self) -> None:
        LocalBase.metadata.create_all(bind=self.engine)
        logger.info("Local cache initialized")

    def close(self) -> None:
        self.engine.dispose()

    # _____________________________________________________________________________________________
    # Collections
    # _____________________________________________________________________________________________

    def create_collection(self, name: str) -> LocalCollection:
        name = (name or "").strip()
        if not name:
            raise ValueError("Collection name is required")

        with self.SessionLocal() as session:
            collection = LocalCollection(name=name)
            session.add(collection)
            session.commit()
            return collection

    def get_collections(self) -> List[LocalCollection]:
        with self.SessionLocal() as session:
            stmt = select(LocalCollection).order_by(
                LocalCollection.created_at.desc(), LocalCollection.id.desc()
            )
            return list(session.scalars(stmt))

    def delete_collection(self, collection_id: int) -> bool:
        '''
        Deletes a collection and its items. Returns False if there was no such collection.
        '''
        with self.SessionLocal() as session:
            collection = session.get(LocalCollection, collection_id)
            if collection is None:
                return False

            # Items first, then the collection itself
            session.query(LocalCollectionItem).filter(
                LocalCollectionItem.collection_id == collection_id
            ).delete(synchronize_session=False)
            session.delete(collection)
            session.commit()
            return True

    def add_to_collection(
        self,
        collection_id: int,
        tmdb_id: int,
        title: str,
        poster_path: Optional[str] = None,
    ) -> bool:
        '''
        Stores a movie in a collection.

        Returns
        -------
        bool
            False if the movie is already part of the collection.

        Raises
        ------
        LookupError
            If the collection does not exist.
        '''
        with self.SessionLocal() as session:
            if session.get(LocalCollection, collection_id) is None:
                raise LookupError(f"Collection {collection_id} not found")

            if self._find_item(session, collection_id, tmdb_id) is not None:
                return False

            session.add(LocalCollectionItem(
                collection_id=collection_id,
                tmdb_id=tmdb_id,
                title=title,
                poster_path=poster_path,
            ))
            session.commit()
            return True

    def remove_from_collection(self, collection_id: int, item_id: int) -> bool:
        with self.SessionLocal() as session:
            deleted = session.query(LocalCollectionItem).filter(
                LocalCollectionItem.id == item_id,
                LocalCollectionItem.collection_id == collection_id,
            ).delete(synchronize_session=False)
            session.commit()
            return deleted > 0

    def get_collection_items(self, collection_id: int) -> List[LocalCollectionItem]:
        with self.SessionLocal() as session:
            stmt = (
                select(LocalCollectionItem)
                .where(LocalCollectionItem.collection_id == collection_id)
                .order_by(LocalCollectionItem.id.asc())
            )
            return list(session.scalars(stmt))

    def is_in_collection(self, collection_id: int, tmdb_id: int) -> bool:
        with self.SessionLocal() as session:
            return self._find_item(session, collection_id, tmdb_id) is not None

    @staticmethod
    def _find_item(session, collection_id: int, tmdb_id: int) -> Optional[LocalCollectionItem]:
        stmt = select(LocalCollectionItem).where(
            LocalCollectionItem.collection_id == collection_id,
            LocalCollectionItem.tmdb_id == tmdb_id,
        )
        return session.scalars(stmt).first()

    # _____________________________________________________________________________________________
    # Ratings
    # _____________________________________________________________________________________________

    def save_rating(
        self,
        tmdb_id: int,
        rating: int,
        review: Optional[str] = None,
        title: Optional[str] = None,
        poster_path: Optional[str] = None,
    ) -> LocalRating:
        '''
        Inserts or updates the rating of a movie. The saved rating becomes the most recent
        one; title and poster path keep their stored values when not given.

        Raises
        ------
        ValueError
            If rating is not an integer between 1 and 5.
        '''
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValueError("Rating must be an integer between 1 and 5")

        with self.SessionLocal() as session:
            next_seq = session.scalar(select(func.coalesce(func.max(LocalRating.saved_seq), 0))) + 1

            row = session.get(LocalRating, tmdb_id)
            if row is None:
                row = LocalRating(tmdb_id=tmdb_id)
                session.add(row)

            row.rating = rating
            row.review = review or None
            row.title = title if title is not None else row.title
            row.poster_path = poster_path if poster_path is not None else row.poster_path
            row.rated_at = utcnow()
            row.saved_seq = next_seq

            session.commit()
            return row

    def get_rating(self, tmdb_id: int) -> Optional[LocalRating]:
        with self.SessionLocal() as session:
            return session.get(LocalRating, tmdb_id)

    def get_all_ratings(self) -> List[LocalRating]:
        with self.SessionLocal() as session:
            stmt = select(LocalRating).order_by(LocalRating.saved_seq.desc())
            return list(session.scalars(stmt))

    def delete_rating(self, tmdb_id: int) -> bool:
        with self.SessionLocal() as session:
            row = session.get(LocalRating, tmdb_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def get_last_high_rated_movie(self, min_rating: int = HIGH_RATING) -> Optional[LocalRating]:
        '''
        Returns the most recently saved rating with at least min_rating stars, or None.
        '''
        with self.SessionLocal() as session:
            stmt = (
                select(LocalRating)
                .where(LocalRating.rating >= min_rating)
                .order_by(LocalRating.saved_seq.desc())
                .limit(1)
            )
            return session.scalars(stmt).first()
