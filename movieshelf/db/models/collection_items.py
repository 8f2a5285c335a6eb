from typing import Optional

from sqlalchemy import Integer, String, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from movieshelf.db.database_session import Base


class CollectionItem(Base):
    """
    ORM model for 'collection_items' table. One row per movie stored in a collection.
    """

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

    collection: Mapped["Collection"] = relationship(back_populates="items")
