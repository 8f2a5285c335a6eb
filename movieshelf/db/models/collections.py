from datetime import datetime
from typing import List

from sqlalchemy import Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from movieshelf.db.database_session import Base, utcnow


class Collection(Base):
    """
    ORM model for 'collections' table.

    Columns
    -------
    id : int
        Primary key.
    user_id : int
        Owner of the collection, foreign key referencing users.id.
    name : str
        Display name of the collection.
    created_at : datetime
        Creation time (UTC).
    """

    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    owner: Mapped["User"] = relationship(back_populates="collections")
    items: Mapped[List["CollectionItem"]] = relationship(
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
