from datetime import datetime
from typing import List

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from movieshelf.db.database_session import Base, utcnow


class User(Base):
    """
    Table definition for table called "users".
    """
    # Define table name
    __tablename__ = "users"

    # Define column named id as primary key
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(320),        # Max length of a valid email address
        unique=True,        # Stored lower-cased, so uniqueness is case-insensitive
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Owned rows go away together with the user
    collections: Mapped[List["Collection"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    ratings: Mapped[List["Rating"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
