"""SQLAlchemy database models."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    reviews = relationship("ReviewModel", back_populates="user", cascade="all, delete-orphan")


class BookModel(Base):
    __tablename__ = "books"
    # At most one row per external id and per ISBN.
    __table_args__ = (
        UniqueConstraint("external_id", name="uq_books_external_id"),
        UniqueConstraint("isbn_10", name="uq_books_isbn_10"),
        UniqueConstraint("isbn_13", name="uq_books_isbn_13"),
        Index("ix_books_rating_reviews", "average_rating", "review_count"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    external_id = Column(String(64), nullable=True)
    title = Column(String(500), nullable=False, index=True)
    subtitle = Column(String(500), nullable=True)
    authors = Column(String(1000), nullable=True, index=True)
    publisher = Column(String(255), nullable=True)
    published_date = Column(Date, nullable=True)
    published_date_precision = Column(String(10), nullable=True)  # year|month|day
    description = Column(Text, nullable=True)
    page_count = Column(Integer, nullable=True)
    categories = Column(String(1000), nullable=True, index=True)
    language = Column(String(10), nullable=True)
    isbn_10 = Column(String(10), nullable=True)
    isbn_13 = Column(String(13), nullable=True)
    small_thumbnail = Column(String(1000), nullable=True)
    thumbnail = Column(String(1000), nullable=True)
    large_thumbnail = Column(String(1000), nullable=True)
    preview_link = Column(String(1000), nullable=True)
    info_link = Column(String(1000), nullable=True)
    average_rating = Column(Float, default=0.0, server_default="0", nullable=False)
    review_count = Column(Integer, default=0, server_default="0", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    reviews = relationship("ReviewModel", back_populates="book", cascade="all, delete-orphan")


class ReviewModel(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("user_id", "book_id", name="uq_user_book_review"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    content = Column(Text, nullable=True)
    spoiler_alert = Column(Boolean, default=False, nullable=False)
    helpful_count = Column(Integer, default=0, server_default="0", nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("UserModel", back_populates="reviews")
    book = relationship("BookModel", back_populates="reviews")
