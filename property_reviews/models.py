from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Index, Numeric, Text, func
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .database import Base
from .constants import (
    TBL_BUSINESSES,
    TBL_REVIEWS,
    TBL_REVIEW_CATEGORIES,
    TBL_USERS,
    TYPE_GUEST_TO_HOST,
)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


class Business(TimestampMixin, Base):
    __tablename__ = TBL_BUSINESSES
    __table_args__ = (
        Index("ix_businesses_name", "name"),
        Index("ix_businesses_city", "city"),
        Index("ix_businesses_state", "state"),
        Index("ix_businesses_postal_code", "postal_code"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    city: Mapped[str | None] = mapped_column(String, nullable=True)
    state: Mapped[str | None] = mapped_column(String, nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String, nullable=True)
    latitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 7), nullable=True)
    longitude: Mapped[Decimal | None] = mapped_column(Numeric(10, 7), nullable=True)
    # Denormalized from the source feed; stats are always computed from reviews
    stars: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    is_open: Mapped[bool] = mapped_column(Boolean, default=True)
    categories: Mapped[str | None] = mapped_column(Text, nullable=True)

    reviews = relationship("Review", back_populates="business")

    def __repr__(self):
        return f"<Business {self.source_id} {self.name}>"


class User(TimestampMixin, Base):
    __tablename__ = TBL_USERS

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[str] = mapped_column(String, unique=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    average_stars: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True)

    reviews = relationship("Review", back_populates="user")

    def __repr__(self):
        return f"<User {self.source_id} {self.name}>"


class Review(TimestampMixin, Base):
    __tablename__ = TBL_REVIEWS
    __table_args__ = (
        Index("ix_reviews_business_id_date", "business_id", "date"),
        Index("ix_reviews_approved_date", "approved", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_id: Mapped[str] = mapped_column(String, unique=True)
    business_id: Mapped[int] = mapped_column(Integer, ForeignKey(f"{TBL_BUSINESSES}.id"), index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey(f"{TBL_USERS}.id"), index=True)

    type: Mapped[str] = mapped_column(String(50), default=TYPE_GUEST_TO_HOST, index=True)
    stars: Mapped[Decimal | None] = mapped_column(Numeric(3, 2), nullable=True, index=True)
    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Naive UTC
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    channel: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)

    business = relationship("Business", back_populates="reviews")
    user = relationship("User", back_populates="reviews")
    categories = relationship(
        "ReviewCategory",
        back_populates="review",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReviewCategory.id",
    )

    def __repr__(self):
        return f"<Review {self.id} {self.source_id} approved={self.approved}>"


class ReviewCategory(TimestampMixin, Base):
    __tablename__ = TBL_REVIEW_CATEGORIES
    __table_args__ = (
        Index("ix_review_categories_review_id_category", "review_id", "category"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    review_id: Mapped[int] = mapped_column(
        Integer, ForeignKey(f"{TBL_REVIEWS}.id", ondelete="CASCADE"), index=True
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    rating: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False)

    review = relationship("Review", back_populates="categories")
