import os
import tempfile

# Configure an isolated writable test database BEFORE importing the app.
# Use a temp file so parallel runs / reruns don't collide.
_tmp_db_path = os.path.join(tempfile.gettempdir(), f"property_reviews_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_db_path}"
os.environ["APP_ENV"] = "test"
if os.path.exists(_tmp_db_path):
    os.remove(_tmp_db_path)

from datetime import datetime

import pytest

from property_reviews.database import SessionLocal, engine
from property_reviews.main import app  # noqa: F401  (registers every table)
from property_reviews.models import Base, Business, Review, ReviewCategory, User

SHOREDITCH = "29-shoreditch-heights"
CAMDEN = "camden-loft"
BRIGHTON = "brighton-cottage"

# (source_id, business, user, stars, channel, type, date, approved, [(category, rating), ...])
SAMPLE_REVIEWS = [
    ("r1", SHOREDITCH, "u1", 5, "hostaway", "guest-to-host", datetime(2024, 1, 10, 10, 0), True,
     [("cleanliness", 5), ("communication", 4)]),
    ("r2", SHOREDITCH, "u2", 4, "hostaway", "guest-to-host", datetime(2024, 2, 10, 10, 0), False,
     [("cleanliness", 4), ("communication", 5)]),
    ("r3", SHOREDITCH, "u2", 3, "google", "guest-to-host", datetime(2024, 3, 10, 10, 0), False, []),
    ("r4", CAMDEN, "u1", 2, "hostaway", "host-to-guest", datetime(2024, 4, 10, 10, 0), True,
     [("cleanliness", 2), ("cleanliness", 3)]),
    ("r5", CAMDEN, "u2", 4.5, "google", "guest-to-host", datetime(2024, 5, 10, 10, 0), False,
     [("value", 4)]),
]


def seed_sample(db) -> dict:
    """Insert three properties, two users and five reviews; return review source id -> id."""
    businesses = {
        SHOREDITCH: Business(source_id=SHOREDITCH, name="Shoreditch Heights", city="London",
                             state="Greater London", postal_code="N1 6AB", address="29 Shoreditch High St",
                             categories="Apartments"),
        CAMDEN: Business(source_id=CAMDEN, name="Camden Loft", city="London",
                         state="Greater London", postal_code="NW1 8AB"),
        BRIGHTON: Business(source_id=BRIGHTON, name="Brighton Cottage", city="Brighton",
                           state="East Sussex", postal_code="BN1 1AA"),
    }
    users = {
        "u1": User(source_id="u1", name="Alice", review_count=2, average_stars=3.5),
        "u2": User(source_id="u2", name="Bob", review_count=3, average_stars=3.83),
    }
    db.add_all(list(businesses.values()) + list(users.values()))

    reviews = {}
    for source_id, biz, user, stars, channel, rtype, date, approved, cats in SAMPLE_REVIEWS:
        reviews[source_id] = Review(
            source_id=source_id,
            business=businesses[biz],
            user=users[user],
            stars=stars,
            channel=channel,
            type=rtype,
            text=f"Review {source_id}",
            date=date,
            approved=approved,
            categories=[ReviewCategory(category=c, rating=r) for c, r in cats],
        )
        db.add(reviews[source_id])
    db.commit()
    return {source_id: review.id for source_id, review in reviews.items()}


@pytest.fixture(autouse=True)
def review_ids():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        ids = seed_sample(db)
    yield ids


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def source_of(review_ids):
    """Map internal review ids back to sample source ids."""
    by_id = {v: k for k, v in review_ids.items()}
    return lambda reviews: [by_id[r["id"]] for r in reviews]
