import json
from datetime import datetime

import pytest
from sqlalchemy import func, select

from property_reviews.metadata import SeedRun
from property_reviews.models import Business, Review, ReviewCategory, User
from property_reviews.seed import compute_file_hash, seed_json

SEED_DATA = {
    "businesses": [
        {
            "sourceId": "p1", "name": "Prop One", "address": "1 Main St", "city": "London",
            "state": "Greater London", "postalCode": "E1 1AA", "latitude": 51.5, "longitude": -0.1,
            "stars": 4.5, "reviewCount": 2, "isOpen": True, "categories": "Apartments",
        },
        {"sourceId": "p2", "name": "Prop Two"},
    ],
    "users": [
        {"sourceId": "g1", "name": "Guest One", "reviewCount": 1, "averageStars": 5},
        {"sourceId": "g2", "name": None},
    ],
    "reviews": [
        {
            "sourceId": "s1", "sourceUserId": "g1", "sourceBusinessId": "p1", "stars": 5,
            "channel": "hostaway", "text": "Great", "date": "2024-01-01T10:00:00Z", "type": "guest-to-host",
            "categories": [{"id": 1, "name": "cleanliness", "stars": 5}, {"id": 2, "name": "value", "stars": 4}],
        },
        {
            "sourceId": "s2", "sourceUserId": "g2", "sourceBusinessId": "p1", "stars": 7,
            "channel": "google", "text": "Odd rating", "date": "2024-02-01T10:00:00Z", "type": "sideways",
        },
        {
            "sourceId": "s3", "sourceUserId": "g1", "sourceBusinessId": "missing", "stars": 3,
            "channel": "google", "text": "Orphan", "date": "2024-03-01",
        },
    ],
}


@pytest.fixture
def seed_file(tmp_path):
    path = tmp_path / "seed-data.json"
    path.write_text(json.dumps(SEED_DATA), encoding="utf-8")
    return str(path)


def count(db, model, *where):
    return db.execute(select(func.count()).select_from(model).where(*where)).scalar_one()


def test_seed_loads_reviews_and_categories(db, seed_file):
    seed_run = seed_json(db, seed_file)
    assert seed_run.total_rows == 3
    assert seed_run.loaded_rows == 2  # s3 points at an unknown business
    assert seed_run.loaded_categories == 2
    assert seed_run.file_hash == compute_file_hash(seed_file)

    s1 = db.execute(select(Review).where(Review.source_id == "s1")).scalar_one()
    assert s1.date == datetime(2024, 1, 1, 10, 0)
    assert s1.approved is False
    assert s1.business.source_id == "p1"
    assert sorted(c.category for c in s1.categories) == ["cleanliness", "value"]

def test_seed_cleans_bad_values(db, seed_file):
    seed_json(db, seed_file)
    s2 = db.execute(select(Review).where(Review.source_id == "s2")).scalar_one()
    assert s2.stars is None
    assert s2.type == "guest-to-host"
    g2 = db.execute(select(User).where(User.source_id == "g2")).scalar_one()
    assert g2.name == "g2"
    p2 = db.execute(select(Business).where(Business.source_id == "p2")).scalar_one()
    assert p2.review_count == 0
    assert p2.is_open is True

def test_seed_is_idempotent(db, seed_file):
    seed_json(db, seed_file)
    again = seed_json(db, seed_file)
    assert again.loaded_rows == 0
    assert count(db, Business, Business.source_id.in_(["p1", "p2"])) == 2
    assert count(db, Review, Review.source_id.in_(["s1", "s2"])) == 2
    assert count(db, SeedRun) == 2

def test_seed_reset_replaces_existing_data(db, seed_file):
    # conftest sample data is present before the reset
    assert count(db, Review) == 5
    seed_run = seed_json(db, seed_file, reset=True)
    assert seed_run.loaded_rows == 2
    assert count(db, Review) == 2
    assert count(db, Business) == 2
    assert count(db, ReviewCategory) == 2
