import pytest

from property_reviews.schemas import PROPERTY_STATS_KEYS
from property_reviews.stats import get_property_stats
from property_reviews.utils import round_half_up

from conftest import BRIGHTON, CAMDEN, SHOREDITCH


def by_property(stats):
    return {s["propertyId"]: s for s in stats}


@pytest.mark.parametrize("value, expected", [
    (3.25, 3.3),
    (2.35, 2.4),
    (4.44, 4.4),
    (4.0, 4.0),
    ("4.05", 4.1),
    (None, None),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected

def test_every_business_is_listed_sorted_by_name(db):
    stats = get_property_stats(db)
    assert [s["propertyName"] for s in stats] == ["Brighton Cottage", "Camden Loft", "Shoreditch Heights"]
    assert all(list(s) == PROPERTY_STATS_KEYS for s in stats)

def test_business_without_reviews_has_empty_stats(db):
    brighton = by_property(get_property_stats(db))[BRIGHTON]
    assert brighton == {
        "propertyId": BRIGHTON,
        "propertyName": "Brighton Cottage",
        "averageRating": None,
        "totalReviews": 0,
        "approvedReviews": 0,
        "categoryAverages": {},
    }

def test_counts_and_averages_across_channels(db):
    stats = by_property(get_property_stats(db))
    shoreditch = stats[SHOREDITCH]
    assert shoreditch["totalReviews"] == 3
    assert shoreditch["approvedReviews"] == 1
    assert shoreditch["averageRating"] == 4.0
    # r3 has no category rows and does not drag the averages down
    assert shoreditch["categoryAverages"] == {"cleanliness": 4.5, "communication": 4.5}

    camden = stats[CAMDEN]
    assert camden["totalReviews"] == 2
    assert camden["approvedReviews"] == 1
    assert camden["averageRating"] == 3.3  # (2 + 4.5) / 2 rounded half-up
    assert camden["categoryAverages"] == {"cleanliness": 2.5, "value": 4.0}

def test_channel_scoping(db):
    stats = by_property(get_property_stats(db, channel="hostaway"))
    assert stats[SHOREDITCH]["totalReviews"] == 2
    assert stats[SHOREDITCH]["averageRating"] == 4.5
    assert stats[CAMDEN]["categoryAverages"] == {"cleanliness": 2.5}

    google = by_property(get_property_stats(db, channel="google"))
    assert google[SHOREDITCH]["totalReviews"] == 1
    assert google[SHOREDITCH]["averageRating"] == 3.0
    assert google[SHOREDITCH]["categoryAverages"] == {}
    assert google[CAMDEN]["categoryAverages"] == {"value": 4.0}
    assert google[BRIGHTON]["totalReviews"] == 0

def test_unknown_channel_keeps_every_business(db):
    stats = get_property_stats(db, channel="airbnb")
    assert len(stats) == 3
    assert all(s["totalReviews"] == 0 and s["averageRating"] is None for s in stats)
