# tests/test_life_here.py
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from services.life_here import (
    DESTINATIONS,
    PROFILE_WEIGHTS,
    Place,
    compute_life_here_score,
    convenience_score,
    dining_score,
    estimate_drive_minutes,
    haversine_miles,
    lifestyle_score,
    score_label,
    weighted_overall,
)
from services.places import parse_place

DOWNTOWN = DESTINATIONS["downtown_orlando"][1:]
MCO = DESTINATIONS["mco"][1:]


def test_haversine_downtown_to_airport():
    miles = haversine_miles(*DOWNTOWN, *MCO)
    assert 8 < miles < 10


def test_drive_minutes_at_35_mph():
    assert estimate_drive_minutes(35) == 60
    assert estimate_drive_minutes(0) == 0


@pytest.mark.parametrize(
    "score,label",
    [(95, "Exceptional"), (90, "Exceptional"), (85, "Excellent"), (70, "Very Good"),
     (60, "Good"), (55, "Fair"), (49, "Limited")],
)
def test_score_labels(score, label):
    assert score_label(score) == label


def test_profile_weights_sum_to_one():
    for weights in PROFILE_WEIGHTS.values():
        assert sum(weights.values()) == pytest.approx(1.0)


def test_weighted_overall_uses_profile():
    scores = {"dining": 100, "convenience": 0, "lifestyle": 0, "commute": 0}
    assert weighted_overall(scores, "balanced") == 25
    assert weighted_overall(scores, "foodie") == 45


def test_dining_score():
    places = [Place(f"R{i}", ["restaurant"], rating=4.5, distance_miles=0.3) for i in range(20)]
    full = dining_score(places)
    assert full.score == 97
    assert full.details["highly_rated_count"] == 20
    assert dining_score([]).score == 0


def test_convenience_missing_categories_score_zero():
    assert convenience_score([], []).score == 0
    nearby = convenience_score(
        [Place("Publix", ["supermarket"], distance_miles=0.0)],
        [
            Place("CVS", ["pharmacy"], distance_miles=0.0),
            Place("Chase", ["bank"], distance_miles=0.0),
            Place("Wawa", ["gas_station"], distance_miles=0.0),
        ],
    )
    assert nearby.score == 100


def test_lifestyle_counts_by_type():
    result = lifestyle_score(
        [Place("Gold's Gym", ["gym"]), Place("Lake Park", ["park"]), Place("Golf Club", ["park"])],
        [Place("AMC", ["movie_theater"]), Place("Pub", ["bar"])],
    )
    assert result.details["gym_count"] == 1
    assert result.details["park_count"] == 2
    assert result.details["has_golf"] is True
    assert 0 < result.score < 100


def test_life_here_score_shape():
    now = datetime(2026, 3, 2, tzinfo=timezone.utc)
    payload = compute_life_here_score(*DOWNTOWN, places={}, profile="professional", now=now)

    assert set(payload) >= {"overall", "label", "profile", "dining", "convenience", "lifestyle", "commute"}
    assert payload["commute"]["details"]["downtown_orlando_minutes"] == 0
    assert 0 <= payload["overall"] <= 100
    assert payload["label"] == score_label(payload["overall"])
    assert payload["calculatedAt"] == now.isoformat()


def test_unknown_profile():
    with pytest.raises(ValueError):
        compute_life_here_score(*DOWNTOWN, places={}, profile="retiree")


def test_parse_place_computes_distance():
    place = parse_place(
        {
            "name": "Kres",
            "types": ["restaurant", "bar"],
            "rating": 4.6,
            "geometry": {"location": {"lat": DOWNTOWN[0], "lng": DOWNTOWN[1]}},
            "opening_hours": {"open_now": True},
            "place_id": "abc",
        },
        *DOWNTOWN,
    )
    assert place.distance_miles == 0
    assert place.is_open is True
    assert place.has_type("bar")
