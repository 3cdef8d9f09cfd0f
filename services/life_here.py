# services/life_here.py
"""
Life Here Score: how livable a location is, from nearby places and drive times.

Four sub-scores (0-100) are combined with per-profile weights:

    dining       restaurant count, ratings, walkable options
    convenience  distance to the nearest grocery, pharmacy, bank and gas
    lifestyle    fitness, parks and entertainment counts
    commute      estimated drive time to downtown, airports, beaches, parks

Everything here is pure; place data is fetched by services.places.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

EARTH_RADIUS_MILES = 3959
AVG_DRIVE_SPEED_MPH = 35
MISSING_DISTANCE_MILES = 10.0

PROFILE_WEIGHTS: dict[str, dict[str, float]] = {
    "balanced": {"dining": 0.25, "convenience": 0.25, "lifestyle": 0.25, "commute": 0.25},
    "family": {"dining": 0.20, "convenience": 0.35, "lifestyle": 0.25, "commute": 0.20},
    "professional": {"dining": 0.25, "convenience": 0.25, "lifestyle": 0.15, "commute": 0.35},
    "active_lifestyle": {"dining": 0.15, "convenience": 0.20, "lifestyle": 0.45, "commute": 0.20},
    "foodie": {"dining": 0.45, "convenience": 0.20, "lifestyle": 0.20, "commute": 0.15},
}

SCORE_LABELS = (
    (90, "Exceptional"),
    (80, "Excellent"),
    (70, "Very Good"),
    (60, "Good"),
    (50, "Fair"),
)

# Central Florida reference points (lat, lng)
DESTINATIONS = {
    "downtown_orlando": ("Downtown Orlando", 28.5383, -81.3792),
    "mco": ("Orlando International Airport", 28.4312, -81.3081),
    "sfb": ("Orlando Sanford Airport", 28.7776, -81.2375),
    "magic_kingdom": ("Magic Kingdom", 28.4177, -81.5812),
    "universal": ("Universal Orlando", 28.4743, -81.4678),
}

BEACHES = {
    "cocoa_beach": ("Cocoa Beach", 28.3200, -80.6076),
    "daytona_beach": ("Daytona Beach", 29.2108, -81.0228),
    "new_smyrna_beach": ("New Smyrna Beach", 29.0258, -80.9270),
    "clearwater_beach": ("Clearwater Beach", 27.9775, -82.8271),
}


@dataclass
class Place:
    name: str
    types: list[str] = field(default_factory=list)
    rating: float | None = None
    distance_miles: float | None = None
    is_open: bool | None = None
    address: str | None = None
    place_id: str | None = None

    def has_type(self, *names: str) -> bool:
        return any(t in self.types for t in names)

    def name_contains(self, *words: str) -> bool:
        lowered = self.name.lower()
        return any(w in lowered for w in words)


@dataclass
class SubScore:
    score: int
    details: dict


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimate_drive_minutes(distance_miles: float) -> int:
    return round(distance_miles / AVG_DRIVE_SPEED_MPH * 60)


def score_label(score: int) -> str:
    for floor, label in SCORE_LABELS:
        if score >= floor:
            return label
    return "Limited"


def _ratio(value: float, target: float) -> float:
    return max(0.0, min(value / target, 1.0))


def _proximity(miles: float, max_miles: float) -> float:
    return max(0.0, 1.0 - miles / max_miles)


def _nearest(places: list[Place]) -> float:
    distances = [p.distance_miles for p in places if p.distance_miles is not None]
    return min(distances) if distances else MISSING_DISTANCE_MILES


def dining_score(places: list[Place]) -> SubScore:
    ratings = [p.rating for p in places if p.rating is not None]
    avg_rating = sum(ratings) / len(ratings) if ratings else 0.0
    highly_rated = sum(1 for r in ratings if r >= 4.0)
    walkable = sum(1 for p in places if (p.distance_miles or MISSING_DISTANCE_MILES) <= 0.5)

    score = (
        _ratio(len(places), 20) * 40
        + avg_rating / 5 * 30
        + _ratio(highly_rated, 10) * 20
        + _ratio(walkable, 5) * 10
    )
    return SubScore(
        score=round(score),
        details={
            "total_restaurants": len(places),
            "avg_rating": round(avg_rating, 2),
            "highly_rated_count": highly_rated,
            "within_half_mile": walkable,
        },
    )


def convenience_score(shopping: list[Place], services: list[Place]) -> SubScore:
    nearest = {
        "grocery": _nearest([p for p in shopping if p.has_type("supermarket", "grocery_or_supermarket")]),
        "pharmacy": _nearest([p for p in services if p.has_type("pharmacy", "drugstore")]),
        "bank": _nearest([p for p in services if p.has_type("bank")]),
        "gas": _nearest([p for p in services if p.has_type("gas_station")]),
    }
    weights = {"grocery": 35, "pharmacy": 25, "bank": 20, "gas": 20}
    score = sum(_proximity(nearest[k], 5) * w for k, w in weights.items())
    return SubScore(
        score=round(score),
        details={f"nearest_{k}_miles": round(v, 2) for k, v in nearest.items()},
    )


def lifestyle_score(fitness: list[Place], entertainment: list[Place]) -> SubScore:
    gyms = sum(1 for p in fitness if p.has_type("gym"))
    parks = sum(1 for p in fitness if p.has_type("park"))
    venues = sum(1 for p in entertainment if p.has_type("movie_theater", "bowling_alley"))
    nightlife = sum(1 for p in entertainment if p.has_type("night_club", "bar"))

    score = (
        _ratio(gyms, 5) * 30
        + _ratio(parks, 5) * 30
        + _ratio(venues, 3) * 25
        + _ratio(nightlife, 5) * 15
    )
    return SubScore(
        score=round(score),
        details={
            "gym_count": gyms,
            "park_count": parks,
            "entertainment_count": venues,
            "nightlife_count": nightlife,
            "has_golf": any(p.name_contains("golf") for p in fitness),
        },
    )


def commute_score(lat: float, lng: float) -> SubScore:
    minutes = {
        key: estimate_drive_minutes(haversine_miles(lat, lng, d_lat, d_lng))
        for key, (_, d_lat, d_lng) in DESTINATIONS.items()
    }
    beach_name, beach_minutes = min(
        (
            (name, estimate_drive_minutes(haversine_miles(lat, lng, b_lat, b_lng)))
            for name, b_lat, b_lng in BEACHES.values()
        ),
        key=lambda b: b[1],
    )
    airport = min(minutes["mco"], minutes["sfb"])
    theme_park = min(minutes["magic_kingdom"], minutes["universal"])

    score = (
        _proximity(minutes["downtown_orlando"], 60) * 40
        + _proximity(airport, 60) * 30
        + _proximity(beach_minutes, 90) * 15
        + _proximity(theme_park, 60) * 15
    )
    return SubScore(
        score=round(score),
        details={
            "downtown_orlando_minutes": minutes["downtown_orlando"],
            "mco_minutes": minutes["mco"],
            "sfb_minutes": minutes["sfb"],
            "magic_kingdom_minutes": minutes["magic_kingdom"],
            "universal_minutes": minutes["universal"],
            "nearest_beach": beach_name,
            "nearest_beach_minutes": beach_minutes,
        },
    )


def weighted_overall(scores: dict[str, int], profile: str) -> int:
    weights = PROFILE_WEIGHTS[profile]
    return round(sum(scores[k] * w for k, w in weights.items()))


def compute_life_here_score(
    lat: float,
    lng: float,
    places: dict[str, list[Place]],
    profile: str = "balanced",
    now: datetime | None = None,
) -> dict:
    if profile not in PROFILE_WEIGHTS:
        raise ValueError(f"Unknown profile: {profile}")

    parts = {
        "dining": dining_score(places.get("dining", [])),
        "convenience": convenience_score(places.get("shopping", []), places.get("services", [])),
        "lifestyle": lifestyle_score(places.get("fitness", []), places.get("entertainment", [])),
        "commute": commute_score(lat, lng),
    }
    overall = weighted_overall({k: v.score for k, v in parts.items()}, profile)

    return {
        "overall": overall,
        "label": score_label(overall),
        "profile": profile,
        **{k: asdict(v) for k, v in parts.items()},
        "calculatedAt": (now or datetime.now(timezone.utc)).isoformat(),
    }
