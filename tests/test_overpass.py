from __future__ import annotations

import pytest

from app.models import Category, Coordinates
from app.services.overpass import (
    CATEGORY_FILTERS,
    GENERIC_FILTER,
    build_query,
    extract_place_names,
    list_categories,
    query_timeout,
    tag_filter,
)

HERE = Coordinates(latitude=40.7128, longitude=-74.006)


@pytest.mark.parametrize(
    "category, expected",
    [
        (None, '["amenity"~"restaurant|fast_food|cafe"]'),
        (Category.BURGERS, '["cuisine"="burger"]'),
        (Category.PIZZA, '["cuisine"="pizza"]'),
        (Category.ASIAN, '["cuisine"~"asian|chinese|japanese|thai|vietnamese"]'),
        (Category.MEXICAN, '["cuisine"="mexican"]'),
        (Category.SEAFOOD, '["cuisine"="seafood"]'),
        (Category.DINER, '["cuisine"="diner"]'),
        (Category.DESSERT, '["cuisine"~"ice_cream|bakery"]'),
    ],
)
def test_query_uses_category_filter(category, expected):
    query = build_query(HERE, category, 8000, timeout_s=45)

    assert f"nwr{expected}(around:8000,40.7128,-74.006);" in query


def test_unmapped_category_falls_back_to_generic(monkeypatch):
    monkeypatch.delitem(CATEGORY_FILTERS, Category.DINER)
    assert tag_filter(Category.DINER) == GENERIC_FILTER


def test_query_header_and_output_cap():
    query = build_query(HERE, None, 5000, timeout_s=30, limit=50)

    assert query.startswith("[out:json][timeout:30];")
    assert query.rstrip().endswith("out center 50;")


def test_zero_coordinates_are_kept_in_query():
    query = build_query(Coordinates(latitude=0.0, longitude=0.0), None, 3000, timeout_s=20)

    assert "(around:3000,0.0,0.0)" in query


def test_query_timeout_follows_radius_tier():
    timeouts = {8000: 45, 5000: 30, 3000: 20}

    assert query_timeout(8000, timeouts) == 45
    assert query_timeout(5000, timeouts) == 30
    assert query_timeout(3000, timeouts) == 20
    # between tiers: the tier below applies
    assert query_timeout(6000, timeouts) == 30
    # under the smallest tier
    assert query_timeout(1000, timeouts) == 20


def test_extract_names_drops_unnamed_and_duplicates():
    elements = [{"tags": {"name": "A"}}, {"tags": {}}, {"tags": {"name": "A"}}]

    assert extract_place_names(elements) == ["A"]


def test_extract_names_keeps_first_seen_order():
    elements = [
        {"tags": {"name": "Luigi's"}},
        {"tags": {"name": "Burger Barn"}},
        {"id": 3},
        {"tags": {"name": "   "}},
        {"tags": {"name": "Luigi's"}},
        {"tags": {"name": "Taco Stand"}},
        "garbage",
    ]

    assert extract_place_names(elements) == ["Luigi's", "Burger Barn", "Taco Stand"]


def test_list_categories_is_fixed():
    assert list_categories() == ["Burgers", "Pizza", "Asian", "Mexican", "Seafood", "Diner", "Dessert"]
