from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.models import Category, Coordinates

# Any eating establishment. Used when no category is given, and as the
# fallback for categories missing from CATEGORY_FILTERS.
GENERIC_FILTER = '["amenity"~"restaurant|fast_food|cafe"]'

# Category -> Overpass tag predicate. Extend by adding an entry here.
CATEGORY_FILTERS: dict[Category, str] = {
    Category.BURGERS: '["cuisine"="burger"]',
    Category.PIZZA: '["cuisine"="pizza"]',
    Category.ASIAN: '["cuisine"~"asian|chinese|japanese|thai|vietnamese"]',
    Category.MEXICAN: '["cuisine"="mexican"]',
    Category.SEAFOOD: '["cuisine"="seafood"]',
    Category.DINER: '["cuisine"="diner"]',
    Category.DESSERT: '["cuisine"~"ice_cream|bakery"]',
}


def list_categories() -> List[str]:
    return [c.value for c in Category]


def tag_filter(category: Optional[Category]) -> str:
    if category is None:
        return GENERIC_FILTER
    return CATEGORY_FILTERS.get(category, GENERIC_FILTER)


def query_timeout(radius_m: int, timeouts: Mapping[int, int]) -> int:
    """Server-side timeout for a radius: the entry for the largest tier at or below it."""
    if radius_m in timeouts:
        return timeouts[radius_m]
    lower = [r for r in timeouts if r <= radius_m]
    if lower:
        return timeouts[max(lower)]
    return timeouts[min(timeouts)]


def build_query(
    coordinates: Coordinates,
    category: Optional[Category],
    radius_m: int,
    *,
    timeout_s: int,
    limit: int = 50,
) -> str:
    # nwr covers nodes, ways and relations; ways/relations get a center point.
    around = f"(around:{radius_m},{coordinates.latitude},{coordinates.longitude})"
    return f"""[out:json][timeout:{timeout_s}];
(
  nwr{tag_filter(category)}{around};
);
out center {limit};
"""


def _name_of(element: Any) -> Optional[str]:
    if not isinstance(element, dict):
        return None
    tags = element.get("tags")
    if not isinstance(tags, dict):
        return None
    name = tags.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    return name


def extract_place_names(elements: Iterable[Dict[str, Any]]) -> List[str]:
    """Named elements only, deduplicated by exact name, first-seen order kept."""
    seen: set[str] = set()
    names: list[str] = []
    for el in elements:
        name = _name_of(el)
        if name is None or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names
