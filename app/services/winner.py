from __future__ import annotations

import random
from typing import Optional, Sequence
from urllib.parse import quote


def pick_winner(names: Sequence[str], rng: Optional[random.Random] = None) -> str:
    """Uniform random pick from a non-empty result set."""
    if not names:
        raise ValueError("Nothing to pick from")
    return (rng or random).choice(list(names))


def map_search_url(name: str, base_url: str) -> str:
    return f"{base_url}{quote(name, safe='')}"
