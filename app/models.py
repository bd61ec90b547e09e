from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(str, Enum):
    BURGERS = "Burgers"
    PIZZA = "Pizza"
    ASIAN = "Asian"
    MEXICAN = "Mexican"
    SEAFOOD = "Seafood"
    DINER = "Diner"
    DESSERT = "Dessert"

    @classmethod
    def parse(cls, label: Optional[str]) -> Optional["Category"]:
        """Case-insensitive lookup. None or a blank label means "no filter"."""
        if label is None or not label.strip():
            return None
        wanted = label.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        raise ValueError(
            f"Unknown category '{label}'. Supported: {', '.join(c.value for c in cls)}"
        )


class FailureKind(str, Enum):
    MISSING_LOCATION = "MissingLocation"
    UNSUPPORTED_CAPABILITY = "UnsupportedCapability"
    PERMISSION_DENIED = "PermissionDenied"
    LOCATION_UNAVAILABLE = "LocationUnavailable"
    TRANSIENT_SERVICE_ERROR = "TransientServiceError"
    NON_TRANSIENT_SERVICE_ERROR = "NonTransientServiceError"
    NO_RESULTS = "NoResults"


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class SearchRequest(BaseModel):
    """One attempt against one endpoint at one radius."""

    model_config = ConfigDict(frozen=True)

    coordinates: Coordinates
    category: Optional[Category] = None
    radius_m: int = Field(..., gt=0)
    endpoint_index: int = Field(0, ge=0)


class SearchSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    names: List[str] = Field(..., min_length=1)
    endpoint: str
    radius_m: int
    attempts: Tuple[SearchRequest, ...] = ()

    @field_validator("names")
    @classmethod
    def _names_not_blank(cls, v: List[str]) -> List[str]:
        if any(not name for name in v):
            raise ValueError("place names must be non-empty")
        return v


class SearchFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    kind: FailureKind
    message: str
    status: Optional[int] = None
    attempts: Tuple[SearchRequest, ...] = ()


SearchOutcome = Union[SearchSuccess, SearchFailure]


class SpinResult(BaseModel):
    winner: str
    map_url: str
    candidates: List[str]
    category: Optional[Category] = None


class ErrorDetail(BaseModel):
    kind: FailureKind
    message: str
