"""
Pydantic data models for scraped stays and the intermediate parse results.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def canonical_url(url: str) -> str:
    """Strip the query string from a place URL."""
    return url.split("?", 1)[0]


class SearchQuery(BaseModel):
    """One Google Maps search and the category its results are filed under."""

    q: str = Field(..., description="Search text, e.g. 'resorts in Varkala'")
    category: str = Field(..., description="Category assigned to every result")


class PlaceCard(BaseModel):
    """Preview shown on a results-list card, used to backfill detail fields."""

    name: Optional[str] = None
    rating: Optional[float] = None
    total_reviews: Optional[int] = None
    google_maps_url: Optional[str] = None


class PlaceDetails(BaseModel):
    """Fields read from an opened place detail panel."""

    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_urls: List[str] = Field(default_factory=list)


class Stay(BaseModel):
    """A lodging listing, the unit persisted to the ``stays`` table."""

    name: str = Field(..., description="Place name (or 'Unknown')")
    rating: Optional[float] = Field(None, ge=0, le=5, description="Star rating (0-5)")
    total_reviews: Optional[int] = Field(None, ge=0, description="Number of reviews")
    address: Optional[str] = Field(None, description="Street address")
    phone: Optional[str] = Field(None, description="Phone number")
    website: Optional[str] = Field(None, description="Business website URL")
    category: str = Field(..., description="Category of the originating query")
    latitude: Optional[float] = Field(None, description="Latitude from the place URL")
    longitude: Optional[float] = Field(None, description="Longitude from the place URL")
    google_maps_url: str = Field(..., description="Canonical Google Maps place URL")
    image_urls: List[str] = Field(default_factory=list, description="Up to 3 photo URLs")

    @field_validator("google_maps_url")
    @classmethod
    def _strip_query(cls, value: str) -> str:
        return canonical_url(value)

    @field_validator("image_urls")
    @classmethod
    def _cap_images(cls, value: List[str]) -> List[str]:
        return value[:3]
