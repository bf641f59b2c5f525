"""
YelpCamp Backend - Page & Error Response Schemas
==================================================

What:  Pydantic models describing every JSON page the API returns.
How:   Routes declare these as response_model; FastAPI validates the dicts
       built by app/services/presentation.py against them and documents
       them in OpenAPI.

Every page carries:
    messages:      flash notices drained for this response
                   ({"success": [...], "error": [...]})
    current_user:  the signed-in principal, or null
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Building blocks
# ══════════════════════════════════════════════════════════════════════════


class UserSummary(BaseModel):
    id: str
    username: Optional[str] = Field(default=None, description="Null if the user no longer resolves")


class ImageOut(BaseModel):
    url: str
    filename: str = Field(description="Storage key, used by deleteImages[] on update")
    thumbnail: str = Field(description="200px-wide variant for remote images")


class ReviewOut(BaseModel):
    id: str
    body: str
    rating: int = Field(ge=1, le=5)
    author: UserSummary


class CampgroundOut(BaseModel):
    id: str
    title: str
    location: str
    price: float
    description: Optional[str] = None
    images: List[ImageOut] = Field(default_factory=list)
    geometry: Dict[str, Any] = Field(description="GeoJSON Point, [longitude, latitude]")
    author: UserSummary
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CampgroundSummary(CampgroundOut):
    reviews: List[str] = Field(default_factory=list, description="Review ids in display order")


class CampgroundDetail(CampgroundOut):
    reviews: List[ReviewOut] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Pages
# ══════════════════════════════════════════════════════════════════════════


class Page(BaseModel):
    messages: Dict[str, List[str]] = Field(default_factory=dict)
    current_user: Optional[UserSummary] = None


class CampgroundListPage(Page):
    campgrounds: List[CampgroundSummary]
    map: Dict[str, Any] = Field(description="GeoJSON FeatureCollection for the cluster map")


class CampgroundPage(Page):
    campground: CampgroundDetail


class CampgroundFormPage(Page):
    """New/edit form context; `campground` is null for the new form."""

    campground: Optional[CampgroundSummary] = None


class FormPage(Page):
    form: str = Field(description="Which form to render: register or login")


# ══════════════════════════════════════════════════════════════════════════
# Errors & health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body.

    Example:
        {
            "error": "validation_error",
            "message": "\\"review.rating\\" must be less than or equal to 5",
            "details": {"errors": ["..."]},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy, degraded or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    geocoder: str = Field(description="available, not_configured or circuit_open")
    uptime_seconds: float
