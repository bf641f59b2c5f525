"""
YelpCamp Backend - Presentation Helpers
=========================================

What:  Pure functions deriving display values from stored documents.
How:   Nothing here is stored or attached to the ORM models; routes call these
       when they build a JSON page.

    thumbnail_url(url)         → 200px-wide variant for remote upload URLs
    popup_markup(campground)   → escaped HTML snippet for a map marker popup
    campground_feature(cg)     → GeoJSON Feature for the cluster map
    feature_collection(cgs)    → GeoJSON FeatureCollection
    serialize_*                → JSON-ready dicts for pages
"""

import html
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.models.campground import Campground
from app.models.review import Review
from app.models.user import User


def thumbnail_url(url: str) -> str:
    """
    Remote (Cloudinary-style) URLs get a width transform inserted after
    "/upload/"; local /images/ URLs are returned unchanged.
    """
    if "/upload/" not in url:
        return url
    return url.replace("/upload/", "/upload/w_200/", 1)


def popup_markup(campground: Campground) -> str:
    """Marker popup body; every user-supplied value is HTML-escaped."""
    description = (campground.description or "")[:20]
    return (
        f'<strong><a href="/campgrounds/{campground.id}">'
        f"{html.escape(campground.title)}</a></strong>"
        f"<p>{html.escape(description)}...</p>"
    )


def campground_feature(campground: Campground) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": campground.geometry,
        "properties": {
            "id": str(campground.id),
            "title": campground.title,
            "popUpMarkup": popup_markup(campground),
        },
    }


def feature_collection(campgrounds: Iterable[Campground]) -> Dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [campground_feature(c) for c in campgrounds],
    }


# ── Serializers ───────────────────────────────────────────────────────────

def serialize_user(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {"id": str(user.id), "username": user.username}


def serialize_image(image: Mapping[str, str]) -> Dict[str, str]:
    return {
        "url": image["url"],
        "filename": image["filename"],
        "thumbnail": thumbnail_url(image["url"]),
    }


def serialize_review(review: Review, author: Optional[User] = None) -> Dict[str, Any]:
    return {
        "id": str(review.id),
        "body": review.body,
        "rating": review.rating,
        "author": serialize_user(author) or {"id": str(review.author_id), "username": None},
    }


def serialize_campground(
    campground: Campground,
    author: Optional[User] = None,
    reviews: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Campground as a page payload. `reviews` is the populated list for the
    detail page; listings get the raw id list instead.
    """
    data = {
        "id": str(campground.id),
        "title": campground.title,
        "location": campground.location,
        "price": campground.price,
        "description": campground.description,
        "images": [serialize_image(i) for i in campground.images or []],
        "geometry": campground.geometry,
        "author": serialize_user(author) or {"id": str(campground.author_id), "username": None},
        "reviews": reviews if reviews is not None else list(campground.reviews or []),
        "created_at": campground.created_at.isoformat() if campground.created_at else None,
        "updated_at": campground.updated_at.isoformat() if campground.updated_at else None,
    }
    return data
