"""
YelpCamp Backend - Service Dependencies
=========================================

What:  FastAPI providers wiring the store and services for one request.
How:   get_store wraps the request's AsyncSession; FastAPI caches it per
       request, so guards, services and the principal lookup share one session.
       Tests override get_db_session, get_geocoder and get_file_service via
       app.dependency_overrides.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.services.campground_service import CampgroundService
from app.services.file_service import FileService, file_service
from app.services.geocoding_base import GeocodingService
from app.services.geocoding_service import geocoding_service
from app.services.review_service import ReviewService
from app.services.store import ResourceStore
from app.services.user_service import UserService


async def get_store(db: AsyncSession = Depends(get_db_session)) -> ResourceStore:
    return ResourceStore(db)


def get_geocoder() -> GeocodingService:
    return geocoding_service


def get_file_service() -> FileService:
    return file_service


def get_campground_service(
    store: ResourceStore = Depends(get_store),
    geocoder: GeocodingService = Depends(get_geocoder),
    files: FileService = Depends(get_file_service),
) -> CampgroundService:
    return CampgroundService(store=store, geocoder=geocoder, files=files)


def get_review_service(store: ResourceStore = Depends(get_store)) -> ReviewService:
    return ReviewService(store)


def get_user_service(store: ResourceStore = Depends(get_store)) -> UserService:
    return UserService(store)
