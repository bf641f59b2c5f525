"""
YelpCamp Backend - Services Layer
===================================

What:  Business logic between routes (HTTP) and the database.
How:   Services take an explicit RequestContext plus a ResourceStore bound to
       the request's session, and are wired up in app/dependencies.py.

Service Inventory:
    - store.py:              ResourceStore, all reads/writes of the three collections
    - validation.py:         campground/review payload schemas and messages
    - mutations.py:          per-request mutation state machine
    - cascade.py:            campground → review deletion rule
    - campground_service.py: campground reads and mutations
    - review_service.py:     review create/delete
    - user_service.py:       registration and credential checks
    - geocoding_base.py:     GeocodingService interface
    - geocoding_service.py:  Mapbox forward geocoding (retry + circuit breaker)
    - file_service.py:       image upload validation, storage and cleanup
    - presentation.py:       page serializers, thumbnails, map features
"""
