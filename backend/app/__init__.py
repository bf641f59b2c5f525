"""
YelpCamp Backend - Application Package
========================================

What: Campground listings with reviews, served as a FastAPI app.

Architecture Note:
    ┌─────────────────────────────────────┐
    │   Routes + Middleware (HTTP layer)  │  ← decoding, redirects, sessions
    ├─────────────────────────────────────┤
    │   Auth (guards, principal, flash)   │  ← who may do what
    ├─────────────────────────────────────┤
    │   Services (business logic)         │  ← validation, orchestration, cascade
    ├─────────────────────────────────────┤
    │   ResourceStore + Models            │  ← SQLAlchemy ORM, one commit per write
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
