# Auth package init
"""
YelpCamp Backend - Identity, Session & Authorization
=====================================================

What:  Everything that answers "who is making this request, and may they?"
How:
    - models.py:        Principal and the explicit RequestContext
    - flash.py:         FlashSink, the session-backed notice queue
    - passwords.py:     PBKDF2 credential hashing
    - dependencies.py:  FastAPI dependencies resolving the principal per request
    - guards.py:        is_logged_in / is_author / is_review_author + enforce()

Handlers never read the session directly; they receive a RequestContext.
"""
