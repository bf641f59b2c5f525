"""
YelpCamp Backend - Routes Package
===================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource; forms.py decodes bodies.

Route Inventory:
    - campgrounds.py: /, /campgrounds, /campgrounds/new, /campgrounds/{id},
                      /campgrounds/{id}/edit
    - reviews.py:     /campgrounds/{id}/reviews[/{review_id}]
    - users.py:       /register, /login, /logout
    - images.py:      GET /images/{path}  (stored uploads)
    - health.py:      GET /health

Routes stay thin: they decode the request, build the RequestContext and hand
both to a service. Guard failures, validation errors and missing resources are
raised as exceptions and turned into redirects or JSON errors in main.py.
"""
