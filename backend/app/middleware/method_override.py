"""
YelpCamp Backend - Method Override Middleware
===============================================

What:  Lets HTML forms reach PUT/PATCH/DELETE routes.
How:   A POST carrying `?_method=PUT` (or PATCH/DELETE, any case) is
       re-labelled before routing by rewriting scope["method"]. Any other
       value, or a non-POST request, passes through untouched.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

OVERRIDE_PARAM = "_method"
ALLOWED_METHODS = {"PUT", "PATCH", "DELETE"}


class MethodOverrideMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "POST":
            override = request.query_params.get(OVERRIDE_PARAM, "").upper()
            if override in ALLOWED_METHODS:
                logger.debug("Method override POST → %s for %s", override, request.url.path)
                request.scope["method"] = override
        return await call_next(request)
