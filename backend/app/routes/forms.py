"""
YelpCamp Backend - Request Body Decoding
==========================================

What:  Turns a JSON, urlencoded or multipart body into a nested dict plus
       the uploaded image parts.
How:   Browser forms post bracketed field names, which are folded into
       nested mappings:

           campground[title]=Camp      → {"campground": {"title": "Camp"}}
           deleteImages[]=2024/01/a.jpg → {"deleteImages": ["2024/01/a.jpg"]}

       File parts named "image" become ImageUpload objects and are kept out
       of the payload. The method-override marker `_method` is dropped.
Who:   Called by the campground, review and user routes before the payload
       reaches validate_payload or the user forms.
"""

import json
import logging
import re
from typing import Any, Dict, List, Tuple

from fastapi import Request
from starlette.datastructures import UploadFile

from app.exceptions import ValidationError
from app.services.file_service import ImageUpload

logger = logging.getLogger(__name__)

IMAGE_FIELD = "image"
_KEY_PART = re.compile(r"\[([^\]]*)\]")
_IGNORED_FIELDS = {"_method"}


def _split_key(key: str) -> List[str]:
    head, _, rest = key.partition("[")
    if not rest:
        return [key]
    return [head, *_KEY_PART.findall("[" + rest)]


def _assign(target: Dict[str, Any], parts: List[str], value: Any) -> None:
    node = target
    for index, part in enumerate(parts):
        last = index == len(parts) - 1
        if part == "":
            # "name[]" appends; only meaningful as the final segment
            return
        if last:
            node[part] = value
            return
        if parts[index + 1] == "":
            existing = node.get(part)
            if not isinstance(existing, list):
                existing = []
                node[part] = existing
            existing.append(value)
            return
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child


def nest_fields(items: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """Fold (key, value) pairs with bracketed keys into a nested dict."""
    nested: Dict[str, Any] = {}
    for key, value in items:
        if key in _IGNORED_FIELDS:
            continue
        _assign(nested, _split_key(key), value)
    return nested


async def read_payload(request: Request) -> Tuple[Any, List[ImageUpload]]:
    """
    Decode the request body.

    Returns:
        (payload, uploads). For JSON bodies the payload is whatever the JSON
        holds; the validator rejects non-objects.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        body = await request.body()
        if not body:
            return {}, []
        try:
            return json.loads(body), []
        except ValueError:
            raise ValidationError(message="Request body is not valid JSON.", field="body") from None

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        fields: List[Tuple[str, Any]] = []
        uploads: List[ImageUpload] = []
        try:
            for key, value in form.multi_items():
                if isinstance(value, UploadFile):
                    if _split_key(key)[0] != IMAGE_FIELD or not value.filename:
                        continue
                    uploads.append(ImageUpload(filename=value.filename, content=await value.read()))
                else:
                    fields.append((key, value))
        finally:
            await form.close()
        logger.debug("Decoded form body: %d fields, %d uploads", len(fields), len(uploads))
        return nest_fields(fields), uploads

    return {}, []
