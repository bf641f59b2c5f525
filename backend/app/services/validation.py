"""
YelpCamp Backend - Request Payload Validation
===============================================

What:  Checks the shape and content of campground/review mutation bodies.
Why:   Mutation handlers must never see a payload that could write a negative
       price, an out-of-range rating or stored markup.
How:   Pydantic models with extra="forbid" describe each payload. Text fields
       run through a markup detector that REJECTS input containing HTML
       rather than silently stripping it. Pydantic's error list is rewritten
       into short per-field messages, joined with "," into one
       ValidationError (HTTP 400).
Who:   Called by CampgroundService / ReviewService before any store write.
When:  After the authentication/ownership guards that precede it on the
       endpoint, before persistence.

Payload Shapes:
    campground: {"campground": {"title", "price", "location", "description"?},
                 "deleteImages"?: [filename, ...]}
    review:     {"review": {"body", "rating"}}

Markup Policy (detect-and-reject):
    A value fails when removing every tag (plus the contents of <script> and
    <style>) yields something different from the value with its character
    references decoded. "Tom & Jerry" and "Rock &amp; Roll" pass;
    "<b>hi</b>", "<script>x</script>" and "a<br/>b" fail.
"""

import html
import logging
from html.parser import HTMLParser
from typing import Annotated, Any, Dict, List, Mapping, Optional, Union

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from app.exceptions import ValidationError

logger = logging.getLogger(__name__)


# ── Markup detection ──────────────────────────────────────────────────────

class _MarkupStripper(HTMLParser):
    """Collects the text content of a fragment, dropping every tag."""

    SKIP_TAGS = {"script", "style"}

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.fed: List[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag in self.SKIP_TAGS:
            self._skip_depth += 1

    def handle_endtag(self, tag):
        if tag in self.SKIP_TAGS and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data):
        if not self._skip_depth:
            self.fed.append(data)

    def get_data(self) -> str:
        return "".join(self.fed)


def strip_markup(value: str) -> str:
    """Text content of `value` with all tags, comments and declarations removed."""
    stripper = _MarkupStripper()
    stripper.feed(value)
    stripper.close()
    return stripper.get_data()


def contains_markup(value: str) -> bool:
    return strip_markup(value) != html.unescape(value)


def _reject_markup(value: str) -> str:
    if contains_markup(value):
        raise PydanticCustomError("string_markup", "must not include HTML!")
    return value


def _reject_bool(value: Any) -> Any:
    # bool is an int subclass; true/false are not prices or ratings
    if isinstance(value, bool):
        raise PydanticCustomError("number_type", "must be a number")
    return value


EscapedStr = Annotated[
    str,
    StringConstraints(min_length=1),
    AfterValidator(_reject_markup),
]
Price = Annotated[float, BeforeValidator(_reject_bool), Field(ge=0, allow_inf_nan=False)]
Rating = Annotated[int, BeforeValidator(_reject_bool), Field(ge=1, le=5)]


# ── Payload models ────────────────────────────────────────────────────────

class CampgroundFields(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: EscapedStr
    price: Price
    location: EscapedStr
    description: Optional[EscapedStr] = None


class CampgroundPayload(BaseModel):
    """Validated body of POST /campgrounds and PUT /campgrounds/{id}."""

    model_config = ConfigDict(extra="forbid")

    campground: CampgroundFields
    delete_images: List[str] = Field(default_factory=list, alias="deleteImages")


class ReviewFields(BaseModel):
    model_config = ConfigDict(extra="forbid")

    body: EscapedStr
    rating: Rating


class ReviewPayload(BaseModel):
    """Validated body of POST /campgrounds/{id}/reviews."""

    model_config = ConfigDict(extra="forbid")

    review: ReviewFields


SCHEMAS = {
    "campground": CampgroundPayload,
    "review": ReviewPayload,
}

Payload = Union[CampgroundPayload, ReviewPayload]


# ── Error formatting ──────────────────────────────────────────────────────

_TEMPLATES = {
    "missing": "is required",
    "extra_forbidden": "is not allowed",
    "string_too_short": "is not allowed to be empty",
    "string_type": "must be a string",
    "float_type": "must be a number",
    "float_parsing": "must be a number",
    "int_type": "must be a number",
    "int_parsing": "must be a number",
    "int_from_float": "must be an integer",
    "finite_number": "must be a finite number",
    "greater_than_equal": "must be greater than or equal to {ge}",
    "less_than_equal": "must be less than or equal to {le}",
    "model_type": "must be of type object",
    "model_attributes_type": "must be of type object",
    "dict_type": "must be of type object",
    "list_type": "must be an array",
}


def _format_error(error: Mapping[str, Any]) -> str:
    path = ".".join(str(part) for part in error.get("loc", ())) or "value"
    template = _TEMPLATES.get(error.get("type", ""))
    if template is None:
        return f'"{path}" {error.get("msg", "is invalid")}'
    ctx = error.get("ctx") or {}
    ctx = {k: (int(v) if isinstance(v, float) and v.is_integer() else v) for k, v in ctx.items()}
    return f'"{path}" ' + template.format(**ctx)


def validate_payload(kind: str, raw: Any) -> Payload:
    """
    Validate `raw` against the `kind` schema ("campground" or "review").

    Returns the typed payload. Raises ValidationError carrying every failing
    field; the message is the field messages joined with ",".
    """
    schema = SCHEMAS.get(kind)
    if schema is None:
        raise ValueError(f"Unknown payload kind '{kind}'")

    if not isinstance(raw, Mapping):
        raise ValidationError(message='"value" must be of type object', field=kind)

    try:
        return schema.model_validate(dict(raw))
    except PydanticValidationError as e:
        messages = [_format_error(err) for err in e.errors()]
        logger.info("Rejected %s payload: %s", kind, messages)
        raise ValidationError(
            message=",".join(messages),
            field=kind,
            errors=messages,
        ) from None


def campground_fields(payload: CampgroundPayload) -> Dict[str, Any]:
    """Column values to write for a validated campground payload."""
    return payload.campground.model_dump()
