"""
YelpCamp Backend - User Service
=================================

What:  Registration and credential checks.
How:   Forms are validated with pydantic (EmailStr for the address), then the
       store is checked for an existing username/email before the user is
       written with a PBKDF2 password hash. Failures are RedirectErrors so
       the user lands back on the form with a notice.
Who:   Called by app/routes/users.py. Session login/logout lives in
       app/auth/dependencies.py.
"""

import logging
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from app.auth.passwords import hash_password, verify_password
from app.exceptions import InvalidCredentialsError, RegistrationError
from app.models.user import User
from app.schemas.user import LoginForm, RegistrationForm
from app.services.store import ResourceStore

logger = logging.getLogger(__name__)


def _form_message(error: PydanticValidationError) -> str:
    fields = sorted({str(e["loc"][0]) for e in error.errors() if e.get("loc")})
    return "Please provide a valid " + ", ".join(fields) + "."


class UserService:
    def __init__(self, store: ResourceStore):
        self.store = store

    async def register(self, raw: Mapping[str, Any]) -> User:
        try:
            form = RegistrationForm.model_validate(dict(raw))
        except PydanticValidationError as e:
            raise RegistrationError(_form_message(e)) from None

        if await self.store.get_user_by_username(form.username) is not None:
            raise RegistrationError("A user with the given username is already registered")
        if await self.store.get_user_by_email(str(form.email)) is not None:
            raise RegistrationError("A user with the given email is already registered")

        user = User(
            username=form.username,
            email=str(form.email),
            password_hash=hash_password(form.password),
        )
        await self.store.add_user(user)
        logger.info("Registered user %s (%s)", user.username, user.id)
        return user

    async def authenticate(self, raw: Mapping[str, Any]) -> User:
        """Returns the user for valid credentials; raises InvalidCredentialsError otherwise."""
        try:
            form = LoginForm.model_validate(dict(raw))
        except PydanticValidationError:
            raise InvalidCredentialsError() from None

        user = await self.store.get_user_by_username(form.username)
        if user is None or not verify_password(form.password, user.password_hash):
            logger.info("Failed login for username %r", form.username)
            raise InvalidCredentialsError()
        return user
