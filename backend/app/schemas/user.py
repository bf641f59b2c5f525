"""
YelpCamp Backend - Account Form Schemas
=========================================

What:  Registration and login form bodies.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, StringConstraints

Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=64)]
Password = Annotated[str, StringConstraints(min_length=1, max_length=256)]


class RegistrationForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: Username
    email: EmailStr
    password: Password


class LoginForm(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: Username
    password: Password
