"""Business logic for authentication, such as user creation, retrieval and login bookkeeping."""
from datetime import datetime, timezone
from typing import Optional

from tortoise.expressions import F

from . import models


async def get_user_by_email(email: str) -> Optional[models.User]:
    """Retrieves a user by their email address.

    Args:
        email: The email address of the user to retrieve.

    Returns:
        The User object if found, otherwise None.
    """
    return await models.User.get_or_none(email=email)


async def create_user(user_in: dict, hashed_password_val: str) -> models.User:
    """Creates a new user in the database.

    Args:
        user_in: A dictionary containing the user data (excluding password).
        hashed_password_val: The hashed password for the new user.

    Returns:
        The newly created User object.
    """
    new_user = await models.User.create(
        **user_in,
        hashed_password=hashed_password_val
    )
    return new_user


async def record_login(user: models.User) -> None:
    """Increments the login counter and stamps the last login time."""
    now = datetime.now(timezone.utc)
    await models.User.filter(id=user.id).update(
        login_count=F("login_count") + 1, last_login=now
    )
    user.login_count += 1
    user.last_login = now
