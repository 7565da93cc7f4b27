"""Models module for the back-office.

This module contains the common database models shared by every feature.
It includes a TimestampMixin class that provides created_at and updated_at
fields for models, as well as a utility function for generating KSUIDs
(K-Sortable Unique IDentifiers) used as public identifiers."""

from tortoise import fields, models
from ksuid import ksuid


def generate_ksuid():
    """Generate a K-Sortable Unique IDentifier (KSUID).

    KSUIDs are time-ordered identifiers that are URL-safe, timestamp
    prefixed, and sortable chronologically. They are exposed to API clients
    instead of the integer primary keys.

    Returns:
        str: A string representation of the generated KSUID.
    """
    return str(ksuid.Ksuid())


class TimestampMixin(models.Model):
    created_at = fields.DatetimeField(auto_now_add=True, db_index=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        abstract = True
