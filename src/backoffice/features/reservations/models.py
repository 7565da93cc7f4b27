from enum import Enum

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class ReservationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Reservation(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    email = fields.CharField(max_length=255, db_index=True)
    status = fields.CharEnumField(
        ReservationStatus, max_length=20, default=ReservationStatus.PENDING
    )

    def __str__(self):
        return f"Reservation {self.public_id} for {self.email} - Status: {self.status}"

    class Meta:
        table = "reservations"
