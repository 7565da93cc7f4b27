from enum import Enum

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class QuotationStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"


class Quotation(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    customer_email = fields.CharField(max_length=255, null=True)
    product_category = fields.CharField(max_length=100, null=True)
    total_amount = fields.FloatField(default=0.0)
    status = fields.CharEnumField(
        QuotationStatus, max_length=20, default=QuotationStatus.PENDING
    )

    def __str__(self):
        return f"Quotation {self.public_id} - Status: {self.status}"

    class Meta:
        table = "quotations"
