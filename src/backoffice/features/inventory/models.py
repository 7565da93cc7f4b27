"""Data models for the product catalogue, including Supplier and Product."""

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


# Supplier is defined first so Product can reference it directly
class Supplier(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    name = fields.CharField(max_length=255)
    location = fields.CharField(max_length=255, null=True)
    is_active = fields.BooleanField(default=True)
    agreement_start_date = fields.DatetimeField(null=True)
    agreement_end_date = fields.DatetimeField(null=True)

    products: fields.ReverseRelation["Product"]

    def __str__(self):
        return self.name

    class Meta:
        table = "suppliers"


class Product(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    sku = fields.CharField(max_length=64, unique=True)
    name = fields.CharField(max_length=255)
    category = fields.CharField(max_length=100, db_index=True)
    price = fields.FloatField(default=0.0)
    stock = fields.IntField(default=0)
    min_stock = fields.IntField(default=0)
    is_active = fields.BooleanField(default=True)

    supplier: fields.ForeignKeyNullableRelation[Supplier] = fields.ForeignKeyField(
        "models.Supplier",
        related_name="products",
        on_delete=fields.SET_NULL,
        null=True,
    )

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock == 0

    def __str__(self):
        return f"{self.name} (Stock: {self.stock}, Price: ${self.price:.2f})"

    class Meta:
        table = "products"
