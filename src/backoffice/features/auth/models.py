from enum import Enum

from tortoise import fields

from backoffice.common.models import TimestampMixin, generate_ksuid


class UserRole(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


class User(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(max_length=27, unique=True, default=generate_ksuid, db_index=True)
    full_name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255, unique=True, db_index=True)
    hashed_password = fields.CharField(max_length=255)
    role = fields.CharEnumField(UserRole, max_length=20, default=UserRole.CUSTOMER)
    is_active = fields.BooleanField(default=True)
    login_count = fields.IntField(default=0)
    last_login = fields.DatetimeField(null=True, default=None)

    def __str__(self):
        return f"{self.email} ({self.role})"

    class Meta:
        table = "users"
