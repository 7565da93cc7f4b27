import datetime
import itertools
from typing import Optional

import pytest
import pytest_asyncio

from backoffice.features.auth.models import User, UserRole
from backoffice.features.inventory.models import Product, Supplier
from backoffice.features.quotations.models import Quotation, QuotationStatus
from backoffice.features.reservations.models import Reservation, ReservationStatus

_sequence = itertools.count(1)


def days_ago(days: float) -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=days)


async def stamp(obj, created_at: Optional[datetime.datetime] = None, updated_at: Optional[datetime.datetime] = None):
    """Rewrites timestamps in place; a queryset update bypasses auto_now."""
    changes = {}
    if created_at is not None:
        changes["created_at"] = created_at
    if updated_at is not None:
        changes["updated_at"] = updated_at
    if changes:
        await type(obj).filter(id=obj.id).update(**changes)
        await obj.refresh_from_db()
    return obj


@pytest_asyncio.fixture
async def supplier_factory():
    """A factory to create suppliers."""

    async def _factory(
        name: str,
        location: Optional[str] = "Colombo",
        is_active: bool = True,
        agreement_end_date: Optional[datetime.datetime] = None,
        created_at: Optional[datetime.datetime] = None,
    ) -> Supplier:
        supplier = await Supplier.create(
            name=name,
            location=location,
            is_active=is_active,
            agreement_start_date=days_ago(365),
            agreement_end_date=agreement_end_date,
        )
        return await stamp(supplier, created_at=created_at)

    return _factory


@pytest_asyncio.fixture
async def product_factory():
    """A factory to create products."""

    async def _factory(
        name: str,
        stock: int = 10,
        min_stock: int = 2,
        price: float = 100.0,
        category: str = "General",
        is_active: bool = True,
        supplier: Optional[Supplier] = None,
        created_at: Optional[datetime.datetime] = None,
        updated_at: Optional[datetime.datetime] = None,
    ) -> Product:
        product = await Product.create(
            sku=f"SKU-{next(_sequence):05d}",
            name=name,
            stock=stock,
            min_stock=min_stock,
            price=price,
            category=category,
            is_active=is_active,
            supplier=supplier,
        )
        return await stamp(product, created_at=created_at, updated_at=updated_at)

    return _factory


@pytest_asyncio.fixture
async def user_factory():
    """A factory to create users directly, without going through registration."""

    async def _factory(
        full_name: str,
        login_count: int = 0,
        last_login: Optional[datetime.datetime] = None,
        role: UserRole = UserRole.CUSTOMER,
        created_at: Optional[datetime.datetime] = None,
    ) -> User:
        slug = full_name.lower().replace(" ", ".")
        user = await User.create(
            full_name=full_name,
            email=f"{slug}@example.com",
            hashed_password="not-a-real-hash",
            role=role,
            login_count=login_count,
            last_login=last_login,
        )
        return await stamp(user, created_at=created_at)

    return _factory


@pytest_asyncio.fixture
async def quotation_factory():
    """A factory to create quotations."""

    async def _factory(
        total_amount: float,
        status: QuotationStatus = QuotationStatus.PENDING,
        product_category: Optional[str] = "General",
        created_at: Optional[datetime.datetime] = None,
        updated_at: Optional[datetime.datetime] = None,
    ) -> Quotation:
        quotation = await Quotation.create(
            total_amount=total_amount,
            status=status,
            product_category=product_category,
            customer_email="buyer@example.com",
        )
        return await stamp(quotation, created_at=created_at, updated_at=updated_at)

    return _factory


@pytest_asyncio.fixture
async def reservation_factory():
    """A factory to create reservations."""

    async def _factory(
        email: str,
        status: ReservationStatus = ReservationStatus.PENDING,
        created_at: Optional[datetime.datetime] = None,
        updated_at: Optional[datetime.datetime] = None,
    ) -> Reservation:
        reservation = await Reservation.create(email=email, status=status)
        return await stamp(reservation, created_at=created_at, updated_at=updated_at)

    return _factory


@pytest.fixture
def report_url():
    def _url(kind: str, **params) -> str:
        query = "&".join(f"{key}={value}" for key, value in params.items())
        return f"/api/v1/reports/{kind}" + (f"?{query}" if query else "")

    return _url
