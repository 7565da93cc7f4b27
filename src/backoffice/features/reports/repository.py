"""Read-only access to the collections the reports aggregate over.

Report generators never touch the Tortoise models directly: each collection
is wrapped in a ``CollectionReader`` that only knows how to count, project
rows and count groups. ``get_report_readers`` is the FastAPI dependency that
wires the readers to the real models; tests can override it with readers
backed by something else."""
import datetime
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Type

from tortoise.functions import Count
from tortoise.models import Model

from ..auth.models import User
from ..inventory.models import Product, Supplier
from ..quotations.models import Quotation
from ..reservations.models import Reservation


def _plain(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime.datetime) and value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def _plain_row(row: dict) -> dict:
    return {key: _plain(value) for key, value in row.items()}


class CollectionReader:
    def __init__(self, model: Type[Model]) -> None:
        self.model = model

    def __repr__(self) -> str:
        return f"CollectionReader({self.model.__name__})"

    async def count(self, **filters) -> int:
        return await self.model.filter(**filters).count()

    async def rows(
        self,
        *fields: str,
        order_by: Sequence[str] = (),
        limit: Optional[int] = None,
        **filters,
    ) -> List[dict]:
        query = self.model.filter(**filters)
        if order_by:
            query = query.order_by(*order_by)
        if limit is not None:
            query = query.limit(limit)
        return [_plain_row(row) for row in await query.values(*fields)]

    async def group_count(self, key: str, **filters) -> List[dict]:
        """``{key: ..., "count": n}`` for every distinct value of ``key``."""
        rows = (
            await self.model.filter(**filters)
            .annotate(count=Count("id"))
            .group_by(key)
            .values(key, "count")
        )
        return [_plain_row(row) for row in rows]


@dataclass(frozen=True)
class ReportReaders:
    products: CollectionReader
    suppliers: CollectionReader
    users: CollectionReader
    quotations: CollectionReader
    reservations: CollectionReader


def get_report_readers() -> ReportReaders:
    return ReportReaders(
        products=CollectionReader(Product),
        suppliers=CollectionReader(Supplier),
        users=CollectionReader(User),
        quotations=CollectionReader(Quotation),
        reservations=CollectionReader(Reservation),
    )
