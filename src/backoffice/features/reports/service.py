"""
Reports Service Module

This module provides the report generators of the back-office: product,
supplier, user, quotation, reservation and dashboard reports. Each generator
is read-only, issues its independent sub-queries concurrently through the
injected collection readers and assembles a single response document.

Reports are computed fresh on every call. Nothing is locked or snapshotted,
so a report built from several queries is only as consistent as the reads
it is made of.
"""

import datetime
import functools
import logging
import time
from typing import List, Optional, Tuple, Union

from tortoise.expressions import F

from ..auth.models import UserRole
from ..quotations.models import QuotationStatus
from ..reservations.models import ReservationStatus
from .aggregations import (
    Group,
    as_utc,
    bucket_histogram,
    count_per_window,
    count_recent,
    day_windows,
    gather_all,
    group_by_key,
    millis,
    month_windows,
    rank_counts,
    sum_per_window,
    summarize,
    utc_now,
)
from .repository import ReportReaders
from .schemas import (
    ActivityStats, CategoryBreakdown, CustomerReservations, DailyActiveUsers,
    DailyRegistrations, DashboardAlerts, DashboardOverview, DashboardReport,
    LocationCount, LoginBucket, LoginBucketMember, LowStockProduct,
    MonthlyCount, MonthlyRevenue, OutOfStockProduct, ProductOverview,
    ProductReport, QuotationOverview, QuotationReport, RecentActivity,
    ReservationOverview, ReservationReport, ResponseTimeStats, RevenueStats,
    StatusCount, StockValueStats, SupplierInfo, SupplierOverview,
    SupplierProductStats, SupplierReport, TopActiveUser, TopSupplier,
    UserOverview, UserReport,
)

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_DAYS = 30
# Fixed windows, independent of the caller's period
ACTIVE_USER_WINDOW_DAYS = 30
EXPIRING_AGREEMENT_DAYS = 30
DASHBOARD_RECENT_DAYS = 30

TREND_DAYS = 7
TREND_MONTHS = 6
TOP_SUPPLIERS_LIMIT = 10
TOP_ACTIVE_USERS_LIMIT = 5
TOP_CUSTOMERS_LIMIT = 10

LOGIN_COUNT_BOUNDARIES = (0, 1, 5, 10, 20, 50, 100)
LOGIN_COUNT_OVERFLOW = "100+"

SUPPLIER_INFO_FIELDS = (
    "id", "public_id", "name", "location", "is_active",
    "agreement_start_date", "agreement_end_date",
)
LOW_STOCK_FIELDS = ("public_id", "sku", "name", "category", "price", "stock", "min_stock")
OUT_OF_STOCK_FIELDS = ("public_id", "sku", "name", "category", "price", "stock", "updated_at")


class ReportError(Exception):
    """A report could not be generated. Carries the underlying error message."""


def report_generator(name: str):
    """Logs the generation of a report and turns any failure into a ReportError."""
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger.info(f"Generating {name} report")
            started = time.perf_counter()
            try:
                report = await func(*args, **kwargs)
            except Exception as e:
                logger.error(f"Error generating {name} report: {e}", exc_info=True)
                raise ReportError(str(e)) from e
            logger.debug(f"{name} report generated in {(time.perf_counter() - started) * 1000:.1f} ms")
            return report
        return wrapper
    return decorator


def _stock_value(row: dict) -> float:
    return row["price"] * row["stock"]


def _category_breakdown(groups: List[Group], value) -> List[CategoryBreakdown]:
    return [
        CategoryBreakdown(category=g.key, count=g.count, total_value=g.total(value))
        for g in groups
    ]


def _response_time_stats(rows: List[dict]) -> Union[ResponseTimeStats, dict]:
    summary = summarize(millis(as_utc(r["updated_at"]) - as_utc(r["created_at"])) for r in rows)
    if summary is None:
        return {}
    return ResponseTimeStats(
        avg_response_time=summary.average,
        max_response_time=summary.maximum,
        min_response_time=summary.minimum,
    )


async def _supplier_product_groups(
    readers: ReportReaders, limit: Optional[int] = None
) -> List[Tuple[Group, dict]]:
    """
    Groups active products by supplier and joins each group to its supplier.

    Groups whose supplier no longer resolves are dropped before ``limit`` is
    applied, so a dangling reference never takes a ranking slot.
    """
    rows = await readers.products.rows(
        "supplier_id", "price", "stock", is_active=True, supplier_id__isnull=False
    )
    groups = group_by_key(rows, "supplier_id")
    if not groups:
        return []
    suppliers = await readers.suppliers.rows(
        *SUPPLIER_INFO_FIELDS, id__in=[g.key for g in groups]
    )
    by_id = {supplier.pop("id"): supplier for supplier in suppliers}
    joined = [(g, by_id[g.key]) for g in groups if g.key in by_id]
    return joined[:limit] if limit is not None else joined


@report_generator("product")
async def generate_product_report(
    readers: ReportReaders,
    period: int = DEFAULT_PERIOD_DAYS,
    now: Optional[datetime.datetime] = None,
) -> ProductReport:
    """
    Generates the product report.

    Args:
        readers: Collection readers to query.
        period: Trailing window in days used for ``recentProducts``.
        now: Reference time, defaults to the current UTC time.

    Returns:
        ProductReport: overview counts, category distribution, stock value
        summary, top suppliers by active product count, and the low stock
        (still in stock) and out of stock product lists.
    """
    now = now or utc_now()
    products = readers.products
    (
        total, active, low_stock, out_of_stock, recent,
        active_rows, top_suppliers, low_stock_rows, out_of_stock_rows,
    ) = await gather_all(
        products.count(),
        products.count(is_active=True),
        products.count(is_active=True, stock__lte=F("min_stock")),
        products.count(is_active=True, stock=0),
        count_recent(products, period, now),
        products.rows("category", "price", "stock", is_active=True),
        _supplier_product_groups(readers, limit=TOP_SUPPLIERS_LIMIT),
        products.rows(
            *LOW_STOCK_FIELDS,
            is_active=True, stock__gt=0, stock__lte=F("min_stock"),
            order_by=("stock", "sku"),
        ),
        products.rows(*OUT_OF_STOCK_FIELDS, is_active=True, stock=0, order_by=("-updated_at", "sku")),
    )

    price_summary = summarize(row["price"] for row in active_rows)
    stock_value = {}
    if price_summary is not None:
        stock_value = StockValueStats(
            total_stock_value=sum(_stock_value(row) for row in active_rows),
            avg_price=price_summary.average,
            max_price=price_summary.maximum,
            min_price=price_summary.minimum,
        )

    return ProductReport(
        overview=ProductOverview(
            total_products=total,
            active_products=active,
            low_stock_products=low_stock,
            out_of_stock_products=out_of_stock,
            recent_products=recent,
        ),
        category_distribution=_category_breakdown(group_by_key(active_rows, "category"), _stock_value),
        stock_value=stock_value,
        top_suppliers=[
            TopSupplier(
                supplier_id=info["public_id"],
                product_count=group.count,
                total_stock_value=group.total(_stock_value),
                supplier_info=SupplierInfo(**info),
            )
            for group, info in top_suppliers
        ],
        low_stock_products=[LowStockProduct(**row) for row in low_stock_rows],
        out_of_stock_products=[OutOfStockProduct(**row) for row in out_of_stock_rows],
    )


@report_generator("supplier")
async def generate_supplier_report(
    readers: ReportReaders,
    period: int = DEFAULT_PERIOD_DAYS,
    now: Optional[datetime.datetime] = None,
) -> SupplierReport:
    """
    Generates the supplier report: agreement status counts, per-supplier
    product statistics and the location distribution.

    ``expiringSoon`` always looks 30 days ahead of ``now`` whatever the
    ``period`` is.
    """
    now = now or utc_now()
    suppliers = readers.suppliers
    expiry_horizon = now + datetime.timedelta(days=EXPIRING_AGREEMENT_DAYS)
    (
        total, active, inactive, expired, expiring, recent, product_groups, locations,
    ) = await gather_all(
        suppliers.count(),
        suppliers.count(is_active=True),
        suppliers.count(is_active=False),
        suppliers.count(agreement_end_date__lt=now),
        suppliers.count(agreement_end_date__gte=now, agreement_end_date__lte=expiry_horizon),
        count_recent(suppliers, period, now),
        _supplier_product_groups(readers),
        suppliers.group_count("location"),
    )

    return SupplierReport(
        overview=SupplierOverview(
            total_suppliers=total,
            active_suppliers=active,
            inactive_suppliers=inactive,
            expired_agreements=expired,
            expiring_soon=expiring,
            recent_suppliers=recent,
        ),
        supplier_product_stats=[
            SupplierProductStats(
                supplier_id=info["public_id"],
                product_count=group.count,
                total_stock_value=group.total(_stock_value),
                avg_price=group.average(lambda row: row["price"]),
                supplier_info=SupplierInfo(**info),
            )
            for group, info in product_groups
        ],
        location_distribution=[
            LocationCount(location=row["location"], count=row["count"])
            for row in rank_counts(locations, "location")
        ],
    )


def _activity_stats(rows: List[dict]) -> Union[ActivityStats, dict]:
    logins = summarize(row["login_count"] for row in rows)
    if logins is None:
        return {}
    stamps = summarize(as_utc(row["last_login"]).timestamp() for row in rows if row["last_login"])

    def _at(seconds):
        return datetime.datetime.fromtimestamp(seconds, tz=datetime.timezone.utc)

    return ActivityStats(
        avg_login_count=logins.average,
        max_login_count=logins.maximum,
        min_login_count=logins.minimum,
        total_logins=logins.total,
        avg_last_login=_at(stamps.average) if stamps else None,
        max_last_login=_at(stamps.maximum) if stamps else None,
        min_last_login=_at(stamps.minimum) if stamps else None,
    )


@report_generator("user")
async def generate_user_report(
    readers: ReportReaders,
    period: int = DEFAULT_PERIOD_DAYS,
    now: Optional[datetime.datetime] = None,
) -> UserReport:
    """
    Generates the user report.

    ``activeUsers`` counts users who logged in during the last 30 days,
    independently of ``period``. Both daily series cover the last 7 calendar
    days (UTC), oldest first, today included.
    """
    now = now or utc_now()
    users = readers.users
    days = day_windows(TREND_DAYS, now)
    active_since = now - datetime.timedelta(days=ACTIVE_USER_WINDOW_DAYS)
    (
        total, admins, customers, recent, registrations, active,
        top_rows, activity_rows, active_per_day,
    ) = await gather_all(
        users.count(),
        users.count(role=UserRole.ADMIN),
        users.count(role=UserRole.CUSTOMER),
        count_recent(users, period, now),
        count_per_window(users, "created_at", days),
        users.count(last_login__gte=active_since),
        users.rows(
            "public_id", "full_name", "email", "login_count", "last_login",
            role=UserRole.CUSTOMER,
            order_by=("-login_count", "email"),
            limit=TOP_ACTIVE_USERS_LIMIT,
        ),
        users.rows("full_name", "email", "login_count", "last_login", order_by=("email",)),
        count_per_window(users, "last_login", days),
    )

    histogram = bucket_histogram(
        activity_rows, "login_count", LOGIN_COUNT_BOUNDARIES, LOGIN_COUNT_OVERFLOW
    )

    return UserReport(
        overview=UserOverview(
            total_users=total,
            admin_users=admins,
            customer_users=customers,
            recent_registrations=recent,
            active_users=active,
        ),
        registration_trends=[
            DailyRegistrations(date=w.label, count=count) for w, count in zip(days, registrations)
        ],
        activity_stats=_activity_stats(activity_rows),
        top_active_users=[TopActiveUser(**row) for row in top_rows],
        login_distribution=[
            LoginBucket(
                bucket=group.key,
                count=group.count,
                users=[
                    LoginBucketMember(name=row["full_name"], email=row["email"], login_count=row["login_count"])
                    for row in group.rows
                ],
            )
            for group in histogram
        ],
        activity_trends=[
            DailyActiveUsers(date=w.label, active_users=count) for w, count in zip(days, active_per_day)
        ],
    )


@report_generator("quotation")
async def generate_quotation_report(
    readers: ReportReaders,
    period: int = DEFAULT_PERIOD_DAYS,
    now: Optional[datetime.datetime] = None,
) -> QuotationReport:
    """
    Generates the quotation report.

    Revenue only counts completed quotations. Response time is the time
    between creation and last update of completed or rejected quotations, in
    milliseconds. Monthly trends always hold the last 6 calendar months.
    """
    now = now or utc_now()
    quotations = readers.quotations
    months = month_windows(TREND_MONTHS, now)
    (
        total, pending, processing, completed, rejected, recent,
        completed_rows, category_rows, monthly_counts, monthly_revenue, answered_rows,
    ) = await gather_all(
        quotations.count(),
        quotations.count(status=QuotationStatus.PENDING),
        quotations.count(status=QuotationStatus.PROCESSING),
        quotations.count(status=QuotationStatus.COMPLETED),
        quotations.count(status=QuotationStatus.REJECTED),
        count_recent(quotations, period, now),
        quotations.rows("total_amount", status=QuotationStatus.COMPLETED),
        quotations.rows("product_category", "total_amount"),
        count_per_window(quotations, "created_at", months),
        sum_per_window(quotations, "created_at", "total_amount", months, status=QuotationStatus.COMPLETED),
        quotations.rows(
            "created_at", "updated_at",
            status__in=[QuotationStatus.COMPLETED, QuotationStatus.REJECTED],
        ),
    )

    revenue = summarize(row["total_amount"] for row in completed_rows)
    revenue_stats = {}
    if revenue is not None:
        revenue_stats = RevenueStats(
            total_revenue=revenue.total,
            avg_quotation_value=revenue.average,
            max_quotation_value=revenue.maximum,
            min_quotation_value=revenue.minimum,
        )

    return QuotationReport(
        overview=QuotationOverview(
            total_quotations=total,
            pending_quotations=pending,
            processing_quotations=processing,
            completed_quotations=completed,
            rejected_quotations=rejected,
            recent_quotations=recent,
        ),
        revenue_stats=revenue_stats,
        category_stats=_category_breakdown(
            group_by_key(category_rows, "product_category"), lambda row: row["total_amount"]
        ),
        monthly_trends=[
            MonthlyRevenue(month=w.label, count=count, revenue=amount)
            for w, count, amount in zip(months, monthly_counts, monthly_revenue)
        ],
        response_time_stats=_response_time_stats(answered_rows),
    )


@report_generator("reservation")
async def generate_reservation_report(
    readers: ReportReaders,
    period: int = DEFAULT_PERIOD_DAYS,
    now: Optional[datetime.datetime] = None,
) -> ReservationReport:
    """Generates the reservation report, the reservation analogue of the quotation report."""
    now = now or utc_now()
    reservations = readers.reservations
    months = month_windows(TREND_MONTHS, now)
    (
        total, pending, confirmed, completed, cancelled, recent,
        monthly_counts, customers, statuses, handled_rows,
    ) = await gather_all(
        reservations.count(),
        reservations.count(status=ReservationStatus.PENDING),
        reservations.count(status=ReservationStatus.CONFIRMED),
        reservations.count(status=ReservationStatus.COMPLETED),
        reservations.count(status=ReservationStatus.CANCELLED),
        count_recent(reservations, period, now),
        count_per_window(reservations, "created_at", months),
        reservations.group_count("email"),
        reservations.group_count("status"),
        reservations.rows(
            "created_at", "updated_at",
            status__in=[
                ReservationStatus.CONFIRMED,
                ReservationStatus.COMPLETED,
                ReservationStatus.CANCELLED,
            ],
        ),
    )

    return ReservationReport(
        overview=ReservationOverview(
            total_reservations=total,
            pending_reservations=pending,
            confirmed_reservations=confirmed,
            completed_reservations=completed,
            cancelled_reservations=cancelled,
            recent_reservations=recent,
        ),
        monthly_trends=[MonthlyCount(month=w.label, count=count) for w, count in zip(months, monthly_counts)],
        top_customers=[
            CustomerReservations(email=row["email"], reservation_count=row["count"])
            for row in rank_counts(customers, "email", limit=TOP_CUSTOMERS_LIMIT)
        ],
        status_distribution=[
            StatusCount(status=row["status"], count=row["count"]) for row in rank_counts(statuses, "status")
        ],
        response_time_stats=_response_time_stats(handled_rows),
    )


@report_generator("dashboard")
async def generate_dashboard_overview(
    readers: ReportReaders, now: Optional[datetime.datetime] = None
) -> DashboardReport:
    """
    Generates the dashboard overview.

    Every figure is fetched concurrently; there is no ordering between the
    reads, so the overview is consistent only up to each read's own time.
    """
    now = now or utc_now()
    (
        products, suppliers, users, quotations, reservations,
        low_stock, pending_quotations, pending_reservations,
        recent_quotations, recent_reservations, completed_rows,
    ) = await gather_all(
        readers.products.count(is_active=True),
        readers.suppliers.count(is_active=True),
        readers.users.count(),
        readers.quotations.count(),
        readers.reservations.count(),
        readers.products.count(is_active=True, stock__lte=F("min_stock")),
        readers.quotations.count(status=QuotationStatus.PENDING),
        readers.reservations.count(status=ReservationStatus.PENDING),
        count_recent(readers.quotations, DASHBOARD_RECENT_DAYS, now),
        count_recent(readers.reservations, DASHBOARD_RECENT_DAYS, now),
        readers.quotations.rows("total_amount", status=QuotationStatus.COMPLETED),
    )

    return DashboardReport(
        overview=DashboardOverview(
            total_products=products,
            total_suppliers=suppliers,
            total_users=users,
            total_quotations=quotations,
            total_reservations=reservations,
            total_revenue=float(sum(row["total_amount"] for row in completed_rows)),
        ),
        alerts=DashboardAlerts(
            low_stock_products=low_stock,
            pending_quotations=pending_quotations,
            pending_reservations=pending_reservations,
        ),
        recent_activity=RecentActivity(
            recent_quotations=recent_quotations,
            recent_reservations=recent_reservations,
        ),
    )
