"""Back-office Report Schemas

This module defines the Pydantic models returned by the reporting endpoints.
It includes schemas for:

1. Product reports (stock levels, categories, supplier ranking)
2. Supplier reports (agreements, product coverage, locations)
3. User reports (registrations, login activity)
4. Quotation reports (revenue, categories, monthly trends, response times)
5. Reservation reports (monthly trends, customers, statuses)
6. The dashboard overview

Field names are snake_case in Python and serialized as camelCase. Summary
sections that aggregate over an empty set are rendered as ``{}``."""
import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Rendered for summary sections when nothing matched
EmptyObject = Dict[str, Any]


class ReportModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ReportEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ReportFailure(BaseModel):
    success: bool = False
    message: str


# Shared pieces
class CategoryBreakdown(ReportModel):
    category: Optional[str] = None
    count: int
    total_value: float


class ResponseTimeStats(ReportModel):
    avg_response_time: float = Field(..., description="Milliseconds between creation and last update")
    max_response_time: float
    min_response_time: float


class MonthlyCount(ReportModel):
    month: str = Field(..., description="Calendar month, YYYY-MM")
    count: int


# 1. Product report
class ProductOverview(ReportModel):
    total_products: int
    active_products: int
    low_stock_products: int
    out_of_stock_products: int
    recent_products: int


class StockValueStats(ReportModel):
    total_stock_value: float
    avg_price: float
    max_price: float
    min_price: float


class SupplierInfo(ReportModel):
    public_id: str
    name: str
    location: Optional[str] = None
    is_active: bool
    agreement_start_date: Optional[datetime.datetime] = None
    agreement_end_date: Optional[datetime.datetime] = None


class TopSupplier(ReportModel):
    supplier_id: str
    product_count: int
    total_stock_value: float
    supplier_info: SupplierInfo


class LowStockProduct(ReportModel):
    public_id: str
    sku: str
    name: str
    category: Optional[str] = None
    price: float
    stock: int
    min_stock: int


class OutOfStockProduct(ReportModel):
    public_id: str
    sku: str
    name: str
    category: Optional[str] = None
    price: float
    stock: int
    updated_at: datetime.datetime


class ProductReport(ReportModel):
    overview: ProductOverview
    category_distribution: List[CategoryBreakdown]
    stock_value: Union[StockValueStats, EmptyObject]
    top_suppliers: List[TopSupplier]
    low_stock_products: List[LowStockProduct]
    out_of_stock_products: List[OutOfStockProduct]


# 2. Supplier report
class SupplierOverview(ReportModel):
    total_suppliers: int
    active_suppliers: int
    inactive_suppliers: int
    expired_agreements: int
    expiring_soon: int
    recent_suppliers: int


class SupplierProductStats(TopSupplier):
    avg_price: float


class LocationCount(ReportModel):
    location: Optional[str] = None
    count: int


class SupplierReport(ReportModel):
    overview: SupplierOverview
    supplier_product_stats: List[SupplierProductStats]
    location_distribution: List[LocationCount]


# 3. User report
class UserOverview(ReportModel):
    total_users: int
    admin_users: int
    customer_users: int
    recent_registrations: int
    active_users: int


class DailyRegistrations(ReportModel):
    date: str = Field(..., description="Calendar day, YYYY-MM-DD")
    count: int


class DailyActiveUsers(ReportModel):
    date: str
    active_users: int


class ActivityStats(ReportModel):
    avg_login_count: float
    max_login_count: int
    min_login_count: int
    total_logins: int
    avg_last_login: Optional[datetime.datetime] = None
    max_last_login: Optional[datetime.datetime] = None
    min_last_login: Optional[datetime.datetime] = None


class TopActiveUser(ReportModel):
    public_id: str
    full_name: str
    email: str
    login_count: int
    last_login: Optional[datetime.datetime] = None


class LoginBucketMember(ReportModel):
    name: str
    email: str
    login_count: int


class LoginBucket(ReportModel):
    bucket: Union[int, str] = Field(..., description='Lower bound of the bucket, or "100+"')
    count: int
    users: List[LoginBucketMember]


class UserReport(ReportModel):
    overview: UserOverview
    registration_trends: List[DailyRegistrations]
    activity_stats: Union[ActivityStats, EmptyObject]
    top_active_users: List[TopActiveUser]
    login_distribution: List[LoginBucket]
    activity_trends: List[DailyActiveUsers]


# 4. Quotation report
class QuotationOverview(ReportModel):
    total_quotations: int
    pending_quotations: int
    processing_quotations: int
    completed_quotations: int
    rejected_quotations: int
    recent_quotations: int


class RevenueStats(ReportModel):
    total_revenue: float
    avg_quotation_value: float
    max_quotation_value: float
    min_quotation_value: float


class MonthlyRevenue(MonthlyCount):
    revenue: float


class QuotationReport(ReportModel):
    overview: QuotationOverview
    revenue_stats: Union[RevenueStats, EmptyObject]
    category_stats: List[CategoryBreakdown]
    monthly_trends: List[MonthlyRevenue]
    response_time_stats: Union[ResponseTimeStats, EmptyObject]


# 5. Reservation report
class ReservationOverview(ReportModel):
    total_reservations: int
    pending_reservations: int
    confirmed_reservations: int
    completed_reservations: int
    cancelled_reservations: int
    recent_reservations: int


class CustomerReservations(ReportModel):
    email: str
    reservation_count: int


class StatusCount(ReportModel):
    status: str
    count: int


class ReservationReport(ReportModel):
    overview: ReservationOverview
    monthly_trends: List[MonthlyCount]
    top_customers: List[CustomerReservations]
    status_distribution: List[StatusCount]
    response_time_stats: Union[ResponseTimeStats, EmptyObject]


# 6. Dashboard
class DashboardOverview(ReportModel):
    total_products: int
    total_suppliers: int
    total_users: int
    total_quotations: int
    total_reservations: int
    total_revenue: float


class DashboardAlerts(ReportModel):
    low_stock_products: int
    pending_quotations: int
    pending_reservations: int


class RecentActivity(ReportModel):
    recent_quotations: int
    recent_reservations: int


class DashboardReport(ReportModel):
    overview: DashboardOverview
    alerts: DashboardAlerts
    recent_activity: RecentActivity
