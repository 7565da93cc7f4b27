"""Reporting API endpoints for the back-office

This module exposes the read-only report endpoints: dashboard overview and
the product, supplier, user, quotation and reservation reports. Access
requires an authenticated user; any role may read reports.

Every report except the dashboard accepts a ``period`` query parameter, the
trailing window in days used for "recent" counts. All report handlers
delegate to service functions that contain the actual aggregation logic."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ..auth.security import get_current_active_user
from . import service as report_service
from .repository import ReportReaders, get_report_readers
from .schemas import (
    DashboardReport, ProductReport, QuotationReport, ReportEnvelope,
    ReportFailure, ReservationReport, SupplierReport, UserReport,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
    # Apply auth dependency to all routes in this router
    dependencies=[Depends(get_current_active_user)],
    responses={500: {"model": ReportFailure, "description": "Report generation failed"}},
)

Readers = Annotated[ReportReaders, Depends(get_report_readers)]
Period = Annotated[
    int,
    Query(ge=0, description="Trailing window in days used for recent counts"),
]


@router.get("/dashboard", response_model=ReportEnvelope[DashboardReport])
async def get_dashboard_overview(readers: Readers):
    data = await report_service.generate_dashboard_overview(readers)
    return ReportEnvelope[DashboardReport](data=data)


@router.get("/products", response_model=ReportEnvelope[ProductReport])
async def get_product_report(readers: Readers, period: Period = report_service.DEFAULT_PERIOD_DAYS):
    data = await report_service.generate_product_report(readers, period=period)
    return ReportEnvelope[ProductReport](data=data)


@router.get("/suppliers", response_model=ReportEnvelope[SupplierReport])
async def get_supplier_report(readers: Readers, period: Period = report_service.DEFAULT_PERIOD_DAYS):
    data = await report_service.generate_supplier_report(readers, period=period)
    return ReportEnvelope[SupplierReport](data=data)


@router.get("/users", response_model=ReportEnvelope[UserReport])
async def get_user_report(readers: Readers, period: Period = report_service.DEFAULT_PERIOD_DAYS):
    data = await report_service.generate_user_report(readers, period=period)
    return ReportEnvelope[UserReport](data=data)


@router.get("/quotations", response_model=ReportEnvelope[QuotationReport])
async def get_quotation_report(readers: Readers, period: Period = report_service.DEFAULT_PERIOD_DAYS):
    data = await report_service.generate_quotation_report(readers, period=period)
    return ReportEnvelope[QuotationReport](data=data)


@router.get("/reservations", response_model=ReportEnvelope[ReservationReport])
async def get_reservation_report(readers: Readers, period: Period = report_service.DEFAULT_PERIOD_DAYS):
    data = await report_service.generate_reservation_report(readers, period=period)
    return ReportEnvelope[ReservationReport](data=data)
