"""
Number lookup and aggregation endpoints.
"""

import time
from typing import List

import structlog
from fastapi import APIRouter, Depends, Query, Request

from guardmogo.api.dependencies import api_error, get_admin_user, get_correlation_id, report_service
from guardmogo.content import SAFETY_TIPS
from guardmogo.models.api_models import (
    DashboardStatsResponse,
    NumberCheckResponse,
    NumberRecordResponse,
    SafetyTip,
)
from guardmogo.models.internal_models import CurrentUser
from guardmogo.observability import trace_function, record_lookup_metrics
from guardmogo.services.report_service import ReportService

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1", tags=["numbers"])


@router.get("/numbers/check", response_model=NumberCheckResponse)
@trace_function("number_lookup_endpoint")
async def check_number(
    http_request: Request,
    number: str = Query(..., max_length=30, description="MoMo number in any common format"),
    service: ReportService = Depends(report_service)
) -> NumberCheckResponse:
    """
    Check whether a MoMo number has been reported.

    Returns every matching report newest first, or a clean verdict when
    the number has never been reported.
    """
    correlation_id = get_correlation_id(http_request)
    start_time = time.time()

    result = await service.check_number(number)

    record_lookup_metrics(flagged=result.flagged, processing_time=time.time() - start_time)
    logger.info(
        "Number checked",
        number=result.number,
        found=result.found,
        reports_count=result.reports_count,
        correlation_id=correlation_id
    )

    return NumberCheckResponse.from_result(result)


@router.get("/numbers/top", response_model=List[NumberRecordResponse])
async def top_numbers(
    limit: int = Query(10, ge=1, le=100),
    service: ReportService = Depends(report_service)
) -> List[NumberRecordResponse]:
    """Most reported numbers, highest count first."""
    records = await service.get_top_reported_numbers(limit)
    return [NumberRecordResponse.from_record(record) for record in records]


@router.post("/numbers/{number}/reconcile", response_model=NumberRecordResponse)
async def reconcile_number(
    number: str,
    http_request: Request,
    admin: CurrentUser = Depends(get_admin_user),
    service: ReportService = Depends(report_service)
) -> NumberRecordResponse:
    """Rebuild a number record from its reports (administrators only)."""
    correlation_id = get_correlation_id(http_request)

    record = await service.reconcile_number(number)
    if record is None:
        raise api_error(404, "NumberNotFound", "No reports exist for this number.", correlation_id)

    logger.info(
        "Number reconciled",
        number=record.number,
        reports_count=record.reports_count,
        admin_id=admin.id,
        correlation_id=correlation_id
    )
    return NumberRecordResponse.from_record(record)


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(service: ReportService = Depends(report_service)) -> DashboardStatsResponse:
    """Report and number totals, recomputed on every request."""
    stats = await service.get_dashboard_stats()
    return DashboardStatsResponse.from_stats(stats)


@router.get("/safety-tips", response_model=List[SafetyTip])
async def safety_tips() -> List[SafetyTip]:
    return [SafetyTip(**tip) for tip in SAFETY_TIPS]
