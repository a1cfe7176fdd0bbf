"""
Report API endpoints: submission, listings, comments and per-user history.
"""

import time
from typing import List

import structlog
from fastapi import APIRouter, Depends, Query, Request

from guardmogo.api.dependencies import (
    api_error,
    get_correlation_id,
    get_current_user,
    report_service,
)
from guardmogo.models.api_models import (
    CommentRequest,
    CommentResponse,
    ProfileResponse,
    ReportCreatedResponse,
    ReportRequest,
    ReportResponse,
)
from guardmogo.models.internal_models import CurrentUser
from guardmogo.observability import trace_function, record_report_metrics
from guardmogo.services.report_service import (
    ReportNotFoundError,
    ReportService,
    ReportSubmissionError,
)
from guardmogo.utils.validation import ValidationError

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1", tags=["reports"])


@router.post("/reports", response_model=ReportCreatedResponse, status_code=201)
@trace_function("report_submission_endpoint")
async def submit_report(
    request: ReportRequest,
    http_request: Request,
    user: CurrentUser = Depends(get_current_user),
    service: ReportService = Depends(report_service)
) -> ReportCreatedResponse:
    """
    Submit a fraud report for a MoMo number.

    The number is normalized, every field is validated, and the report and
    its number record are stored together. The reporter's counter is
    updated in the background.
    """
    correlation_id = get_correlation_id(http_request)
    start_time = time.time()

    logger.info(
        "Report submission received",
        number=request.number,
        carrier=request.carrier,
        user_id=user.id,
        correlation_id=correlation_id
    )

    try:
        result = await service.create_report(
            number=request.number,
            carrier=request.carrier,
            custom_carrier=request.custom_carrier,
            fraud_type=request.fraud_type,
            description=request.description,
            user_id=user.id
        )

    except ValidationError as e:
        logger.info("Report submission rejected", fields=sorted(e.errors), correlation_id=correlation_id)
        raise api_error(
            422,
            "ValidationError",
            "Please fix the errors in the form before submitting",
            correlation_id,
            fields=e.errors
        )

    except ReportSubmissionError as e:
        record_report_metrics(success=False, processing_time=time.time() - start_time, carrier=request.carrier)
        logger.error("Report submission failed", error=str(e.__cause__ or e), correlation_id=correlation_id)
        raise api_error(500, "ReportSubmissionError", str(e), correlation_id)

    record_report_metrics(success=True, processing_time=time.time() - start_time, carrier=request.carrier)

    logger.info(
        "Report submitted",
        report_id=result.report.id,
        number=result.report.number,
        correlation_id=correlation_id
    )

    return ReportCreatedResponse(id=result.report.id, number=result.report.number, status=result.report.status)


@router.get("/reports", response_model=List[ReportResponse])
async def list_reports(
    limit: int = Query(50, ge=1, le=200),
    order_by: str = Query("createdAt"),
    direction: str = Query("desc"),
    service: ReportService = Depends(report_service)
) -> List[ReportResponse]:
    """Latest reports, newest first by default."""
    reports = await service.get_reports(limit=limit, order_by=order_by, direction=direction)
    return [ReportResponse.from_report(report) for report in reports]


@router.get("/reports/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    http_request: Request,
    service: ReportService = Depends(report_service)
) -> ReportResponse:
    try:
        report = await service.get_report(report_id)
    except ReportNotFoundError as e:
        raise api_error(404, "ReportNotFound", str(e), get_correlation_id(http_request))
    return ReportResponse.from_report(report)


@router.get("/reports/{report_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    report_id: str,
    service: ReportService = Depends(report_service)
) -> List[CommentResponse]:
    comments = await service.get_comments(report_id)
    return [CommentResponse.from_comment(comment) for comment in comments]


@router.post("/reports/{report_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    report_id: str,
    request: CommentRequest,
    http_request: Request,
    user: CurrentUser = Depends(get_current_user),
    service: ReportService = Depends(report_service)
) -> CommentResponse:
    correlation_id = get_correlation_id(http_request)

    try:
        comment = await service.add_comment(report_id, user.id, request.text)
    except ReportNotFoundError as e:
        raise api_error(404, "ReportNotFound", str(e), correlation_id)

    logger.info("Comment added", report_id=report_id, comment_id=comment.id, correlation_id=correlation_id)
    return CommentResponse.from_comment(comment)


@router.get("/users/me", response_model=ProfileResponse)
async def get_my_profile(
    http_request: Request,
    user: CurrentUser = Depends(get_current_user)
) -> ProfileResponse:
    if user.profile is None:
        raise api_error(404, "ProfileNotFound", "No profile found for this account.", get_correlation_id(http_request))
    return ProfileResponse.from_profile(user.profile)


@router.get("/users/me/reports", response_model=List[ReportResponse])
async def get_my_reports(
    limit: int = Query(50, ge=1, le=200),
    user: CurrentUser = Depends(get_current_user),
    service: ReportService = Depends(report_service)
) -> List[ReportResponse]:
    """Reports submitted by the signed-in user, newest first."""
    reports = await service.get_user_reports(user.id, limit)
    return [ReportResponse.from_report(report) for report in reports]
