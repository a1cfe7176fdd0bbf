"""Data models for the GuardMoGo fraud-reporting service."""

from .api_models import (
    ReportRequest,
    ReportResponse,
    ReportCreatedResponse,
    NumberCheckResponse,
    NumberRecordResponse,
    DashboardStatsResponse,
    CommentRequest,
    CommentResponse,
    ErrorResponse
)
from .internal_models import (
    Report,
    NumberRecord,
    UserProfile,
    Comment,
    NumberCheckResult,
    DashboardStats,
    ProfileCounterUpdate,
    CurrentUser,
    AuthSession
)

__all__ = [
    "ReportRequest",
    "ReportResponse",
    "ReportCreatedResponse",
    "NumberCheckResponse",
    "NumberRecordResponse",
    "DashboardStatsResponse",
    "CommentRequest",
    "CommentResponse",
    "ErrorResponse",
    "Report",
    "NumberRecord",
    "UserProfile",
    "Comment",
    "NumberCheckResult",
    "DashboardStats",
    "ProfileCounterUpdate",
    "CurrentUser",
    "AuthSession"
]
