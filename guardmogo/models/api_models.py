"""Pydantic models for API requests and responses."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .internal_models import (
    Comment,
    CurrentUser,
    DashboardStats,
    NumberCheckResult,
    NumberRecord,
    Report,
    UserProfile,
)


class DocumentModel(BaseModel):
    """Stored-document payloads: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportRequest(DocumentModel):
    """Request model for submitting a fraud report."""

    number: str = Field(..., max_length=20, description="Reported MoMo number, local or +233 format")
    carrier: str = Field("MTN", description="MTN, AirtelTigo, Telecel or Other")
    custom_carrier: str = Field("", max_length=100, description="Carrier name when carrier is Other")
    fraud_type: str = Field(..., max_length=200, description="Kind of fraud, e.g. fake reversal")
    description: str = Field(..., max_length=5000, description="What happened")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, json_schema_extra={
        "example": {
            "number": "024 412 3456",
            "carrier": "MTN",
            "customCarrier": "",
            "fraudType": "Fake reversal",
            "description": "Caller claimed to have sent money by mistake and asked for a refund."
        }
    })


class ReportResponse(DocumentModel):
    id: str
    number: str
    carrier: str
    fraud_type: str
    category: str
    description: str
    user_id: Optional[str]
    status: str
    verified: bool
    upvotes: int
    downvotes: int
    comments_count: int
    evidence: List[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_report(cls, report: Report) -> "ReportResponse":
        return cls(
            id=report.id,
            number=report.number,
            carrier=report.carrier,
            fraud_type=report.fraud_type,
            category=report.category,
            description=report.description,
            user_id=report.user_id,
            status=report.status,
            verified=report.verified,
            upvotes=report.upvotes,
            downvotes=report.downvotes,
            comments_count=report.comments_count,
            evidence=report.evidence,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )


class ReportCreatedResponse(BaseModel):
    """Response model for a submitted report."""

    id: str = Field(..., description="Report ID")
    number: str = Field(..., description="Normalized number the report was filed against")
    status: str = Field(..., description="Report status")
    message: str = "Fraud report submitted successfully!"


class NumberRecordResponse(DocumentModel):
    number: str
    reports_count: int
    first_reported_at: Optional[datetime]
    last_reported_at: Optional[datetime]
    report_ids: List[str]
    flagged: bool
    verified: bool

    @classmethod
    def from_record(cls, record: NumberRecord) -> "NumberRecordResponse":
        return cls(
            number=record.number,
            reports_count=record.reports_count,
            first_reported_at=record.first_reported_at,
            last_reported_at=record.last_reported_at,
            report_ids=record.report_ids,
            flagged=record.flagged,
            verified=record.verified,
        )


class NumberCheckResponse(DocumentModel):
    """Response model for a number lookup."""

    number: str = Field(..., description="Normalized number that was searched")
    found: bool = Field(..., description="Whether any report or number record exists")
    flagged: bool = Field(..., description="Whether the number is flagged as fraudulent")
    reports_count: int = Field(..., ge=0)
    first_reported_at: Optional[datetime] = None
    last_reported_at: Optional[datetime] = None
    reports: List[ReportResponse] = Field(default_factory=list, description="Matching reports, newest first")

    @classmethod
    def from_result(cls, result: NumberCheckResult) -> "NumberCheckResponse":
        record = result.record
        return cls(
            number=result.number,
            found=result.found,
            flagged=result.flagged,
            reports_count=result.reports_count,
            first_reported_at=record.first_reported_at if record else None,
            last_reported_at=record.last_reported_at if record else None,
            reports=[ReportResponse.from_report(report) for report in result.reports],
        )


class DashboardStatsResponse(DocumentModel):
    total_reports: int
    total_numbers: int
    active_reports: int
    top_numbers: List[NumberRecordResponse]

    @classmethod
    def from_stats(cls, stats: DashboardStats) -> "DashboardStatsResponse":
        return cls(
            total_reports=stats.total_reports,
            total_numbers=stats.total_numbers,
            active_reports=stats.active_reports,
            top_numbers=[NumberRecordResponse.from_record(record) for record in stats.top_numbers],
        )


class CommentRequest(BaseModel):
    text: str = Field(..., max_length=5000)


class CommentResponse(DocumentModel):
    id: str
    report_id: str
    user_id: Optional[str]
    text: str
    created_at: Optional[datetime]

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            report_id=comment.report_id,
            user_id=comment.user_id,
            text=comment.text,
            created_at=comment.created_at,
        )


class SafetyTip(BaseModel):
    title: str
    body: str


class SignUpRequest(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str


class SignInRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str


class OAuthCallbackRequest(BaseModel):
    """Either a PKCE authorization code or the access token from the redirect."""

    auth_code: Optional[str] = None
    code_verifier: Optional[str] = None
    access_token: Optional[str] = None


class OAuthUrlResponse(BaseModel):
    provider: str
    url: str


class SessionResponse(BaseModel):
    """Tokens returned after a successful sign-in or sign-up."""

    user_id: str
    email: Optional[str]
    access_token: Optional[str]
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


class ProfileResponse(DocumentModel):
    id: str
    email: str
    display_name: str
    first_name: str
    last_name: str
    role: str
    reports_count: int
    created_at: Optional[datetime]

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            email=profile.email,
            display_name=profile.display_name,
            first_name=profile.first_name,
            last_name=profile.last_name,
            role=profile.role,
            reports_count=profile.reports_count,
            created_at=profile.created_at,
        )


class CurrentSessionResponse(BaseModel):
    """Who is signed in; role is "guest" when nobody is."""

    authenticated: bool
    role: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    profile: Optional[ProfileResponse] = None

    @classmethod
    def from_user(cls, user: Optional[CurrentUser]) -> "CurrentSessionResponse":
        if user is None:
            return cls(authenticated=False, role="guest")
        return cls(
            authenticated=True,
            role=user.role,
            user_id=user.id,
            email=user.email,
            profile=ProfileResponse.from_profile(user.profile) if user.profile else None,
        )


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type or category")
    message: str = Field(..., description="Human-readable error message")
    correlation_id: str = Field(..., description="Request correlation ID for tracing")
    timestamp: datetime = Field(..., description="Error timestamp")
    fields: Optional[Dict[str, str]] = Field(None, description="Per-field validation messages")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": "ValidationError",
            "message": "Please fix the errors in the form before submitting",
            "correlation_id": "req_123456789",
            "timestamp": "2024-01-01T12:00:00Z",
            "fields": {"number": "MoMo number must be 10 digits (e.g., 0244123456)"}
        }
    })
