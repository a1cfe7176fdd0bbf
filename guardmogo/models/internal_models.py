"""Internal data models for the GuardMoGo fraud-reporting service."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

REPORT_STATUS_ACTIVE = "active"
ROLES = ("guest", "user", "admin")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept a datetime or an ISO-8601 string as stored by the backend."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def sort_newest_first(items: list) -> list:
    """Order records by ``created_at`` descending; missing timestamps sort last."""
    oldest = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(items, key=lambda item: item.created_at or oldest, reverse=True)


@dataclass
class Report:
    """A single fraud report against a MoMo number."""

    number: str  # Normalized 10-digit local number
    carrier: str
    fraud_type: str
    description: str
    user_id: Optional[str]
    created_at: datetime
    updated_at: datetime
    status: str = REPORT_STATUS_ACTIVE
    verified: bool = True
    upvotes: int = 0
    downvotes: int = 0
    comments_count: int = 0
    evidence: List[str] = field(default_factory=list)
    id: Optional[str] = None  # Store-generated ID

    @property
    def category(self) -> str:
        return self.fraud_type

    def to_document(self) -> Dict[str, Any]:
        document = {
            "number": self.number,
            "carrier": self.carrier,
            "fraudType": self.fraud_type,
            "category": self.category,
            "description": self.description,
            "userId": self.user_id,
            "status": self.status,
            "verified": self.verified,
            "upvotes": self.upvotes,
            "downvotes": self.downvotes,
            "commentsCount": self.comments_count,
            "evidence": list(self.evidence),
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.id is not None:
            document["id"] = self.id
        return document

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Report":
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            number=data["number"],
            carrier=data.get("carrier", ""),
            fraud_type=data.get("fraudType") or data.get("category", ""),
            description=data.get("description", ""),
            user_id=data.get("userId"),
            status=data.get("status", REPORT_STATUS_ACTIVE),
            verified=bool(data.get("verified", True)),
            upvotes=data.get("upvotes", 0),
            downvotes=data.get("downvotes", 0),
            comments_count=data.get("commentsCount", 0),
            evidence=list(data.get("evidence") or []),
            created_at=parse_timestamp(data.get("createdAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
        )


@dataclass
class NumberRecord:
    """Denormalized per-number aggregate of fraud reports."""

    number: str  # Primary key - normalized number
    reports_count: int
    first_reported_at: Optional[datetime]
    last_reported_at: Optional[datetime]
    report_ids: List[str] = field(default_factory=list)
    flagged: bool = True
    verified: bool = True

    def to_document(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "reportsCount": self.reports_count,
            "firstReportedAt": format_timestamp(self.first_reported_at),
            "lastReportedAt": format_timestamp(self.last_reported_at),
            "reportIds": list(self.report_ids),
            "flagged": self.flagged,
            "verified": self.verified,
        }

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "NumberRecord":
        return cls(
            number=data["number"],
            reports_count=data.get("reportsCount", 0),
            first_reported_at=parse_timestamp(data.get("firstReportedAt")),
            last_reported_at=parse_timestamp(data.get("lastReportedAt")),
            report_ids=[str(report_id) for report_id in data.get("reportIds") or []],
            flagged=bool(data.get("flagged", True)),
            verified=bool(data.get("verified", True)),
        )


@dataclass
class UserProfile:
    """Display metadata for a signed-up account."""

    id: str  # Primary key - identity provider account ID
    email: str
    display_name: str
    created_at: datetime
    first_name: str = ""
    last_name: str = ""
    role: str = "user"
    reports_count: int = 0

    def __post_init__(self):
        """Validate role after initialization."""
        if self.role not in ROLES:
            raise ValueError(f"Role must be one of {ROLES}, got {self.role!r}")

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "displayName": self.display_name,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role,
            "createdAt": format_timestamp(self.created_at),
            "reportsCount": self.reports_count,
        }

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=str(data["id"]),
            email=data.get("email") or "",
            display_name=data.get("displayName") or "",
            first_name=data.get("firstName") or "",
            last_name=data.get("lastName") or "",
            role=data.get("role") or "user",
            created_at=parse_timestamp(data.get("createdAt")),
            reports_count=data.get("reportsCount", 0),
        )


@dataclass
class Comment:
    """A comment attached to a report."""

    report_id: str
    user_id: str
    text: str
    created_at: datetime
    id: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        document = {
            "reportId": self.report_id,
            "userId": self.user_id,
            "text": self.text,
            "createdAt": format_timestamp(self.created_at),
        }
        if self.id is not None:
            document["id"] = self.id
        return document

    @classmethod
    def from_document(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            report_id=str(data["reportId"]),
            user_id=data.get("userId"),
            text=data.get("text", ""),
            created_at=parse_timestamp(data.get("createdAt")),
        )


@dataclass
class NumberCheckResult:
    """Verdict of a number lookup."""

    number: str
    found: bool
    flagged: bool
    reports: List[Report] = field(default_factory=list)
    record: Optional[NumberRecord] = None

    @property
    def reports_count(self) -> int:
        return len(self.reports)


@dataclass
class DashboardStats:
    total_reports: int
    total_numbers: int
    active_reports: int
    top_numbers: List[NumberRecord] = field(default_factory=list)


@dataclass
class ProfileCounterUpdate:
    """Outcome of the best-effort profile counter increment after a report."""

    user_id: str
    report_id: str
    success: bool
    error: Optional[str] = None


@dataclass
class CurrentUser:
    """Signed-in account resolved from a bearer token."""

    id: str
    email: Optional[str]
    role: str = "user"
    profile: Optional[UserProfile] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass
class AuthSession:
    """Tokens issued by the identity provider for a signed-in account."""

    user_id: str
    email: Optional[str]
    access_token: Optional[str]
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
