"""
Storage contracts shared by the Supabase and in-memory backends.

The service layer only talks to these interfaces, so the hosted store can
be swapped for the in-memory one in local runs and tests.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from guardmogo.models.internal_models import Comment, NumberRecord, Report, UserProfile

# Fields a report listing may be ordered by
REPORT_ORDER_FIELDS = ("createdAt", "updatedAt", "commentsCount", "upvotes", "downvotes")


class StoreError(Exception):
    """Base exception for storage backend errors."""
    pass


class RecordNotFoundError(StoreError):
    """Raised when a write targets a document that does not exist."""
    pass


class ReportRepository(ABC):
    """Append-only collection of fraud reports."""

    @abstractmethod
    async def get_report(self, report_id: str) -> Optional[Report]:
        pass

    @abstractmethod
    async def list_reports(self, limit: int = 50, order_by: str = "createdAt", descending: bool = True) -> List[Report]:
        pass

    @abstractmethod
    async def list_by_number(self, number: str) -> List[Report]:
        """All reports filed against a normalized number, in no particular order."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str, limit: int = 50) -> List[Report]:
        pass

    @abstractmethod
    async def count_reports(self, status: Optional[str] = None) -> int:
        pass


class NumberRepository(ABC):
    """Per-number aggregate records keyed by normalized number."""

    @abstractmethod
    async def get_number(self, number: str) -> Optional[NumberRecord]:
        pass

    @abstractmethod
    async def top_numbers(self, limit: int = 10) -> List[NumberRecord]:
        """Number records ordered by report count, highest first."""
        pass

    @abstractmethod
    async def count_numbers(self) -> int:
        pass

    @abstractmethod
    async def replace_number(self, record: NumberRecord) -> NumberRecord:
        """Overwrite (or create) the record for ``record.number``."""
        pass


class ProfileRepository(ABC):
    """User profiles keyed by identity provider account ID."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    async def create_profile(self, profile: UserProfile) -> UserProfile:
        pass

    @abstractmethod
    async def ensure_profile(self, profile: UserProfile) -> UserProfile:
        """Create the profile unless one already exists; return the stored one."""
        pass

    @abstractmethod
    async def increment_reports_count(self, user_id: str) -> int:
        """Add one to the profile's report counter and return the new value."""
        pass


class CommentRepository(ABC):

    @abstractmethod
    async def list_by_report(self, report_id: str) -> List[Comment]:
        pass


class Database(ABC):
    """Entry point to every repository plus the multi-document writes."""

    reports: ReportRepository
    numbers: NumberRepository
    profiles: ProfileRepository
    comments: CommentRepository

    @abstractmethod
    async def submit_report(self, report: Report) -> Report:
        """
        Store a report and fold it into its number record as one atomic write.

        Either both the report and the number record change or neither does.
        Returns the stored report with its generated ID.
        """
        pass

    @abstractmethod
    async def add_comment(self, comment: Comment) -> Comment:
        """Store a comment and bump the report's comment counter atomically."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass
