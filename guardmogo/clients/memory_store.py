"""
In-process storage backend.

Keeps every collection in dictionaries guarded by a single asyncio lock.
Used for local runs (STORE_BACKEND=memory) and by the test suite; it honours
the same atomicity contract as the Supabase functions.
"""

import asyncio
import copy
import logging
from typing import Dict, List, Optional
from uuid import uuid4

from ..models.internal_models import (
    Comment,
    NumberRecord,
    Report,
    UserProfile,
    sort_newest_first,
)
from .base import (
    CommentRepository,
    Database,
    NumberRepository,
    ProfileRepository,
    RecordNotFoundError,
    ReportRepository,
)

logger = logging.getLogger(__name__)

_SORT_ATTRIBUTES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "commentsCount": "comments_count",
    "upvotes": "upvotes",
    "downvotes": "downvotes",
}


class _State:
    """Collections shared by the in-memory repositories."""

    def __init__(self):
        self.lock = asyncio.Lock()
        self.reports: Dict[str, Report] = {}
        self.numbers: Dict[str, NumberRecord] = {}
        self.profiles: Dict[str, UserProfile] = {}
        self.comments: Dict[str, Comment] = {}


class InMemoryReportRepository(ReportRepository):

    def __init__(self, state: _State):
        self._state = state

    async def get_report(self, report_id: str) -> Optional[Report]:
        report = self._state.reports.get(report_id)
        return copy.deepcopy(report)

    async def list_reports(self, limit: int = 50, order_by: str = "createdAt", descending: bool = True) -> List[Report]:
        attribute = _SORT_ATTRIBUTES.get(order_by)
        if attribute is None:
            raise ValueError(f"Cannot order reports by {order_by!r}")

        reports = [report for report in self._state.reports.values() if getattr(report, attribute) is not None]
        reports.sort(key=lambda report: getattr(report, attribute), reverse=descending)
        return copy.deepcopy(reports[:limit])

    async def list_by_number(self, number: str) -> List[Report]:
        return copy.deepcopy([r for r in self._state.reports.values() if r.number == number])

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[Report]:
        reports = [r for r in self._state.reports.values() if r.user_id == user_id]
        return copy.deepcopy(sort_newest_first(reports)[:limit])

    async def count_reports(self, status: Optional[str] = None) -> int:
        if status is None:
            return len(self._state.reports)
        return sum(1 for report in self._state.reports.values() if report.status == status)


class InMemoryNumberRepository(NumberRepository):

    def __init__(self, state: _State):
        self._state = state

    async def get_number(self, number: str) -> Optional[NumberRecord]:
        return copy.deepcopy(self._state.numbers.get(number))

    async def top_numbers(self, limit: int = 10) -> List[NumberRecord]:
        records = sorted(self._state.numbers.values(), key=lambda record: record.reports_count, reverse=True)
        return copy.deepcopy(records[:limit])

    async def count_numbers(self) -> int:
        return len(self._state.numbers)

    async def replace_number(self, record: NumberRecord) -> NumberRecord:
        async with self._state.lock:
            self._state.numbers[record.number] = copy.deepcopy(record)
        return copy.deepcopy(record)


class InMemoryProfileRepository(ProfileRepository):

    def __init__(self, state: _State):
        self._state = state

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return copy.deepcopy(self._state.profiles.get(user_id))

    async def create_profile(self, profile: UserProfile) -> UserProfile:
        async with self._state.lock:
            if profile.id in self._state.profiles:
                raise ValueError(f"Profile {profile.id} already exists")
            self._state.profiles[profile.id] = copy.deepcopy(profile)
        return copy.deepcopy(profile)

    async def ensure_profile(self, profile: UserProfile) -> UserProfile:
        async with self._state.lock:
            stored = self._state.profiles.setdefault(profile.id, copy.deepcopy(profile))
        return copy.deepcopy(stored)

    async def increment_reports_count(self, user_id: str) -> int:
        async with self._state.lock:
            profile = self._state.profiles.get(user_id)
            if profile is None:
                raise RecordNotFoundError(f"Profile {user_id} not found")
            profile.reports_count += 1
            return profile.reports_count


class InMemoryCommentRepository(CommentRepository):

    def __init__(self, state: _State):
        self._state = state

    async def list_by_report(self, report_id: str) -> List[Comment]:
        comments = [c for c in self._state.comments.values() if c.report_id == report_id]
        return copy.deepcopy(sort_newest_first(comments))


class InMemoryDatabase(Database):
    """Dictionary-backed database with the same contracts as DatabaseManager."""

    def __init__(self):
        self._state = _State()
        self.reports = InMemoryReportRepository(self._state)
        self.numbers = InMemoryNumberRepository(self._state)
        self.profiles = InMemoryProfileRepository(self._state)
        self.comments = InMemoryCommentRepository(self._state)

    async def health_check(self) -> bool:
        return True

    async def submit_report(self, report: Report) -> Report:
        stored = copy.deepcopy(report)
        stored.id = uuid4().hex

        async with self._state.lock:
            existing = self._state.numbers.get(stored.number)
            if existing is None:
                record = NumberRecord(
                    number=stored.number,
                    reports_count=1,
                    first_reported_at=stored.created_at,
                    last_reported_at=stored.created_at,
                    report_ids=[stored.id],
                )
            else:
                record = copy.deepcopy(existing)
                record.reports_count += 1
                record.last_reported_at = stored.created_at
                record.report_ids.append(stored.id)
                # Always flagged once reported
                record.flagged = True
                record.verified = True

            self._state.reports[stored.id] = stored
            self._state.numbers[stored.number] = record

        logger.info(f"Stored report {stored.id} for number {stored.number}")
        return copy.deepcopy(stored)

    async def add_comment(self, comment: Comment) -> Comment:
        stored = copy.deepcopy(comment)
        stored.id = uuid4().hex

        async with self._state.lock:
            report = self._state.reports.get(stored.report_id)
            if report is None:
                raise RecordNotFoundError(f"Report {stored.report_id} not found")
            report.comments_count += 1
            self._state.comments[stored.id] = stored

        return copy.deepcopy(stored)
