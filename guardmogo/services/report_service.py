"""
Report service for the fraud-reporting workflows.

This module provides the core business logic for:
- Validated report submission with an atomic report/number-record write
- Number lookups that return every matching report, newest first
- Dashboard aggregation, comments and per-user report history
- Rebuilding a number record from its reports
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Set

from guardmogo.clients.base import REPORT_ORDER_FIELDS, Database, RecordNotFoundError
from guardmogo.config import settings
from guardmogo.models.internal_models import (
    REPORT_STATUS_ACTIVE,
    Comment,
    DashboardStats,
    NumberCheckResult,
    NumberRecord,
    ProfileCounterUpdate,
    Report,
    sort_newest_first,
)
from guardmogo.utils.validation import (
    ValidationError,
    normalize_number,
    resolve_carrier,
    validate_comment_text,
    validate_report_fields,
)

logger = logging.getLogger(__name__)

CounterListener = Callable[[ProfileCounterUpdate], None]


class ReportServiceError(Exception):
    """Base exception for report service errors."""
    pass


class AuthenticationRequiredError(ReportServiceError):
    """Raised when a write is attempted without a signed-in user."""
    pass


class ReportNotFoundError(ReportServiceError):
    """Raised when a report ID does not exist."""
    pass


class ReportSubmissionError(ReportServiceError):
    """Raised when the store rejects or fails a report write."""
    pass


class DataAccessError(ReportServiceError):
    """Raised when a read against the store fails."""
    pass


def build_number_record(number: str, reports: List[Report]) -> Optional[NumberRecord]:
    """
    Derive a number record from the reports filed against it.

    The fold is deterministic: reports are visited oldest first, so the ID
    list and timestamps come out the same whatever order the store returns.
    Returns None when there are no reports.
    """
    if not reports:
        return None

    ordered = list(reversed(sort_newest_first(reports)))
    timestamps = [report.created_at for report in ordered if report.created_at is not None]

    return NumberRecord(
        number=number,
        reports_count=len(ordered),
        first_reported_at=timestamps[0] if timestamps else None,
        last_reported_at=timestamps[-1] if timestamps else None,
        report_ids=[report.id for report in ordered],
        flagged=True,
        verified=True,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SubmissionResult:
    """A stored report plus the pending profile counter update."""

    def __init__(self, report: Report, counter_update: "asyncio.Task[ProfileCounterUpdate]"):
        self.report = report
        self.counter_update = counter_update


class ReportService:
    """
    Core service handling report submission, lookups and aggregation.

    Validation lives here rather than in the HTTP layer so that every caller
    goes through the same rules before anything reaches the store.
    """

    def __init__(self, db: Database, clock: Callable[[], datetime] = _utcnow):
        """
        Initialize report service.

        Args:
            db: Storage backend
            clock: Source of creation timestamps
        """
        self.db = db
        self.clock = clock
        self._counter_listeners: List[CounterListener] = []
        self._pending: Set[asyncio.Task] = set()

    def on_counter_update(self, listener: CounterListener) -> Callable[[], None]:
        """
        Subscribe to profile counter outcomes.

        Returns:
            A callable that removes the listener
        """
        self._counter_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._counter_listeners:
                self._counter_listeners.remove(listener)

        return unsubscribe

    async def create_report(
        self,
        number: str,
        carrier: str,
        fraud_type: str,
        description: str,
        user_id: Optional[str],
        custom_carrier: str = "",
    ) -> SubmissionResult:
        """
        Validate and store a fraud report.

        Workflow:
        1. Require a signed-in user and validate every field
        2. Write the report and its number record atomically
        3. Schedule the profile counter increment as a background task

        Raises:
            AuthenticationRequiredError: If no user ID is given
            ValidationError: If any field fails validation
            ReportSubmissionError: If the store write fails
        """
        if not user_id:
            raise AuthenticationRequiredError("You must be signed in to submit a fraud report")

        errors = validate_report_fields(number, carrier, fraud_type, description, custom_carrier)
        if errors:
            logger.info(f"Rejected report submission: {sorted(errors)}")
            raise ValidationError(errors)

        now = self.clock()
        report = Report(
            number=normalize_number(number),
            carrier=resolve_carrier(carrier, custom_carrier),
            fraud_type=fraud_type.strip(),
            description=description.strip(),
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )

        try:
            stored = await self.db.submit_report(report)
        except Exception as e:
            logger.error(f"Failed to store report for number {report.number}: {e}")
            raise ReportSubmissionError("Failed to submit report. Please try again.") from e

        logger.info(f"Report {stored.id} submitted for number {stored.number} by user {user_id}")

        task = asyncio.create_task(self._increment_profile_counter(user_id, stored.id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        return SubmissionResult(report=stored, counter_update=task)

    async def _increment_profile_counter(self, user_id: str, report_id: str) -> ProfileCounterUpdate:
        """Best-effort profile counter update; the outcome goes to listeners, never to the caller."""
        try:
            count = await self.db.profiles.increment_reports_count(user_id)
            outcome = ProfileCounterUpdate(user_id=user_id, report_id=report_id, success=True)
            logger.debug(f"Profile {user_id} now has {count} reports")
        except Exception as e:
            logger.warning(f"Could not update report count for user {user_id}: {e}")
            outcome = ProfileCounterUpdate(user_id=user_id, report_id=report_id, success=False, error=str(e))

        for listener in list(self._counter_listeners):
            try:
                listener(outcome)
            except Exception as listener_error:
                logger.warning(f"Counter listener failed: {listener_error}")

        return outcome

    async def drain(self) -> None:
        """Wait for outstanding profile counter updates."""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    async def check_number(self, number: str) -> NumberCheckResult:
        """
        Look up a MoMo number.

        The report list comes from the report collection itself rather than
        the number record, and a number with reports but no record is still
        flagged.

        Raises:
            ValidationError: If the number is empty
            DataAccessError: If a store read fails
        """
        if not (number or "").strip():
            raise ValidationError({"number": "Please enter a MoMo number"})

        normalized = normalize_number(number)

        try:
            reports = sort_newest_first(await self.db.reports.list_by_number(normalized))
            record = await self.db.numbers.get_number(normalized)
        except Exception as e:
            logger.error(f"Error checking number {normalized}: {e}")
            raise DataAccessError("Failed to check number. Please try again.") from e

        if record is not None:
            return NumberCheckResult(
                number=normalized,
                found=True,
                flagged=record.flagged,
                reports=reports,
                record=record,
            )

        if reports:
            logger.warning(f"Number {normalized} has {len(reports)} reports but no number record")
            return NumberCheckResult(number=normalized, found=True, flagged=True, reports=reports)

        return NumberCheckResult(number=normalized, found=False, flagged=False)

    async def get_report(self, report_id: str) -> Report:
        try:
            report = await self.db.reports.get_report(report_id)
        except Exception as e:
            logger.error(f"Error fetching report {report_id}: {e}")
            raise DataAccessError("Failed to load report. Please try again.") from e

        if report is None:
            raise ReportNotFoundError(f"Report {report_id} not found")
        return report

    async def get_reports(self, limit: int = 50, order_by: str = "createdAt", direction: str = "desc") -> List[Report]:
        if order_by not in REPORT_ORDER_FIELDS:
            raise ValidationError({"order_by": f"Reports can be ordered by: {', '.join(REPORT_ORDER_FIELDS)}"})
        if direction not in ("asc", "desc"):
            raise ValidationError({"direction": "Direction must be 'asc' or 'desc'"})

        try:
            return await self.db.reports.list_reports(limit=limit, order_by=order_by, descending=direction == "desc")
        except Exception as e:
            logger.error(f"Error fetching reports: {e}")
            raise DataAccessError("Failed to load reports. Please try again.") from e

    async def get_user_reports(self, user_id: str, limit: int = 50) -> List[Report]:
        """Reports submitted by one user, newest first."""
        try:
            reports = await self.db.reports.list_by_user(user_id, limit)
        except Exception as e:
            logger.error(f"Error fetching reports for user {user_id}: {e}")
            raise DataAccessError("Failed to load your reports. Please try again.") from e
        return sort_newest_first(reports)

    async def get_top_reported_numbers(self, limit: int = 10) -> List[NumberRecord]:
        try:
            return await self.db.numbers.top_numbers(limit)
        except Exception as e:
            logger.error(f"Error fetching top numbers: {e}")
            raise DataAccessError("Failed to load top reported numbers. Please try again.") from e

    async def get_dashboard_stats(self, top_limit: Optional[int] = None) -> DashboardStats:
        """Exact counts across the report and number collections, computed on every call."""
        if top_limit is None:
            top_limit = settings.dashboard_top_numbers
        try:
            total_reports = await self.db.reports.count_reports()
            total_numbers = await self.db.numbers.count_numbers()
            active_reports = await self.db.reports.count_reports(status=REPORT_STATUS_ACTIVE)
            top_numbers = await self.db.numbers.top_numbers(top_limit)
        except Exception as e:
            logger.error(f"Error fetching dashboard stats: {e}")
            raise DataAccessError("Failed to load dashboard statistics. Please try again.") from e

        return DashboardStats(
            total_reports=total_reports,
            total_numbers=total_numbers,
            active_reports=active_reports,
            top_numbers=top_numbers,
        )

    async def add_comment(self, report_id: str, user_id: Optional[str], text: str) -> Comment:
        """
        Attach a comment to a report.

        Raises:
            AuthenticationRequiredError: If no user ID is given
            ValidationError: If the text is empty or too long
            ReportNotFoundError: If the report does not exist
        """
        if not user_id:
            raise AuthenticationRequiredError("You must be signed in to comment")

        error = validate_comment_text(text)
        if error:
            raise ValidationError({"text": error})

        comment = Comment(report_id=report_id, user_id=user_id, text=text.strip(), created_at=self.clock())

        try:
            stored = await self.db.add_comment(comment)
        except RecordNotFoundError as e:
            raise ReportNotFoundError(f"Report {report_id} not found") from e
        except Exception as e:
            logger.error(f"Error adding comment to report {report_id}: {e}")
            raise DataAccessError("Failed to add comment. Please try again.") from e

        logger.info(f"Comment {stored.id} added to report {report_id} by user {user_id}")
        return stored

    async def get_comments(self, report_id: str) -> List[Comment]:
        try:
            comments = await self.db.comments.list_by_report(report_id)
        except Exception as e:
            logger.error(f"Error fetching comments for report {report_id}: {e}")
            raise DataAccessError("Failed to load comments. Please try again.") from e
        return sort_newest_first(comments)

    async def reconcile_number(self, number: str) -> Optional[NumberRecord]:
        """
        Rebuild a number record from the report collection.

        Returns the rewritten record, or None when the number has no reports
        (an existing record is then left untouched).
        """
        normalized = normalize_number(number)

        try:
            reports = await self.db.reports.list_by_number(normalized)
            record = build_number_record(normalized, reports)
            if record is None:
                logger.info(f"No reports for number {normalized}; nothing to reconcile")
                return None

            previous = await self.db.numbers.get_number(normalized)
            stored = await self.db.numbers.replace_number(record)
        except Exception as e:
            logger.error(f"Error reconciling number {normalized}: {e}")
            raise DataAccessError("Failed to reconcile number. Please try again.") from e

        previous_count = previous.reports_count if previous else 0
        if previous_count != stored.reports_count:
            logger.warning(
                f"Number {normalized} count corrected from {previous_count} to {stored.reports_count}"
            )
        return stored


# Global service instance
_report_service: Optional[ReportService] = None


def create_database() -> Database:
    """Build the storage backend named by STORE_BACKEND."""
    if settings.store_backend == "memory":
        from guardmogo.clients.memory_store import InMemoryDatabase
        logger.warning("Using the in-memory store; data is lost on restart")
        return InMemoryDatabase()

    from guardmogo.clients.supabase_client import DatabaseManager
    return DatabaseManager()


def get_report_service() -> ReportService:
    """
    Get the global report service instance.

    Returns:
        ReportService: The global report service instance
    """
    global _report_service
    if _report_service is None:
        _report_service = ReportService(create_database())
    return _report_service
