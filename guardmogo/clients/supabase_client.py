"""Supabase client for database operations."""

import logging
from typing import Any, List, Optional

from supabase import create_client, Client
from postgrest.exceptions import APIError

from ..config import settings
from ..models.internal_models import Comment, NumberRecord, Report, UserProfile
from .base import (
    CommentRepository,
    Database,
    NumberRepository,
    ProfileRepository,
    RecordNotFoundError,
    ReportRepository,
    StoreError,
)

logger = logging.getLogger(__name__)

REPORTS_TABLE = "reports"
NUMBERS_TABLE = "numbers"
PROFILES_TABLE = "users"
COMMENTS_TABLE = "comments"


def _first_row(data: Any) -> Optional[dict]:
    """RPC calls return either a single object or a list of rows."""
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


class SupabaseClient:
    """Client for Supabase database operations."""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None, auth_key: Optional[str] = None):
        """Initialize Supabase client with configuration."""
        self._client: Optional[Client] = None
        self._url = url or settings.supabase_url
        self._key = key or settings.supabase_key
        self._auth_key = auth_key or settings.auth_key or self._key

    @property
    def client(self) -> Client:
        """Get or create the shared Supabase client used for data and admin calls."""
        if self._client is None:
            self._client = create_client(self._url, self._key)
        return self._client

    def new_auth_client(self) -> Client:
        """
        Create a fresh client for one end-user auth flow.

        Signing in on the shared client would make its later queries run with
        that user's token, so each flow gets its own session storage.
        """
        return create_client(self._url, self._auth_key)

    async def health_check(self) -> bool:
        """Check if database connection is healthy."""
        try:
            self.client.table(REPORTS_TABLE).select("id", count="exact").limit(1).execute()
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


class SupabaseReportRepository(ReportRepository):
    """Repository for report database operations."""

    def __init__(self, supabase_client: SupabaseClient):
        """Initialize repository with Supabase client."""
        self.client = supabase_client

    async def get_report(self, report_id: str) -> Optional[Report]:
        try:
            result = self.client.client.table(REPORTS_TABLE).select("*").eq("id", report_id).execute()

            if not result.data:
                return None

            return Report.from_document(result.data[0])

        except APIError as e:
            logger.error(f"Database error retrieving report {report_id}: {e}")
            raise

    async def list_reports(self, limit: int = 50, order_by: str = "createdAt", descending: bool = True) -> List[Report]:
        try:
            result = (
                self.client.client.table(REPORTS_TABLE)
                .select("*")
                .order(order_by, desc=descending)
                .limit(limit)
                .execute()
            )
            return [Report.from_document(row) for row in result.data]

        except APIError as e:
            logger.error(f"Database error listing reports: {e}")
            raise

    async def list_by_number(self, number: str) -> List[Report]:
        try:
            result = self.client.client.table(REPORTS_TABLE).select("*").eq("number", number).execute()
            return [Report.from_document(row) for row in result.data]

        except APIError as e:
            logger.error(f"Database error retrieving reports for number {number}: {e}")
            raise

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[Report]:
        try:
            result = (
                self.client.client.table(REPORTS_TABLE)
                .select("*")
                .eq("userId", user_id)
                .order("createdAt", desc=True)
                .limit(limit)
                .execute()
            )
            return [Report.from_document(row) for row in result.data]

        except APIError as e:
            logger.error(f"Database error retrieving reports for user {user_id}: {e}")
            raise

    async def count_reports(self, status: Optional[str] = None) -> int:
        try:
            query = self.client.client.table(REPORTS_TABLE).select("id", count="exact")
            if status is not None:
                query = query.eq("status", status)
            result = query.limit(1).execute()
            return result.count or 0

        except APIError as e:
            logger.error(f"Database error counting reports: {e}")
            raise


class SupabaseNumberRepository(NumberRepository):
    """Repository for number record database operations."""

    def __init__(self, supabase_client: SupabaseClient):
        self.client = supabase_client

    async def get_number(self, number: str) -> Optional[NumberRecord]:
        try:
            result = self.client.client.table(NUMBERS_TABLE).select("*").eq("number", number).execute()

            if not result.data:
                return None

            return NumberRecord.from_document(result.data[0])

        except APIError as e:
            logger.error(f"Database error retrieving number {number}: {e}")
            raise

    async def top_numbers(self, limit: int = 10) -> List[NumberRecord]:
        try:
            result = (
                self.client.client.table(NUMBERS_TABLE)
                .select("*")
                .order("reportsCount", desc=True)
                .limit(limit)
                .execute()
            )
            return [NumberRecord.from_document(row) for row in result.data]

        except APIError as e:
            logger.error(f"Database error fetching top numbers: {e}")
            raise

    async def count_numbers(self) -> int:
        try:
            result = self.client.client.table(NUMBERS_TABLE).select("number", count="exact").limit(1).execute()
            return result.count or 0

        except APIError as e:
            logger.error(f"Database error counting numbers: {e}")
            raise

    async def replace_number(self, record: NumberRecord) -> NumberRecord:
        try:
            result = self.client.client.table(NUMBERS_TABLE).upsert(
                record.to_document(),
                on_conflict="number"
            ).execute()

            if not result.data:
                raise StoreError(f"Failed to write number record {record.number}")

            logger.info(f"Successfully rewrote number record {record.number}")
            return NumberRecord.from_document(result.data[0])

        except APIError as e:
            logger.error(f"Database error writing number record {record.number}: {e}")
            raise


class SupabaseProfileRepository(ProfileRepository):
    """Repository for user profile database operations."""

    def __init__(self, supabase_client: SupabaseClient):
        self.client = supabase_client

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        try:
            result = self.client.client.table(PROFILES_TABLE).select("*").eq("id", user_id).execute()

            if not result.data:
                return None

            return UserProfile.from_document(result.data[0])

        except APIError as e:
            logger.error(f"Database error retrieving profile {user_id}: {e}")
            raise

    async def create_profile(self, profile: UserProfile) -> UserProfile:
        try:
            result = self.client.client.table(PROFILES_TABLE).insert(profile.to_document()).execute()

            if not result.data:
                raise StoreError(f"Failed to create profile {profile.id}")

            logger.info(f"Successfully created profile {profile.id}")
            return UserProfile.from_document(result.data[0])

        except APIError as e:
            logger.error(f"Database error creating profile {profile.id}: {e}")
            raise

    async def ensure_profile(self, profile: UserProfile) -> UserProfile:
        try:
            self.client.client.table(PROFILES_TABLE).upsert(
                profile.to_document(),
                on_conflict="id",
                ignore_duplicates=True
            ).execute()

            stored = await self.get_profile(profile.id)
            return stored or profile

        except APIError as e:
            logger.error(f"Database error ensuring profile {profile.id}: {e}")
            raise

    async def increment_reports_count(self, user_id: str) -> int:
        try:
            result = self.client.client.rpc(
                "increment_profile_reports",
                {"profile_id": user_id}
            ).execute()

            if result.data is None:
                raise RecordNotFoundError(f"Profile {user_id} not found")

            return int(result.data)

        except APIError as e:
            logger.error(f"Database error incrementing report count for {user_id}: {e}")
            raise


class SupabaseCommentRepository(CommentRepository):
    """Repository for comment database operations."""

    def __init__(self, supabase_client: SupabaseClient):
        self.client = supabase_client

    async def list_by_report(self, report_id: str) -> List[Comment]:
        try:
            result = (
                self.client.client.table(COMMENTS_TABLE)
                .select("*")
                .eq("reportId", report_id)
                .order("createdAt", desc=True)
                .execute()
            )
            return [Comment.from_document(row) for row in result.data]

        except APIError as e:
            logger.error(f"Database error retrieving comments for report {report_id}: {e}")
            raise


class DatabaseManager(Database):
    """High-level database manager that coordinates repositories."""

    def __init__(self, supabase_client: Optional[SupabaseClient] = None):
        """Initialize database manager with client and repositories."""
        self.client = supabase_client or SupabaseClient()
        self.reports = SupabaseReportRepository(self.client)
        self.numbers = SupabaseNumberRepository(self.client)
        self.profiles = SupabaseProfileRepository(self.client)
        self.comments = SupabaseCommentRepository(self.client)

    async def health_check(self) -> bool:
        """Check overall database health."""
        return await self.client.health_check()

    async def submit_report(self, report: Report) -> Report:
        """Insert the report and upsert its number record in one Postgres transaction."""
        try:
            document = report.to_document()
            document.pop("id", None)

            result = self.client.client.rpc("submit_report", {"report": document}).execute()

            row = _first_row(result.data)
            if not row:
                raise StoreError("Failed to create report")

            created = Report.from_document(row)
            logger.info(f"Successfully created report {created.id} for number {created.number}")
            return created

        except APIError as e:
            logger.error(f"Database error creating report for number {report.number}: {e}")
            raise

    async def add_comment(self, comment: Comment) -> Comment:
        try:
            document = comment.to_document()
            document.pop("id", None)

            result = self.client.client.rpc("add_comment", {"comment": document}).execute()

            row = _first_row(result.data)
            if not row:
                raise RecordNotFoundError(f"Report {comment.report_id} not found")

            created = Comment.from_document(row)
            logger.info(f"Successfully added comment {created.id} to report {comment.report_id}")
            return created

        except APIError as e:
            logger.error(f"Database error adding comment to report {comment.report_id}: {e}")
            raise
