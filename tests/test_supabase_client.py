"""
Tests for the Supabase storage backend, with the Supabase client mocked out.
"""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import pytest
from postgrest.exceptions import APIError

from guardmogo.clients.base import RecordNotFoundError, StoreError
from guardmogo.clients.supabase_client import DatabaseManager, SupabaseClient
from guardmogo.models.internal_models import Comment, NumberRecord, Report

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

REPORT_ROW = {
    "id": "r1",
    "number": "0244123456",
    "carrier": "MTN",
    "fraudType": "Fake reversal",
    "category": "Fake reversal",
    "description": "Caller asked for a refund of money never sent.",
    "userId": "user-1",
    "status": "active",
    "verified": True,
    "upvotes": 0,
    "downvotes": 0,
    "commentsCount": 0,
    "evidence": [],
    "createdAt": "2024-03-01T09:00:00+00:00",
    "updatedAt": "2024-03-01T09:00:00+00:00",
}


class TestSupabaseBackend:
    """Test cases for the Supabase repositories and DatabaseManager."""

    @pytest.fixture
    def mock_client(self):
        return MagicMock()

    @pytest.fixture
    def db(self, mock_client):
        with patch("guardmogo.clients.supabase_client.create_client", return_value=mock_client) as create:
            manager = DatabaseManager(SupabaseClient(url="https://project.supabase.co", key="service-key"))
            manager.client.client
            create.assert_called_once_with("https://project.supabase.co", "service-key")
        return manager

    @pytest.fixture
    def report(self):
        return Report(
            number="0244123456",
            carrier="MTN",
            fraud_type="Fake reversal",
            description="Caller asked for a refund of money never sent.",
            user_id="user-1",
            created_at=NOW,
            updated_at=NOW,
        )

    class TestSubmitReport:

        @pytest.mark.asyncio
        async def test_submit_calls_transactional_function(self, db, mock_client, report):
            mock_client.rpc.return_value.execute.return_value = Mock(data=[REPORT_ROW])

            stored = await db.submit_report(report)

            name, params = mock_client.rpc.call_args.args
            assert name == "submit_report"
            assert "id" not in params["report"]
            assert params["report"]["number"] == "0244123456"
            assert params["report"]["fraudType"] == "Fake reversal"
            assert params["report"]["createdAt"] == NOW.isoformat()
            assert stored.id == "r1"
            assert stored.created_at == NOW

        @pytest.mark.asyncio
        async def test_submit_accepts_single_object(self, db, mock_client, report):
            mock_client.rpc.return_value.execute.return_value = Mock(data=REPORT_ROW)
            stored = await db.submit_report(report)
            assert stored.id == "r1"

        @pytest.mark.asyncio
        async def test_submit_without_result_row(self, db, mock_client, report):
            mock_client.rpc.return_value.execute.return_value = Mock(data=[])
            with pytest.raises(StoreError):
                await db.submit_report(report)

        @pytest.mark.asyncio
        async def test_submit_propagates_api_errors(self, db, mock_client, report):
            mock_client.rpc.return_value.execute.side_effect = APIError({"message": "permission denied", "code": "42501"})
            with pytest.raises(APIError):
                await db.submit_report(report)

    class TestQueries:

        @pytest.mark.asyncio
        async def test_get_report(self, db, mock_client):
            query = mock_client.table.return_value.select.return_value.eq.return_value
            query.execute.return_value = Mock(data=[REPORT_ROW])

            report = await db.reports.get_report("r1")

            mock_client.table.assert_called_with("reports")
            mock_client.table.return_value.select.return_value.eq.assert_called_with("id", "r1")
            assert report.fraud_type == "Fake reversal"

        @pytest.mark.asyncio
        async def test_get_missing_report(self, db, mock_client):
            query = mock_client.table.return_value.select.return_value.eq.return_value
            query.execute.return_value = Mock(data=[])
            assert await db.reports.get_report("missing") is None

        @pytest.mark.asyncio
        async def test_list_reports_ordering(self, db, mock_client):
            select = mock_client.table.return_value.select.return_value
            select.order.return_value.limit.return_value.execute.return_value = Mock(data=[REPORT_ROW])

            reports = await db.reports.list_reports(limit=5, order_by="updatedAt", descending=False)

            select.order.assert_called_once_with("updatedAt", desc=False)
            select.order.return_value.limit.assert_called_once_with(5)
            assert len(reports) == 1

        @pytest.mark.asyncio
        async def test_count_reports_by_status(self, db, mock_client):
            select = mock_client.table.return_value.select.return_value
            select.eq.return_value.limit.return_value.execute.return_value = Mock(data=[], count=7)

            assert await db.reports.count_reports(status="active") == 7
            mock_client.table.return_value.select.assert_called_with("id", count="exact")
            select.eq.assert_called_once_with("status", "active")

        @pytest.mark.asyncio
        async def test_get_number(self, db, mock_client):
            query = mock_client.table.return_value.select.return_value.eq.return_value
            query.execute.return_value = Mock(data=[{
                "number": "0244123456",
                "reportsCount": 2,
                "firstReportedAt": "2024-03-01T09:00:00+00:00",
                "lastReportedAt": "2024-03-02T09:00:00+00:00",
                "reportIds": ["r1", "r2"],
                "flagged": True,
                "verified": True,
            }])

            record = await db.numbers.get_number("0244123456")

            mock_client.table.assert_called_with("numbers")
            assert record.reports_count == 2
            assert record.report_ids == ["r1", "r2"]
            assert record.first_reported_at == NOW

        @pytest.mark.asyncio
        async def test_replace_number_upserts_on_number(self, db, mock_client):
            record = NumberRecord(
                number="0244123456",
                reports_count=1,
                first_reported_at=NOW,
                last_reported_at=NOW,
                report_ids=["r1"],
            )
            mock_client.table.return_value.upsert.return_value.execute.return_value = Mock(data=[record.to_document()])

            stored = await db.numbers.replace_number(record)

            mock_client.table.return_value.upsert.assert_called_once_with(record.to_document(), on_conflict="number")
            assert stored == record

        @pytest.mark.asyncio
        async def test_query_errors_propagate(self, db, mock_client):
            query = mock_client.table.return_value.select.return_value.eq.return_value
            query.execute.side_effect = APIError({"message": "timeout", "code": "57014"})
            with pytest.raises(APIError):
                await db.reports.list_by_number("0244123456")

    class TestProfilesAndComments:

        @pytest.mark.asyncio
        async def test_increment_reports_count(self, db, mock_client):
            mock_client.rpc.return_value.execute.return_value = Mock(data=3)

            assert await db.profiles.increment_reports_count("user-1") == 3
            mock_client.rpc.assert_called_once_with("increment_profile_reports", {"profile_id": "user-1"})

        @pytest.mark.asyncio
        async def test_increment_missing_profile(self, db, mock_client):
            mock_client.rpc.return_value.execute.return_value = Mock(data=None)
            with pytest.raises(RecordNotFoundError):
                await db.profiles.increment_reports_count("nobody")

        @pytest.mark.asyncio
        async def test_add_comment(self, db, mock_client):
            mock_client.rpc.return_value.execute.return_value = Mock(data=[{
                "id": "c1",
                "reportId": "r1",
                "userId": "user-2",
                "text": "Me too",
                "createdAt": "2024-03-01T09:00:00+00:00",
            }])

            comment = await db.add_comment(Comment(report_id="r1", user_id="user-2", text="Me too", created_at=NOW))

            name, params = mock_client.rpc.call_args.args
            assert name == "add_comment"
            assert params["comment"]["reportId"] == "r1"
            assert comment.id == "c1"

        @pytest.mark.asyncio
        async def test_add_comment_to_missing_report(self, db, mock_client):
            mock_client.rpc.return_value.execute.return_value = Mock(data=[])
            with pytest.raises(RecordNotFoundError):
                await db.add_comment(Comment(report_id="missing", user_id="user-2", text="Hi", created_at=NOW))

    class TestHealth:

        @pytest.mark.asyncio
        async def test_healthy(self, db, mock_client):
            assert await db.health_check() is True

        @pytest.mark.asyncio
        async def test_unhealthy(self, db, mock_client):
            mock_client.table.side_effect = RuntimeError("connection refused")
            assert await db.health_check() is False

    def test_auth_clients_are_fresh(self):
        with patch("guardmogo.clients.supabase_client.create_client", side_effect=lambda *args: MagicMock()) as create:
            client = SupabaseClient(url="https://project.supabase.co", key="service-key", auth_key="anon-key")

            first = client.new_auth_client()
            second = client.new_auth_client()

        assert first is not second
        create.assert_called_with("https://project.supabase.co", "anon-key")


def test_reports_and_comments_do_not_require_a_profile_row():
    schema = (Path(__file__).resolve().parent.parent / "sql" / "schema.sql").read_text()

    assert "REFERENCES users" not in schema
