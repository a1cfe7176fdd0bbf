"""
Tests for the in-memory storage backend.
"""

from datetime import datetime, timedelta, timezone

import pytest

from guardmogo.clients.base import RecordNotFoundError
from guardmogo.clients.memory_store import InMemoryDatabase
from guardmogo.models.internal_models import Comment, NumberRecord, Report, UserProfile

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_report(number: str = "0244123456", minutes: int = 0, user_id: str = "user-1") -> Report:
    created_at = NOW + timedelta(minutes=minutes)
    return Report(
        number=number,
        carrier="MTN",
        fraud_type="Fake reversal",
        description="Caller asked for a refund of money never sent.",
        user_id=user_id,
        created_at=created_at,
        updated_at=created_at,
    )


@pytest.fixture
def db():
    return InMemoryDatabase()


@pytest.fixture
def profile():
    return UserProfile(id="user-1", email="ama@example.com", display_name="Ama Mensah", created_at=NOW)


class TestReports:

    @pytest.mark.asyncio
    async def test_submit_assigns_id_and_leaves_input_untouched(self, db):
        report = make_report()
        stored = await db.submit_report(report)

        assert stored.id
        assert report.id is None

    @pytest.mark.asyncio
    async def test_reads_return_copies(self, db):
        stored = await db.submit_report(make_report())

        fetched = await db.reports.get_report(stored.id)
        fetched.description = "tampered"

        assert (await db.reports.get_report(stored.id)).description != "tampered"

    @pytest.mark.asyncio
    async def test_list_reports_unknown_order_field(self, db):
        with pytest.raises(ValueError):
            await db.reports.list_reports(order_by="number")

    @pytest.mark.asyncio
    async def test_list_by_user_newest_first(self, db):
        older = await db.submit_report(make_report(minutes=0))
        newer = await db.submit_report(make_report(minutes=5))
        await db.submit_report(make_report(minutes=3, user_id="user-2"))

        reports = await db.reports.list_by_user("user-1")
        assert [r.id for r in reports] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_count_by_status(self, db):
        await db.submit_report(make_report())
        assert await db.reports.count_reports() == 1
        assert await db.reports.count_reports(status="active") == 1
        assert await db.reports.count_reports(status="archived") == 0


class TestNumbers:

    @pytest.mark.asyncio
    async def test_submit_reflags_existing_record(self, db):
        await db.numbers.replace_number(NumberRecord(
            number="0244123456",
            reports_count=1,
            first_reported_at=NOW,
            last_reported_at=NOW,
            report_ids=["legacy"],
            flagged=False,
        ))

        stored = await db.submit_report(make_report(minutes=1))
        record = await db.numbers.get_number("0244123456")

        assert record.flagged is True
        assert record.reports_count == 2
        assert record.report_ids == ["legacy", stored.id]
        assert record.first_reported_at == NOW

    @pytest.mark.asyncio
    async def test_top_numbers(self, db):
        for _ in range(2):
            await db.submit_report(make_report("0551234567"))
        await db.submit_report(make_report("0244123456"))

        top = await db.numbers.top_numbers(limit=5)
        assert [r.number for r in top] == ["0551234567", "0244123456"]
        assert await db.numbers.count_numbers() == 2


class TestProfiles:

    @pytest.mark.asyncio
    async def test_create_profile_twice_fails(self, db, profile):
        await db.profiles.create_profile(profile)
        with pytest.raises(ValueError):
            await db.profiles.create_profile(profile)

    @pytest.mark.asyncio
    async def test_ensure_profile_keeps_existing(self, db, profile):
        await db.profiles.create_profile(profile)
        await db.profiles.increment_reports_count("user-1")

        replacement = UserProfile(id="user-1", email="other@example.com", display_name="Other", created_at=NOW)
        stored = await db.profiles.ensure_profile(replacement)

        assert stored.email == "ama@example.com"
        assert stored.reports_count == 1

    @pytest.mark.asyncio
    async def test_increment_missing_profile(self, db):
        with pytest.raises(RecordNotFoundError):
            await db.profiles.increment_reports_count("nobody")

    @pytest.mark.asyncio
    async def test_increment_returns_new_count(self, db, profile):
        await db.profiles.create_profile(profile)
        assert await db.profiles.increment_reports_count("user-1") == 1
        assert await db.profiles.increment_reports_count("user-1") == 2


class TestComments:

    @pytest.mark.asyncio
    async def test_add_comment_to_missing_report(self, db):
        comment = Comment(report_id="missing", user_id="user-1", text="Hello", created_at=NOW)
        with pytest.raises(RecordNotFoundError):
            await db.add_comment(comment)
        assert await db.comments.list_by_report("missing") == []

    @pytest.mark.asyncio
    async def test_add_comment(self, db):
        report = await db.submit_report(make_report())
        comment = await db.add_comment(Comment(report_id=report.id, user_id="user-2", text="Me too", created_at=NOW))

        assert comment.id
        assert (await db.reports.get_report(report.id)).comments_count == 1
        assert [c.id for c in await db.comments.list_by_report(report.id)] == [comment.id]

    @pytest.mark.asyncio
    async def test_health_check(self, db):
        assert await db.health_check() is True
