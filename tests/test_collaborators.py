"""
Tests for storage, timers, the question bank and notification delivery.
"""

import json
from datetime import datetime, timezone

import httpx
import pytest

from rehearsal.core.clock import ManualClock
from rehearsal.core.notifications import WebhookNotifier
from rehearsal.core.question_bank import StaticQuestionBank
from rehearsal.core.storage import InMemoryStorage, storage_call
from rehearsal.core.timers import ManualTimerBackend, TimerTable
from rehearsal.exceptions import DependencyError
from rehearsal.models.question import QuestionCategory, QuestionType
from rehearsal.models.scheduling import NotificationKind, ReminderNotification
from rehearsal.models.session import SessionConfig


# ============================================================================
# STORAGE
# ============================================================================

class TestInMemoryStorage:

    @pytest.mark.asyncio
    async def test_query_operators(self):
        storage = InMemoryStorage()
        for n in range(5):
            await storage.save_record("items", f"i{n}", {"id": f"i{n}", "n": n, "tag": "even" if n % 2 == 0 else "odd"})

        assert len(await storage.query("items")) == 5
        assert {r["id"] for r in await storage.query("items", {"n": {"$gte": 3}})} == {"i3", "i4"}
        assert {r["id"] for r in await storage.query("items", {"n": {"$gt": 0, "$lt": 2}})} == {"i1"}
        assert {r["id"] for r in await storage.query("items", {"tag": "odd"})} == {"i1", "i3"}
        assert {r["id"] for r in await storage.query("items", {"n": {"$in": [0, 4]}})} == {"i0", "i4"}
        assert len(await storage.query("items", {"tag": {"$ne": "odd"}})) == 3

    @pytest.mark.asyncio
    async def test_unknown_operator(self):
        storage = InMemoryStorage()
        await storage.save_record("items", "a", {"n": 1})
        with pytest.raises(ValueError):
            await storage.query("items", {"n": {"$regex": "1"}})

    @pytest.mark.asyncio
    async def test_records_are_copied(self):
        storage = InMemoryStorage()
        record = {"tags": ["a"]}
        await storage.save_record("items", "a", record)
        record["tags"].append("b")

        loaded = await storage.get_record("items", "a")
        assert loaded == {"tags": ["a"]}
        loaded["tags"].append("c")
        assert await storage.get_record("items", "a") == {"tags": ["a"]}

    @pytest.mark.asyncio
    async def test_delete_record(self):
        storage = InMemoryStorage()
        await storage.save_record("items", "a", {})
        assert await storage.delete_record("items", "a") is True
        assert await storage.delete_record("items", "a") is False

    @pytest.mark.asyncio
    async def test_storage_call_wraps_failures(self):
        async def broken():
            raise OSError("disk full")

        with pytest.raises(DependencyError) as exc_info:
            await storage_call("save", broken())
        assert exc_info.value.retryable is True


# ============================================================================
# TIMERS
# ============================================================================

class TestTimerTable:

    @pytest.fixture
    def backend(self) -> ManualTimerBackend:
        return ManualTimerBackend(ManualClock())

    @pytest.mark.asyncio
    async def test_fires_in_due_order(self, backend):
        table = TimerTable(backend)
        fired = []

        async def record(name):
            fired.append((name, backend.now()))

        table.arm("s1", "late", 120, lambda: record("late"))
        table.arm("s2", "early", 60, lambda: record("early"))

        await backend.advance(minutes=5)

        assert [name for name, _ in fired] == ["early", "late"]
        assert (fired[1][1] - fired[0][1]).total_seconds() == 60
        assert table.pending() == []

    @pytest.mark.asyncio
    async def test_cancel_all_for_owner(self, backend):
        table = TimerTable(backend)
        fired = []

        async def record():
            fired.append(True)

        table.arm("s1", "a", 10, record)
        table.arm("s1", "b", 20, record)
        table.arm("s2", "a", 30, record)

        assert table.cancel_all("s1") == 2
        await backend.advance(minutes=1)
        assert len(fired) == 1

    @pytest.mark.asyncio
    async def test_rearming_replaces_timer(self, backend):
        table = TimerTable(backend)
        fired = []

        async def record():
            fired.append(backend.now())

        table.arm("s1", "limit", 10, record)
        table.arm("s1", "limit", 30, record)
        await backend.advance(minutes=1)

        assert len(fired) == 1
        assert backend.pending_count == 0

    @pytest.mark.asyncio
    async def test_callback_errors_are_contained(self, backend):
        table = TimerTable(backend)
        fired = []

        async def broken():
            raise RuntimeError("boom")

        async def record():
            fired.append(True)

        table.arm("s1", "a", 10, broken)
        table.arm("s1", "b", 20, record)
        await backend.advance(seconds=30)

        assert fired == [True]


# ============================================================================
# QUESTION BANK
# ============================================================================

class TestStaticQuestionBank:

    @pytest.mark.asyncio
    async def test_interleaves_categories(self):
        bank = StaticQuestionBank()
        config = SessionConfig(question_categories=["teamwork", "problem-solving"])

        questions = await bank.get_questions(config, 4)

        assert [q.category for q in questions] == [
            QuestionCategory.TEAMWORK,
            QuestionCategory.PROBLEM_SOLVING,
            QuestionCategory.TEAMWORK,
            QuestionCategory.PROBLEM_SOLVING,
        ]
        assert len({q.id for q in questions}) == 4

    @pytest.mark.asyncio
    async def test_runs_dry(self):
        bank = StaticQuestionBank()
        config = SessionConfig(question_categories=["teamwork"])
        assert len(await bank.get_questions(config, 10)) == 2

    @pytest.mark.asyncio
    async def test_skill_substitution(self):
        bank = StaticQuestionBank()
        config = SessionConfig(question_categories=["technical-skills"], focus_areas=["Python"])

        questions = await bank.get_questions(config, 3, context={"skills": ["Go"]})

        debug = next(q for q in questions if "debug" in q.text)
        assert "Go application" in debug.text
        assert "{skill}" not in debug.text
        assert debug.type == QuestionType.TECHNICAL
        assert debug.details.skills == ["Go"]


# ============================================================================
# WEBHOOK NOTIFIER
# ============================================================================

def reminder() -> ReminderNotification:
    return ReminderNotification(
        user_id="user-1",
        kind=NotificationKind.UPCOMING,
        title="Interview Practice Reminder",
        message="Your practice session starts in 15 minutes",
        due_at=datetime(2024, 1, 1, 9, 45, tzinfo=timezone.utc),
    )


class TestWebhookNotifier:

    @pytest.mark.asyncio
    async def test_posts_notification_json(self):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(204)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        notifier = WebhookNotifier("https://hooks.example/notify", client=client)

        await notifier.send(reminder())
        await notifier.close()

        assert received[0]["title"] == "Interview Practice Reminder"
        assert received[0]["kind"] == "upcoming"
        assert received[0]["priority"] == "medium"

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        notifier = WebhookNotifier("https://hooks.example/notify", client=client)

        with pytest.raises(httpx.HTTPStatusError):
            await notifier.send(reminder())
        await notifier.close()

    @pytest.mark.asyncio
    async def test_bearer_token_header(self):
        notifier = WebhookNotifier("https://hooks.example/notify", token="secret")
        assert notifier.client.headers["Authorization"] == "Bearer secret"
        await notifier.close()
