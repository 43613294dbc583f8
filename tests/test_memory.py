"""Tests for memory extraction, prompting helpers and the file backends."""

import pytest

from chief_of_staff.agents import (
    TaskCategory,
    build_system_prompt,
    classify_task,
    select_prompt_memories,
)
from chief_of_staff.audit import AuditLogger, create_correlation_id
from chief_of_staff.memory import MemoryManager
from chief_of_staff.models import (
    AuditEventBuilder,
    AuditEventType,
    ChiefOfStaffConfig,
    Memory,
)
from chief_of_staff.storage import (
    AuditStorageInterface,
    InMemoryMemoryStorage,
    JsonLinesAuditStorage,
    JsonMemoryStorage,
    StorageError,
)


class TestClassifyTask:
    @pytest.mark.parametrize("message,expected", [
        ("Pay my electric bill", TaskCategory.FINANCE),
        ("Schedule a meeting with Sam", TaskCategory.CALENDAR),
        ("Jot down an idea", TaskCategory.NOTES),
        ("Draft a reply to my landlord", TaskCategory.EMAIL),
        ("Help me plan next quarter", TaskCategory.STRATEGY),
        ("Hello there", TaskCategory.GENERAL),
    ])
    def test_categories(self, message, expected):
        assert classify_task(message) == expected

    def test_first_match_wins(self):
        # mentions both money and a meeting
        assert classify_task("Budget review meeting") == TaskCategory.FINANCE


class TestSystemPrompt:
    def test_includes_focus_and_action_format(self):
        prompt = build_system_prompt(TaskCategory.FINANCE)

        assert "Current focus: finance" in prompt
        assert "[ACTION:type:riskLevel]" in prompt
        assert "transaction" in prompt
        assert "No specific preferences stored yet." in prompt

    def test_includes_important_memories_only(self):
        memories = [
            Memory(content="I prefer mornings", importance=8),
            Memory(content="Minor detail", importance=2),
        ]
        prompt = build_system_prompt(TaskCategory.CALENDAR, memories)

        assert "- I prefer mornings" in prompt
        assert "Minor detail" not in prompt

    def test_default_prompt_says_everything_waits_for_approval(self):
        prompt = build_system_prompt(TaskCategory.GENERAL, config=ChiefOfStaffConfig())

        assert "Nothing you propose happens until the user approves it" in prompt
        assert "without approval" not in prompt
        assert build_system_prompt(TaskCategory.GENERAL) == prompt

    def test_autonomous_prompt_only_low_risk_runs(self):
        config = ChiefOfStaffConfig(enable_autonomous_actions=True)

        prompt = build_system_prompt(TaskCategory.GENERAL, config=config)

        assert "Low-risk actions run as soon as you propose them" in prompt
        assert "high-risk actions wait for the user's approval" in prompt

    def test_fully_autonomous_prompt_warns_everything_runs(self):
        config = ChiefOfStaffConfig(
            enable_autonomous_actions=True,
            require_approval_for_high_risk=False,
        )

        prompt = build_system_prompt(TaskCategory.GENERAL, config=config)

        assert "Every action you propose runs immediately" in prompt

    def test_memory_selection_is_capped_and_sorted(self):
        memories = [Memory(content=f"fact {i}", importance=5 + i % 5) for i in range(15)]

        selected = select_prompt_memories(memories)

        assert len(selected) == 10
        assert [m.importance for m in selected] == sorted(
            (m.importance for m in selected), reverse=True
        )


class TestMemoryManager:
    @pytest.mark.asyncio
    async def test_extracts_preferences(self):
        storage = InMemoryMemoryStorage()
        manager = MemoryManager(storage)

        memory = await manager.extract("I always pay rent on the 1st")

        assert memory is not None
        assert memory.category.value == "preference"
        assert memory.importance == 5
        assert [m.content for m in await storage.load_memories()] == ["I always pay rent on the 1st"]

    @pytest.mark.asyncio
    async def test_ignores_other_messages(self):
        manager = MemoryManager()
        assert await manager.extract("What is due this week?") is None
        assert manager.memories == []

    @pytest.mark.asyncio
    async def test_no_duplicates(self):
        manager = MemoryManager()
        await manager.extract("My goal is to save $500")
        assert await manager.extract("My goal is to save $500") is None
        assert len(manager.memories) == 1

    @pytest.mark.asyncio
    async def test_load_failure_starts_empty(self, tmp_path):
        path = tmp_path / "memories.json"
        path.write_text("not json", encoding="utf-8")
        manager = MemoryManager(JsonMemoryStorage(path))

        await manager.ensure_loaded()

        assert manager.memories == []


class TestJsonMemoryStorage:
    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path):
        storage = JsonMemoryStorage(tmp_path / "nested" / "memories.json")
        memory = Memory(content="I prefer email over calls", importance=7)

        await storage.save_memories([memory])

        assert await storage.load_memories() == [memory]

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, tmp_path):
        assert await JsonMemoryStorage(tmp_path / "none.json").load_memories() == []

    @pytest.mark.asyncio
    async def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / "memories.json"
        path.write_text('[{"content": 1}]', encoding="utf-8")

        with pytest.raises(StorageError):
            await JsonMemoryStorage(path).load_memories()


class TestJsonLinesAuditStorage:
    @pytest.mark.asyncio
    async def test_append_and_query(self, tmp_path):
        storage = JsonLinesAuditStorage(tmp_path / "audit.jsonl")
        correlation_id = create_correlation_id()

        await storage.append_event(AuditEventBuilder.message_received("m1", 5, correlation_id))
        await storage.append_event(AuditEventBuilder.history_cleared(2))

        related = await storage.get_events_by_correlation_id(correlation_id)
        recent = await storage.get_recent_events(limit=1)
        assert [e.entity_id for e in related] == ["m1"]
        assert recent[0].event_type == AuditEventType.HISTORY_CLEARED

    @pytest.mark.asyncio
    async def test_unreadable_line_skipped(self, tmp_path):
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(path)
        await storage.append_event(AuditEventBuilder.history_cleared(1))
        with path.open("a", encoding="utf-8") as f:
            f.write('{"torn": \n')

        assert len(await storage.get_recent_events()) == 1


class TestAuditLogger:
    @pytest.mark.asyncio
    async def test_storage_failure_does_not_raise(self):
        class BrokenStorage(AuditStorageInterface):
            async def append_event(self, event):
                raise StorageError("disk full")

            async def get_events_by_correlation_id(self, correlation_id):
                return []

            async def get_recent_events(self, limit=100):
                return []

        logger = AuditLogger(BrokenStorage())

        assert await logger.log(AuditEventBuilder.history_cleared(0)) is False

    @pytest.mark.asyncio
    async def test_unexpected_storage_error_does_not_raise(self):
        class CrashingStorage(AuditStorageInterface):
            async def append_event(self, event):
                raise RuntimeError("connection reset")

            async def get_events_by_correlation_id(self, correlation_id):
                return []

            async def get_recent_events(self, limit=100):
                return []

        logger = AuditLogger(CrashingStorage())

        assert await logger.log(AuditEventBuilder.history_cleared(0)) is False

    @pytest.mark.asyncio
    async def test_without_storage_logs_locally(self):
        assert await AuditLogger().log(AuditEventBuilder.history_cleared(0)) is True
