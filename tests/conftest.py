"""Shared fixtures: a frozen clock, file-backed stores in tmp_path and an
in-memory model gateway so no test touches the network."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from copysmith.orchestrator import GenerationOrchestrator
from copysmith.storage import DayScopedStore, KeyValueStore
from copysmith.usage_gate import UsageGate


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeChatSession:
    """Replays queued replies; records every message it was sent."""

    def __init__(self, system_instruction, model, replies, streams, error=None):
        self.system_instruction = system_instruction
        self.model = model
        self.replies = replies
        self.streams = streams
        self.error = error
        self.sent = []
        self.streamed = []

    async def send(self, message):
        self.sent.append(message)
        if self.error is not None:
            raise self.error
        return self.replies.pop(0)

    async def stream(self, message):
        self.streamed.append(message)
        if self.error is not None:
            raise self.error
        for chunk in self.streams.pop(0):
            yield chunk


class FakeGateway:
    """Stands in for GeminiClient.

    Queue full replies in `replies` (long-form sends) and chunk lists in
    `streams` (streamed turns). One-shot calls are AsyncMocks.
    """

    def __init__(self):
        self.replies = []
        self.streams = []
        self.chat_error = None
        self.sessions = []
        self.search_sources = AsyncMock(return_value=[])
        self.generate_json = AsyncMock(return_value=[])
        self.generate_text = AsyncMock(return_value="")

    def start_chat(self, system_instruction, model=None):
        session = FakeChatSession(system_instruction, model, self.replies, self.streams, self.chat_error)
        self.sessions.append(session)
        return session

    @property
    def model_calls(self) -> int:
        """Chat turns sent across all sessions."""
        return sum(len(s.sent) + len(s.streamed) for s in self.sessions)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 3, 14, 9, 30).astimezone())


@pytest.fixture
def day_store(tmp_path, clock):
    return DayScopedStore(tmp_path / "daily_usage.json", clock=clock)


@pytest.fixture
def kv_store(tmp_path):
    return KeyValueStore(tmp_path / "ui_state.json")


@pytest.fixture
def usage_gate(day_store):
    return UsageGate(day_store, limit=10)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def orchestrator(gateway, usage_gate):
    return GenerationOrchestrator(gateway, usage_gate=usage_gate)
