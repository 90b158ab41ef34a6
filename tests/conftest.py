from datetime import datetime

import pytest

from growth_context.models.core import ConversationTurn, EmotionTag, Topic


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeModel:
    """Async model client that records prompts and returns a canned reply."""

    def __init__(self, reply='Love that energy! What is your next move?'):
        self.reply = reply
        self.calls = []

    async def complete(self, prompt, max_tokens):
        self.calls.append((prompt, max_tokens))
        return self.reply


class FailingModel:

    async def complete(self, prompt, max_tokens):
        raise RuntimeError('model unavailable')


def make_turn(user_input, emotion=EmotionTag.NEUTRAL, hour=10, topics=None):
    return ConversationTurn(timestamp=datetime(2024, 5, 1, hour),
                            user_input=user_input,
                            ai_response='ok',
                            emotional_state=emotion,
                            topics=topics or [Topic.GENERAL])


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_model():
    return FakeModel()
