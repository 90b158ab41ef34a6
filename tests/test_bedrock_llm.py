import asyncio

import pytest
from botocore.exceptions import ClientError

from growth_context.utils import bedrock_llm
from growth_context.utils.bedrock_llm import BedrockLLM, BedrockLLMError
from growth_context.utils.config import BedrockLLMConfig

CONFIG = BedrockLLMConfig(region='us-east-1',
                          model_id='test-model',
                          max_tokens=100,
                          temperature=0.5,
                          retry_attempts=2,
                          retry_delay=0.0)


class FakeRuntime:

    def __init__(self, chunks=None, error=None):
        self.chunks = chunks or []
        self.error = error
        self.requests = []

    def converse_stream(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        events = [{'contentBlockDelta': {'delta': {'text': chunk}}} for chunk in self.chunks]
        events.append({'metadata': {'usage': {'inputTokens': 3, 'outputTokens': 2}, 'metrics': {'latencyMs': 5}}})
        return {'stream': events}


def throttled():
    return ClientError({'Error': {'Code': 'ThrottlingException', 'Message': 'slow down'}}, 'ConverseStream')


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(bedrock_llm.time, 'sleep', lambda seconds: None)


def test_generate_response_joins_stream():
    runtime = FakeRuntime(chunks=['Hello', ' there'])
    llm = BedrockLLM(CONFIG, client=runtime)

    text, metrics = llm.generate_response([{'role': 'user', 'content': [{'text': 'Hi'}]}], 'system', max_tokens=20)

    assert text == 'Hello there'
    assert metrics == {'inputTokens': 3, 'outputTokens': 2, 'latencyMs': 5}
    request = runtime.requests[0]
    assert request['modelId'] == 'test-model'
    assert request['inferenceConfig']['maxTokens'] == 20
    assert request['inferenceConfig']['temperature'] == 0.5


def test_complete_cleans_reply():
    runtime = FakeRuntime(chunks=['```\nKeep', ' going!```'])
    llm = BedrockLLM(CONFIG, client=runtime)

    reply = asyncio.run(llm.complete('prompt', 120))

    assert reply == 'Keep going!'
    assert runtime.requests[0]['messages'] == [{'role': 'user', 'content': [{'text': 'prompt'}]}]
    assert runtime.requests[0]['inferenceConfig']['maxTokens'] == 120


def test_retries_then_raises():
    runtime = FakeRuntime(error=throttled())
    llm = BedrockLLM(CONFIG, client=runtime)

    with pytest.raises(BedrockLLMError, match='failed after 2 attempts'):
        llm.complete_sync('prompt', 120)

    assert len(runtime.requests) == 2


def test_empty_reply_is_an_error():
    llm = BedrockLLM(CONFIG, client=FakeRuntime(chunks=['  ']))

    with pytest.raises(BedrockLLMError):
        llm.complete_sync('prompt', 120)


def test_health_check():
    assert BedrockLLM(CONFIG, client=FakeRuntime(chunks=['OK'])).health_check()
    assert not BedrockLLM(CONFIG, client=FakeRuntime(error=throttled())).health_check()
