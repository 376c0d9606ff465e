import asyncio
import json
import threading
from dataclasses import replace

import httpx
import pytest

from makeable.agent import generator as generator_module
from makeable.agent.blocks import GeneratedFile, TextBlock, ToolInvocation, Turn
from makeable.agent.generator import LLMGenerator, TemplateGenerator, has_usable_api_key, select_generator
from makeable.agent.llm import AnthropicClient
from makeable.agent.prompts import CREATE_SYSTEM_PROMPT, UPDATE_SYSTEM_PROMPT
from makeable.config import get_settings
from makeable.errors import UpstreamError, UpstreamTimeout

API_KEY = "sk-ant-REDACTED"


def tool_use_response(call_id, path, content):
    return {
        "id": "msg_1",
        "type": "message",
        "role": "assistant",
        "content": [
            {"type": "text", "text": "Creating the app."},
            {"type": "tool_use", "id": call_id, "name": "write_file", "input": {"path": path, "content": content}},
        ],
        "stop_reason": "tool_use",
    }


def end_turn_response(text="Done."):
    return {
        "id": "msg_2",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
    }


class Recorder:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.pop(0)
        return httpx.Response(status, json=body)


def make_client(handler, **kwargs) -> AnthropicClient:
    return AnthropicClient(API_KEY, model="test-model", transport=httpx.MockTransport(handler), **kwargs)


@pytest.fixture
def settings(data_dir, monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", API_KEY)
    monkeypatch.setenv("ANTHROPIC_BASE_URL", "https://llm.test")
    return get_settings()


def test_create_message_sends_messages_api_request():
    recorder = Recorder((200, tool_use_response("toolu_1", "index.html", "<html></html>")))

    async def call():
        async with make_client(recorder) as client:
            return await client.create_message(
                system="sys",
                turns=[Turn("user", [TextBlock("hello")])],
                tools=[{"name": "write_file"}],
                max_tokens=123,
            )

    message = asyncio.run(call())

    request = recorder.requests[0]
    assert request.url.path == "/v1/messages"
    assert request.headers["x-api-key"] == API_KEY
    assert request.headers["anthropic-version"] == "2023-06-01"
    body = json.loads(request.content)
    assert body["model"] == "test-model"
    assert body["max_tokens"] == 123
    assert body["messages"] == [{"role": "user", "content": [{"type": "text", "text": "hello"}]}]
    assert message.stop_reason == "tool_use"
    assert message.content[1] == ToolInvocation(
        id="toolu_1", name="write_file", input={"path": "index.html", "content": "<html></html>"}
    )


def test_error_status_raises_upstream_error():
    recorder = Recorder((401, {"type": "error", "error": {"type": "authentication_error", "message": "invalid x-api-key"}}))

    async def call():
        async with make_client(recorder) as client:
            await client.create_message(system="s", turns=[], tools=[], max_tokens=1)

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(call())
    assert excinfo.value.status == 401
    assert excinfo.value.message == "invalid x-api-key"
    assert not excinfo.value.retryable


def test_timeouts_are_retried_then_surface_as_retryable():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ReadTimeout("slow", request=request)

    async def call():
        async with make_client(handler, timeout_retries=2, retry_delay=0) as client:
            await client.create_message(system="s", turns=[], tools=[], max_tokens=1)

    with pytest.raises(UpstreamTimeout) as excinfo:
        asyncio.run(call())
    assert len(attempts) == 3
    assert excinfo.value.retryable


def test_timeout_followed_by_success_recovers():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) == 1:
            raise httpx.ConnectTimeout("slow", request=request)
        return httpx.Response(200, json=end_turn_response())

    async def call():
        async with make_client(handler, retry_delay=0) as client:
            return await client.create_message(system="s", turns=[], tools=[], max_tokens=1)

    message = asyncio.run(call())
    assert message.content == [TextBlock("Done.")]


def test_countdown_timer_end_to_end(settings):
    recorder = Recorder(
        (200, tool_use_response("toolu_1", "index.html", "<html>...</html>")),
        (200, end_turn_response()),
    )
    generator = LLMGenerator(settings, transport=httpx.MockTransport(recorder))

    result = asyncio.run(generator.generate("a countdown timer"))

    assert result.to_dict() == {"files": [{"path": "index.html", "content": "<html>...</html>"}]}
    first = json.loads(recorder.requests[0].content)
    assert first["system"] == CREATE_SYSTEM_PROMPT
    assert first["messages"][0]["content"] == [{"type": "text", "text": "a countdown timer"}]
    second = json.loads(recorder.requests[1].content)
    assert second["messages"][2]["content"] == [
        {
            "type": "tool_result",
            "tool_use_id": "toolu_1",
            "content": "File index.html created successfully with 16 characters",
        }
    ]


def test_update_mode_sends_existing_files(settings):
    recorder = Recorder((200, end_turn_response("No change needed.")))
    generator = LLMGenerator(replace(settings, max_turns=4), transport=httpx.MockTransport(recorder))
    prior = [GeneratedFile("index.html", "OLD")]

    result = asyncio.run(generator.generate("make the title blue", prior))

    assert result.files == prior
    body = json.loads(recorder.requests[0].content)
    assert body["system"] == UPDATE_SYSTEM_PROMPT
    text = body["messages"][0]["content"][0]["text"]
    assert text.startswith("Here are the current files of the app:\n\nFile: index.html\n```\nOLD\n```")
    assert text.endswith("User's modification request: make the title blue")


def test_template_generator_keeps_prior_files():
    prior = [GeneratedFile("style.css", "body {}")]

    result = asyncio.run(TemplateGenerator().generate("a <b>todo</b> list", prior, title="Todo"))

    paths = [item.path for item in result.files]
    assert paths == ["style.css", "index.html"]
    page = result.files[1].content
    assert "<title>Todo</title>" in page
    assert "a &lt;b&gt;todo&lt;/b&gt; list" in page


def test_generator_selection(settings):
    assert isinstance(select_generator(settings), LLMGenerator)
    assert isinstance(select_generator(replace(settings, anthropic_api_key="")), TemplateGenerator)
    assert not has_usable_api_key("your_api_key_here")
    assert not has_usable_api_key("short-key")


def test_content_is_built_off_the_event_loop(settings, monkeypatch):
    threads = []
    real_build_content = generator_module.build_content

    def recording_build_content(*args, **kwargs):
        threads.append(threading.current_thread())
        return real_build_content(*args, **kwargs)

    monkeypatch.setattr(generator_module, "build_content", recording_build_content)
    recorder = Recorder((200, end_turn_response()))
    generator = LLMGenerator(settings, transport=httpx.MockTransport(recorder))

    asyncio.run(generator.generate("a gallery"))

    assert len(threads) == 1
    assert threads[0] is not threading.main_thread()
