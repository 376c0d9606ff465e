"""
Shared test fixtures and configuration.
"""

import base64
import io
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from makeable.agent.blocks import GeneratedFile, GenerationResult, ToolInvocation
from makeable.agent.llm import AssistantMessage


class ScriptedClient:
    """Stands in for the Messages API client; replays canned assistant turns."""

    def __init__(self, responses: List[AssistantMessage], repeat_last: bool = False) -> None:
        self.responses = list(responses)
        self.repeat_last = repeat_last
        self.calls = []

    async def create_message(self, *, system, turns, tools, max_tokens):
        self.calls.append({"system": system, "turns": list(turns), "tools": tools, "max_tokens": max_tokens})
        if len(self.responses) == 1 and self.repeat_last:
            return self.responses[0]
        return self.responses.pop(0)


class StubGenerator:
    name = "stub"

    def __init__(self, files: Optional[dict] = None, error: Optional[Exception] = None) -> None:
        self.files = files or {"index.html": "<html>stub</html>"}
        self.error = error
        self.calls = []

    async def generate(self, prompt, prior_files=None, attachments=None, *, title=None):
        self.calls.append({"prompt": prompt, "prior_files": prior_files, "attachments": attachments, "title": title})
        if self.error is not None:
            raise self.error
        files = {item.path: item.content for item in prior_files or []}
        files.update(self.files)
        return GenerationResult(files=[GeneratedFile(path, content) for path, content in files.items()])


def write_call(call_id: str, **arguments) -> ToolInvocation:
    return ToolInvocation(id=call_id, name="write_file", input=arguments)


def gradient_image(width: int, height: int, fmt: str = "BMP") -> bytes:
    image = Image.linear_gradient("L").resize((width, height)).convert("RGB")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Point all persistence at a temporary directory with no API key configured."""
    directory = tmp_path / "data"
    monkeypatch.setenv("MAKEABLE_DATA_DIR", str(directory))
    monkeypatch.setenv("MAKEABLE_JWT_SECRET", "test-secret")
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    return directory


@pytest.fixture
def client(data_dir):
    from makeable.main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def stub_generator(client):
    from makeable.main import app
    from makeable.utils.deps import get_generator

    generator = StubGenerator()
    app.dependency_overrides[get_generator] = lambda: generator
    return generator


def register(client: TestClient, email: str, role: str = "student", name: str = "Test User") -> dict:
    """Register a user and return bearer headers; the cookie jar is cleared so headers decide identity."""
    response = client.post(
        "/api/auth/register",
        json={"email": email, "password": "secret123", "name": name, "role": role, "course": "Design Thinking"},
    )
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['token']}"}
