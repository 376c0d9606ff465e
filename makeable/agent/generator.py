from __future__ import annotations

import asyncio
import html
import logging
from typing import Iterable, List, Optional, Protocol

import httpx

from makeable.agent.blocks import GeneratedFile, GenerationResult
from makeable.agent.content import Attachment, build_content
from makeable.agent.llm import AnthropicClient
from makeable.agent.loop import run_tool_loop
from makeable.agent.prompts import CREATE_SYSTEM_PROMPT, UPDATE_SYSTEM_PROMPT, render_update_prompt
from makeable.config import Settings

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "your_api_key_here"


class Generator(Protocol):
    name: str

    async def generate(
        self,
        prompt: str,
        prior_files: Optional[List[GeneratedFile]] = None,
        attachments: Optional[Iterable[Attachment]] = None,
        *,
        title: Optional[str] = None,
    ) -> GenerationResult: ...


class LLMGenerator:
    name = "llm"

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self.transport = transport

    def _client(self) -> AnthropicClient:
        return AnthropicClient(
            self.settings.anthropic_api_key,
            model=self.settings.model,
            base_url=self.settings.anthropic_base_url,
            timeout=self.settings.llm_timeout,
            timeout_retries=self.settings.llm_timeout_retries,
            transport=self.transport,
        )

    async def generate(
        self,
        prompt: str,
        prior_files: Optional[List[GeneratedFile]] = None,
        attachments: Optional[Iterable[Attachment]] = None,
        *,
        title: Optional[str] = None,
    ) -> GenerationResult:
        is_update = bool(prior_files)
        if is_update:
            system_prompt = UPDATE_SYSTEM_PROMPT
            text = render_update_prompt(prompt, prior_files)
        else:
            system_prompt = CREATE_SYSTEM_PROMPT
            text = prompt
        # Pillow work runs off the event loop.
        content = await asyncio.to_thread(build_content, text, attachments, self.settings.max_image_bytes)
        async with self._client() as client:
            return await run_tool_loop(
                client,
                system_prompt,
                content,
                prior_files,
                max_turns=self.settings.max_turns,
                max_tokens=self.settings.max_tokens,
            )


DEMO_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            min-height: 100vh;
            background: #f9fafb;
            display: flex;
            align-items: center;
            justify-content: center;
            padding: 20px;
        }}
        .container {{
            background: #ffffff;
            border-radius: 8px;
            padding: 2rem;
            box-shadow: 0 1px 3px rgba(0,0,0,0.1);
            border: 1px solid #e5e7eb;
            max-width: 600px;
            width: 100%;
        }}
        h1 {{ color: #111827; margin-bottom: 1rem; font-size: 2rem; }}
        p {{ color: #6b7280; line-height: 1.6; margin-bottom: 1rem; }}
        .prompt {{
            background: #f3f4f6;
            padding: 1rem;
            border-radius: 6px;
            border-left: 4px solid #2563eb;
            font-style: italic;
        }}
        button {{
            background: #2563eb;
            color: #ffffff;
            border: none;
            padding: 0.75rem 1.5rem;
            border-radius: 6px;
            font-size: 1rem;
            font-weight: 600;
            cursor: pointer;
            transition: background 0.2s;
            margin-top: 1rem;
            width: 100%;
        }}
        button:hover {{ background: #1d4ed8; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>Demo App</h1>
        <p>This is a demo app created from your prompt:</p>
        <div class="prompt">"{prompt}"</div>
        <p style="margin-top: 2rem;">
            <strong>Note:</strong> This is mock data. To generate real apps, add a valid Anthropic API key.
        </p>
        <button onclick="alert('Button clicked!')">Click Me!</button>
    </div>
</body>
</html>"""


class TemplateGenerator:
    """Static stand-in used when no usable API key is configured."""

    name = "template"

    async def generate(
        self,
        prompt: str,
        prior_files: Optional[List[GeneratedFile]] = None,
        attachments: Optional[Iterable[Attachment]] = None,
        *,
        title: Optional[str] = None,
    ) -> GenerationResult:
        page = DEMO_TEMPLATE.format(title=html.escape(title or "Demo App"), prompt=html.escape(prompt))
        files = {item.path: item.content for item in prior_files or []}
        files["index.html"] = page
        return GenerationResult(files=[GeneratedFile(path, content) for path, content in files.items()])


def has_usable_api_key(api_key: Optional[str]) -> bool:
    key = (api_key or "").strip()
    return bool(key) and key != PLACEHOLDER_API_KEY and len(key) >= 20


def select_generator(settings: Settings) -> Generator:
    if has_usable_api_key(settings.anthropic_api_key):
        return LLMGenerator(settings)
    logger.warning("No valid API key found, using mock data")
    return TemplateGenerator()
