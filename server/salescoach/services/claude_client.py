import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from anthropic import AsyncAnthropic

logger = logging.getLogger(__name__)

# Matches ```json / ``` fence markers around a JSON body
_CODE_FENCE = re.compile(r"```(?:json)?\n?")


class LLMResponseParseError(Exception):
    """A JSON-mode call returned content that is not valid JSON."""

    def __init__(self, raw_content: str):
        self.raw_content = raw_content
        super().__init__(f"Failed to parse Claude response as JSON: {raw_content}")


@dataclass
class ClaudeResponse:
    content: str
    usage: dict[str, int] = field(default_factory=lambda: {"input_tokens": 0, "output_tokens": 0})


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text.strip()).strip()


class ClaudeClient:
    """Wrapper for the Anthropic Claude API.

    Constructed once by the application lifespan and passed to the
    classifier and handlers, so tests can hand in a scripted double instead.
    """

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-20250514"):
        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> ClaudeResponse:
        """Send a single-turn message and return the first text block."""
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )

        content = ""
        for block in response.content:
            if getattr(block, "type", None) == "text":
                content = block.text
                break

        usage = {
            "input_tokens": response.usage.input_tokens,
            "output_tokens": response.usage.output_tokens,
        }
        logger.debug(
            f"Claude response: len={len(content)}, "
            f"input_tokens={usage['input_tokens']}, output_tokens={usage['output_tokens']}"
        )
        return ClaudeResponse(content=content, usage=usage)

    async def chat_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 1024,
    ) -> Any:
        """Send a message that must be answered with JSON.

        Runs at a low temperature for consistent output. Markdown code fences
        are stripped before parsing.
        """
        response = await self.chat(
            system_prompt,
            user_prompt,
            max_tokens=max_tokens,
            temperature=0.1,
        )

        try:
            return json.loads(strip_code_fences(response.content))
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse JSON response: {response.content[:200]}")
            raise LLMResponseParseError(response.content)
