"""
Vision oracle - one Claude call per question, image first, instruction second.
Returns the raw reply text. Parsing is the caller's job (see parsing.py).
"""

import os
import time

import anthropic

from pagelens.config import get_settings
from pagelens.errors import OracleError
from pagelens.image_utils import screenshot_to_b64


ORACLE_SYSTEM_PROMPT = """You are a senior conversion-rate and marketing auditor reviewing screenshots of web pages.

RULES:
- Base every observation on what is visible in the screenshot. Never invent copy.
- Quote text EXACTLY as it appears.
- Output ONLY the JSON requested. No markdown fences. No explanation."""


_client = None


def _get_client():
    global _client
    if _client is None:
        settings = get_settings()
        api_key = os.getenv("ANTHROPIC_API_KEY") or settings.anthropic_api_key
        if not api_key:
            raise OracleError("ANTHROPIC_API_KEY must be set in .env")
        _client = anthropic.AsyncAnthropic(api_key=api_key, timeout=settings.oracle_timeout, max_retries=0)
    return _client


class ClaudeOracle:
    """`complete(instruction, image) -> text` against the Anthropic API."""

    def __init__(self, model: str | None = None, max_tokens: int | None = None):
        settings = get_settings()
        self.model = model or settings.oracle_model
        self.max_tokens = max_tokens or settings.oracle_max_tokens

    async def complete(self, instruction: str, image: bytes) -> str:
        settings = get_settings()
        client = _get_client()
        t0 = time.time()

        content = []
        if image:
            image_b64, media_type = screenshot_to_b64(
                image,
                compress=True,
                max_width=settings.oracle_image_max_width,
                max_height=settings.oracle_image_max_height,
                quality=settings.oracle_image_quality,
            )
            content.append({
                "type": "image",
                "source": {"type": "base64", "media_type": media_type, "data": image_b64},
            })
        content.append({"type": "text", "text": instruction})

        raw = ""
        async with client.messages.stream(
            model=self.model,
            max_tokens=self.max_tokens,
            system=[{
                "type": "text",
                "text": ORACLE_SYSTEM_PROMPT,
                "cache_control": {"type": "ephemeral"},
            }],
            messages=[{"role": "user", "content": content}],
        ) as stream:
            async for chunk in stream.text_stream:
                raw += chunk
            response = await stream.get_final_message()

        usage = getattr(response, "usage", None)
        tokens_in = getattr(usage, "input_tokens", 0) if usage else 0
        tokens_out = getattr(usage, "output_tokens", 0) if usage else 0
        print(f"  [oracle] {time.time() - t0:.1f}s, {tokens_in}in/{tokens_out}out, {len(raw)} chars")

        if getattr(response, "stop_reason", None) == "max_tokens":
            print("  [oracle] WARNING: Output truncated (max_tokens reached)")

        if not raw.strip():
            raise OracleError("empty reply from oracle")
        return raw
