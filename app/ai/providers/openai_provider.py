from __future__ import annotations

import os
from typing import Optional, Sequence

from openai import AsyncOpenAI

from app.ai.types import ChatMessage

DEEPSEEK_BASE_URL = "https://api.deepseek.com"


class OpenAIProvider:
    """Chat completions client for OpenAI and OpenAI-compatible endpoints.

    Retries are left to the router, so the SDK's own retry loop is disabled.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        temperature: float = 0.2,
        max_output_tokens: int = 1500,
    ):
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=timeout_s,
            max_retries=0,
        )

    async def complete(
        self, messages: Sequence[ChatMessage], *, json_mode: bool = False
    ) -> str:
        payload = [{"role": m.role, "content": m.content} for m in messages]

        create_kwargs = {
            "model": self._model,
            "messages": payload,
            "temperature": self._temperature,
            "max_tokens": self._max_output_tokens,
        }
        if json_mode:
            create_kwargs["response_format"] = {"type": "json_object"}

        response = await self._client.chat.completions.create(**create_kwargs)
        content = response.choices[0].message.content if response.choices else ""
        return content or ""


def deepseek_provider(model: str, timeout_s: float = 30.0) -> OpenAIProvider:
    api_key = os.getenv("DEEPSEEK_API_KEY", "").strip()
    if not api_key:
        raise RuntimeError("DEEPSEEK_API_KEY is missing")

    return OpenAIProvider(
        model=model,
        api_key=api_key,
        base_url=os.getenv("DEEPSEEK_BASE_URL", "").strip() or DEEPSEEK_BASE_URL,
        timeout_s=timeout_s,
    )
