from __future__ import annotations

import os
from typing import Any, Sequence

import httpx

from app.ai.types import ChatMessage

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


def _merge_turns(messages: Sequence[ChatMessage]) -> tuple[str, list[dict[str, str]]]:
    # The Messages API takes the system prompt separately and wants alternating roles.
    system_parts = [m.content for m in messages if m.role == "system"]
    turns: list[dict[str, str]] = []
    for message in messages:
        if message.role == "system":
            continue
        if turns and turns[-1]["role"] == message.role:
            turns[-1]["content"] += "\n\n" + message.content
            continue
        turns.append({"role": message.role, "content": message.content})
    if not turns or turns[0]["role"] != "user":
        turns.insert(0, {"role": "user", "content": "Begin."})
    return "\n\n".join(system_parts), turns


class ClaudeProvider:
    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        timeout_s: float = 30.0,
        temperature: float = 0.2,
        max_output_tokens: int = 1500,
    ):
        self._model = model
        self._timeout_s = timeout_s
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._api_key = (api_key or os.getenv("ANTHROPIC_API_KEY") or "").strip()
        if not self._api_key:
            raise RuntimeError("ANTHROPIC_API_KEY is missing")

    async def complete(
        self, messages: Sequence[ChatMessage], *, json_mode: bool = False
    ) -> str:
        system, turns = _merge_turns(messages)
        if json_mode:
            system = (system + "\n\nRespond with a single JSON object and nothing else.").strip()

        body: dict[str, Any] = {
            "model": self._model,
            "max_tokens": self._max_output_tokens,
            "temperature": self._temperature,
            "messages": turns,
        }
        if system:
            body["system"] = system

        headers = {
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            response = await client.post(ANTHROPIC_MESSAGES_URL, json=body, headers=headers)
            response.raise_for_status()
            data = response.json()

        blocks = data.get("content") or []
        return "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
