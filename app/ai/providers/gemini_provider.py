from __future__ import annotations

import os
from typing import Any, Sequence

import httpx

from app.ai.types import ChatMessage

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiProvider:
    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        timeout_s: float = 30.0,
        temperature: float = 0.2,
    ):
        self._model = model
        self._timeout_s = timeout_s
        self._temperature = temperature
        self._api_key = (api_key or os.getenv("GEMINI_API_KEY") or "").strip()
        if not self._api_key:
            raise RuntimeError("GEMINI_API_KEY is missing")

    def _payload(self, messages: Sequence[ChatMessage], json_mode: bool) -> dict[str, Any]:
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        contents = [
            {
                "role": "model" if m.role == "assistant" else "user",
                "parts": [{"text": m.content}],
            }
            for m in messages
            if m.role != "system"
        ]
        generation_config: dict[str, Any] = {"temperature": self._temperature}
        if json_mode:
            generation_config["responseMimeType"] = "application/json"

        payload: dict[str, Any] = {"contents": contents, "generationConfig": generation_config}
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        return payload

    async def complete(
        self, messages: Sequence[ChatMessage], *, json_mode: bool = False
    ) -> str:
        url = f"{GEMINI_BASE_URL}/{self._model}:generateContent"
        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            response = await client.post(
                url,
                params={"key": self._api_key},
                json=self._payload(messages, json_mode),
            )
            response.raise_for_status()
            data = response.json()

        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)
