from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, Sequence


Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str


@dataclass(frozen=True)
class ModelResponse:
    raw_text: str
    provider_id: str
    model_id: str
    latency_ms: int


class AIClient(Protocol):
    async def complete(
        self, messages: Sequence[ChatMessage], *, json_mode: bool = False
    ) -> str: ...


class ClientFactory(Protocol):
    def __call__(self, provider_id: str, model_id: str, timeout_s: float) -> AIClient: ...
