from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Mapping, Sequence

from app.ai.config import (
    Complexity,
    ProviderConfig,
    load_default_models,
    load_routing_table,
    resolve_provider_config,
)
from app.ai.factory import get_ai_client
from app.ai.types import ChatMessage, ClientFactory, ModelResponse

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    def __init__(self, message: str, *, cause: BaseException | None = None, attempts: Sequence[str] = ()):
        super().__init__(message)
        self.cause = cause
        self.attempts = tuple(attempts)


class ProviderRouter:
    """Picks a provider/model for a complexity tag and calls it with one fallback.

    The router keeps no state between calls. Each call makes at most two
    attempts: the primary target and, if it fails or times out, the fallback
    carried by the resolved ``ProviderConfig``.
    """

    def __init__(
        self,
        client_factory: ClientFactory = get_ai_client,
        *,
        routing_table: Mapping[str, Any] | None = None,
        default_models: Mapping[str, str] | None = None,
        default_override: str | None = None,
    ):
        self._client_factory = client_factory
        self._routing_table = routing_table
        self._default_models = default_models
        self._default_override = default_override

    def route(self, complexity: Complexity | str, override: str | None = None) -> ProviderConfig:
        table = self._routing_table if self._routing_table is not None else load_routing_table()
        models = self._default_models if self._default_models is not None else load_default_models()
        return resolve_provider_config(
            complexity,
            override if override is not None else self._default_override,
            table=table,
            default_models=models,
        )

    def check_override(self, override: str | None) -> None:
        """Raise ``ValueError`` now for an override that ``route`` would reject later."""
        self.route(Complexity.MEDIUM, override)

    async def _attempt(
        self, messages: Sequence[ChatMessage], target: ProviderConfig, json_mode: bool
    ) -> ModelResponse:
        timeout_s = target.timeout_ms / 1000
        started = time.perf_counter()
        client = self._client_factory(target.provider_id, target.model_id, timeout_s)
        text = await asyncio.wait_for(client.complete(messages, json_mode=json_mode), timeout=timeout_s)
        return ModelResponse(
            raw_text=text or "",
            provider_id=target.provider_id,
            model_id=target.model_id,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )

    async def call(
        self,
        messages: Sequence[ChatMessage],
        config: ProviderConfig,
        *,
        json_mode: bool = False,
    ) -> ModelResponse:
        targets = [config]
        if config.fallback is not None and config.max_retries > 0:
            targets.append(config.fallback)

        last_error: BaseException | None = None
        attempted: list[str] = []
        for index, target in enumerate(targets):
            attempted.append(target.label)
            if index > 0:
                logger.info("provider_fallback provider=%s model=%s", target.provider_id, target.model_id)
            try:
                return await self._attempt(messages, target, json_mode)
            except asyncio.TimeoutError as exc:
                logger.warning(
                    "provider_call_timeout provider=%s model=%s timeout_ms=%s",
                    target.provider_id,
                    target.model_id,
                    target.timeout_ms,
                )
                last_error = exc
            except Exception as exc:  # noqa: BLE001 - any transport failure moves on to the fallback
                logger.warning(
                    "provider_call_failed provider=%s model=%s: %s",
                    target.provider_id,
                    target.model_id,
                    exc,
                )
                last_error = exc

        logger.warning("provider_exhausted attempts=%s", ",".join(attempted))
        raise ProviderError(
            f"All providers failed ({', '.join(attempted)}).",
            cause=last_error,
            attempts=attempted,
        ) from last_error
