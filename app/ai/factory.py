from functools import lru_cache

from app.ai.types import AIClient

from app.ai.providers.openai_provider import OpenAIProvider, deepseek_provider
from app.ai.providers.claude_provider import ClaudeProvider
from app.ai.providers.gemini_provider import GeminiProvider


# One client per (provider, model, timeout) so SDK connection pools survive across requests.
@lru_cache(maxsize=32)
def get_ai_client(provider_id: str, model_id: str, timeout_s: float = 30.0) -> AIClient:
    provider = provider_id.strip().lower()

    if provider == "openai":
        return OpenAIProvider(model=model_id, timeout_s=timeout_s)

    if provider == "deepseek":
        return deepseek_provider(model=model_id, timeout_s=timeout_s)

    if provider == "claude":
        return ClaudeProvider(model=model_id, timeout_s=timeout_s)

    if provider == "gemini":
        return GeminiProvider(model=model_id, timeout_s=timeout_s)

    raise ValueError(f"Unsupported AI provider '{provider_id}'")
