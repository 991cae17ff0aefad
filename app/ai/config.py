from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from app.core.assessment_config import get_assessment_value

AUTO_OVERRIDE = "auto"


class Complexity(str, Enum):
    MEDIUM = "medium"
    HARD = "hard"
    COMPLEX = "complex"


@dataclass(frozen=True)
class ProviderConfig:
    provider_id: str
    model_id: str
    max_retries: int
    timeout_ms: int
    fallback: ProviderConfig | None = None

    @property
    def label(self) -> str:
        return f"{self.provider_id}:{self.model_id}"


def load_routing_table() -> dict[str, Any]:
    table = get_assessment_value("routing")
    if not isinstance(table, dict):
        raise RuntimeError("Assessment config is missing the 'routing' table.")
    return table


def load_default_models() -> dict[str, str]:
    models = get_assessment_value("providers.default_models", {})
    if not isinstance(models, dict):
        raise RuntimeError("providers.default_models must be a mapping.")
    return {str(key): str(value) for key, value in models.items()}


def _target(entry: Any, name: str) -> tuple[str, str]:
    if not isinstance(entry, dict) or not entry.get("provider") or not entry.get("model"):
        raise RuntimeError(f"Routing entry '{name}' needs both 'provider' and 'model'.")
    return str(entry["provider"]).strip().lower(), str(entry["model"]).strip()


def resolve_provider_config(
    complexity: Complexity | str,
    override: str | None,
    *,
    table: Mapping[str, Any],
    default_models: Mapping[str, str],
) -> ProviderConfig:
    tag = Complexity(complexity).value
    row = table.get(tag)
    if not isinstance(row, dict):
        raise RuntimeError(f"No routing entry for complexity '{tag}'.")

    timeout_ms = int(table.get("timeout_ms", 30000))
    max_retries = int(table.get("max_retries", 1))
    primary = _target(row.get("primary"), f"{tag}.primary")
    fallback = _target(row.get("fallback"), f"{tag}.fallback")

    choice = (override or AUTO_OVERRIDE).strip().lower()
    if choice != AUTO_OVERRIDE:
        if choice not in default_models:
            raise ValueError(f"Unsupported AI_PROVIDER='{choice}'")
        forced = (choice, default_models[choice])
        fallback = primary if primary[0] != choice else fallback
        primary = forced

    fallback_config = None
    if max_retries > 0:
        fallback_config = ProviderConfig(
            provider_id=fallback[0],
            model_id=fallback[1],
            max_retries=0,
            timeout_ms=timeout_ms,
        )
    return ProviderConfig(
        provider_id=primary[0],
        model_id=primary[1],
        max_retries=min(max_retries, 1),
        timeout_ms=timeout_ms,
        fallback=fallback_config,
    )
