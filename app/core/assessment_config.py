from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from app.core.config import settings

REQUIRED_SECTIONS = ("routing", "providers", "prompts")

_ASSESSMENT_CONFIG_CACHE: dict[str, Any] | None = None
_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "assessment.yaml"


def _config_path() -> Path:
    if settings.assessment_config_path:
        return Path(settings.assessment_config_path)
    return _DEFAULT_CONFIG_PATH


def load_assessment_config(path: Path) -> dict[str, Any]:
    """Read and check an assessment YAML file without touching the cache.

    The file must be a mapping holding the ``routing`` table (complexity ->
    primary/fallback targets), ``providers.default_models`` and the ``prompts``
    limits. Anything else is a deployment mistake and fails loudly.
    """
    if not path.exists():
        raise RuntimeError(
            f"Assessment config not found at '{path}'. "
            "Point ASSESSMENT_CONFIG_PATH at a file or restore config/assessment.yaml."
        )

    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"Cannot read assessment config '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Assessment config '{path}' is not valid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"Assessment config '{path}' must be a mapping of routing/providers/prompts.")

    missing = [name for name in REQUIRED_SECTIONS if not isinstance(parsed.get(name), dict)]
    if missing:
        raise RuntimeError(
            f"Assessment config '{path}' is missing section(s): {', '.join(missing)}."
        )
    return parsed


def get_assessment_config() -> dict[str, Any]:
    global _ASSESSMENT_CONFIG_CACHE

    if _ASSESSMENT_CONFIG_CACHE is None:
        _ASSESSMENT_CONFIG_CACHE = load_assessment_config(_config_path())
    return _ASSESSMENT_CONFIG_CACHE


def get_assessment_value(path: str, default: Any = None) -> Any:
    """Dot-path lookup such as 'routing.hard.fallback.provider' or 'prompts.truncation.interview'."""
    if not path:
        return default

    current: Any = get_assessment_config()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current
