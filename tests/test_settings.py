import sys
import unittest
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import settings, validate_settings  # noqa: E402
from app.core.rate_limit import limiter  # noqa: E402


class SettingsValidationTests(unittest.TestCase):
    def test_defaults_are_valid(self):
        validate_settings(replace(settings, ai_provider_override="auto", cv_audit_rubric="knockout_ats"))

    def test_every_known_provider_is_accepted(self):
        for provider in ("openai", "deepseek", "claude", "gemini"):
            validate_settings(replace(settings, ai_provider_override=provider, cv_audit_rubric="strict_ats"))

    def test_unknown_ai_provider_fails_fast(self):
        with self.assertRaises(RuntimeError) as ctx:
            validate_settings(replace(settings, ai_provider_override="mock", cv_audit_rubric="knockout_ats"))
        self.assertIn("AI_PROVIDER", str(ctx.exception))

    def test_unknown_rubric_fails_fast(self):
        with self.assertRaises(RuntimeError) as ctx:
            validate_settings(replace(settings, ai_provider_override="auto", cv_audit_rubric="lenient"))
        self.assertIn("CV_AUDIT_RUBRIC", str(ctx.exception))

    def test_limiter_follows_rate_limit_switch(self):
        self.assertEqual(limiter.enabled, settings.rate_limit_enabled)
        self.assertTrue(settings.interview_rate_limit)


if __name__ == "__main__":
    unittest.main()
