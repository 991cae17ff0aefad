import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.assessment_config import (  # noqa: E402
    get_assessment_config,
    get_assessment_value,
    load_assessment_config,
)
from app.services.prompt_builder import TruncationLimits  # noqa: E402


class AssessmentConfigTests(unittest.TestCase):
    def test_loader_and_value_lookup(self):
        config = get_assessment_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_assessment_value("routing.medium.primary.provider"), "deepseek")
        self.assertEqual(get_assessment_value("routing.max_retries"), 1)

    def test_missing_path_returns_default(self):
        self.assertIsNone(get_assessment_value("routing.unknown.primary"))
        self.assertEqual(get_assessment_value("prompts.truncation.cv_audit.deeper", 7), 7)
        self.assertEqual(get_assessment_value("", "fallback"), "fallback")

    def test_truncation_limits_from_config(self):
        limits = TruncationLimits.from_config()
        self.assertEqual(limits.cv_audit, 4000)
        self.assertEqual(limits.cv_rewrite, 4000)
        self.assertEqual(limits.interview, 3000)


class LoadAssessmentConfigTests(unittest.TestCase):
    def _write(self, text: str) -> Path:
        handle = tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False, encoding="utf-8")
        with handle:
            handle.write(text)
        path = Path(handle.name)
        self.addCleanup(path.unlink)
        return path

    def test_repo_file_is_complete(self):
        config = load_assessment_config(PROJECT_ROOT / "config" / "assessment.yaml")
        self.assertIn("gemini", config["providers"]["default_models"])

    def test_missing_file(self):
        with self.assertRaises(RuntimeError) as ctx:
            load_assessment_config(PROJECT_ROOT / "config" / "nope.yaml")
        self.assertIn("ASSESSMENT_CONFIG_PATH", str(ctx.exception))

    def test_invalid_yaml(self):
        path = self._write("routing: [unclosed\n")
        with self.assertRaises(RuntimeError):
            load_assessment_config(path)

    def test_missing_sections_are_named(self):
        path = self._write("routing:\n  timeout_ms: 100\n")
        with self.assertRaises(RuntimeError) as ctx:
            load_assessment_config(path)
        self.assertIn("providers, prompts", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
