import asyncio
import json
import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.ai.router import ProviderError, ProviderRouter  # noqa: E402
from app.ai.types import ChatMessage  # noqa: E402
from app.core.errors import InputValidationError  # noqa: E402
from app.schemas.assessment import AnalysisReport, AuditRubric, RedactedReport, Tier  # noqa: E402
from app.services.assessment_service import AssessmentService  # noqa: E402
from app.services.normalizer import fallback_report  # noqa: E402
from app.services.prompt_builder import PromptBuilder  # noqa: E402

ROUTING = {
    "timeout_ms": 100,
    "max_retries": 1,
    "medium": {
        "primary": {"provider": "deepseek", "model": "deepseek-chat"},
        "fallback": {"provider": "openai", "model": "gpt-4o-mini"},
    },
    "hard": {
        "primary": {"provider": "openai", "model": "gpt-4o"},
        "fallback": {"provider": "gemini", "model": "gemini-1.5-pro"},
    },
    "complex": {
        "primary": {"provider": "openai", "model": "gpt-4o"},
        "fallback": {"provider": "claude", "model": "claude-3-5-sonnet-latest"},
    },
}
MODELS = {"openai": "gpt-4o-mini", "deepseek": "deepseek-chat", "claude": "claude-3", "gemini": "gemini-1.5-pro"}

CV_TEXT = (
    "María López. Ingeniera de datos con 6 años de experiencia en Python, SQL y Airflow. "
    "Lideró la migración de un data warehouse a BigQuery."
)
JOB_DESCRIPTION = "Data Engineer senior: Python, SQL, AWS, Terraform. Inglés C1 obligatorio."
REPORT_REPLY = json.dumps(
    {
        "score": 58,
        "matchLevel": "En revision",
        "summary": "Buen encaje técnico, falta cloud AWS.",
        "breakdown": {"hardSkills": 60, "experience": 70, "languages": 30, "education": 80, "softSkills": 50, "format": 90},
        "hardSkillsAnalysis": {"missingKeywords": ["AWS", "Terraform", "Kafka"], "matchedKeywords": ["Python"]},
        "experienceAnalysis": {"feedback": "Cuantifica la migración."},
        "softSkillsAnalysis": {"feedback": "Liderazgo claro."},
        "formattingAnalysis": {"issues": []},
        "redFlags": ["Sin nivel de inglés", "Fechas incompletas"],
        "improvementPlan": ["Certificación AWS", "Indicar nivel C1"],
    }
)


class FakeClient:
    def __init__(self, reply="", *, error=None, delay=0.0):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls = []

    async def complete(self, messages, *, json_mode=False):
        self.calls.append((list(messages), json_mode))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeFactory:
    def __init__(self, clients):
        self.clients = clients
        self.requested = []

    def __call__(self, provider_id, model_id, timeout_s):
        self.requested.append(provider_id)
        if provider_id not in self.clients:
            raise RuntimeError(f"{provider_id} is not configured")
        return self.clients[provider_id]


def _service(clients, **kwargs):
    factory = FakeFactory(clients)
    router = ProviderRouter(factory, routing_table=ROUTING, default_models=MODELS)
    return AssessmentService(router, builder=PromptBuilder(**kwargs)), factory


class AnalyzeCvTests(unittest.IsolatedAsyncioTestCase):
    async def test_free_tier_receives_redacted_report(self):
        service, _ = _service({"deepseek": FakeClient(REPORT_REPLY)})
        report = await service.analyze_cv(CV_TEXT, JOB_DESCRIPTION, tier=Tier.FREE)
        self.assertIsInstance(report, RedactedReport)
        self.assertEqual(report.score, 58)
        self.assertEqual(report.hard_skills_analysis.missing_keywords, ["AWS", "Terraform"])
        self.assertEqual(report.hard_skills_analysis.total_hidden, 3)

    async def test_pro_tier_receives_full_report(self):
        service, _ = _service({"deepseek": FakeClient(REPORT_REPLY)})
        report = await service.analyze_cv(CV_TEXT, JOB_DESCRIPTION, tier="pro")
        self.assertNotIsInstance(report, RedactedReport)
        self.assertEqual(len(report.hard_skills_analysis.missing_keywords), 3)
        self.assertEqual(report.improvement_plan, ["Certificación AWS", "Indicar nivel C1"])

    async def test_primary_timeout_is_invisible_to_caller(self):
        service, factory = _service({
            "deepseek": FakeClient(REPORT_REPLY, delay=1.0),
            "openai": FakeClient(REPORT_REPLY),
        })
        report = await service.analyze_cv(CV_TEXT, JOB_DESCRIPTION, tier=Tier.PRO)
        self.assertEqual(report.score, 58)
        self.assertEqual(report.match_level, "En revision")
        self.assertEqual(factory.requested, ["deepseek", "openai"])

    async def test_total_provider_failure_degrades_to_fallback_report(self):
        service, _ = _service({
            "deepseek": FakeClient(error=ConnectionError("reset")),
            "openai": FakeClient(error=ConnectionError("reset")),
        })
        report = await service.analyze_cv(CV_TEXT, JOB_DESCRIPTION, tier=Tier.FREE)
        self.assertIsInstance(report, AnalysisReport)
        self.assertEqual(report, fallback_report())

    async def test_malformed_reply_degrades_to_fallback_report(self):
        service, _ = _service({"deepseek": FakeClient("Lo siento, no puedo ayudar con eso.")})
        report = await service.analyze_cv(CV_TEXT, JOB_DESCRIPTION, tier=Tier.FREE)
        self.assertEqual(report.match_level, "Error")
        self.assertEqual(report.improvement_plan, ["Retry analysis"])

    async def test_validation_happens_before_any_provider_call(self):
        service, factory = _service({"deepseek": FakeClient(REPORT_REPLY)})
        with self.assertRaises(InputValidationError) as ctx:
            await service.analyze_cv("muy corto", JOB_DESCRIPTION)
        self.assertEqual(ctx.exception.code, "subject_too_short")
        with self.assertRaises(InputValidationError) as ctx:
            await service.analyze_cv(CV_TEXT, "   ")
        self.assertEqual(ctx.exception.code, "reference_missing")
        self.assertEqual(factory.requested, [])

    async def test_rubric_reaches_the_prompt(self):
        client = FakeClient(REPORT_REPLY)
        service, _ = _service({"deepseek": client}, audit_rubric=AuditRubric.STRICT_ATS)
        await service.analyze_cv(CV_TEXT, JOB_DESCRIPTION, rubric=AuditRubric.EUROPASS_COACH)
        messages, json_mode = client.calls[0]
        self.assertIn("Europass", messages[0].content)
        self.assertTrue(json_mode)


class RewriteTests(unittest.IsolatedAsyncioTestCase):
    async def test_rewrite_success(self):
        reply = '{"improvements": [{"original": "Hice informes.", "improved": "Automaticé 12 informes."}], "general_advice": "Usa cifras."}'
        service, _ = _service({"deepseek": FakeClient(reply)})
        result = await service.rewrite_cv(CV_TEXT)
        self.assertEqual(result.improvements[0].original, "Hice informes.")

    async def test_rewrite_degrades_on_provider_failure(self):
        service, _ = _service({})
        result = await service.rewrite_cv(CV_TEXT)
        self.assertEqual(result.improvements, [])
        self.assertTrue(result.general_advice)


class InterviewTests(unittest.IsolatedAsyncioTestCase):
    async def test_turn_uses_complex_route_and_history(self):
        client = FakeClient("Hola, soy Alex. ¿Por qué no mencionas AWS?")
        service, factory = _service({"openai": client})
        history = [ChatMessage(role="assistant", content="Hola."), ChatMessage(role="user", content="Hola Alex.")]
        reply = await service.interview_turn(CV_TEXT, JOB_DESCRIPTION, history)
        self.assertTrue(reply.message.startswith("Hola, soy Alex"))
        self.assertIsNone(reply.feedback)
        self.assertEqual(factory.requested, ["openai"])
        messages, _ = client.calls[0]
        self.assertEqual(messages[-1].content, "Hola Alex.")

    async def test_speak_returns_feedback(self):
        client = FakeClient('{"message": "¿Qué resultado obtuviste?", "feedback": "Falta el resultado."}')
        service, _ = _service({"openai": client})
        reply = await service.interview_turn(CV_TEXT, JOB_DESCRIPTION, [], with_feedback=True)
        self.assertEqual(reply.feedback, "Falta el resultado.")

    async def test_provider_failure_is_a_hard_error(self):
        service, _ = _service({})
        with self.assertRaises(ProviderError):
            await service.interview_turn(CV_TEXT, JOB_DESCRIPTION, [])


class PsychometricTests(unittest.IsolatedAsyncioTestCase):
    async def test_scores_feed_the_prompt(self):
        client = FakeClient('{"porcentaje_match": 81, "analisis_brechas": ["AWS"], "guia_entrevista": ["¿Terraform?"]}')
        service, factory = _service({"openai": client})
        answers = {f"dass_{qid}": 3 for qid in (1, 6, 8, 11, 12, 14, 18)}
        result = await service.psychometric_report(answers, CV_TEXT, JOB_DESCRIPTION)
        self.assertEqual(result.scores.dass.stress, 42)
        self.assertEqual(result.ai_report.porcentaje_match, 81)
        self.assertIn("Stress:42", client.calls[0][0][1].content)
        self.assertEqual(factory.requested, ["openai"])

    async def test_provider_failure_still_returns_scores(self):
        service, _ = _service({})
        result = await service.psychometric_report({"flow_1": 5}, CV_TEXT, JOB_DESCRIPTION)
        self.assertEqual(result.scores.flow.per_dimension["dim_1"], 3.5)
        self.assertEqual(result.ai_report.porcentaje_match, 50)

    async def test_missing_job_description_is_rejected(self):
        service, _ = _service({})
        with self.assertRaises(InputValidationError):
            await service.psychometric_report({}, CV_TEXT, "")


class ProviderOverrideTests(unittest.IsolatedAsyncioTestCase):
    def test_unknown_override_fails_at_construction(self):
        router = ProviderRouter(FakeFactory({}), routing_table=ROUTING, default_models=MODELS)
        with self.assertRaises(ValueError):
            AssessmentService(router, provider_override="mock")

    async def test_known_override_becomes_primary(self):
        factory = FakeFactory({"claude": FakeClient(REPORT_REPLY)})
        router = ProviderRouter(factory, routing_table=ROUTING, default_models=MODELS)
        service = AssessmentService(router, provider_override="claude")
        report = await service.analyze_cv(CV_TEXT, JOB_DESCRIPTION, tier=Tier.PRO)
        self.assertEqual(report.score, 58)
        self.assertEqual(factory.requested, ["claude"])


if __name__ == "__main__":
    unittest.main()
