import pytest

from personall.models.schemas import NutritionProfileInput
from personall.services.orchestrator import FallbackOrchestrator, ModelEntry
from personall.services.providers import GenerationTransport


class ScriptedTransport(GenerationTransport):
    """
    Transport that answers from a script instead of the network.

    script maps model name -> outcome: a string is returned as the model text,
    an exception instance is raised, an async callable is awaited and its
    result treated the same way.
    """

    def __init__(self, provider, script):
        self.provider = provider
        self.script = dict(script)
        self.calls = []
        self.prompts = []
        self.images = []

    async def _request(self, model, prompt, timeout, image, max_output_tokens, json_mode):
        self.calls.append(model)
        self.prompts.append(prompt)
        self.images.append(image)
        outcome = self.script.get(model, "")
        if callable(outcome):
            outcome = await outcome()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def make_orchestrator():
    """Build a FallbackOrchestrator over scripted Gemini / OpenAI transports (Gemini models first)."""

    def _make(gemini=None, openai=None, timeout=5.0):
        transports = {}
        entries = []
        if gemini is not None:
            transports["gemini"] = ScriptedTransport("gemini", gemini)
            entries.extend(ModelEntry("gemini", model) for model in gemini)
        if openai is not None:
            transports["openai"] = ScriptedTransport("openai", openai)
            entries.extend(ModelEntry("openai", model) for model in openai)
        return FallbackOrchestrator(transports, entries, timeout=timeout)

    return _make


@pytest.fixture
def offline_orchestrator():
    """No provider configured: every generation ends in AllProvidersExhausted."""
    return FallbackOrchestrator({}, [])


@pytest.fixture
def profile():
    return NutritionProfileInput(
        weight=80,
        height=180,
        age=30,
        gender="male",
        activity_level="moderate",
        goal="maintain",
    )


@pytest.fixture
def exercise_pool():
    """A few ExerciseDB-style rows (bodyPart spelling included)."""
    return [
        {"id": "0025", "name": "barbell bench press", "bodyPart": "chest", "target": "pectorals", "equipment": "barbell"},
        {"id": "0662", "name": "push-up", "bodyPart": "chest", "target": "pectorals", "equipment": "body weight"},
        {"id": "1254", "name": "incline push-up", "bodyPart": "chest", "target": "pectorals", "equipment": "body weight"},
        {"id": "0027", "name": "barbell bent over row", "bodyPart": "back", "target": "upper back", "equipment": "barbell"},
        {"id": "0043", "name": "barbell full squat", "bodyPart": "upper legs", "target": "glutes", "equipment": "barbell"},
        {"id": "0685", "name": "squat", "bodyPart": "upper legs", "target": "quads", "equipment": "body weight"},
        {"id": "0968", "name": "resistance band shoulder press", "bodyPart": "shoulders", "target": "delts",
         "equipment": "resistance band"},
    ]
