import asyncio

import pytest

from personall.core.config import Settings
from personall.core.errors import (
    AllProvidersExhausted,
    QuotaExceeded,
    RepairFailed,
    ServiceError,
)
from personall.services.orchestrator import FallbackOrchestrator, ModelEntry
from personall.services.providers import GeminiTransport, ImagePayload, OpenAITransport


def make_settings(**overrides):
    data = dict(
        gemini_api_key="g-key",
        openai_api_key="o-key",
        gemini_models=("gemini-2.5-flash", "gemini-1.5-flash"),
        openai_model="gpt-4o-mini",
        generation_timeout=30.0,
        max_output_tokens=4096,
        supabase_url=None,
        supabase_key=None,
        log_level="INFO",
        cors_origins=("*",),
    )
    data.update(overrides)
    return Settings(**data)


async def test_first_success_wins_and_stops(make_orchestrator):
    orchestrator = make_orchestrator(gemini={"g1": '{"ok": 1}', "g2": '{"ok": 2}'}, openai={"o1": '{"ok": 3}'})

    assert await orchestrator.generate("prompt") == {"ok": 1}
    assert orchestrator.transports["gemini"].calls == ["g1"]
    assert orchestrator.transports["openai"].calls == []


async def test_failures_fall_through_in_priority_order(make_orchestrator):
    orchestrator = make_orchestrator(
        gemini={"g1": QuotaExceeded("429"), "g2": ServiceError("boom", status_code=500)},
        openai={"o1": '{"source": "openai"}'},
    )

    assert await orchestrator.generate("prompt") == {"source": "openai"}
    assert orchestrator.transports["gemini"].calls == ["g1", "g2"]
    assert orchestrator.transports["openai"].calls == ["o1"]


async def test_empty_answer_counts_as_failure(make_orchestrator):
    orchestrator = make_orchestrator(gemini={"g1": "   ", "g2": '{"ok": true}'})

    assert await orchestrator.generate("prompt") == {"ok": True}
    assert orchestrator.transports["gemini"].calls == ["g1", "g2"]


async def test_unexpected_exception_is_attempt_scoped(make_orchestrator):
    orchestrator = make_orchestrator(gemini={"g1": RuntimeError("sdk bug")}, openai={"o1": "hello"})

    assert await orchestrator.generate_text("prompt", json_mode=False) == "hello"


async def test_exhaustion_lists_every_attempt(make_orchestrator):
    orchestrator = make_orchestrator(
        gemini={"g1": QuotaExceeded("429"), "g2": ""},
        openai={"o1": ServiceError("down", status_code=503)},
    )

    with pytest.raises(AllProvidersExhausted) as excinfo:
        await orchestrator.generate("prompt")

    attempts = excinfo.value.attempts
    assert [(a.entry.provider, a.entry.model) for a in attempts] == [("gemini", "g1"), ("gemini", "g2"), ("openai", "o1")]
    assert [a.number for a in attempts] == [1, 2, 3]
    assert isinstance(attempts[0].error, QuotaExceeded)
    assert attempts[0].error.provider == "gemini"
    assert attempts[0].error.model == "g1"
    assert attempts[1].error is None and not attempts[1].succeeded
    assert "openai/o1" in str(excinfo.value)


async def test_no_provider_configured(offline_orchestrator):
    with pytest.raises(AllProvidersExhausted, match="No AI provider is configured"):
        await offline_orchestrator.generate("prompt")


async def test_timeout_moves_on_to_next_entry(make_orchestrator):
    async def slow():
        await asyncio.sleep(10)
        return '{"late": true}'

    orchestrator = make_orchestrator(gemini={"g1": slow}, openai={"o1": '{"fast": true}'}, timeout=0.05)

    assert await orchestrator.generate("prompt") == {"fast": True}


async def test_attempts_run_one_at_a_time(make_orchestrator):
    events = []

    def recorder(name, outcome):
        async def _run():
            events.append(f"start {name}")
            await asyncio.sleep(0.01)
            events.append(f"end {name}")
            return outcome
        return _run

    orchestrator = make_orchestrator(
        gemini={"g1": recorder("g1", QuotaExceeded("429")), "g2": recorder("g2", "")},
        openai={"o1": recorder("o1", '{"ok": 1}')},
    )
    await orchestrator.generate("prompt")

    assert events == ["start g1", "end g1", "start g2", "end g2", "start o1", "end o1"]


async def test_cancellation_propagates_and_stops_the_sequence(make_orchestrator):
    started = asyncio.Event()

    async def hang():
        started.set()
        await asyncio.sleep(3600)

    orchestrator = make_orchestrator(gemini={"g1": hang, "g2": '{"ok": true}'})
    task = asyncio.create_task(orchestrator.generate("prompt"))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert orchestrator.transports["gemini"].calls == ["g1"]


async def test_unparseable_answer_raises_repair_failed(make_orchestrator):
    orchestrator = make_orchestrator(gemini={"g1": "I am not JSON"})

    with pytest.raises(RepairFailed) as excinfo:
        await orchestrator.generate("prompt")
    assert excinfo.value.raw_text == "I am not JSON"


async def test_text_mode_returns_raw_text(make_orchestrator):
    orchestrator = make_orchestrator(gemini={"g1": "Keep your back straight."})

    assert await orchestrator.generate("prompt", json_mode=False) == "Keep your back straight."


async def test_image_is_forwarded_to_the_transport(make_orchestrator):
    image = ImagePayload(data=b"\xff\xd8", mime_type="image/jpeg")
    orchestrator = make_orchestrator(gemini={"g1": '{"description": "Rice"}'})

    assert await orchestrator.generate_from_image("what is this?", image) == {"description": "Rice"}
    assert orchestrator.transports["gemini"].images == [image]


def test_entries_without_transport_are_dropped():
    orchestrator = FallbackOrchestrator({}, [ModelEntry("gemini", "g1")])
    assert orchestrator.entries == ()


def test_from_settings_orders_gemini_before_openai():
    orchestrator = FallbackOrchestrator.from_settings(make_settings())

    assert orchestrator.entries == (
        ModelEntry("gemini", "gemini-2.5-flash"),
        ModelEntry("gemini", "gemini-1.5-flash"),
        ModelEntry("openai", "gpt-4o-mini"),
    )
    assert isinstance(orchestrator.transports["gemini"], GeminiTransport)
    assert isinstance(orchestrator.transports["openai"], OpenAITransport)
    assert orchestrator.timeout == 30.0
    assert orchestrator.max_output_tokens == 4096


def test_from_settings_skips_providers_without_key():
    orchestrator = FallbackOrchestrator.from_settings(make_settings(gemini_api_key=None))
    assert orchestrator.entries == (ModelEntry("openai", "gpt-4o-mini"),)
