"""
Provider/model fallback.

The configured models are walked strictly in priority order, one request at a
time: Gemini models first, OpenAI last. Any attempt-scoped failure (timeout,
network error, non-2xx, quota) or an empty answer moves on to the next entry.
The first non-empty text wins and is run through the JSON repairer.
"""
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional, Sequence

from loguru import logger

from personall.core.config import Settings, get_settings
from personall.core.errors import AllProvidersExhausted, AttemptError, RepairFailed
from personall.services.providers import (
    GeminiTransport,
    GenerationTransport,
    ImagePayload,
    OpenAITransport,
)
from personall.tools.json_repair import parse_safe_json


@dataclass(frozen=True)
class ModelEntry:
    provider: str
    model: str


@dataclass(frozen=True)
class AttemptResult:
    entry: ModelEntry
    number: int  # 1-based position in this call's attempt sequence
    text: Optional[str] = None
    error: Optional[AttemptError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and bool(self.text and self.text.strip())


class FallbackOrchestrator:
    def __init__(
        self,
        transports: Dict[str, GenerationTransport],
        entries: Sequence[ModelEntry],
        timeout: float = 60.0,
        max_output_tokens: Optional[int] = 8192,
    ):
        # entries whose provider has no transport (no API key) are dropped here, once
        self.transports = dict(transports)
        self.entries = tuple(entry for entry in entries if entry.provider in self.transports)
        self.timeout = timeout
        self.max_output_tokens = max_output_tokens

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "FallbackOrchestrator":
        settings = settings or get_settings()

        transports = {}
        entries = []
        if settings.gemini_api_key:
            transports["gemini"] = GeminiTransport(settings.gemini_api_key)
            entries.extend(ModelEntry("gemini", model) for model in settings.gemini_models)
        if settings.openai_api_key:
            transports["openai"] = OpenAITransport(settings.openai_api_key)
            entries.append(ModelEntry("openai", settings.openai_model))

        if not entries:
            logger.warning("No AI provider configured (GEMINI_API_KEY / OPENAI_API_KEY); generation will use defaults")

        return cls(
            transports,
            entries,
            timeout=settings.generation_timeout,
            max_output_tokens=settings.max_output_tokens,
        )

    async def attempts(
        self,
        prompt: str,
        *,
        image: Optional[ImagePayload] = None,
        max_output_tokens: Optional[int] = None,
        json_mode: bool = True,
    ) -> AsyncIterator[AttemptResult]:
        """
        Yield one result per attempt, in priority order.

        The next request is only sent when the consumer asks for the next
        result, so there is never more than one request in flight.
        """
        tokens = max_output_tokens or self.max_output_tokens
        for number, entry in enumerate(self.entries, start=1):
            transport = self.transports[entry.provider]
            try:
                text = await transport.invoke(
                    entry.model,
                    prompt,
                    self.timeout,
                    image=image,
                    max_output_tokens=tokens,
                    json_mode=json_mode,
                )
            except AttemptError as e:
                logger.warning(f"⚠️ {entry.provider}/{entry.model} failed ({type(e).__name__}: {e}), trying next...")
                yield AttemptResult(entry, number, error=e)
                continue

            if not text or not text.strip():
                logger.warning(f"⚠️ {entry.provider}/{entry.model} returned an empty response, trying next...")
            yield AttemptResult(entry, number, text=text)

    async def generate_text(
        self,
        prompt: str,
        *,
        image: Optional[ImagePayload] = None,
        max_output_tokens: Optional[int] = None,
        json_mode: bool = True,
    ) -> str:
        """Raw text of the first successful attempt. Raises AllProvidersExhausted."""
        results = []
        async with aclosing(
            self.attempts(prompt, image=image, max_output_tokens=max_output_tokens, json_mode=json_mode)
        ) as attempts:
            async for result in attempts:
                results.append(result)
                if result.succeeded:
                    logger.info(f"✅ {result.entry.provider}/{result.entry.model} answered (attempt {result.number})")
                    return result.text

        raise AllProvidersExhausted(results)

    async def generate(
        self,
        prompt: str,
        *,
        max_output_tokens: Optional[int] = None,
        json_mode: bool = True,
    ) -> Any:
        """
        Structured output for a text prompt.

        Returns:
            The repaired JSON value, or the raw text when json_mode is False.

        Raises:
            AllProvidersExhausted: every configured model failed.
            RepairFailed: a model answered but no JSON could be extracted.
        """
        text = await self.generate_text(prompt, max_output_tokens=max_output_tokens, json_mode=json_mode)
        return self._structured(text) if json_mode else text

    async def generate_from_image(
        self,
        prompt: str,
        image: ImagePayload,
        *,
        json_mode: bool = True,
    ) -> Any:
        text = await self.generate_text(prompt, image=image, json_mode=json_mode)
        return self._structured(text) if json_mode else text

    @staticmethod
    def _structured(text: str) -> Any:
        value = parse_safe_json(text)
        if value is None:
            raise RepairFailed(text)
        return value


_default_orchestrator: Optional[FallbackOrchestrator] = None


def get_orchestrator() -> FallbackOrchestrator:
    """FastAPI dependency. The orchestrator is stateless, one instance serves every request."""
    global _default_orchestrator
    if _default_orchestrator is None:
        _default_orchestrator = FallbackOrchestrator.from_settings()
    return _default_orchestrator
