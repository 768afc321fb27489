from typing import Optional


class GenerationError(Exception):
    """Base class for everything that can go wrong while asking a model for output."""


class AttemptError(GenerationError):
    """A single (provider, model) attempt failed. The orchestrator moves on to the next entry."""

    def __init__(self, message: str, provider: Optional[str] = None, model: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.model = model


class GenerationTimeout(AttemptError):
    pass


class TransportError(AttemptError):
    pass


class QuotaExceeded(AttemptError):
    pass


class ServiceError(AttemptError):
    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class AllProvidersExhausted(GenerationError):
    def __init__(self, attempts=()):
        self.attempts = list(attempts)
        if self.attempts:
            tried = ", ".join(f"{a.entry.provider}/{a.entry.model}" for a in self.attempts)
            message = f"All providers failed after {len(self.attempts)} attempt(s): {tried}"
        else:
            message = "No AI provider is configured"
        super().__init__(message)


class RepairFailed(GenerationError):
    def __init__(self, raw_text: str):
        super().__init__(f"Could not extract structured output from model response: {raw_text[:200]!r}")
        self.raw_text = raw_text


class PersistenceError(Exception):
    """A Supabase insert/update did not return what we asked for."""
