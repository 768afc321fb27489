"""
One timed request to one model of one provider.

Every transport returns the raw generated text or raises one of the
attempt-scoped errors from personall.core.errors:

    GenerationTimeout  the per-attempt deadline fired (the request is cancelled)
    QuotaExceeded      HTTP 429 / rate limit
    ServiceError       any other non-2xx answer
    TransportError     network or protocol failure

The fallback orchestrator relies on nothing else.
"""
import asyncio
import base64
from dataclasses import dataclass
from typing import Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from loguru import logger

from personall.core.errors import (
    AttemptError,
    GenerationTimeout,
    QuotaExceeded,
    ServiceError,
    TransportError,
)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str = "image/jpeg"

    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class GenerationTransport:
    provider = "base"

    async def invoke(
        self,
        model: str,
        prompt: str,
        timeout: float,
        *,
        image: Optional[ImagePayload] = None,
        max_output_tokens: Optional[int] = None,
        json_mode: bool = True,
    ) -> str:
        """
        Run one request under its own deadline.

        Args:
            model: Model identifier within this provider.
            prompt: Prompt text (opaque to the transport).
            timeout: Seconds before the request is cancelled.
            image: Optional image sent inline next to the prompt.
            max_output_tokens: Generation length cap, provider default when None.
            json_mode: Ask the provider for a JSON response.

        Returns:
            The generated text ("" when the provider answered with nothing).
        """
        try:
            return await asyncio.wait_for(
                self._request(model, prompt, timeout, image, max_output_tokens, json_mode),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            raise GenerationTimeout(
                f"{self.provider}/{model} did not answer within {timeout}s",
                provider=self.provider, model=model,
            )
        except httpx.TimeoutException as e:
            raise GenerationTimeout(str(e) or "request timed out", provider=self.provider, model=model)
        except AttemptError as e:
            e.provider, e.model = self.provider, model
            raise
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}", provider=self.provider, model=model)
        except Exception as e:
            logger.exception(f"Unexpected failure calling {self.provider}/{model}")
            raise TransportError(f"{type(e).__name__}: {e}", provider=self.provider, model=model)

    async def _request(self, model, prompt, timeout, image, max_output_tokens, json_mode) -> str:
        raise NotImplementedError


class GeminiTransport(GenerationTransport):
    provider = "gemini"

    def __init__(self, api_key: str, client: Optional[genai.Client] = None, temperature: float = 0.7):
        self.api_key = api_key
        self.temperature = temperature
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _request(self, model, prompt, timeout, image, max_output_tokens, json_mode) -> str:
        contents = [prompt]
        if image is not None:
            contents.insert(0, types.Part.from_bytes(data=image.data, mime_type=image.mime_type))

        config = types.GenerateContentConfig(
            # images get a cooler temperature, estimates should be conservative
            temperature=0.4 if image is not None else self.temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json" if json_mode else None,
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            if e.code == 429:
                raise QuotaExceeded(f"Gemini quota exceeded: {e.message}")
            raise ServiceError(f"Gemini API error {e.code}: {e.message}", status_code=e.code)

        return _first_candidate_text(response)


def _first_candidate_text(response) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = candidates[0].content
    if not content or not content.parts:
        logger.debug(f"Gemini candidate has no content (finish reason: {candidates[0].finish_reason})")
        return ""
    for part in content.parts:
        if part.text:
            return part.text
    return ""


class OpenAITransport(GenerationTransport):
    provider = "openai"

    def __init__(self, api_key: str, client: Optional[httpx.AsyncClient] = None, temperature: float = 0.7):
        self.api_key = api_key
        self.temperature = temperature
        self._client = client

    def _payload(self, model, prompt, image, max_output_tokens, json_mode) -> dict:
        if image is not None:
            content = [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": f"data:{image.mime_type};base64,{image.b64()}"}},
            ]
        else:
            content = prompt

        payload = {
            "model": model,
            "messages": [{"role": "user", "content": content}],
            "temperature": self.temperature,
        }
        if max_output_tokens:
            payload["max_tokens"] = max_output_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def _post(self, client: httpx.AsyncClient, payload: dict) -> httpx.Response:
        return await client.post(
            OPENAI_CHAT_URL,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )

    async def _request(self, model, prompt, timeout, image, max_output_tokens, json_mode) -> str:
        payload = self._payload(model, prompt, image, max_output_tokens, json_mode)

        if self._client is not None:
            response = await self._post(self._client, payload)
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await self._post(client, payload)

        if response.status_code == 429:
            raise QuotaExceeded("OpenAI quota exceeded")
        if not response.is_success:
            raise ServiceError(
                f"OpenAI API error {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError:
            raise TransportError("OpenAI returned a non-JSON body")

        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error", {}).get("message") or response.text
    except (ValueError, AttributeError):
        return response.text
