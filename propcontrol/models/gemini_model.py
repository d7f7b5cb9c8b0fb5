"""Gemini-backed estimation model (google-genai SDK)."""

from __future__ import annotations

import base64
import logging
from typing import Any, Sequence

import httpx
from google import genai
from google.genai import errors, types

from .base import EstimationModel
from ..core.errors import AuthError, ProviderError, TransportError
from ..core.utils import truncate
from ..data.base import EncodedImagePart

logger = logging.getLogger(__name__)

# Fixed sampling temperature for every estimate request
TEMPERATURE = 0.7

TRANSIENT_STATUSES = {429, 500, 502, 503, 504}


class GeminiModel(EstimationModel):
    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        base_url: str | None = None,
        timeout: float = 120.0,
        client: Any = None,
    ):
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> genai.Client:
        # Built on first use; retries belong to the caller, so the SDK makes one attempt
        if self._client is None:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(
                    base_url=self.base_url,
                    timeout=int(self.timeout * 1000),
                    retry_options=types.HttpRetryOptions(attempts=1),
                ),
            )
        return self._client

    @staticmethod
    def build_contents(parts: Sequence[EncodedImagePart], prompt: str) -> list[types.Content]:
        items = [types.Part.from_text(text=prompt)]
        items += [
            types.Part.from_bytes(data=base64.b64decode(p.data), mime_type=p.mime_type)
            for p in parts
        ]
        return [types.Content(role="user", parts=items)]

    @staticmethod
    def build_config() -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=TEMPERATURE,
        )

    async def request(self, parts: Sequence[EncodedImagePart], prompt: str) -> str:
        """Send the prompt and images; return the first candidate's text.

        Parameters
        ----------
        parts: Sequence[EncodedImagePart]
            Encoded photos, in the order the caller submitted them.
        prompt: str
            Instruction text from the prompt builder.

        Returns
        -------
        str
            Raw candidate text. Not parsed here.
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=self.build_contents(parts, prompt),
                config=self.build_config(),
            )
        except errors.APIError as exc:
            raise self._error_for(exc) from exc
        except httpx.TransportError as exc:
            # Covers connect/read failures and network-level timeouts
            raise TransportError(f"could not reach model endpoint: {exc!r}", payload=str(exc)) from exc
        except ValueError as exc:
            # The SDK could not read the body as a generateContent envelope
            logger.warning("unreadable model envelope: %s", truncate(str(exc), 300))
            raise ProviderError(
                "model endpoint returned an unrecognised envelope",
                payload=str(exc),
                status_code=200,
            ) from exc
        return self._candidate_text(response)

    @staticmethod
    def _error_for(exc: errors.APIError) -> Exception:
        status = exc.code or 0
        payload = exc.details
        message = exc.message or str(exc)
        logger.warning("model endpoint returned %s: %s", status, message)
        if status in (401, 403) or "API_KEY_INVALID" in _reasons(payload):
            return AuthError(f"model credential rejected ({status}): {message}", payload=payload)
        return ProviderError(
            f"model endpoint returned {status}: {message}",
            payload=payload,
            status_code=status,
            transient=status in TRANSIENT_STATUSES,
        )

    @staticmethod
    def _candidate_text(response: types.GenerateContentResponse) -> str:
        text = response.text
        if text is not None:
            return text

        payload = response.model_dump(mode="json", exclude_none=True)
        feedback = response.prompt_feedback
        block = feedback.block_reason if feedback is not None else None
        if block is not None:
            reason = getattr(block, "value", block)
            raise ProviderError(f"model produced no answer: prompt blocked ({reason})",
                                payload=payload, status_code=200)
        if not response.candidates:
            raise ProviderError("model produced no answer: no candidates returned",
                                payload=payload, status_code=200)
        finish = response.candidates[0].finish_reason
        finish = getattr(finish, "value", finish) or "unknown"
        raise ProviderError(f"model produced no text (finishReason={finish})", payload=payload, status_code=200)


def _reasons(payload: Any) -> set:
    err = payload.get("error", payload) if isinstance(payload, dict) else None
    details = err.get("details") if isinstance(err, dict) else None
    if not isinstance(details, list):
        return set()
    return {d.get("reason") for d in details if isinstance(d, dict)}
