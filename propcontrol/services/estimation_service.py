import asyncio
import logging
import time
from typing import Awaitable, Sequence

from ..core.config import Settings, settings
from ..core.errors import (
    CapabilityUnavailableError,
    ConfigurationError,
    EstimationCancelledError,
    EstimationError,
    InvalidInputError,
    MalformedResponseError,
    ProviderError,
    SchemaViolationError,
    TransportError,
)
from ..core.metrics import ESTIMATES, MODEL_LATENCY
from ..core.utils import is_usable_number
from ..data.base import EncodedImagePart, PhotoInput
from ..models.base import EstimationModel
from ..models.gemini_model import GeminiModel
from ..models.mock_model import MockModel
from ..schemas import DesignOptions, RehabEstimate
from . import image_encoder, prompt_builder, response_validator

logger = logging.getLogger(__name__)

def check_square_footage(value) -> float | None:
    """None and 0 mean "unknown"; negative or non-finite hints are rejected."""
    if value is None:
        return None
    if not is_usable_number(value):
        raise InvalidInputError("square_footage must be a finite number")
    if value < 0:
        raise InvalidInputError("square_footage must not be negative")
    return value or None

def decoded_size(part: EncodedImagePart) -> int:
    return len(part.data) * 3 // 4 - part.data[-2:].count("=")

class EstimationService:
    """
    Orchestrates:
      photos → encode (order kept) → prompt → one model call → validate
    Holds no per-request state, so one instance serves concurrent requests.
    """
    SUPPORTED = frozenset({"analyze_property_photos"})

    def __init__(
        self,
        model: EstimationModel,
        *,
        max_photos: int = 20,
        max_photo_bytes: int = 15 * 1024 * 1024,
        tolerance: float = response_validator.DEFAULT_TOLERANCE,
        max_retries: int = 0,
        retry_backoff: float = 1.0,
        repair_attempts: int = 0,
    ):
        self.model = model
        self.max_photos = max_photos
        self.max_photo_bytes = max_photo_bytes
        self.tolerance = tolerance
        self.max_retries = max(0, max_retries)
        self.retry_backoff = retry_backoff
        self.repair_attempts = max(0, repair_attempts)

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "EstimationService":
        # Pick model provider based on env
        provider = cfg.MODEL_PROVIDER
        if provider == "gemini":
            model = GeminiModel(
                api_key=cfg.require_gemini_api_key(),
                model=cfg.GEMINI_MODEL,
                base_url=cfg.GEMINI_BASE_URL,
                timeout=cfg.MODEL_TIMEOUT_SECONDS,
            )
        elif provider == "mock":
            model = MockModel()
        else:
            raise ConfigurationError(f"unknown MODEL_PROVIDER {provider!r} (expected gemini or mock)")

        logger.info("estimation model provider: %s", model.name)
        return cls(
            model,
            max_photos=cfg.MAX_PHOTOS,
            max_photo_bytes=cfg.MAX_PHOTO_BYTES,
            tolerance=cfg.RECONCILIATION_TOLERANCE,
            max_retries=cfg.MODEL_MAX_RETRIES,
            retry_backoff=cfg.MODEL_RETRY_BACKOFF_SECONDS,
            repair_attempts=cfg.MODEL_REPAIR_ATTEMPTS,
        )

    def supports(self, capability: str) -> bool:
        return capability in self.SUPPORTED

    async def analyze_property_photos(
        self,
        images: Sequence[PhotoInput],
        square_footage: float | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> RehabEstimate:
        """
        Turn property photos into a validated, itemized rehab estimate.

        ``cancel_event`` and ``timeout`` bound each model call; when either
        fires first the call is abandoned and EstimationCancelledError is
        raised. Every other failure propagates as its own EstimationError.
        """
        try:
            estimate = await self._analyze(images, square_footage, cancel_event, timeout)
        except EstimationError as exc:
            ESTIMATES.labels(outcome=exc.code).inc()
            raise
        ESTIMATES.labels(outcome="ok").inc()
        return estimate

    async def _analyze(self, images, square_footage, cancel_event, timeout) -> RehabEstimate:
        images = list(images or [])
        if not images:
            raise InvalidInputError("at least one photo is required")
        if len(images) > self.max_photos:
            raise InvalidInputError(f"at most {self.max_photos} photos per estimate ({len(images)} given)")
        sqft = check_square_footage(square_footage)

        parts = image_encoder.encode_all(images)
        for index, part in enumerate(parts):
            if decoded_size(part) > self.max_photo_bytes:
                raise InvalidInputError(f"photo {index} exceeds {self.max_photo_bytes} bytes")

        prompt = prompt_builder.build(sqft)
        request_prompt = prompt
        repairs = 0
        while True:
            raw = await self._call_model(parts, request_prompt, cancel_event, timeout)
            try:
                return response_validator.validate(raw, image_count=len(parts), tolerance=self.tolerance)
            except (MalformedResponseError, SchemaViolationError) as exc:
                if repairs >= self.repair_attempts:
                    raise
                repairs += 1
                logger.warning("re-asking model after rejected answer (%d/%d): %s",
                               repairs, self.repair_attempts, exc.message)
                request_prompt = prompt + "\n" + prompt_builder.build_repair_followup(exc)

    async def _call_model(self, parts, prompt, cancel_event, timeout) -> str:
        attempt = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise EstimationCancelledError("estimation cancelled by caller")
            start = time.perf_counter()
            try:
                return await self._bounded(self.model.request(parts, prompt), cancel_event, timeout)
            except (TransportError, ProviderError) as exc:
                transient = isinstance(exc, TransportError) or exc.transient
                if not transient or attempt >= self.max_retries:
                    raise
                failure = exc
            finally:
                MODEL_LATENCY.labels(provider=self.model.name).observe(time.perf_counter() - start)

            delay = self.retry_backoff * (2 ** attempt)
            attempt += 1
            logger.warning("transient model failure, retry %d/%d in %.1fs: %s",
                           attempt, self.max_retries, delay, failure.message)
            # A cancel during backoff ends the estimate straight away
            await self._bounded(asyncio.sleep(delay), cancel_event, None)

    @staticmethod
    async def _bounded(call: Awaitable[str], cancel_event: asyncio.Event | None,
                       timeout: float | None) -> str:
        """Await ``call`` unless the cancel event or the timeout comes first."""
        if cancel_event is None and timeout is None:
            return await call

        task = asyncio.ensure_future(call)
        waiters = {task}
        cancel_wait = None
        if cancel_event is not None:
            cancel_wait = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_wait)
        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if cancel_wait is not None:
                cancel_wait.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if task in done:
            return task.result()
        if cancel_event is not None and cancel_event.is_set():
            raise EstimationCancelledError("estimation cancelled by caller")
        raise EstimationCancelledError(f"no model answer within {timeout:g}s")

    async def visualize_room(
        self,
        photo: PhotoInput,
        room_name: str,
        design_options: DesignOptions,
        observations: str | None = None,
        recommended_action: str | None = None,
    ) -> bytes:
        """Not available in this deployment; always raises CapabilityUnavailableError."""
        raise CapabilityUnavailableError(
            "visualize_room",
            "Room visualization requires a server-side image-generation backend, "
            "which is not provisioned for this deployment.",
        )
