# backend/voicepost/core/retry.py
"""
Retry Controller for AI calls

Wraps a single awaited unit of work (one Gemini request) with bounded
exponential backoff. Every failure is classified into a closed set of kinds:

- ErrorKind.TRANSIENT: rate limit / quota signal. Retried with the next backoff
  delay until the attempt budget is spent, then the last error propagates.
- ErrorKind.FATAL: everything else. Propagated at once, zero retries.

The controller knows nothing about the operation it wraps; TranscriptionStage
and TransformStage share the same policy through an injected RetryConfig.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    stop_when_event_set,
    wait_exponential,
)

from voicepost.core.errors import FatalUpstreamError, TransientUpstreamError, VoicePostError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Vendor status strings that mean "slow down"
TRANSIENT_STATUSES = {"RESOURCE_EXHAUSTED", "RATELIMIT_EXCEEDED", "TOO_MANY_REQUESTS"}

# Last-resort markers looked up in the error message; 429 only as a whole number
TRANSIENT_MESSAGE_PATTERN = re.compile(
    r"\b429\b|ratelimit_exceeded|quota|rate limit|too many requests",
    re.IGNORECASE,
)


class ErrorKind(str, Enum):
    """Classification of a failed upstream call."""
    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass(frozen=True)
class RetryConfig:
    """
    Backoff policy for one RetryController.

    With the defaults the waits between attempts are 2, 4, 8 and 16 seconds,
    each capped at max_delay.
    """

    max_attempts: int = 5
    initial_delay: float = 2.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must not be negative")

    def delays(self) -> List[float]:
        """Waits applied between consecutive attempts, in seconds."""
        return [
            min(self.initial_delay * self.backoff_factor ** i, self.max_delay)
            for i in range(self.max_attempts - 1)
        ]

    def wait_strategy(self) -> wait_exponential:
        return wait_exponential(
            multiplier=self.initial_delay,
            exp_base=self.backoff_factor,
            max=self.max_delay,
        )


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Classify an exception raised by an AI call.

    Structured signals are checked first: the google-genai SDK raises
    ``APIError`` subclasses carrying an HTTP ``code`` and a ``status`` string,
    and HTTP clients usually expose ``status_code``. Only when none of those
    identify a rate limit is the message text inspected, as a last resort.

    Args:
        exc: The exception raised by the wrapped operation

    Returns:
        ErrorKind.TRANSIENT for rate-limit / quota failures, ErrorKind.FATAL otherwise
    """
    for attr in ("code", "status_code"):
        if getattr(exc, attr, None) == 429:
            return ErrorKind.TRANSIENT

    status = getattr(exc, "status", None)
    if isinstance(status, str) and status.upper() in TRANSIENT_STATUSES:
        return ErrorKind.TRANSIENT

    if TRANSIENT_MESSAGE_PATTERN.search(str(exc)):
        return ErrorKind.TRANSIENT

    return ErrorKind.FATAL


class RetryController:
    """
    Runs an async operation under the configured backoff policy.

    Usage:
        controller = RetryController(RetryConfig())
        text = await controller.run(lambda: call_model(...), description="transcription")
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        classifier: Callable[[BaseException], ErrorKind] = classify_error,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Args:
            config: Backoff policy (defaults to RetryConfig())
            classifier: Maps an exception to an ErrorKind
            sleep: Awaitable used to wait between attempts
        """
        self.config = config or RetryConfig()
        self._classifier = classifier
        self._sleep = sleep

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        cancel_event: Optional[asyncio.Event] = None,
        description: str = "AI call",
    ) -> T:
        """
        Execute ``operation`` until it succeeds, fails fatally or the budget runs out.

        Args:
            operation: Zero-argument coroutine function performing one attempt
            cancel_event: When set, no further attempt is started
            description: Label used in log messages

        Returns:
            The value returned by the first successful attempt

        Raises:
            TransientUpstreamError: Attempts exhausted (or cancelled) on a rate limit
            FatalUpstreamError: Non-retryable failure, raised on the attempt it happened
            VoicePostError: Domain errors raised by the operation pass through unchanged
        """
        stop = stop_after_attempt(self.config.max_attempts)
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)

        def log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "%s hit a transient error on attempt %d/%d, retrying in %.1fs: %s",
                description,
                retry_state.attempt_number,
                self.config.max_attempts,
                retry_state.next_action.sleep if retry_state.next_action else 0.0,
                exc,
            )

        retrying = AsyncRetrying(
            stop=stop,
            wait=self.config.wait_strategy(),
            retry=retry_if_exception_type(TransientUpstreamError),
            sleep=self._sleep,
            before_sleep=log_retry,
            reraise=True,
        )
        pending: List[TransientUpstreamError] = []
        return await retrying(self._attempt, operation, description, cancel_event, pending)

    async def _attempt(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str,
        cancel_event: Optional[asyncio.Event],
        pending: List[TransientUpstreamError],
    ) -> T:
        # Cancelled while backing off: surface the last rate limit without calling again
        if pending and cancel_event is not None and cancel_event.is_set():
            logger.info("%s cancelled after %d attempt(s)", description, len(pending))
            raise pending[-1]

        try:
            return await operation()
        except VoicePostError:
            raise
        except Exception as exc:
            kind = self._classifier(exc)
            if kind is ErrorKind.TRANSIENT:
                error = TransientUpstreamError(f"{description} rate limited: {exc}")
                pending.append(error)
                raise error from exc
            logger.error("%s failed with a non-retryable error: %s", description, exc)
            raise FatalUpstreamError(f"{description} failed: {exc}") from exc
