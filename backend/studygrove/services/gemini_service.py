"""
StudyGrove Backend — Gemini Answer Grader
==========================================

What:  AnswerGrader backed by Google Gemini. Asks the model to grade like a
       tutor comparing a student's answer with the expected one and to
       reply with {"correct": bool, "feedback": str}.
Who:   Built once by create_app() and stored on app.state; called by
       POST /api/quizzes/check.

Resilience Strategy:
    1. Per-call timeout (GRADING_TIMEOUT_SECONDS) around the SDK call
    2. Tenacity retry with exponential backoff + jitter, transient errors only
    3. Circuit breaker: after CB_FAILURE_THRESHOLD consecutive failures,
       calls fail instantly for CB_RECOVERY_TIMEOUT seconds
    4. Every failure leaves as GradingServiceError → HTTP 500
       "Failed to check answer". There is no local fallback grading.
"""

import asyncio
import json
import logging
import time
import uuid
from typing import Callable, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from studygrove.config import settings
from studygrove.exceptions import CircuitBreakerOpenError, GradingServiceError
from studygrove.services.llm_base import AnswerGrader, GradeResult

logger = logging.getLogger(__name__)

NO_FEEDBACK = "No feedback provided."

GRADER_INSTRUCTION = (
    "You are a teacher grading a student's answer. Compare the user's answer "
    "to the correct answer. Be lenient with phrasing but strict with facts. "
    "Return a JSON object with 'correct' (boolean) and 'feedback' (string)."
)

# Upstream conditions worth another attempt. Anything else (bad request,
# auth failure, unparseable payload) fails on the first try.
TRANSIENT_ERRORS = (
    asyncio.TimeoutError,
    ConnectionError,
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.ResourceExhausted,
    google_exceptions.InternalServerError,
)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    State Machine:
        CLOSED    → failure_count reaches threshold → OPEN
        OPEN      → recovery_timeout elapsed        → HALF_OPEN (one trial call)
        HALF_OPEN → trial succeeds → CLOSED; trial fails → OPEN

    While the trial call is in flight every other caller is rejected as if
    the circuit were still OPEN. A trial that ends without an outcome
    (cancelled request) must be handed back with release_trial().

    Not thread-safe: one instance lives on app.state and is only touched from
    the event loop.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.clock = clock
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at: Optional[float] = None
        self.trial_in_flight = False

    def can_execute(self) -> bool:
        """
        Returns True if a call may proceed.

        Raises:
            CircuitBreakerOpenError: OPEN and still inside the recovery window,
                or HALF_OPEN with the trial call already taken.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.HALF_OPEN:
            if self.trial_in_flight:
                raise CircuitBreakerOpenError(recovery_time=0)
            self.trial_in_flight = True
            return True

        elapsed = self.clock() - (self.opened_at or 0.0)
        if elapsed >= self.recovery_timeout:
            logger.info("Grader circuit breaker HALF_OPEN after %.1fs", elapsed)
            self.state = self.HALF_OPEN
            self.trial_in_flight = True
            return True

        raise CircuitBreakerOpenError(recovery_time=int(self.recovery_timeout - elapsed))

    def release_trial(self) -> None:
        self.trial_in_flight = False

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Grader circuit breaker CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at = None
        self.trial_in_flight = False

    def record_failure(self) -> None:
        self.failure_count += 1
        self.trial_in_flight = False
        if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != self.OPEN:
                logger.warning(
                    "Grader circuit breaker OPEN after %d consecutive failures",
                    self.failure_count,
                )
            self.state = self.OPEN
            self.opened_at = self.clock()


# ══════════════════════════════════════════════════════════════════════════
# Response Parsing
# ══════════════════════════════════════════════════════════════════════════

def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_verdict(raw: Optional[str]) -> GradeResult:
    """
    Turn the model's reply into a GradeResult.

    Rules:
        - The reply must decode to a JSON object (a fenced ```json block is
          accepted)
        - `correct` is read by truthiness
        - missing or empty `feedback` becomes "No feedback provided."

    Raises:
        GradingServiceError: Empty, non-JSON or non-object payload.
    """
    if not raw or not raw.strip():
        raise GradingServiceError(context={"reason": "empty_response"})

    try:
        payload = json.loads(_strip_code_fence(raw))
    except ValueError as e:
        raise GradingServiceError(context={"reason": "non_json_response"}) from e

    if not isinstance(payload, dict):
        raise GradingServiceError(
            context={"reason": "unexpected_payload", "payload_type": type(payload).__name__},
        )

    feedback = payload.get("feedback")
    return GradeResult(
        correct=bool(payload.get("correct")),
        feedback=str(feedback) if feedback else NO_FEEDBACK,
    )


def build_grading_prompt(question: str, user_answer: str, correct_answer: str) -> str:
    return (
        f"Question: {question}\n"
        f"Correct Answer: {correct_answer}\n"
        f"User Answer: {user_answer}"
    )


# ══════════════════════════════════════════════════════════════════════════
# Gemini Grader
# ══════════════════════════════════════════════════════════════════════════

class GeminiAnswerGrader(AnswerGrader):
    """
    Error Handling Chain:
        circuit open → CircuitBreakerOpenError (no API call)
        transient error → tenacity retries up to max_attempts
        retries exhausted / permanent error / bad payload
            → record circuit failure → GradingServiceError
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None,
        max_attempts: Optional[int] = None,
        min_wait: Optional[float] = None,
        max_wait: Optional[float] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        api_key = settings.gemini_api_key if api_key is None else api_key
        self.model_name = model_name or settings.gemini_model
        self.timeout = timeout or settings.grading_timeout_seconds
        self.max_attempts = max_attempts or settings.retry_max_attempts
        self.min_wait = settings.retry_min_wait if min_wait is None else min_wait
        self.max_wait = settings.retry_max_wait if max_wait is None else max_wait

        # The SDK keeps credentials in module-level state
        if api_key and api_key != "your_gemini_api_key_here":
            genai.configure(api_key=api_key)

        self.model = genai.GenerativeModel(
            self.model_name,
            system_instruction=GRADER_INSTRUCTION,
            generation_config={
                "response_mime_type": "application/json",
                "temperature": 0.0,
            },
        )
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiAnswerGrader initialized with model=%s, timeout=%.0fs, attempts=%d",
            self.model_name,
            self.timeout,
            self.max_attempts,
        )

    async def grade(self, question: str, user_answer: str, correct_answer: str) -> GradeResult:
        call_id = str(uuid.uuid4())[:8]

        # Raises CircuitBreakerOpenError without touching the API
        self.circuit_breaker.can_execute()

        prompt = build_grading_prompt(question, user_answer, correct_answer)

        try:
            raw = await self._generate_with_retry(prompt, call_id)
            verdict = parse_verdict(raw)
        except asyncio.CancelledError:
            # Client went away: no verdict either way, let the next caller try
            self.circuit_breaker.release_trial()
            raise
        except GradingServiceError as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Unusable grader response: %s", call_id, e.context)
            raise
        except asyncio.TimeoutError as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Grader timed out after %.0fs", call_id, self.timeout)
            raise GradingServiceError(
                context={"call_id": call_id, "reason": "timeout"},
            ) from e
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "[%s] Grader call failed: %s",
                call_id,
                str(e),
                exc_info=True,
            )
            raise GradingServiceError(
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        self.circuit_breaker.record_success()
        logger.info("[%s] Answer graded: correct=%s", call_id, verdict.correct)
        return verdict

    async def _generate_with_retry(self, prompt: str, call_id: str) -> str:
        """
        Retry wrapper around a single Gemini call.

        Kept apart from grade() so the circuit breaker check and the payload
        parsing run once per request, not once per attempt.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=self.min_wait, max=self.max_wait, jitter=1),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._call_gemini(prompt, call_id)
        raise GradingServiceError(context={"call_id": call_id, "reason": "no_attempts"})

    async def _call_gemini(self, prompt: str, call_id: str) -> str:
        start_time = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.model.generate_content_async(
                    prompt,
                    request_options={"timeout": self.timeout},
                ),
                timeout=self.timeout,
            )
            # .text raises ValueError when the candidate was blocked
            text = response.text or ""
        except Exception as e:
            logger.warning(
                "[%s] Gemini call failed after %.0fms: %s",
                call_id,
                (time.perf_counter() - start_time) * 1000,
                str(e) or type(e).__name__,
            )
            raise

        logger.debug(
            "[%s] Gemini replied in %.0fms (%d chars)",
            call_id,
            (time.perf_counter() - start_time) * 1000,
            len(text),
        )
        return text

    async def health_check(self) -> bool:
        """
        List models (no token cost) to confirm the key and connectivity.
        """
        try:
            names = await asyncio.to_thread(lambda: [m.name for m in genai.list_models()])
        except Exception as e:
            logger.warning("Gemini health check failed: %s", str(e))
            return False
        if f"models/{self.model_name}" not in names:
            logger.warning("Configured model %s not listed by Gemini", self.model_name)
        return True
