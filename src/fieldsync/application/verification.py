"""
Verification Recorder - Biometric check recorded as a queued operation.

Capture and match go through the RetryExecutor, so a bridge that times
out is retried like a slow server while any other bridge failure is
terminal. The outcome is stored locally and queued for delivery.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..core.domain.entities import OperationKind
from ..core.exceptions import BiometricBridgeError
from ..core.ports.biometric import BiometricBridgePort, CaptureResult, MatchResult
from ..core.ports.candidate_store import CandidateStorePort
from .retry.executor import RetryExecutor


VERIFICATION_ENDPOINT = "/api/verification/sync"

Enqueue = Callable[..., str]


@dataclass
class VerificationOutcome:
    """Result of one recorded verification."""

    candidate_id: str
    matched: bool
    score: int = 0
    quality: int = 0
    nfiq: int = 5
    operation_id: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "matched": self.matched,
            "score": self.score,
            "quality": self.quality,
            "nfiq": self.nfiq,
        }


class VerificationRecorder:
    """
    Runs capture + match against a reference template and records the result.

    Args:
        bridge: Capture/match device, or None when only pre-computed
            results are recorded
        executor: Retry wrapper for bridge calls
        candidates: Local candidate store
        enqueue: Callable with the signature of ``SyncService.enqueue``
    """

    CAPTURE_CONTEXT = "biometric-capture"
    MATCH_CONTEXT = "biometric-match"

    def __init__(
        self,
        bridge: Optional[BiometricBridgePort],
        executor: RetryExecutor,
        candidates: CandidateStorePort,
        enqueue: Enqueue,
        capture_timeout: float = 10.0,
        capture_retries: int = 2,
        match_threshold: int = 40,
    ):
        self.bridge = bridge
        self.executor = executor
        self.candidates = candidates
        self.enqueue = enqueue
        self.capture_timeout = capture_timeout
        self.capture_retries = capture_retries
        self.match_threshold = match_threshold
        self.logger = logging.getLogger("VerificationRecorder")

    def verify(
        self,
        candidate_id: str,
        reference_template: str,
        threshold: Optional[int] = None,
    ) -> VerificationOutcome:
        """
        Capture a fingerprint, match it and record the outcome.

        Raises:
            BiometricBridgeError: capture or match failed for good
            PersistenceError: the outcome could not be recorded
        """
        if self.bridge is None:
            raise BiometricBridgeError("No biometric bridge configured")

        capture = self._capture()
        match = self._match(capture.template, reference_template, threshold)

        return self.record(
            candidate_id,
            matched=match.match,
            score=match.score,
            quality=capture.quality,
            nfiq=capture.nfiq,
        )

    def record(
        self,
        candidate_id: str,
        matched: bool,
        score: int = 0,
        quality: int = 0,
        nfiq: int = 5,
    ) -> VerificationOutcome:
        """Store a verification result and queue it for delivery."""
        outcome = VerificationOutcome(
            candidate_id=str(candidate_id),
            matched=bool(matched),
            score=score,
            quality=quality,
            nfiq=nfiq,
        )

        self.candidates.record_verification(outcome.candidate_id, outcome.matched)
        outcome.operation_id = self.enqueue(
            OperationKind.VERIFICATION_SYNC,
            VERIFICATION_ENDPOINT,
            "POST",
            outcome.to_payload(),
        )

        result = "match" if outcome.matched else "no match"
        self.logger.info(f"Verification for {outcome.candidate_id}: {result} (score {score})")
        return outcome

    # -------------------------------------------------------------------------
    # Bridge Calls
    # -------------------------------------------------------------------------

    def _capture(self) -> CaptureResult:
        def attempt() -> CaptureResult:
            result = self.bridge.capture(self.capture_timeout, self.capture_retries)
            if not result.success or not result.template:
                raise BiometricBridgeError("Fingerprint capture failed")
            return result

        return self.executor.execute_with_retry(attempt, context=self.CAPTURE_CONTEXT)

    def _match(
        self,
        template: str,
        reference_template: str,
        threshold: Optional[int],
    ) -> MatchResult:
        threshold = self.match_threshold if threshold is None else threshold
        return self.executor.execute_with_retry(
            lambda: self.bridge.match(template, reference_template, threshold),
            context=self.MATCH_CONTEXT,
        )
