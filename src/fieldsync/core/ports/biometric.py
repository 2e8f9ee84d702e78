"""
Biometric Bridge Port - Contract of the fingerprint capture/match device.

The device bridge itself lives outside this package.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class CaptureResult:
    """Result of a fingerprint capture."""

    success: bool
    template: Optional[str] = None
    quality: int = 0  # 0-100
    nfiq: int = 5  # 1 (best) to 5 (worst)


@dataclass
class MatchResult:
    """Result of comparing two templates."""

    match: bool
    score: int = 0  # 0-100


class BiometricBridgePort(ABC):
    """
    Abstract interface for the capture/match device.

    Implementations raise BiometricBridgeError on failure, with
    ``timed_out=True`` when the device did not answer in time.
    """

    @abstractmethod
    def capture(self, timeout: float, retries: int) -> CaptureResult:
        """Capture one fingerprint template."""
        ...

    @abstractmethod
    def match(self, template_a: str, template_b: str, threshold: int) -> MatchResult:
        """Compare two templates against a score threshold."""
        ...
