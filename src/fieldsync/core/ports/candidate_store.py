"""
Candidate Store Port - Local record of attendance and verification.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..domain.entities import CandidateRecord


class CandidateStorePort(ABC):
    """Abstract interface for the candidate/student store."""

    @abstractmethod
    def list_candidates(self) -> list[CandidateRecord]:
        """Get all known candidates."""
        ...

    @abstractmethod
    def get(self, candidate_id: str) -> Optional[CandidateRecord]:
        """Get one candidate, or None."""
        ...

    @abstractmethod
    def record_attendance(
        self,
        candidate_id: str,
        name: str = "",
        present: bool = True,
    ) -> CandidateRecord:
        """Create or update a candidate's attendance, marking it pending."""
        ...

    @abstractmethod
    def record_verification(
        self,
        candidate_id: str,
        verified: bool,
    ) -> CandidateRecord:
        """Create or update a candidate's verification, marking it pending."""
        ...

    @abstractmethod
    def mark_synced(self, candidate_id: str) -> bool:
        """
        Mark a candidate's latest change as delivered.

        Returns:
            False if the candidate is unknown
        """
        ...
