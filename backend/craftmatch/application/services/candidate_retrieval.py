"""Candidate retrieval — adapter between the pipeline and the profile store."""

import logging

from craftmatch.application.interfaces import ProfileRepository
from craftmatch.domain.entities import CandidateProfile
from craftmatch.domain.exceptions import RetrievalUnavailableError
from craftmatch.domain.normalization import normalize_profession

logger = logging.getLogger(__name__)


class CandidateRetrievalService:
    """Exact-match and widened reads against the profile store.

    Store failures are never retried and never turned into an empty list:
    they are raised as RetrievalUnavailableError.
    """

    def __init__(self, repository: ProfileRepository, *, widened_limit: int = 100):
        self._repo = repository
        self._widened_limit = widened_limit

    async def retrieve(self, profession: str, max_results: int) -> list[CandidateProfile]:
        """Profiles whose profession equals ``profession`` (normalized)."""
        wanted = normalize_profession(profession)
        if not wanted:
            return []
        try:
            return await self._repo.find_by_profession(wanted, limit=max_results)
        except Exception as exc:
            logger.exception("Exact retrieval failed for profession '%s'", wanted)
            raise RetrievalUnavailableError("exact retrieval", exc) from exc

    async def retrieve_widened(self) -> list[CandidateProfile]:
        """One unfiltered read, capped at the widened limit.

        The caller applies the exact-equality filter itself.
        """
        try:
            return await self._repo.find_all(limit=self._widened_limit)
        except Exception as exc:
            logger.exception("Widened retrieval failed")
            raise RetrievalUnavailableError("widened retrieval", exc) from exc
