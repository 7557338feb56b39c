"""Abstract repository interface for artisan profiles."""

from abc import ABC, abstractmethod

from craftmatch.domain.entities import CandidateProfile


class ProfileRepository(ABC):
    """Port — read-only access to the external artisan profile store.

    Implementations raise whatever their driver raises when the store is
    unreachable; the retrieval service translates that into a domain error.
    """

    @abstractmethod
    async def find_by_profession(
        self, profession: str, *, limit: int
    ) -> list[CandidateProfile]:
        """Return profiles whose profession equals ``profession``.

        Equality is case- and whitespace-insensitive. Results are in store
        order (most recently updated first).
        """
        ...

    @abstractmethod
    async def find_all(self, *, limit: int) -> list[CandidateProfile]:
        """Return up to ``limit`` profiles without any profession filter."""
        ...
