"""Concrete repository for artisan profiles backed by SQLAlchemy."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from craftmatch.application.interfaces import ProfileRepository
from craftmatch.domain.entities import CandidateProfile, PerformanceMetrics
from craftmatch.domain.normalization import normalize_profession
from craftmatch.infrastructure.database.models.artisan_profile import ArtisanProfileModel


class SQLAlchemyProfileRepository(ProfileRepository):
    """Implements the ProfileRepository port using SQLAlchemy.

    Opens a short-lived session per call, so one instance serves the whole
    process and concurrent requests never share a session.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @staticmethod
    def _to_entity(model: ArtisanProfileModel) -> CandidateProfile:
        """Map ORM model → domain entity, resolving optional metrics once."""
        return CandidateProfile(
            id=model.id,
            name=model.name,
            profession=model.profession,
            description=model.description or "",
            location=model.location,
            performance_metrics=PerformanceMetrics.resolve(
                model.customer_satisfaction,
                model.completion_rate,
                model.total_orders,
            ),
        )

    async def find_by_profession(
        self, profession: str, *, limit: int
    ) -> list[CandidateProfile]:
        wanted = normalize_profession(profession)
        stmt = (
            select(ArtisanProfileModel)
            .where(ArtisanProfileModel.profession_key == wanted)
            .order_by(ArtisanProfileModel.updated_at.desc(), ArtisanProfileModel.id)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.scalars().all()]

    async def find_all(self, *, limit: int) -> list[CandidateProfile]:
        stmt = (
            select(ArtisanProfileModel)
            .order_by(ArtisanProfileModel.updated_at.desc(), ArtisanProfileModel.id)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.scalars().all()]

    async def count(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(select(func.count()).select_from(ArtisanProfileModel))
            return int(result.scalar_one())

    async def add_many(self, models: list[ArtisanProfileModel]) -> int:
        async with self._session_factory() as session:
            session.add_all(models)
            await session.commit()
        return len(models)
