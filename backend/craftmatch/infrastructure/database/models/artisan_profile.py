"""SQLAlchemy ORM model for artisan profiles."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from craftmatch.domain.normalization import normalize_profession
from craftmatch.infrastructure.database.base import Base


class ArtisanProfileModel(Base):
    """ORM model — maps to the 'artisan_profiles' table.

    Performance columns are nullable: a new artisan has no history yet.
    ``profession_key`` mirrors ``profession`` through normalize_profession and
    is what profession lookups filter on.
    """

    __tablename__ = "artisan_profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    profession: Mapped[str] = mapped_column(String(100), nullable=False)
    profession_key: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    customer_satisfaction: Mapped[float | None] = mapped_column(Float, nullable=True)
    completion_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_orders: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    @validates("profession")
    def _sync_profession_key(self, _key: str, value: str) -> str:
        self.profession_key = normalize_profession(value)
        return value

    def __repr__(self) -> str:
        return f"<ArtisanProfileModel(id='{self.id}', profession='{self.profession}')>"
