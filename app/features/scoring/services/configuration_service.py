from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.features.auth.models.user import User
from app.features.scoring.models.configuration import ScoringConfiguration, ScoringCriteria
from app.features.scoring.schemas.scoring import ConfigurationCreate
from app.platform.logger import get_logger

logger = get_logger(__name__)


class ScoringConfigurationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_configuration(self, configuration_id: int) -> ScoringConfiguration:
        result = await self.db.execute(
            select(ScoringConfiguration)
            .options(selectinload(ScoringConfiguration.criteria))
            .where(ScoringConfiguration.id == configuration_id)
        )
        configuration = result.scalar_one_or_none()
        if configuration is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Scoring configuration {configuration_id} not found",
            )
        return configuration

    async def get_active_configuration(self) -> ScoringConfiguration | None:
        result = await self.db.execute(
            select(ScoringConfiguration)
            .options(selectinload(ScoringConfiguration.criteria))
            .where(ScoringConfiguration.is_active.is_(True))
        )
        return result.scalars().first()

    async def list_configurations(self) -> list[ScoringConfiguration]:
        result = await self.db.execute(
            select(ScoringConfiguration)
            .options(selectinload(ScoringConfiguration.criteria))
            .order_by(ScoringConfiguration.created_at.desc(), ScoringConfiguration.id.desc())
        )
        return list(result.scalars().all())

    async def create_configuration(self, admin: User, payload: ConfigurationCreate) -> ScoringConfiguration:
        configuration = ScoringConfiguration(
            name=payload.name,
            description=payload.description,
            version=payload.version,
            total_max_score=sum(c.max_points for c in payload.criteria),
            pass_threshold=payload.pass_threshold,
            is_active=False,
            created_by=admin.id,
            criteria=[
                ScoringCriteria(
                    category=c.category,
                    name=c.name,
                    description=c.description,
                    max_points=c.max_points,
                    sort_order=c.sort_order or index + 1,
                )
                for index, c in enumerate(payload.criteria)
            ],
        )
        self.db.add(configuration)
        await self.db.flush()

        if payload.activate:
            await self._deactivate_others(configuration.id)
            configuration.is_active = True

        await self.db.commit()
        logger.info(f"Scoring configuration created - id: {configuration.id}, by: {admin.id}")
        return await self.get_configuration(configuration.id)

    async def activate_configuration(self, configuration_id: int) -> ScoringConfiguration:
        configuration = await self.get_configuration(configuration_id)
        await self._deactivate_others(configuration.id)
        configuration.is_active = True
        await self.db.commit()

        logger.info(f"Scoring configuration activated - id: {configuration.id}")
        return configuration

    async def _deactivate_others(self, configuration_id: int) -> None:
        await self.db.execute(
            update(ScoringConfiguration)
            .where(ScoringConfiguration.id != configuration_id)
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
