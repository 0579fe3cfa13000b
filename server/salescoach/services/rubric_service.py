"""Versioned rubric configuration: create, edit while draft, activate, delete."""

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from salescoach.models.rubric import (
    RubricCategoryModel,
    RubricConfigModel,
    RubricRedFlagModel,
    RubricScoringCriterionModel,
)
from salescoach.schemas.rubric import (
    CategoryInput,
    RedFlagInput,
    RubricConfig,
    RubricCreate,
    RubricUpdate,
    RubricVersionSummary,
    WeightValidation,
    validate_category_weights,
)
from salescoach.services.default_rubric import default_rubric_input

logger = logging.getLogger(__name__)

VERSION_INSERT_ATTEMPTS = 2


class RubricNotFoundError(Exception):
    pass


class RubricLockedError(Exception):
    """Edit, delete or re-activation attempted on a config that is no longer a draft."""


class RubricConflictError(Exception):
    """The next version number was taken by a concurrent create on every attempt."""


class RubricValidationError(Exception):
    def __init__(self, validation: WeightValidation):
        self.validation = validation
        super().__init__(f"Invalid category weights: {validation.message}. Total: {validation.total:g}%")


def check_weights(categories: Optional[list]) -> None:
    """Raise RubricValidationError unless a non-empty category list sums to 100."""
    if not categories:
        return
    validation = validate_category_weights(categories)
    if not validation.is_valid:
        raise RubricValidationError(validation)


def _category_rows(rubric_config_id: str, categories: list[CategoryInput]) -> list[RubricCategoryModel]:
    return [
        RubricCategoryModel(
            rubric_config_id=rubric_config_id,
            name=cat.name,
            slug=cat.slug,
            description=cat.description,
            weight=cat.weight,
            sort_order=cat.sort_order,
            is_enabled=cat.is_enabled,
            scoring_criteria=[
                RubricScoringCriterionModel(score=sc.score, criteria_text=sc.criteria_text)
                for sc in cat.scoring_criteria
            ],
        )
        for cat in categories
    ]


def _red_flag_rows(rubric_config_id: str, red_flags: list[RedFlagInput]) -> list[RubricRedFlagModel]:
    return [
        RubricRedFlagModel(
            rubric_config_id=rubric_config_id,
            flag_key=rf.flag_key,
            display_name=rf.display_name,
            description=rf.description,
            severity=rf.severity.value,
            threshold_type=rf.threshold_type.value if rf.threshold_type else None,
            threshold_value=rf.threshold_value,
            is_enabled=rf.is_enabled,
            sort_order=rf.sort_order if rf.sort_order is not None else index,
        )
        for index, rf in enumerate(red_flags)
    ]


class RubricService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _load(self, db: AsyncSession, **filters) -> Optional[RubricConfigModel]:
        result = await db.execute(select(RubricConfigModel).filter_by(**filters))
        return result.scalar_one_or_none()

    async def _require_draft(self, db: AsyncSession, config_id: str) -> RubricConfigModel:
        config = await self._load(db, id=config_id)
        if not config:
            raise RubricNotFoundError(f"Rubric config not found: {config_id}")
        if not config.is_draft:
            raise RubricLockedError(
                "Cannot modify a non-draft rubric config. Create a new version instead."
            )
        return config

    async def get_active_config(self) -> Optional[RubricConfig]:
        async with self.session_factory() as db:
            config = await self._load(db, is_active=True)
            return RubricConfig.model_validate(config) if config else None

    async def get_config_by_id(self, config_id: str) -> Optional[RubricConfig]:
        async with self.session_factory() as db:
            config = await self._load(db, id=config_id)
            return RubricConfig.model_validate(config) if config else None

    async def list_versions(self) -> list[RubricVersionSummary]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(RubricConfigModel).order_by(RubricConfigModel.version.desc())
            )
            return [RubricVersionSummary.model_validate(c) for c in result.scalars().all()]

    async def _next_version(self, db: AsyncSession) -> int:
        max_version = (await db.execute(select(func.max(RubricConfigModel.version)))).scalar()
        return (max_version or 0) + 1

    async def create_version(self, payload: RubricCreate) -> RubricConfig:
        check_weights(payload.categories)

        categories = payload.categories
        red_flags = payload.red_flags
        description = payload.description
        if payload.clone_from_id:
            source = await self.get_config_by_id(payload.clone_from_id)
            if not source:
                raise RubricNotFoundError(f"Source config not found: {payload.clone_from_id}")
            if categories is None:
                categories = [CategoryInput.model_validate(c.model_dump()) for c in source.categories]
            if red_flags is None:
                red_flags = [RedFlagInput.model_validate(f.model_dump()) for f in source.red_flags]
            description = description or source.description

        for _ in range(VERSION_INSERT_ATTEMPTS):
            async with self.session_factory() as db:
                version = await self._next_version(db)
                config = RubricConfigModel(
                    name=payload.name,
                    description=description,
                    version=version,
                    is_active=False,
                    is_draft=True,
                )
                db.add(config)
                try:
                    await db.flush()
                except IntegrityError:
                    # Another writer took this version number first
                    await db.rollback()
                    logger.warning(f"Rubric version {version} already taken, retrying")
                    continue
                db.add_all(_category_rows(config.id, categories or []))
                db.add_all(_red_flag_rows(config.id, red_flags or []))
                await db.commit()
                config_id = config.id
                logger.info(f"Created rubric draft '{payload.name}' version {version}")
            return await self.get_config_by_id(config_id)

        raise RubricConflictError("Another rubric version was created concurrently. Please retry.")

    async def update_version(self, config_id: str, payload: RubricUpdate) -> RubricConfig:
        check_weights(payload.categories)

        async with self.session_factory() as db:
            config = await self._require_draft(db, config_id)

            if payload.name is not None:
                config.name = payload.name
            if payload.description is not None:
                config.description = payload.description

            if payload.categories is not None:
                config.categories.clear()
                await db.flush()
                db.add_all(_category_rows(config_id, payload.categories))
            if payload.red_flags is not None:
                config.red_flags.clear()
                await db.flush()
                db.add_all(_red_flag_rows(config_id, payload.red_flags))

            await db.commit()
            logger.info(f"Updated rubric draft {config_id}")

        return await self.get_config_by_id(config_id)

    async def activate_version(self, config_id: str) -> RubricConfig:
        """Activate a draft and demote the current active config in one transaction."""
        async with self.session_factory() as db:
            config = await self._require_draft(db, config_id)
            validation = validate_category_weights(config.categories)
            if not validation.is_valid:
                raise RubricValidationError(validation)

            await db.execute(
                update(RubricConfigModel)
                .where(RubricConfigModel.is_active.is_(True))
                .values(is_active=False)
            )
            config.is_active = True
            config.is_draft = False
            await db.commit()
            logger.info(f"Activated rubric '{config.name}' version {config.version}")

        return await self.get_config_by_id(config_id)

    async def delete_version(self, config_id: str) -> None:
        async with self.session_factory() as db:
            config = await self._require_draft(db, config_id)
            await db.delete(config)
            await db.commit()
            logger.info(f"Deleted rubric draft {config_id}")

    async def seed_default_rubric(self) -> Optional[RubricConfig]:
        """Install and activate the standard rubric when no config exists yet."""
        async with self.session_factory() as db:
            count = (await db.execute(select(func.count(RubricConfigModel.id)))).scalar()
        if count:
            return None

        draft = await self.create_version(default_rubric_input())
        return await self.activate_version(draft.id)
