"""Prediction settings service.

Manages each user's prediction parameters with a get-or-create pattern
and resolves them into the engine's UserParameters snapshot.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from glucopredict.core.prediction import UserParameters
from glucopredict.logging_config import get_logger
from glucopredict.models.prediction_settings import PredictionSettings
from glucopredict.schemas.prediction_settings import PredictionSettingsUpdate

logger = get_logger(__name__)


async def _select_settings(
    user_id: uuid.UUID, db: AsyncSession
) -> PredictionSettings | None:
    result = await db.execute(
        select(PredictionSettings).where(PredictionSettings.user_id == user_id)
    )
    return result.scalar_one_or_none()


def to_user_parameters(row: PredictionSettings) -> UserParameters:
    """Map a stored settings row onto the engine's parameter snapshot."""
    return UserParameters(
        carb_ratio=row.carb_ratio,
        insulin_sensitivity_factor=row.isf,
        carb_half_life_minutes=row.carb_half_life_minutes,
        insulin_half_life_minutes=row.insulin_half_life_minutes,
        max_carb_duration_minutes=row.max_carb_duration_minutes,
        max_insulin_duration_minutes=row.max_insulin_duration_minutes,
    )


async def lookup_user_parameters(
    user_id: uuid.UUID,
    db: AsyncSession,
) -> UserParameters | None:
    """Return the user's parameter snapshot, or None if nothing is stored.

    Unlike get_or_create_settings this never writes; an unknown user is
    reported as None and the caller decides what to substitute.
    """
    row = await _select_settings(user_id, db)
    if row is None:
        return None
    return to_user_parameters(row)


async def get_or_create_settings(
    user_id: uuid.UUID,
    db: AsyncSession,
) -> PredictionSettings:
    """Get the user's prediction settings, creating defaults if none exist.

    Args:
        user_id: User's UUID.
        db: Database session.

    Returns:
        The user's PredictionSettings record.
    """
    settings_row = await _select_settings(user_id, db)

    if settings_row is None:
        settings_row = PredictionSettings(user_id=user_id)
        db.add(settings_row)
        try:
            await db.commit()
        except IntegrityError:
            # Another request created the row first
            await db.rollback()
            result = await db.execute(
                select(PredictionSettings).where(PredictionSettings.user_id == user_id)
            )
            return result.scalar_one()
        await db.refresh(settings_row)

        logger.info(
            "Created default prediction settings",
            user_id=str(user_id),
        )

    return settings_row


async def update_settings(
    user_id: uuid.UUID,
    updates: PredictionSettingsUpdate,
    db: AsyncSession,
) -> PredictionSettings:
    """Update the user's prediction settings.

    Only fields provided in the request are updated.

    Raises:
        ValueError: A half-life would exceed its duration cap once the
            update is merged with the stored values.
    """
    settings_row = await get_or_create_settings(user_id, db)

    update_data = updates.model_dump(exclude_none=True)

    merged = {
        "carb_half_life_minutes": settings_row.carb_half_life_minutes,
        "max_carb_duration_minutes": settings_row.max_carb_duration_minutes,
        "insulin_half_life_minutes": settings_row.insulin_half_life_minutes,
        "max_insulin_duration_minutes": settings_row.max_insulin_duration_minutes,
    }
    merged.update({k: v for k, v in update_data.items() if k in merged})

    if merged["carb_half_life_minutes"] > merged["max_carb_duration_minutes"]:
        raise ValueError(
            "carb_half_life_minutes must not exceed max_carb_duration_minutes"
        )
    if merged["insulin_half_life_minutes"] > merged["max_insulin_duration_minutes"]:
        raise ValueError(
            "insulin_half_life_minutes must not exceed max_insulin_duration_minutes"
        )

    for field, value in update_data.items():
        setattr(settings_row, field, value)

    await db.commit()
    await db.refresh(settings_row)

    logger.info(
        "Updated prediction settings",
        user_id=str(user_id),
        fields=list(update_data.keys()),
    )

    return settings_row


async def delete_settings(user_id: uuid.UUID, db: AsyncSession) -> bool:
    """Delete the user's stored settings.

    Returns:
        True if a row was deleted, False if the user had none.
    """
    settings_row = await _select_settings(user_id, db)
    if settings_row is None:
        return False

    await db.delete(settings_row)
    await db.commit()

    logger.info("Deleted prediction settings", user_id=str(user_id))
    return True


async def has_settings(user_id: uuid.UUID, db: AsyncSession) -> bool:
    """Whether the user has stored settings."""
    return await _select_settings(user_id, db) is not None
