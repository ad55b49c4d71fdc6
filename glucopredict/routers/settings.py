"""Settings router.

Per-user prediction parameters: carb ratio, insulin sensitivity and the
two decay curves.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from glucopredict.database import get_db
from glucopredict.schemas.prediction_settings import (
    PredictionSettingsDefaults,
    PredictionSettingsExists,
    PredictionSettingsResponse,
    PredictionSettingsUpdate,
)
from glucopredict.services.prediction_settings import (
    delete_settings,
    get_or_create_settings,
    has_settings,
    update_settings,
)

router = APIRouter(prefix="/api/settings", tags=["settings"])


async def _apply_update(
    user_id: uuid.UUID,
    updates: PredictionSettingsUpdate,
    db: AsyncSession,
) -> PredictionSettingsResponse:
    try:
        settings_row = await update_settings(user_id, updates, db)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return PredictionSettingsResponse.model_validate(settings_row)


@router.get("/prediction", response_model=PredictionSettingsResponse)
async def get_prediction_settings(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PredictionSettingsResponse:
    """Get the user's prediction settings.

    Creates and returns defaults if none have been stored yet.
    """
    settings_row = await get_or_create_settings(user_id, db)
    return PredictionSettingsResponse.model_validate(settings_row)


@router.patch("/prediction", response_model=PredictionSettingsResponse)
async def patch_prediction_settings(
    body: PredictionSettingsUpdate,
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PredictionSettingsResponse:
    """Update the user's prediction settings.

    Only provided fields are updated.
    """
    return await _apply_update(user_id, body, db)


@router.put("/prediction", response_model=PredictionSettingsResponse)
async def put_prediction_settings(
    body: PredictionSettingsUpdate,
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PredictionSettingsResponse:
    """Replace the user's prediction settings.

    Omitted fields are reset to their defaults.
    """
    try:
        replacement = PredictionSettingsUpdate(
            **{
                **PredictionSettingsDefaults().model_dump(),
                **body.model_dump(exclude_none=True),
            }
        )
    except ValidationError as exc:
        # e.g. a shortened cap that the default half-life no longer fits under
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc
    return await _apply_update(user_id, replacement, db)


@router.delete("/prediction", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prediction_settings(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete the user's stored settings so defaults apply again."""
    deleted = await delete_settings(user_id, db)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No prediction settings stored for this user",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/prediction/exists", response_model=PredictionSettingsExists)
async def prediction_settings_exist(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> PredictionSettingsExists:
    return PredictionSettingsExists(exists=await has_settings(user_id, db))


@router.get("/prediction/defaults", response_model=PredictionSettingsDefaults)
async def get_prediction_settings_defaults() -> PredictionSettingsDefaults:
    """Get the default prediction parameters."""
    return PredictionSettingsDefaults()
