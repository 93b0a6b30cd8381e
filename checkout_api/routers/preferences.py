"""
Preferences router — operator access to runtime knobs.

Endpoints:
  GET  /api/v1/preferences/{key}  — Read a preference
  POST /api/v1/preferences        — Create a preference (409 if the key exists)
  PUT  /api/v1/preferences/{key}  — Update value and data type (404 if missing)

Protected by the API key. Changes apply to the next tokenization or
payment call; nothing caches preference values.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from checkout_api.database import get_db
from checkout_api.dependencies import require_api_key
from checkout_api.schemas.preference import (
    PreferenceCreateRequest,
    PreferenceResponse,
    PreferenceUpdateRequest,
)
from checkout_api.services import preference_service

router = APIRouter(dependencies=[Depends(require_api_key)])


@router.get(
    "/{key}",
    response_model=PreferenceResponse,
    summary="Read a preference",
)
async def get_preference(
    key: str,
    db: AsyncSession = Depends(get_db),
):
    return await preference_service.get_preference(db, key)


@router.post(
    "",
    response_model=PreferenceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a preference",
)
async def create_preference(
    request: PreferenceCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await preference_service.create_preference(
        db,
        key=request.pref_key,
        value=request.pref_value,
        data_type=request.data_type,
        description=request.description,
    )


@router.put(
    "/{key}",
    response_model=PreferenceResponse,
    summary="Update a preference",
)
async def update_preference(
    key: str,
    request: PreferenceUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await preference_service.update_preference(
        db,
        key=key,
        value=request.pref_value,
        data_type=request.data_type,
    )
