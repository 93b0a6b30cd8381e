"""
Pydantic schemas for the system preference endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from checkout_api.schemas.card import CAMEL_CONFIG


class PreferenceCreateRequest(BaseModel):
    """Request body for POST /api/v1/preferences."""
    pref_key: str = Field(min_length=1, max_length=100)
    pref_value: str = Field(max_length=255)
    data_type: str = Field(min_length=1, max_length=20)
    description: str | None = Field(None, max_length=255)

    model_config = CAMEL_CONFIG


class PreferenceUpdateRequest(BaseModel):
    """Request body for PUT /api/v1/preferences/{key}. The key comes from the path."""
    pref_value: str = Field(max_length=255)
    data_type: str = Field(min_length=1, max_length=20)

    model_config = CAMEL_CONFIG


class PreferenceResponse(BaseModel):
    pref_key: str
    pref_value: str
    data_type: str
    description: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {**CAMEL_CONFIG, "from_attributes": True}
