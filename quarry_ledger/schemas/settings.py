from typing import Dict
from pydantic import BaseModel
from datetime import datetime


class SettingValue(BaseModel):
    value: str
    updated_at: datetime


class SettingsResponse(BaseModel):
    categorized: Dict[str, Dict[str, SettingValue]]
    flat: Dict[str, str]


class SettingUpdate(BaseModel):
    value: str


class SettingResponse(BaseModel):
    key: str
    value: str
    category: str
    updated_at: datetime

    model_config = {"from_attributes": True}


class BatchUpdateResponse(BaseModel):
    updated: int
