from typing import Dict, List
from fastapi import APIRouter, Body, Depends
from quarry_ledger.api.deps import get_store
from quarry_ledger.core.auth import get_current_user
from quarry_ledger.core.exceptions import NotFoundError, ValidationError
from quarry_ledger.repositories.store import LedgerStore
from quarry_ledger.schemas.settings import (
    BatchUpdateResponse,
    SettingResponse,
    SettingsResponse,
    SettingUpdate,
    SettingValue,
)

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/", response_model=SettingsResponse)
async def get_settings(store: LedgerStore = Depends(get_store)):
    """All settings, grouped by category and flat"""
    settings = await store.settings.list_settings()
    categorized: Dict[str, Dict[str, SettingValue]] = {}
    for setting in settings:
        categorized.setdefault(setting.category, {})[setting.key] = SettingValue(
            value=setting.value, updated_at=setting.updated_at
        )
    return SettingsResponse(
        categorized=categorized,
        flat={setting.key: setting.value for setting in settings},
    )


@router.get("/category/{category}", response_model=List[SettingResponse])
async def get_category(category: str, store: LedgerStore = Depends(get_store)):
    return await store.settings.list_settings(category)


@router.put("/batch", response_model=BatchUpdateResponse)
async def batch_update(
    updates: Dict[str, str | int | float | bool] = Body(...),
    store: LedgerStore = Depends(get_store)
):
    """Upsert several settings at once"""
    if not updates:
        raise ValidationError("No settings to update")
    return BatchUpdateResponse(updated=await store.settings.batch_upsert(updates))


@router.put("/{key}", response_model=SettingResponse)
async def update_setting(
    key: str,
    update: SettingUpdate,
    store: LedgerStore = Depends(get_store)
):
    setting = await store.settings.update(key, update.value)
    if setting is None:
        raise NotFoundError(f"Setting {key} not found")
    return setting
