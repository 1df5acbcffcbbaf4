"""Runtime supervisor settings routes."""

from fastapi import APIRouter

from partner_assistant.models import SettingsResponse, SettingsUpdate
from partner_assistant.services.agents import invalidate_all_clients
from partner_assistant.services.runtime_settings import get_runtime_settings

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse)
async def get_settings() -> SettingsResponse:
    """Current routing policy, synthesis toggle and supervisor workflow."""
    return get_runtime_settings().snapshot()


@router.put("", response_model=SettingsResponse)
async def update_settings(changes: SettingsUpdate) -> SettingsResponse:
    """Apply a partial update; any change invalidates cached agent clients."""
    settings = get_runtime_settings()
    if settings.update(changes):
        invalidate_all_clients()
    return settings.snapshot()
