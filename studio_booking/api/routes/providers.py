from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.api.deps import get_provider, get_session, provider_id_path
from studio_booking.api.schemas.provider import (
    DayScheduleEntry,
    ProviderSettingsPublic,
    ProviderSettingsUpdate,
)
from studio_booking.models.provider import ProviderSettings
from studio_booking.services.provider_service import (
    load_schedule,
    load_services,
    upsert_provider_settings,
)

router = APIRouter(prefix="/providers/{provider_id}/settings", tags=["providers"])


def _to_public(p: ProviderSettings) -> ProviderSettingsPublic:
    return ProviderSettingsPublic(
        provider_id=p.provider_id,
        business_name=p.business_name,
        time_zone=p.time_zone,
        work_schedule=[DayScheduleEntry.model_validate(e) for e in load_schedule(p).to_entries()],
        services=load_services(p),
        updated_at=p.updated_at,
    )


@router.get("", response_model=ProviderSettingsPublic)
async def read_settings(provider: ProviderSettings = Depends(get_provider)) -> ProviderSettingsPublic:
    return _to_public(provider)


@router.put("", response_model=ProviderSettingsPublic)
async def write_settings(
    body: ProviderSettingsUpdate,
    provider_id: str = Depends(provider_id_path),
    session: AsyncSession = Depends(get_session),
) -> ProviderSettingsPublic:
    """Create or update working hours, zone and services. Invalid schedules are rejected (422)."""
    provider = await upsert_provider_settings(
        session,
        provider_id,
        work_schedule=(
            [e.model_dump(by_alias=True) for e in body.work_schedule]
            if body.work_schedule is not None
            else None
        ),
        time_zone=body.time_zone,
        services=(
            [s.model_dump(exclude_none=True) for s in body.services]
            if body.services is not None
            else None
        ),
        business_name=body.business_name,
    )
    return _to_public(provider)
