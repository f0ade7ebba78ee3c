from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.api.deps import get_session, provider_id_path
from studio_booking.models.availability import AvailabilityPublic, AvailabilityQuery
from studio_booking.services.slot_service import check_availability

router = APIRouter(prefix="/providers/{provider_id}/availability", tags=["availability"])


@router.post("", response_model=AvailabilityPublic)
async def find_availability(
    body: AvailabilityQuery,
    provider_id: str = Depends(provider_id_path),
    session: AsyncSession = Depends(get_session),
) -> AvailabilityPublic:
    """Propose session start times (UTC) for a service at a cadence, plus the total price.

    Nothing is reserved; commit accepted times through the appointments endpoint, or
    all sittings at once through the projects endpoint.
    """
    result = await check_availability(session, provider_id, body, now=datetime.now(UTC))
    return AvailabilityPublic(
        dates=result.dates,
        total_cost=result.total_cost,
        sittings=result.sittings,
        duration_minutes=result.duration_minutes,
        frequency=result.frequency,
    )
