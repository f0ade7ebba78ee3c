from datetime import UTC, date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.api.deps import get_session, provider_id_path
from studio_booking.api.schemas.appointment import (
    AppointmentStatusUpdate,
    BookAppointmentRequest,
    BookProjectRequest,
    ProjectBookedPublic,
)
from studio_booking.models.appointment import Appointment, AppointmentCreate, AppointmentPublic
from studio_booking.services.appointment_service import (
    commit_appointment,
    commit_project,
    delete_appointment,
    list_appointments_for_client,
    list_appointments_for_provider,
    update_appointment_status,
)

router = APIRouter(tags=["appointments"])


def _to_public(a: Appointment) -> AppointmentPublic:
    """Public shape; stored datetimes are naive UTC, so tag them as UTC for JSON."""
    return AppointmentPublic(
        id=int(a.id),
        provider_id=a.provider_id,
        client_id=a.client_id,
        title=a.title,
        description=a.description,
        service_name=a.service_name,
        price=a.price,
        start_utc=a.start_utc.replace(tzinfo=UTC),
        end_utc=a.end_utc.replace(tzinfo=UTC),
        status=a.status,
        created_at=a.created_at.replace(tzinfo=UTC),
    )


@router.post(
    "/providers/{provider_id}/appointments",
    response_model=AppointmentPublic,
    status_code=status.HTTP_201_CREATED,
)
async def book_appointment(
    body: BookAppointmentRequest,
    provider_id: str = Depends(provider_id_path),
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    """Commit one accepted proposal. 409 slot_no_longer_available if it was taken meanwhile."""
    data = AppointmentCreate(**body.model_dump())
    appointment = await commit_appointment(session, provider_id, data)
    return _to_public(appointment)


@router.post(
    "/providers/{provider_id}/projects",
    response_model=ProjectBookedPublic,
    status_code=status.HTTP_201_CREATED,
)
async def book_project(
    body: BookProjectRequest,
    provider_id: str = Depends(provider_id_path),
    session: AsyncSession = Depends(get_session),
) -> ProjectBookedPublic:
    """Commit all sittings of an accepted proposal. If one is taken meanwhile, none are booked (409)."""
    common = body.model_dump(exclude={"sittings"})
    items = [
        AppointmentCreate(**common, start_utc=s.start_utc, end_utc=s.end_utc) for s in body.sittings
    ]
    appointments = await commit_project(session, provider_id, items)
    return ProjectBookedPublic(count=len(appointments), appointment_ids=[int(a.id) for a in appointments])


@router.get("/providers/{provider_id}/appointments", response_model=list[AppointmentPublic])
async def list_provider_appointments(
    provider_id: str = Depends(provider_id_path),
    from_date: date | None = Query(None, alias="from_date"),
    include_cancelled: bool = Query(False),
    session: AsyncSession = Depends(get_session),
) -> list[AppointmentPublic]:
    appointments = await list_appointments_for_provider(
        session, provider_id, from_date=from_date, include_cancelled=include_cancelled
    )
    return [_to_public(a) for a in appointments]


@router.get("/clients/{client_id}/appointments", response_model=list[AppointmentPublic])
async def list_client_appointments(
    client_id: str,
    from_date: date | None = Query(None, alias="from_date"),
    session: AsyncSession = Depends(get_session),
) -> list[AppointmentPublic]:
    appointments = await list_appointments_for_client(session, client_id, from_date=from_date)
    return [_to_public(a) for a in appointments]


@router.patch("/providers/{provider_id}/appointments/{appointment_id}", response_model=AppointmentPublic)
async def change_appointment_status(
    appointment_id: int,
    body: AppointmentStatusUpdate,
    provider_id: str = Depends(provider_id_path),
    session: AsyncSession = Depends(get_session),
) -> AppointmentPublic:
    appointment = await update_appointment_status(session, provider_id, appointment_id, body.status)
    return _to_public(appointment)


@router.delete(
    "/providers/{provider_id}/appointments/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_appointment(
    appointment_id: int,
    provider_id: str = Depends(provider_id_path),
    session: AsyncSession = Depends(get_session),
) -> None:
    await delete_appointment(session, provider_id, appointment_id)
