import json
import logging
from datetime import UTC, datetime

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studio_booking.models.provider import ProviderSettings, ServiceEntry
from studio_booking.services.errors import (
    InvalidRequest,
    ProviderNotFound,
    ScheduleConfigurationError,
    ServiceCatalogueError,
)
from studio_booking.services.work_windows import WorkSchedule, load_zone

logger = logging.getLogger(__name__)


def load_schedule(provider: ProviderSettings) -> WorkSchedule:
    try:
        return WorkSchedule.from_json(provider.work_schedule)
    except ScheduleConfigurationError as e:
        logger.error("Provider %s has an invalid work schedule: %s", provider.provider_id, e)
        raise


def parse_services(items: list) -> list[ServiceEntry]:
    """Validate catalogue items; the first bad one raises ServiceCatalogueError."""
    out: list[ServiceEntry] = []
    for i, item in enumerate(items):
        try:
            out.append(ServiceEntry.model_validate(item))
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'item'}: {err['msg']}" for err in e.errors()
            )
            raise ServiceCatalogueError(f"service #{i + 1}: {problems}") from e
    return out


def _services_from_json(raw: str | None) -> list[ServiceEntry]:
    try:
        items = json.loads(raw or "[]")
    except json.JSONDecodeError as e:
        raise ServiceCatalogueError(f"service catalogue is not valid JSON: {e}") from e
    if not isinstance(items, list):
        raise ServiceCatalogueError("service catalogue must be a JSON array")
    return parse_services(items)


def load_services(provider: ProviderSettings) -> list[ServiceEntry]:
    try:
        return _services_from_json(provider.services)
    except ServiceCatalogueError as e:
        logger.error("Provider %s has an invalid service catalogue: %s", provider.provider_id, e)
        raise


def find_service(provider: ProviderSettings, name: str) -> ServiceEntry:
    wanted = name.strip().lower()
    for service in load_services(provider):
        if service.name.strip().lower() == wanted:
            return service
    raise InvalidRequest(f"provider {provider.provider_id} has no service named {name!r}")


async def get_provider_settings(session: AsyncSession, provider_id: str) -> ProviderSettings:
    result = await session.execute(
        select(ProviderSettings).where(ProviderSettings.provider_id == provider_id)
    )
    provider = result.scalar_one_or_none()
    if provider is None:
        raise ProviderNotFound(f"no settings stored for provider {provider_id}")
    return provider


async def upsert_provider_settings(
    session: AsyncSession,
    provider_id: str,
    *,
    work_schedule: list[dict] | None = None,
    time_zone: str | None = None,
    services: list[dict] | None = None,
    business_name: str | None = None,
) -> ProviderSettings:
    """Create or update a provider's settings. Schedule, zone and services are validated
    before anything is written, so a broken table never reaches the engine."""
    if work_schedule is not None:
        try:
            schedule = WorkSchedule.from_entries(work_schedule)
        except ScheduleConfigurationError as e:
            raise InvalidRequest(str(e)) from e
    if time_zone is not None:
        load_zone(time_zone)
    if services is not None:
        try:
            catalogue = parse_services(services)
        except ServiceCatalogueError as e:
            raise InvalidRequest(str(e)) from e

    result = await session.execute(
        select(ProviderSettings).where(ProviderSettings.provider_id == provider_id)
    )
    provider = result.scalar_one_or_none()
    if provider is None:
        provider = ProviderSettings(provider_id=provider_id)
        session.add(provider)
    if work_schedule is not None:
        provider.work_schedule = json.dumps(schedule.to_entries())
    if time_zone is not None:
        provider.time_zone = time_zone
    if services is not None:
        provider.services = json.dumps([s.model_dump(exclude_none=True) for s in catalogue])
    if business_name is not None:
        provider.business_name = business_name
    provider.updated_at = datetime.now(UTC).replace(tzinfo=None)
    await session.flush()
    await session.refresh(provider)
    return provider
